"""Resolve requested dependencies against a managed catalog.

The resolver is a pure batch transform: it reads the catalog, never writes
it, and returns one outcome per requested dependency in input order. Applying
outcomes (publishing properties, logging, failing a build) is the caller's
job, see :mod:`edm_version_sniffer.sniffer`.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from .models import (
    DependencyDeclaration,
    KeyMode,
    ManagedCatalog,
    ManagedEntry,
    RequestedDependency,
    Resolved,
    UnmanagedHasVersion,
    UnmanagedNoVersion,
)

OutcomeT = Resolved | UnmanagedNoVersion | UnmanagedHasVersion


def _require(name: str, value: Optional[str]) -> str:
    v = (value or "").strip()
    if not v:
        raise ValueError(f"{name} must be non-empty")
    return v


def management_key(dep: DependencyDeclaration, mode: KeyMode = "coordinate") -> str:
    """Return the key used to match ``dep`` against the catalog.

    ``coordinate`` mode yields ``groupId:artifactId``. ``maven`` mode yields
    the key Maven uses for dependency management,
    ``groupId:artifactId:type[:classifier]``.

    Raises ValueError naming the offending field when a coordinate part is
    empty, including for models created with ``model_construct``.
    """
    g = _require("group_id", dep.group_id)
    a = _require("artifact_id", dep.artifact_id)
    if mode == "coordinate":
        return f"{g}:{a}"
    if mode == "maven":
        key = f"{g}:{a}:{dep.type or 'jar'}"
        if dep.classifier:
            key += f":{dep.classifier}"
        return key
    raise ValueError(f"unknown management key mode: {mode!r}")


def build_catalog(entries: Iterable[ManagedEntry], key_mode: KeyMode = "coordinate") -> ManagedCatalog:
    """Build a read-only catalog; on duplicate keys the last entry wins."""
    mapping: dict[str, ManagedEntry] = {}
    for entry in entries:
        mapping[management_key(entry, key_mode)] = entry
    return ManagedCatalog(mapping, key_mode=key_mode)


def format_dependency(
    dep: DependencyDeclaration,
    managed_version: Optional[str] = None,
    mode: KeyMode = "coordinate",
) -> str:
    """Render the one-line description logged for a resolved dependency.

    Example::

        g:a:1.0:2.0 { scope: test classifier:x:1.0 exclusions: { e:f } }

    The requested version appears twice, once after the key and once inside
    the block. Log scrapers rely on this exact string.
    """
    head = management_key(dep, mode)
    if dep.version:
        head += f":{dep.version}"
    if managed_version:
        head += f":{managed_version}"

    block = ""
    if dep.scope:
        block += f" scope: {dep.scope}"
    if dep.classifier:
        block += f" classifier:{dep.classifier}"
    if dep.version:
        block += f":{dep.version}"
    if dep.exclusions:
        block += " exclusions: { " + ", ".join(e.key for e in dep.exclusions) + " }"
    return f"{head} {{{block} }}"


def resolve_one(catalog: ManagedCatalog, dep: RequestedDependency) -> OutcomeT:
    key = management_key(dep, catalog.key_mode)
    managed = catalog.get(key)
    if managed is not None and managed.version:
        return Resolved(
            key=key,
            resolved_version=managed.version,
            description=format_dependency(dep, managed.version, catalog.key_mode),
            dependency=dep,
        )
    if not dep.version:
        return UnmanagedNoVersion(key=key, dependency=dep)
    return UnmanagedHasVersion(key=key, dependency=dep)


def resolve(catalog: ManagedCatalog, requested: Sequence[RequestedDependency]) -> list[OutcomeT]:
    """Resolve every requested dependency, preserving input order.

    Duplicates are resolved independently. A managed entry without a version
    counts as not found.
    """
    return [resolve_one(catalog, dep) for dep in requested]


__all__ = [
    "build_catalog",
    "format_dependency",
    "management_key",
    "resolve",
    "resolve_one",
]
