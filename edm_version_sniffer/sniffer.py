"""Apply resolution outcomes the way the build plugin does.

The resolver only computes outcomes. This module is the caller side:
- publishes ``groupId:artifactId.version`` properties for resolved entries
- logs the found/extended lines and the unmanaged warning
- optionally escalates unmanaged dependencies into an error, but only after
  the whole batch has been applied
- expands imported BOMs into catalog entries before resolving
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, MutableMapping, Optional, Sequence

from .models import (
    KeyMode,
    ManagedEntry,
    ParsedPom,
    RequestedDependency,
    Resolved,
    SniffReport,
    UnmanagedHasVersion,
    UnmanagedNoVersion,
)
from .pom import extract_managed_entries
from .repository import MavenRepositoryClient, get_client
from .resolver import OutcomeT, build_catalog, resolve

_logger = logging.getLogger(__name__)


class UnmanagedDependencyError(ValueError):
    """Raised when unmanaged, unversioned dependencies must fail the build."""

    def __init__(self, keys: Sequence[str], report: SniffReport) -> None:
        self.keys = list(keys)
        self.report = report
        super().__init__("No managed version for: " + ", ".join(self.keys))


def unmanaged_warning(key: str) -> str:
    return f"No managed dependency found for {key} - ignoring dependency in case of missing version"


def apply_outcomes(
    outcomes: Iterable[OutcomeT],
    properties: Optional[MutableMapping[str, str]] = None,
    logger: Optional[logging.Logger] = None,
) -> SniffReport:
    """Publish properties and log every outcome; never stops early."""
    log = logger or _logger
    report = SniffReport()
    for outcome in outcomes:
        report.outcomes.append(outcome)
        if isinstance(outcome, Resolved):
            log.info("found managed dependency: %s", outcome.key, extra={"op": "resolve", "key": outcome.key})
            log.info("extend management dependency with: %s", outcome.description)
            report.properties[outcome.property_name] = outcome.resolved_version
            if properties is not None:
                properties[outcome.property_name] = outcome.resolved_version
        elif isinstance(outcome, UnmanagedNoVersion):
            message = unmanaged_warning(outcome.key)
            log.warning(message, extra={"op": "resolve", "key": outcome.key})
            report.warnings.append(message)
            report.unmanaged_keys.append(outcome.key)
        elif isinstance(outcome, UnmanagedHasVersion):
            log.debug("dependency %s carries its own version", outcome.key)
    return report


def sniff_dependency_versions(
    managed: Iterable[ManagedEntry],
    requested: Sequence[RequestedDependency],
    *,
    properties: Optional[MutableMapping[str, str]] = None,
    key_mode: KeyMode = "coordinate",
    fail_on_unmanaged: bool = False,
    logger: Optional[logging.Logger] = None,
) -> SniffReport:
    """Build the catalog, resolve ``requested`` and apply the outcomes.

    Raises UnmanagedDependencyError after all outcomes were applied when
    ``fail_on_unmanaged`` is set and at least one dependency has neither a
    managed nor an own version.
    """
    catalog = build_catalog(managed, key_mode)
    report = apply_outcomes(resolve(catalog, requested), properties, logger)
    if fail_on_unmanaged and report.unmanaged_keys:
        raise UnmanagedDependencyError(report.unmanaged_keys, report)
    return report


async def expand_bom_imports(
    parsed: ParsedPom,
    client: Optional[MavenRepositoryClient] = None,
) -> list[ManagedEntry]:
    """Return catalog entries with imported BOMs flattened in (one level).

    Order is reverse BOM declaration, then local entries, so that with
    last-write-wins the first declared BOM beats later ones and local
    declarations beat every BOM.
    """
    if not parsed.bom_imports:
        return list(parsed.managed)

    for bom in parsed.bom_imports:
        if not bom.version:
            raise ValueError(f"BOM import {bom.coordinate.key} has no version")

    repo = client or get_client()
    pom_texts = await asyncio.gather(
        *(repo.download_pom(b.group_id, b.artifact_id, b.version or "") for b in parsed.bom_imports)
    )

    entries: list[ManagedEntry] = []
    for bom, pom_xml in reversed(list(zip(parsed.bom_imports, pom_texts))):
        imported = extract_managed_entries(pom_xml)
        _logger.info(
            "imported %d managed entries from %s:%s",
            len(imported),
            bom.coordinate.key,
            bom.version,
            extra={"op": "import_bom"},
        )
        entries.extend(imported)
    entries.extend(parsed.managed)
    return entries


__all__ = [
    "UnmanagedDependencyError",
    "apply_outcomes",
    "expand_bom_imports",
    "sniff_dependency_versions",
    "unmanaged_warning",
]
