from __future__ import annotations

import logging
import re
from typing import Any, Final, Optional

# Secure XML parsing
from defusedxml import ElementTree as ET  # type: ignore[import-untyped]
from pydantic import ValidationError

from .models import ManagedEntry, ParsedPom, RequestedDependency

_logger = logging.getLogger(__name__)

DEFAULT_PLUGIN_ARTIFACT_ID: Final[str] = "edm-maven-plugin"

_PLACEHOLDER: Final[re.Pattern[str]] = re.compile(r"\$\{([^}]+)\}")
# Nested property references are expanded at most this many times.
_MAX_INTERPOLATION_DEPTH: Final[int] = 10


def _local_name(tag: Any) -> str:
    """Return the local name of an XML tag, stripping any namespace."""
    if not isinstance(tag, str):  # comments / processing instructions
        return ""
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def _child(elem: Any, name: str) -> Any:
    if elem is None:
        return None
    for child in elem:
        if _local_name(child.tag) == name:
            return child
    return None


def _children(elem: Any, name: str) -> list[Any]:
    if elem is None:
        return []
    return [c for c in elem if _local_name(c.tag) == name]


def _path(elem: Any, *names: str) -> Any:
    for name in names:
        elem = _child(elem, name)
    return elem


def _child_text(elem: Any, name: str) -> Optional[str]:
    child = _child(elem, name)
    if child is None:
        return None
    return (child.text or "").strip() or None


def _collect_properties(root: Any) -> dict[str, str]:
    """Local ``<properties>`` plus the ``project.*`` built-ins Maven offers."""
    props: dict[str, str] = {}
    parent = _child(root, "parent")
    for field in ("groupId", "artifactId", "version"):
        value = _child_text(root, field) or _child_text(parent, field)
        if value:
            props[f"project.{field}"] = value
            props[f"pom.{field}"] = value
    props_elem = _child(root, "properties")
    for prop in (props_elem if props_elem is not None else []):
        key = _local_name(prop.tag)
        val = (prop.text or "").strip()
        if key and val:
            props[key] = val
    return props


def _interpolate(value: Optional[str], properties: dict[str, str]) -> Optional[str]:
    """Expand ``${prop}`` placeholders, including properties that reference others.

    Returns None when a placeholder is unknown, refers back to itself, or is
    still present after _MAX_INTERPOLATION_DEPTH rounds.
    """
    if value is None:
        return None

    def _sub(m: re.Match[str]) -> str:
        return properties.get(m.group(1).strip(), m.group(0))

    result = value
    for _ in range(_MAX_INTERPOLATION_DEPTH):
        expanded = _PLACEHOLDER.sub(_sub, result)
        if expanded == result:
            break
        result = expanded
    if _PLACEHOLDER.search(result):
        return None
    return result.strip() or None


def _text_of(elem: Any, name: str, properties: dict[str, str]) -> Optional[str]:
    return _interpolate(_child_text(elem, name), properties)


def _read_dependency(dep: Any, properties: dict[str, str]) -> dict[str, Any]:
    def text(name: str) -> Optional[str]:
        return _text_of(dep, name, properties)

    exclusions = []
    for exc in _children(_child(dep, "exclusions"), "exclusion"):
        gid = _text_of(exc, "groupId", properties)
        aid = _text_of(exc, "artifactId", properties)
        if gid and aid:
            exclusions.append({"group_id": gid, "artifact_id": aid})

    return {
        "group_id": text("groupId") or "",
        "artifact_id": text("artifactId") or "",
        "version": text("version"),
        "scope": text("scope"),
        "classifier": text("classifier"),
        "type": text("type"),
        "exclusions": exclusions,
    }


def _is_bom_import(fields: dict[str, Any]) -> bool:
    return (fields.get("scope") or "").lower() == "import" and (fields.get("type") or "") == "pom"


def _plugin_dependencies(root: Any, plugin_artifact_id: str) -> list[Any]:
    for plugin in _children(_path(root, "build", "plugins"), "plugin"):
        if _child_text(plugin, "artifactId") == plugin_artifact_id:
            return _children(_path(plugin, "configuration", "dependencies"), "dependency")
    return []


def extract_managed_entries(pom_xml: str) -> list[ManagedEntry]:
    """Return the ``<dependencyManagement>`` entries of a POM, BOM imports excluded.

    Entries that fail validation (missing ids, oversized parts) are skipped.
    """
    return parse_pom(pom_xml, plugin_artifact_id=None).managed


def parse_pom(pom_xml: str, plugin_artifact_id: Optional[str] = DEFAULT_PLUGIN_ARTIFACT_ID) -> ParsedPom:
    """Extract the managed catalog and the requested dependencies from a POM.

    Security:
        Uses defusedxml to prevent XXE and entity expansion attacks.

    Behavior:
        - ``managed``: project-level ``<dependencyManagement>`` entries, in
          document order, minus ``<type>pom</type><scope>import</scope>``
          entries, which go to ``bom_imports`` instead.
        - ``requested``: ``<configuration><dependencies>`` of the build plugin
          whose artifactId is ``plugin_artifact_id`` (skipped when None).
        - ``${...}`` placeholders resolve from local properties (which may
          themselves reference other properties) and ``project.*``;
          unresolved placeholders leave the field unset.
        - Managed entries that fail validation are skipped.

    Raises:
        Exception (from defusedxml) for invalid or unsafe XML inputs.
        ValueError (pydantic ValidationError) for a requested dependency
        lacking groupId or artifactId or with an oversized part.
    """
    root = ET.fromstring(pom_xml)
    properties = _collect_properties(root)

    managed: list[ManagedEntry] = []
    bom_imports: list[ManagedEntry] = []
    for dep in _children(_path(root, "dependencyManagement", "dependencies"), "dependency"):
        fields = _read_dependency(dep, properties)
        try:
            entry = ManagedEntry(**fields)
        except ValidationError as e:
            _logger.debug(
                "skipping malformed managed dependency",
                extra={"op": "parse_pom", "group_id": fields["group_id"], "errors": e.error_count()},
            )
            continue
        if _is_bom_import(fields):
            bom_imports.append(entry)
        else:
            managed.append(entry)

    requested: list[RequestedDependency] = []
    if plugin_artifact_id:
        for dep in _plugin_dependencies(root, plugin_artifact_id):
            requested.append(RequestedDependency(**_read_dependency(dep, properties)))

    return ParsedPom(managed=managed, bom_imports=bom_imports, requested=requested)


__all__ = [
    "DEFAULT_PLUGIN_ARTIFACT_ID",
    "extract_managed_entries",
    "parse_pom",
]
