"""MCP STDIO server exposing the dependency-version sniffer.

Design notes:
- Transport adapter stays thin; ``sniff_pom_core`` is transport-neutral.
- Tool arguments left as None fall back to Settings.
- Logging goes to stderr via the central logging config.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastmcp import FastMCP

from .config import Settings
from .logging_config import configure_logging
from .models import SniffReport
from .pom import parse_pom
from .repository import MavenRepositoryClient
from .sniffer import expand_bom_imports, sniff_dependency_versions

_logger = logging.getLogger(__name__)

_settings = Settings()
configure_logging(_settings.LOG_LEVEL, _settings.LOG_JSON)


async def sniff_pom_core(
    *,
    pom_xml: str,
    plugin_artifact_id: Optional[str] = None,
    import_boms: Optional[bool] = None,
    properties: Optional[dict[str, str]] = None,
    fail_on_unmanaged: Optional[bool] = None,
    client: Optional[MavenRepositoryClient] = None,
) -> SniffReport:
    """Resolve the plugin's requested dependencies against a POM's catalog.

    Error handling policy:
    - Unparseable POM XML raises ValueError("Invalid POM XML").
    - Imported BOM download failures raise ValueError naming the status.
    - UnmanagedDependencyError (a ValueError) propagates when escalation is on.
    """
    s = Settings()
    plugin_id = plugin_artifact_id or s.PLUGIN_ARTIFACT_ID
    do_import = s.IMPORT_BOMS if import_boms is None else import_boms
    fail = s.FAIL_ON_UNMANAGED if fail_on_unmanaged is None else fail_on_unmanaged

    try:
        parsed = parse_pom(pom_xml, plugin_id)
    except ValueError:
        # coordinate validation errors and defusedxml rejections keep their message
        raise
    except Exception:
        raise ValueError("Invalid POM XML")

    caveats: list[str] = []
    if do_import:
        try:
            managed = await expand_bom_imports(parsed, client)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code if e.response is not None else None
            raise ValueError(f"Failed to download imported BOM (status={status})")
    else:
        managed = list(parsed.managed)
        if parsed.bom_imports:
            caveats.append(
                f"{len(parsed.bom_imports)} BOM import(s) not expanded; set import_boms=True to include them"
            )

    if not parsed.requested:
        caveats.append(f"no dependencies configured for plugin {plugin_id}")

    _logger.info(
        "sniffing dependency versions",
        extra={"op": "sniff", "managed": len(managed), "requested": len(parsed.requested)},
    )
    report = sniff_dependency_versions(
        managed,
        parsed.requested,
        properties=properties,
        key_mode=s.MANAGEMENT_KEY_MODE,
        fail_on_unmanaged=fail,
    )
    report.caveats.extend(caveats)
    return report


_server = FastMCP("edm-version-sniffer")


@_server.tool(name="sniff_dependency_versions")
async def sniff_dependency_versions_tool(
    pom_xml: str,
    plugin_artifact_id: Optional[str] = None,
    import_boms: Optional[bool] = None,
    fail_on_unmanaged: Optional[bool] = None,
) -> dict:
    """Resolve managed versions for the plugin's dependencies in a POM.

    Returns the published ``groupId:artifactId.version`` properties, one
    outcome per configured dependency and any unmanaged warnings.
    """

    result = await sniff_pom_core(
        pom_xml=pom_xml,
        plugin_artifact_id=plugin_artifact_id,
        import_boms=import_boms,
        fail_on_unmanaged=fail_on_unmanaged,
    )
    return result.model_dump()


def run() -> None:  # pragma: no cover
    _server.run()


__all__ = [
    "sniff_pom_core",
    "run",
]
