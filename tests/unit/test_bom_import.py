import httpx
import pytest
import respx

from edm_version_sniffer.models import ManagedEntry, ParsedPom, RequestedDependency
from edm_version_sniffer.repository import MavenRepositoryClient
from edm_version_sniffer.resolver import build_catalog, resolve
from edm_version_sniffer.sniffer import expand_bom_imports


def _bom_xml(*entries: tuple[str, str, str]) -> str:
    deps = "".join(
        f"<dependency><groupId>{g}</groupId><artifactId>{a}</artifactId><version>{v}</version></dependency>"
        for g, a, v in entries
    )
    return (
        '<project xmlns="http://maven.apache.org/POM/4.0.0">'
        f"<dependencyManagement><dependencies>{deps}</dependencies></dependencyManagement>"
        "</project>"
    )


def _bom(group_id: str, artifact_id: str, version: str | None) -> ManagedEntry:
    return ManagedEntry(group_id=group_id, artifact_id=artifact_id, version=version, type="pom", scope="import")


@pytest.mark.asyncio
async def test_no_imports_returns_local_entries_without_network(repo_client: MavenRepositoryClient) -> None:
    local = [ManagedEntry(group_id="g", artifact_id="a", version="1")]
    parsed = ParsedPom(managed=local)
    with respx.mock(assert_all_called=False) as router:
        entries = await expand_bom_imports(parsed, repo_client)
        assert not router.calls
    assert entries == local


@pytest.mark.asyncio
async def test_local_beats_first_bom_beats_second(repo_client: MavenRepositoryClient, pom_url) -> None:
    parsed = ParsedPom(
        managed=[ManagedEntry(group_id="shared", artifact_id="local", version="local-1")],
        bom_imports=[_bom("org.first", "bom", "1.0"), _bom("org.second", "bom", "2.0")],
    )
    first = _bom_xml(("shared", "both", "first"), ("shared", "local", "first"), ("only", "first", "f"))
    second = _bom_xml(("shared", "both", "second"), ("only", "second", "s"))

    with respx.mock(assert_all_called=True) as router:
        router.get(pom_url("org.first", "bom", "1.0")).mock(return_value=httpx.Response(200, text=first))
        router.get(pom_url("org.second", "bom", "2.0")).mock(return_value=httpx.Response(200, text=second))
        entries = await expand_bom_imports(parsed, repo_client)

    catalog = build_catalog(entries)
    requested = [
        RequestedDependency(group_id="shared", artifact_id="both"),
        RequestedDependency(group_id="shared", artifact_id="local"),
        RequestedDependency(group_id="only", artifact_id="first"),
        RequestedDependency(group_id="only", artifact_id="second"),
    ]
    versions = [o.resolved_version for o in resolve(catalog, requested)]
    assert versions == ["first", "local-1", "f", "s"]


@pytest.mark.asyncio
async def test_bom_import_without_version_is_rejected(repo_client: MavenRepositoryClient) -> None:
    parsed = ParsedPom(bom_imports=[_bom("org.acme", "bom", None)])
    with pytest.raises(ValueError, match="org.acme:bom"):
        await expand_bom_imports(parsed, repo_client)


@pytest.mark.asyncio
async def test_bom_download_error_propagates(repo_client: MavenRepositoryClient, pom_url) -> None:
    parsed = ParsedPom(bom_imports=[_bom("org.acme", "bom", "1.0")])
    with respx.mock(assert_all_called=True) as router:
        router.get(pom_url("org.acme", "bom", "1.0")).mock(return_value=httpx.Response(404))
        with pytest.raises(httpx.HTTPStatusError):
            await expand_bom_imports(parsed, repo_client)
