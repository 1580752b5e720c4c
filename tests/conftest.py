from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import pytest

from edm_version_sniffer.config import Settings
from edm_version_sniffer.repository import MavenRepositoryClient

REPO_BASE = "https://repo.example.test/maven2"


class NoSleep:
    async def __call__(self, *_: Any, **__: Any) -> None:  # no real delay
        return None


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Settings reads unprefixed env vars; keep the host environment out of tests
    for name in Settings.model_fields:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
async def repo_client() -> AsyncIterator[MavenRepositoryClient]:
    client = MavenRepositoryClient(base_url=REPO_BASE, max_retries=2, sleep_fn=NoSleep())
    try:
        yield client
    finally:
        await client.aclose()


@pytest.fixture
def pom_url():
    """Canonical URL of a POM under REPO_BASE."""

    def _f(group_id: str, artifact_id: str, version: str) -> str:
        path = group_id.replace(".", "/")
        return f"{REPO_BASE}/{path}/{artifact_id}/{version}/{artifact_id}-{version}.pom"

    return _f
