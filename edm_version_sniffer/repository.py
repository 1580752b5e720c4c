"""HTTP client for fetching POMs (imported BOMs) from a Maven repository.

- Shared httpx.AsyncClient with connection pooling
- Timeouts, bounded retries with backoff, bounded concurrency via semaphore
- HTTPS-only guard on the repository URL
- Coordinates are checked for path traversal before building URLs
- Downloads are streamed and abandoned once they exceed MAX_POM_BYTES
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from .config import Settings

_logger = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.WriteError,
    httpx.RemoteProtocolError,
    httpx.NetworkError,
)


def _validate_coordinate_part(name: str, value: str) -> str:
    v = (value or "").strip()
    if not v:
        raise ValueError(f"{name} must be non-empty")
    if v.startswith("/") or ".." in v or "/" in v or "\\" in v:
        raise ValueError(f"{name} contains illegal path characters")
    return v


def _group_path(group_id: str) -> str:
    if group_id.startswith(".") or group_id.endswith("."):
        raise ValueError("group_id contains illegal path characters")
    return group_id.replace(".", "/")


def build_pom_url(base_url: str, group_id: str, artifact_id: str, version: str) -> str:
    """Canonical repository layout: ``<base>/g/r/p/artifact/version/artifact-version.pom``."""
    g = _validate_coordinate_part("group_id", group_id)
    a = _validate_coordinate_part("artifact_id", artifact_id)
    v = _validate_coordinate_part("version", version)
    base = base_url.rstrip("/")
    if not base.lower().startswith("https://"):
        raise ValueError("Repository URL must be HTTPS")
    return f"{base}/{_group_path(g)}/{a}/{v}/{a}-{v}.pom"


class MavenRepositoryClient:
    """Resilient async client for a Maven repository.

    Parameters are sourced from Settings by default, but can be overridden
    for testability.
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout_seconds: Optional[int] = None,
        max_retries: Optional[int] = None,
        concurrency: Optional[int] = None,
        max_bytes: Optional[int] = None,
        client: httpx.AsyncClient | None = None,
        sleep_fn: Any | None = None,
    ) -> None:
        s = Settings()
        self._base_url = base_url or s.MAVEN_REPOSITORY_BASE_URL
        if not self._base_url.lower().startswith("https://"):
            raise ValueError("Repository URL must be HTTPS")

        self._timeout_seconds = int(timeout_seconds or s.HTTP_TIMEOUT_SECONDS)
        self._max_retries = int(max_retries if max_retries is not None else s.HTTP_MAX_RETRIES)
        self._max_bytes = int(max_bytes or s.MAX_POM_BYTES)

        conc = int(concurrency or s.HTTP_CONCURRENCY)
        if conc < 1:
            raise ValueError("HTTP_CONCURRENCY must be >= 1")
        self._sem = asyncio.Semaphore(conc)

        self._client = client or httpx.AsyncClient(timeout=self._timeout_seconds)
        # Injected sleep function for tests to avoid real delays
        self._sleep = sleep_fn or asyncio.sleep

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        await self._client.aclose()

    def _should_retry(self, exc: BaseException | None, response: httpx.Response | None) -> bool:
        if exc is not None:
            return isinstance(exc, _TRANSIENT_ERRORS)
        if response is None:
            return False
        status = response.status_code
        return status == 429 or 500 <= status <= 599

    async def _backoff(self, attempt: int) -> None:
        # 0.05, 0.1, 0.2, ... seconds
        await self._sleep(0.05 * (2 ** max(0, attempt - 1)))

    async def _read_capped(self, resp: httpx.Response) -> str:
        total = 0
        chunks: list[bytes] = []
        async for chunk in resp.aiter_bytes():
            if not chunk:
                continue
            total += len(chunk)
            if total > self._max_bytes:
                raise ValueError("POM exceeds maximum allowed size")
            chunks.append(chunk)
        return b"".join(chunks).decode("utf-8", errors="replace")

    async def get_text(self, url: str) -> str:
        """GET ``url`` and return the body as text, retrying transient failures.

        Non-retriable HTTP statuses raise httpx.HTTPStatusError immediately.
        """
        if not url.lower().startswith("https://"):
            raise ValueError("URL must be HTTPS")

        last_exc: BaseException | None = None
        last_response: httpx.Response | None = None

        for attempt in range(0, self._max_retries + 1):
            exc: BaseException | None = None
            resp: httpx.Response | None = None
            async with self._sem:
                try:
                    async with self._client.stream("GET", url, follow_redirects=True) as resp:
                        if not self._should_retry(None, resp):
                            resp.raise_for_status()
                            return await self._read_capped(resp)
                except httpx.HTTPStatusError:
                    raise
                except _TRANSIENT_ERRORS as e:
                    exc = e

            last_exc = exc
            last_response = resp
            if attempt < self._max_retries and self._should_retry(exc, resp):
                _logger.debug("retrying POM download", extra={"op": "get_text", "attempt": attempt + 1})
                await self._backoff(attempt + 1)
                continue
            break

        if last_exc is not None:
            raise last_exc
        if last_response is not None:
            last_response.raise_for_status()
        raise RuntimeError("Request failed without response or exception")

    async def download_pom(self, group_id: str, artifact_id: str, version: str) -> str:
        """Download a POM as UTF-8 text. Content is untrusted; no parsing here."""
        url = build_pom_url(self._base_url, group_id, artifact_id, version)
        _logger.info(
            "downloading POM",
            extra={"op": "download_pom", "group_id": group_id, "artifact_id": artifact_id},
        )
        return await self.get_text(url)


_singleton: MavenRepositoryClient | None = None


def get_client() -> MavenRepositoryClient:
    global _singleton
    if _singleton is None:
        _singleton = MavenRepositoryClient()
    return _singleton


async def close_client() -> None:
    global _singleton
    if _singleton is not None:
        await _singleton.aclose()
        _singleton = None


__all__ = [
    "MavenRepositoryClient",
    "build_pom_url",
    "close_client",
    "get_client",
]
