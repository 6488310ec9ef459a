"""Async resource loader for embedded images and cited web pages.

WHY: The conversion engine needs two kinds of external input — image
bytes for ``![[...]]`` embeds and HTML pages for citation titles — but
must not know where they come from. This module encapsulates both behind
one client class so the assembler, the CLI, and tests can swap in any
object with the same two coroutines.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. ResourceLoader is an
async context manager — enter it to open the connection pool, exit to
close it. Local files are read in a worker thread so a slow disk never
blocks the event loop. Remote image targets (http/https) are downloaded
through the same HTTP client.

RULES:
- Always use the async context manager (async with ResourceLoader(...) as loader:)
- read_binary raises ResourceNotFoundError for anything unreadable
- fetch raises NetworkError only for transport failures; HTTP error
  statuses are returned to the caller in FetchResult.status
- Relative paths resolve against base_dir (default: current directory)
- Timeouts come from FETCH_TIMEOUT_S; the core never adds its own
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from docx_export.config import FETCH_TIMEOUT_S, USER_AGENT
from docx_export.errors import NetworkError, ResourceNotFoundError

logger = logging.getLogger(__name__)

_REMOTE_SCHEMES = ("http://", "https://")


@dataclass(frozen=True)
class FetchResult:
    """Status code and decoded body of a fetched URL."""

    status: int
    body: str


class ResourceLoader:
    """Async loader for local/remote binaries and web pages.

    RULES:
    - Use as: async with ResourceLoader(base_dir) as loader: ...
    - transport is for tests (httpx.MockTransport); None uses the network
    """

    def __init__(
        self,
        base_dir: Optional[Path] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self._timeout = timeout if timeout is not None else FETCH_TIMEOUT_S
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ResourceLoader:
        self._client = httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=httpx.Timeout(self._timeout),
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "ResourceLoader must be used as an async context manager: "
                "async with ResourceLoader() as loader: ..."
            )
        return self._client

    def resolve_path(self, path: str) -> Path:
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self._base_dir / candidate
        return candidate

    async def read_binary(self, path: str) -> bytes:
        """Read an image (or any binary) from disk or an http(s) URL.

        Args:
            path: Local path (relative to base_dir) or remote URL.

        Returns:
            The raw bytes.

        Raises:
            ResourceNotFoundError: the resource is missing or unreadable.
        """
        if path.startswith(_REMOTE_SCHEMES):
            return await self._download(path)

        file_path = self.resolve_path(path)
        if not file_path.is_file():
            raise ResourceNotFoundError(path)
        try:
            return await asyncio.to_thread(file_path.read_bytes)
        except OSError as e:
            raise ResourceNotFoundError(path, str(e)) from e

    async def _download(self, url: str) -> bytes:
        client = self._ensure_client()
        try:
            resp = await client.get(url)
        except httpx.HTTPError as e:
            raise ResourceNotFoundError(url, str(e)) from e
        if resp.status_code != 200:
            raise ResourceNotFoundError(url, "HTTP {}".format(resp.status_code))
        return resp.content

    async def fetch(self, url: str) -> FetchResult:
        """Fetch a web page for citation title lookup.

        Raises:
            NetworkError: DNS, connection, TLS, or timeout failure.
        """
        client = self._ensure_client()
        logger.debug("Fetching %s", url)
        try:
            resp = await client.get(url)
        except httpx.HTTPError as e:
            raise NetworkError(url, str(e) or type(e).__name__) from e
        return FetchResult(status=resp.status_code, body=resp.text)
