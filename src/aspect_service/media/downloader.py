"""Source image download over HTTP."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from ..exceptions import DownloadError, DownloadTimeoutError, SizeLimitError

logger = logging.getLogger(__name__)


class ImageDownloader(Protocol):
    async def get(self, url: str, timeout_ms: int) -> bytes: ...


@dataclass(slots=True)
class HttpImageDownloader:
    """Fetch image bytes with an overall deadline and a size cap."""

    max_bytes: int
    chunk_size: int = 64 * 1024
    transport: httpx.AsyncBaseTransport | None = None
    log: logging.Logger = field(default_factory=lambda: logger)

    async def get(self, url: str, timeout_ms: int) -> bytes:
        timeout_seconds = timeout_ms / 1000
        self.log.info("download.start", extra={"url": url, "timeout_ms": timeout_ms})
        try:
            data = await asyncio.wait_for(self._fetch(url, timeout_seconds), timeout=timeout_seconds)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            self.log.warning("download.timeout", extra={"url": url, "timeout_ms": timeout_ms})
            raise DownloadTimeoutError(f"Download timed out after {timeout_ms} ms") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self.log.warning("download.failed", extra={"url": url, "error": str(exc)})
            raise DownloadError(f"Download failed: {exc}") from exc
        self.log.info("download.done", extra={"url": url, "size_bytes": len(data)})
        return data

    async def _fetch(self, url: str, timeout_seconds: float) -> bytes:
        async with httpx.AsyncClient(
            timeout=timeout_seconds,
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            async with client.stream("GET", url, headers={"Accept": "image/*"}) as response:
                if not response.is_success:
                    raise DownloadError(f"HTTP {response.status_code}: {response.reason_phrase}")
                chunks: list[bytes] = []
                size = 0
                async for chunk in response.aiter_bytes(self.chunk_size):
                    size += len(chunk)
                    if size > self.max_bytes:
                        raise SizeLimitError(
                            f"Image is too large: more than {self.max_bytes} bytes"
                        )
                    chunks.append(chunk)
                return b"".join(chunks)
