from __future__ import annotations

import asyncio

import httpx
import pytest

from src.aspect_service.exceptions import DownloadError, DownloadTimeoutError, SizeLimitError
from src.aspect_service.media.downloader import HttpImageDownloader

URL = "https://img.test/picture.jpg"


def _downloader(handler, *, max_bytes: int = 1024) -> HttpImageDownloader:
    return HttpImageDownloader(
        max_bytes=max_bytes,
        chunk_size=16,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_returns_body_and_sends_accept_header():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"\xff\xd8image-bytes")

    data = await _downloader(handler).get(URL, 1000)

    assert data == b"\xff\xd8image-bytes"
    assert seen[0].headers["accept"] == "image/*"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_non_success_status_is_a_download_error():
    downloader = _downloader(lambda request: httpx.Response(404))

    with pytest.raises(DownloadError) as excinfo:
        await downloader.get(URL, 1000)

    assert not isinstance(excinfo.value, DownloadTimeoutError)
    assert excinfo.value.message == "HTTP 404: Not Found"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_transport_errors_are_download_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DownloadError):
        await _downloader(handler).get(URL, 1000)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_oversized_body_is_a_size_limit_error():
    downloader = _downloader(lambda request: httpx.Response(200, content=b"x" * 100), max_bytes=64)

    with pytest.raises(SizeLimitError):
        await downloader.get(URL, 1000)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_deadline_is_a_download_timeout():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, content=b"late")

    with pytest.raises(DownloadTimeoutError) as excinfo:
        await _downloader(handler).get(URL, 50)

    assert excinfo.value.message == "Download timed out after 50 ms"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_transport_timeout_is_a_download_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(DownloadTimeoutError):
        await _downloader(handler).get(URL, 1000)
