"""Tests for the generic OpenGraph preview fallback."""

from __future__ import annotations

from textwrap import dedent

import httpx
import pytest

from tmdbref.services.link_preview import LinkPreviewClient

PAGE = dedent(
    """
    <html>
      <head>
        <title>Ignored page title</title>
        <meta property="og:title" content="Jim Carrey" />
        <meta property="og:description" content="Actor and comedian." />
        <meta property="og:image" content="/t/p/w500/profile.jpg" />
      </head>
      <body></body>
    </html>
    """
)


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


def build_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.anyio("asyncio")
async def test_resolve_reference_reads_opengraph_tags() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=PAGE, headers={"content-type": "text/html; charset=utf-8"})

    url = "https://www.themoviedb.org/person/206-jim-carrey"
    async with build_client(handler) as http_client:
        preview = await LinkPreviewClient(http_client).resolve_reference(url)

    assert preview is not None
    assert preview.title == "Jim Carrey"
    assert preview.description == "Actor and comedian."
    assert preview.image_url == "https://www.themoviedb.org/t/p/w500/profile.jpg"
    assert preview.catalog_url == url


@pytest.mark.anyio("asyncio")
async def test_resolve_reference_falls_back_to_title_tag() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            text="<html><head><title>  Plain\n page </title></head></html>",
            headers={"content-type": "text/html"},
        )

    async with build_client(handler) as http_client:
        preview = await LinkPreviewClient(http_client).resolve_reference("https://example.com/")

    assert preview is not None
    assert preview.title == "Plain page"
    assert preview.description == ""
    assert preview.image_url == ""


@pytest.mark.parametrize(
    ("status", "content_type", "body"),
    [
        (404, "text/html", "<title>Not found</title>"),
        (200, "application/json", "{}"),
        (200, "text/html", "<html><body>No metadata</body></html>"),
    ],
)
@pytest.mark.anyio("asyncio")
async def test_resolve_reference_returns_none_without_usable_page(
    status: int, content_type: str, body: str
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text=body, headers={"content-type": content_type})

    async with build_client(handler) as http_client:
        preview = await LinkPreviewClient(http_client).resolve_reference("https://example.com/page")

    assert preview is None


@pytest.mark.anyio("asyncio")
async def test_resolve_reference_ignores_non_urls() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not run
        raise AssertionError("no request expected")

    async with build_client(handler) as http_client:
        client = LinkPreviewClient(http_client)
        assert await client.resolve_reference("themoviedb.org/tv/1") is None
        assert await client.resolve_reference("just some words") is None


@pytest.mark.anyio("asyncio")
async def test_resolve_reference_handles_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    async with build_client(handler) as http_client:
        preview = await LinkPreviewClient(http_client).resolve_reference("https://example.com/")

    assert preview is None
