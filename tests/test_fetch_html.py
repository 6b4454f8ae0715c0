from __future__ import annotations

import httpx
import pytest

import tools.fetch_html as fetcher
from tools.check_html import check_html
from tools.fetch_html import FetchError, fetch_html


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_fetch_returns_body():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["User-Agent"] == fetcher.USER_AGENT
        return httpx.Response(200, text="<h1>ok</h1>")

    async with _client(handler) as client:
        html = await fetch_html("https://example.com/", client=client, retry_delay=0)

    assert html == b"<h1>ok</h1>"


@pytest.mark.asyncio
async def test_fetch_retries_once_then_succeeds():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        if len(calls) == 1:
            raise httpx.ConnectError("boom", request=request)
        return httpx.Response(200, text="<p>second time</p>")

    async with _client(handler) as client:
        html = await fetch_html("https://example.com/", client=client, retries=1, retry_delay=0)

    assert html == b"<p>second time</p>"
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_fetch_gives_up_after_bounded_attempts():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        return httpx.Response(503, text="busy")

    async with _client(handler) as client:
        with pytest.raises(FetchError) as excinfo:
            await fetch_html("https://example.com/", client=client, retries=2, retry_delay=0)

    assert len(calls) == 3
    assert excinfo.value.attempts == 3
    assert excinfo.value.url == "https://example.com/"
    assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)


@pytest.mark.asyncio
async def test_fetch_waits_between_attempts(monkeypatch: pytest.MonkeyPatch):
    delays = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr(fetcher.asyncio, "sleep", fake_sleep)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    async with _client(handler) as client:
        with pytest.raises(FetchError):
            await fetch_html("https://example.com/", client=client, retries=1, retry_delay=5.0)

    assert delays == [5.0]


@pytest.mark.asyncio
async def test_render_uses_browser(monkeypatch: pytest.MonkeyPatch):
    async def fake_browser(url: str, timeout: float) -> str:
        return f"<html><body data-url='{url}'></body></html>"

    monkeypatch.setattr(fetcher, "_get_with_browser", fake_browser)

    html = await fetch_html("https://example.com/app", render=True, retry_delay=0)
    assert "https://example.com/app" in html


@pytest.mark.asyncio
async def test_negative_retries_rejected():
    with pytest.raises(ValueError):
        await fetch_html("https://example.com/", retries=-1)


@pytest.mark.asyncio
async def test_malformed_url_fails_without_retrying(monkeypatch: pytest.MonkeyPatch):
    delays = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr(fetcher.asyncio, "sleep", fake_sleep)

    with pytest.raises(FetchError) as excinfo:
        await fetch_html("http://[::1", retries=3, retry_delay=1.0)

    assert excinfo.value.attempts == 1
    assert isinstance(excinfo.value.__cause__, httpx.InvalidURL)
    assert delays == []


@pytest.mark.asyncio
async def test_body_decoded_from_meta_charset():
    page = '<html><head><meta charset="windows-1252"></head><body><p title="café">x</p></body></html>'

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=page.encode("cp1252"), headers={"Content-Type": "text/html"})

    async with _client(handler) as client:
        body = await fetch_html("https://example.com/", client=client, retry_delay=0)

    assert isinstance(body, bytes)
    assert check_html(body, ['p[title="café"]']) == {'p[title="café"]': True}
