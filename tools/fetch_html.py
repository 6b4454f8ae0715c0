# tools/fetch_html.py
# Fetch a page body for checking: plain HTTP by default, headless Chromium on request.

from __future__ import annotations

import os
import time
import asyncio
import logging
from typing import Optional, Union

import httpx
from playwright.async_api import Error as PlaywrightError, async_playwright

FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "20.0"))
FETCH_RETRIES = int(os.getenv("FETCH_RETRIES", "1"))
FETCH_RETRY_DELAY = float(os.getenv("FETCH_RETRY_DELAY", "5.0"))

USER_AGENT = "Mozilla/5.0"


class FetchError(Exception):
    def __init__(self, url: str, attempts: int, cause: Optional[BaseException] = None):
        self.url = url
        self.attempts = attempts
        msg = f"Could not fetch {url} after {attempts} attempt(s)"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)


async def _get_with_httpx(url: str, timeout: float, client: Optional[httpx.AsyncClient]) -> bytes:
    if client is not None:
        r = await client.get(url, headers={"User-Agent": USER_AGENT})
        r.raise_for_status()
        return r.content

    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own:
        r = await own.get(url, headers={"User-Agent": USER_AGENT})
        r.raise_for_status()
        return r.content


async def _get_with_browser(url: str, timeout: float) -> str:
    launch_args = ["--no-sandbox", "--disable-setuid-sandbox"]
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True, args=launch_args)
        page = await browser.new_page(user_agent=USER_AGENT)
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout * 1000)
            return await page.content()
        finally:
            await browser.close()


async def fetch_html(
    url: str,
    *,
    retries: int = FETCH_RETRIES,
    retry_delay: float = FETCH_RETRY_DELAY,
    timeout: float = FETCH_TIMEOUT,
    render: bool = False,
    client: Optional[httpx.AsyncClient] = None,
) -> Union[str, bytes]:
    """
    Return the body of `url`, trying at most `retries + 1` times.
    The httpx path returns raw bytes so BeautifulSoup picks the encoding from
    <meta charset>, the same as for a local file; the browser path returns text.
    Non-2xx responses count as failures. Raises FetchError once attempts run out.
    A malformed URL fails at once, without retrying.
    """
    if retries < 0:
        raise ValueError("retries must be >= 0")

    engine = "playwright" if render else "httpx"
    attempts = retries + 1
    last_error: Optional[BaseException] = None

    for attempt in range(1, attempts + 1):
        t0 = time.time()
        try:
            if render:
                html = await _get_with_browser(url, timeout)
            else:
                html = await _get_with_httpx(url, timeout, client)
            logging.info(f"🌐 Fetched {url} via {engine} in {time.time() - t0:.2f}s (size={len(html)})")
            return html
        except httpx.InvalidURL as e:
            logging.error(f"❌ Invalid URL {url!r}: {e}")
            raise FetchError(url, attempt, e) from e
        except (httpx.HTTPError, PlaywrightError) as e:
            last_error = e
            logging.warning(f"⚠️ Fetch attempt {attempt}/{attempts} for {url} failed: {e}")
            if attempt < attempts:
                logging.info(f"🔁 Retrying in {retry_delay:.1f}s")
                await asyncio.sleep(retry_delay)

    raise FetchError(url, attempts, last_error) from last_error
