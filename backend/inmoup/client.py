import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from playwright.async_api import Page, async_playwright

HTTP_DEBUG = os.getenv("HTTP_DEBUG", "").lower() in {"1", "true", "yes"}

HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept-Language": "es-AR,es;q=0.9,en-US;q=0.8,en;q=0.7",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Cache-Control": "no-cache",
}


def new_client(timeout: float = 60.0) -> httpx.AsyncClient:
    """
    AsyncClient for the HTTP fetch mode: browser-like headers, a small pool and
    transport-level retries for transient connection errors.
    """
    if HTTP_DEBUG:
        logging.getLogger("httpx").setLevel(logging.DEBUG)

    limits = httpx.Limits(max_keepalive_connections=5, max_connections=10)
    transport = httpx.AsyncHTTPTransport(retries=2)
    return httpx.AsyncClient(
        timeout=timeout,
        headers=HEADERS,
        follow_redirects=True,
        limits=limits,
        transport=transport,
    )


@asynccontextmanager
async def open_page(headless: bool = True) -> AsyncIterator[Page]:
    """
    Launch chromium, yield a fresh page, and always close the browser and stop
    the Playwright driver on the way out.
    """
    async with async_playwright() as p:
        browser = await p.chromium.launch(
            headless=headless,
            ignore_default_args=["--disable-extensions"],
        )
        try:
            context = await browser.new_context(user_agent=HEADERS["User-Agent"])
            page = await context.new_page()
            yield page
        finally:
            await browser.close()
