"""Playwright lifetime management for the homepage document."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import async_playwright

from funnelscout.services.document import BrowserDocument
from funnelscout.services.fetcher import ensure_public_url

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1440, "height": 900}
SETTLE_MS = 1_200  # late client-side rendering after network idle


@asynccontextmanager
async def open_document(url: str, timeout: float = 60) -> AsyncIterator[BrowserDocument]:
    """Load *url* in a headless Chromium page and yield it as a :class:`BrowserDocument`.

    The browser context is owned exclusively by the caller for the lifetime of
    the ``async with`` block and is always closed on exit.

    Raises:
        ValueError: if the URL fails SSRF / scheme validation.
        playwright.async_api.TimeoutError: if navigation exceeds *timeout* seconds.
        playwright.async_api.Error: on DNS, TLS or other browser errors.
    """
    ensure_public_url(url)

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(
            headless=True,
            args=[
                # Chromium's sandbox needs a user namespace that containers drop
                "--no-sandbox",
                "--disable-dev-shm-usage",
                "--disable-gpu",
            ],
        )
        context = await browser.new_context(viewport=VIEWPORT)
        try:
            page = await context.new_page()
            await page.goto(url, wait_until="networkidle", timeout=timeout * 1000)
            await page.wait_for_timeout(SETTLE_MS)
            logger.info("Loaded homepage %s", url)
            yield BrowserDocument(page)
        finally:
            await context.close()
            await browser.close()
