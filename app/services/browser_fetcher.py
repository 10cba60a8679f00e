"""Playwright-based fetcher for JavaScript-rendered (dynamic) web pages."""

import base64
from typing import NamedTuple, Optional

from playwright.async_api import async_playwright

from app.services.fetcher import validate_url

MAX_CONTENT_SIZE = 10 * 1024 * 1024  # 10 MB
TIMEOUT_MS = 30_000  # 30 s in milliseconds


class BrowserPage(NamedTuple):
    html: str
    status_code: int
    final_url: str
    screenshot: Optional[str] = None  # base64-encoded PNG


async def fetch_url_with_browser(
    url: str,
    *,
    wait_ms: int = 0,
    screenshot: bool = False,
    full_page: bool = False,
    timeout_ms: int = TIMEOUT_MS,
) -> BrowserPage:
    """Render *url* with a headless Chromium browser.

    Args:
        url: The target URL (must be http/https and public).
        wait_ms: Extra milliseconds to wait after the page loads (0 = no extra wait).
        screenshot: Also capture a PNG screenshot of the rendered page.
        full_page: Capture the full scrollable page instead of the viewport.
        timeout_ms: Navigation timeout.

    Raises:
        ValueError: if the URL fails SSRF / scheme validation.
        RuntimeError: if the rendered HTML exceeds MAX_CONTENT_SIZE.
        playwright.async_api.Error: on browser/network errors.
    """
    await validate_url(url)

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(
            headless=True,
            args=[
                # --no-sandbox is required when running as root inside a container
                # (Docker drops the user namespace needed by Chromium's sandbox).
                "--no-sandbox",
                "--disable-dev-shm-usage",
                "--disable-gpu",
            ],
        )
        context = await browser.new_context()
        page = await context.new_page()
        try:
            response = await page.goto(url, wait_until="networkidle", timeout=timeout_ms)

            if wait_ms > 0:
                await page.wait_for_timeout(wait_ms)

            html = await page.content()
            final_url = page.url
            # Pages served from cache or about:blank have no response object
            status_code = response.status if response is not None else 200

            image = None
            if screenshot:
                png = await page.screenshot(full_page=full_page, type="png")
                image = base64.b64encode(png).decode("ascii")
        finally:
            await context.close()
            await browser.close()

    if len(html.encode()) > MAX_CONTENT_SIZE:
        raise RuntimeError("Rendered HTML exceeds the maximum allowed size.")

    # Redirects inside the browser are not pre-validated; check where we ended up
    await validate_url(final_url)

    return BrowserPage(html=html, status_code=status_code, final_url=final_url, screenshot=image)
