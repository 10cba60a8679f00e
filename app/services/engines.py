"""Retrieval engines used by the scrape fallback chain.

Each engine wraps one fetcher and normalises its library-specific errors into
:class:`~app.services.errors.EngineFailure` so the chain can move on.
``ValueError`` (blocked or malformed target URL) propagates unchanged as a
caller error.
"""

import logging
from typing import List, Literal, NamedTuple, Optional

import httpx
from playwright.async_api import Error as PlaywrightError

from app.services.browser_fetcher import fetch_url_with_browser
from app.services.detector import has_spa_markers, is_spa_shell
from app.services.errors import EngineFailure
from app.services.fetcher import fetch_url
from app.services.transformer import TransformResult, transform_content

logger = logging.getLogger(__name__)

RenderMode = Literal["auto", "http", "browser"]

# Per-attempt budgets (seconds), separate from the request-level deadline
HTTP_ENGINE_TIMEOUT = 15
BROWSER_ENGINE_TIMEOUT = 45


class EngineResult(NamedTuple):
    html: str
    status_code: int
    final_url: str
    screenshot: Optional[str] = None
    # Set when the engine already transformed the page; the pipeline reuses it
    content: Optional[TransformResult] = None


class Engine:
    name = "engine"
    timeout: float = HTTP_ENGINE_TIMEOUT
    supports_screenshot = False

    async def fetch(self, url: str, *, screenshot: bool = False, full_page: bool = False) -> EngineResult:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class HttpEngine(Engine):
    """Plain HTTP GET via httpx.

    With *reject_spa_shells* the engine fails on pages that only contain a
    client-side app mount point, leaving them to a rendering engine.  Only
    pages carrying SPA markers are transformed for the check, and that
    transform is handed on with the result.
    """

    name = "http"
    timeout = HTTP_ENGINE_TIMEOUT

    def __init__(self, reject_spa_shells: bool = False, only_main_content: bool = True):
        self.reject_spa_shells = reject_spa_shells
        self.only_main_content = only_main_content

    async def fetch(self, url: str, *, screenshot: bool = False, full_page: bool = False) -> EngineResult:
        try:
            result = await fetch_url(url)
        except httpx.TimeoutException as exc:
            raise EngineFailure("The target URL timed out.") from exc
        except httpx.HTTPStatusError as exc:
            raise EngineFailure(
                f"Target URL returned HTTP {exc.response.status_code}."
            ) from exc
        except (httpx.RequestError, RuntimeError) as exc:
            raise EngineFailure(str(exc) or type(exc).__name__) from exc

        content = None
        if self.reject_spa_shells and has_spa_markers(result.html):
            content = transform_content(result.html, result.final_url, self.only_main_content)
            if is_spa_shell(result.html, len(content.markdown.split())):
                logger.info("SPA shell detected for %s – deferring to a rendering engine", url)
                raise EngineFailure("Page is a JavaScript application shell; rendering required.")

        return EngineResult(
            html=result.html,
            status_code=result.status_code,
            final_url=result.final_url,
            content=content,
        )


class BrowserEngine(Engine):
    """Headless Chromium via Playwright."""

    name = "browser"
    timeout = BROWSER_ENGINE_TIMEOUT
    supports_screenshot = True

    def __init__(self, wait_ms: int = 0):
        self.wait_ms = wait_ms
        # The post-load wait happens inside the attempt, on top of navigation
        self.timeout = BROWSER_ENGINE_TIMEOUT + wait_ms / 1000

    async def fetch(self, url: str, *, screenshot: bool = False, full_page: bool = False) -> EngineResult:
        try:
            page = await fetch_url_with_browser(
                url, wait_ms=self.wait_ms, screenshot=screenshot, full_page=full_page
            )
        except (RuntimeError, PlaywrightError) as exc:
            raise EngineFailure(f"Browser rendering failed: {exc}") from exc

        return EngineResult(
            html=page.html,
            status_code=page.status_code,
            final_url=page.final_url,
            screenshot=page.screenshot,
        )


def build_engine_chain(
    render_mode: RenderMode = "auto",
    *,
    screenshot: bool = False,
    wait_ms: int = 0,
    only_main_content: bool = True,
) -> List[Engine]:
    """Return the engines to try for *render_mode*, cheapest first.

    *wait_ms* only applies to rendering engines; plain HTTP has nothing to wait for.
    """
    if render_mode == "http":
        engines: List[Engine] = [HttpEngine()]
    elif render_mode == "browser":
        engines = [BrowserEngine(wait_ms)]
    else:
        engines = [
            HttpEngine(reject_spa_shells=True, only_main_content=only_main_content),
            BrowserEngine(wait_ms),
        ]

    if screenshot:
        engines = [engine for engine in engines if engine.supports_screenshot]
    return engines
