"""Scrape pipeline: engine fallback chain → one transform → per-format rendering."""

import asyncio
import logging
import time
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

from app.models.request import ScreenshotFormat
from app.models.response import PageMetadata, ScrapeData
from app.services.change_tracking import track_changes
from app.services.detector import detect_platform
from app.services.engines import Engine, EngineResult, RenderMode, build_engine_chain
from app.services.errors import (
    EngineFailure,
    EnginesExhaustedError,
    ExtractionError,
    ScrapeTimeoutError,
)
from app.services.extractor import extract_links, extract_metadata
from app.services.link_index import link_index
from app.services.llm_extractor import extract_structured
from app.services.schema_gate import validate_format_schemas
from app.services.transformer import TransformResult, transform_content

logger = logging.getLogger(__name__)

DEFAULT_SCRAPE_TIMEOUT_MS = 30_000
SCRAPE_TIMEOUT_MESSAGE = "Scrape timed out"


class EngineAttempt(NamedTuple):
    engine: str
    position: int
    result: Optional[EngineResult]
    error: Optional[str]
    elapsed_ms: float

    @property
    def succeeded(self) -> bool:
        return self.result is not None


async def run_engine_chain(
    url: str,
    engines: Sequence[Engine],
    *,
    screenshot: bool = False,
    full_page: bool = False,
) -> Tuple[EngineResult, List[EngineAttempt]]:
    """Try *engines* one after another until one returns the page.

    Each attempt is bounded by its engine's own timeout, and the next engine
    only starts once the previous one has definitively failed.  ``ValueError``
    (blocked / malformed URL) is not retried.

    Raises:
        EnginesExhaustedError: every engine failed; ``reason`` is the last
            engine's failure.
    """
    attempts: List[EngineAttempt] = []

    for position, engine in enumerate(engines):
        started = time.monotonic()
        try:
            result = await asyncio.wait_for(
                engine.fetch(url, screenshot=screenshot, full_page=full_page),
                timeout=engine.timeout,
            )
        except asyncio.TimeoutError:
            error = f"Engine '{engine.name}' timed out after {engine.timeout}s."
        except EngineFailure as exc:
            error = str(exc)
        else:
            attempts.append(
                EngineAttempt(engine.name, position, result, None, (time.monotonic() - started) * 1000)
            )
            return result, attempts

        attempts.append(
            EngineAttempt(engine.name, position, None, error, (time.monotonic() - started) * 1000)
        )
        logger.warning("Engine '%s' failed for %s – %s", engine.name, url, error)

    reason = attempts[-1].error if attempts else "No engine available for this request."
    raise EnginesExhaustedError(reason, attempts)


async def _extract_format(fmt: Any, content: TransformResult) -> Any:
    return await extract_structured(content.transformed_html, schema=fmt.json_schema, prompt=fmt.prompt)


async def _render_formats(
    formats: Sequence[Any],
    url: str,
    engine_result: EngineResult,
    content: TransformResult,
    data: ScrapeData,
) -> None:
    """Fill *data* with one payload per requested format from the shared *content*."""
    deferred = []
    for fmt in formats:
        if fmt.type == "markdown":
            data.markdown = content.markdown
        elif fmt.type == "html":
            data.html = content.transformed_html
        elif fmt.type == "rawHtml":
            data.raw_html = engine_result.html
        elif fmt.type == "links":
            data.links = extract_links(engine_result.html, engine_result.final_url)
        elif fmt.type == "screenshot":
            data.screenshot = engine_result.screenshot
        elif fmt.type in ("extract", "json"):
            deferred.append((fmt, _extract_format(fmt, content)))
        elif fmt.type == "changeTracking":
            deferred.append((fmt, track_changes(url, content, fmt)))

    if not deferred:
        return

    results = await asyncio.gather(*(call for _, call in deferred), return_exceptions=True)
    errors = {}
    for (fmt, _), result in zip(deferred, results):
        if isinstance(result, ExtractionError):
            logger.warning("Format '%s' failed for %s – %s", fmt.type, url, result)
            errors[fmt.type] = str(result)
        elif isinstance(result, BaseException):
            raise result
        elif fmt.type == "extract":
            data.extract = result
        elif fmt.type == "json":
            data.json_data = result
        else:
            data.change_tracking = result
    if errors:
        data.format_errors = errors


async def _scrape(
    url: str,
    formats: Sequence[Any],
    only_main_content: bool,
    render_mode: RenderMode,
    wait_for_ms: int,
) -> ScrapeData:
    screenshot_fmt = next((f for f in formats if isinstance(f, ScreenshotFormat)), None)
    engines = build_engine_chain(
        render_mode,
        screenshot=screenshot_fmt is not None,
        wait_ms=wait_for_ms,
        only_main_content=only_main_content,
    )

    engine_result, attempts = await run_engine_chain(
        url,
        engines,
        screenshot=screenshot_fmt is not None,
        full_page=bool(screenshot_fmt and screenshot_fmt.full_page),
    )

    content = engine_result.content
    if content is None:
        content = transform_content(engine_result.html, engine_result.final_url, only_main_content)
    link_index.record(engine_result.final_url, extract_links(engine_result.html, engine_result.final_url))

    title, description = extract_metadata(engine_result.html)
    data = ScrapeData(
        metadata=PageMetadata(
            title=title,
            description=description,
            source_url=url,
            url=engine_result.final_url,
            status_code=engine_result.status_code,
            engine=attempts[-1].engine,
            engines_attempted=[attempt.engine for attempt in attempts],
            platform_type=detect_platform(engine_result.html, len(content.markdown.split())),
            used_only_main_content=content.used_only_main_content,
        )
    )
    await _render_formats(formats, engine_result.final_url, engine_result, content, data)
    return data


async def scrape_page(
    url: str,
    formats: Sequence[Any],
    *,
    only_main_content: bool = True,
    render_mode: RenderMode = "auto",
    timeout_ms: int = DEFAULT_SCRAPE_TIMEOUT_MS,
    wait_for_ms: int = 0,
) -> ScrapeData:
    """Scrape *url* and render every requested format.

    Schemas are gated before any engine runs, so a rejected schema costs no
    fetch.  The whole scrape runs under *timeout_ms*; when it expires the
    active engine attempt is cancelled.

    Raises:
        SchemaValidationError: a format's schema is not accepted.
        ValueError: the target URL is blocked or malformed.
        EnginesExhaustedError: no engine could fetch the page.
        ScrapeTimeoutError: the deadline expired.
    """
    validate_format_schemas(formats)

    try:
        return await asyncio.wait_for(
            _scrape(url, formats, only_main_content, render_mode, wait_for_ms),
            timeout=timeout_ms / 1000,
        )
    except asyncio.TimeoutError:
        logger.warning("Scrape of %s exceeded %d ms", url, timeout_ms)
        raise ScrapeTimeoutError(SCRAPE_TIMEOUT_MESSAGE) from None
