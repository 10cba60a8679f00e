import logging

from fastapi import APIRouter, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.models.request import ScrapeRequest
from app.models.response import ScrapeResponse
from app.services.errors import EnginesExhaustedError, SchemaValidationError, ScrapeTimeoutError
from app.services.pipeline import scrape_page

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()


@router.post(
    "/scrape",
    response_model=ScrapeResponse,
    response_model_exclude_none=True,
    summary="Scrape a web page into the requested formats",
    description=(
        "Fetches *url* through a fallback chain of retrieval engines (plain HTTP, "
        "then headless browser), converts the page once, and returns every "
        "requested format from that single conversion.\n\n"
        "Extraction schemas are validated before anything is fetched: schemas "
        "declaring `additionalProperties` are rejected with 400."
    ),
)
@limiter.limit("10/minute")
async def scrape(request: Request, body: ScrapeRequest) -> ScrapeResponse:
    """Scrape *url* and return the requested formats."""
    url = str(body.url)
    logger.info(
        "Scrape request received",
        extra={
            "url": url,
            "formats": [f.type for f in body.formats],
            "render_mode": body.render_mode,
        },
    )

    try:
        data = await scrape_page(
            url,
            body.formats,
            only_main_content=body.only_main_content,
            render_mode=body.render_mode,
            timeout_ms=body.timeout,
            wait_for_ms=body.wait_for,
        )
    except SchemaValidationError as exc:
        logger.warning("Rejected extraction schema for %s – %s", url, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except ValueError as exc:
        logger.warning("Invalid or blocked URL: %s – %s", url, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except ScrapeTimeoutError as exc:
        raise HTTPException(status_code=408, detail=str(exc))
    except EnginesExhaustedError as exc:
        logger.error("All engines failed for %s: %s", url, exc.reason)
        raise HTTPException(status_code=502, detail=f"All engines failed: {exc.reason}")

    return ScrapeResponse(data=data)
