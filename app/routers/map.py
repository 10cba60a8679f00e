import logging

from fastapi import APIRouter, HTTPException, Request

from app.models.map_request import MapRequest
from app.models.map_response import MapLink, MapResponse
from app.routers.scrape import limiter
from app.services.errors import MapTimeoutError
from app.services.mapper import map_site

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/map",
    response_model=MapResponse,
    response_model_exclude_none=True,
    summary="Discover the URLs of a site",
    description=(
        "Merges the site's sitemap with the link index (pages seen by earlier "
        "scrapes, or a shallow harvest) and returns deduplicated links, "
        "sitemap-sourced first.\n\n"
        "An empty list is a valid answer.  When `timeout` (ms) expires first the "
        "response is 408 with `\"Map timed out\"`."
    ),
)
@limiter.limit("20/minute")
async def map_endpoint(request: Request, body: MapRequest) -> MapResponse:
    """Map the links of *url*'s site."""
    url = str(body.url)
    logger.info(
        "Map request received",
        extra={"url": url, "sitemap": body.sitemap, "limit": body.limit, "timeout": body.timeout},
    )

    try:
        result = await map_site(
            url,
            limit=body.limit,
            timeout_ms=body.timeout,
            sitemap_mode=body.sitemap,
            ignore_query_parameters=body.ignore_query_parameters,
            include_subdomains=body.include_subdomains,
            search=body.search,
        )
    except MapTimeoutError as exc:
        raise HTTPException(status_code=408, detail=str(exc))

    return MapResponse(
        links=[MapLink(url=link.url, source=link.source) for link in result.links],
        warning=result.warning,
    )
