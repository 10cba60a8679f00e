"""Map orchestration: discovery under a deadline, limits and the narrow-scope warning."""

import asyncio
import logging
from typing import List, NamedTuple, Optional
from urllib.parse import urlparse

from app.services.discovery import LinkRecord, SitemapMode, discover_links
from app.services.errors import MapTimeoutError
from app.services.fetcher import resolve_final_url
from app.services.urls import is_base_domain, registrable_domain

logger = logging.getLogger(__name__)

DEFAULT_MAP_TIMEOUT_MS = 60_000
DEFAULT_MAP_LIMIT = 5000
MAP_TIMEOUT_MESSAGE = "Map timed out"

# Results at or below this count on a non-root URL trigger the warning
_WARN_AT_OR_BELOW = 1


class MapResult(NamedTuple):
    links: List[LinkRecord]
    warning: Optional[str]
    final_url: str


def build_warning(url: str, result_count: int) -> Optional[str]:
    """Return a hint to map the base domain when a sub-path mapped to almost nothing."""
    if result_count > _WARN_AT_OR_BELOW or is_base_domain(url):
        return None
    host = urlparse(url).hostname or url
    return (
        f"Only {result_count} result(s) found for {host}. "
        f"For broader coverage, try mapping the base domain: {registrable_domain(url) or host}"
    )


def _filter_search(links: List[LinkRecord], search: str) -> List[LinkRecord]:
    term = search.lower()
    return [link for link in links if term in link.url.lower()]


async def _map(
    url: str,
    *,
    limit: int,
    sitemap_mode: SitemapMode,
    ignore_query_parameters: bool,
    include_subdomains: bool,
    search: Optional[str],
) -> MapResult:
    final_url = await resolve_final_url(url)
    if final_url != url:
        logger.info("Map: %s redirected to %s", url, final_url)

    links = await discover_links(
        final_url,
        sitemap_mode=sitemap_mode,
        ignore_query_parameters=ignore_query_parameters,
        include_subdomains=include_subdomains,
    )
    if search:
        links = _filter_search(links, search)
    links = links[:limit]

    return MapResult(links=links, warning=build_warning(final_url, len(links)), final_url=final_url)


async def map_site(
    url: str,
    *,
    limit: int = DEFAULT_MAP_LIMIT,
    timeout_ms: Optional[int] = None,
    sitemap_mode: SitemapMode = "default",
    ignore_query_parameters: bool = True,
    include_subdomains: bool = True,
    search: Optional[str] = None,
) -> MapResult:
    """Discover the links of *url*'s site within *timeout_ms*.

    Redirects are resolved first, so scoping and the root-domain check use the
    site the request actually lands on.  An empty result is a valid answer;
    running out of time raises :class:`MapTimeoutError` instead, and whatever
    discovery was still in flight is cancelled.
    """
    timeout_ms = timeout_ms or DEFAULT_MAP_TIMEOUT_MS
    try:
        return await asyncio.wait_for(
            _map(
                url,
                limit=limit,
                sitemap_mode=sitemap_mode,
                ignore_query_parameters=ignore_query_parameters,
                include_subdomains=include_subdomains,
                search=search,
            ),
            timeout=timeout_ms / 1000,
        )
    except asyncio.TimeoutError:
        logger.warning("Map of %s exceeded %d ms", url, timeout_ms)
        raise MapTimeoutError(MAP_TIMEOUT_MESSAGE) from None
