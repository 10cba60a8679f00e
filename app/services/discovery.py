"""Link discovery: merges the sitemap and link-index sources under caller policy."""

import asyncio
import logging
from typing import Dict, List, Literal, NamedTuple

from app.services.link_index import query_link_index
from app.services.sitemap import discover_urls_via_sitemap
from app.services.urls import dedup_key, in_scope, strip_fragment, strip_query

logger = logging.getLogger(__name__)

SitemapMode = Literal["default", "only", "skip"]
LinkSource = Literal["sitemap", "index"]


class LinkRecord(NamedTuple):
    url: str
    source: LinkSource


async def _query_sources(url: str, sitemap_mode: SitemapMode, include_subdomains: bool):
    """Run the sources *sitemap_mode* allows concurrently; return ``(source, result)`` pairs.

    A result is either the list of URLs or the exception the source raised.
    """
    sources: List[LinkSource] = []
    calls = []
    if sitemap_mode != "skip":
        sources.append("sitemap")
        calls.append(discover_urls_via_sitemap(url))
    if sitemap_mode != "only":
        sources.append("index")
        calls.append(query_link_index(url, include_subdomains=include_subdomains))

    results = await asyncio.gather(*calls, return_exceptions=True)
    return list(zip(sources, results))


async def discover_links(
    url: str,
    *,
    sitemap_mode: SitemapMode = "default",
    ignore_query_parameters: bool = True,
    include_subdomains: bool = True,
) -> List[LinkRecord]:
    """Return the deduplicated links of *url*'s site, sitemap-sourced first.

    ``"only"`` never queries the link index, ``"skip"`` never reads the
    sitemap, ``"default"`` queries both concurrently.  A failing source
    contributes nothing; if both fail the result is simply empty.

    With *ignore_query_parameters* the query string is dropped from both the
    dedup key and the returned URL.
    """
    merged: Dict[str, LinkRecord] = {}

    for source, result in await _query_sources(url, sitemap_mode, include_subdomains):
        if isinstance(result, Exception):
            logger.warning("Discovery source '%s' failed for %s – %s", source, url, result)
            continue

        for found in result:
            if not in_scope(found, url, include_subdomains):
                continue
            key = dedup_key(found, ignore_query_parameters)
            if key in merged:
                continue
            clean = strip_query(found) if ignore_query_parameters else strip_fragment(found)
            merged[key] = LinkRecord(url=clean, source=source)

    return list(merged.values())
