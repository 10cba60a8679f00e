"""Shallow BFS link harvester used to seed the link index for a domain."""

import logging
from collections import deque
from typing import Dict, List
from urllib.parse import parse_qs, urlparse

import httpx

from app.services.extractor import extract_links
from app.services.fetcher import fetch_url
from app.services.urls import strip_fragment

logger = logging.getLogger(__name__)

# Hard ceiling to protect against runaway harvests
MAX_PAGES_HARD_LIMIT = 20

# URL path prefixes to skip (common on WordPress and other CMSes)
_SKIP_PATH_PREFIXES = (
    "/wp-admin",
    "/wp-login",
    "/wp-json",
    "/wp-content",
)

_SKIP_PATH_SUFFIXES = (
    ".xml",
    ".rss",
    ".atom",
    "xmlrpc.php",
    "/feed",
)

# Static assets are linkable but never worth fetching for more links
_ASSET_SUFFIXES = (
    ".pdf", ".zip", ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg",
    ".mp4", ".mp3", ".css", ".js",
)

# Query parameters that indicate non-content pages
_SKIP_QUERY_PARAMS = {"feed", "preview", "replytocom"}


def _same_host(url: str, base_netloc: str) -> bool:
    return urlparse(url).netloc == base_netloc


def _should_skip(url: str) -> bool:
    """Return True for URLs that are unlikely to be content pages.

    Skips WordPress admin/login/API paths and feed URLs.
    """
    parsed = urlparse(url)
    path = parsed.path.lower()

    if any(path.startswith(prefix) for prefix in _SKIP_PATH_PREFIXES):
        return True
    if any(path.rstrip("/").endswith(suffix.rstrip("/")) for suffix in _SKIP_PATH_SUFFIXES):
        return True

    query_params = set(parse_qs(parsed.query).keys())
    return bool(query_params & _SKIP_QUERY_PARAMS)


async def harvest_links(
    start_url: str,
    max_pages: int = 5,
    max_depth: int = 1,
) -> List[str]:
    """Collect same-host page URLs reachable from *start_url* using BFS.

    Only links are gathered (no content extraction).  At most *max_pages*
    pages are fetched (capped by ``MAX_PAGES_HARD_LIMIT``), following links
    up to *max_depth* levels from the seed.  The seed itself comes first in
    the returned list, followed by URLs in discovery order.
    """
    max_pages = min(max_pages, MAX_PAGES_HARD_LIMIT)
    base_netloc = urlparse(start_url).netloc

    discovered: Dict[str, None] = {strip_fragment(start_url): None}
    visited: set = set()
    # Queue entries: (url, depth)
    queue: deque = deque([(strip_fragment(start_url), 0)])

    while queue and len(visited) < max_pages:
        url, depth = queue.popleft()
        if url in visited:
            continue
        visited.add(url)

        try:
            page = await fetch_url(url)
        except (ValueError, httpx.HTTPError, RuntimeError) as exc:
            logger.warning("Harvest: skipping %s – %s", url, exc)
            continue

        for link in extract_links(page.html, page.final_url):
            link = strip_fragment(link)
            if not _same_host(link, base_netloc) or _should_skip(link):
                continue
            if link not in discovered:
                discovered[link] = None
            if (
                depth < max_depth
                and link not in visited
                and not urlparse(link).path.lower().endswith(_ASSET_SUFFIXES)
            ):
                queue.append((link, depth + 1))

    return list(discovered)
