"""Sitemap link source for URL discovery."""

import logging
import re
from typing import List, Tuple
from urllib.parse import urlparse
from xml.etree import ElementTree

import httpx

from app.services.fetcher import fetch_url

logger = logging.getLogger(__name__)

# Common sitemap paths to probe in order, after robots.txt
_SITEMAP_PATHS = (
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/sitemap-index.xml",
    "/wp-sitemap.xml",
)

# Bounds against sitemap bombs
_MAX_SITEMAPS = 100
_MAX_URLS = 100_000

_ROBOTS_SITEMAP_RE = re.compile(r"^\s*sitemap\s*:\s*(\S+)", re.IGNORECASE | re.MULTILINE)

# CMS-internal paths that are never pages worth mapping
_SKIP_PATTERN = re.compile(
    r"/(?:wp-content|wp-includes|wp-admin|wp-login|wp-json|feed|feeds)(?:/|$)",
    re.IGNORECASE,
)


async def _fetch_text(url: str) -> str:
    """Return the response body of *url* as text, or an empty string on failure.

    Uses the SSRF-protected :func:`~app.services.fetcher.fetch_url` so that
    private/internal addresses are always rejected.
    """
    try:
        return (await fetch_url(url)).html
    except (ValueError, httpx.HTTPError, RuntimeError) as exc:
        logger.debug("Sitemap: could not fetch %s – %s", url, exc)
        return ""


def _site_root(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def _parse_sitemap(xml_text: str) -> Tuple[str, List[str]]:
    """Return ``(kind, locs)`` where *kind* is ``"index"``, ``"urlset"`` or ``""``."""
    try:
        root = ElementTree.fromstring(xml_text.strip())
    except ElementTree.ParseError as exc:
        logger.warning("Failed to parse sitemap XML: %s", exc)
        return "", []

    ns = root.tag.split("}")[0] + "}" if root.tag.startswith("{") else ""
    local_name = root.tag[len(ns):]
    locs = [elem.text.strip() for elem in root.iter(f"{ns}loc") if elem.text and elem.text.strip()]

    if local_name == "sitemapindex":
        return "index", locs
    if local_name == "urlset":
        return "urlset", locs
    return "", []


async def _find_sitemaps(root_url: str) -> List[str]:
    """Return the sitemap URLs declared in robots.txt, else the first probe that answers."""
    robots = await _fetch_text(f"{root_url}/robots.txt")
    declared = _ROBOTS_SITEMAP_RE.findall(robots) if robots else []
    if declared:
        return list(dict.fromkeys(declared))

    for path in _SITEMAP_PATHS:
        candidate = f"{root_url}{path}"
        text = await _fetch_text(candidate)
        if text and ("<urlset" in text or "<sitemapindex" in text):
            return [candidate]
    return []


async def discover_urls_via_sitemap(base_url: str) -> List[str]:
    """Discover page URLs from the site's sitemap(s).

    Reads ``Sitemap:`` lines from robots.txt (falling back to probing the
    usual locations at the site root), follows sitemap-index files
    breadth-first, and returns the page URLs in document order, deduplicated.

    Returns an empty list when no usable sitemap is found.
    """
    sitemap_queue = await _find_sitemaps(_site_root(base_url))
    if not sitemap_queue:
        return []

    page_urls: List[str] = []
    seen_pages: set = set()
    processed_sitemaps: set = set()

    while sitemap_queue and len(processed_sitemaps) < _MAX_SITEMAPS:
        sitemap_url = sitemap_queue.pop(0)
        if sitemap_url in processed_sitemaps:
            continue
        processed_sitemaps.add(sitemap_url)

        xml_text = await _fetch_text(sitemap_url)
        if not xml_text:
            continue

        kind, locs = _parse_sitemap(xml_text)
        if kind == "index":
            sitemap_queue.extend(loc for loc in locs if loc not in processed_sitemaps)
            continue

        for url in locs:
            if url in seen_pages or _SKIP_PATTERN.search(urlparse(url).path):
                continue
            seen_pages.add(url)
            page_urls.append(url)
            if len(page_urls) >= _MAX_URLS:
                return page_urls

    logger.info(
        "Sitemap: %d URLs from %d sitemap(s) for %s",
        len(page_urls), len(processed_sitemaps), base_url,
    )
    return page_urls
