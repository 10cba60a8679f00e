"""In-process link index: the "index" source for URL discovery.

Every successful scrape records the page and its outbound links here, keyed by
registrable domain.  A map request for a domain the index has never seen
triggers a shallow link harvest first.
"""

import logging
from typing import Dict, Iterable, List

from app.services.crawler import harvest_links
from app.services.urls import in_scope, registrable_domain, strip_fragment

logger = logging.getLogger(__name__)

# Bounds for the harvest triggered by an index miss
INDEX_HARVEST_PAGES = 5
INDEX_HARVEST_DEPTH = 1

# Oldest entries are evicted beyond this many URLs per domain
MAX_INDEXED_URLS_PER_DOMAIN = 50_000


class LinkIndex:
    def __init__(self, max_urls_per_domain: int = MAX_INDEXED_URLS_PER_DOMAIN):
        self.max_urls_per_domain = max_urls_per_domain
        # dicts keep insertion order, which is the order lookups return
        self._by_domain: Dict[str, Dict[str, None]] = {}

    def record(self, page_url: str, links: Iterable[str] = ()) -> None:
        """Add *page_url* and its *links* under their respective domains."""
        for url in (page_url, *links):
            url = strip_fragment(url)
            domain = registrable_domain(url)
            if not domain:
                continue
            entries = self._by_domain.setdefault(domain, {})
            entries[url] = None
            if len(entries) > self.max_urls_per_domain:
                del entries[next(iter(entries))]

    def lookup(self, url: str, include_subdomains: bool = True) -> List[str]:
        """Return indexed URLs belonging to *url*'s site, oldest first."""
        entries = self._by_domain.get(registrable_domain(url), {})
        return [known for known in entries if in_scope(known, url, include_subdomains)]

    def clear(self) -> None:
        self._by_domain.clear()


link_index = LinkIndex()


async def query_link_index(url: str, include_subdomains: bool = True) -> List[str]:
    """Return the index's URLs for *url*'s site, harvesting on a miss."""
    known = link_index.lookup(url, include_subdomains)
    if known:
        return known

    logger.info("Link index miss for %s – harvesting", url)
    harvested = await harvest_links(url, max_pages=INDEX_HARVEST_PAGES, max_depth=INDEX_HARVEST_DEPTH)
    # a lone seed means the harvest learned nothing; keep the miss retryable
    if len(harvested) > 1:
        link_index.record(harvested[0], harvested[1:])
    return link_index.lookup(url, include_subdomains)
