"""URL normalisation and domain helpers shared by discovery and mapping."""

from urllib.parse import urlparse

import tldextract

# Bundled public-suffix snapshot only: no network fetch at runtime
_extract = tldextract.TLDExtract(suffix_list_urls=())


def strip_fragment(url: str) -> str:
    """Strip URL fragment so http://x.com/page#sec and http://x.com/page are the same."""
    return urlparse(url)._replace(fragment="").geturl()


def strip_query(url: str) -> str:
    return urlparse(url)._replace(query="", fragment="").geturl()


def dedup_key(url: str, ignore_query_parameters: bool = False) -> str:
    """Return the key two URLs must share to count as the same page."""
    parsed = urlparse(url)
    path = parsed.path.rstrip("/") or "/"
    query = "" if ignore_query_parameters else parsed.query
    return parsed._replace(
        scheme=parsed.scheme.lower(),
        netloc=parsed.netloc.lower(),
        path=path,
        query=query,
        fragment="",
    ).geturl()


def registrable_domain(url: str) -> str:
    """Return ``example.co.uk`` for ``https://docs.example.co.uk/x``."""
    ext = _extract(url)
    return ".".join(part for part in (ext.domain, ext.suffix) if part)


def in_scope(url: str, base_url: str, include_subdomains: bool = True) -> bool:
    """Return True when *url* is an http(s) page belonging to *base_url*'s site.

    Without *include_subdomains* only the exact host (ignoring a leading
    ``www.``) matches.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return False
    if include_subdomains:
        return registrable_domain(url) == registrable_domain(base_url)
    base_host = (urlparse(base_url).hostname or "").removeprefix("www.")
    return parsed.hostname.removeprefix("www.") == base_host


def is_base_domain(url: str) -> bool:
    """Return True when *url* is the bare root of its registrable domain.

    ``https://example.com`` and ``https://www.example.com/`` are roots;
    ``https://example.com/blog`` and ``https://docs.example.com`` are not.
    """
    parsed = urlparse(url)
    if parsed.path not in ("", "/"):
        return False
    return _extract(url).subdomain in ("", "www")
