"""Platform / technology detection from page HTML.

Given the raw HTML returned by an engine and the word-count of its converted
Markdown, :func:`detect_platform` classifies the page:

``"wordpress"``
    WordPress-powered site (``/wp-content/`` paths, the REST-API link
    relation, or the ``<meta name="generator">`` tag).

``"spa"``
    JavaScript single-page application shell: SPA framework fingerprints
    (React, Vue, Angular, Next.js, Nuxt, …) **and** very little readable
    content.  The plain HTTP engine rejects these so the fallback chain moves
    on to the browser engine.

``"ssr"``
    Anything else: the response already contains readable content.
"""

import re
from typing import Literal

PlatformType = Literal["wordpress", "spa", "ssr"]

_WP_PATTERN = re.compile(
    r"/wp-content/"
    r"|/wp-includes/"
    # <link rel="https://api.w.org/">: WP REST-API link relation
    r'|rel=["\']https://api\.w\.org/'
    r'|<meta[^>]+name=["\']generator["\'][^>]+content=["\']WordPress',
    re.IGNORECASE,
)

# Present in the *un-rendered* HTML shell of a client-side app.
_SPA_PATTERN = re.compile(
    r'<div\s[^>]*\bid=["\'](?:root|__next|app|__nuxt)["\']'
    r"|window\.__NUXT__"
    r"|__NEXT_DATA__"
    r"|ng-version="
    r"|data-reactroot"
    r"|<svelte:",
    re.IGNORECASE,
)

# Below this many words, a page carrying SPA markers is treated as a shell.
_SPA_MIN_WORDS = 20


def has_spa_markers(html: str) -> bool:
    return bool(_SPA_PATTERN.search(html))


def is_spa_shell(html: str, word_count: int) -> bool:
    """Return True when *html* is an SPA shell that needs a browser to render."""
    return word_count < _SPA_MIN_WORDS and has_spa_markers(html)


def detect_platform(html: str, word_count: int) -> PlatformType:
    """Classify the platform/technology type of a web page."""
    if _WP_PATTERN.search(html):
        return "wordpress"
    if is_spa_shell(html, word_count):
        return "spa"
    return "ssr"
