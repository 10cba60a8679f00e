import re

from bs4 import BeautifulSoup, Comment, Tag

# Subtrees that never carry page text: scripting, embeds, vector/canvas
# graphics (raw path noise) and template markup
_REMOVE_TAGS = {
    "script", "style", "noscript", "template",
    "iframe", "object", "embed", "applet",
    "link", "meta", "svg", "canvas",
}

# Page chrome dropped in main-content mode
_MAIN_CONTENT_REMOVE_TAGS = {"nav", "aside", "form"}

# Only removed as direct children of <body>, so an <article>'s own
# <header>/<footer> survives
_SITE_CHROME_TAGS = {"header", "footer"}

_HIDDEN_STYLE_RE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.IGNORECASE)

# Inline CSS and event handlers
_JUNK_ATTR_RE = re.compile(r"^(?:style|on\w+)$", re.IGNORECASE)

# Substrings of ids/classes that mark non-content blocks
_NOISE_KEYWORDS = (
    "nav", "menu", "sidebar", "side-bar", "breadcrumb", "pagination",
    "header", "footer", "site-branding", "search-form",
    "banner", "popup", "modal", "overlay", "cookie", "gdpr",
    "ads", "advertisement", "promo", "tracking",
    "social", "share", "subscribe", "newsletter",
    "related", "recommend", "comment", "widget",
    "author-info", "author-bio", "author-box", "post-meta", "entry-meta",
)


def _is_hidden(tag: Tag) -> bool:
    if tag.has_attr("hidden") or str(tag.get("aria-hidden", "")).lower() == "true":
        return True
    style = tag.get("style")
    return bool(style and _HIDDEN_STYLE_RE.search(style))


def _has_noise_attr(tag: Tag) -> bool:
    """Return True when a tag's id or class suggests it is non-content."""
    values = [str(tag.get("id") or "")] + list(tag.get("class") or [])
    values = [value.lower() for value in values if value]
    return any(keyword in value for value in values for keyword in _NOISE_KEYWORDS)


def _remove_site_chrome(soup: BeautifulSoup) -> None:
    for tag in soup.find_all(_MAIN_CONTENT_REMOVE_TAGS):
        tag.decompose()
    for tag in soup.find_all(_SITE_CHROME_TAGS):
        if tag.parent is not None and tag.parent.name == "body":
            tag.decompose()


def sanitize(html: str, only_main_content: bool = True) -> BeautifulSoup:
    """Remove noise elements from *html* and return the cleaned BeautifulSoup tree.

    Scripts, styles, comments and hidden elements are always dropped.  With
    *only_main_content* the page chrome (navigation, sidebars, forms, site
    header/footer, elements with noisy ids/classes) is dropped as well; without
    it the rest of the page is kept so that nothing harvestable is lost.
    """
    soup = BeautifulSoup(html, "lxml")

    for tag in soup.find_all(_REMOVE_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    if only_main_content:
        _remove_site_chrome(soup)

    for tag in soup.find_all(True):
        if tag.decomposed:
            continue
        if _is_hidden(tag) or (
            only_main_content and tag.name not in ("html", "body") and _has_noise_attr(tag)
        ):
            tag.decompose()
            continue
        for attr in [name for name in tag.attrs if _JUNK_ATTR_RE.match(name)]:
            del tag[attr]

    return soup
