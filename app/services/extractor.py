from typing import List, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup
from markdownify import markdownify

from app.services.cleaner import clean_markdown
from app.services.sanitizer import sanitize

# Attributes holding URLs that should be made absolute in transformed HTML
_URL_ATTRS = (("a", "href"), ("img", "src"), ("img", "data-src"), ("source", "src"), ("video", "src"))

_MAIN_CONTENT_SELECTORS = (
    "article",
    "main",
    '[role="main"]',
    # WordPress-specific content containers
    ".entry-content",
    ".post-content",
    ".page-content",
    ".wp-block-post-content",
)


def _normalize_url(base_url: str, href: str) -> str:
    """Return an absolute URL, resolving *href* against *base_url*."""
    return urljoin(base_url, href)


def _extract_title(soup: BeautifulSoup) -> str:
    title_tag = soup.find("title")
    if title_tag and title_tag.get_text(strip=True):
        return title_tag.get_text(strip=True)
    h1 = soup.find("h1")
    if h1:
        return h1.get_text(strip=True)
    return ""


def _extract_description(soup: BeautifulSoup) -> str:
    meta = soup.find("meta", attrs={"name": "description"})
    if meta and meta.get("content"):
        return str(meta["content"]).strip()
    og_desc = soup.find("meta", attrs={"property": "og:description"})
    if og_desc and og_desc.get("content"):
        return str(og_desc["content"]).strip()
    return ""


def _find_main_content(soup: BeautifulSoup) -> BeautifulSoup:
    """Return the most likely main-content element.

    Checks common semantic selectors first, then WordPress-specific content
    containers, before falling back to <body>.
    """
    for selector in _MAIN_CONTENT_SELECTORS:
        node = soup.select_one(selector)
        if node:
            return node
    return soup.find("body") or soup


def _absolutize(node, base_url: str) -> None:
    for tag_name, attr in _URL_ATTRS:
        for tag in node.find_all(tag_name):
            value = tag.get(attr)
            if not value:
                continue
            value = str(value).strip()
            if value.startswith(("#", "javascript:", "mailto:", "tel:", "data:")):
                continue
            tag[attr] = _normalize_url(base_url, value)


def _extract_links(node, base_url: str) -> List[str]:
    seen: set = set()
    links: List[str] = []
    for a in node.find_all("a", href=True):
        href = str(a["href"]).strip()
        if not href or href.startswith(("#", "javascript:", "mailto:", "tel:")):
            continue
        abs_url = _normalize_url(base_url, href)
        if urlparse(abs_url).scheme not in ("http", "https"):
            continue
        if abs_url not in seen:
            seen.add(abs_url)
            links.append(abs_url)
    return links


def extract_links(html: str, base_url: str) -> List[str]:
    """Return every distinct absolute http(s) link found anywhere in *html*."""
    if not html:
        return []
    return _extract_links(BeautifulSoup(html, "lxml"), base_url)


def extract_metadata(html: str) -> Tuple[str, str]:
    """Return ``(title, description)`` read from the unsanitized page."""
    if not html:
        return "", ""
    soup = BeautifulSoup(html, "lxml")
    return _extract_title(soup), _extract_description(soup)


def html_transform(html: str, url: str, only_main_content: bool = True) -> str:
    """Clean *html* and return either its main-content subtree or the whole body.

    Relative links and media sources are resolved against *url* so the output
    stays usable once it leaves the page it came from.
    """
    if not html or not html.strip():
        return ""

    soup = sanitize(html, only_main_content=only_main_content)
    node = _find_main_content(soup) if only_main_content else (soup.find("body") or soup)
    _absolutize(node, url)
    return str(node)


def parse_markdown(html: str) -> str:
    """Convert transformed HTML to cleaned, ATX-styled Markdown."""
    if not html or not html.strip():
        return ""
    return clean_markdown(markdownify(html, heading_style="ATX").strip())
