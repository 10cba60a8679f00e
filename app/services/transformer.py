"""HTML → Markdown transformation with a main-content fallback.

Main-content heuristics occasionally discard a whole page (markup that defeats
boundary detection, or pages with no article-like block).  When that happens
the full page is converted instead, and the caller is told through
``used_only_main_content``.
"""

import logging
from typing import NamedTuple, Optional

from app.services.extractor import html_transform, parse_markdown

logger = logging.getLogger(__name__)


class TransformResult(NamedTuple):
    transformed_html: str
    markdown: str
    used_only_main_content: bool


def transform_content(
    html: str,
    url: str,
    only_main_content: Optional[bool] = None,
) -> TransformResult:
    """Transform *html* once and return the result every format renderer reuses.

    ``used_only_main_content`` is only ever ``False`` when main-content
    extraction was requested and produced empty Markdown.  An empty page is a
    valid result, not an error.
    """
    use_only_main_content = True if only_main_content is None else only_main_content

    transformed_html = html_transform(html, url, only_main_content=use_only_main_content)
    markdown = parse_markdown(transformed_html)
    used_only_main_content = use_only_main_content

    if use_only_main_content and not markdown.strip():
        logger.info("Main-content extraction was empty for %s – using full page", url)
        transformed_html = html_transform(html, url, only_main_content=False)
        markdown = parse_markdown(transformed_html)
        used_only_main_content = False

    return TransformResult(
        transformed_html=transformed_html,
        markdown=markdown,
        used_only_main_content=used_only_main_content,
    )
