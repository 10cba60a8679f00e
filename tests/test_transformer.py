"""Tests for app.services.transformer.transform_content."""

from unittest.mock import patch

from app.services import extractor
from app.services.transformer import transform_content

_URL = "https://example.com/post"

_ARTICLE_HTML = """
<html><head><title>Post</title></head>
<body>
  <nav><a href="/">Home</a><a href="/about">About</a></nav>
  <article><h1>Release notes</h1><p>Version two ships a faster parser.</p></article>
  <footer><p>Copyright Example</p></footer>
</body></html>
"""

# <main> exists but holds nothing; the readable text lives outside it
_EMPTY_MAIN_HTML = """
<html><body>
  <main></main>
  <div><p>Everything readable sits outside the main element.</p></div>
</body></html>
"""

_NAV_ONLY_HTML = """
<html><body>
  <nav><a href="/docs">Documentation</a><a href="/blog">Blog</a></nav>
</body></html>
"""


class TestTransformContent:
    def test_main_content_used_when_not_empty(self):
        result = transform_content(_ARTICLE_HTML, _URL)
        assert result.used_only_main_content is True
        assert "# Release notes" in result.markdown
        assert "Home" not in result.markdown
        assert "Copyright" not in result.markdown

    def test_single_conversion_when_main_content_not_empty(self):
        with patch(
            "app.services.transformer.html_transform", wraps=extractor.html_transform
        ) as mock_transform:
            transform_content(_ARTICLE_HTML, _URL)
        assert mock_transform.call_count == 1

    def test_falls_back_to_full_page_when_main_content_empty(self):
        result = transform_content(_EMPTY_MAIN_HTML, _URL)
        assert result.used_only_main_content is False
        assert "Everything readable" in result.markdown

    def test_fallback_keeps_navigation_only_pages(self):
        with patch(
            "app.services.transformer.html_transform", wraps=extractor.html_transform
        ) as mock_transform:
            result = transform_content(_NAV_ONLY_HTML, _URL)
        assert mock_transform.call_count == 2
        assert mock_transform.call_args.kwargs["only_main_content"] is False
        assert "Documentation" in result.markdown
        assert result.used_only_main_content is False

    def test_full_page_requested_explicitly(self):
        result = transform_content(_ARTICLE_HTML, _URL, only_main_content=False)
        assert result.used_only_main_content is False
        assert "Home" in result.markdown
        assert "Release notes" in result.markdown

    def test_default_is_main_content(self):
        assert transform_content(_ARTICLE_HTML, _URL, None).used_only_main_content is True

    def test_empty_page_is_not_an_error(self):
        result = transform_content("", _URL)
        assert result.markdown == ""
        assert result.transformed_html == ""

    def test_links_are_absolutized(self):
        result = transform_content(_NAV_ONLY_HTML, _URL)
        assert "https://example.com/docs" in result.transformed_html
