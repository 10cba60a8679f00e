"""Tests for app.services.extractor."""

from app.services.extractor import extract_links, extract_metadata, html_transform, parse_markdown

_BASE = "https://example.com/blog/"


class TestExtractLinks:
    def test_absolutizes_and_deduplicates(self):
        html = (
            '<a href="/about">About</a>'
            '<a href="post-1">Post</a>'
            '<a href="https://example.com/about">Again</a>'
        )
        assert extract_links(html, _BASE) == [
            "https://example.com/about",
            "https://example.com/blog/post-1",
        ]

    def test_skips_non_http_links(self):
        html = (
            '<a href="mailto:hi@example.com">Mail</a>'
            '<a href="tel:+15551234">Call</a>'
            '<a href="javascript:void(0)">JS</a>'
            '<a href="#top">Top</a>'
            '<a href="ftp://example.com/file">FTP</a>'
        )
        assert extract_links(html, _BASE) == []

    def test_reads_links_outside_main_content(self):
        html = "<nav><a href='/pricing'>Pricing</a></nav><main><p>Text</p></main>"
        assert extract_links(html, _BASE) == ["https://example.com/pricing"]

    def test_empty_html(self):
        assert extract_links("", _BASE) == []


class TestExtractMetadata:
    def test_title_and_description(self):
        html = (
            "<head><title>Hello</title>"
            '<meta name="description" content=" A greeting. "></head>'
        )
        assert extract_metadata(html) == ("Hello", "A greeting.")

    def test_falls_back_to_h1_and_og_description(self):
        html = '<head><meta property="og:description" content="OG text"></head><body><h1>Heading</h1></body>'
        assert extract_metadata(html) == ("Heading", "OG text")

    def test_empty_html(self):
        assert extract_metadata("") == ("", "")


class TestHtmlTransform:
    def test_selects_article(self):
        html = "<body><div class='intro'>Intro</div><article><p>Body</p></article></body>"
        out = html_transform(html, _BASE)
        assert out.startswith("<article")
        assert "Intro" not in out

    def test_full_page_keeps_body(self):
        html = "<body><nav>Menu</nav><article><p>Body</p></article></body>"
        out = html_transform(html, _BASE, only_main_content=False)
        assert "Menu" in out
        assert "Body" in out

    def test_absolutizes_images(self):
        out = html_transform('<main><img src="/img/a.png"></main>', _BASE)
        assert 'src="https://example.com/img/a.png"' in out

    def test_blank_input(self):
        assert html_transform("   ", _BASE) == ""


class TestParseMarkdown:
    def test_atx_headings(self):
        md = parse_markdown("<h1>Title</h1><h2>Section</h2><p>Text</p>")
        assert "# Title" in md
        assert "## Section" in md

    def test_output_is_cleaned(self):
        md = parse_markdown("<p>Opening hours.</p><p>We use cookies to personalise content and ads.</p>")
        assert "cookies" not in md
        assert "Opening hours." in md

    def test_empty(self):
        assert parse_markdown("") == ""
