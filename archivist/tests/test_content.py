"""
Tests for content transforms.
"""

import pytest

from archivist.content import (
    ContentError,
    html_to_markdown,
    parse_media_type,
    sanitize_html,
    scrub_html,
    scrub_text,
    transform,
)
from archivist.schemas import MimeType


class TestScrubText:
    """Tests for plain text cleanup."""

    def test_line_endings(self):
        assert scrub_text("a\r\nb\rc") == "a\nb\nc"

    def test_trailing_whitespace(self):
        assert scrub_text("a  \nb\t") == "a\nb"

    def test_sandwich_headings(self):
        assert scrub_text("===\nTitle\n===\nBody") == "# Title\nBody"
        assert scrub_text("---\nPart One\n---\nBody") == "## Part One\nBody"

    def test_decorative_rule(self):
        assert scrub_text("One\n* * *\nTwo") == "One\n***\nTwo"

    def test_indented_paragraphs(self):
        assert scrub_text("First line.\n  Second paragraph.") == "First line.\n\nSecond paragraph."

    def test_centered_text_unindented(self):
        assert scrub_text("          The End") == "The End"

    def test_dialog_dash_stripped(self):
        assert scrub_text("-Hello there.\nShe said nothing.") == "Hello there.\nShe said nothing."

    def test_list_dashes_kept(self):
        assert scrub_text("- one\n- two") == "- one\n- two"

    def test_email_headers_folded(self):
        result = scrub_text("From: someone@example.com\nSubject: Hi\n\nOnce upon a time")

        assert result.startswith('<details class="email-headers">')
        assert "From: someone@example.com<br>\nSubject: Hi" in result
        assert result.endswith("Once upon a time")


class TestSanitizeHtml:
    """Tests for HTML sanitization."""

    def test_drops_scripts_and_handlers(self):
        assert sanitize_html('<p onclick="x()">Hi<script>bad()</script></p>') == "<p>Hi</p>"

    def test_unwraps_unknown_tags(self):
        assert sanitize_html('<p><font color="red">red</font></p>') == "<p>red</p>"

    def test_drops_comments(self):
        assert sanitize_html("<p>a<!-- note -->b</p>") == "<p>ab</p>"

    def test_unsafe_link_loses_href(self):
        assert sanitize_html('<a href="javascript:alert(1)">x</a>') == "<a>x</a>"

    def test_external_link_marked(self):
        result = sanitize_html('<a href="https://example.com/">x</a>')

        assert 'href="https://example.com/"' in result
        assert 'rel="nofollow noreferrer"' in result
        assert 'target="_blank"' in result

    def test_relative_link_unchanged(self):
        assert sanitize_html('<a href="/story.html">x</a>') == '<a href="/story.html">x</a>'


class TestScrubHtml:
    """Tests for HTML cleanup."""

    def test_collapses_br_runs(self):
        result = scrub_html("a<br><br><br><br>b")

        assert result.count("<br") == 2
        assert result.startswith("a") and result.endswith("b")

    def test_removes_empty_inlines(self):
        assert scrub_html("<p>text<span></span><b><i></i></b></p>") == "<p>text</p>"

    def test_removes_spacer_blocks(self):
        assert scrub_html("x<div><br></div>y") == "xy"

    def test_empty_block_becomes_break(self):
        result = scrub_html("a<p> </p>b")

        assert "<p>" not in result
        assert result.count("<br") == 1


class TestHtmlToMarkdown:
    """Tests for HTML to Markdown conversion."""

    def test_headings_and_emphasis(self):
        markup = "<h1>Title</h1><p>Some <em>very</em> <strong>bold</strong> text</p>"

        assert html_to_markdown(markup) == "# Title\n\nSome _very_ **bold** text\n"

    def test_lists(self):
        assert html_to_markdown("<ul><li>one</li><li>two</li></ul>") == "- one\n- two\n"
        assert html_to_markdown("<ol><li>one</li><li>two</li></ol>") == "1. one\n2. two\n"

    def test_links(self):
        assert html_to_markdown('<p><a href="/x">go</a></p>') == "[go](/x)\n"

    def test_empty(self):
        assert html_to_markdown("") == ""


class TestTransform:
    """Tests for the content type dispatch."""

    def test_media_type(self):
        assert parse_media_type("Text/HTML; charset=utf-8") == "text/html"

    def test_bad_content_type(self):
        with pytest.raises(ContentError):
            transform("garbage", MimeType.HTML, b"body")

    def test_html_to_html(self):
        body = b"<html><head><title>t</title></head><body><p>Hi&nbsp;there</p><script>x</script></body></html>"

        assert transform("text/html; charset=utf-8", MimeType.HTML, body) == "<p>Hi there</p>"

    def test_html_to_markdown(self):
        body = b"<html><body><p>Hi <em>there</em></p></body></html>"

        assert transform("text/html", MimeType.MARKDOWN, body) == "Hi _there_\n"

    def test_text_to_markdown(self):
        assert transform("text/plain", MimeType.MARKDOWN, b"a  \nb") == "a\nb"

    def test_text_to_html(self):
        body = b"===\nTitle\n===\n\nHello"

        assert transform("text/plain", MimeType.HTML, body) == "<h1>Title</h1>\n<p>Hello</p>"

    def test_declared_charset(self):
        body = "café".encode("latin-1")

        assert transform("text/plain; charset=iso-8859-1", MimeType.MARKDOWN, body) == "café"
