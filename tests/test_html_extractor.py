"""Unit tests for the html_extractor module."""

from unittest.mock import patch

import pytest

from document_record import NO_TITLE
from html_extractor import (
    ExtractionError,
    extract_title,
    parse_document,
    parse_html,
)

ARTICLE_TEXT = "Content extraction keeps the readable part of a page. " * 12

ARTICLE_PAGE = f"""
<html>
<head><title>Test Article</title></head>
<body>
    <nav>Home | About | Contact</nav>
    <article>
        <h1>Test Article</h1>
        <p>{ARTICLE_TEXT}</p>
        <img src="/img/photo.jpg" alt="A photo" width="640" height="480">
    </article>
    <footer>Copyright notice</footer>
</body>
</html>
"""


class TestParseDocument:
    """Tests for parse_document."""

    def test_blank_input_gives_empty_document(self) -> None:
        """Test that whitespace-only markup parses to an empty body."""
        tree = parse_document("   \n\t ")
        body = tree.find(".//body")
        assert body is not None
        assert len(body) == 0

    def test_xml_declaration_accepted(self) -> None:
        """Test that payloads with an encoding declaration parse."""
        markup = '<?xml version="1.0" encoding="utf-8"?><html><body><p>Hi</p></body></html>'
        tree = parse_document(markup)
        assert tree.find(".//p").text == "Hi"

    def test_parser_failure_wrapped(self) -> None:
        """Test that lxml errors surface as ExtractionError."""
        with patch(
            "html_extractor.lxml_html.document_fromstring",
            side_effect=ValueError("bad document"),
        ):
            with pytest.raises(ExtractionError, match="bad document"):
                parse_document("<p>x</p>")


class TestExtractTitle:
    """Tests for extract_title."""

    def test_title_element(self) -> None:
        """Test that the <title> text is used."""
        tree = parse_document("<html><head><title> My Page </title></head></html>")
        assert extract_title(tree) == "My Page"

    def test_missing_title(self) -> None:
        """Test that the sentinel is used when there is no title."""
        tree = parse_document("<html><body><p>x</p></body></html>")
        assert extract_title(tree) == NO_TITLE


class TestParseHtml:
    """Tests for parse_html."""

    def test_article_page(self) -> None:
        """Test that the article is extracted without navigation or footer."""
        record = parse_html(ARTICLE_PAGE, "https://example.com/blog/post")

        assert record.title == "Test Article"
        assert record.source_url == "https://example.com/blog/post"
        assert "Content extraction keeps the readable part" in record.content
        assert "Home | About" not in record.content
        assert "Copyright notice" not in record.content
        assert "extracted-heading" in record.content
        assert record.simulated is False

    def test_images_collected(self) -> None:
        """Test that image metadata is resolved against the page URL."""
        record = parse_html(ARTICLE_PAGE, "https://example.com/blog/post")
        assert len(record.images) == 1
        image = record.images[0]
        assert image.src == "https://example.com/img/photo.jpg"
        assert image.alt == "A photo"
        assert (image.width, image.height) == (640, 480)

    def test_images_can_be_disabled(self) -> None:
        """Test that include_images=False yields no image metadata."""
        record = parse_html(
            ARTICLE_PAGE, "https://example.com/blog/post", include_images=False
        )
        assert record.images == ()
        assert "A photo" in record.content

    def test_empty_markup(self) -> None:
        """Test that empty markup yields an empty record instead of raising."""
        record = parse_html("", "https://example.com/")
        assert record.title == NO_TITLE
        assert record.content == ""
        assert record.has_content is False

    def test_unparseable_markup_falls_back(self) -> None:
        """Test that a parser failure still produces a record."""
        with patch(
            "html_extractor.parse_document",
            side_effect=ExtractionError("Unparseable markup"),
        ):
            record = parse_html("<html>", "https://example.com/")
        assert record.content == ""
        assert record.title == NO_TITLE
