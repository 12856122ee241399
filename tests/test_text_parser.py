"""Unit tests for the text_parser module."""

from document_record import NO_TITLE
from text_parser import find_title, is_heading, parse_text, text_to_html

SAMPLE_TEXT = """Understanding Content Extraction

This is the first paragraph. It has sentences.
It continues here.

Second paragraph here.
"""


class TestFindTitle:
    """Tests for find_title."""

    def test_first_suitable_line(self) -> None:
        """Test that the first line of suitable length is the title."""
        assert find_title(["Short", "A reasonable page title"]) == "A reasonable page title"

    def test_lines_with_links_skipped(self) -> None:
        """Test that lines containing http are not titles."""
        lines = ["Source: https://example.com/page", "The Real Title Line"]
        assert find_title(lines) == "The Real Title Line"

    def test_only_first_five_lines_searched(self) -> None:
        """Test that a title beyond the fifth line is not used."""
        lines = ["x"] * 5 + ["A perfectly good title"]
        assert find_title(lines) == NO_TITLE


class TestIsHeading:
    """Tests for is_heading."""

    def test_capitalized_line_without_punctuation(self) -> None:
        """Test that a short capitalized line near the top is a heading."""
        assert is_heading("Getting Started", 2) is True

    def test_sentence_is_not_heading(self) -> None:
        """Test that terminal punctuation disqualifies a line."""
        assert is_heading("This is a sentence.", 0) is False
        assert is_heading("Is this a question?", 0) is False

    def test_lowercase_start_is_not_heading(self) -> None:
        """Test that a line must start with an uppercase letter."""
        assert is_heading("getting started", 0) is False

    def test_position_limit(self) -> None:
        """Test that headings are only detected in the first ten lines."""
        assert is_heading("Late Section", 9) is True
        assert is_heading("Late Section", 10) is False

    def test_long_line_is_not_heading(self) -> None:
        """Test that lines of 100 characters or more are not headings."""
        assert is_heading("A" * 100, 0) is False


class TestTextToHtml:
    """Tests for text_to_html."""

    def test_headings_and_paragraphs(self) -> None:
        """Test that blank lines separate paragraphs and headings become h2."""
        assert text_to_html(SAMPLE_TEXT) == (
            "<h2>Understanding Content Extraction</h2>\n"
            "<p>This is the first paragraph. It has sentences. It continues here.</p>\n"
            "<p>Second paragraph here.</p>"
        )

    def test_markup_is_escaped(self) -> None:
        """Test that text that looks like markup is escaped."""
        result = text_to_html("use <b> tags & entities.")
        assert result == "<p>use &lt;b&gt; tags &amp; entities.</p>"

    def test_late_heading_stays_in_paragraph(self) -> None:
        """Test that heading-like lines past the tenth line are body text."""
        lines = [f"Sentence number {i}." for i in range(10)] + ["Late Section"]
        result = text_to_html("\n".join(lines))
        assert "<h2>" not in result
        assert result.endswith("Late Section</p>")

    def test_empty_text(self) -> None:
        """Test that empty input yields empty markup."""
        assert text_to_html("") == ""


class TestParseText:
    """Tests for parse_text."""

    def test_builds_record(self) -> None:
        """Test that title, content and URL are populated."""
        record = parse_text(SAMPLE_TEXT, "https://example.com/article")
        assert record.title == "Understanding Content Extraction"
        assert record.source_url == "https://example.com/article"
        assert record.content.startswith("<h2>")
        assert record.images == ()
        assert record.simulated is False

    def test_title_sentinel(self) -> None:
        """Test that text without a suitable first line gets the sentinel."""
        record = parse_text("ok\nfine\n", "https://example.com/")
        assert record.title == NO_TITLE
