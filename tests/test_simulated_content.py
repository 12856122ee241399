"""Unit tests for the simulated_content module."""

from datetime import datetime, timezone

from simulated_content import (
    EXTRACTION_WARNING_CLASS,
    GENERIC_REASONS,
    SIMULATED_NOTICE_CLASS,
    classify_path,
    synthesize,
)

FIXED_NOW = datetime(2024, 5, 17, 9, 30, tzinfo=timezone.utc)


class TestClassifyPath:
    """Tests for classify_path."""

    def test_blog_paths(self) -> None:
        """Test that blog and article paths classify as blog."""
        assert classify_path("/blog/post-1") == "blog"
        assert classify_path("/2024/article/x") == "blog"

    def test_product_paths(self) -> None:
        """Test that product and shop paths classify as product."""
        assert classify_path("/product/42") == "product"
        assert classify_path("/shop") == "product"

    def test_news_paths(self) -> None:
        """Test that news and press paths classify as news."""
        assert classify_path("/news/today") == "news"
        assert classify_path("/press/release") == "news"

    def test_other_paths(self) -> None:
        """Test that anything else is general."""
        assert classify_path("/") == "general"
        assert classify_path("/about") == "general"

    def test_first_rule_wins(self) -> None:
        """Test that blog takes precedence when several markers match."""
        assert classify_path("/news/blog") == "blog"


class TestSynthesize:
    """Tests for synthesize."""

    def test_blog_without_error(self) -> None:
        """Test that a blog URL uses the blog template with no warning."""
        record = synthesize("https://example.com/blog/post-1", now=FIXED_NOW)

        assert "Latest Blog Post from example.com" in record.content
        assert EXTRACTION_WARNING_CLASS not in record.content
        assert SIMULATED_NOTICE_CLASS in record.content
        assert "This is simulated content" in record.content
        assert record.title == "Content from example.com"
        assert record.simulated is True
        assert record.images == ()
        assert record.extracted_at == FIXED_NOW

    def test_error_message_included_verbatim(self) -> None:
        """Test that the supplied error text appears in the warning block."""
        error = RuntimeError("Proxy refused connection (HTTP 403)")
        record = synthesize("https://example.com/blog/post-1", error, now=FIXED_NOW)

        assert "Latest Blog Post from example.com" in record.content
        assert EXTRACTION_WARNING_CLASS in record.content
        assert "Proxy refused connection (HTTP 403)" in record.content

    def test_blank_error_uses_generic_reason(self) -> None:
        """Test that an error without a message falls back to a generic reason."""
        record = synthesize("https://example.com/shop/item", RuntimeError(), now=FIXED_NOW)
        assert GENERIC_REASONS["product"] in record.content
        assert "Product Information from example.com" in record.content

    def test_error_text_is_escaped(self) -> None:
        """Test that markup in an error message is escaped."""
        record = synthesize("https://example.com/", ValueError("<script>"), now=FIXED_NOW)
        assert "<script>" not in record.content
        assert "&lt;script&gt;" in record.content

    def test_deterministic(self) -> None:
        """Test that the same inputs produce the same record."""
        first = synthesize("https://example.com/news/a", now=FIXED_NOW)
        second = synthesize("https://example.com/news/a", now=FIXED_NOW)
        assert first == second
        assert "2024-05-17 09:30:00 UTC" in first.content

    def test_general_template_mentions_url(self) -> None:
        """Test that the general template quotes the requested URL."""
        record = synthesize("https://example.com/about", now=FIXED_NOW)
        assert "https://example.com/about" in record.content
        assert record.content.startswith("<h1>Content from example.com</h1>")
