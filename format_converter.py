"""Renderers that turn a DocumentRecord into exportable payloads.

Every renderer is a pure read of the record: markdown (via markdownify's
tree walk), plain text, a Word-compatible styled document, and a paginated
PDF (see pdf_renderer). render() dispatches on OutputFormat and reports
renderer failures as ConversionError so callers can offer a retry.
"""

import html
import logging
import math
import re
from enum import Enum

from lxml import etree
from lxml import html as lxml_html
from markdownify import ATX, MarkdownConverter

from document_record import ContentStats, DocumentRecord
from pdf_renderer import render_pdf

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200

EXCESS_NEWLINES_PATTERN = re.compile(r"\n\s*\n\s*\n")
INLINE_WHITESPACE_PATTERN = re.compile(r"[ \t\r\f\v]+")

BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "br", "caption", "dd",
        "div", "dl", "dt", "figcaption", "figure", "footer", "h1", "h2", "h3",
        "h4", "h5", "h6", "header", "hr", "li", "main", "ol", "p", "pre",
        "section", "table", "tr", "ul",
    }
)


class ConversionError(Exception):
    """Raised when a record cannot be rendered into the requested format."""


class OutputFormat(str, Enum):
    """Formats a DocumentRecord can be rendered into."""

    MARKDOWN = "markdown"
    PAGINATED_DOCUMENT = "paginated-document"
    PLAIN_TEXT = "plain-text"
    STYLED_FRAGMENT = "styled-fragment"

    @property
    def media_type(self) -> str:
        return {
            OutputFormat.MARKDOWN: "text/markdown; charset=utf-8",
            OutputFormat.PAGINATED_DOCUMENT: "application/pdf",
            OutputFormat.PLAIN_TEXT: "text/plain; charset=utf-8",
            OutputFormat.STYLED_FRAGMENT: "application/msword",
        }[self]

    @property
    def extension(self) -> str:
        return {
            OutputFormat.MARKDOWN: "md",
            OutputFormat.PAGINATED_DOCUMENT: "pdf",
            OutputFormat.PLAIN_TEXT: "txt",
            OutputFormat.STYLED_FRAGMENT: "doc",
        }[self]


class BulletListConverter(MarkdownConverter):
    """markdownify converter that bullets ordered list items like unordered ones."""

    def convert_li(self, el, text, *args, **kwargs):
        parent = el.parent
        if parent is None or parent.name != "ol":
            return super().convert_li(el, text, *args, **kwargs)

        # markdownify numbers items whose parent is an <ol>
        parent.name = "ul"
        try:
            return super().convert_li(el, text, *args, **kwargs)
        finally:
            parent.name = "ol"


def html_to_markdown(fragment: str) -> str:
    """Convert a normalized markup fragment to markdown.

    markdownify walks the parsed tree, so nested inline tags inside
    headings, links and list items convert without corrupting each other.
    Ordered and unordered list items both become "- item", and text is
    passed through without markdown escaping. Afterwards runs of three or
    more newlines collapse to a blank line.
    """
    if not fragment or not fragment.strip():
        return ""

    converter = BulletListConverter(
        heading_style=ATX,
        bullets="-",
        escape_underscores=False,
        escape_asterisks=False,
    )
    markdown = converter.convert(fragment)
    markdown = EXCESS_NEWLINES_PATTERN.sub("\n\n", markdown)
    return markdown.strip()


def to_markdown(record: DocumentRecord) -> str:
    """Render a record as markdown with a metadata header and H1 title."""
    body = html_to_markdown(record.content)
    extracted = record.extracted_label
    return (
        "---\n"
        f"title: {record.title}\n"
        f"source: {record.source_url}\n"
        f"extracted: {extracted}\n"
        "---\n"
        "\n"
        f"# {record.title}\n"
        "\n"
        f"**Source:** {record.source_url}  \n"
        f"**Extracted:** {extracted}\n"
        "\n"
        "---\n"
        "\n"
        f"{body}\n"
    )


def strip_html(markup: str) -> str:
    """Reduce a markup fragment to its text.

    Block-level elements are separated by newlines; whitespace inside each
    line is collapsed and blank lines are dropped.

    Raises:
        ConversionError: If the fragment cannot be parsed.
    """
    if not markup or not markup.strip():
        return ""

    try:
        root = lxml_html.fragment_fromstring(markup, create_parent="div")
    except (etree.LxmlError, ValueError) as e:
        raise ConversionError(f"Could not parse content: {e}") from e

    for element in root.iterdescendants():
        if isinstance(element.tag, str) and element.tag.lower() in BLOCK_TAGS:
            element.text = "\n" + (element.text or "")
            element.tail = "\n" + (element.tail or "")

    lines = (
        INLINE_WHITESPACE_PATTERN.sub(" ", line).strip()
        for line in root.text_content().split("\n")
    )
    return "\n".join(line for line in lines if line)


def to_plain_text(record: DocumentRecord) -> str:
    return strip_html(record.content)


def stats(text: str) -> ContentStats:
    """Word count, character count and reading time for plain text.

    Reading time assumes WORDS_PER_MINUTE and rounds up; empty text reads
    in zero minutes.
    """
    words = [word for word in text.split() if word]
    return ContentStats(
        word_count=len(words),
        char_count=len(text),
        reading_time_minutes=math.ceil(len(words) / WORDS_PER_MINUTE),
    )


def to_styled_document(record: DocumentRecord) -> str:
    """Render a record as a Word-compatible HTML document."""
    title = html.escape(record.title)
    source = html.escape(record.source_url)
    return (
        '<html xmlns:o="urn:schemas-microsoft-com:office:office" '
        'xmlns:w="urn:schemas-microsoft-com:office:word">\n'
        "<head>\n"
        '<meta charset="utf-8">\n'
        f"<title>{title}</title>\n"
        "</head>\n"
        "<body>\n"
        f"<h1>{title}</h1>\n"
        f"<p><strong>Source:</strong> {source}</p>\n"
        f"<p><strong>Extracted:</strong> {record.extracted_label}</p>\n"
        "<hr>\n"
        f"<div>{record.content}</div>\n"
        "</body>\n"
        "</html>\n"
    )


_RENDERERS = {
    OutputFormat.MARKDOWN: to_markdown,
    OutputFormat.PAGINATED_DOCUMENT: render_pdf,
    OutputFormat.PLAIN_TEXT: to_plain_text,
    OutputFormat.STYLED_FRAGMENT: to_styled_document,
}


def render(record: DocumentRecord, fmt: OutputFormat | str) -> str | bytes:
    """Render a record into the requested output format.

    Args:
        record: The record to render. Not modified.
        fmt: An OutputFormat or its string value.

    Returns:
        Text payload, or PDF bytes for the paginated document.

    Raises:
        ValueError: If fmt is not a known format.
        ConversionError: If the renderer fails; the record is unaffected
            and the call can be retried.
    """
    output_format = OutputFormat(fmt)
    renderer = _RENDERERS[output_format]

    try:
        payload = renderer(record)
    except ConversionError:
        raise
    except Exception as e:
        logger.error(
            "Failed to render %s as %s: %s",
            record.source_url,
            output_format.value,
            e,
        )
        raise ConversionError(
            f"Failed to generate {output_format.value}: {e}"
        ) from e

    logger.info(
        "Rendered %s as %s (%d chars)",
        record.source_url,
        output_format.value,
        len(payload),
    )
    return payload
