"""Plain-text payload to DocumentRecord reconstruction.

Text relays return extracted page text with no markup. This module rebuilds
a minimal structure from it: a title, short capitalized lines near the top
as headings, and everything else as paragraphs.
"""

import html
import logging
import re

from document_record import NO_TITLE, DocumentRecord

logger = logging.getLogger(__name__)

TITLE_SEARCH_LINES = 5
TITLE_MIN_LENGTH = 10
TITLE_MAX_LENGTH = 100
HEADING_SEARCH_LINES = 10
HEADING_MAX_LENGTH = 100
HEADING_PATTERN = re.compile(r"^[A-Z][^.!?]*$")


def find_title(lines: list[str]) -> str:
    """Pick a title from the first few non-blank lines."""
    for line in lines[:TITLE_SEARCH_LINES]:
        candidate = line.strip()
        if (
            TITLE_MIN_LENGTH < len(candidate) < TITLE_MAX_LENGTH
            and "http" not in candidate
        ):
            return candidate
    return NO_TITLE


def is_heading(line: str, position: int) -> bool:
    """Whether a non-blank line at position looks like a section heading."""
    return (
        position < HEADING_SEARCH_LINES
        and len(line) < HEADING_MAX_LENGTH
        and HEADING_PATTERN.match(line) is not None
    )


def text_to_html(text: str) -> str:
    """Rebuild headings and paragraphs from plain text.

    Blank lines close the open paragraph. Position for the heading rule
    counts non-blank lines only.
    """
    parts: list[str] = []
    paragraph: list[str] = []

    def close_paragraph() -> None:
        if paragraph:
            parts.append(f"<p>{html.escape(' '.join(paragraph))}</p>")
            paragraph.clear()

    position = 0
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            close_paragraph()
            continue

        if is_heading(line, position):
            close_paragraph()
            parts.append(f"<h2>{html.escape(line)}</h2>")
        else:
            paragraph.append(line)
        position += 1

    close_paragraph()
    return "\n".join(parts)


def parse_text(text: str, url: str) -> DocumentRecord:
    """Build a DocumentRecord from a plain-text payload.

    Args:
        text: Extracted page text.
        url: The page URL the text belongs to.

    Returns:
        DocumentRecord with reconstructed markup and no images.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    title = find_title(lines)
    content = text_to_html(text)
    logger.info(
        "Rebuilt %d chars of markup from %d text lines for %s",
        len(content),
        len(lines),
        url,
    )
    return DocumentRecord(title=title, source_url=url, content=content)
