"""Markup payload to DocumentRecord extraction.

This module parses a fetched HTML payload with lxml, locates the main
content region, normalizes it, and packages the result as a DocumentRecord.
Parsing is tolerant: malformed or empty markup yields an empty record
instead of an exception, and callers decide what to substitute.
"""

import logging

from lxml import etree
from lxml import html as lxml_html
from lxml.html import HtmlElement

from content_locator import locate
from document_record import NO_TITLE, DocumentRecord
from html_normalizer import normalize

logger = logging.getLogger(__name__)

EMPTY_DOCUMENT = "<html><head></head><body></body></html>"

_PARSER = lxml_html.HTMLParser(encoding="utf-8")


class ExtractionError(Exception):
    """Raised when a payload cannot be turned into a document tree."""


def parse_document(markup: str) -> HtmlElement:
    """Parse markup into a full document tree.

    The payload is handed to libxml2 as UTF-8 bytes so that documents
    carrying an XML encoding declaration parse like any other page.

    Args:
        markup: Raw HTML (or HTML-like text).

    Returns:
        Document root element; an empty document for blank input.

    Raises:
        ExtractionError: If libxml2 rejects the payload outright.
    """
    if not markup or not markup.strip():
        return lxml_html.document_fromstring(EMPTY_DOCUMENT)

    try:
        return lxml_html.document_fromstring(
            markup.encode("utf-8", errors="replace"), parser=_PARSER
        )
    except (etree.LxmlError, ValueError) as e:
        raise ExtractionError(f"Unparseable markup: {e}") from e


def extract_title(tree: HtmlElement) -> str:
    """Return the document <title> text, or NO_TITLE."""
    title = tree.find(".//title")
    if title is None:
        return NO_TITLE
    text = title.text_content().strip()
    return text or NO_TITLE


def parse_html(markup: str, url: str, include_images: bool = True) -> DocumentRecord:
    """Extract the main content of an HTML payload.

    Args:
        markup: Raw HTML fetched from the page (or a relay).
        url: The page URL the payload belongs to.
        include_images: Whether to collect image metadata.

    Returns:
        DocumentRecord whose content may be empty when nothing usable was
        found; never raises for malformed markup.
    """
    try:
        tree = parse_document(markup)
    except ExtractionError as e:
        logger.warning("Falling back to empty document for %s: %s", url, e)
        tree = lxml_html.document_fromstring(EMPTY_DOCUMENT)

    title = extract_title(tree)
    region = locate(tree)
    logger.info(
        "Located content region <%s> (%d chars) for %s",
        region.element.tag,
        region.text_length,
        url,
    )

    fragment, images = normalize(region.element, page_url=url)

    return DocumentRecord(
        title=title,
        source_url=url,
        content=fragment,
        images=tuple(images) if include_images else (),
    )
