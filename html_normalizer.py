"""HTML normalization for extracted content regions.

This module turns the content region chosen by the locator into a cleaned,
structure-preserving fragment: boilerplate subtrees are dropped, surviving
structural elements are tagged with semantic class markers, and image
metadata is collected. The caller's tree is never modified; all work happens
on a copy.
"""

import copy
import logging
import re
from functools import partial
from urllib.parse import urljoin, urlparse

from cssselect import SelectorError
from lxml import etree
from lxml import html as lxml_html
from lxml.html import HtmlElement
from lxml.html.clean import Cleaner

from content_locator import inner_markup
from document_record import AUTO_SIZE, ImageInfo

logger = logging.getLogger(__name__)

UNWANTED_SELECTORS = (
    "script",
    "style",
    "nav",
    "header",
    "footer",
    ".sidebar",
    ".menu",
    ".navigation",
    ".ads",
    ".advertisement",
    ".social-media",
    ".comments",
    ".related-posts",
    ".popup",
    ".modal",
    ".cookie-notice",
    ".newsletter",
    ".banner",
    ".header",
    ".footer",
    ".metadata",
    ".author-info",
    ".tags",
    ".categories",
    ".share-buttons",
    '[class*="ad"]',
    '[id*="ad"]',
    '[class*="sidebar"]',
    '[class*="menu"]',
    '[class*="nav"]',
    '[id*="sidebar"]',
    '[id*="menu"]',
    '[id*="nav"]',
)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
TABLE_CAPTION_TEXT = "Extracted Table Data"
EXTERNAL_LINK_MARKER = "\U0001f517"
CONTENT_DIV_MIN_TEXT = 50

# Cleaner drops comments; this covers the plain-copy fallback in _isolated_copy
COMMENT_PATTERN = re.compile(r"<!--.*?-->", re.DOTALL)
WHITESPACE_PATTERN = re.compile(r"\s+")
DIMENSION_PATTERN = re.compile(r"^\s*(\d+)")


def _make_cleaner() -> Cleaner:
    return Cleaner(
        scripts=True,
        javascript=True,
        comments=True,
        style=True,
        inline_style=True,
        links=False,
        meta=True,
        page_structure=False,
        processing_instructions=True,
        forms=False,
        remove_unknown_tags=False,
        safe_attrs_only=False,
    )


def _isolated_copy(region: HtmlElement) -> HtmlElement:
    """Return a cleaned deep copy of the region.

    Cleaner.clean_html deep-copies element input before cleaning, so the
    caller's tree stays untouched either way.
    """
    try:
        return _make_cleaner().clean_html(region)
    except Exception as e:
        logger.warning("Cleaner failed on region: %s, using plain copy", e)
        duplicate = copy.deepcopy(region)
        duplicate.tail = None
        return duplicate


def _classes(element: HtmlElement) -> list[str]:
    return (element.get("class") or "").split()


def _add_marker(element: HtmlElement, marker: str) -> None:
    classes = _classes(element)
    if marker not in classes:
        classes.append(marker)
        element.set("class", " ".join(classes))


def remove_unwanted(root: HtmlElement) -> int:
    """Drop every subtree matching UNWANTED_SELECTORS below root.

    Args:
        root: Region copy to prune in place.

    Returns:
        Number of subtrees removed.
    """
    removed = 0
    for selector in UNWANTED_SELECTORS:
        try:
            matches = root.cssselect(selector)
        except SelectorError as e:
            logger.debug("Skipping invalid selector %r: %s", selector, e)
            continue

        for element in matches:
            # The region itself is the container being normalized
            if element is root or element.getparent() is None:
                continue
            element.drop_tree()
            removed += 1

    return removed


def _decorate_tables(root: HtmlElement) -> None:
    for table in list(root.iterdescendants("table")):
        _add_marker(table, "extracted-table")
        for th in table.iterdescendants("th"):
            _add_marker(th, "table-header")
        for td in table.iterdescendants("td"):
            _add_marker(td, "table-cell")

        has_caption = table.find(".//caption") is not None
        rows = table.xpath("./tr|./thead/tr|./tbody/tr|./tfoot/tr")
        if not has_caption and rows:
            caption = lxml_html.Element("caption")
            caption.set("class", "table-caption")
            caption.text = TABLE_CAPTION_TEXT
            table.insert(0, caption)


def _decorate_lists(root: HtmlElement) -> None:
    for element in root.iterdescendants("ul", "ol"):
        _add_marker(element, "extracted-list")
        for item in element.iterdescendants("li"):
            _add_marker(item, "list-item")


def _decorate_links(root: HtmlElement, page_url: str | None) -> None:
    page_host = urlparse(page_url).hostname if page_url else None

    for link in list(root.iterdescendants("a")):
        _add_marker(link, "extracted-link")

        href = (link.get("href") or "").strip()
        if not href:
            continue
        try:
            target = urljoin(page_url, href) if page_url else href
            link_host = urlparse(target).hostname
        except ValueError as e:
            logger.debug("Unparseable link href %r: %s", href, e)
            continue

        if link_host and link_host != page_host:
            if len(link):
                last = link[-1]
                last.tail = (last.tail or "") + " "
            else:
                link.text = (link.text or "") + " "
            indicator = etree.SubElement(link, "span")
            indicator.set("class", "external-indicator")
            indicator.text = EXTERNAL_LINK_MARKER


def _decorate_images(root: HtmlElement) -> None:
    for img in list(root.iterdescendants("img")):
        _add_marker(img, "extracted-image")

        alt = img.get("alt")
        if not alt or img.getparent() is None:
            continue

        following = img.getnext()
        if following is not None and "image-caption" in _classes(following):
            continue

        caption = lxml_html.Element("div")
        caption.set("class", "image-caption")
        caption.text = alt
        caption.tail, img.tail = img.tail, None
        img.addnext(caption)


def _decorate_divs(root: HtmlElement) -> None:
    for div in root.iterdescendants("div"):
        has_children = len(div) > 0
        if has_children or len(div.text_content().strip()) > CONTENT_DIV_MIN_TEXT:
            _add_marker(div, "content-div")


def _mark_all(root: HtmlElement, marker: str, *tags: str) -> None:
    for element in root.iterdescendants(*tags):
        _add_marker(element, marker)


def decorate(root: HtmlElement, page_url: str | None = None) -> None:
    """Tag structural elements below root with semantic class markers.

    Text content is left unchanged apart from inserted table captions,
    image captions, and external-link indicators. A step that fails on
    malformed markup is skipped; the others still run.
    """
    steps = (
        ("tables", partial(_decorate_tables, root)),
        ("lists", partial(_decorate_lists, root)),
        ("headings", partial(_mark_all, root, "extracted-heading", *HEADING_TAGS)),
        ("paragraphs", partial(_mark_all, root, "extracted-paragraph", "p")),
        ("links", partial(_decorate_links, root, page_url)),
        ("images", partial(_decorate_images, root)),
        ("code", partial(_mark_all, root, "extracted-code", "pre", "code")),
        ("quotes", partial(_mark_all, root, "extracted-quote", "blockquote")),
        ("divs", partial(_decorate_divs, root)),
    )
    for name, step in steps:
        try:
            step()
        except Exception as e:
            logger.warning("Skipping %s decoration: %s", name, e)


def _dimension(value: str | None) -> int | str:
    if not value:
        return AUTO_SIZE
    match = DIMENSION_PATTERN.match(value)
    if not match or int(match.group(1)) == 0:
        return AUTO_SIZE
    return int(match.group(1))


def extract_images(root: HtmlElement, page_url: str | None = None) -> list[ImageInfo]:
    """Collect metadata for every non-inline image below root, in order."""
    images: list[ImageInfo] = []
    for img in root.iter("img"):
        src = (img.get("src") or "").strip()
        if not src or src.lower().startswith("data:"):
            continue
        if page_url:
            try:
                src = urljoin(page_url, src)
            except ValueError:
                pass
        images.append(
            ImageInfo(
                src=src,
                alt=img.get("alt") or "",
                width=_dimension(img.get("width")),
                height=_dimension(img.get("height")),
            )
        )
    return images


def serialize_fragment(root: HtmlElement) -> str:
    """Serialize root's children with comments removed and whitespace collapsed."""
    content = inner_markup(root)
    content = COMMENT_PATTERN.sub("", content)
    content = WHITESPACE_PATTERN.sub(" ", content)
    return content.strip()


def normalize(
    region: HtmlElement,
    page_url: str | None = None,
) -> tuple[str, list[ImageInfo]]:
    """Normalize a content region into a cleaned fragment plus images.

    Steps run in a fixed order: copy, remove boilerplate, decorate,
    serialize, collect images. Removal precedes decoration so that nothing
    about to be dropped is decorated.

    Args:
        region: Element chosen by the content locator. Not modified.
        page_url: URL of the page, used to resolve links and image sources.

    Returns:
        Tuple of (serialized fragment, image metadata list). Returns an
        empty fragment rather than raising when the region cannot be
        processed.
    """
    try:
        root = _isolated_copy(region)
    except Exception as e:
        logger.warning("Could not copy content region: %s", e)
        return "", []

    try:
        removed = remove_unwanted(root)
        logger.debug("Removed %d boilerplate subtrees", removed)
    except Exception as e:
        logger.warning("Boilerplate removal failed: %s", e)

    decorate(root, page_url)

    try:
        fragment = serialize_fragment(root)
    except Exception as e:
        logger.warning("Fragment serialization failed: %s", e)
        fragment = ""

    try:
        images = extract_images(root, page_url)
    except Exception as e:
        logger.warning("Image extraction failed: %s", e)
        images = []

    logger.info(
        "Normalized region <%s> into %d chars with %d images",
        region.tag,
        len(fragment),
        len(images),
    )
    return fragment, images
