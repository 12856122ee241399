"""Main-content identification for parsed HTML documents.

The locator scores candidate regions of an lxml tree in two passes: a
selector pass that trusts semantic and common container markup, and a
generic density pass that catches unmarked content. Both passes produce an
explicit candidate list that is sorted once; ties go to the candidate that
was encountered first (selector order, then document order).
"""

import html
import logging
from dataclasses import dataclass

from cssselect import SelectorError
from lxml import html as lxml_html
from lxml.html import HtmlElement

logger = logging.getLogger(__name__)

# Ordered roughly from most to least semantically specific
CONTENT_SELECTORS = (
    "main",
    "article",
    '[role="main"]',
    ".content",
    ".main-content",
    "#content",
    "#main",
    ".post-content",
    ".entry-content",
    ".article-content",
    ".page-content",
    "main article",
    ".container .row",
    ".wrapper",
    ".page",
    ".story",
    ".text-content",
    ".prose",
)

GENERIC_EXCLUDED_TAGS = frozenset(
    {"script", "style", "nav", "header", "footer", "aside", "noscript"}
)

# Empirical thresholds, kept verbatim
SELECTOR_MIN_TEXT = 200
SELECTOR_CONFIDENT_TEXT = 500
GENERIC_MIN_TEXT = 300
GENERIC_MIN_RATIO = 0.3


@dataclass(frozen=True)
class CandidateRegion:
    """A subtree considered as the main content of a page."""

    element: HtmlElement
    text_length: int
    text_to_markup_ratio: float
    selector: str | None = None
    order: int = 0


def text_length(element: HtmlElement) -> int:
    """Length of the element's visible text, whitespace-trimmed."""
    return len(element.text_content().strip())


def inner_markup(element: HtmlElement) -> str:
    """Serialize the children of an element (its innerHTML)."""
    parts = [html.escape(element.text, quote=False)] if element.text else []
    parts.extend(lxml_html.tostring(child, encoding="unicode") for child in element)
    return "".join(parts)


def text_to_markup_ratio(element: HtmlElement, length: int | None = None) -> float:
    if length is None:
        length = text_length(element)
    return length / (len(inner_markup(element)) or 1)


def _best(candidates: list[CandidateRegion]) -> CandidateRegion | None:
    if not candidates:
        return None
    ranked = sorted(candidates, key=lambda c: (-c.text_length, c.order))
    return ranked[0]


def score_selector_candidates(tree: HtmlElement) -> list[CandidateRegion]:
    """Collect every selector match with more than SELECTOR_MIN_TEXT chars.

    Args:
        tree: Parsed document (or any subtree) to search.

    Returns:
        Eligible candidates in encounter order.
    """
    candidates: list[CandidateRegion] = []
    order = 0
    for selector in CONTENT_SELECTORS:
        try:
            matches = tree.cssselect(selector)
        except SelectorError as e:
            logger.debug("Skipping unsupported selector %r: %s", selector, e)
            continue

        for element in matches:
            length = text_length(element)
            if length > SELECTOR_MIN_TEXT:
                candidates.append(
                    CandidateRegion(
                        element=element,
                        text_length=length,
                        text_to_markup_ratio=text_to_markup_ratio(element, length),
                        selector=selector,
                        order=order,
                    )
                )
            order += 1

    return candidates


def score_generic_candidates(tree: HtmlElement) -> list[CandidateRegion]:
    """Collect dense text blocks anywhere in the tree.

    An element qualifies when its text is longer than GENERIC_MIN_TEXT and at
    least GENERIC_MIN_RATIO of its inner markup is text. Excluded tags are
    skipped themselves, but their descendants are still scored.
    """
    candidates: list[CandidateRegion] = []
    for order, element in enumerate(tree.iter()):
        if not isinstance(element.tag, str):
            continue
        if element.tag.lower() in GENERIC_EXCLUDED_TAGS:
            continue

        length = text_length(element)
        if length <= GENERIC_MIN_TEXT:
            continue

        ratio = text_to_markup_ratio(element, length)
        if ratio >= GENERIC_MIN_RATIO:
            candidates.append(
                CandidateRegion(
                    element=element,
                    text_length=length,
                    text_to_markup_ratio=ratio,
                    order=order,
                )
            )

    return candidates


def _body_of(tree: HtmlElement) -> HtmlElement:
    if isinstance(tree.tag, str) and tree.tag.lower() == "body":
        return tree
    body = tree.find(".//body")
    return body if body is not None else tree


def locate(tree: HtmlElement) -> CandidateRegion:
    """Pick the region of a document most likely to hold its main content.

    Args:
        tree: Parsed document root.

    Returns:
        The best candidate region. Falls back to the document body when
        neither pass finds an eligible region.
    """
    best = _best(score_selector_candidates(tree))
    if best is not None:
        logger.debug(
            "Selector pass picked %r (%d chars)", best.selector, best.text_length
        )

    if best is None or best.text_length < SELECTOR_CONFIDENT_TEXT:
        logger.debug("Searching for largest text block")
        generic = _best(score_generic_candidates(tree))
        if generic is not None:
            logger.debug(
                "Using largest text block <%s> with %d chars (ratio %.2f)",
                generic.element.tag,
                generic.text_length,
                generic.text_to_markup_ratio,
            )
            best = generic

    if best is None:
        logger.debug("No candidate region qualified, using body")
        body = _body_of(tree)
        length = text_length(body)
        best = CandidateRegion(
            element=body,
            text_length=length,
            text_to_markup_ratio=text_to_markup_ratio(body, length),
        )

    return best
