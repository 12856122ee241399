"""Paginated PDF rendering of extracted content with PyMuPDF.

Content is laid out top to bottom on fixed-size A4 pages. Tables are drawn
first as grid blocks and removed from the working tree; then every heading is
laid out and removed, and finally the paragraphs and list items. A new page
(with the decorative header band repainted) starts whenever the next line
or row would cross the bottom margin. Once layout is done every page gets a
"Page X of N" footer.
"""

import logging

import fitz  # PyMuPDF
from lxml import html as lxml_html
from lxml.html import HtmlElement

from document_record import DocumentRecord

logger = logging.getLogger(__name__)

# A4 in points
PAGE_WIDTH = 595
PAGE_HEIGHT = 842
MARGIN = 57
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
BOTTOM_LIMIT = PAGE_HEIGHT - MARGIN

BAND_COLORS = ((1.0, 0.0, 0.43), (0.0, 1.0, 0.53), (0.0, 0.83, 1.0))
FIRST_PAGE_BAND_HEIGHT = 42
CONTINUATION_BAND_HEIGHT = 28
CONTINUATION_TOP = 100
FOOTER_TOP = PAGE_HEIGHT - 28

FONT_REGULAR = "helv"
FONT_BOLD = "hebo"
TEXT_COLOR = (0, 0, 0)
HEADER_FILL = (0.85, 0.96, 1.0)
STRIPE_FILL = (0.95, 0.95, 0.95)

TITLE_FONT_SIZE = 20
META_FONT_SIZE = 10
TABLE_LABEL_FONT_SIZE = 14
TABLE_FONT_SIZE = 10
BODY_FONT_SIZE = 10
FOOTER_FONT_SIZE = 8

TABLE_ROW_HEIGHT = 22
HEADER_CELL_CHARS = 20
BODY_CELL_CHARS = 25
HEADING_LINE_HEIGHT = 22
BODY_LINE_HEIGHT = 16

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
BODY_TAGS = ("p", "li")


def heading_font_size(level: int) -> int:
    """Font size for an h1-h6 heading; smaller for deeper levels, floor 8."""
    return max(8, 18 - level * 2)


def wrap_text(text: str, fontsize: float, fontname: str = FONT_REGULAR,
              width: float = CONTENT_WIDTH) -> list[str]:
    """Greedy word wrap using the font's real glyph widths."""
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if fitz.get_text_length(candidate, fontname=fontname, fontsize=fontsize) <= width:
            current = candidate
            continue
        if current:
            lines.append(current)
        # Hard-split words wider than the column
        while fitz.get_text_length(word, fontname=fontname, fontsize=fontsize) > width and len(word) > 1:
            cut = len(word) - 1
            while cut > 1 and fitz.get_text_length(word[:cut], fontname=fontname, fontsize=fontsize) > width:
                cut -= 1
            lines.append(word[:cut])
            word = word[cut:]
        current = word
    if current:
        lines.append(current)
    return lines


class PageLayout:
    """Cursor over a growing PDF document."""

    def __init__(self) -> None:
        self.doc = fitz.open()
        self.page = None
        self.y = 0.0

    @property
    def page_count(self) -> int:
        return self.doc.page_count

    def _paint_band(self, band_height: float) -> None:
        for index, color in enumerate(BAND_COLORS):
            top = index * band_height
            self.page.draw_rect(
                fitz.Rect(0, top, PAGE_WIDTH, top + band_height),
                color=None,
                fill=color,
            )

    def new_page(self, first: bool = False) -> None:
        self.page = self.doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        band = FIRST_PAGE_BAND_HEIGHT if first else CONTINUATION_BAND_HEIGHT
        self._paint_band(band)
        self.y = 3 * band + 30 if first else CONTINUATION_TOP

    def ensure_space(self, height: float) -> None:
        if self.page is None:
            self.new_page(first=True)
        elif self.y + height > BOTTOM_LIMIT:
            self.new_page()

    def text(self, x: float, text: str, fontsize: float,
             fontname: str = FONT_REGULAR, color: tuple = TEXT_COLOR) -> None:
        self.page.insert_text(
            fitz.Point(x, self.y),
            text,
            fontsize=fontsize,
            fontname=fontname,
            color=color,
        )

    def paragraph(self, text: str, fontsize: float, line_height: float,
                  fontname: str = FONT_REGULAR, after: float = 0) -> None:
        for line in wrap_text(text, fontsize, fontname):
            self.ensure_space(line_height)
            self.text(MARGIN, line, fontsize, fontname)
            self.y += line_height
        self.y += after

    def stamp_footers(self) -> None:
        total = self.doc.page_count
        third = PAGE_WIDTH / 3
        for number, page in enumerate(self.doc, start=1):
            for index, color in enumerate(BAND_COLORS):
                page.draw_rect(
                    fitz.Rect(index * third, FOOTER_TOP, (index + 1) * third, PAGE_HEIGHT),
                    color=None,
                    fill=color,
                )
            label = f"Page {number} of {total}"
            width = fitz.get_text_length(label, fontname=FONT_BOLD, fontsize=FOOTER_FONT_SIZE)
            page.insert_text(
                fitz.Point((PAGE_WIDTH - width) / 2, FOOTER_TOP + 17),
                label,
                fontsize=FOOTER_FONT_SIZE,
                fontname=FONT_BOLD,
                color=(1, 1, 1),
            )

    def to_bytes(self) -> bytes:
        try:
            return self.doc.tobytes()
        finally:
            self.doc.close()


def _table_rows(table: HtmlElement) -> list[list[str]]:
    rows = []
    for row in table.iter("tr"):
        if next(row.iterancestors("table")) is not table:
            continue
        cells = [cell.text_content().strip() for cell in row if cell.tag in ("th", "td")]
        if cells:
            rows.append(cells)
    return rows


def _draw_table(layout: PageLayout, number: int, rows: list[list[str]]) -> None:
    columns = max(len(row) for row in rows)
    col_width = CONTENT_WIDTH / columns
    table_height = len(rows) * TABLE_ROW_HEIGHT + 30

    layout.ensure_space(table_height if table_height < BOTTOM_LIMIT - CONTINUATION_TOP else 30)
    layout.text(MARGIN, f"Table {number}", TABLE_LABEL_FONT_SIZE, FONT_BOLD)
    layout.y += 20

    for index, row in enumerate(rows):
        layout.ensure_space(TABLE_ROW_HEIGHT)
        is_header = index == 0
        limit = HEADER_CELL_CHARS if is_header else BODY_CELL_CHARS
        fill = HEADER_FILL if is_header else (STRIPE_FILL if index % 2 == 0 else None)
        for column, cell in enumerate(row):
            x = MARGIN + column * col_width
            if fill is not None:
                layout.page.draw_rect(
                    fitz.Rect(x, layout.y - 15, x + col_width, layout.y - 15 + TABLE_ROW_HEIGHT),
                    color=None,
                    fill=fill,
                )
            layout.text(
                x + 4,
                cell[:limit],
                TABLE_FONT_SIZE,
                FONT_BOLD if is_header else FONT_REGULAR,
            )
        layout.y += TABLE_ROW_HEIGHT

    layout.y += 20


def _outermost(root: HtmlElement, *tags: str) -> list[HtmlElement]:
    """Elements with the given tags that have no ancestor with those tags."""
    return [
        element
        for element in root.iter(*tags)
        if not any(ancestor.tag in tags for ancestor in element.iterancestors())
    ]


def render_pdf(record: DocumentRecord) -> bytes:
    """Lay a record out as a paginated PDF.

    Args:
        record: The record to render. Not modified; its content is parsed
            into a private tree.

    Returns:
        PDF file contents.
    """
    layout = PageLayout()
    layout.ensure_space(0)

    layout.paragraph(record.title, TITLE_FONT_SIZE, 26, FONT_BOLD, after=4)
    for line in (f"Source: {record.source_url}", f"Extracted: {record.extracted_label}"):
        layout.paragraph(line, META_FONT_SIZE, 14)
    layout.y += 16

    if record.content and record.content.strip():
        root = lxml_html.fragment_fromstring(record.content, create_parent="div")

        # Nested tables are drawn as rows of their outer table
        drawn = 0
        for table in _outermost(root, "table"):
            rows = _table_rows(table)
            if rows:
                drawn += 1
                _draw_table(layout, drawn, rows)
            table.drop_tree()

        # Headings pass, then paragraphs and list items
        for heading in _outermost(root, *HEADING_TAGS):
            text = " ".join(heading.text_content().split())
            if text:
                size = heading_font_size(int(heading.tag[1]))
                layout.paragraph(text, size, max(HEADING_LINE_HEIGHT - (18 - size), 14), FONT_BOLD, after=6)
            heading.drop_tree()

        for element in _outermost(root, *BODY_TAGS):
            text = " ".join(element.text_content().split())
            if text:
                layout.paragraph(text, BODY_FONT_SIZE, BODY_LINE_HEIGHT, after=4)

    layout.stamp_footers()
    logger.info("Laid out %s on %d pages", record.source_url, layout.page_count)
    return layout.to_bytes()
