"""
Cursor and pagination controller.

`Paginator.ensure_space` is the only place a page break is decided. Every
block renderer asks it for the height it is about to draw, then draws at
`cursor.y` and moves the cursor down by what it used.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable

from reportlab.pdfbase.pdfmetrics import stringWidth

from .pages import BLACK, Page, PageStack
from .text import FONT_NAME, elide_to_width, fit_font_size

logger = logging.getLogger(__name__)

# Keep content above the footer (page number + TREC line)
FOOTER_BUFFER = 100

# Body geometry (points, US Letter)
CONTENT_X = 130                 # text column start, right of the checkboxes
CHECKBOX_SIZE = 14
CHECKBOX_COUNT = 4
CHECKBOX_MIN_SPACING = 6
CHECKBOX_MAX_SPACING = 14
CHECKBOX_LABELS = ("I", "NI", "NP", "D")

# Page template furniture
HEADER_SIZE = 12
LEGEND_SIZE = 11
LEGEND_TEXT = "I=Inspected    NI=Not Inspected    NP=Not Present    D=Deficient"
LEGEND_BOX_HEIGHT = 18
LEGEND_KEY_SIZE = 10
BODY_CONTENT_TOP = 120          # content starts this far below the top edge

TemplateFn = Callable[[Page], float]


@dataclass(eq=False)
class Cursor:
    page: Page
    y: float


@dataclass(frozen=True)
class BodyGeometry:
    page_width: float
    page_height: float
    margin: float

    @property
    def checkbox_xs(self) -> list[float]:
        available = max(40, CONTENT_X - self.margin - 10)
        spacing = math.floor((available - CHECKBOX_COUNT * CHECKBOX_SIZE) / (CHECKBOX_COUNT - 1))
        spacing = min(CHECKBOX_MAX_SPACING, max(CHECKBOX_MIN_SPACING, spacing))
        return [self.margin + i * (CHECKBOX_SIZE + spacing) for i in range(CHECKBOX_COUNT)]

    @property
    def content_x(self) -> float:
        return max(CONTENT_X, self.checkbox_xs[-1] + CHECKBOX_SIZE + 12)

    @property
    def content_right(self) -> float:
        return self.page_width - self.margin

    @property
    def content_width(self) -> float:
        return self.content_right - self.content_x


def draw_body_template(page: Page, header_text: str, margin: float) -> float:
    """
    Report identification line, the I/NI/NP/D legend and the bordered key box
    whose labels sit over the checkbox columns. Returns where content may start.
    """
    geo = BodyGeometry(page.width, page.height, margin)
    usable_w = page.width - 2 * margin

    hdr_size = fit_font_size(header_text, FONT_NAME, HEADER_SIZE, usable_w, min_size=7)
    page.draw_text(margin, page.height - 40, elide_to_width(header_text, FONT_NAME, hdr_size, usable_w),
                   FONT_NAME, hdr_size)

    legend_size = fit_font_size(LEGEND_TEXT, FONT_NAME, LEGEND_SIZE, usable_w, min_size=7)
    page.draw_text(margin, page.height - 60, LEGEND_TEXT, FONT_NAME, legend_size)

    box_y = page.height - 95
    page.draw_rect(margin, box_y, usable_w, LEGEND_BOX_HEIGHT, fill=(1, 1, 1), stroke=BLACK, line_width=2)
    key_y = box_y + round((LEGEND_BOX_HEIGHT - LEGEND_KEY_SIZE) / 2) + 1
    for x, label in zip(geo.checkbox_xs, CHECKBOX_LABELS):
        lw = stringWidth(label, FONT_NAME, LEGEND_KEY_SIZE)
        page.draw_text(x + CHECKBOX_SIZE / 2 - lw / 2, key_y, label, FONT_NAME, LEGEND_KEY_SIZE)
    return page.height - BODY_CONTENT_TOP


class Paginator:
    """Owns page creation for one page stack; the sole page-break authority."""

    def __init__(self, stack: PageStack, template: TemplateFn, footer_buffer: float = FOOTER_BUFFER):
        self.stack = stack
        self.template = template
        self.footer_buffer = footer_buffer

    def start(self) -> Cursor:
        page = self.stack.add_page()
        return Cursor(page, self.template(page))

    def new_page(self, cursor: Cursor) -> Page:
        page = self.stack.add_page()
        cursor.page = page
        cursor.y = self.template(page)
        logger.debug("page %d started, content top %.1f", len(self.stack), cursor.y)
        return page

    def fits(self, cursor: Cursor, needed: float) -> bool:
        return cursor.y - needed >= self.footer_buffer

    def ensure_space(self, cursor: Cursor, needed: float) -> Page:
        if not self.fits(cursor, needed):
            self.new_page(cursor)
            if not self.fits(cursor, needed):
                logger.warning(
                    "block of %.1fpt exceeds the usable page height (%.1fpt); it will overlap the footer",
                    needed, cursor.y - self.footer_buffer,
                )
        return cursor.page
