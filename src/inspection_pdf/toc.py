"""
Table of contents pages.

The page-number column has a fixed width and section labels are elided to
the space left of it, so the number of TOC pages depends only on the
sections (and line items), never on the numbers printed. The assembler
relies on that to learn the TOC length from a dry run.
"""
from __future__ import annotations

import logging
from typing import Sequence

from reportlab.lib.pagesizes import LETTER
from reportlab.pdfbase.pdfmetrics import stringWidth

from .layout import Paginator
from .models import Section
from .options import ReportOptions
from .pages import Color, Page, PageStack
from .text import FONT_BOLD, FONT_NAME, alpha_label, clean_text, elide_to_width, fit_font_size, to_roman

logger = logging.getLogger(__name__)

TOC_MARGIN = 50
TOC_TITLE_Y = 60          # title baseline, below the top edge
TOC_CONTENT_TOP = 100
NUMBER_COLUMN = 40        # reserved for the right-aligned page number
LEADER_MIN = 12
ENTRY_GAP = 6
ITEM_INDENT = 20
ITEM_COLOR: Color = (0.4, 0.4, 0.4)
BULLET = "\u2022"


def section_label(section: Section, index: int) -> str:
    return f"{to_roman(index + 1)}. {clean_text(section.name).upper()}"


def section_key(index: int) -> str:
    """Named destination of a section's first body page."""
    return f"section-{index}"


def _toc_template(options: ReportOptions):
    def draw(page: Page) -> float:
        width = page.width - 2 * TOC_MARGIN
        size = fit_font_size(options.title, FONT_BOLD, options.title_font_size, width)
        title = elide_to_width(options.title, FONT_BOLD, size, width)
        tw = stringWidth(title, FONT_BOLD, size)
        page.draw_text((page.width - tw) / 2, page.height - TOC_TITLE_Y, title, FONT_BOLD, size)
        return page.height - TOC_CONTENT_TOP
    return draw


def _draw_entry(page: Page, y: float, label: str, number: str, size: float, key: str) -> None:
    left = TOC_MARGIN
    right = page.width - TOC_MARGIN
    label = elide_to_width(label, FONT_BOLD, size, right - left - NUMBER_COLUMN - LEADER_MIN)
    page.draw_text(left, y, label, FONT_BOLD, size)

    lead_x0 = left + stringWidth(label, FONT_BOLD, size) + 4
    lead_x1 = right - NUMBER_COLUMN + 4
    dot_w = stringWidth(".", FONT_NAME, size)
    dots = int((lead_x1 - lead_x0) / dot_w) if dot_w else 0
    if dots > 0:
        page.draw_text(lead_x0, y, "." * dots, FONT_NAME, size)

    num = elide_to_width(number, FONT_NAME, size, NUMBER_COLUMN)
    page.draw_text(right - stringWidth(num, FONT_NAME, size), y, num, FONT_NAME, size)
    page.link_dest(key, left, y - 3, right, y + size)


def build_toc(sections: Sequence[Section], page_numbers: Sequence[int], options: ReportOptions,
              pagesize: tuple[float, float] = LETTER) -> PageStack:
    """Lay out one TOC entry per section; page_numbers[i] is printed for sections[i]."""
    if len(page_numbers) != len(sections):
        raise ValueError("one page number per section is required")
    stack = PageStack(pagesize)
    pag = Paginator(stack, _toc_template(options))
    cursor = pag.start()
    size = options.font_size + 1
    adv = options.line_height + ENTRY_GAP

    for i, (sec, num) in enumerate(zip(sections, page_numbers)):
        page = pag.ensure_space(cursor, adv)
        _draw_entry(page, cursor.y - size, section_label(sec, i), str(num), size, section_key(i))
        cursor.y -= adv

        if options.include_line_items:
            item_size = max(options.font_size - 1, 6)
            max_w = page.width - 2 * TOC_MARGIN - ITEM_INDENT - NUMBER_COLUMN
            for j, li in enumerate(sec.line_items):
                page = pag.ensure_space(cursor, options.line_height)
                text = elide_to_width(f"{BULLET} {alpha_label(j)}. {clean_text(li.name)}",
                                      FONT_NAME, item_size, max_w)
                page.draw_text(TOC_MARGIN + ITEM_INDENT, cursor.y - item_size, text, FONT_NAME, item_size, ITEM_COLOR)
                cursor.y -= options.line_height
            cursor.y -= ENTRY_GAP / 2

    logger.debug("table of contents: %d entries on %d page(s)", len(sections), len(stack))
    return stack
