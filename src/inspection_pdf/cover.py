"""Cover page: header photo, title, property address and the people involved."""
from __future__ import annotations

from reportlab.lib.pagesizes import LETTER
from reportlab.pdfbase.pdfmetrics import stringWidth

from .grid import scale_to_fit
from .layout import Paginator
from .media import ImageStore
from .models import Inspection, Person
from .options import ReportOptions
from .pages import Color, Page, PageStack
from .text import FONT_BOLD, FONT_NAME, TextMetrics, clean_text, fit_font_size, wrap_text

COVER_MARGIN = 50
COVER_TOP = 80
COVER_TITLE = "PROPERTY INSPECTION REPORT"
COVER_TITLE_SIZE = 24
COVER_IMAGE_MAX_HEIGHT = 300
LABEL_SIZE = 14
VALUE_SIZE = 12
COLUMN_GAP = 30
LABEL_COLOR: Color = (0.2, 0.2, 0.2)
RULE_COLOR: Color = (0.3, 0.3, 0.3)


def _cover_template(page: Page) -> float:
    return page.height - COVER_TOP


def _person_lines(person: Person) -> list[str]:
    lines = [person.name or "N/A"]
    for extra in (person.company, person.email, person.phone):
        if extra:
            lines.append(extra)
    return [clean_text(s) for s in lines]


def _draw_person(page: Page, x: float, y: float, width: float, label: str, person: Person) -> float:
    page.draw_text(x, y, label, FONT_BOLD, LABEL_SIZE, LABEL_COLOR)
    y -= 25
    for line in _person_lines(person):
        for part in wrap_text(line, TextMetrics(FONT_NAME, VALUE_SIZE), width - 10):
            page.draw_text(x + 10, y, part, FONT_NAME, VALUE_SIZE)
            y -= 18
    return y - 20


def build_cover(inspection: Inspection, options: ReportOptions, images: ImageStore | None = None,
                pagesize: tuple[float, float] = LETTER) -> PageStack:
    stack = PageStack(pagesize)
    cursor = Paginator(stack, _cover_template).start()
    page = cursor.page
    width = page.width - 2 * COVER_MARGIN

    img = images.get(inspection.header_image_url) if (images is not None and options.include_images
                                                      and inspection.header_image_url) else None
    if img is not None:
        w, h = scale_to_fit(img.width, img.height, width, COVER_IMAGE_MAX_HEIGHT)
        page.draw_image(img.url, (page.width - w) / 2, cursor.y - h, w, h)
        cursor.y -= h + 40

    size = fit_font_size(COVER_TITLE, FONT_BOLD, COVER_TITLE_SIZE, width)
    tw = stringWidth(COVER_TITLE, FONT_BOLD, size)
    page.draw_text((page.width - tw) / 2, cursor.y - size, COVER_TITLE, FONT_BOLD, size, (0.1, 0.1, 0.1))
    cursor.y -= size + 26
    page.draw_line(COVER_MARGIN, cursor.y, page.width - COVER_MARGIN, cursor.y, color=RULE_COLOR, line_width=2)
    cursor.y -= 40

    if inspection.address:
        page.draw_text(COVER_MARGIN, cursor.y, "Property Address:", FONT_BOLD, LABEL_SIZE, LABEL_COLOR)
        cursor.y -= 25
        for line in wrap_text(clean_text(inspection.address), TextMetrics(FONT_NAME, VALUE_SIZE), width - 10):
            page.draw_text(COVER_MARGIN + 10, cursor.y, line, FONT_NAME, VALUE_SIZE)
            cursor.y -= 18
        cursor.y -= 27

    if inspection.date:
        page.draw_text(COVER_MARGIN, cursor.y, "Inspection Date:", FONT_BOLD, LABEL_SIZE, LABEL_COLOR)
        dx = COVER_MARGIN + stringWidth("Inspection Date: ", FONT_BOLD, LABEL_SIZE)
        page.draw_text(dx, cursor.y, inspection.date, FONT_NAME, VALUE_SIZE)
        cursor.y -= 45

    col_w = (width - COLUMN_GAP) / 2
    left_x, right_x = COVER_MARGIN, COVER_MARGIN + col_w + COLUMN_GAP
    left_y = right_y = cursor.y
    if inspection.inspector:
        left_y = _draw_person(page, left_x, left_y, col_w, "Inspector:", inspection.inspector)
    if inspection.agent:
        right_y = _draw_person(page, right_x, right_y, col_w, "Agent:", inspection.agent)
    cursor.y = min(left_y, right_y)

    if inspection.client and cursor.y - 60 > COVER_MARGIN + 60:
        _draw_person(page, left_x, cursor.y, width, "Prepared for:", inspection.client)
    return stack
