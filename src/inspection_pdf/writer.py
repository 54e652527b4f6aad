"""
Serialization: replay recorded pages onto a reportlab canvas, then splice
the TREC template pages in with pypdf.

The canvas runs in invariant mode, so the same pages always give the same
bytes.
"""
from __future__ import annotations

import logging
from io import BytesIO
from typing import Mapping, Sequence

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError
from pypdf.generic import ArrayObject, NameObject
from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas as rl_canvas

from .errors import SerializationError
from .media import ImageStore
from .pages import Op, Page
from .text import FONT_NAME

logger = logging.getLogger(__name__)

CREATOR = "inspection-pdf"
TEMPLATE_PAGE_LIMIT = 2

# Identity fields on TREC template page 1
IDENT_FONT = "Helvetica"
IDENT_SIZE = 10
IDENT_MIN_SIZE = 8.0
IDENT_LEFT_X, IDENT_LEFT_W = 0.72 * inch, 3.15 * inch
IDENT_RIGHT_X, IDENT_RIGHT_W = 4.92 * inch, 2.25 * inch
IDENT_Y_CLIENT = 9.40 * inch    # client / date
IDENT_Y_ADDRESS = 9.08 * inch
IDENT_Y_INSPECTOR = 8.74 * inch

PAGE_LABEL_Y = 35
PAGE_LABEL_SIZE = 9


class _Replayer:
    """Draws one document's ops; owns the per-document image and field-name state."""

    def __init__(self, canv: rl_canvas.Canvas, images: ImageStore, form_checkboxes: bool):
        self.c = canv
        self.images = images
        self.form_checkboxes = form_checkboxes
        self._readers: dict[str, ImageReader | None] = {}
        self._names: dict[str, int] = {}

    def field_name(self, name: str) -> str:
        n = self._names.get(name, 0)
        self._names[name] = n + 1
        return name if n == 0 else f"{name}_{n}"

    def reader(self, url: str) -> ImageReader | None:
        if url not in self._readers:
            img = self.images.get(url)
            self._readers[url] = ImageReader(BytesIO(img.data)) if img is not None else None
        return self._readers[url]

    def replay(self, op: Op) -> None:
        getattr(self, f"op_{op.kind}")(**op.as_dict())

    # ---------- ops ----------
    def op_text(self, x, y, text, font, size, color):
        self.c.setFillColorRGB(*color)
        self.c.setFont(font, size)
        self.c.drawString(x, y, text)

    def op_rect(self, x, y, w, h, fill, stroke, line_width):
        self.c.setLineWidth(line_width)
        if fill is not None:
            self.c.setFillColorRGB(*fill)
        if stroke is not None:
            self.c.setStrokeColorRGB(*stroke)
        self.c.rect(x, y, w, h, stroke=int(stroke is not None), fill=int(fill is not None))

    def op_line(self, x1, y1, x2, y2, color, line_width):
        self.c.setStrokeColorRGB(*color)
        self.c.setLineWidth(line_width)
        self.c.line(x1, y1, x2, y2)

    def op_circle(self, x, y, r, fill, stroke, line_width):
        self.c.setLineWidth(line_width)
        if fill is not None:
            self.c.setFillColorRGB(*fill)
        if stroke is not None:
            self.c.setStrokeColorRGB(*stroke)
        self.c.circle(x, y, r, stroke=int(stroke is not None), fill=int(fill is not None))

    def op_polygon(self, points, fill):
        self.c.setFillColorRGB(*fill)
        path = self.c.beginPath()
        path.moveTo(*points[0])
        for pt in points[1:]:
            path.lineTo(*pt)
        path.close()
        self.c.drawPath(path, stroke=0, fill=1)

    def op_image(self, url, x, y, w, h):
        ir = self.reader(url)
        if ir is None:
            logger.warning("no decoded image for %s; skipped", url)
            return
        self.c.drawImage(ir, x, y, width=w, height=h, mask="auto")

    def op_checkbox(self, name, x, y, size, checked):
        if self.form_checkboxes:
            self.c.acroForm.checkbox(
                name=self.field_name(name), x=x, y=y, size=size, checked=checked,
                buttonStyle="cross", borderColor=colors.black, fillColor=colors.white,
                textColor=colors.black, borderWidth=1, forceBorder=True,
            )
            return
        self.c.setStrokeColorRGB(0, 0, 0)
        self.c.setLineWidth(1)
        self.c.rect(x, y, size, size, stroke=1, fill=0)
        if checked:
            self.c.setLineWidth(1.2)
            self.c.line(x + 1.5, y + 1.5, x + size - 1.5, y + size - 1.5)
            self.c.line(x + size - 1.5, y + 1.5, x + 1.5, y + size - 1.5)

    def op_link_url(self, url, rect):
        self.c.linkURL(url, rect, relative=0, thickness=0)

    def op_link_dest(self, key, rect):
        self.c.linkRect("", key, rect, relative=0, thickness=0)

    def op_bookmark(self, key, title):
        self.c.bookmarkPage(key)
        if title:
            self.c.addOutlineEntry(title, key, level=0, closed=False)


def write_pdf(pages: Sequence[Page], images: ImageStore | None = None, *, title: str = "",
              form_checkboxes: bool = True) -> bytes:
    """Serialize pages, in order, into PDF bytes."""
    if not pages:
        raise SerializationError("no pages to write")
    buf = BytesIO()
    try:
        canv = rl_canvas.Canvas(buf, pagesize=(pages[0].width, pages[0].height), invariant=1)
        canv.setTitle(title)
        canv.setCreator(CREATOR)
        rep = _Replayer(canv, images or ImageStore(), form_checkboxes)
        for page in pages:
            canv.setPageSize((page.width, page.height))
            for op in page.ops:
                rep.replay(op)
            canv.showPage()
        canv.save()
    except SerializationError:
        raise
    except Exception as e:
        raise SerializationError(f"PDF serialization failed: {e}") from e
    logger.debug("serialized %d page(s), %d bytes", len(pages), buf.tell())
    return buf.getvalue()


# ---------- TREC template splice ----------
def _fit_draw(c, x, y, text, max_w, font=IDENT_FONT, start=IDENT_SIZE, min_size=IDENT_MIN_SIZE):
    """Single line, shrunk until it fits."""
    t = text or ""
    sz = start
    while stringWidth(t, font, sz) > max_w and sz > min_size:
        sz -= 0.5
    c.setFont(font, sz)
    c.drawString(x, y, t)


def _overlay(pagesize, draw) -> PdfReader:
    buf = BytesIO()
    c = rl_canvas.Canvas(buf, pagesize=pagesize, invariant=1)
    draw(c)
    c.showPage()
    c.save()
    return PdfReader(BytesIO(buf.getvalue()))


def _identity_overlay(pagesize, values: Mapping[str, str]) -> PdfReader:
    def draw(c):
        _fit_draw(c, IDENT_LEFT_X, IDENT_Y_CLIENT, values.get("client", ""), IDENT_LEFT_W)
        _fit_draw(c, IDENT_RIGHT_X, IDENT_Y_CLIENT, values.get("date", ""), IDENT_RIGHT_W)
        _fit_draw(c, IDENT_LEFT_X, IDENT_Y_ADDRESS, values.get("address", ""), IDENT_LEFT_W)
        _fit_draw(c, IDENT_LEFT_X, IDENT_Y_INSPECTOR, values.get("inspector", ""), IDENT_LEFT_W)
    return _overlay(pagesize, draw)


def _label_overlay(pagesize, label: str) -> PdfReader:
    def draw(c):
        c.setFont(FONT_NAME, PAGE_LABEL_SIZE)
        c.drawString((pagesize[0] - stringWidth(label, FONT_NAME, PAGE_LABEL_SIZE)) / 2, PAGE_LABEL_Y, label)
    return _overlay(pagesize, draw)


def count_template_pages(template: bytes) -> int:
    """How many template pages will be spliced in (at most two)."""
    try:
        return min(TEMPLATE_PAGE_LIMIT, len(PdfReader(BytesIO(template)).pages))
    except (PyPdfError, ValueError, OSError) as e:
        raise SerializationError(f"template PDF cannot be read: {e}") from e


def prepend_template_pages(body: bytes, template: bytes, values: Mapping[str, str], *,
                           insert_at: int = 0, labels: Sequence[str] = ()) -> bytes:
    """
    Insert the first template pages into an already serialized document at
    insert_at. Page 1 gets the identity values drawn over it (its form
    annotations are dropped so they cannot hide the overlay); labels[i] is
    drawn at the foot of template page i.
    """
    try:
        writer = PdfWriter(clone_from=PdfReader(BytesIO(body)))
        tpl = PdfReader(BytesIO(template))
        n = min(TEMPLATE_PAGE_LIMIT, len(tpl.pages))
        for i in range(n):
            writer.insert_page(tpl.pages[i], index=insert_at + i)

        for i in range(n):
            page = writer.pages[insert_at + i]
            size = (float(page.mediabox.width), float(page.mediabox.height))
            if i == 0:
                annots_key = NameObject("/Annots")
                if annots_key in page:
                    page[annots_key] = ArrayObject()
                page.merge_page(_identity_overlay(size, values).pages[0])
            if i < len(labels):
                page.merge_page(_label_overlay(size, labels[i]).pages[0])

        out = BytesIO()
        writer.write(out)
    except (PyPdfError, ValueError, OSError, KeyError) as e:
        raise SerializationError(f"template splice failed: {e}") from e
    logger.debug("spliced %d template page(s) at index %d", n, insert_at)
    return out.getvalue()
