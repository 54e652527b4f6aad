"""
Document assembly.

Order of the finished document: cover, TREC template pages, table of
contents, body. The body is laid out first, on its own page stack, so the
table of contents can print the page each section really starts on
("exact" mode). Footers are stamped last, once the total is known.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

from reportlab.lib.pagesizes import LETTER
from reportlab.pdfbase.pdfmetrics import stringWidth

from .blocks import RenderContext, render_block, section_blocks
from .cover import build_cover
from .errors import InputError, ReportError
from .layout import BodyGeometry, Paginator, draw_body_template
from .media import Fetcher, ImageStore, prefetch_images
from .models import Inspection
from .options import ReportOptions
from .pages import Page, PageStack
from .text import FONT_NAME
from .toc import build_toc
from .writer import count_template_pages, prepend_template_pages, write_pdf

logger = logging.getLogger(__name__)

FOOTER_SIZE = 9
PAGE_LABEL_Y = 35
FORM_ID = "REI 7-6 (8/9/2021)"
FORM_ID_X = 40
FOOTER_LINE_Y = 20
PROMULGATION = "Promulgated by the Texas Real Estate Commission - (512) 936-3000 - "
TREC_URL_TEXT = "www.trec.texas.gov"
TREC_URL = "https://www.trec.texas.gov"
LINK_COLOR = (0, 0, 0.8)


@dataclass
class BodyLayout:
    stack: PageStack
    section_starts: dict[int, int]   # section index -> 0-based body page


@dataclass
class AssembledReport:
    pages: list[Page]                # engine pages only: cover, TOC, body
    cover_pages: int
    template_pages: int
    toc_pages: int
    body_pages: int
    section_pages: list[int]         # final 1-based page of each section
    toc_numbers: list[int] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return self.cover_pages + self.template_pages + self.toc_pages + self.body_pages

    @property
    def front_pages(self) -> int:
        return self.cover_pages + self.template_pages


@dataclass
class ReportResult:
    ok: bool
    pdf: bytes | None = None
    page_count: int = 0
    sections: list[dict[str, Any]] = field(default_factory=list)
    error: str | None = None


def header_text(inspection: Inspection, options: ReportOptions) -> str:
    return options.report_id or inspection.report_identification


def identity_values(inspection: Inspection) -> dict[str, str]:
    return {
        "client": inspection.client.name,
        "date": inspection.date,
        "address": inspection.address,
        "inspector": inspection.inspector.name,
    }


def build_body(inspection: Inspection, options: ReportOptions, images: ImageStore | None = None,
               pagesize: tuple[float, float] = LETTER) -> BodyLayout:
    """Lay out every section into a fresh page stack, recording where each one starts."""
    if not inspection.sections:
        raise InputError("No sections found in inspection data")
    stack = PageStack(pagesize)
    header = header_text(inspection, options)
    paginator = Paginator(stack, lambda page: draw_body_template(page, header, options.margin))
    ctx = RenderContext(options, paginator, BodyGeometry(pagesize[0], pagesize[1], options.margin),
                        images or ImageStore())
    cursor = paginator.start()
    for i, section in enumerate(inspection.sections):
        for block in section_blocks(section, i):
            render_block(block, ctx, cursor)
    logger.info("laid out %d section(s) on %d body page(s)", len(inspection.sections), len(stack))
    return BodyLayout(stack, dict(ctx.section_starts))


def stamp_footers(pages: Sequence[Page], total: int, first_number: int = 1) -> None:
    """Page X of Y plus the TREC form line on each page, numbered consecutively."""
    for n, page in enumerate(pages, start=first_number):
        label = f"Page {n} of {total}"
        lw = stringWidth(label, FONT_NAME, FOOTER_SIZE)
        page.draw_text((page.width - lw) / 2, PAGE_LABEL_Y, label, FONT_NAME, FOOTER_SIZE)
        page.draw_text(FORM_ID_X, FOOTER_LINE_Y, FORM_ID, FONT_NAME, FOOTER_SIZE)

        pw = stringWidth(PROMULGATION, FONT_NAME, FOOTER_SIZE)
        uw = stringWidth(TREC_URL_TEXT, FONT_NAME, FOOTER_SIZE)
        x = page.width - FORM_ID_X - pw - uw
        page.draw_text(x, FOOTER_LINE_Y, PROMULGATION, FONT_NAME, FOOTER_SIZE)
        page.draw_text(x + pw, FOOTER_LINE_Y, TREC_URL_TEXT, FONT_NAME, FOOTER_SIZE, LINK_COLOR)
        page.link_url(TREC_URL, x + pw, FOOTER_LINE_Y - 2, x + pw + uw, FOOTER_LINE_Y + FOOTER_SIZE)


def assemble(inspection: Inspection, options: ReportOptions, images: ImageStore | None = None,
             template_pages: int = 0, pagesize: tuple[float, float] = LETTER) -> AssembledReport:
    body = build_body(inspection, options, images, pagesize)
    sections = inspection.sections
    starts = [body.section_starts[i] for i in range(len(sections))]

    cover = build_cover(inspection, options, images, pagesize) if options.include_cover else PageStack(pagesize)
    front = len(cover) + template_pages

    toc = PageStack(pagesize)
    numbers: list[int] = []
    if options.include_toc:
        # the TOC's length never depends on the numbers it prints; learn it first
        toc_n = len(build_toc(sections, [0] * len(sections), options, pagesize))
        if options.toc_mode == "exact":
            numbers = [front + toc_n + s + 1 for s in starts]
        else:
            numbers = [front + toc_n + 1 + i for i in range(len(sections))]
        toc = build_toc(sections, numbers, options, pagesize)
        if len(toc) != toc_n:
            raise ReportError(f"table of contents changed length ({toc_n} -> {len(toc)})")

    doc = AssembledReport(
        pages=[*cover, *toc, *body.stack],
        cover_pages=len(cover),
        template_pages=template_pages,
        toc_pages=len(toc),
        body_pages=len(body.stack),
        section_pages=[front + len(toc) + s + 1 for s in starts],
        toc_numbers=numbers,
    )
    stamp_footers(list(cover), doc.page_count, 1)
    stamp_footers([*toc, *body.stack], doc.page_count, front + 1)
    logger.info("assembled %d page(s): cover %d, template %d, toc %d, body %d", doc.page_count,
                doc.cover_pages, doc.template_pages, doc.toc_pages, doc.body_pages)
    return doc


def section_metadata(inspection: Inspection, doc: AssembledReport) -> list[dict[str, Any]]:
    return [
        {"sectionId": sec.id, "name": sec.name, "pageNumber": page}
        for sec, page in zip(inspection.sections, doc.section_pages)
    ]


def _load_template(template_pdf: bytes | str | Path | None) -> bytes | None:
    if template_pdf is None or isinstance(template_pdf, bytes):
        return template_pdf
    try:
        return Path(template_pdf).read_bytes()
    except OSError as e:
        raise InputError(f"cannot read template PDF {template_pdf}: {e}") from e


def build_report(data: Mapping[str, Any] | Inspection,
                 options: ReportOptions | Mapping[str, Any] | None = None, *,
                 images: ImageStore | None = None, fetcher: Fetcher | None = None,
                 template_pdf: bytes | str | Path | None = None,
                 cache_dir: str | None = None) -> ReportResult:
    """Render the report, raising ReportError (or a subclass) on failure."""
    if isinstance(options, Mapping):
        options = ReportOptions.from_mapping(options)
    options = options or ReportOptions()
    inspection = data if isinstance(data, Inspection) else Inspection.from_dict(data)

    if images is None:
        urls = inspection.photo_urls() if options.include_images else []
        images = prefetch_images(urls, fetcher, cache_dir=cache_dir)

    template = _load_template(template_pdf)
    tpl_n = count_template_pages(template) if template else 0

    doc = assemble(inspection, options, images, template_pages=tpl_n)
    pdf = write_pdf(doc.pages, images, title=options.title, form_checkboxes=options.form_checkboxes)
    if tpl_n:
        labels = [f"Page {doc.cover_pages + i + 1} of {doc.page_count}" for i in range(tpl_n)]
        pdf = prepend_template_pages(pdf, template, identity_values(inspection),
                                     insert_at=doc.cover_pages, labels=labels)
    return ReportResult(ok=True, pdf=pdf, page_count=doc.page_count,
                        sections=section_metadata(inspection, doc))


def generate(data: Mapping[str, Any] | Inspection,
             options: ReportOptions | Mapping[str, Any] | None = None, *,
             images: ImageStore | None = None, fetcher: Fetcher | None = None,
             template_pdf: bytes | str | Path | None = None,
             cache_dir: str | None = None) -> ReportResult:
    """Like build_report, but failures come back as ok=False instead of raising."""
    try:
        return build_report(data, options, images=images, fetcher=fetcher,
                            template_pdf=template_pdf, cache_dir=cache_dir)
    except ReportError as e:
        logger.error("report generation failed: %s", e)
        return ReportResult(ok=False, error=str(e))
    except Exception as e:
        logger.exception("unexpected error while generating report")
        return ReportResult(ok=False, error=f"{type(e).__name__}: {e}")
