"""
Content blocks of the report body and the functions that place them.

Every renderer follows the same protocol: compute the height it needs,
call `Paginator.ensure_space`, draw at `cursor.y`, then move the cursor
down by what it used. Long text reserves space one line at a time so it
can run over page breaks; headers, badges, grid rows and the side-photo
block are kept whole.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Union

from reportlab.pdfbase.pdfmetrics import stringWidth

from .grid import (
    CAPTION_HEIGHT, GRID_COLUMNS_DEFAULT, GRID_GUTTER, GRID_MAX_CELL_HEIGHT,
    ROW_SPACING_DEFAULT, SIDE_GAP, SIDE_LANE_WIDTH, SIDE_MAX_HEIGHT, VIDEO_NATIVE_SIZE,
    cell_width, fit_side_image, layout_grid,
)
from .layout import (
    BODY_CONTENT_TOP, CHECKBOX_LABELS, CHECKBOX_SIZE, BodyGeometry, Cursor, Paginator,
)
from .media import ImageStore
from .models import Comment, LineItem, Photo, Section, Video
from .options import ReportOptions
from .pages import BLACK, WHITE, Color, Page
from .text import (
    FONT_BOLD, FONT_ITALIC, FONT_NAME, TextMetrics, alpha_label, clean_text,
    elide_to_width, fit_font_size, wrap_text,
)
from .toc import section_key, section_label

logger = logging.getLogger(__name__)

# Section header
HEADER_PADDING = 10
HEADER_FILL: Color = (0.95, 0.95, 0.95)
HEADER_BORDER: Color = (0.7, 0.7, 0.7)
SECTION_GAP = 8

# Line item row
ITEM_TITLE_SIZE = 12
ITEM_LINE_HEIGHT = 14
ITEM_GAP = 6
LINE_ITEM_MIN_HEIGHT = CHECKBOX_SIZE + ITEM_GAP

# Tag badges
BADGE_FONT_SIZE = 8
BADGE_HEIGHT = 14
BADGE_PADDING = 5
BADGE_SPACING = 8
BADGE_RADIUS = 4

TAG_COLORS: tuple[tuple[str, Color], ...] = (
    ("MAINTENANCE ITEM", (0.2, 0.5, 0.9)),
    ("RECOMMENDATION", (0, 0.6, 0.2)),
    ("SAFETY HAZARD", (0.8, 0, 0)),
    ("REPAIR", (0.9, 0.4, 0)),
)
TAG_DEFAULT_COLOR: Color = (0.5, 0.5, 0.5)

KEYWORDS = ("Maintenance", "Recommendation", "Safety Hazard", "Immediate Attention",
            "Monitor", "Repair", "Replace")
_KEYWORD_RE = re.compile(r"\b(" + "|".join(re.escape(k) for k in KEYWORDS) + r")\b")

SEPARATOR_GAP = 10
SEPARATOR_COLOR: Color = (0.85, 0.85, 0.85)

VIDEO_FILL: Color = (0.2, 0.4, 0.7)
NOTE_COLOR: Color = (0.8, 0, 0)
CAPTION_COLOR: Color = (0.3, 0.3, 0.3)
CAPTION_SIZE = 8

SIDE_BLOCK_GAP = 4          # below the side-photo block


# ---------- blocks ----------
@dataclass(frozen=True)
class SectionHeader:
    section: Section
    index: int

    @property
    def label(self) -> str:
        return section_label(self.section, self.index)

    @property
    def bookmark_key(self) -> str:
        return section_key(self.index)


@dataclass(frozen=True)
class LineItemRow:
    item: LineItem
    index: int


@dataclass(frozen=True)
class CommentBlock:
    comment: Comment
    position: int


@dataclass(frozen=True)
class MediaGrid:
    photos: tuple[Photo, ...] = ()
    videos: tuple[Video, ...] = ()


@dataclass(frozen=True)
class Separator:
    pass


Block = Union[SectionHeader, LineItemRow, CommentBlock, MediaGrid, Separator]


@dataclass
class RenderContext:
    options: ReportOptions
    paginator: Paginator
    geometry: BodyGeometry
    images: ImageStore = field(default_factory=ImageStore)
    # section index -> 0-based page index in the paginator's stack
    section_starts: dict[int, int] = field(default_factory=dict)

    @property
    def usable_height(self) -> float:
        return self.geometry.page_height - BODY_CONTENT_TOP - self.paginator.footer_buffer


# ---------- tags & keywords ----------
def normalize_tag(tag: str) -> str:
    return " ".join((tag or "").upper().replace("-", " ").replace("_", " ").split())


def tag_color(tag: str) -> Color:
    norm = normalize_tag(tag)
    for needle, color in TAG_COLORS:
        if needle in norm:
            return color
    return TAG_DEFAULT_COLOR


def comment_badges(comment: Comment) -> list[tuple[str, Color]]:
    badges = []
    if comment.tag:
        badges.append((clean_text(comment.tag).upper(), tag_color(comment.tag)))
    if comment.recommendation and "RECOMMENDATION" not in normalize_tag(comment.tag):
        badges.append(("RECOMMENDATION", tag_color("RECOMMENDATION")))
    return badges


def keyword_runs(line: str) -> list[tuple[str, bool]]:
    """Split a line into (text, is_keyword) runs; keywords match whole words only."""
    runs: list[tuple[str, bool]] = []
    pos = 0
    for m in _KEYWORD_RE.finditer(line):
        if m.start() > pos:
            runs.append((line[pos:m.start()], False))
        runs.append((m.group(0), True))
        pos = m.end()
    if pos < len(line):
        runs.append((line[pos:], False))
    return runs


def runs_measure(size: float) -> Callable[[str], float]:
    """Width of a line as it will be drawn, keyword runs in bold."""
    def measure(line: str) -> float:
        return sum(stringWidth(t, FONT_BOLD if kw else FONT_NAME, size) for t, kw in keyword_runs(line))
    return measure


def body_lines(text: str, size: float, max_width: float) -> list[str]:
    """Wrap comment text paragraph by paragraph; an empty paragraph is a blank line."""
    measure = runs_measure(size)
    lines: list[str] = []
    for para in (text or "").strip().split("\n"):
        para = clean_text(para)
        lines.extend(wrap_text(para, measure, max_width) if para else [""])
    return lines


# ---------- primitives ----------
def draw_badge(page: Page, x: float, y: float, w: float, h: float, text: str, color: Color) -> None:
    r = BADGE_RADIUS
    page.draw_rect(x + r, y, w - 2 * r, h, fill=color)
    page.draw_rect(x, y + r, w, h - 2 * r, fill=color)
    for cx, cy in ((x + r, y + r), (x + w - r, y + r), (x + r, y + h - r), (x + w - r, y + h - r)):
        page.draw_circle(cx, cy, r, fill=color)
    page.draw_text(x + BADGE_PADDING, y + (h - BADGE_FONT_SIZE) / 2 + 1, text, FONT_BOLD, BADGE_FONT_SIZE, WHITE)


def draw_runs(page: Page, x: float, y: float, line: str, size: float) -> None:
    for text, kw in keyword_runs(line):
        font = FONT_BOLD if kw else FONT_NAME
        page.draw_text(x, y, text, font, size, BLACK)
        x += stringWidth(text, font, size)


def draw_video(page: Page, x: float, y: float, w: float, h: float, url: str) -> None:
    page.draw_rect(x, y, w, h, fill=VIDEO_FILL)
    cx, cy = x + w / 2, y + h / 2
    r = min(w, h) / 6
    page.draw_circle(cx, cy, r, stroke=WHITE, line_width=3)
    tri = r * 0.9
    page.draw_polygon(((cx - tri / 3, cy - tri / 2), (cx - tri / 3, cy + tri / 2), (cx + tri * 2 / 3, cy)),
                      fill=WHITE)
    fs = max(6.0, min(w, h) / 8)
    label_w = stringWidth("VIDEO", FONT_BOLD, fs)
    if cy - r - fs - 2 > y:
        page.draw_text(cx - label_w / 2, cy - r - fs - 2, "VIDEO", FONT_BOLD, fs, WHITE)
    page.link_url(url, x, y, x + w, y + h)


def draw_wrapped(ctx: RenderContext, cursor: Cursor, text: str, font: str = FONT_NAME,
                 color: Color = BLACK, size: float | None = None) -> None:
    size = size or ctx.options.font_size
    lh = ctx.options.line_height
    for line in wrap_text(clean_text(text), TextMetrics(font, size), ctx.geometry.content_width):
        page = ctx.paginator.ensure_space(cursor, lh)
        page.draw_text(ctx.geometry.content_x, cursor.y - size, line, font, size, color)
        cursor.y -= lh


# ---------- renderers ----------
def render_section_header(block: SectionHeader, ctx: RenderContext, cursor: Cursor) -> None:
    opts, geo = ctx.options, ctx.geometry
    left = opts.margin
    width = geo.page_width - 2 * opts.margin
    size = fit_font_size(block.label, FONT_BOLD, opts.title_font_size, width - 2 * HEADER_PADDING)
    height = size + 2 * HEADER_PADDING

    page = ctx.paginator.ensure_space(cursor, height + SECTION_GAP + LINE_ITEM_MIN_HEIGHT)
    ctx.section_starts[block.index] = ctx.paginator.stack.index_of(page)
    page.bookmark(block.bookmark_key, block.label)

    rect_y = cursor.y - height
    page.draw_rect(left, rect_y, width, height, fill=HEADER_FILL, stroke=HEADER_BORDER, line_width=1)
    tw = stringWidth(block.label, FONT_BOLD, size)
    page.draw_text(left + (width - tw) / 2, rect_y + HEADER_PADDING + size * 0.2, block.label, FONT_BOLD, size)
    cursor.y = rect_y - SECTION_GAP


def render_line_item(block: LineItemRow, ctx: RenderContext, cursor: Cursor) -> None:
    geo, item = ctx.geometry, block.item
    title = f"{alpha_label(block.index)}. {clean_text(item.name) or 'Untitled'}"
    lines = wrap_text(title, TextMetrics(FONT_BOLD, ITEM_TITLE_SIZE), geo.content_width)
    has_comments = bool(item.displayable_comments)
    title_h = max(CHECKBOX_SIZE, len(lines) * ITEM_LINE_HEIGHT)
    needed = title_h + ITEM_GAP + (ctx.options.line_height if has_comments else 0)

    page = ctx.paginator.ensure_space(cursor, needed)
    top = cursor.y
    checked = item.checked_box
    for x, label in zip(geo.checkbox_xs, CHECKBOX_LABELS):
        page.draw_checkbox(f"lineItem.{item.id}.{label}", x, top - CHECKBOX_SIZE, CHECKBOX_SIZE, checked == label)

    y = top - ITEM_TITLE_SIZE + 1
    for line in lines:
        page.draw_text(geo.content_x, y, line, FONT_BOLD, ITEM_TITLE_SIZE)
        y -= ITEM_LINE_HEIGHT
    cursor.y = top - title_h - ITEM_GAP

    if has_comments:
        size = ctx.options.font_size
        page.draw_text(geo.content_x, cursor.y - size, "Comments:", FONT_ITALIC, size)
        cursor.y -= ctx.options.line_height


def _render_comment_head(block: CommentBlock, ctx: RenderContext, cursor: Cursor) -> None:
    c, geo = block.comment, ctx.geometry
    label_size = ctx.options.font_size + 1
    label_adv = label_size + 4
    number = c.number or str(block.position)
    label = clean_text(f"{number}. {(c.label or 'Comment').upper()}")

    badges = comment_badges(c)
    widths = [stringWidth(t, FONT_BOLD, BADGE_FONT_SIZE) + 2 * BADGE_PADDING for t, _ in badges]
    badges_w = sum(widths) + BADGE_SPACING * len(widths)
    lines = wrap_text(label, TextMetrics(FONT_BOLD, label_size), max(geo.content_width - badges_w, 40))
    head_h = len(lines) * label_adv + 2

    # keep the label with at least one following line
    page = ctx.paginator.ensure_space(cursor, head_h + ctx.options.line_height)
    top = cursor.y
    y = top - label_size
    for line in lines:
        page.draw_text(geo.content_x, y, line, FONT_BOLD, label_size)
        y -= label_adv

    bx = geo.content_right
    by = top - label_size - 3
    for (text, color), w in zip(badges, widths):
        bx -= w
        draw_badge(page, bx, by, w, BADGE_HEIGHT, text, color)
        bx -= BADGE_SPACING
    cursor.y = top - head_h


def _render_side_photo(lines: list[str], photo: Photo, ctx: RenderContext, cursor: Cursor) -> bool:
    """Text on the left, the lone photo in a lane on the right. False if it cannot be kept whole."""
    img = ctx.images.get(photo.url)
    if img is None:
        return False
    opts, geo = ctx.options, ctx.geometry
    w, h = fit_side_image(img, SIDE_LANE_WIDTH, SIDE_MAX_HEIGHT)
    block_h = max(len(lines) * opts.line_height, h) + SIDE_BLOCK_GAP
    if block_h > ctx.usable_height:
        return False

    page = ctx.paginator.ensure_space(cursor, block_h)
    top = cursor.y
    y = top
    for line in lines:
        if line:
            draw_runs(page, geo.content_x, y - opts.font_size, line, opts.font_size)
        y -= opts.line_height
    page.draw_image(photo.url, geo.content_right - w, top - h, w, h)
    cursor.y = top - block_h
    return True


def render_comment(block: CommentBlock, ctx: RenderContext, cursor: Cursor) -> None:
    c = block.comment
    if not c.is_displayable:
        return
    opts, geo = ctx.options, ctx.geometry
    size, lh = opts.font_size, opts.line_height

    _render_comment_head(block, ctx, cursor)
    if c.location:
        draw_wrapped(ctx, cursor, f"Location: {c.location}", FONT_BOLD)
    if c.selected_options:
        draw_wrapped(ctx, cursor, "Selected: " + ", ".join(c.selected_options))

    photos, videos = (c.photos, c.videos) if opts.include_images else ((), ())
    if c.text:
        side = len(photos) == 1 and not videos
        narrow = geo.content_width - SIDE_LANE_WIDTH - SIDE_GAP
        if side and _render_side_photo(body_lines(c.text, size, narrow), photos[0], ctx, cursor):
            photos = ()
        else:
            for line in body_lines(c.text, size, geo.content_width):
                page = ctx.paginator.ensure_space(cursor, lh)
                if line:
                    draw_runs(page, geo.content_x, cursor.y - size, line, size)
                cursor.y -= lh

    if c.recommendation:
        draw_wrapped(ctx, cursor, f"Recommendation: Contact {c.recommendation}")

    if photos or videos:
        render_media_grid(MediaGrid(photos, videos), ctx, cursor)
    render_separator(Separator(), ctx, cursor)


@dataclass(frozen=True)
class _GridItem:
    url: str
    width: float
    height: float
    caption: str | None = None
    is_video: bool = False


def render_media_grid(block: MediaGrid, ctx: RenderContext, cursor: Cursor) -> None:
    geo = ctx.geometry
    items: list[_GridItem] = []
    missing: list[str] = []
    for p in block.photos:
        img = ctx.images.get(p.url)
        if img is None:
            missing.append(p.url)
            continue
        items.append(_GridItem(p.url, img.width, img.height, clean_text(p.caption) or None))
    for v in block.videos:
        items.append(_GridItem(v.url, *VIDEO_NATIVE_SIZE, is_video=True))

    if items:
        cols = min(GRID_COLUMNS_DEFAULT, len(items))
        cw = cell_width(geo.content_width, cols, GRID_GUTTER)
        for row in layout_grid(items, cols, geo.content_width, GRID_MAX_CELL_HEIGHT, GRID_GUTTER):
            page = ctx.paginator.ensure_space(cursor, row.height + ROW_SPACING_DEFAULT)
            top = cursor.y
            for cell in row.cells:
                item = items[cell.index]
                x, y = geo.content_x + cell.x, top - cell.height
                if item.is_video:
                    draw_video(page, x, y, cell.width, cell.height, item.url)
                else:
                    page.draw_image(item.url, x, y, cell.width, cell.height)
                if cell.caption:
                    cap = elide_to_width(cell.caption, FONT_NAME, CAPTION_SIZE, cw)
                    cap_w = stringWidth(cap, FONT_NAME, CAPTION_SIZE)
                    page.draw_text(geo.content_x + cell.cell_x + (cw - cap_w) / 2,
                                   top - row.image_height - CAPTION_HEIGHT + 3,
                                   cap, FONT_NAME, CAPTION_SIZE, CAPTION_COLOR)
            cursor.y = top - row.height - ROW_SPACING_DEFAULT

    size = max(ctx.options.font_size - 1, 6)
    for url in missing:
        page = ctx.paginator.ensure_space(cursor, ctx.options.line_height)
        note = elide_to_width(f"[Image unavailable: {url}]", FONT_NAME, size, geo.content_width)
        page.draw_text(geo.content_x, cursor.y - size, note, FONT_NAME, size, NOTE_COLOR)
        cursor.y -= ctx.options.line_height


def render_separator(block: Separator, ctx: RenderContext, cursor: Cursor) -> None:
    geo = ctx.geometry
    page = ctx.paginator.ensure_space(cursor, 2 * SEPARATOR_GAP + 1)
    cursor.y -= SEPARATOR_GAP
    page.draw_line(geo.content_x, cursor.y, geo.content_right, cursor.y, color=SEPARATOR_COLOR, line_width=1)
    cursor.y -= SEPARATOR_GAP


_RENDERERS: dict[type, Callable[[Block, RenderContext, Cursor], None]] = {
    SectionHeader: render_section_header,
    LineItemRow: render_line_item,
    CommentBlock: render_comment,
    MediaGrid: render_media_grid,
    Separator: render_separator,
}


def render_block(block: Block, ctx: RenderContext, cursor: Cursor) -> None:
    try:
        renderer = _RENDERERS[type(block)]
    except KeyError:
        raise TypeError(f"no renderer for {type(block).__name__}") from None
    renderer(block, ctx, cursor)


def section_blocks(section: Section, index: int):
    """Blocks of one section in reading order. Suppressed comments produce nothing."""
    yield SectionHeader(section, index)
    for i, item in enumerate(section.line_items):
        yield LineItemRow(item, i)
        for pos, comment in enumerate(item.displayable_comments, start=1):
            yield CommentBlock(comment, pos)
