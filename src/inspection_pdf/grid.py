"""Photo/video grid geometry. Pure functions; placement happens in blocks.py."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

GRID_COLUMNS_DEFAULT = 3
GRID_GUTTER = 12
GRID_MAX_CELL_HEIGHT = 240
ROW_SPACING_DEFAULT = 24
CAPTION_HEIGHT = 12

# Single photo beside comment text
SIDE_LANE_WIDTH = 170
SIDE_MAX_HEIGHT = 200
SIDE_GAP = 15

# Placeholder geometry for videos, sized like a 4:3 photo
VIDEO_NATIVE_SIZE = (640, 480)


class Sized(Protocol):
    width: float
    height: float


@dataclass(frozen=True)
class GridCell:
    index: int          # position in the input sequence
    cell_x: float       # cell left edge, relative to the grid's left edge
    x: float            # image left edge (centred in the cell)
    width: float
    height: float
    scale: float
    caption: str | None = None


@dataclass(frozen=True)
class GridRow:
    cells: tuple[GridCell, ...]
    image_height: float
    height: float       # image height plus the caption line when any cell has one

    @property
    def has_caption(self) -> bool:
        return self.height > self.image_height


def fit_scale(iw: float, ih: float, max_w: float, max_h: float) -> float:
    """Fit-within factor that never upscales."""
    if iw <= 0 or ih <= 0:
        return 1.0
    return min(max_w / iw, max_h / ih, 1.0)


def scale_to_fit(iw, ih, max_w, max_h):
    s = fit_scale(iw, ih, max_w, max_h)
    return iw * s, ih * s


def cell_width(available_width: float, column_count: int, gutter: float) -> float:
    return (available_width - (column_count - 1) * gutter) / column_count


def layout_grid(images: Sequence[Sized], column_count: int, available_width: float,
                max_cell_height: float, gutter: float,
                caption_height: float = CAPTION_HEIGHT) -> list[GridRow]:
    """
    Assign images left-to-right, row by row, in input order. Each image is
    scaled to fit its cell (aspect preserved, never upscaled) and centred
    horizontally. A row is as tall as its tallest image, plus one caption
    line when any image in the row carries a caption.
    """
    if column_count < 1:
        raise ValueError("column_count must be >= 1")
    cw = cell_width(available_width, column_count, gutter)
    rows: list[GridRow] = []
    for start in range(0, len(images), column_count):
        cells = []
        for col, img in enumerate(images[start:start + column_count]):
            s = fit_scale(img.width, img.height, cw, max_cell_height)
            w, h = img.width * s, img.height * s
            cell_x = col * (cw + gutter)
            cells.append(GridCell(
                index=start + col,
                cell_x=cell_x,
                x=cell_x + (cw - w) / 2,
                width=w,
                height=h,
                scale=s,
                caption=getattr(img, "caption", None) or None,
            ))
        image_h = max(c.height for c in cells)
        cap_h = caption_height if any(c.caption for c in cells) else 0
        rows.append(GridRow(tuple(cells), image_h, image_h + cap_h))
    return rows


def fit_side_image(image: Sized, lane_width: float = SIDE_LANE_WIDTH,
                   max_height: float = SIDE_MAX_HEIGHT) -> tuple[float, float]:
    """Size of a lone photo placed in the narrow lane beside comment text."""
    return scale_to_fit(image.width, image.height, lane_width, max_height)
