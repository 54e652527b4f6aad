import math
from dataclasses import dataclass

import pytest

from inspection_pdf.grid import (
    CAPTION_HEIGHT, GRID_GUTTER, GRID_MAX_CELL_HEIGHT, cell_width, fit_scale, fit_side_image,
    layout_grid, scale_to_fit,
)

CONTENT_WIDTH = 462  # body content column on US Letter with 20pt margins


@dataclass
class Img:
    width: float
    height: float
    caption: str | None = None


@pytest.mark.parametrize("n", range(1, 13))
def test_row_count_is_ceil_of_items_over_columns(n):
    rows = layout_grid([Img(800, 600)] * n, 3, CONTENT_WIDTH, GRID_MAX_CELL_HEIGHT, GRID_GUTTER)
    assert len(rows) == math.ceil(n / 3)
    assert sum(len(r.cells) for r in rows) == n
    assert [c.index for r in rows for c in r.cells] == list(range(n))


def test_cell_width_formula():
    assert cell_width(442, 3, 12) == pytest.approx((442 - 24) / 3)
    assert cell_width(442, 1, 12) == 442


def test_small_images_are_never_upscaled():
    (row,) = layout_grid([Img(100, 50)], 1, CONTENT_WIDTH, GRID_MAX_CELL_HEIGHT, GRID_GUTTER)
    cell = row.cells[0]
    assert cell.scale == 1.0
    assert (cell.width, cell.height) == (100, 50)


def test_aspect_ratio_preserved_and_fits_cell():
    cw = cell_width(CONTENT_WIDTH, 3, GRID_GUTTER)
    rows = layout_grid([Img(4000, 3000), Img(300, 600), Img(5000, 1000)], 3,
                       CONTENT_WIDTH, GRID_MAX_CELL_HEIGHT, GRID_GUTTER)
    for cell, (w, h) in zip(rows[0].cells, [(4000, 3000), (300, 600), (5000, 1000)]):
        assert cell.width / cell.height == pytest.approx(w / h)
        assert cell.width <= cw + 1e-6
        assert cell.height <= GRID_MAX_CELL_HEIGHT + 1e-6


def test_images_are_centred_in_their_cells():
    cw = cell_width(CONTENT_WIDTH, 3, GRID_GUTTER)
    rows = layout_grid([Img(300, 600), Img(300, 600)], 3, CONTENT_WIDTH, GRID_MAX_CELL_HEIGHT, GRID_GUTTER)
    second = rows[0].cells[1]
    assert second.cell_x == pytest.approx(cw + GRID_GUTTER)
    assert second.x == pytest.approx(second.cell_x + (cw - second.width) / 2)


def test_six_equal_photos_make_two_equal_rows():
    rows = layout_grid([Img(4000, 3000)] * 6, 3, CONTENT_WIDTH, GRID_MAX_CELL_HEIGHT, GRID_GUTTER)
    cw = cell_width(CONTENT_WIDTH, 3, GRID_GUTTER)
    assert len(rows) == 2
    assert rows[0].height == rows[1].height
    assert rows[0].image_height == pytest.approx(cw * 3000 / 4000)
    assert all(c.width == pytest.approx(cw) for r in rows for c in r.cells)


def test_row_height_is_tallest_image():
    (row,) = layout_grid([Img(400, 100), Img(100, 400)], 2, 400, 150, 0)
    assert row.image_height == 150
    assert row.height == 150
    assert not row.has_caption


def test_caption_adds_one_line_to_its_row_only():
    rows = layout_grid([Img(400, 300, "Kitchen"), Img(400, 300), Img(400, 300)], 2,
                       CONTENT_WIDTH, GRID_MAX_CELL_HEIGHT, GRID_GUTTER)
    assert rows[0].has_caption
    assert rows[0].height == pytest.approx(rows[0].image_height + CAPTION_HEIGHT)
    assert rows[1].height == rows[1].image_height


def test_zero_columns_is_rejected():
    with pytest.raises(ValueError):
        layout_grid([Img(10, 10)], 0, CONTENT_WIDTH, GRID_MAX_CELL_HEIGHT, GRID_GUTTER)


def test_empty_input_has_no_rows():
    assert layout_grid([], 3, CONTENT_WIDTH, GRID_MAX_CELL_HEIGHT, GRID_GUTTER) == []


def test_degenerate_sizes_scale_by_one():
    assert fit_scale(0, 100, 50, 50) == 1.0


def test_side_image_fits_lane():
    w, h = fit_side_image(Img(4000, 3000))
    assert w == pytest.approx(170)
    assert h == pytest.approx(127.5)
    w, h = fit_side_image(Img(300, 600))
    assert h == pytest.approx(200)
    assert w == pytest.approx(100)


def test_scale_to_fit_never_upscales():
    assert scale_to_fit(50, 40, 500, 500) == (50, 40)
