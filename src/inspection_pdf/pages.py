"""
Engine-owned pages.

A page is a fixed-size, append-only list of drawing operations. Nothing is
rasterised or serialised until the whole document exists; the writer replays
the operations onto a reportlab canvas afterwards. Keeping pages as data is
what allows footers with the final page count and TOC splicing.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

from reportlab.lib.pagesizes import LETTER

Color = tuple[float, float, float]

BLACK: Color = (0, 0, 0)
WHITE: Color = (1, 1, 1)


@dataclass(frozen=True)
class Op:
    kind: str
    args: tuple[tuple[str, Any], ...]

    def get(self, key: str, default=None):
        for k, v in self.args:
            if k == key:
                return v
        return default

    def as_dict(self) -> dict[str, Any]:
        return dict(self.args)


@dataclass(eq=False)
class Page:
    width: float
    height: float
    ops: list[Op] = field(default_factory=list)

    def _add(self, kind: str, **args) -> None:
        self.ops.append(Op(kind, tuple(args.items())))

    def __len__(self):
        return len(self.ops)

    def ops_of(self, kind: str) -> Iterator[Op]:
        return (op for op in self.ops if op.kind == kind)

    def texts(self) -> list[str]:
        return [op.get("text") for op in self.ops_of("text")]

    # ---------- drawing ----------
    def draw_text(self, x: float, y: float, text: str, font: str, size: float,
                  color: Color = BLACK) -> None:
        self._add("text", x=x, y=y, text=text, font=font, size=size, color=color)

    def draw_rect(self, x: float, y: float, w: float, h: float, *, fill: Color | None = None,
                  stroke: Color | None = None, line_width: float = 1) -> None:
        self._add("rect", x=x, y=y, w=w, h=h, fill=fill, stroke=stroke, line_width=line_width)

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, *, color: Color = BLACK,
                  line_width: float = 1) -> None:
        self._add("line", x1=x1, y1=y1, x2=x2, y2=y2, color=color, line_width=line_width)

    def draw_circle(self, x: float, y: float, r: float, *, fill: Color | None = None,
                    stroke: Color | None = None, line_width: float = 1) -> None:
        self._add("circle", x=x, y=y, r=r, fill=fill, stroke=stroke, line_width=line_width)

    def draw_polygon(self, points: tuple[tuple[float, float], ...], *, fill: Color) -> None:
        self._add("polygon", points=tuple(points), fill=fill)

    def draw_image(self, url: str, x: float, y: float, w: float, h: float) -> None:
        self._add("image", url=url, x=x, y=y, w=w, h=h)

    def draw_checkbox(self, name: str, x: float, y: float, size: float, checked: bool) -> None:
        self._add("checkbox", name=name, x=x, y=y, size=size, checked=checked)

    def link_url(self, url: str, x1: float, y1: float, x2: float, y2: float) -> None:
        self._add("link_url", url=url, rect=(x1, y1, x2, y2))

    def link_dest(self, key: str, x1: float, y1: float, x2: float, y2: float) -> None:
        self._add("link_dest", key=key, rect=(x1, y1, x2, y2))

    def bookmark(self, key: str, title: str | None = None) -> None:
        self._add("bookmark", key=key, title=title)


class PageStack:
    """Ordered pages of one layout pass. Pages are only ever appended."""

    def __init__(self, pagesize: tuple[float, float] = LETTER):
        self.pagesize = pagesize
        self.pages: list[Page] = []

    def add_page(self) -> Page:
        w, h = self.pagesize
        page = Page(w, h)
        self.pages.append(page)
        return page

    def index_of(self, page: Page) -> int:
        for i, p in enumerate(self.pages):
            if p is page:
                return i
        raise ValueError("page does not belong to this stack")

    def __len__(self):
        return len(self.pages)

    def __iter__(self):
        return iter(self.pages)

    def __getitem__(self, i):
        return self.pages[i]
