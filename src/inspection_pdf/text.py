"""Font metrics, line wrapping and the small label helpers every block uses."""
from __future__ import annotations

import re
import string
from typing import Callable

from reportlab.pdfbase import pdfmetrics

# One face everywhere; size varies per block
FONT_NAME = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_ITALIC = "Helvetica-Oblique"

MeasureFn = Callable[[str], float]

# Characters the standard PDF fonts cannot encode are mapped first, then dropped
_REPLACEMENTS = {
    "\u2018": "'", "\u2019": "'", "\u201c": '"', "\u201d": '"',
    "\u2013": "-", "\u2014": "-", "\u2022": "-", "\u00a0": " ",
    "\u2026": "...", "\uf0b7": "-",
}
_WS = re.compile(r"\s+")


class TextMetrics:
    """Advance-width oracle for one font/size pair."""

    def __init__(self, font_name: str = FONT_NAME, font_size: float = 10):
        self.font_name = font_name
        self.font_size = font_size

    def width(self, text: str) -> float:
        return pdfmetrics.stringWidth(text, self.font_name, self.font_size)

    __call__ = width

    def __repr__(self):
        return f"TextMetrics({self.font_name!r}, {self.font_size})"


def clean_text(text) -> str:
    """Collapse whitespace and strip what WinAnsi fonts can't draw."""
    if text is None:
        return ""
    s = str(text)
    for src, dst in _REPLACEMENTS.items():
        s = s.replace(src, dst)
    s = "".join(ch for ch in s if ch in string.whitespace or _encodable(ch))
    return _WS.sub(" ", s).strip()


def _encodable(ch: str) -> bool:
    if not ch.isprintable():
        return False
    try:
        ch.encode("cp1252")
    except UnicodeEncodeError:
        return False
    return True


def wrap_text(text: str, measure: MeasureFn, max_width: float) -> list[str]:
    """
    Greedy whitespace wrap. Every returned line satisfies measure(line) <= max_width,
    except a single word that is wider on its own, which gets a line to itself.
    """
    words = (text or "").split()
    lines: list[str] = []
    current = ""
    for word in words:
        candidate = f"{current} {word}" if current else word
        if current and measure(candidate) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def to_roman(n: int) -> str:
    vals = [(1000, "M"), (900, "CM"), (500, "D"), (400, "CD"),
            (100, "C"), (90, "XC"), (50, "L"), (40, "XL"),
            (10, "X"), (9, "IX"), (5, "V"), (4, "IV"), (1, "I")]
    if n <= 0:
        return ""
    out = []
    for v, s in vals:
        while n >= v:
            out.append(s)
            n -= v
    return "".join(out)


def alpha_label(idx: int) -> str:
    """0 -> A ... 25 -> Z, then back to A."""
    return chr(ord("A") + (idx % 26))


def fit_font_size(text: str, face: str, max_size: float, max_width: float, min_size: float = 7) -> float:
    """Largest size (stepping by 0.5, <= max_size) at which text fits max_width."""
    sz = max_size
    while sz > min_size and pdfmetrics.stringWidth(text, face, sz) > max_width:
        sz -= 0.5
    return max(sz, min_size)


def elide_to_width(text: str, face: str, size: float, max_width: float) -> str:
    """Ellipsize the text from the right until it fits within max_width."""
    if pdfmetrics.stringWidth(text, face, size) <= max_width:
        return text
    ell = "..."
    lo, hi = 0, len(text)
    best = ""
    while lo <= hi:
        mid = (lo + hi) // 2
        candidate = text[:mid].rstrip() + ell
        if pdfmetrics.stringWidth(candidate, face, size) <= max_width:
            best = candidate
            lo = mid + 1
        else:
            hi = mid - 1
    return best or ell
