from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

TOC_MODES = ("exact", "estimate")

# camelCase keys accepted from JSON / request bodies
_ALIASES = {
    "title": "title",
    "fontSize": "font_size",
    "titleFontSize": "title_font_size",
    "lineHeight": "line_height",
    "margin": "margin",
    "includeLineItems": "include_line_items",
    "includeTOC": "include_toc",
    "includeImages": "include_images",
    "reportId": "report_id",
    "tocMode": "toc_mode",
    "includeCover": "include_cover",
    "formCheckboxes": "form_checkboxes",
}

_NUMBER = (int, float)
_FIELD_TYPES = {
    "title": str,
    "font_size": _NUMBER,
    "title_font_size": _NUMBER,
    "line_height": _NUMBER,
    "margin": _NUMBER,
    "include_line_items": bool,
    "include_toc": bool,
    "include_images": bool,
    "report_id": str,
    "toc_mode": str,
    "include_cover": bool,
    "form_checkboxes": bool,
}
_OPTIONAL = {"report_id"}
_TYPE_NAMES = {str: "a string", bool: "true or false", _NUMBER: "a number"}


@dataclass(frozen=True)
class ReportOptions:
    title: str = "Inspection Report - Table of Contents"
    font_size: float = 10
    title_font_size: float = 18
    line_height: float = 12
    margin: float = 20
    include_line_items: bool = False
    include_toc: bool = True
    include_images: bool = True
    report_id: str | None = None
    toc_mode: str = "exact"
    include_cover: bool = True
    form_checkboxes: bool = True

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            expected = _FIELD_TYPES[f.name]
            if value is None and f.name in _OPTIONAL:
                continue
            # bool is an int subclass; numbers must not be booleans
            if not isinstance(value, expected) or (expected is not bool and isinstance(value, bool)):
                raise ValueError(f"{f.name} must be {_TYPE_NAMES[expected]}, got {value!r}")
        if self.toc_mode not in TOC_MODES:
            raise ValueError(f"toc_mode must be one of {TOC_MODES}, got {self.toc_mode!r}")
        for name in ("font_size", "title_font_size", "line_height"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.margin < 0:
            raise ValueError("margin must not be negative")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "ReportOptions":
        """Build options from camelCase (or snake_case) keys; unknown keys are ignored."""
        if raw is None:
            raw = {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"report options must be a JSON object, got {type(raw).__name__}")
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in raw.items():
            name = _ALIASES.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def from_file(cls, path: str | Path) -> "ReportOptions":
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_mapping(json.load(f))

    def merged(self, **overrides) -> "ReportOptions":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
