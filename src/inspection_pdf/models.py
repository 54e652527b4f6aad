"""
Read-only views of the inspection payload.

Parsing is tolerant: unknown fields are ignored, missing optional fields
become empty values, and a few historical aliases are resolved here so the
renderers only ever see one canonical name per field.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from .errors import InputError

CHECK_LABELS = ("I", "NI", "NP", "D")

# Comment body: canonical key first, then the fallbacks in this order
COMMENT_TEXT_KEYS = ("text", "content", "commentText", "value")

_STATUS_MAP = {
    "i": "I", "inspected": "I",
    "ni": "NI", "not inspected": "NI",
    "np": "NP", "not present": "NP",
    "d": "D", "deficient": "D", "defect": "D",
}


# ---------- helpers ----------
def _s(val) -> str:
    return val.strip() if isinstance(val, str) else ""


def _first(*vals) -> str:
    for v in vals:
        if isinstance(v, str) and v.strip():
            return v.strip()
    return ""


def _dict(val) -> Mapping[str, Any]:
    return val if isinstance(val, Mapping) else {}


def _list(val) -> list:
    return list(val) if isinstance(val, (list, tuple)) else []


def _order_key(obj: Mapping[str, Any], idx: int):
    order = obj.get("order")
    if isinstance(order, (int, float)) and not isinstance(order, bool):
        return order
    try:
        return float(order)
    except (TypeError, ValueError):
        return idx


def normalize_status(status) -> str | None:
    """Return one of 'I','NI','NP','D' (or None) from common inputs."""
    if isinstance(status, str):
        s = status.strip().lower()
        return _STATUS_MAP.get(s)
    if isinstance(status, Mapping):
        # e.g. {"I": true, "NI": false, ...}
        for k in CHECK_LABELS:
            if status.get(k) or status.get(k.lower()):
                return k
    if isinstance(status, (list, tuple)):
        for x in status:
            v = normalize_status(x)
            if v:
                return v
    return None


def format_date(val) -> str:
    """Epoch milliseconds or a common date string -> MM/DD/YYYY (UTC)."""
    if val is None or val == "" or isinstance(val, bool):
        return ""
    if isinstance(val, (int, float)):
        try:
            return datetime.fromtimestamp(val / 1000.0, tz=timezone.utc).strftime("%m/%d/%Y")
        except (OverflowError, OSError, ValueError):
            return ""
    s = str(val).strip()
    for fmt in ("%Y-%m-%d", "%m/%d/%Y", "%Y/%m/%d", "%Y-%m-%dT%H:%M:%S"):
        try:
            return datetime.strptime(s[:19], fmt).strftime("%m/%d/%Y")
        except ValueError:
            pass
    return s


# ---------- entities ----------
@dataclass(frozen=True)
class Photo:
    url: str
    caption: str = ""


@dataclass(frozen=True)
class Video:
    url: str


@dataclass(frozen=True)
class Comment:
    label: str = ""
    number: str = ""
    text: str = ""
    location: str = ""
    tag: str = ""
    recommendation: str = ""
    selected_options: tuple[str, ...] = ()
    photos: tuple[Photo, ...] = ()
    videos: tuple[Video, ...] = ()

    @property
    def is_displayable(self) -> bool:
        return bool(self.text or self.location or self.tag or self.selected_options
                    or self.recommendation or self.photos or self.videos)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Comment":
        photos = tuple(
            Photo(_s(p.get("url")), _s(p.get("caption")))
            for p in map(_dict, _list(raw.get("photos"))) if _s(p.get("url"))
        )
        videos = tuple(
            Video(_s(v.get("url")))
            for v in map(_dict, _list(raw.get("videos"))) if _s(v.get("url"))
        )
        number = raw.get("commentNumber")
        return cls(
            label=_s(raw.get("label")),
            text=_first(*(raw.get(k) for k in COMMENT_TEXT_KEYS)),
            location=_s(raw.get("location")),
            tag=_s(raw.get("tag")),
            recommendation=_s(raw.get("recommendation")),
            selected_options=tuple(str(o).strip() for o in _list(raw.get("selectedOptions")) if str(o).strip()),
            photos=photos,
            videos=videos,
        )


@dataclass(frozen=True)
class LineItem:
    id: str
    name: str
    status: str | None = None
    is_deficient: bool = False
    comments: tuple[Comment, ...] = ()

    @property
    def checked_box(self) -> str | None:
        """D wins whenever the item is deficient, whatever the recorded status."""
        if self.is_deficient:
            return "D"
        return self.status

    @property
    def displayable_comments(self) -> list[Comment]:
        return [c for c in self.comments if c.is_displayable]

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], idx: int = 0) -> "LineItem":
        comments = [_dict(c) for c in _list(raw.get("comments"))]
        ordered = sorted(enumerate(comments), key=lambda p: _order_key(p[1], p[0]))
        item_id = raw.get("id")
        return cls(
            id=str(item_id) if item_id not in (None, "") else str(idx),
            name=_first(raw.get("title"), raw.get("name")),
            status=normalize_status(raw.get("inspectionStatus")),
            is_deficient=bool(raw.get("isDeficient")),
            comments=tuple(Comment.from_dict(c) for _, c in ordered),
        )


@dataclass(frozen=True)
class Section:
    id: str
    name: str
    order: float = 0
    line_items: tuple[LineItem, ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], idx: int = 0) -> "Section":
        sec_id = raw.get("id")
        return cls(
            id=str(sec_id) if sec_id not in (None, "") else str(idx),
            name=_first(raw.get("name"), f"Section {idx + 1}"),
            order=_order_key(raw, idx),
            line_items=tuple(LineItem.from_dict(_dict(li), i)
                             for i, li in enumerate(_list(raw.get("lineItems")))),
        )


@dataclass(frozen=True)
class Person:
    name: str = ""
    email: str = ""
    phone: str = ""
    company: str = ""

    @classmethod
    def from_dict(cls, raw) -> "Person":
        raw = _dict(raw)
        return cls(
            name=_s(raw.get("name")),
            email=_s(raw.get("email")),
            phone=_s(raw.get("phone")),
            company=_s(_dict(raw.get("company")).get("name")),
        )

    def __bool__(self):
        return bool(self.name or self.email or self.phone)


@dataclass(frozen=True)
class Inspection:
    address: str = ""
    date: str = ""
    inspector: Person = field(default_factory=Person)
    agent: Person = field(default_factory=Person)
    client: Person = field(default_factory=Person)
    header_image_url: str = ""
    sections: tuple[Section, ...] = ()

    @property
    def report_identification(self) -> str:
        if not (self.address or self.date):
            return "Report Identification"
        sep = " - " if self.address and self.date else ""
        return f"Report Identification: {self.address}{sep}{self.date}"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Inspection":
        if not isinstance(data, Mapping):
            raise InputError("inspection payload must be a JSON object")
        insp = _dict(data.get("inspection")) or data
        raw_sections = [_dict(s) for s in _list(insp.get("sections"))]
        if not raw_sections:
            raise InputError("No sections found in inspection data")

        # stable: equal orders keep their array position
        ordered = sorted(enumerate(raw_sections), key=lambda p: _order_key(p[1], p[0]))

        addr = _dict(insp.get("address"))
        full_addr = _first(addr.get("fullAddress")) or ", ".join(
            _s(addr.get(k)) for k in ("street", "city", "state", "zipcode") if _s(addr.get(k))
        )
        schedule = _dict(insp.get("schedule")) or _dict(_dict(insp.get("bookingFormData")).get("schedule"))
        agents = _list(insp.get("agents"))
        agent = _dict(agents[0]).get("agent") if agents else None

        return cls(
            address=full_addr,
            date=format_date(schedule.get("date")),
            inspector=Person.from_dict(insp.get("inspector")),
            agent=Person.from_dict(agent),
            client=Person.from_dict(insp.get("clientInfo")),
            header_image_url=_s(insp.get("headerImageUrl")),
            sections=tuple(Section.from_dict(s, i) for i, s in ordered),
        )

    def photo_urls(self) -> list[str]:
        """Every photo url in document order, header image first, duplicates removed."""
        seen: dict[str, None] = {}
        if self.header_image_url:
            seen[self.header_image_url] = None
        for sec in self.sections:
            for li in sec.line_items:
                for c in li.comments:
                    for p in c.photos:
                        seen.setdefault(p.url, None)
        return list(seen)
