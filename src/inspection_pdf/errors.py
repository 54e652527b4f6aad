from __future__ import annotations


class ReportError(Exception):
    """Base class for everything the report pipeline raises on purpose."""


class InputError(ReportError):
    """The inspection payload cannot produce a report (no sections, wrong shape)."""


class MediaError(ReportError):
    """An image could not be downloaded or decoded."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class SerializationError(ReportError):
    """Turning drawn pages into PDF bytes failed."""
