from .errors import InputError, MediaError, ReportError, SerializationError
from .media import ImageStore, prefetch_images
from .models import Inspection
from .options import ReportOptions
from .report import ReportResult, build_report, generate

__all__ = [
    "generate", "build_report", "ReportResult", "ReportOptions", "Inspection",
    "ImageStore", "prefetch_images",
    "ReportError", "InputError", "MediaError", "SerializationError",
]

__version__ = "0.1.0"
