"""
Pytest configuration for inspection-pdf
"""

import copy
import logging
from io import BytesIO

import pytest
from PIL import Image
from reportlab.pdfgen import canvas as rl_canvas

from inspection_pdf.errors import MediaError
from inspection_pdf.layout import BodyGeometry, Paginator, draw_body_template
from inspection_pdf.media import ImageStore
from inspection_pdf.options import ReportOptions
from inspection_pdf.pages import PageStack

HEADER_URL = "https://media.example.com/house.jpg"
ROOF_URL = "https://media.example.com/roof.png"
ATTIC_URL = "https://media.example.com/attic.png"
BROKEN_URL = "https://media.example.com/missing.jpg"
VIDEO_URL = "https://media.example.com/walkthrough.mp4"


def image_bytes(width=400, height=300, color=(200, 120, 40), fmt="PNG"):
    """Encode a solid-colour image in memory."""
    buf = BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format=fmt)
    return buf.getvalue()


SAMPLE_INSPECTION = {
    "inspection": {
        "id": "insp-1",
        "address": {"fullAddress": "123 Main St, Austin, TX 78701"},
        "schedule": {"date": 1700000000000},
        "inspector": {"name": "Pat Inspector", "email": "pat@example.com", "phone": "555-0100"},
        "clientInfo": {"name": "Casey Client", "email": "casey@example.com"},
        "agents": [{"agent": {"name": "Riley Agent", "company": {"name": "Acme Realty"}}}],
        "headerImageUrl": HEADER_URL,
        "sections": [
            {
                "id": "sec-2",
                "name": "Electrical Systems",
                "order": 2,
                "lineItems": [
                    {"id": "li-3", "title": "Service Entrance", "inspectionStatus": "I", "comments": []},
                ],
            },
            {
                "id": "sec-1",
                "name": "Structural Systems",
                "order": 1,
                "lineItems": [
                    {
                        "id": "li-1",
                        "title": "Foundations",
                        "inspectionStatus": "I",
                        "isDeficient": True,
                        "comments": [
                            {
                                "label": "Cracking",
                                "commentNumber": "1.1",
                                "text": "Minor cracking observed.\nMonitor for movement and Repair as needed.",
                                "location": "North wall",
                                "tag": "Repair",
                                "recommendation": "a licensed foundation contractor",
                                "photos": [{"url": ROOF_URL, "caption": "North wall"}, {"url": ATTIC_URL}],
                            },
                            {"label": "Empty", "text": "   "},
                        ],
                    },
                    {
                        "id": "li-2",
                        "title": "Roof Covering Materials",
                        "inspectionStatus": "Not Present",
                        "comments": [
                            {"label": "Walkthrough", "videos": [{"url": VIDEO_URL}]},
                        ],
                    },
                ],
            },
        ],
    }
}


@pytest.fixture(autouse=True)
def configure_logging():
    """Keep test output quiet; only warnings and errors reach the console."""
    root_logger = logging.getLogger()
    previous = root_logger.level
    root_logger.setLevel(logging.WARNING)
    yield
    root_logger.setLevel(previous)


@pytest.fixture
def sample_data():
    return copy.deepcopy(SAMPLE_INSPECTION)


@pytest.fixture
def image_blobs():
    return {
        HEADER_URL: image_bytes(1200, 800, fmt="JPEG"),
        ROOF_URL: image_bytes(4000, 3000),
        ATTIC_URL: image_bytes(300, 600),
    }


@pytest.fixture
def fake_fetcher(image_blobs):
    """Serve known urls from memory and fail everything else; records each call."""
    calls = []

    def fetch(url):
        calls.append(url)
        if url not in image_blobs:
            raise MediaError(url, "404 Not Found")
        return image_blobs[url]

    fetch.calls = calls
    return fetch


@pytest.fixture
def image_store(image_blobs):
    return ImageStore.from_bytes(image_blobs)


@pytest.fixture
def options():
    return ReportOptions()


@pytest.fixture
def body_paginator(options):
    """A body paginator on a fresh stack, with the real page template."""
    stack = PageStack()
    return Paginator(stack, lambda page: draw_body_template(page, "Report Identification: test", options.margin))


@pytest.fixture
def geometry(options):
    return BodyGeometry(612, 792, options.margin)


def template_pdf(pages=3):
    """A stand-in TREC template: one line of text per page."""
    buf = BytesIO()
    c = rl_canvas.Canvas(buf, pagesize=(612, 792), invariant=1)
    for i in range(pages):
        c.setFont("Helvetica", 14)
        c.drawString(72, 700, f"TREC TEMPLATE PAGE {i + 1}")
        c.showPage()
    c.save()
    return buf.getvalue()
