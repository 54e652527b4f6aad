import json

import pytest

from inspection_pdf.options import ReportOptions


def test_defaults():
    opts = ReportOptions()
    assert opts.title == "Inspection Report - Table of Contents"
    assert (opts.font_size, opts.title_font_size, opts.line_height, opts.margin) == (10, 18, 12, 20)
    assert opts.include_toc and opts.include_images and opts.include_cover and opts.form_checkboxes
    assert not opts.include_line_items
    assert opts.toc_mode == "exact"
    assert opts.report_id is None


def test_from_mapping_accepts_camel_case_and_ignores_unknown():
    opts = ReportOptions.from_mapping({
        "fontSize": 11, "includeTOC": False, "reportId": "RPT-1", "tocMode": "estimate",
        "includeLineItems": True, "somethingElse": 1, "margin": None,
    })
    assert opts.font_size == 11
    assert opts.include_toc is False
    assert opts.report_id == "RPT-1"
    assert opts.toc_mode == "estimate"
    assert opts.include_line_items is True
    assert opts.margin == 20


def test_from_file(tmp_path):
    path = tmp_path / "opts.json"
    path.write_text(json.dumps({"titleFontSize": 16, "includeCover": False}))
    opts = ReportOptions.from_file(path)
    assert opts.title_font_size == 16
    assert opts.include_cover is False


@pytest.mark.parametrize("kwargs", [{"toc_mode": "guess"}, {"font_size": 0}, {"margin": -1}])
def test_invalid_values(kwargs):
    with pytest.raises(ValueError):
        ReportOptions(**kwargs)


def test_merged_skips_unset_overrides():
    opts = ReportOptions(report_id="A").merged(report_id=None, include_toc=False)
    assert opts.report_id == "A"
    assert opts.include_toc is False


@pytest.mark.parametrize("raw", [
    {"fontSize": "10"},
    {"includeTOC": "no"},
    {"margin": True},
    {"reportId": 7},
])
def test_from_mapping_rejects_wrong_types(raw):
    with pytest.raises(ValueError):
        ReportOptions.from_mapping(raw)


def test_from_mapping_rejects_non_object():
    with pytest.raises(ValueError, match="JSON object"):
        ReportOptions.from_mapping(["fontSize", 10])
