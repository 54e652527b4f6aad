import pytest

from inspection_pdf.errors import InputError
from inspection_pdf.models import Comment, Inspection, LineItem, format_date, normalize_status
from inspection_pdf.toc import section_label

from conftest import ATTIC_URL, HEADER_URL, ROOF_URL


def test_sections_are_sorted_by_order(sample_data):
    insp = Inspection.from_dict(sample_data)
    assert [s.name for s in insp.sections] == ["Structural Systems", "Electrical Systems"]


def test_equal_orders_keep_input_position():
    data = {"sections": [
        {"id": "b", "name": "B", "order": 1},
        {"id": "a", "name": "A", "order": 1},
        {"id": "c", "name": "C", "order": 0},
    ]}
    insp = Inspection.from_dict(data)
    assert [s.id for s in insp.sections] == ["c", "b", "a"]


@pytest.mark.parametrize("data", [
    {"inspection": {"sections": []}},
    {"inspection": {}},
    {},
])
def test_missing_or_empty_sections_is_an_input_error(data):
    with pytest.raises(InputError, match="No sections"):
        Inspection.from_dict(data)


def test_non_object_payload_is_an_input_error():
    with pytest.raises(InputError):
        Inspection.from_dict(["not", "an", "object"])


@pytest.mark.parametrize("raw,expected", [
    ({"inspectionStatus": "I", "isDeficient": True}, "D"),
    ({"inspectionStatus": "NP", "isDeficient": True}, "D"),
    ({"inspectionStatus": "Not Present"}, "NP"),
    ({"inspectionStatus": "inspected"}, "I"),
    ({"inspectionStatus": {"NI": True}}, "NI"),
    ({"isDeficient": True}, "D"),
    ({}, None),
])
def test_checked_box_precedence(raw, expected):
    item = LineItem.from_dict({"id": "x", "title": "Item", **raw})
    assert item.checked_box == expected


def test_normalize_status_unknown_is_none():
    assert normalize_status("maybe") is None
    assert normalize_status(None) is None
    assert normalize_status(["", "d"]) == "D"


@pytest.mark.parametrize("raw,expected", [
    ({"text": "canonical", "content": "other"}, "canonical"),
    ({"text": "  ", "content": "from content", "commentText": "x"}, "from content"),
    ({"commentText": "from commentText", "value": "v"}, "from commentText"),
    ({"value": "from value"}, "from value"),
    ({}, ""),
])
def test_comment_text_fallback_order(raw, expected):
    assert Comment.from_dict(raw).text == expected


@pytest.mark.parametrize("raw,displayable", [
    ({}, False),
    ({"label": "Only a label", "text": "   "}, False),
    ({"text": "Body"}, True),
    ({"location": "Attic"}, True),
    ({"tag": "Repair"}, True),
    ({"selectedOptions": ["Slab"]}, True),
    ({"recommendation": "Roofer"}, True),
    ({"photos": [{"url": "https://x/y.jpg"}]}, True),
    ({"videos": [{"url": "https://x/y.mp4"}]}, True),
    ({"photos": [{"caption": "no url"}]}, False),
])
def test_comment_displayability(raw, displayable):
    assert Comment.from_dict(raw).is_displayable is displayable


def test_comments_sorted_and_filtered(sample_data):
    insp = Inspection.from_dict(sample_data)
    foundations = insp.sections[0].line_items[0]
    assert len(foundations.comments) == 2
    assert [c.label for c in foundations.displayable_comments] == ["Cracking"]


def test_inspection_fields(sample_data):
    insp = Inspection.from_dict(sample_data)
    assert insp.address == "123 Main St, Austin, TX 78701"
    assert insp.date == "11/14/2023"
    assert insp.inspector.name == "Pat Inspector"
    assert insp.agent.company == "Acme Realty"
    assert insp.client.name == "Casey Client"
    assert insp.report_identification == "Report Identification: 123 Main St, Austin, TX 78701 - 11/14/2023"


def test_address_falls_back_to_parts():
    insp = Inspection.from_dict({"address": {"street": "1 Elm", "city": "Waco", "state": "TX"},
                                 "sections": [{"name": "S"}]})
    assert insp.address == "1 Elm, Waco, TX"


def test_photo_urls_header_first_and_deduplicated(sample_data):
    sec = sample_data["inspection"]["sections"][0]
    sec["lineItems"][0]["comments"] = [{"text": "again", "photos": [{"url": ROOF_URL}]}]
    insp = Inspection.from_dict(sample_data)
    assert insp.photo_urls() == [HEADER_URL, ROOF_URL, ATTIC_URL]


@pytest.mark.parametrize("val,expected", [
    (1700000000000, "11/14/2023"),
    ("2024-03-05", "03/05/2024"),
    ("2024-03-05T10:11:12", "03/05/2024"),
    ("03/05/2024", "03/05/2024"),
    ("sometime", "sometime"),
    (None, ""),
])
def test_format_date(val, expected):
    assert format_date(val) == expected


def test_section_labels_follow_position_not_section_number():
    insp = Inspection.from_dict({"sections": [
        {"id": "a", "name": "Roof", "sectionNumber": "7", "order": 2},
        {"id": "b", "name": "Attic", "sectionNumber": "3", "order": 1},
    ]})
    assert [section_label(s, i) for i, s in enumerate(insp.sections)] == ["I. ATTIC", "II. ROOF"]
