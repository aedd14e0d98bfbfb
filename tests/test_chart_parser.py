from datetime import date

import pytest

from note_triage.services.chart_parser import (
    ChartParsingService,
    extract_date_time,
    extract_note_type,
    get_chart_summary,
)

CHART = """PROGRESS NOTE - 01/05/2024 08:30
Patient seen on rounds this morning, feels better, ambulating with assistance.
==========
DISCHARGE SUMMARY: 01/07/2024
Patient discharged home in stable condition with outpatient cardiology follow-up.
"""


@pytest.fixture
def parser():
    return ChartParsingService()


def test_chart_is_split_on_headers_and_dividers(parser):
    notes = parser.parse_chart(CHART)

    assert [note.note_type for note in notes] == ["Progress Note", "Discharge Summary"]
    assert notes[0].date_time == "01/05/2024 08:30"
    assert notes[1].date_time == "01/07/2024"


def test_note_offsets_point_into_the_chart(parser):
    for note in parser.parse_chart(CHART):
        assert CHART[note.start_offset:note.end_offset].strip() == note.text


def test_text_without_boundaries_is_one_note(parser):
    notes = parser.parse_chart("Brief free text without any headers.")

    assert len(notes) == 1
    assert notes[0].note_type == "Clinical Note"


def test_empty_chart(parser):
    assert parser.parse_chart("   ") == []


@pytest.mark.parametrize(
    "first_line, expected",
    [
        ("H&P - admission", "H&P"),
        ("Cardiology Consultation", "Consultation"),
        ("03/02/2024 14:00 seen in clinic", "Clinic Note"),
        ("03/02/2024 14:00", "Note (03/02/2024)"),
        ("Free text", "Clinical Note"),
    ],
)
def test_extract_note_type(first_line, expected):
    assert extract_note_type(first_line + "\nbody") == expected


def test_extract_date_time_prefers_date_with_time():
    assert extract_date_time("Note\n2024-03-02 14:05 entry") == "2024-03-02 14:05"
    assert extract_date_time("No date here") is None


def test_chart_summary(parser):
    summary = get_chart_summary(parser.parse_chart(CHART))

    assert summary["note_count"] == 2
    assert summary["note_types"] == {"Progress Note": 1, "Discharge Summary": 1}
    assert summary["date_range"] == {"earliest": date(2024, 1, 5), "latest": date(2024, 1, 7)}
