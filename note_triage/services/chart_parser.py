import logging
import re
from typing import Dict, List, Optional, Tuple

from note_triage.domain.note import ParsedNote
from note_triage.shared.config import MIN_NOTE_LENGTH
from note_triage.shared.date_parser import first_date
from note_triage.shared.ids import generate_chunk_id

logger = logging.getLogger(__name__)

_NOTE_HEADERS = (
    r"PROGRESS NOTE|H&P|H & P|HISTORY AND PHYSICAL|ADMISSION NOTE|DISCHARGE SUMMARY"
    r"|CONSULTATION|CONSULT NOTE|OPERATIVE NOTE|OP NOTE|PROCEDURE NOTE|NURSING NOTE"
    r"|TELEPHONE NOTE|PHONE NOTE|ADDENDUM|TRANSFER NOTE|INTERIM SUMMARY|ICU NOTE|ED NOTE"
    r"|EMERGENCY DEPARTMENT NOTE|ER NOTE|CLINIC NOTE|OFFICE VISIT|BRIEF OP NOTE"
)

# Each alternative starts at a line start: a dated line, a note-type header, or a divider.
NOTE_BOUNDARY_RE = re.compile(
    r"^(?:"
    r"(?:0?[1-9]|1[0-2])/(?:0?[1-9]|[12]\d|3[01])/(?:\d{4}|\d{2})\s+(?:\d{1,2}:\d{2}(?::\d{2})?\s*(?:AM|PM)?)?"
    rf"|(?:{_NOTE_HEADERS})[ \t]*(?:[-:]|$)"
    r"|[-=*#]{5,}[ \t]*$"
    r")",
    re.IGNORECASE | re.MULTILINE,
)

NOTE_TYPE_RULES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"progress note", re.IGNORECASE), "Progress Note"),
    (re.compile(r"h\s*&\s*p|history and physical", re.IGNORECASE), "H&P"),
    (re.compile(r"admission note", re.IGNORECASE), "Admission Note"),
    (re.compile(r"discharge summary", re.IGNORECASE), "Discharge Summary"),
    (re.compile(r"consult", re.IGNORECASE), "Consultation"),
    (re.compile(r"operative note|op note", re.IGNORECASE), "Operative Note"),
    (re.compile(r"procedure note", re.IGNORECASE), "Procedure Note"),
    (re.compile(r"nursing note", re.IGNORECASE), "Nursing Note"),
    (re.compile(r"telephone|phone note", re.IGNORECASE), "Phone Note"),
    (re.compile(r"addendum", re.IGNORECASE), "Addendum"),
    (re.compile(r"transfer note", re.IGNORECASE), "Transfer Note"),
    (re.compile(r"icu note", re.IGNORECASE), "ICU Note"),
    (re.compile(r"ed note|er note|emergency", re.IGNORECASE), "ED Note"),
    (re.compile(r"clinic|office visit", re.IGNORECASE), "Clinic Note"),
]

_LEADING_DATE_RE = re.compile(r"^(\d{1,2}/\d{1,2}/\d{2,4}|\d{4}-\d{2}-\d{2})")
DATE_TIME_PATTERNS = [
    re.compile(r"(\d{1,2}/\d{1,2}/\d{2,4}\s+\d{1,2}:\d{2}(?::\d{2})?\s*(?:AM|PM)?)", re.IGNORECASE),
    re.compile(r"(\d{4}-\d{2}-\d{2}T?\s*\d{1,2}:\d{2}(?::\d{2})?)"),
    re.compile(r"(\d{1,2}/\d{1,2}/\d{2,4})"),
    re.compile(r"(\d{4}-\d{2}-\d{2})"),
]


def extract_note_type(text: str) -> str:
    first_line = text.split("\n", 1)[0].strip()[:100]

    for pattern, note_type in NOTE_TYPE_RULES:
        if pattern.search(first_line):
            return note_type

    date_match = _LEADING_DATE_RE.match(first_line)
    if date_match:
        return f"Note ({date_match.group(1)})"

    return "Clinical Note"


def extract_date_time(text: str) -> Optional[str]:
    first_lines = " ".join(text.split("\n")[:3])
    for pattern in DATE_TIME_PATTERNS:
        match = pattern.search(first_lines)
        if match:
            return match.group(1).strip()
    return None


class ChartParsingService:
    """
    Splits a multi-note chart export into individual notes on date lines,
    note-type headers and divider lines.
    """

    def __init__(self, min_note_length: int = MIN_NOTE_LENGTH):
        self.min_note_length = min_note_length

    def parse_chart(self, full_text: str) -> List[ParsedNote]:
        if not full_text or not full_text.strip():
            return []

        boundaries = [match.start() for match in NOTE_BOUNDARY_RE.finditer(full_text)]
        if not boundaries:
            return [self._build_note(full_text, 0, len(full_text))]

        notes: List[ParsedNote] = []

        # Preamble before the first header is only kept when substantial
        if boundaries[0] > 0:
            preamble = self._build_note(full_text, 0, boundaries[0])
            if preamble and len(preamble.text) > self.min_note_length:
                notes.append(preamble)

        for i, start in enumerate(boundaries):
            end = boundaries[i + 1] if i + 1 < len(boundaries) else len(full_text)
            note = self._build_note(full_text, start, end)
            # Too short: a bare divider or dangling header
            if note is None or len(note.text) < self.min_note_length:
                continue
            notes.append(note)

        logger.info("Parsed chart into %d notes", len(notes))
        return notes

    @staticmethod
    def _build_note(full_text: str, start: int, end: int) -> Optional[ParsedNote]:
        note_text = full_text[start:end].strip()
        if not note_text:
            return None

        return ParsedNote(
            id=generate_chunk_id(note_text, start),
            note_type=extract_note_type(note_text),
            date_time=extract_date_time(note_text),
            text=note_text,
            start_offset=start,
            end_offset=end,
        )


def get_chart_summary(notes: List[ParsedNote]) -> Dict[str, object]:
    note_types: Dict[str, int] = {}
    dates = []

    for note in notes:
        note_types[note.note_type] = note_types.get(note.note_type, 0) + 1
        parsed = first_date(note.date_time)
        if parsed:
            dates.append(parsed)

    summary: Dict[str, object] = {
        "note_count": len(notes),
        "note_types": note_types,
        "date_range": None,
    }
    if len(dates) >= 2:
        summary["date_range"] = {"earliest": min(dates), "latest": max(dates)}
    return summary
