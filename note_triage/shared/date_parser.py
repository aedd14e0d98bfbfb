import re
from datetime import date
from typing import List, Optional

from note_triage.shared.config import DATE_PREFERRED_ORDER

NUMERIC_DATE_RE = re.compile(r"\b(\d{1,4})([-/])(\d{1,2})\2(\d{2,4})\b")

# Positions of (year, month, day) among the three numeric groups
FIELD_POSITIONS = {
    "YMD": (0, 1, 2),
    "DMY": (2, 1, 0),
    "MDY": (2, 0, 1),
}


def _build_date(parts: List[int]) -> Optional[date]:
    for order in DATE_PREFERRED_ORDER:
        y, m, d = (parts[i] for i in FIELD_POSITIONS[order])
        if y < 100:
            y += 2000
        try:
            return date(y, m, d)
        except ValueError:
            continue
    return None


def parse_dates(text: str) -> List[date]:
    """ Numeric dates found in the text, sorted and unique. """
    if not text:
        return []

    found = set()
    for first, _, second, third in NUMERIC_DATE_RE.findall(text):
        parsed = _build_date([int(first), int(second), int(third)])
        if parsed:
            found.add(parsed)
    return sorted(found)


def first_date(value: Optional[str]) -> Optional[date]:
    """ First parseable date in reading order. """
    for match in NUMERIC_DATE_RE.finditer(value or ""):
        parsed = _build_date([int(match.group(1)), int(match.group(3)), int(match.group(4))])
        if parsed:
            return parsed
    return None
