import re
from typing import List, Optional, Pattern, Tuple

from note_triage.domain.chunk import CriticalCategory

# Evaluation order matters: a chunk is tagged with the first matching category only.
CRITICAL_PATTERNS: List[Tuple[CriticalCategory, Pattern[str]]] = [
    (
        CriticalCategory.ALLERGIES,
        re.compile(r"\ballerg|\b(NKDA|no known drug allergies)\b", re.IGNORECASE),
    ),
    (
        CriticalCategory.ANTICOAGULATION,
        re.compile(
            r"\b(warfarin|coumadin|heparin|enoxaparin|lovenox|rivaroxaban|xarelto|apixaban"
            r"|eliquis|dabigatran|pradaxa|INR|anticoagul)",
            re.IGNORECASE,
        ),
    ),
    (
        CriticalCategory.CODE_STATUS,
        re.compile(
            r"\b(DNR|DNI|full code|code status|goals of care|comfort care|hospice|CMO"
            r"|comfort measures)\b",
            re.IGNORECASE,
        ),
    ),
    (
        CriticalCategory.INFUSIONS,
        re.compile(
            r"\b(drip|infusion|gtt|mcg/kg/min|units/hr|mg/hr|vasopressor|norepinephrine"
            r"|levophed|epinephrine|dopamine|dobutamine|phenylephrine|vasopressin)\b",
            re.IGNORECASE,
        ),
    ),
    (
        CriticalCategory.LINES_DRAINS_AIRWAY,
        re.compile(
            r"\b(central line|PICC|arterial line|a-line|foley|chest tube|JP drain|NG tube"
            r"|ETT)\b|\b(trach|ventilat|intubat|extubat)",
            re.IGNORECASE,
        ),
    ),
]


class CriticalContentDetector:
    """
    Flags safety-relevant clinical content (allergies, anticoagulation,
    code status, infusions, lines/drains/airway).
    """

    def __init__(self, patterns: Optional[List[Tuple[CriticalCategory, Pattern[str]]]] = None):
        self.patterns = patterns if patterns is not None else CRITICAL_PATTERNS

    def detect(self, text: str) -> Optional[CriticalCategory]:
        for category, pattern in self.patterns:
            if pattern.search(text):
                return category
        return None

    def is_critical(self, text: str) -> bool:
        return self.detect(text) is not None
