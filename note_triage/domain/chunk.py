from dataclasses import dataclass
from enum import Enum
from typing import Optional

from note_triage.domain.labels import Label


class ChunkType(str, Enum):
    SECTION_HEADER = "section_header"
    PARAGRAPH = "paragraph"
    BULLET_LIST = "bullet_list"
    IMAGING_REPORT = "imaging_report"
    LAB_VALUES = "lab_values"
    MEDICATION_LIST = "medication_list"
    VITAL_SIGNS = "vital_signs"
    ATTESTATION = "attestation"
    UNKNOWN = "unknown"


class CriticalCategory(str, Enum):
    ALLERGIES = "allergies"
    ANTICOAGULATION = "anticoagulation"
    CODE_STATUS = "code_status"
    INFUSIONS = "infusions"
    LINES_DRAINS_AIRWAY = "lines_drains_airway"


@dataclass(frozen=True)
class Chunk:
    id: str
    text: str
    type: ChunkType
    start_offset: int
    end_offset: int
    is_critical: bool = False
    critical_category: Optional[CriticalCategory] = None
    suggested_label: Optional[Label] = None
    suggested_confidence: float = 0.0

    @property
    def has_suggestion(self) -> bool:
        """ A parser suggestion with zero confidence counts as absent """
        return self.suggested_label is not None and self.suggested_confidence > 0
