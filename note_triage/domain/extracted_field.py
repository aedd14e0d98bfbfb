from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class FieldCategory(str, Enum):
    VITAL_SIGNS = "vital_signs"
    LAB_VALUE = "lab_value"
    MEDICATION = "medication"
    DIAGNOSIS = "diagnosis"
    PROCEDURE = "procedure"
    DATE_TIME = "date_time"
    KEY_VALUE = "key_value"
    ALLERGY = "allergy"
    PROBLEM = "problem"
    ICD_CODE = "icd_code"
    CPT_CODE = "cpt_code"
    PROVIDER = "provider"
    TEMPORAL = "temporal"
    SOCIAL_HISTORY = "social_history"
    FAMILY_HISTORY = "family_history"


@dataclass
class ExtractedField:
    id: str
    category: FieldCategory
    label: str
    value: str
    confidence: float
    source_chunk_id: str
    metadata: Dict[str, Any] = field(default_factory=dict)
