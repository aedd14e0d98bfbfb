from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from note_triage.domain.annotation import ChunkAnnotation
from note_triage.domain.explanation import ModelExplanation
from note_triage.domain.extracted_field import ExtractedField


@dataclass(frozen=True)
class ClassificationContext:
    note_type: Optional[str] = None
    service: Optional[str] = None

    @classmethod
    def coerce(cls, value: Union["ClassificationContext", Mapping[str, Any], None]) -> "ClassificationContext":
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        return cls(
            note_type=value.get("note_type") or value.get("noteType"),
            service=value.get("service"),
        )


@dataclass
class ClassificationResult:
    annotations: Dict[str, ChunkAnnotation] = field(default_factory=dict)
    explanations: Dict[str, ModelExplanation] = field(default_factory=dict)
    extracted_fields: List[ExtractedField] = field(default_factory=list)
