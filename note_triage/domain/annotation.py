from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from note_triage.domain.chunk import ChunkType
from note_triage.domain.labels import (
    CondenseStrategy,
    Label,
    LabelScope,
    RemoveReason,
)


@dataclass
class ChunkAnnotation:
    chunk_id: str
    raw_text: str
    section_type: ChunkType
    label: Label
    remove_reason: Optional[RemoveReason] = None
    condense_strategy: Optional[CondenseStrategy] = None
    scope: LabelScope = LabelScope.THIS_DOCUMENT
    timestamp: datetime = field(default_factory=datetime.now)
    user_id: str = "system"
    override_justification: Optional[str] = None
    # Where a confirmed annotation came from; used to select a corpus, not to score it.
    note_type: Optional[str] = None
    service: Optional[str] = None


# Human-confirmed annotations replayed as similarity corpus share the same shape.
LearnedAnnotation = ChunkAnnotation
