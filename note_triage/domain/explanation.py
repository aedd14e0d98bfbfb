from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from note_triage.domain.annotation import ChunkAnnotation
from note_triage.domain.labels import CondenseStrategy, Label, RemoveReason


class ModelSource(str, Enum):
    LEARNED_EXACT = "learned_exact"
    LEARNED_SIMILAR = "learned_similar"
    DUPLICATE_DETECTOR = "duplicate_detector"
    HEURISTIC_RULES = "heuristic_rules"
    CRITICAL_SAFETY = "critical_safety"
    COMBINED_SIGNALS = "combined_signals"


@dataclass
class ModelExplanation:
    source: ModelSource
    confidence: float
    reason: str
    signals: List[str] = field(default_factory=list)


@dataclass
class CandidateSignal:
    label: Label
    confidence: float
    reason: str
    source: ModelSource
    remove_reason: Optional[RemoveReason] = None
    condense_strategy: Optional[CondenseStrategy] = None


@dataclass
class MatchResult:
    annotation: ChunkAnnotation
    explanation: ModelExplanation
