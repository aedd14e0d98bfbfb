import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from note_triage.domain.chunk import Chunk, ChunkType
from note_triage.domain.labels import CondenseStrategy, Label, RemoveReason

NORMAL_EXAM_PATTERNS = [
    re.compile(r"all other systems (reviewed|negative)", re.IGNORECASE),
    re.compile(r"review of systems.*negative", re.IGNORECASE),
    re.compile(r"normal (ros|review of systems)", re.IGNORECASE),
    re.compile(r"normal (physical exam|exam)", re.IGNORECASE),
    re.compile(r"no acute distress", re.IGNORECASE),
    re.compile(r"\bnad\b", re.IGNORECASE),
]

ADMINISTRATIVE_PATTERNS = [
    re.compile(r"discharge instructions", re.IGNORECASE),
    re.compile(r"follow up with", re.IGNORECASE),
    re.compile(r"appointment scheduled", re.IGNORECASE),
    re.compile(r"contact information", re.IGNORECASE),
]

COPIED_PRIOR_RE = re.compile(r"copy forward|copied forward|copied from prior|copied prior note", re.IGNORECASE)
UNCHANGED_RE = re.compile(r"unchanged from prior|no interval change|stable compared to", re.IGNORECASE)


@dataclass(frozen=True)
class HeuristicOutcome:
    label: Label
    confidence: float
    reason: str
    remove_reason: Optional[RemoveReason] = None
    condense_strategy: Optional[CondenseStrategy] = None


Rule = Tuple[Callable[[Chunk], bool], Callable[[Chunk], HeuristicOutcome]]


def _fixed(outcome: HeuristicOutcome) -> Callable[[Chunk], HeuristicOutcome]:
    return lambda chunk: outcome


def _matches_any(patterns) -> Callable[[Chunk], bool]:
    return lambda chunk: any(pattern.search(chunk.text) for pattern in patterns)


def _unchanged_and(chunk_type: ChunkType) -> Callable[[Chunk], bool]:
    return lambda chunk: chunk.type == chunk_type and bool(UNCHANGED_RE.search(chunk.text))


def _reuse_parser_suggestion(chunk: Chunk) -> HeuristicOutcome:
    return HeuristicOutcome(
        label=chunk.suggested_label,
        confidence=min(chunk.suggested_confidence + 0.05, 0.95),
        reason="parser rule match",
    )


# Ordered, first applicable rule wins. Order is the priority.
HEURISTIC_RULES: List[Rule] = [
    (
        lambda chunk: chunk.is_critical,
        _fixed(HeuristicOutcome(Label.KEEP, 0.95, "critical clinical indicator")),
    ),
    (
        lambda chunk: chunk.type == ChunkType.SECTION_HEADER,
        _fixed(HeuristicOutcome(Label.KEEP, 0.90, "section headers preserved")),
    ),
    (
        lambda chunk: chunk.type == ChunkType.ATTESTATION,
        _fixed(HeuristicOutcome(Label.REMOVE, 0.82, "attestation statement",
                                remove_reason=RemoveReason.BILLING_ATTESTATION)),
    ),
    (
        _matches_any(NORMAL_EXAM_PATTERNS),
        _fixed(HeuristicOutcome(Label.REMOVE, 0.78, "normal ROS/exam boilerplate",
                                remove_reason=RemoveReason.NORMAL_ROS_EXAM)),
    ),
    (
        _matches_any(ADMINISTRATIVE_PATTERNS),
        _fixed(HeuristicOutcome(Label.REMOVE, 0.72, "administrative follow-up language",
                                remove_reason=RemoveReason.ADMINISTRATIVE_TEXT)),
    ),
    (
        lambda chunk: bool(COPIED_PRIOR_RE.search(chunk.text)),
        _fixed(HeuristicOutcome(Label.REMOVE, 0.76, "explicitly copied from prior note",
                                remove_reason=RemoveReason.COPIED_PRIOR_NOTE)),
    ),
    (
        _unchanged_and(ChunkType.IMAGING_REPORT),
        _fixed(HeuristicOutcome(Label.REMOVE, 0.74, "imaging repeated without interval change",
                                remove_reason=RemoveReason.REPEATED_IMAGING)),
    ),
    (
        _unchanged_and(ChunkType.LAB_VALUES),
        _fixed(HeuristicOutcome(Label.REMOVE, 0.72, "lab results repeated without change",
                                remove_reason=RemoveReason.REPEATED_LABS)),
    ),
    (
        lambda chunk: chunk.type == ChunkType.LAB_VALUES and len(chunk.text) > 250,
        _fixed(HeuristicOutcome(Label.CONDENSE, 0.70, "dense lab section",
                                condense_strategy=CondenseStrategy.ABNORMAL_ONLY)),
    ),
    (
        lambda chunk: chunk.type == ChunkType.IMAGING_REPORT and len(chunk.text) > 280,
        _fixed(HeuristicOutcome(Label.CONDENSE, 0.68, "long imaging narrative",
                                condense_strategy=CondenseStrategy.ONE_LINE_SUMMARY)),
    ),
    (
        lambda chunk: chunk.type == ChunkType.MEDICATION_LIST and len(chunk.text.split("\n")) > 8,
        _fixed(HeuristicOutcome(Label.CONDENSE, 0.64, "long medication list",
                                condense_strategy=CondenseStrategy.ONE_LINE_SUMMARY)),
    ),
    (
        lambda chunk: chunk.type == ChunkType.PARAGRAPH and len(chunk.text) > 450,
        _fixed(HeuristicOutcome(Label.CONDENSE, 0.62, "extended narrative section",
                                condense_strategy=CondenseStrategy.PROBLEM_BASED_SUMMARY)),
    ),
    (
        lambda chunk: chunk.has_suggestion,
        _reuse_parser_suggestion,
    ),
]


class HeuristicClassifier:
    def __init__(self, rules: Optional[List[Rule]] = None):
        self.rules = rules if rules is not None else HEURISTIC_RULES

    def classify(self, chunk: Chunk) -> Optional[HeuristicOutcome]:
        for predicate, build_outcome in self.rules:
            if predicate(chunk):
                return build_outcome(chunk)
        return None
