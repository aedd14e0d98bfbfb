import dataclasses
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from note_triage.domain.chunk import Chunk
from note_triage.domain.explanation import CandidateSignal, ModelSource
from note_triage.domain.labels import CondenseStrategy, Label, RemoveReason
from note_triage.services.heuristics import HeuristicClassifier

PARSER_SIGNAL_BOOST = 0.04
PARSER_SIGNAL_CAP = 0.90
AGREEMENT_BOOST_PER_SIGNAL = 0.05
AGREEMENT_BOOST_CAP = 0.12
FUSED_CONFIDENCE_CAP = 0.97

SAFETY_PENALTY = 0.15
SAFETY_FLOOR = 0.60
SAFETY_REASON = "critical content retained despite removal signal"


@dataclass
class FusedSignal:
    label: Label
    confidence: float
    reasons: List[str]
    sources: List[ModelSource]
    remove_reason: Optional[RemoveReason] = None
    condense_strategy: Optional[CondenseStrategy] = None
    signal_count: int = 0

    @property
    def source(self) -> ModelSource:
        distinct = list(dict.fromkeys(self.sources))
        return ModelSource.COMBINED_SIGNALS if len(distinct) > 1 else distinct[0]

    def to_candidate(self) -> CandidateSignal:
        return CandidateSignal(
            label=self.label,
            confidence=self.confidence,
            reason=self.reasons[0] if self.reasons else "composite heuristic",
            source=self.source,
            remove_reason=self.remove_reason,
            condense_strategy=self.condense_strategy,
        )


def build_candidate_signals(chunk: Chunk, classifier: Optional[HeuristicClassifier] = None) -> List[CandidateSignal]:
    """
    Heuristic outcome plus the raw parser suggestion. When the heuristic table
    already reused the parser suggestion both still count: agreeing cues raise
    confidence.
    """
    classifier = classifier or HeuristicClassifier()
    signals: List[CandidateSignal] = []

    outcome = classifier.classify(chunk)
    if outcome is not None:
        signals.append(
            CandidateSignal(
                label=outcome.label,
                confidence=outcome.confidence,
                reason=outcome.reason,
                source=ModelSource.CRITICAL_SAFETY if chunk.is_critical else ModelSource.HEURISTIC_RULES,
                remove_reason=outcome.remove_reason,
                condense_strategy=outcome.condense_strategy,
            )
        )

    if chunk.has_suggestion:
        signals.append(
            CandidateSignal(
                label=chunk.suggested_label,
                confidence=min(chunk.suggested_confidence + PARSER_SIGNAL_BOOST, PARSER_SIGNAL_CAP),
                reason="parser suggestion",
                source=ModelSource.HEURISTIC_RULES,
            )
        )

    return signals


def merge_signals(signals: List[CandidateSignal]) -> Optional[FusedSignal]:
    if not signals:
        return None

    # dicts keep insertion order, so ties resolve toward the first label seen
    grouped: Dict[Label, List[CandidateSignal]] = {}
    for signal in signals:
        grouped.setdefault(signal.label, []).append(signal)

    best: Optional[FusedSignal] = None
    for label, items in grouped.items():
        average = sum(item.confidence for item in items) / len(items)
        agreement = min(len(items) * AGREEMENT_BOOST_PER_SIGNAL, AGREEMENT_BOOST_CAP)
        fused = FusedSignal(
            label=label,
            confidence=min(average + agreement, FUSED_CONFIDENCE_CAP),
            reasons=[item.reason for item in items],
            sources=[item.source for item in items],
            remove_reason=next((item.remove_reason for item in items if item.remove_reason), None),
            condense_strategy=next((item.condense_strategy for item in items if item.condense_strategy), None),
            signal_count=len(items),
        )
        if best is None or fused.confidence > best.confidence:
            best = fused

    return best


def apply_critical_safety(chunk: Chunk, candidate: CandidateSignal) -> CandidateSignal:
    """ Critical content is never suggested for removal, whatever the signals say. """
    if not chunk.is_critical or candidate.label != Label.REMOVE:
        return candidate

    return dataclasses.replace(
        candidate,
        label=Label.KEEP,
        confidence=max(candidate.confidence - SAFETY_PENALTY, SAFETY_FLOOR),
        reason=SAFETY_REASON,
        source=ModelSource.CRITICAL_SAFETY,
        remove_reason=None,
    )


@dataclass
class SignalFusion:
    classifier: HeuristicClassifier = field(default_factory=HeuristicClassifier)

    def fuse(self, chunk: Chunk) -> Optional[FusedSignal]:
        return merge_signals(build_candidate_signals(chunk, self.classifier))

    def decide(self, chunk: Chunk) -> Optional[CandidateSignal]:
        fused = self.fuse(chunk)
        if fused is None:
            return None
        return apply_critical_safety(chunk, fused.to_candidate())
