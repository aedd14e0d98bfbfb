import logging
from typing import Optional, Sequence, Set

from note_triage.domain.annotation import ChunkAnnotation, LearnedAnnotation
from note_triage.domain.chunk import Chunk
from note_triage.domain.classification import ClassificationContext, ClassificationResult
from note_triage.domain.explanation import (
    CandidateSignal,
    MatchResult,
    ModelExplanation,
    ModelSource,
)
from note_triage.domain.labels import Label, LabelScope, RemoveReason
from note_triage.services.duplicates import find_duplicates
from note_triage.services.field_extraction import FieldExtractionService
from note_triage.services.learned_rules import LearnedRuleMatcher
from note_triage.services.ports import FieldExtractorPort
from note_triage.services.signal_fusion import SignalFusion, apply_critical_safety
from note_triage.shared.config import DEFAULT_USER_ID

logger = logging.getLogger(__name__)

DUPLICATE_CONFIDENCE = 0.74
MAX_EXPLANATION_SIGNALS = 3


class ClassificationService:
    """
    Builds one suggestion per chunk, in priority order:

    1. learned (human-confirmed) annotations,
    2. intra-document duplicates,
    3. heuristic rules fused with the parser suggestion.

    The critical-content override is applied to whatever wins. Field
    extraction runs alongside and never affects labels.
    """

    def __init__(
        self,
        learned_matcher: Optional[LearnedRuleMatcher] = None,
        fusion: Optional[SignalFusion] = None,
        field_extractor: Optional[FieldExtractorPort] = None,
    ):
        self.learned_matcher = learned_matcher or LearnedRuleMatcher()
        self.fusion = fusion or SignalFusion()
        self.field_extractor = field_extractor or FieldExtractionService()

    def classify_document(
        self,
        chunks: Sequence[Chunk],
        learned_corpus: Optional[Sequence[LearnedAnnotation]] = None,
        context: Optional[ClassificationContext] = None,
    ) -> ClassificationResult:
        corpus = list(learned_corpus or [])
        context = ClassificationContext.coerce(context)
        result = ClassificationResult()

        # Phase 1 needs the whole document; phase 2 is independent per chunk
        duplicates = find_duplicates(chunks)

        for chunk in chunks:
            suggestion = self.suggest(chunk, corpus, context, duplicates)
            if suggestion is None:
                continue
            result.annotations[chunk.id] = suggestion.annotation
            result.explanations[chunk.id] = suggestion.explanation

        result.extracted_fields = self.field_extractor.extract_document_fields(chunks)

        logger.info(
            "Classified %d chunks: %d annotated, %d duplicates, %d fields",
            len(chunks),
            len(result.annotations),
            len(duplicates),
            len(result.extracted_fields),
        )
        return result

    def suggest(
        self,
        chunk: Chunk,
        learned_corpus: Sequence[LearnedAnnotation],
        context: ClassificationContext,
        duplicates: Set[str],
    ) -> Optional[MatchResult]:
        learned = self.learned_matcher.match(chunk, learned_corpus, context)
        if learned is not None:
            return self._enforce_safety(chunk, learned)

        if chunk.id in duplicates:
            return self._enforce_safety(chunk, self._duplicate_suggestion(chunk))

        return self._fused_suggestion(chunk)

    @staticmethod
    def _duplicate_suggestion(chunk: Chunk) -> MatchResult:
        annotation = _build_annotation(
            chunk, Label.REMOVE, remove_reason=RemoveReason.DUPLICATE_DATA, scope=LabelScope.THIS_DOCUMENT
        )
        explanation = ModelExplanation(
            source=ModelSource.DUPLICATE_DETECTOR,
            confidence=DUPLICATE_CONFIDENCE,
            reason="repeated text detected in note",
            signals=["text repeats another section of this note"],
        )
        return MatchResult(annotation=annotation, explanation=explanation)

    def _fused_suggestion(self, chunk: Chunk) -> Optional[MatchResult]:
        fused = self.fusion.fuse(chunk)
        if fused is None:
            logger.debug("No signal for chunk %s", chunk.id)
            return None

        candidate = apply_critical_safety(chunk, fused.to_candidate())
        annotation = _build_annotation(
            chunk,
            candidate.label,
            remove_reason=candidate.remove_reason,
            condense_strategy=candidate.condense_strategy,
        )
        explanation = ModelExplanation(
            source=candidate.source,
            confidence=candidate.confidence,
            reason=candidate.reason,
            signals=fused.reasons[:MAX_EXPLANATION_SIGNALS],
        )
        return MatchResult(annotation=annotation, explanation=explanation)

    @staticmethod
    def _enforce_safety(chunk: Chunk, suggestion: MatchResult) -> MatchResult:
        """ Learned and duplicate suggestions are subject to the same critical override as fused ones. """
        annotation = suggestion.annotation
        candidate = CandidateSignal(
            label=annotation.label,
            confidence=suggestion.explanation.confidence,
            reason=suggestion.explanation.reason,
            source=suggestion.explanation.source,
            remove_reason=annotation.remove_reason,
            condense_strategy=annotation.condense_strategy,
        )
        safe = apply_critical_safety(chunk, candidate)
        if safe is candidate:
            return suggestion

        logger.info("Critical chunk %s kept despite %s removal signal", chunk.id, candidate.source.value)
        annotation.label = safe.label
        annotation.remove_reason = None
        explanation = ModelExplanation(
            source=safe.source,
            confidence=safe.confidence,
            reason=safe.reason,
            signals=[candidate.reason, *suggestion.explanation.signals][:MAX_EXPLANATION_SIGNALS],
        )
        return MatchResult(annotation=annotation, explanation=explanation)


def _build_annotation(
    chunk: Chunk,
    label: Label,
    remove_reason=None,
    condense_strategy=None,
    scope: LabelScope = LabelScope.THIS_DOCUMENT,
) -> ChunkAnnotation:
    return ChunkAnnotation(
        chunk_id=chunk.id,
        raw_text=chunk.text,
        section_type=chunk.type,
        label=label,
        remove_reason=remove_reason,
        condense_strategy=condense_strategy,
        scope=scope,
        user_id=DEFAULT_USER_ID,
    )


def classify_document(
    chunks: Sequence[Chunk],
    learned_corpus: Optional[Sequence[LearnedAnnotation]] = None,
    context: Optional[ClassificationContext] = None,
) -> ClassificationResult:
    return ClassificationService().classify_document(chunks, learned_corpus, context)
