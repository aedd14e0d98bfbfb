import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from note_triage.domain.annotation import ChunkAnnotation, LearnedAnnotation
from note_triage.domain.chunk import Chunk
from note_triage.domain.classification import ClassificationContext
from note_triage.domain.explanation import MatchResult, ModelExplanation, ModelSource
from note_triage.domain.labels import LabelScope
from note_triage.shared.config import DEFAULT_USER_ID
from note_triage.shared.text import jaccard_similarity, normalize_text

logger = logging.getLogger(__name__)

MIN_SIMILARITY = 0.5
TYPE_MATCH_BOOST = 0.10
ACCEPT_THRESHOLD = 0.7
EXACT_THRESHOLD = 0.95
MAX_LEARNED_CONFIDENCE = 0.95


@dataclass
class SimilarityMatch:
    annotation: LearnedAnnotation
    score: float
    similarity: float


def scope_weight(scope: LabelScope, context: ClassificationContext) -> float:
    """
    How far a confirmed annotation is trusted outside the context it was made in.
    Empirically tuned constants.
    """
    if scope == LabelScope.NOTE_TYPE:
        return 0.95 if context.note_type else 0.75
    if scope == LabelScope.SERVICE:
        return 0.90 if context.service else 0.70
    if scope == LabelScope.GLOBAL:
        return 0.85
    return 0.80


def find_best_match(
    chunk: Chunk,
    learned_corpus: Sequence[LearnedAnnotation],
    context: ClassificationContext,
) -> Optional[SimilarityMatch]:
    normalized_chunk = normalize_text(chunk.text)
    best: Optional[SimilarityMatch] = None

    for annotation in learned_corpus:
        if normalized_chunk and normalize_text(annotation.raw_text) == normalized_chunk:
            return SimilarityMatch(annotation=annotation, score=1.0, similarity=1.0)

        similarity = jaccard_similarity(chunk.text, annotation.raw_text)
        if similarity < MIN_SIMILARITY:
            continue

        type_boost = TYPE_MATCH_BOOST if annotation.section_type == chunk.type else 0.0
        weight = scope_weight(LabelScope(annotation.scope), context)
        score = min((similarity + type_boost) * weight, 1.0)

        # Strictly greater keeps the earliest entry on ties
        if best is None or score > best.score:
            best = SimilarityMatch(annotation=annotation, score=score, similarity=similarity)

    return best


class LearnedRuleMatcher:
    """
    Replays previously confirmed human annotations onto new chunks by lexical
    similarity. Holds no state: the corpus is passed in on every call.
    """

    def __init__(self, accept_threshold: float = ACCEPT_THRESHOLD):
        self.accept_threshold = accept_threshold

    def match(
        self,
        chunk: Chunk,
        learned_corpus: Sequence[LearnedAnnotation],
        context: Optional[ClassificationContext] = None,
    ) -> Optional[MatchResult]:
        if not learned_corpus:
            return None

        match = find_best_match(chunk, learned_corpus, ClassificationContext.coerce(context))
        if match is None or match.score < self.accept_threshold:
            return None

        learned = match.annotation
        is_exact = match.score >= EXACT_THRESHOLD
        scope = LabelScope(learned.scope)

        annotation = ChunkAnnotation(
            chunk_id=chunk.id,
            raw_text=chunk.text,
            section_type=chunk.type,
            label=learned.label,
            remove_reason=learned.remove_reason,
            condense_strategy=learned.condense_strategy,
            scope=scope,
            user_id=DEFAULT_USER_ID,
        )
        explanation = ModelExplanation(
            source=ModelSource.LEARNED_EXACT if is_exact else ModelSource.LEARNED_SIMILAR,
            confidence=min(match.score, MAX_LEARNED_CONFIDENCE),
            reason="exact match to learned rule" if is_exact else "similar wording to learned rule",
            signals=[
                f"Scope: {scope.value.replace('_', ' ')}",
                f"Similarity: {round(match.score * 100)}%",
            ],
        )
        logger.debug("Learned match for chunk %s (score %.2f)", chunk.id, match.score)
        return MatchResult(annotation=annotation, explanation=explanation)
