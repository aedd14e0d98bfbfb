import logging
from typing import Optional

from note_triage.application.container import ServiceContainer
from note_triage.domain.annotation import ChunkAnnotation
from note_triage.domain.chunk import Chunk
from note_triage.domain.classification import ClassificationContext
from note_triage.domain.labels import CondenseStrategy, Label, LabelScope, RemoveReason
from note_triage.shared.config import DEFAULT_USER_ID

logger = logging.getLogger(__name__)


def record_feedback(
    container: ServiceContainer,
    chunk: Chunk,
    label: Label,
    remove_reason: Optional[RemoveReason] = None,
    condense_strategy: Optional[CondenseStrategy] = None,
    scope: LabelScope = LabelScope.THIS_DOCUMENT,
    user_id: Optional[str] = None,
    override_justification: Optional[str] = None,
    context=None,
) -> ChunkAnnotation:
    """
    Stores a human-confirmed label so later notes can reuse it.
    Removing critical content requires a written justification.
    """
    label = Label(label)
    if label == Label.REMOVE and chunk.is_critical and not (override_justification or "").strip():
        raise ValueError("Removing critical content requires an override justification.")

    context = ClassificationContext.coerce(context)
    annotation = ChunkAnnotation(
        chunk_id=chunk.id,
        raw_text=chunk.text,
        section_type=chunk.type,
        label=label,
        remove_reason=remove_reason if label == Label.REMOVE else None,
        condense_strategy=condense_strategy if label == Label.CONDENSE else None,
        scope=LabelScope(scope),
        user_id=user_id or DEFAULT_USER_ID,
        override_justification=override_justification,
        note_type=context.note_type,
        service=context.service,
    )
    container.learned_corpus.append(annotation)

    logger.info("Recorded %s feedback for chunk %s (scope %s).", label.value, chunk.id, annotation.scope.value)
    return annotation
