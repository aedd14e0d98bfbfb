from typing import Any, Dict, Optional

from note_triage.domain.annotation import ChunkAnnotation
from note_triage.domain.chunk import Chunk
from note_triage.domain.explanation import ModelExplanation
from note_triage.domain.extracted_field import ExtractedField


def _value(member) -> Optional[str]:
    return member.value if member is not None else None


def chunk_to_dict(chunk: Chunk) -> Dict[str, Any]:
    return {
        "id": chunk.id,
        "text": chunk.text,
        "type": chunk.type.value,
        "start_offset": chunk.start_offset,
        "end_offset": chunk.end_offset,
        "is_critical": chunk.is_critical,
        "critical_category": _value(chunk.critical_category),
        "suggested_label": _value(chunk.suggested_label),
        "suggested_confidence": chunk.suggested_confidence,
    }


def suggestion_to_dict(annotation: ChunkAnnotation, explanation: ModelExplanation) -> Dict[str, Any]:
    return {
        "chunk_id": annotation.chunk_id,
        "label": annotation.label.value,
        "remove_reason": _value(annotation.remove_reason),
        "condense_strategy": _value(annotation.condense_strategy),
        "scope": annotation.scope.value,
        "source": explanation.source.value,
        "confidence": explanation.confidence,
        "reason": explanation.reason,
        "signals": list(explanation.signals),
    }


def field_to_dict(extracted: ExtractedField) -> Dict[str, Any]:
    return {
        "id": extracted.id,
        "category": extracted.category.value,
        "label": extracted.label,
        "value": extracted.value,
        "confidence": extracted.confidence,
        "source_chunk_id": extracted.source_chunk_id,
        "metadata": dict(extracted.metadata),
    }
