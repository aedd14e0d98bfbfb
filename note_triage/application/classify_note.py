import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from note_triage.application.container import ServiceContainer
from note_triage.application.serialization import chunk_to_dict, field_to_dict, suggestion_to_dict
from note_triage.domain.annotation import LearnedAnnotation
from note_triage.domain.classification import ClassificationContext
from note_triage.domain.document import ClinicalDocument
from note_triage.services.analytics import get_inference_stats
from note_triage.services.chart_parser import get_chart_summary
from note_triage.shared.date_parser import parse_dates
from note_triage.shared.ids import generate_document_id

logger = logging.getLogger(__name__)


def run_note_classification_pipeline(
    text: str,
    source: str = "inline",
    context=None,
    container: Optional[ServiceContainer] = None,
    learned_corpus: Optional[Sequence[LearnedAnnotation]] = None,
) -> Dict[str, Any]:
    """
    Chunks and classifies one note.
    When no corpus is passed, the stored learned corpus for the context is used.
    """
    container = container or ServiceContainer()
    context = ClassificationContext.coerce(context)

    document = ClinicalDocument(
        id=generate_document_id(text or "", source),
        text=text or "",
        source=source,
        note_type=context.note_type,
        service=context.service,
        parsed_dates=parse_dates(text or ""),
    )

    corpus = list(learned_corpus) if learned_corpus is not None else container.learned_corpus.list_for_context(context)
    chunks = container.chunker.chunk_document(document.text)
    result = container.classifier.classify_document(chunks, corpus, context)

    logger.info("Classified note %s from %s: %d chunks.", document.id[:12], source, len(chunks))

    return {
        "document": {
            "id": document.id,
            "source": document.source,
            "note_type": document.note_type,
            "service": document.service,
            "effective_date": document.effective_date.isoformat(),
        },
        "chunks": [chunk_to_dict(chunk) for chunk in chunks],
        "suggestions": [
            suggestion_to_dict(result.annotations[chunk.id], result.explanations[chunk.id])
            for chunk in chunks
            if chunk.id in result.annotations
        ],
        "extracted_fields": [field_to_dict(extracted) for extracted in result.extracted_fields],
        "stats": get_inference_stats(result),
    }


def run_note_file_classification_pipeline(
    file_paths: List[Path],
    context=None,
    container: Optional[ServiceContainer] = None,
) -> Dict[str, Any]:
    """
    Batch classifies note files.
    Returns a summary of successes and failures.
    """
    container = container or ServiceContainer()
    logger.info("Starting batch classification of %d note files.", len(file_paths))

    results = []
    success_count = 0
    failure_count = 0

    for file_path in file_paths:
        file_path = Path(file_path)
        try:
            text = container.reader.read_text(file_path)
            outcome = run_note_classification_pipeline(
                text, source=file_path.name, context=context, container=container
            )
            success_count += 1
            results.append({
                "file_name": file_path.name,
                "status": "success",
                **outcome,
            })
        except Exception as e:
            # One unreadable file must not stop the batch
            failure_count += 1
            logger.error("Failed to classify %s: %s", file_path.name, e)
            results.append({
                "file_name": file_path.name,
                "status": "error",
                "message": str(e),
            })

    return {
        "summary": {
            "total": len(file_paths),
            "success": success_count,
            "failed": failure_count,
        },
        "details": results,
    }


def run_chart_classification_pipeline(
    chart_text: str,
    context=None,
    container: Optional[ServiceContainer] = None,
) -> Dict[str, Any]:
    """
    Splits a chart into notes and classifies each one on its own.
    Chunk offsets are relative to the note; add the note's start_offset for chart positions.
    """
    container = container or ServiceContainer()
    context = ClassificationContext.coerce(context)
    notes = container.chart_parser.parse_chart(chart_text)

    details = []
    for note in notes:
        note_context = ClassificationContext(
            note_type=context.note_type or note.note_type,
            service=context.service,
        )
        outcome = run_note_classification_pipeline(
            note.text, source=f"chart:{note.id}", context=note_context, container=container
        )
        details.append({
            "note": {
                "id": note.id,
                "note_type": note.note_type,
                "date_time": note.date_time,
                "start_offset": note.start_offset,
                "end_offset": note.end_offset,
            },
            **outcome,
        })

    summary = get_chart_summary(notes)
    if summary["date_range"]:
        summary["date_range"] = {key: value.isoformat() for key, value in summary["date_range"].items()}

    return {"summary": summary, "notes": details}
