from typing import Any, Dict

from note_triage.domain.classification import ClassificationResult


def get_inference_stats(result: ClassificationResult) -> Dict[str, Any]:
    """ Summary of a classification run: how many suggestions, how sure, and from where. """
    explanations = list(result.explanations.values())
    total = len(explanations)

    by_source: Dict[str, int] = {}
    for explanation in explanations:
        by_source[explanation.source.value] = by_source.get(explanation.source.value, 0) + 1

    by_label: Dict[str, int] = {}
    for annotation in result.annotations.values():
        by_label[annotation.label.value] = by_label.get(annotation.label.value, 0) + 1

    average = sum(e.confidence for e in explanations) / total if total else 0.0

    return {
        "total": total,
        "average_confidence": round(average, 4),
        "by_source": by_source,
        "by_label": by_label,
        "extracted_field_count": len(result.extracted_fields),
    }
