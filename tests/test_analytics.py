from note_triage.domain.classification import ClassificationResult
from note_triage.services.analytics import get_inference_stats
from note_triage.services.chunking import chunk_document
from note_triage.services.classification import classify_document


def test_stats_for_empty_result():
    stats = get_inference_stats(ClassificationResult())

    assert stats["total"] == 0
    assert stats["average_confidence"] == 0.0
    assert stats["by_source"] == {}


def test_stats_count_sources_and_labels(sample_note):
    result = classify_document(chunk_document(sample_note))

    stats = get_inference_stats(result)

    assert stats["total"] == len(result.explanations)
    assert sum(stats["by_source"].values()) == stats["total"]
    assert sum(stats["by_label"].values()) == stats["total"]
    assert stats["by_source"]["duplicate_detector"] == 2
    assert 0.0 < stats["average_confidence"] <= 1.0
