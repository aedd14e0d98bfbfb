import pytest

from note_triage.domain.chunk import ChunkType, CriticalCategory
from note_triage.domain.labels import CondenseStrategy, Label, RemoveReason
from note_triage.services.heuristics import HeuristicClassifier, HeuristicOutcome


@pytest.fixture
def classifier():
    return HeuristicClassifier()


def test_critical_chunk_is_kept_before_any_other_rule(classifier, make_chunk):
    chunk = make_chunk(
        "Copied forward: patient remains on heparin",
        is_critical=True,
        critical_category=CriticalCategory.ANTICOAGULATION,
    )

    outcome = classifier.classify(chunk)

    assert outcome.label == Label.KEEP
    assert outcome.confidence == 0.95
    assert outcome.reason == "critical clinical indicator"


@pytest.mark.parametrize(
    "text, chunk_type, label, confidence, remove_reason",
    [
        ("PLAN", ChunkType.SECTION_HEADER, Label.KEEP, 0.90, None),
        ("I was present for the key portions", ChunkType.ATTESTATION, Label.REMOVE, 0.82,
         RemoveReason.BILLING_ATTESTATION),
        ("General: NAD, alert", ChunkType.UNKNOWN, Label.REMOVE, 0.78, RemoveReason.NORMAL_ROS_EXAM),
        ("All other systems reviewed and negative", ChunkType.UNKNOWN, Label.REMOVE, 0.78,
         RemoveReason.NORMAL_ROS_EXAM),
        ("Follow up with primary care in two weeks", ChunkType.UNKNOWN, Label.REMOVE, 0.72,
         RemoveReason.ADMINISTRATIVE_TEXT),
        ("Copied from prior note without edits", ChunkType.UNKNOWN, Label.REMOVE, 0.76,
         RemoveReason.COPIED_PRIOR_NOTE),
        ("CT chest unchanged from prior", ChunkType.IMAGING_REPORT, Label.REMOVE, 0.74,
         RemoveReason.REPEATED_IMAGING),
        ("WBC 7.2 no interval change", ChunkType.LAB_VALUES, Label.REMOVE, 0.72, RemoveReason.REPEATED_LABS),
    ],
)
def test_removal_and_keep_rules(classifier, make_chunk, text, chunk_type, label, confidence, remove_reason):
    outcome = classifier.classify(make_chunk(text, chunk_type))

    assert outcome.label == label
    assert outcome.confidence == confidence
    assert outcome.remove_reason == remove_reason


@pytest.mark.parametrize(
    "text, chunk_type, confidence, strategy",
    [
        ("WBC 7.2 " * 40, ChunkType.LAB_VALUES, 0.70, CondenseStrategy.ABNORMAL_ONLY),
        ("CT abdomen shows " * 20, ChunkType.IMAGING_REPORT, 0.68, CondenseStrategy.ONE_LINE_SUMMARY),
        ("\n".join(["aspirin 81 mg"] * 9), ChunkType.MEDICATION_LIST, 0.64, CondenseStrategy.ONE_LINE_SUMMARY),
        ("word " * 100, ChunkType.PARAGRAPH, 0.62, CondenseStrategy.PROBLEM_BASED_SUMMARY),
    ],
)
def test_condense_rules(classifier, make_chunk, text, chunk_type, confidence, strategy):
    outcome = classifier.classify(make_chunk(text, chunk_type))

    assert outcome.label == Label.CONDENSE
    assert outcome.confidence == confidence
    assert outcome.condense_strategy == strategy


def test_parser_suggestion_is_reused_as_last_resort(classifier, make_chunk):
    chunk = make_chunk("short remark", suggested_label=Label.REMOVE, suggested_confidence=0.75)

    outcome = classifier.classify(chunk)

    assert outcome.label == Label.REMOVE
    assert outcome.confidence == pytest.approx(0.80)
    assert outcome.reason == "parser rule match"


def test_no_rule_matches(classifier, make_chunk):
    assert classifier.classify(make_chunk("short remark")) is None


def test_custom_rule_table():
    outcome = HeuristicOutcome(Label.CONDENSE, 0.5, "always")
    classifier = HeuristicClassifier(rules=[(lambda chunk: True, lambda chunk: outcome)])

    assert classifier.classify(object()) is outcome
