import pytest

from note_triage.domain.chunk import ChunkType
from note_triage.domain.classification import ClassificationContext
from note_triage.domain.explanation import ModelSource
from note_triage.domain.labels import Label, LabelScope, RemoveReason
from note_triage.services.learned_rules import LearnedRuleMatcher, find_best_match, scope_weight
from note_triage.shared.text import jaccard_similarity

DIET_TEXT = "tolerating regular diet without nausea vomiting abdominal pain overnight today"
DIET_TEXT_SHORTER = "tolerating regular diet without nausea vomiting abdominal pain overnight"


@pytest.mark.parametrize(
    "scope, context, expected",
    [
        (LabelScope.NOTE_TYPE, ClassificationContext(note_type="Progress Note"), 0.95),
        (LabelScope.NOTE_TYPE, ClassificationContext(), 0.75),
        (LabelScope.SERVICE, ClassificationContext(service="Cardiology"), 0.90),
        (LabelScope.SERVICE, ClassificationContext(), 0.70),
        (LabelScope.GLOBAL, ClassificationContext(), 0.85),
        (LabelScope.THIS_DOCUMENT, ClassificationContext(note_type="Progress Note"), 0.80),
    ],
)
def test_scope_weight(scope, context, expected):
    assert scope_weight(scope, context) == expected


def test_exact_match_ignores_case_and_punctuation(make_chunk, make_learned):
    chunk = make_chunk("Tolerating regular diet, without nausea!")
    learned = make_learned("tolerating regular diet without nausea", Label.REMOVE,
                           remove_reason=RemoveReason.IRRELEVANT_HISTORICAL)

    result = LearnedRuleMatcher().match(chunk, [learned])

    assert result.explanation.source == ModelSource.LEARNED_EXACT
    assert result.explanation.confidence >= 0.95
    assert result.annotation.label == Label.REMOVE
    assert result.annotation.remove_reason == RemoveReason.IRRELEVANT_HISTORICAL
    assert result.annotation.chunk_id == chunk.id


def test_similar_match_scores_with_type_boost_and_scope(make_chunk, make_learned):
    chunk = make_chunk(DIET_TEXT)
    learned = make_learned(DIET_TEXT_SHORTER, Label.REMOVE)

    assert jaccard_similarity(chunk.text, learned.raw_text) == pytest.approx(0.9)

    result = LearnedRuleMatcher().match(chunk, [learned])

    assert result.explanation.source == ModelSource.LEARNED_SIMILAR
    assert result.explanation.confidence == pytest.approx(0.8)
    assert result.explanation.signals == ["Scope: this document", "Similarity: 80%"]


def test_match_below_threshold_is_rejected(make_chunk, make_learned):
    chunk = make_chunk(DIET_TEXT)
    # Different section type: no boost, (0.9 * 0.75) < 0.7
    learned = make_learned(DIET_TEXT_SHORTER, Label.REMOVE, scope=LabelScope.NOTE_TYPE,
                           section_type=ChunkType.PARAGRAPH)

    assert LearnedRuleMatcher().match(chunk, [learned]) is None


def test_low_similarity_entries_are_skipped(make_chunk, make_learned):
    chunk = make_chunk(DIET_TEXT)
    learned = make_learned("completely unrelated cardiology consult narrative", Label.KEEP)

    assert find_best_match(chunk, [learned], ClassificationContext()) is None


def test_earliest_entry_wins_ties(make_chunk, make_learned):
    chunk = make_chunk(DIET_TEXT)
    first = make_learned(DIET_TEXT_SHORTER, Label.REMOVE)
    second = make_learned(DIET_TEXT_SHORTER, Label.CONDENSE)

    match = find_best_match(chunk, [first, second], ClassificationContext())

    assert match.annotation is first


def test_empty_corpus_or_empty_tokens_yield_no_match(make_chunk, make_learned):
    matcher = LearnedRuleMatcher()

    assert matcher.match(make_chunk(DIET_TEXT), []) is None
    # Only short tokens and stopwords: nothing to compare
    assert matcher.match(make_chunk("a b of"), [make_learned("is to", Label.KEEP)]) is None


def test_context_dict_is_accepted(make_chunk, make_learned):
    chunk = make_chunk(DIET_TEXT)
    learned = make_learned(DIET_TEXT_SHORTER, Label.REMOVE, scope=LabelScope.NOTE_TYPE)

    result = LearnedRuleMatcher().match(chunk, [learned], {"noteType": "Progress Note"})

    assert result.explanation.confidence == pytest.approx(0.95)
    assert result.annotation.scope == LabelScope.NOTE_TYPE
