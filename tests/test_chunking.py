import pytest

from note_triage.domain.chunk import ChunkType, CriticalCategory
from note_triage.domain.labels import Label
from note_triage.services.chunking import (
    ClinicalChunkingService,
    chunk_document,
    detect_chunk_type,
    suggest_label,
)


@pytest.mark.parametrize("text", ["", "   \n\n  ", None, 42])
def test_chunk_document_returns_empty_list_for_blank_or_malformed_input(text):
    assert chunk_document(text) == []


def test_chunk_offsets_address_the_source_text(sample_note):
    chunks = chunk_document(sample_note)

    assert len(chunks) == 8
    previous_end = 0
    for chunk in chunks:
        assert sample_note[chunk.start_offset:chunk.end_offset] == chunk.text
        assert chunk.start_offset >= previous_end
        previous_end = chunk.end_offset


def test_source_is_rebuilt_from_chunks_and_separators(sample_note):
    chunks = chunk_document(sample_note)

    rebuilt = []
    cursor = 0
    for chunk in chunks:
        separator = sample_note[cursor:chunk.start_offset]
        assert separator.strip() == ""
        rebuilt.append(separator)
        rebuilt.append(chunk.text)
        cursor = chunk.end_offset
    rebuilt.append(sample_note[cursor:])

    assert "".join(rebuilt) == sample_note


def test_chunk_ids_are_stable_across_runs(sample_note):
    first = [chunk.id for chunk in chunk_document(sample_note)]
    second = [chunk.id for chunk in chunk_document(sample_note)]

    assert first == second
    assert len(set(first)) == len(first)


def test_assessment_and_plan_header_is_kept():
    chunks = chunk_document("ASSESSMENT AND PLAN")

    assert len(chunks) == 1
    assert chunks[0].type == ChunkType.SECTION_HEADER
    assert chunks[0].suggested_label == Label.KEEP
    assert chunks[0].suggested_confidence == pytest.approx(0.90)


def test_critical_chunks_are_flagged(sample_note):
    chunks = chunk_document(sample_note)
    by_category = {chunk.critical_category: chunk for chunk in chunks if chunk.is_critical}

    assert by_category[CriticalCategory.ANTICOAGULATION].text.startswith("HPI:")
    assert by_category[CriticalCategory.ALLERGIES].text.startswith("ALLERGIES:")


def test_repeated_paragraphs_get_a_removal_suggestion(sample_note):
    chunks = chunk_document(sample_note)
    repeated = [chunk for chunk in chunks if chunk.text.startswith("Patient ambulating")]

    assert len(repeated) == 2
    assert repeated[0].id != repeated[1].id
    for chunk in repeated:
        assert chunk.suggested_label == Label.REMOVE
        assert chunk.suggested_confidence == pytest.approx(0.75)


def test_attestation_paragraph_is_typed_and_suggested_for_removal(sample_note):
    attestation = chunk_document(sample_note)[-1]

    assert attestation.type == ChunkType.ATTESTATION
    assert attestation.suggested_label == Label.REMOVE
    assert attestation.suggested_confidence == pytest.approx(0.85)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("MEDICATIONS: see list", ChunkType.SECTION_HEADER),
        ("- aspirin\n- lisinopril", ChunkType.BULLET_LIST),
        ("CT chest impression: no acute process", ChunkType.IMAGING_REPORT),
        ("Na 138, K 4.1, Cr 0.9", ChunkType.LAB_VALUES),
        ("bp 120/80, hr 72", ChunkType.VITAL_SIGNS),
        ("lisinopril 10 mg daily", ChunkType.MEDICATION_LIST),
        ("Electronically signed by the attending", ChunkType.ATTESTATION),
        ("short remark", ChunkType.UNKNOWN),
        ("word " * 60, ChunkType.PARAGRAPH),
    ],
)
def test_detect_chunk_type_first_matching_rule_wins(text, expected):
    assert detect_chunk_type(text) == expected


def test_lab_token_detection_is_case_sensitive():
    # "k" and "na" in prose are not lab tokens
    assert detect_chunk_type("ok na 5") == ChunkType.UNKNOWN


def test_suggest_label_for_dense_labs():
    text = "Na 138 K 4.1 Cr 0.9 " * 20
    assert suggest_label(text, ChunkType.LAB_VALUES) == (Label.CONDENSE, 0.60)
    assert suggest_label("Na 138", ChunkType.LAB_VALUES) == (None, 0.0)


def test_service_uses_injected_critical_detector(sample_note):
    class NeverCritical:
        def detect(self, text):
            return None

    chunks = ClinicalChunkingService(critical_detector=NeverCritical()).chunk_document(sample_note)

    assert not any(chunk.is_critical for chunk in chunks)
