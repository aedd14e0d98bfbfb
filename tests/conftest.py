import pytest

from note_triage.application.container import ServiceContainer
from note_triage.domain.annotation import ChunkAnnotation
from note_triage.domain.chunk import Chunk, ChunkType
from note_triage.domain.labels import LabelScope
from note_triage.persistence.learned_corpus_repo import JsonLearnedCorpusRepository
from note_triage.shared.ids import generate_chunk_id

SAMPLE_NOTE = """CHIEF COMPLAINT: Shortness of breath

HPI: 68 year old man with worsening dyspnea over 3 days. Patient is on warfarin 5 mg daily.

ALLERGIES: Penicillin (rash)

PHYSICAL EXAM: General: NAD, alert and oriented.

Patient ambulating in the hallway with a steady gait and good spirits this noon.

Patient ambulating in the hallway with a steady gait and good spirits this noon.

ATTENDING ATTESTATION

I have personally seen and examined the patient and agree with the plan."""


@pytest.fixture
def sample_note():
    return SAMPLE_NOTE


@pytest.fixture
def make_chunk():
    def _make(text, chunk_type=ChunkType.UNKNOWN, start=0, **kwargs):
        return Chunk(
            id=generate_chunk_id(text, start),
            text=text,
            type=chunk_type,
            start_offset=start,
            end_offset=start + len(text),
            **kwargs,
        )
    return _make


@pytest.fixture
def make_learned():
    def _make(text, label, scope=LabelScope.THIS_DOCUMENT, section_type=ChunkType.UNKNOWN, **kwargs):
        return ChunkAnnotation(
            chunk_id=generate_chunk_id(text, 0),
            raw_text=text,
            section_type=section_type,
            label=label,
            scope=scope,
            user_id="reviewer",
            **kwargs,
        )
    return _make


@pytest.fixture
def corpus_path(tmp_path):
    return str(tmp_path / "corpus" / "learned_annotations.json")


@pytest.fixture
def corpus_repo(corpus_path):
    return JsonLearnedCorpusRepository(corpus_path)


@pytest.fixture
def container(corpus_repo):
    return ServiceContainer(learned_corpus=corpus_repo)
