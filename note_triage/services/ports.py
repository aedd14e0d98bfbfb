from __future__ import annotations

from pathlib import Path
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Union

from note_triage.domain.annotation import ChunkAnnotation, LearnedAnnotation
from note_triage.domain.chunk import Chunk
from note_triage.domain.classification import ClassificationContext, ClassificationResult
from note_triage.domain.extracted_field import ExtractedField
from note_triage.domain.note import ParsedNote

ContextLike = Union[ClassificationContext, Mapping[str, Any], None]


class NoteReaderPort(Protocol):
    def read_text(self, file_path: Path) -> str:
        ...


class ChunkerPort(Protocol):
    def chunk_document(self, text: str) -> List[Chunk]:
        ...


class ChartParserPort(Protocol):
    def parse_chart(self, full_text: str) -> List[ParsedNote]:
        ...


class ClassifierPort(Protocol):
    def classify_document(
        self,
        chunks: Sequence[Chunk],
        learned_corpus: Optional[Sequence[LearnedAnnotation]] = None,
        context: ContextLike = None,
    ) -> ClassificationResult:
        ...


class FieldExtractorPort(Protocol):
    def extract_document_fields(self, chunks: Sequence[Chunk]) -> List[ExtractedField]:
        ...


class LearnedCorpusRepositoryPort(Protocol):
    def append(self, annotation: ChunkAnnotation) -> None:
        ...

    def list_all(self) -> List[LearnedAnnotation]:
        ...

    def list_for_context(self, context: ContextLike = None) -> List[LearnedAnnotation]:
        ...
