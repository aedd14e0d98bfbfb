from __future__ import annotations

from typing import Optional

from note_triage.persistence.learned_corpus_repo import JsonLearnedCorpusRepository
from note_triage.services.chart_parser import ChartParsingService
from note_triage.services.chunking import ClinicalChunkingService
from note_triage.services.classification import ClassificationService
from note_triage.services.parser import NoteFileReader
from note_triage.services.ports import (
    ChartParserPort,
    ChunkerPort,
    ClassifierPort,
    LearnedCorpusRepositoryPort,
    NoteReaderPort,
)


class ServiceContainer:
    """
    Centralizes dependency wiring so CLI/API layers can construct services once.
    """

    def __init__(
        self,
        reader: Optional[NoteReaderPort] = None,
        chunker: Optional[ChunkerPort] = None,
        chart_parser: Optional[ChartParserPort] = None,
        classifier: Optional[ClassifierPort] = None,
        learned_corpus: Optional[LearnedCorpusRepositoryPort] = None,
    ):
        self.reader = reader or NoteFileReader()
        self.chunker = chunker or ClinicalChunkingService()
        self.chart_parser = chart_parser or ChartParsingService()
        self.classifier = classifier or ClassificationService()
        self.learned_corpus = learned_corpus or JsonLearnedCorpusRepository()


def build_default_container() -> ServiceContainer:
    return ServiceContainer()
