import json
import logging
import os
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from note_triage.domain.annotation import ChunkAnnotation, LearnedAnnotation
from note_triage.domain.chunk import ChunkType
from note_triage.domain.classification import ClassificationContext
from note_triage.domain.labels import CondenseStrategy, Label, LabelScope, RemoveReason
from note_triage.shared.config import LEARNED_CORPUS_PATH

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


class JsonLearnedCorpusRepository:
    """
    Confirmed annotations kept in a JSON file, in confirmation order.
    Order matters: the matcher keeps the earliest entry on score ties.
    """

    def __init__(self, file_path: Optional[str] = None):
        self.file_path = file_path or LEARNED_CORPUS_PATH
        self._storage: List[LearnedAnnotation] = []
        self._ensure_storage_directory()
        self._load_from_disk()

    @staticmethod
    def _parse_enum(enum_cls: Type[E], raw_value: object, required: bool = False) -> Optional[E]:
        if raw_value is None or raw_value == "":
            if required:
                raise ValueError(f"Missing {enum_cls.__name__}")
            return None

        if isinstance(raw_value, enum_cls):
            return raw_value

        normalized = str(raw_value).strip()
        # Values serialized like "Label.KEEP"
        if "." in normalized:
            normalized = normalized.split(".")[-1]
        if normalized.upper() in enum_cls.__members__:
            return enum_cls[normalized.upper()]
        return enum_cls(normalized)

    @staticmethod
    def _parse_timestamp(raw_date: object) -> datetime:
        if isinstance(raw_date, datetime):
            return raw_date

        if isinstance(raw_date, str):
            try:
                return datetime.fromisoformat(raw_date)
            except ValueError:
                pass

        return datetime.now()

    def _ensure_storage_directory(self):
        directory = os.path.dirname(self.file_path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)

    def _load_from_disk(self):
        if not os.path.exists(self.file_path):
            return

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError:
            logger.warning("Corrupted learned corpus at %s. Starting fresh.", self.file_path)
            self._storage = []
            return

        if not isinstance(data, list):
            logger.warning("Learned corpus at %s is not a list. Starting fresh.", self.file_path)
            return

        for item in data:
            try:
                self._storage.append(self._from_dict(item))
            except (AttributeError, KeyError, TypeError, ValueError):
                logger.warning("Skipping invalid learned annotation: %s", item)

        logger.info("Loaded %d learned annotations from %s", len(self._storage), self.file_path)

    def _from_dict(self, item: Dict[str, Any]) -> LearnedAnnotation:
        raw_text = item["raw_text"]
        if not isinstance(raw_text, str):
            raise TypeError("raw_text must be a string")

        return ChunkAnnotation(
            chunk_id=str(item.get("chunk_id", "")),
            raw_text=raw_text,
            section_type=self._parse_enum(ChunkType, item.get("section_type")) or ChunkType.UNKNOWN,
            label=self._parse_enum(Label, item.get("label"), required=True),
            remove_reason=self._parse_enum(RemoveReason, item.get("remove_reason")),
            condense_strategy=self._parse_enum(CondenseStrategy, item.get("condense_strategy")),
            scope=self._parse_enum(LabelScope, item.get("scope")) or LabelScope.THIS_DOCUMENT,
            timestamp=self._parse_timestamp(item.get("timestamp")),
            user_id=str(item.get("user_id") or "system"),
            override_justification=item.get("override_justification"),
            note_type=item.get("note_type"),
            service=item.get("service"),
        )

    @staticmethod
    def _to_dict(annotation: ChunkAnnotation) -> Dict[str, Any]:
        def value_of(member: Optional[Enum]) -> Optional[str]:
            return member.value if member is not None else None

        return {
            "chunk_id": annotation.chunk_id,
            "raw_text": annotation.raw_text,
            "section_type": value_of(annotation.section_type),
            "label": value_of(annotation.label),
            "remove_reason": value_of(annotation.remove_reason),
            "condense_strategy": value_of(annotation.condense_strategy),
            "scope": value_of(annotation.scope),
            "timestamp": annotation.timestamp.isoformat(),
            "user_id": annotation.user_id,
            "override_justification": annotation.override_justification,
            "note_type": annotation.note_type,
            "service": annotation.service,
        }

    def _save_to_disk(self):
        data = [self._to_dict(annotation) for annotation in self._storage]
        with open(self.file_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=4)

    # --- Public Interface ---

    def append(self, annotation: ChunkAnnotation) -> None:
        self._storage.append(annotation)
        self._save_to_disk()

    def list_all(self) -> List[LearnedAnnotation]:
        return list(self._storage)

    def list_for_context(self, context=None) -> List[LearnedAnnotation]:
        """
        Annotations that may be replayed in the given context. Document-scoped
        annotations never leave their document; note-type and service scoped
        ones only apply where the recorded value matches (or was not recorded).
        """
        context = ClassificationContext.coerce(context)
        selected = []
        for annotation in self._storage:
            if annotation.scope == LabelScope.THIS_DOCUMENT:
                continue
            if annotation.scope == LabelScope.NOTE_TYPE and not _applies(annotation.note_type, context.note_type):
                continue
            if annotation.scope == LabelScope.SERVICE and not _applies(annotation.service, context.service):
                continue
            selected.append(annotation)
        return selected


def _applies(recorded: Optional[str], requested: Optional[str]) -> bool:
    if not recorded or not requested:
        return True
    return recorded.strip().lower() == requested.strip().lower()
