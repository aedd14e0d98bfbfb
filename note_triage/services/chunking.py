import dataclasses
import logging
import re
from typing import Callable, List, Optional, Tuple

from note_triage.domain.chunk import Chunk, ChunkType
from note_triage.domain.labels import Label
from note_triage.services.critical_content import CriticalContentDetector
from note_triage.services.duplicates import find_duplicates
from note_triage.shared.config import PARAGRAPH_MIN_LENGTH
from note_triage.shared.ids import generate_chunk_id

logger = logging.getLogger(__name__)

SECTION_HEADERS = [
    "CHIEF COMPLAINT",
    "HISTORY OF PRESENT ILLNESS",
    "HPI",
    "PAST MEDICAL HISTORY",
    "PMH",
    "MEDICATIONS",
    "ALLERGIES",
    "SOCIAL HISTORY",
    "FAMILY HISTORY",
    "REVIEW OF SYSTEMS",
    "ROS",
    "PHYSICAL EXAM",
    "VITAL SIGNS",
    "ASSESSMENT",
    "PLAN",
    "ASSESSMENT AND PLAN",
    "A/P",
    "LABS",
    "IMAGING",
    "PROCEDURES",
    "DISPOSITION",
    "ATTENDING ATTESTATION",
]

BOILERPLATE_PATTERNS = [
    re.compile(r"I have personally seen and examined the patient", re.IGNORECASE),
    re.compile(r"I was present for the key portions", re.IGNORECASE),
    re.compile(r"I agree with the resident's assessment", re.IGNORECASE),
    re.compile(r"The above note was reviewed and edited", re.IGNORECASE),
    re.compile(r"electronically signed by", re.IGNORECASE),
    re.compile(r"This note was generated", re.IGNORECASE),
    re.compile(r"attestation", re.IGNORECASE),
]

_BULLET_RE = re.compile(r"^(?:[-•*]|\d+\.)\s")
_IMAGING_RE = re.compile(r"\b(CT|MRI|X-ray|ultrasound|echo|EKG|impression|findings)\b", re.IGNORECASE)
# Case-sensitive: "Na"/"K" in lowercase prose are not lab tokens.
_LAB_RE = re.compile(r"\b(WBC|Hgb|Plt|Na|K|Cr|BUN|Glucose|AST|ALT|Bili)\b")
_VITALS_RE = re.compile(r"\b(BP|HR|RR|Temp|SpO2|O2 sat)\b", re.IGNORECASE)
_MEDICATION_RE = re.compile(r"\b(mg|mcg|units|tablet|capsule|daily|BID|TID|QID|PRN)\b", re.IGNORECASE)
_DIGIT_RE = re.compile(r"\d")

# A new section starts at a line opening with an upper-case run ("HPI:", "PLAN ...").
_SECTION_BOUNDARY_RE = re.compile(r"\n(?=[A-Z]{2,}[:\s])")
_BLANK_LINE_RE = re.compile(r"\n[ \t]*\n")


def is_boilerplate(text: str) -> bool:
    return any(pattern.search(text) for pattern in BOILERPLATE_PATTERNS)


def _is_section_header(text: str) -> bool:
    upper = text.strip().upper()
    return any(upper.startswith(header) for header in SECTION_HEADERS)


TYPE_RULES: List[Tuple[Callable[[str], bool], ChunkType]] = [
    (_is_section_header, ChunkType.SECTION_HEADER),
    (lambda text: bool(_BULLET_RE.search(text.strip())), ChunkType.BULLET_LIST),
    (lambda text: bool(_IMAGING_RE.search(text)), ChunkType.IMAGING_REPORT),
    (lambda text: bool(_LAB_RE.search(text) and _DIGIT_RE.search(text)), ChunkType.LAB_VALUES),
    (lambda text: bool(_VITALS_RE.search(text) and _DIGIT_RE.search(text)), ChunkType.VITAL_SIGNS),
    (lambda text: bool(_MEDICATION_RE.search(text)), ChunkType.MEDICATION_LIST),
    (is_boilerplate, ChunkType.ATTESTATION),
]


def detect_chunk_type(text: str) -> ChunkType:
    for predicate, chunk_type in TYPE_RULES:
        if predicate(text):
            return chunk_type
    return ChunkType.PARAGRAPH if len(text) > PARAGRAPH_MIN_LENGTH else ChunkType.UNKNOWN


def suggest_label(text: str, chunk_type: ChunkType) -> Tuple[Optional[Label], float]:
    """ Weak parser-level suggestion; (None, 0.0) means no suggestion. """
    if chunk_type == ChunkType.ATTESTATION:
        return Label.REMOVE, 0.85

    if is_boilerplate(text):
        return Label.REMOVE, 0.80

    if chunk_type == ChunkType.SECTION_HEADER:
        return Label.KEEP, 0.90

    if chunk_type == ChunkType.LAB_VALUES and len(text) > 300:
        return Label.CONDENSE, 0.60

    return None, 0.0


class ClinicalChunkingService:
    """
    Splits a clinical note into typed, offset-addressed chunks.

    Invariant: ``text[chunk.start_offset:chunk.end_offset] == chunk.text`` for
    every chunk, and spans are strictly increasing, so the source is rebuilt
    exactly by interleaving chunks with the separators between them.
    """

    def __init__(self, critical_detector: Optional[CriticalContentDetector] = None):
        self.critical_detector = critical_detector or CriticalContentDetector()

    def chunk_document(self, text: str) -> List[Chunk]:
        if not isinstance(text, str) or not text.strip():
            logger.warning("Note has no extractable text.")
            return []

        chunks = [
            self._build_chunk(text, start, end)
            for start, end in self._get_fragment_spans(text)
        ]
        chunks = self._apply_duplicate_suggestions(chunks)

        logger.info("Chunking complete", extra={"count": len(chunks)})
        return chunks

    def _get_fragment_spans(self, text: str) -> List[Tuple[int, int]]:
        spans = []
        for section_start, section_end in self._split_spans(text, 0, len(text), _SECTION_BOUNDARY_RE):
            # Long sections are further broken on blank lines
            for para_start, para_end in self._split_spans(text, section_start, section_end, _BLANK_LINE_RE):
                trimmed = self._trim_span(text, para_start, para_end)
                if trimmed:
                    spans.append(trimmed)
        return spans

    @staticmethod
    def _split_spans(text: str, start: int, end: int, pattern: re.Pattern) -> List[Tuple[int, int]]:
        spans = []
        last_pos = start
        for match in pattern.finditer(text, start, end):
            spans.append((last_pos, match.start()))
            last_pos = match.end()
        spans.append((last_pos, end))
        return spans

    @staticmethod
    def _trim_span(text: str, start: int, end: int) -> Optional[Tuple[int, int]]:
        while start < end and text[start].isspace():
            start += 1
        while end > start and text[end - 1].isspace():
            end -= 1
        if start == end:
            return None
        return start, end

    def _build_chunk(self, text: str, start: int, end: int) -> Chunk:
        content = text[start:end]
        chunk_type = detect_chunk_type(content)
        critical_category = self.critical_detector.detect(content)
        label, confidence = suggest_label(content, chunk_type)

        return Chunk(
            id=generate_chunk_id(content, start),
            text=content,
            type=chunk_type,
            start_offset=start,
            end_offset=end,
            is_critical=critical_category is not None,
            critical_category=critical_category,
            suggested_label=label,
            suggested_confidence=confidence,
        )

    @staticmethod
    def _apply_duplicate_suggestions(chunks: List[Chunk]) -> List[Chunk]:
        duplicates = find_duplicates(chunks)
        if not duplicates:
            return chunks

        logger.debug("Found %d repeated chunks", len(duplicates))
        return [
            dataclasses.replace(chunk, suggested_label=Label.REMOVE, suggested_confidence=0.75)
            if chunk.id in duplicates
            else chunk
            for chunk in chunks
        ]


def chunk_document(text: str) -> List[Chunk]:
    return ClinicalChunkingService().chunk_document(text)
