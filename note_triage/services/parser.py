import logging
from pathlib import Path
from typing import Callable, Dict

import docx
from pypdf import PdfReader

from note_triage.shared.config import SUPPORTED_NOTE_EXTENSIONS

logger = logging.getLogger(__name__)


class NoteFileReader:
    """
    Turns a note file on disk into plain text with '\\n' line endings.
    Offsets reported by the chunker refer to this text.
    """
    def __init__(self):
        readers: Dict[str, Callable[[Path], str]] = {
            '.txt': self._read_txt,
            '.md': self._read_txt,
            '.pdf': self._read_pdf,
            '.docx': self._read_docx
        }
        # Only formats enabled in config are accepted
        self._extractors = {ext: readers[ext] for ext in SUPPORTED_NOTE_EXTENSIONS if ext in readers}

    def read_text(self, file_path: Path) -> str:
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Note file not found: {file_path}")

        suffix = file_path.suffix.lower()
        extractor = self._extractors.get(suffix)
        if not extractor:
            raise ValueError(f"Unsupported note format: {suffix}")

        try:
            text = extractor(file_path)
        except Exception as e:
            logger.error("Error reading note %s: %s", file_path.name, e)
            raise

        text = text.replace("\r\n", "\n").replace("\r", "\n")
        if not text.strip():
            logger.warning("Note file %s is empty.", file_path.name)
        return text

    def _read_txt(self, p: Path) -> str:
        return p.read_text(encoding="utf-8", errors="replace")

    def _read_pdf(self, p: Path) -> str:
        reader = PdfReader(str(p))
        return "\n".join(page.extract_text() or "" for page in reader.pages)

    def _read_docx(self, p: Path) -> str:
        document = docx.Document(str(p))
        return "\n".join(para.text for para in document.paragraphs)
