import docx
import pytest

from note_triage.services.parser import NoteFileReader


@pytest.fixture
def reader():
    return NoteFileReader()


def test_text_files_get_unix_line_endings(reader, tmp_path):
    path = tmp_path / "note.txt"
    path.write_bytes(b"HPI: cough\r\n\r\nPLAN: rest\r\n")

    assert reader.read_text(path) == "HPI: cough\n\nPLAN: rest\n"


def test_docx_paragraphs_become_lines(reader, tmp_path):
    path = tmp_path / "note.docx"
    document = docx.Document()
    document.add_paragraph("CHIEF COMPLAINT: cough")
    document.add_paragraph("PLAN: rest")
    document.save(str(path))

    assert reader.read_text(path) == "CHIEF COMPLAINT: cough\nPLAN: rest"


def test_missing_file(reader, tmp_path):
    with pytest.raises(FileNotFoundError):
        reader.read_text(tmp_path / "absent.txt")


def test_unsupported_format(reader, tmp_path):
    path = tmp_path / "note.csv"
    path.write_text("a,b", encoding="utf-8")

    with pytest.raises(ValueError):
        reader.read_text(path)


def test_only_configured_formats_are_read(monkeypatch, tmp_path):
    monkeypatch.setattr("note_triage.services.parser.SUPPORTED_NOTE_EXTENSIONS", [".txt"])
    path = tmp_path / "note.md"
    path.write_text("HPI: cough", encoding="utf-8")

    with pytest.raises(ValueError):
        NoteFileReader().read_text(path)
