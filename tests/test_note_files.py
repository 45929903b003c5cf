import json
import os

import docx
import pytest

import note_files
from errors import UnsupportedImportFormat
from note_state import Note

DRAWING = "data:image/png;base64,iVBORw0KGgo="


def test_export_json_backup(tmp_path):
    path = note_files.export_json(Note("hi ✓", DRAWING), str(tmp_path), now_ms=123)
    assert os.path.basename(path) == "monopad-backup-123.json"
    with open(path, encoding="utf-8") as f:
        assert json.load(f) == {"content": "hi ✓", "drawing": DRAWING, "lastSaved": 123}


def test_export_text(tmp_path):
    path = note_files.export_text(Note("line 1\nline 2", DRAWING), str(tmp_path), now_ms=7)
    assert os.path.basename(path) == "monopad-note-7.txt"
    with open(path, encoding="utf-8") as f:
        assert f.read() == "line 1\nline 2"


def test_backup_round_trip(tmp_path):
    path = note_files.export_json(Note("hello", DRAWING), str(tmp_path))
    assert note_files.import_file(path) == Note("hello", DRAWING)


@pytest.mark.parametrize("name", ["note.txt", "NOTE.MD"])
def test_import_text(tmp_path, name):
    p = tmp_path / name
    p.write_text("plain ünïcode", encoding="utf-8")
    assert note_files.import_file(str(p)) == Note("plain ünïcode")


def test_import_backup_without_content(tmp_path):
    p = tmp_path / "b.json"
    p.write_text('{"drawing": "%s"}' % DRAWING, encoding="utf-8")
    assert note_files.import_file(str(p)) == Note("", DRAWING)


@pytest.mark.parametrize("body", ["{broken", "[1, 2]", '{"content": 3}', '{"content": "x", "drawing": "nope"}'])
def test_import_bad_backup(tmp_path, body):
    p = tmp_path / "b.json"
    p.write_text(body, encoding="utf-8")
    with pytest.raises(UnsupportedImportFormat):
        note_files.import_file(str(p))


@pytest.mark.parametrize("name", ["image.png", "noext"])
def test_unsupported_extensions(tmp_path, name):
    p = tmp_path / name
    p.write_bytes(b"whatever")
    with pytest.raises(UnsupportedImportFormat):
        note_files.import_file(str(p))


def test_missing_file(tmp_path):
    with pytest.raises(UnsupportedImportFormat):
        note_files.import_file(str(tmp_path / "gone.txt"))


def test_export_docx_one_paragraph_per_line(tmp_path):
    path = note_files.export_docx(Note("first\n\nthird ✓", DRAWING), str(tmp_path), now_ms=42)
    assert os.path.basename(path) == "monopad-export-42.docx"
    document = docx.Document(path)
    assert [p.text for p in document.paragraphs] == ["first", "", "third ✓"]


def test_import_docx_joins_paragraphs(tmp_path):
    document = docx.Document()
    document.add_paragraph("Agenda")
    document.add_paragraph("Meeting at 5pm")
    p = tmp_path / "Report.DOCX"
    document.save(str(p))
    assert note_files.import_file(str(p)) == Note("Agenda\nMeeting at 5pm")


def test_docx_round_trip(tmp_path):
    path = note_files.export_docx(Note("a\nb"), str(tmp_path))
    assert note_files.import_file(path) == Note("a\nb")


@pytest.mark.parametrize("body", [b"not a zip", b""])
def test_import_corrupt_docx(tmp_path, body):
    p = tmp_path / "report.docx"
    p.write_bytes(body)
    with pytest.raises(UnsupportedImportFormat):
        note_files.import_file(str(p))


def test_import_missing_docx(tmp_path):
    with pytest.raises(UnsupportedImportFormat):
        note_files.import_file(str(tmp_path / "gone.docx"))
