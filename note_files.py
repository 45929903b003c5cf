"""
note_files.py
Import and export of a note as files.

Export:
- JSON backup: {"content", "drawing"?, "lastSaved"} named monopad-backup-<millis>.json
- Plain text: content only, named monopad-note-<millis>.txt
- Word document: one paragraph per line, named monopad-export-<millis>.docx

Import (by extension):
- .json -> content and drawing from a backup (missing content becomes "")
- .txt / .md -> content only
- .docx -> paragraph text joined by newlines
Anything else raises UnsupportedImportFormat. No state is touched here; callers
decide what to do with the returned note.
"""

import json
import logging
import os
import time
import zipfile
from typing import Optional

import docx
from docx.opc.exceptions import PackageNotFoundError

import transfer_codec
from errors import UnsupportedImportFormat
from note_state import Note

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = ("txt", "md")


def _millis() -> int:
    return int(time.time() * 1000)


def backup_filename(now_ms: Optional[int] = None) -> str:
    return f"monopad-backup-{now_ms if now_ms is not None else _millis()}.json"


def text_filename(now_ms: Optional[int] = None) -> str:
    return f"monopad-note-{now_ms if now_ms is not None else _millis()}.txt"


def docx_filename(now_ms: Optional[int] = None) -> str:
    return f"monopad-export-{now_ms if now_ms is not None else _millis()}.docx"


def export_json(note: Note, dest_dir: str, now_ms: Optional[int] = None) -> str:
    """Write a JSON backup into dest_dir and return its path."""
    now_ms = now_ms if now_ms is not None else _millis()
    path = os.path.join(dest_dir, backup_filename(now_ms))
    data = note.to_dict()
    data["lastSaved"] = now_ms
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
    logger.info("exported backup %s", path)
    return path


def export_text(note: Note, dest_dir: str, now_ms: Optional[int] = None) -> str:
    path = os.path.join(dest_dir, text_filename(now_ms))
    with open(path, "w", encoding="utf-8") as f:
        f.write(note.content)
    logger.info("exported text %s", path)
    return path


def export_docx(note: Note, dest_dir: str, now_ms: Optional[int] = None) -> str:
    """Write the text as a Word document, one paragraph per line."""
    path = os.path.join(dest_dir, docx_filename(now_ms))
    document = docx.Document()
    for line in note.content.split("\n"):
        document.add_paragraph(line)
    document.save(path)
    logger.info("exported document %s", path)
    return path


def _extension(path: str) -> str:
    return os.path.splitext(path)[1].lstrip(".").lower()


def parse_backup(text: str) -> Note:
    try:
        data = json.loads(text)
    except ValueError as e:
        raise UnsupportedImportFormat("Backup file is not valid JSON") from e
    if not isinstance(data, dict):
        raise UnsupportedImportFormat("Backup file has no note")
    content = data.get("content") or ""
    drawing = data.get("drawing") or None
    if not isinstance(content, str):
        raise UnsupportedImportFormat("Backup content is not text")
    if drawing is not None and not transfer_codec.is_valid_drawing(drawing):
        raise UnsupportedImportFormat("Backup drawing is not an image")
    return Note(content=content, drawing=drawing)


def read_docx_text(path: str) -> str:
    try:
        document = docx.Document(path)
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError, OSError) as e:
        raise UnsupportedImportFormat(f"Could not read {os.path.basename(path)}") from e
    return "\n".join(p.text for p in document.paragraphs)


def import_file(path: str) -> Note:
    """Read a note from a file. Raises UnsupportedImportFormat for unknown types."""
    ext = _extension(path)
    if ext == "docx":
        return Note(content=read_docx_text(path))
    if ext not in TEXT_EXTENSIONS and ext != "json":
        raise UnsupportedImportFormat("Unsupported file format")
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise UnsupportedImportFormat(f"Could not read {os.path.basename(path)}") from e
    if ext == "json":
        return parse_backup(text)
    return Note(content=text)
