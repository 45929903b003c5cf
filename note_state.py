"""
note_state.py
In-memory note record and the save status enumeration.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SaveStatus(str, Enum):
    SAVED = "SAVED"
    SAVING = "SAVING"
    UNSAVED = "UNSAVED"
    ERROR = "ERROR"


@dataclass(frozen=True)
class Note:
    """A unit of user content: text plus an optional PNG drawing.

    drawing is a ``data:image/png;base64,...`` URI or None. None means the note
    has no drawing at all (not an empty canvas).
    """

    content: str = ""
    drawing: Optional[str] = None

    def with_content(self, content: str) -> "Note":
        return Note(content=content, drawing=self.drawing)

    def with_drawing(self, drawing: Optional[str]) -> "Note":
        return Note(content=self.content, drawing=drawing or None)

    def to_dict(self) -> dict:
        data = {"content": self.content}
        if self.drawing is not None:
            data["drawing"] = self.drawing
        return data

    def word_count(self) -> int:
        text = self.content.strip()
        return len(text.split()) if text else 0
