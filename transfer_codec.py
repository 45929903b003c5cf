"""
transfer_codec.py
Turns a note into a compact URL-safe token and back.

Wire format:
    token = base64url( utf8( json({"content": str, "drawing"?: str}) ) ) with '=' padding removed

The alphabet is [A-Za-z0-9_-], so a token needs no percent-encoding inside a URL
fragment and fits QR byte mode as-is. The codec never truncates; channels decide
whether a token is too large for them.
"""

import base64
import binascii
import json
import re

from errors import MalformedToken
from note_state import Note

_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]*$")
_DATA_URI_RE = re.compile(r"^data:image/[A-Za-z0-9.+-]+;base64,[A-Za-z0-9+/=\s]*$")


def is_valid_drawing(drawing) -> bool:
    return isinstance(drawing, str) and bool(_DATA_URI_RE.match(drawing))


def encode(note: Note) -> str:
    payload = json.dumps(note.to_dict(), ensure_ascii=False, separators=(",", ":"))
    raw = base64.urlsafe_b64encode(payload.encode("utf-8"))
    return raw.decode("ascii").rstrip("=")


def decode(token: str) -> Note:
    """Reverse encode(). Raises MalformedToken on any failure, never returns a partial note."""
    if not isinstance(token, str):
        raise MalformedToken("token must be a string")
    token = token.strip()
    if not token or not _TOKEN_RE.match(token) or len(token) % 4 == 1:
        raise MalformedToken("not a transfer token")
    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, ValueError) as e:
        raise MalformedToken(f"bad token alphabet: {e}") from e
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedToken("token is not UTF-8") from e
    try:
        data = json.loads(text)
    except ValueError as e:
        raise MalformedToken("token payload is not JSON") from e
    if not isinstance(data, dict):
        raise MalformedToken("token payload is not an object")
    content = data.get("content")
    drawing = data.get("drawing")
    if not isinstance(content, str):
        raise MalformedToken("token has no text content")
    if drawing is not None and not is_valid_drawing(drawing):
        raise MalformedToken("token drawing is not an image data URI")
    return Note(content=content, drawing=drawing)
