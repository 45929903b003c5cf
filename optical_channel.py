"""
optical_channel.py
Transfer through a QR code: render a token on the sending device, scan camera
frames on the receiving device.

Sender:   QrDisplay keeps the rendered code in step with the current note.
Receiver: ScanSession runs IDLE -> ACQUIRING -> SCANNING -> MATCHED, one frame per
          scheduled task, and always releases the camera when it stops.

Pixel buffers are numpy arrays as returned by OpenCV (grayscale or BGR).
"""

import logging
import os
from enum import Enum
from typing import Callable, Optional

import cv2
import numpy as np

import note_files
import transfer_codec
from errors import MalformedToken, PermissionDenied, TokenTooLarge
from link_channel import extract_token
from note_state import Note

logger = logging.getLogger(__name__)

# Byte-mode capacity of a version 40 symbol per error-correction level
QR_BYTE_CAPACITY = {"L": 2953, "M": 2331, "Q": 1663, "H": 1273}
# Tokens up to this length are "short" and get the robust level
SHORT_TOKEN_LIMIT = 256

DEFAULT_SCALE = 8
QUIET_ZONE = 4  # modules


def _cv_const(name: str):
    """Look up a QRCodeEncoder enum across OpenCV binding spellings."""
    flat = getattr(cv2, "QRCodeEncoder_" + name, None)
    if flat is not None:
        return flat
    return getattr(cv2.QRCodeEncoder, name)


def choose_correction_level(token: str, has_drawing: bool = False) -> str:
    """Density (L) for large payloads, robustness (Q) for short text-only ones."""
    if has_drawing or len(token) > SHORT_TOKEN_LIMIT:
        return "L"
    return "Q"


def render_qr(token: str, level: Optional[str] = None, scale: int = DEFAULT_SCALE) -> np.ndarray:
    """Render a token as a grayscale QR image (0 = dark module, 255 = light).

    Raises TokenTooLarge when the token exceeds the capacity of the chosen level.
    """
    level = level or choose_correction_level(token)
    capacity = QR_BYTE_CAPACITY[level]
    if len(token.encode("utf-8")) > capacity:
        raise TokenTooLarge(
            f"Note is too large for a QR code ({len(token)} > {capacity} bytes); use a transfer link"
        )
    params_cls = getattr(cv2, "QRCodeEncoder_Params", None) or cv2.QRCodeEncoder.Params
    params = params_cls()
    params.correction_level = _cv_const("CORRECT_LEVEL_" + level)
    params.mode = _cv_const("MODE_BYTE")
    create = getattr(cv2, "QRCodeEncoder_create", None) or cv2.QRCodeEncoder.create
    encoder = create(params)
    modules = encoder.encode(token)
    if modules is None or modules.size == 0:
        raise TokenTooLarge("QR encoder produced no image")
    if modules.ndim == 3:
        modules = cv2.cvtColor(modules, cv2.COLOR_BGR2GRAY)
    image = cv2.resize(modules, None, fx=scale, fy=scale, interpolation=cv2.INTER_NEAREST)
    pad = QUIET_ZONE * scale
    return cv2.copyMakeBorder(image, pad, pad, pad, pad, cv2.BORDER_CONSTANT, value=255)


def decode_frame(frame: Optional[np.ndarray]) -> Optional[str]:
    """Locate and decode one QR code in a frame. None if nothing readable."""
    if frame is None or getattr(frame, "size", 0) == 0:
        return None
    try:
        gray = frame if frame.ndim == 2 else cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        text, _points, _straight = cv2.QRCodeDetector().detectAndDecode(gray)
    except cv2.error:
        logger.debug("frame decode failed", exc_info=True)
        return None
    return text or None


def candidate_note(text: Optional[str]) -> Optional[Note]:
    """Interpret scanned text as a bare token or a #share= link."""
    if not text:
        return None
    token = extract_token(text) or text
    try:
        return transfer_codec.decode(token)
    except MalformedToken:
        return None


class QrDisplay:
    """Sender side. Regenerates the code only when the token actually changes."""

    def __init__(
        self,
        on_render: Optional[Callable[[Optional[np.ndarray], str], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self._on_render = on_render
        self._on_error = on_error
        self.token: Optional[str] = None
        self.image: Optional[np.ndarray] = None
        self.label = ""
        self.render_count = 0

    def refresh(self, note: Note, label: str = "Current Note") -> bool:
        token = transfer_codec.encode(note)
        if token == self.token and label == self.label:
            return False
        self._render(token, note.drawing is not None, label)
        return True

    def show_backup(self, path: str) -> bool:
        """Show a code for a backup file instead of the current note."""
        note = note_files.import_file(path)
        return self.refresh(note, label=os.path.basename(path))

    def _render(self, token: str, has_drawing: bool, label: str):
        self.token = token
        self.label = label
        self.render_count += 1
        try:
            self.image = render_qr(token, choose_correction_level(token, has_drawing))
        except TokenTooLarge as e:
            self.image = None
            logger.info("%s", e)
            if self._on_error is not None:
                self._on_error(e)
        if self._on_render is not None:
            self._on_render(self.image, label)


class OpenCvCamera:
    """Live camera feed through cv2.VideoCapture."""

    def __init__(self, index: int = 0):
        self._index = int(index)
        self._cap = None

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    def open(self):
        cap = cv2.VideoCapture(self._index)
        if not cap.isOpened():
            cap.release()
            raise PermissionDenied(f"Camera {self._index} is unavailable or access was refused")
        self._cap = cap

    def read(self) -> Optional[np.ndarray]:
        if self._cap is None:
            return None
        ok, frame = self._cap.read()
        return frame if ok else None

    def release(self):
        if self._cap is not None:
            self._cap.release()
            self._cap = None


class ScanState(str, Enum):
    IDLE = "IDLE"
    ACQUIRING = "ACQUIRING"
    SCANNING = "SCANNING"
    MATCHED = "MATCHED"


class ScanSession:
    """Receiver side: owns the camera and the frame loop for its whole lifetime."""

    def __init__(
        self,
        camera_factory: Callable[[], object],
        scheduler,
        on_match: Callable[[Note], None],
        on_failure: Optional[Callable[[Exception], None]] = None,
        interval_ms: int = 100,
        frame_decoder: Callable[[Optional[np.ndarray]], Optional[str]] = decode_frame,
    ):
        self._camera_factory = camera_factory
        self._scheduler = scheduler
        self._on_match = on_match
        self._on_failure = on_failure
        self._interval_ms = int(interval_ms)
        self._frame_decoder = frame_decoder
        self._camera = None
        self._task = None
        self._state = ScanState.IDLE
        self._state_listeners = []
        self.frames_processed = 0

    @property
    def state(self) -> ScanState:
        return self._state

    def add_state_listener(self, fn: Callable[[ScanState], None]):
        self._state_listeners.append(fn)

    def _set_state(self, state: ScanState):
        if state == self._state:
            return
        self._state = state
        for fn in list(self._state_listeners):
            fn(state)

    def start(self) -> bool:
        """Acquire the camera and begin scanning. Cancels a previous loop first."""
        self.cancel()
        self._set_state(ScanState.ACQUIRING)
        camera = self._camera_factory()
        try:
            camera.open()
        except PermissionDenied as e:
            logger.info("camera refused: %s", e)
            self._set_state(ScanState.IDLE)
            if self._on_failure is not None:
                self._on_failure(e)
            return False
        self._camera = camera
        self._set_state(ScanState.SCANNING)
        self._schedule_next()
        return True

    def cancel(self):
        """Stop the loop and release the camera. Safe in any state."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._release_camera()
        self._set_state(ScanState.IDLE)

    def _release_camera(self):
        if self._camera is not None:
            try:
                self._camera.release()
            finally:
                self._camera = None

    def _schedule_next(self):
        self._task = self._scheduler.call_later(self._interval_ms, self._tick)

    def _tick(self):
        self._task = None
        if self._state != ScanState.SCANNING or self._camera is None:
            return
        self.frames_processed += 1
        try:
            frame = self._camera.read()
        except cv2.error:
            logger.debug("camera read failed", exc_info=True)
            frame = None
        note = candidate_note(self._frame_decoder(frame))
        if note is None:
            self._schedule_next()
            return
        self._set_state(ScanState.MATCHED)
        self._release_camera()
        self._on_match(note)
