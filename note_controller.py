"""
note_controller.py
Single owner of the application state.

The controller holds the current note, the autosave scheduler, the QR display
(while the sync dialog is open) and the scan session. UI code and both transfer
channels go through it; nothing reads note state from globals.

Contract:
- set_content / mark_drawing_dirty: user edits, debounced autosave
- commit_drawing / clear_drawing / replace_note: explicit actions, saved at once
- shutdown: flush a pending save, stop the scanner, cancel timers
"""

import logging
from typing import Callable, List, Optional

import transfer_codec
from autosave import AutosaveScheduler, DEFAULT_DELAY_MS, DEFAULT_INDICATOR_MS
from note_state import Note, SaveStatus
from optical_channel import QrDisplay, ScanSession, ScanState

logger = logging.getLogger(__name__)


class NoteController:
    def __init__(
        self,
        store,
        scheduler,
        delay_ms: int = DEFAULT_DELAY_MS,
        indicator_ms: int = DEFAULT_INDICATOR_MS,
    ):
        self._store = store
        self._scheduler = scheduler
        self._note = Note()
        self._note_listeners: List[Callable[[Note], None]] = []
        self._display: Optional[QrDisplay] = None
        self._scan: Optional[ScanSession] = None
        self.autosave = AutosaveScheduler(
            store, scheduler, lambda: self._note, delay_ms=delay_ms, indicator_ms=indicator_ms
        )

    @property
    def note(self) -> Note:
        return self._note

    @property
    def status(self) -> SaveStatus:
        return self.autosave.status

    @property
    def store(self):
        return self._store

    def add_note_listener(self, fn: Callable[[Note], None]):
        self._note_listeners.append(fn)

    def _notify(self):
        for fn in list(self._note_listeners):
            fn(self._note)
        if self._display is not None:
            self._display.refresh(self._note)

    def load(self) -> Optional[Note]:
        """Restore the last saved note at startup."""
        note = self._store.load()
        if note is not None:
            self._note = note
            self._notify()
            logger.info("restored note (%d chars)", len(note.content))
        return note

    # --- edits ---
    def set_content(self, content: str):
        if content == self._note.content:
            return
        self._note = self._note.with_content(content)
        self.autosave.mark_dirty()
        self._notify()

    def mark_drawing_dirty(self):
        """A stroke is in progress; the bitmap is committed when it ends."""
        self.autosave.mark_dirty()

    def commit_drawing(self, drawing: Optional[str]):
        self._note = self._note.with_drawing(drawing)
        self.autosave.save_now(self._note)
        self._notify()

    def clear_drawing(self):
        self.commit_drawing(None)

    def replace_note(self, note: Note) -> bool:
        """Swap in a whole note (transfer or import) and persist it immediately."""
        self._note = note
        ok = self.autosave.save_now(note)
        self._notify()
        return ok

    def current_token(self) -> str:
        return transfer_codec.encode(self._note)

    # --- optical channel ---
    def attach_display(self, display: QrDisplay):
        self._display = display
        display.refresh(self._note)

    def detach_display(self):
        self._display = None

    def start_scan(
        self,
        camera_factory,
        on_imported: Optional[Callable[[Note], None]] = None,
        on_failure: Optional[Callable[[Exception], None]] = None,
        interval_ms: int = 100,
    ) -> ScanSession:
        """Begin a scan; any scan already running for this controller is cancelled."""
        self.stop_scan()

        def _matched(note: Note):
            # a failed write is reported through the autosave error listeners
            if self.replace_note(note) and on_imported is not None:
                on_imported(note)

        self._scan = ScanSession(
            camera_factory, self._scheduler, _matched, on_failure=on_failure, interval_ms=interval_ms
        )
        self._scan.start()
        return self._scan

    @property
    def scanning(self) -> bool:
        return self._scan is not None and self._scan.state == ScanState.SCANNING

    def stop_scan(self):
        if self._scan is not None:
            self._scan.cancel()
            self._scan = None

    def shutdown(self):
        self.stop_scan()
        self.detach_display()
        self.autosave.flush()
        self.autosave.cancel()
        logger.info("controller shut down")
