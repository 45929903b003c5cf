"""
autosave.py
Debounced autosave and the save status state machine.

    SAVED/ERROR --mutation--> UNSAVED --quiet window--> SAVING --indicator--> SAVED
                                  ^                        |
                                  +------ mutation --------+
    SAVING --store failure--> ERROR (no retry until the next edit)

Every mutation restarts the quiet window, so at most one write happens per quiet
period and it always carries the latest note. This is the only writer of the
note store.
"""

import logging
from typing import Callable, List, Optional

from errors import StorageUnavailable
from note_state import Note, SaveStatus

logger = logging.getLogger(__name__)

DEFAULT_DELAY_MS = 1500
DEFAULT_INDICATOR_MS = 600


class AutosaveScheduler:
    def __init__(
        self,
        store,
        scheduler,
        get_note: Callable[[], Note],
        delay_ms: int = DEFAULT_DELAY_MS,
        indicator_ms: int = DEFAULT_INDICATOR_MS,
    ):
        self._store = store
        self._scheduler = scheduler
        self._get_note = get_note
        self._delay_ms = int(delay_ms)
        self._indicator_ms = int(indicator_ms)
        self._status = SaveStatus.SAVED
        self._debounce_task = None
        self._indicator_task = None
        self._status_listeners: List[Callable[[SaveStatus], None]] = []
        self._error_listeners: List[Callable[[Exception], None]] = []

    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def has_pending_save(self) -> bool:
        return self._debounce_task is not None and self._debounce_task.active

    def add_status_listener(self, fn: Callable[[SaveStatus], None]):
        self._status_listeners.append(fn)

    def add_error_listener(self, fn: Callable[[Exception], None]):
        self._error_listeners.append(fn)

    def _set_status(self, status: SaveStatus):
        if status == self._status:
            return
        self._status = status
        for fn in list(self._status_listeners):
            fn(status)

    def _cancel_debounce(self):
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None

    def _cancel_indicator(self):
        if self._indicator_task is not None:
            self._indicator_task.cancel()
            self._indicator_task = None

    def mark_dirty(self):
        """Record a content or drawing mutation and restart the quiet window."""
        self._cancel_indicator()
        self._cancel_debounce()
        self._set_status(SaveStatus.UNSAVED)
        self._debounce_task = self._scheduler.call_later(self._delay_ms, self._on_quiet)

    def _on_quiet(self):
        self._debounce_task = None
        if self._status != SaveStatus.UNSAVED:
            return
        self._write(self._get_note())

    def save_now(self, note: Optional[Note] = None) -> bool:
        """Write immediately (explicit actions). Returns False if the write failed."""
        self._cancel_debounce()
        return self._write(note if note is not None else self._get_note())

    def flush(self) -> bool:
        """Run a pending debounced save now instead of dropping it."""
        if not self.has_pending_save:
            return True
        return self.save_now()

    def cancel(self):
        """Stop all timers without writing."""
        self._cancel_debounce()
        self._cancel_indicator()

    def _write(self, note: Note) -> bool:
        self._cancel_indicator()
        self._set_status(SaveStatus.SAVING)
        try:
            self._store.save(note)
        except StorageUnavailable as e:
            logger.error("autosave failed: %s", e)
            self._set_status(SaveStatus.ERROR)
            for fn in list(self._error_listeners):
                fn(e)
            return False
        self._indicator_task = self._scheduler.call_later(self._indicator_ms, self._on_indicator_done)
        return True

    def _on_indicator_done(self):
        self._indicator_task = None
        if self._status == SaveStatus.SAVING:
            self._set_status(SaveStatus.SAVED)
