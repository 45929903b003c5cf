"""
task_scheduler.py
Cancellable one-shot tasks on the Qt event loop.

Debounce windows, the saving indicator, the camera frame loop and the AI
suggestion debounce are all expressed as tasks created here. Each component
owns at most one pending task per kind and cancels it explicitly; nothing
relies on widget teardown to stop a timer.
"""

import logging
from typing import Callable, Optional

from PyQt5.QtCore import QObject, QTimer

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle for a pending callback. cancel() is idempotent."""

    def __init__(self, timer: Optional[QTimer] = None, registry: Optional[set] = None):
        self._timer = timer
        self._registry = registry
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self):
        if not self._active:
            return
        self._active = False
        if self._registry is not None:
            self._registry.discard(self)
        if self._timer is not None:
            try:
                self._timer.stop()
                self._timer.deleteLater()
            except RuntimeError:
                # underlying C++ object already gone
                pass
            self._timer = None

    def _finish(self):
        self._active = False
        self._timer = None


class QtTaskScheduler:
    """Schedules callbacks with single-shot QTimers owned by ``parent``."""

    def __init__(self, parent: Optional[QObject] = None):
        self._parent = parent
        self._pending = set()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.setInterval(max(0, int(delay_ms)))
        task = ScheduledTask(timer, self._pending)
        self._pending.add(task)

        def _fire():
            self._pending.discard(task)
            if not task.active:
                return
            task._finish()
            try:
                timer.deleteLater()
            except RuntimeError:
                pass
            callback()

        timer.timeout.connect(_fire)
        timer.start()
        return task

    def cancel_all(self):
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()
        logger.debug("cancelled all pending tasks")
