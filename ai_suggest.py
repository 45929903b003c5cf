"""
ai_suggest.py
Debounced rewrite suggestions from a local Ollama server.

A suggestion is best effort: a blank text, mode "none", an unreachable server or
a malformed reply all mean "no suggestion". A reply identical to the input text
(byte for byte) is dropped; whitespace-only differences are still offered.
"""

import json
import logging
from typing import Callable, Optional
from urllib.error import URLError
from urllib.request import Request, urlopen

from PyQt5.QtCore import QThread, pyqtSignal

logger = logging.getLogger(__name__)

INSTRUCTIONS = {
    "grammar": "Correct grammar/spelling. Return ONLY the corrected text.",
    "email": "Convert to formal email. Return ONLY the email content.",
    "message": "Rewrite as a short, friendly chat message. Return ONLY the message.",
}


class OllamaProvider:
    """Calls /api/generate on an Ollama server."""

    def __init__(self, base_url: str = "http://127.0.0.1:11434", model: str = "llama3.2", timeout: float = 20.0):
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout

    def generate(self, text: str, instruction: str) -> Optional[str]:
        body = json.dumps(
            {
                "model": self._model,
                "prompt": text,
                "system": instruction,
                "stream": False,
                "options": {"temperature": 0.4},
            }
        ).encode("utf-8")
        req = Request(
            url=f"{self._base_url}/api/generate",
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        with urlopen(req, timeout=self._timeout) as resp:
            payload = json.loads(resp.read().decode("utf-8", errors="replace"))
        if not isinstance(payload, dict):
            return None
        reply = str(payload.get("response") or "").strip()
        return reply or None


def get_suggestion(provider, text: str, mode: str) -> Optional[str]:
    """One suggestion request; failures and no-op replies yield None."""
    if not text.strip() or mode not in INSTRUCTIONS or provider is None:
        return None
    try:
        suggestion = provider.generate(text, INSTRUCTIONS[mode])
    except (URLError, OSError, ValueError, TimeoutError) as e:
        logger.info("suggestion request failed: %s", e)
        return None
    if suggestion is None or suggestion == text:
        return None
    return suggestion


class SuggestionWorker(QThread):
    """Background worker for one suggestion request so typing never waits on the server."""

    result_ready = pyqtSignal(int, object)
    failed = pyqtSignal(int, str)

    def __init__(self, provider, text: str, mode: str, request_id: int):
        super().__init__()
        self._provider = provider
        self._text = text
        self._mode = mode
        self._request_id = request_id

    def run(self):
        try:
            suggestion = get_suggestion(self._provider, self._text, self._mode)
            self.result_ready.emit(self._request_id, suggestion)
        except Exception as exc:
            self.failed.emit(self._request_id, str(exc))


class SuggestionService:
    """Debounces suggestion requests the same way autosave debounces writes.

    With background=True each request runs on a SuggestionWorker thread and the
    result comes back through a queued signal. A result is delivered only if no
    newer request (or cancel) happened after it was issued.
    """

    def __init__(
        self,
        provider,
        scheduler,
        on_suggestion: Callable[[Optional[str]], None],
        delay_ms: int = 1200,
        background: bool = True,
    ):
        self._provider = provider
        self._scheduler = scheduler
        self._on_suggestion = on_suggestion
        self._delay_ms = int(delay_ms)
        self._background = background
        self._task = None
        self._request_id = 0
        self._workers = set()
        self.mode = "none"

    def request(self, text: str):
        self.cancel()
        if self.mode == "none":
            return
        request_id = self._request_id
        mode = self.mode
        self._task = self._scheduler.call_later(self._delay_ms, lambda: self._launch(text, mode, request_id))

    def _launch(self, text: str, mode: str, request_id: int):
        self._task = None
        if not self._background:
            self._deliver(request_id, get_suggestion(self._provider, text, mode))
            return
        worker = SuggestionWorker(self._provider, text, mode, request_id)
        self._workers.add(worker)
        worker.result_ready.connect(self._deliver)
        worker.failed.connect(self._on_failed)
        worker.finished.connect(lambda: self._on_worker_finished(worker))
        worker.start()

    def _deliver(self, request_id: int, suggestion: Optional[str]):
        if request_id != self._request_id:
            logger.debug("dropping stale suggestion %d", request_id)
            return
        self._on_suggestion(suggestion)

    def _on_failed(self, request_id: int, message: str):
        logger.warning("suggestion worker failed: %s", message)
        self._deliver(request_id, None)

    def _on_worker_finished(self, worker):
        self._workers.discard(worker)
        worker.deleteLater()

    def cancel(self):
        """Drop the pending request and any result still in flight."""
        self._request_id += 1
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def shutdown(self, wait_ms: int = 1500):
        self.cancel()
        for worker in list(self._workers):
            if worker.isRunning():
                worker.requestInterruption()
                worker.wait(wait_ms)
