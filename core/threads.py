# core/threads.py
import asyncio
import logging

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal, Slot

from app.config import FAILED_FALLBACK_TEXT
from services.text_provider import GenerationWarning, TextOutcome

log = logging.getLogger(__name__)


class TextFetchWorkerSignals(QObject):
    loaded = Signal(int, object)


class TextFetchWorker(QRunnable):
    def __init__(self, token: int, job):
        super().__init__()
        self.token = token
        self.job = job
        self.signals = TextFetchWorkerSignals()

    def run(self):
        try:
            outcome = asyncio.run(self.job())
        except Exception:
            # request_text already converts backend errors; this covers the event loop itself
            log.exception("Text fetch #%d crashed", self.token)
            outcome = TextOutcome(FAILED_FALLBACK_TEXT, GenerationWarning.FAILED)
        self.signals.loaded.emit(self.token, outcome)


class Workers:
    pool = QThreadPool.globalInstance()


class QtFetchLauncher(QObject):
    """Runs fetch jobs on the thread pool and delivers on the GUI thread."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self._deliver = None

    def __call__(self, token: int, job, deliver):
        self._deliver = deliver
        worker = TextFetchWorker(token, job)
        # receiver lives on the GUI thread, so this is a queued connection
        worker.signals.loaded.connect(self._on_loaded)
        Workers.pool.start(worker)

    @Slot(int, object)
    def _on_loaded(self, token: int, outcome):
        if self._deliver is not None:
            self._deliver(token, outcome)
