# core/chrono.py
from typing import Callable, Optional, Protocol

from PySide6.QtCore import QObject, QTimer, Signal


class Ticker(Protocol):
    """Once-per-second tick source owned by the session engine."""

    @property
    def is_active(self) -> bool: ...

    def start(self, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


class SecondTicker(QObject):
    ticked = Signal()
    started = Signal()
    stopped = Signal()

    def __init__(self, interval_ms: int = 1000, parent=None):
        super().__init__(parent)
        self._callback: Optional[Callable[[], None]] = None
        self._tick = QTimer(self)
        self._tick.setInterval(interval_ms)
        self._tick.timeout.connect(self._on_tick)

    @property
    def is_active(self) -> bool:
        return self._tick.isActive()

    def start(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._tick.start()
        self.started.emit()

    def stop(self) -> None:
        # QTimer.stop also drops a timeout already queued for this timer
        if self._tick.isActive():
            self._tick.stop()
            self.stopped.emit()
        self._callback = None

    def _on_tick(self):
        if self._callback is not None:
            self._callback()
        self.ticked.emit()
