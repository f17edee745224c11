# services/typing_engine.py
from __future__ import annotations
import logging
from typing import Callable, Optional

from app.calculation import SessionStats, compute_stats
from app.state import Phase, SessionSnapshot, SessionState
from core.chrono import Ticker

log = logging.getLogger(__name__)

BACKSPACE = "Backspace"

FinishedListener = Callable[[SessionStats], None]
PhaseListener = Callable[[Phase], None]


def is_printable(key: str) -> bool:
    return isinstance(key, str) and len(key) == 1


class SessionEngine:
    """
    Typing session state machine.

    idle -> active on the first printable key, active -> finished when the
    text is completed or the countdown hits zero, anything -> idle on reset.
    All calls are expected from one event sequence; the two finish triggers
    go through the same phase compare-and-set so only the first one wins.
    """

    def __init__(
        self,
        ticker: Ticker,
        on_finished: Optional[FinishedListener] = None,
        on_phase_changed: Optional[PhaseListener] = None,
    ):
        self._ticker = ticker
        self._on_finished = on_finished
        self._on_phase_changed = on_phase_changed
        self._closed = False
        self.state = SessionState()
        self.last_mistake_summary: Optional[str] = None

    # ---------------- lifecycle ----------------
    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def stats(self) -> Optional[SessionStats]:
        return self.state.stats

    def reset(self, text: str, time_limit: int):
        """Replace the session with a fresh one over `text`."""
        if self._closed:
            raise RuntimeError("SessionEngine is closed")
        self._ticker.stop()
        old = self.state.phase
        self.state = SessionState.fresh(text, time_limit)
        log.info("Session reset: %d chars, %ds", len(self.state.reference_text), time_limit)
        if old != Phase.IDLE:
            self._notify_phase(Phase.IDLE)

    def unload(self, time_limit: Optional[int] = None):
        """Drop the current text while a new one is being fetched."""
        limit = self.state.time_limit if time_limit is None else time_limit
        self.reset("", limit)

    def close(self):
        self._ticker.stop()
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self, loading: bool = False) -> SessionSnapshot:
        return SessionSnapshot.of(self.state, loading=loading)

    # ---------------- input ----------------
    def submit_key(self, key: str) -> bool:
        """Feed one key press. Returns True if the session changed."""
        st = self.state
        if st.phase == Phase.FINISHED or not st.has_text:
            return False

        if key == BACKSPACE:
            return self._backspace()

        if not is_printable(key) or st.at_end:
            return False

        started = False
        if st.phase == Phase.IDLE:
            if st.remaining_seconds <= 0:
                return False
            started = self._transition(Phase.IDLE, Phase.ACTIVE, notify=False)

        pos = st.cursor
        st.typed_log.append(key)
        if key != st.reference_text[pos]:
            st.error_positions.add(pos)
        st.cursor = pos + 1

        # listeners see the first key already judged
        if started:
            self._notify_phase(Phase.ACTIVE)
        if st.at_end:
            self._finish()
        return True

    def _backspace(self) -> bool:
        st = self.state
        if st.phase != Phase.ACTIVE or st.cursor == 0:
            return False
        st.cursor -= 1
        st.typed_log.pop()
        st.error_positions.discard(st.cursor)
        return True

    def on_tick(self):
        st = self.state
        if st.phase != Phase.ACTIVE:
            return
        st.remaining_seconds = max(0, st.remaining_seconds - 1)
        st.record_progress()
        if st.remaining_seconds == 0:
            self._finish()

    # ---------------- transitions ----------------
    def _transition(self, expected: Phase, new: Phase, notify: bool = True) -> bool:
        if self.state.phase != expected:
            return False
        self.state.phase = new
        if new == Phase.ACTIVE:
            self._ticker.start(self.on_tick)
        else:
            self._ticker.stop()
        if notify:
            self._notify_phase(new)
        return True

    def _finish(self):
        if not self._transition(Phase.ACTIVE, Phase.FINISHED):
            return
        st = self.state
        if st.at_end and st.remaining_seconds > 0:
            # count the partial second the last key landed in
            st.record_progress()
        st.stats = compute_stats(
            st.reference_text,
            st.typed_log,
            st.error_positions,
            st.remaining_seconds,
            st.time_limit,
            st.progress,
        )
        self.last_mistake_summary = st.stats.mistakes_detail or None
        log.info(
            "Session finished: %.1f WPM net, %.1f%% accuracy, %ds",
            st.stats.net_wpm, st.stats.accuracy, st.stats.elapsed_seconds,
        )
        if self._on_finished is not None:
            self._on_finished(st.stats)

    def _notify_phase(self, phase: Phase):
        if self._on_phase_changed is not None:
            self._on_phase_changed(phase)
