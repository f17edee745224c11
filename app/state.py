from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Set, Tuple

from app.calculation import SessionStats


class Phase(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass(frozen=True)
class ProgressSample:
    second: int
    typed: int
    correct: int


@dataclass
class SessionState:
    reference_text: str = ""
    time_limit: int = 0
    cursor: int = 0
    typed_log: List[str] = field(default_factory=list)
    error_positions: Set[int] = field(default_factory=set)
    remaining_seconds: int = 0
    phase: Phase = Phase.IDLE
    stats: Optional[SessionStats] = None
    progress: List[ProgressSample] = field(default_factory=list)

    @classmethod
    def fresh(cls, text: str, time_limit: int) -> "SessionState":
        return cls(reference_text=text or "", time_limit=time_limit, remaining_seconds=time_limit)

    @property
    def has_text(self) -> bool:
        return bool(self.reference_text)

    @property
    def at_end(self) -> bool:
        return self.cursor >= len(self.reference_text)

    def correct_so_far(self) -> int:
        ref = self.reference_text
        return sum(
            1 for i, ch in enumerate(self.typed_log)
            if i < len(ref) and ch == ref[i] and i not in self.error_positions
        )

    def record_progress(self):
        elapsed = self.time_limit - self.remaining_seconds
        sample = ProgressSample(elapsed, self.cursor, self.correct_so_far())
        if self.progress and self.progress[-1].second == elapsed:
            self.progress[-1] = sample
        else:
            self.progress.append(sample)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session for the presentation layer."""
    phase: Phase
    reference_text: str
    cursor: int
    typed_text: str
    error_positions: FrozenSet[int]
    remaining_seconds: int
    time_limit: int
    stats: Optional[SessionStats]
    loading: bool = False

    @classmethod
    def of(cls, state: SessionState, loading: bool = False) -> "SessionSnapshot":
        return cls(
            phase=state.phase,
            reference_text=state.reference_text,
            cursor=state.cursor,
            typed_text="".join(state.typed_log),
            error_positions=frozenset(state.error_positions),
            remaining_seconds=state.remaining_seconds,
            time_limit=state.time_limit,
            stats=state.stats,
            loading=loading,
        )

    def char_states(self) -> Tuple[str, ...]:
        """Per reference character: 'ok', 'err', 'current' or 'todo'."""
        out = []
        for i, _ in enumerate(self.reference_text):
            if i < self.cursor:
                out.append("err" if i in self.error_positions else "ok")
            elif i == self.cursor and self.phase != Phase.FINISHED:
                out.append("current")
            else:
                out.append("todo")
        return tuple(out)
