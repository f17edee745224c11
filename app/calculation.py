from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Collection, Dict, List, Sequence, Tuple

if TYPE_CHECKING:
    from app.state import ProgressSample

CHARS_PER_WORD = 5.0


@dataclass(frozen=True)
class SessionStats:
    net_wpm: float
    raw_wpm: float
    accuracy: float
    correct_chars: int
    incorrect_chars: int
    total_chars_attempted: int
    elapsed_seconds: int
    mistake_chars: Tuple[str, ...] = ()
    wpm_series: Tuple[float, ...] = field(default=(), compare=False)

    @property
    def mistakes_detail(self) -> str:
        return ",".join(self.mistake_chars)

    def as_dict(self) -> Dict[str, float]:
        return {
            "net_wpm": self.net_wpm,
            "raw_wpm": self.raw_wpm,
            "accuracy": self.accuracy,
            "correct_chars": self.correct_chars,
            "incorrect_chars": self.incorrect_chars,
            "total_chars_attempted": self.total_chars_attempted,
            "elapsed_seconds": self.elapsed_seconds,
        }


def wpm(chars: int, seconds: float) -> float:
    # WPM = (chars / 5) / (minutes)
    s = max(1e-6, seconds)
    return max(0.0, (chars / CHARS_PER_WORD) / (s / 60.0))


def elapsed_seconds(time_limit: int, remaining: int, completed: bool) -> int:
    """
    Seconds to charge the session with. Only a session that completed the
    text with time left is charged the actual time; everything else is
    charged the full limit. Never below 1.
    """
    if completed and remaining > 0:
        elapsed = time_limit - remaining
    else:
        elapsed = time_limit
    return max(1, elapsed)


def mistake_chars(reference_text: str, error_positions: Collection[int]) -> Tuple[str, ...]:
    """Distinct reference characters at error positions, first occurrence first."""
    seen: List[str] = []
    for i in sorted(error_positions):
        if i < len(reference_text):
            ch = reference_text[i]
            if ch not in seen:
                seen.append(ch)
    return tuple(seen)


def compute_wpm_series(progress: Sequence["ProgressSample"]) -> List[float]:
    """Net WPM at each recorded second."""
    return [wpm(p.correct, p.second) for p in progress if p.second > 0]


def smooth(values: Sequence[float], factor: float = 0.35) -> List[float]:
    out, last = [], None
    for v in values:
        last = v if last is None else last + factor * (v - last)
        out.append(last)
    return out


def compute_stats(
    reference_text: str,
    typed_log: Sequence[str],
    error_positions: Collection[int],
    remaining_seconds: int,
    time_limit: int,
    progress: Sequence["ProgressSample"] = (),
) -> SessionStats:
    completed = len(typed_log) >= len(reference_text) > 0
    secs = elapsed_seconds(time_limit, remaining_seconds, completed)

    # the error set wins over re-comparing characters
    correct = sum(
        1 for i, ch in enumerate(typed_log)
        if i < len(reference_text) and ch == reference_text[i] and i not in error_positions
    )
    total = len(typed_log)
    accuracy = 100.0 * correct / total if total else 0.0

    return SessionStats(
        net_wpm=wpm(correct, secs),
        raw_wpm=wpm(total, secs),
        accuracy=max(0.0, accuracy),
        correct_chars=correct,
        incorrect_chars=len(error_positions),
        total_chars_attempted=total,
        elapsed_seconds=secs,
        mistake_chars=mistake_chars(reference_text, error_positions),
        wpm_series=tuple(compute_wpm_series(progress)),
    )
