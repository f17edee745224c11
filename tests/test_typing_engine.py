"""
Tests for the typing session state machine.

Covers phase transitions, keystroke handling, the countdown, the
completion/timeout finish race and the carried-forward mistake summary.
"""

import random

import pytest

from app.state import Phase
from services.typing_engine import BACKSPACE, SessionEngine
from conftest import FakeTicker, type_text


def assert_invariants(engine):
    st = engine.state
    assert len(st.typed_log) == st.cursor
    assert all(i < st.cursor for i in st.error_positions)
    assert 0 <= st.cursor <= len(st.reference_text)


class TestLifecycle:
    def test_starts_idle_with_full_timer(self, engine, ticker):
        engine.reset("hello", 30)

        assert engine.phase == Phase.IDLE
        assert engine.state.remaining_seconds == 30
        assert not ticker.is_active

    def test_first_printable_key_activates_and_is_judged(self, engine, ticker):
        engine.reset("hello", 30)

        assert engine.submit_key("h") is True

        assert engine.phase == Phase.ACTIVE
        assert ticker.is_active
        assert ticker.starts == 1
        assert engine.state.cursor == 1
        assert engine.state.typed_log == ["h"]

    def test_first_key_wrong_still_activates(self, engine):
        engine.reset("hello", 30)
        engine.submit_key("x")

        assert engine.phase == Phase.ACTIVE
        assert engine.state.error_positions == {0}

    @pytest.mark.parametrize("key", ["Shift", "ArrowLeft", "Tab", "Enter", "", "ab"])
    def test_control_keys_do_not_start_session(self, engine, ticker, key):
        engine.reset("hello", 30)

        assert engine.submit_key(key) is False
        assert engine.phase == Phase.IDLE
        assert not ticker.is_active

    def test_backspace_in_idle_is_noop(self, engine):
        engine.reset("hello", 30)

        assert engine.submit_key(BACKSPACE) is False
        assert engine.phase == Phase.IDLE

    def test_keys_ignored_without_text(self, engine, ticker):
        engine.unload(30)

        assert engine.submit_key("a") is False
        assert engine.phase == Phase.IDLE
        assert ticker.starts == 0

    def test_ticks_ignored_while_idle(self, engine):
        engine.reset("hello", 30)
        engine.on_tick()

        assert engine.state.remaining_seconds == 30

    def test_reset_stops_timer_and_rebuilds_state(self, engine, ticker):
        engine.reset("hello", 30)
        type_text(engine, "hx")
        old_state = engine.state

        engine.reset("world", 15)

        assert engine.state is not old_state
        assert engine.phase == Phase.IDLE
        assert not ticker.is_active
        assert engine.state.cursor == 0
        assert engine.state.typed_log == []
        assert engine.state.error_positions == set()
        assert engine.state.remaining_seconds == 15
        ticker.fire(3)
        assert engine.state.remaining_seconds == 15

    def test_phase_listener_sees_every_transition(self, ticker):
        phases = []
        eng = SessionEngine(ticker, on_phase_changed=phases.append)
        eng.reset("ab", 15)
        type_text(eng, "ab")
        eng.reset("cd", 15)

        assert phases == [Phase.ACTIVE, Phase.FINISHED, Phase.IDLE]

    def test_activation_listener_sees_first_key_already_recorded(self, ticker):
        seen = []
        eng = SessionEngine(
            ticker,
            on_phase_changed=lambda phase: seen.append(
                (phase, eng.state.cursor, list(eng.state.typed_log), set(eng.state.error_positions))
            ),
        )
        eng.reset("hello", 30)

        eng.submit_key("x")

        assert seen == [(Phase.ACTIVE, 1, ["x"], {0})]

    def test_single_char_text_reports_active_before_finished(self, ticker, finished_calls):
        phases = []
        eng = SessionEngine(ticker, on_finished=finished_calls.append, on_phase_changed=phases.append)
        eng.reset("a", 30)

        eng.submit_key("a")

        assert phases == [Phase.ACTIVE, Phase.FINISHED]
        assert len(finished_calls) == 1
        assert finished_calls[0].correct_chars == 1

    def test_close_stops_timer_and_refuses_reset(self, ticker):
        with SessionEngine(ticker) as eng:
            eng.reset("hello", 30)
            eng.submit_key("h")
            assert ticker.is_active

        assert not ticker.is_active
        assert eng.closed
        with pytest.raises(RuntimeError):
            eng.reset("again", 30)


class TestKeystrokes:
    def test_mismatch_recorded_by_position(self, engine):
        engine.reset("abc", 30)
        type_text(engine, "axc")

        assert engine.state.error_positions == {1}

    def test_backspace_reversibility(self, engine):
        engine.reset("abcdef", 30)
        type_text(engine, "abcd")
        for _ in range(4):
            engine.submit_key(BACKSPACE)

        assert engine.state.cursor == 0
        assert engine.state.typed_log == []
        assert engine.state.error_positions == set()
        assert engine.phase == Phase.ACTIVE

    def test_backspace_at_start_is_noop(self, engine):
        engine.reset("abc", 30)
        engine.submit_key("a")
        engine.submit_key(BACKSPACE)

        assert engine.submit_key(BACKSPACE) is False
        assert engine.state.cursor == 0

    def test_retype_clears_error(self, engine):
        engine.reset("abcd", 30)
        type_text(engine, "ax")
        assert engine.state.error_positions == {1}

        engine.submit_key(BACKSPACE)
        assert engine.state.error_positions == set()

        type_text(engine, "bcd")
        assert engine.phase == Phase.FINISHED
        assert engine.stats.correct_chars == 4
        assert engine.stats.accuracy == pytest.approx(100.0)

    def test_invariants_hold_under_random_input(self, ticker):
        rng = random.Random(1234)
        text = "the quick brown fox jumps over the lazy dog" * 3
        keys = list("abcdefghijklmnopqrstuvwxyz ") + [BACKSPACE] * 8 + ["Shift", "ArrowUp"]
        eng = SessionEngine(ticker)
        eng.reset(text, 120)

        for step in range(2000):
            eng.submit_key(rng.choice(keys))
            if step % 40 == 0:
                eng.on_tick()
            assert_invariants(eng)
            if eng.phase == Phase.FINISHED:
                break


class TestFinish:
    def test_perfect_completion(self, engine, ticker, finished_calls):
        engine.reset("cat", 30)
        engine.submit_key("c")
        ticker.fire(2)
        engine.submit_key("a")
        ticker.fire(1)
        assert engine.state.remaining_seconds == 27

        engine.submit_key("t")

        assert engine.phase == Phase.FINISHED
        assert not ticker.is_active
        stats = engine.stats
        assert stats.elapsed_seconds == 3
        assert stats.correct_chars == 3
        assert stats.accuracy == pytest.approx(100.0)
        assert stats.net_wpm == pytest.approx(12.0)
        assert finished_calls == [stats]

    def test_timeout_with_partial_input(self, engine, ticker):
        engine.reset("a" * 100, 15)
        type_text(engine, "a" * 50)

        ticker.fire(14)
        assert engine.phase == Phase.ACTIVE
        ticker.fire(1)

        assert engine.phase == Phase.FINISHED
        assert engine.state.remaining_seconds == 0
        stats = engine.stats
        assert stats.elapsed_seconds == 15
        assert stats.accuracy == pytest.approx(100.0)
        assert stats.net_wpm == pytest.approx(40.0)
        assert stats.raw_wpm == pytest.approx(40.0)

    def test_instant_finish_floors_elapsed_at_one_second(self, engine):
        engine.reset("ok", 30)
        type_text(engine, "ok")

        assert engine.stats.elapsed_seconds == 1
        assert engine.stats.net_wpm == pytest.approx((2 / 5) / (1 / 60))

    def test_completion_then_late_tick_finalizes_once(self, engine, ticker, finished_calls):
        engine.reset("ab", 15)
        engine.submit_key("a")
        stale_tick = ticker.callback
        ticker.fire(14)
        assert engine.state.remaining_seconds == 1

        engine.submit_key("b")
        stats = engine.stats
        summary = engine.last_mistake_summary
        # timer expiry delivered in the same turn, after the completing key
        stale_tick()

        assert engine.phase == Phase.FINISHED
        assert engine.state.remaining_seconds == 1
        assert engine.stats is stats
        assert engine.last_mistake_summary == summary
        assert len(finished_calls) == 1
        assert stats.elapsed_seconds == 14

    def test_timeout_then_completing_key_finalizes_once(self, engine, ticker, finished_calls):
        engine.reset("ab", 15)
        engine.submit_key("x")
        ticker.fire(15)
        stats = engine.stats

        assert engine.submit_key("b") is False

        assert engine.state.cursor == 1
        assert engine.stats is stats
        assert len(finished_calls) == 1
        assert engine.last_mistake_summary == "a"

    def test_input_after_finish_is_ignored(self, engine, ticker):
        engine.reset("abc", 15)
        type_text(engine, "abc")
        stats = engine.stats
        remaining = engine.state.remaining_seconds

        for key in ("a", BACKSPACE, "z"):
            assert engine.submit_key(key) is False
        engine.on_tick()
        engine.on_tick()

        assert engine.state.cursor == 3
        assert engine.state.remaining_seconds == remaining
        assert engine.stats is stats

    def test_finish_is_terminal_for_timer(self, engine, ticker):
        engine.reset("abc", 15)
        type_text(engine, "abc")

        assert not ticker.is_active
        assert ticker.stops >= 1

    def test_backspaced_mistake_before_timeout_counts_as_untouched(self, engine, ticker):
        engine.reset("abcdef", 15)
        type_text(engine, "abx")
        engine.submit_key(BACKSPACE)
        ticker.fire(15)

        stats = engine.stats
        assert stats.total_chars_attempted == 2
        assert stats.incorrect_chars == 0
        assert stats.correct_chars == 2
        assert engine.last_mistake_summary is None


class TestMistakeSummary:
    def test_distinct_reference_chars_in_order(self, engine):
        engine.reset("abab c", 30)
        type_text(engine, "xyxy z")

        assert engine.stats.mistake_chars == ("a", "b", "c")
        assert engine.last_mistake_summary == "a,b,c"

    def test_clean_session_clears_previous_summary(self, engine):
        engine.reset("ab", 30)
        type_text(engine, "xb")
        assert engine.last_mistake_summary == "a"

        engine.reset("ab", 30)
        assert engine.last_mistake_summary == "a"
        type_text(engine, "ab")
        assert engine.last_mistake_summary is None

    def test_summary_survives_reset(self):
        eng = SessionEngine(FakeTicker())
        eng.reset("q", 15)
        eng.submit_key("w")
        eng.unload()

        assert eng.last_mistake_summary == "q"


class TestSnapshot:
    def test_snapshot_is_a_frozen_copy(self, engine):
        engine.reset("abc", 30)
        engine.submit_key("x")
        snap = engine.snapshot()

        engine.submit_key("b")

        assert snap.cursor == 1
        assert snap.typed_text == "x"
        assert snap.error_positions == frozenset({0})
        assert snap.char_states() == ("err", "current", "todo")

    def test_progress_sampled_per_tick(self, engine, ticker):
        engine.reset("abcdef", 15)
        type_text(engine, "ab")
        ticker.fire()
        type_text(engine, "cx")
        ticker.fire()

        samples = engine.state.progress
        assert [(p.second, p.typed, p.correct) for p in samples] == [(1, 2, 2), (2, 4, 3)]
