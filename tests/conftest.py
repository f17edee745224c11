"""Shared fixtures: a hand-driven tick source and scripted text backends."""

import os

import pytest

from app.config import SessionConfig
from services.text_provider import GenerationResult, TextProvider
from services.typing_engine import SessionEngine


class FakeTicker:
    """Ticker the test fires by hand, recording start/stop calls."""

    def __init__(self):
        self.callback = None
        self.starts = 0
        self.stops = 0

    @property
    def is_active(self) -> bool:
        return self.callback is not None

    def start(self, callback):
        self.starts += 1
        self.callback = callback

    def stop(self):
        self.stops += 1
        self.callback = None

    def fire(self, times: int = 1):
        for _ in range(times):
            if self.callback is not None:
                self.callback()


class ScriptedBackend:
    """Backend returning queued texts (or raising queued exceptions)."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        reply = self.replies.pop(0) if self.replies else "the quick brown fox"
        if isinstance(reply, Exception):
            raise reply
        return GenerationResult(text=reply)


@pytest.fixture(scope="session")
def qapp():
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    from PySide6.QtWidgets import QApplication
    return QApplication.instance() or QApplication([])


@pytest.fixture
def ticker():
    return FakeTicker()


@pytest.fixture
def finished_calls():
    return []


@pytest.fixture
def engine(ticker, finished_calls):
    eng = SessionEngine(ticker, on_finished=finished_calls.append)
    yield eng
    eng.close()


@pytest.fixture
def config():
    return SessionConfig(time_limit_seconds=30)


def make_provider(*replies):
    backend = ScriptedBackend(*replies)
    return TextProvider(backend), backend


def type_text(engine, text):
    for ch in text:
        engine.submit_key(ch)
