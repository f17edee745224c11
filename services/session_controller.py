# services/session_controller.py
from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from app.config import SessionConfig
from app.state import SessionSnapshot
from services.text_provider import GenerationWarning, TextOutcome, TextProvider
from services.typing_engine import SessionEngine

log = logging.getLogger(__name__)

FetchJob = Callable[[], Awaitable[TextOutcome]]
Deliver = Callable[[int, TextOutcome], bool]
Launcher = Callable[[int, FetchJob, Deliver], None]
WarningListener = Callable[[GenerationWarning], None]


class SessionController:
    """
    Glue between configuration, text fetching and the engine.

    Every fetch carries the generation token it was launched with; a result
    whose token is no longer current belongs to a superseded config or
    restart and is dropped.
    """

    def __init__(
        self,
        engine: SessionEngine,
        provider: TextProvider,
        launcher: Launcher,
        config: Optional[SessionConfig] = None,
        on_warning: Optional[WarningListener] = None,
        on_text_loaded: Optional[Callable[[], None]] = None,
    ):
        self.engine = engine
        self.provider = provider
        self.config = config or SessionConfig()
        self._launch = launcher
        self._on_warning = on_warning
        self._on_text_loaded = on_text_loaded
        self._generation = 0
        self._pending = False

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_loading(self) -> bool:
        return self._pending

    def start(self):
        self._begin_fetch()

    def restart(self):
        self._begin_fetch()

    def set_config(self, config: SessionConfig):
        if config == self.config:
            return
        self.config = config
        self._begin_fetch()

    def update_config(self, **changes):
        self.set_config(self.config.with_changes(**changes))

    def _begin_fetch(self):
        self._generation += 1
        self._pending = True
        self.engine.unload(self.config.time_limit_seconds)

        token = self._generation
        config = self.config
        mistakes = self.engine.last_mistake_summary
        log.info("Fetching text #%d (%s, skill %d)", token, config.mode_name, config.skill_level)
        self._launch(token, lambda: self.provider.request_text(config, mistakes), self.deliver)

    def deliver(self, token: int, outcome: TextOutcome) -> bool:
        """Apply a finished fetch. Returns False when it was stale."""
        if token != self._generation or self.engine.closed:
            log.debug("Discarding stale text #%d (current #%d)", token, self._generation)
            return False
        self._pending = False
        self.engine.reset(outcome.text, self.config.time_limit_seconds)
        if outcome.warning is not None and self._on_warning is not None:
            self._on_warning(outcome.warning)
        if self._on_text_loaded is not None:
            self._on_text_loaded()
        return True

    def close(self):
        """Invalidate any outstanding fetch and release the engine timer."""
        self._generation += 1
        self._pending = False
        self.engine.close()

    def submit_key(self, key: str) -> bool:
        if self._pending:
            return False
        return self.engine.submit_key(key)

    def snapshot(self) -> SessionSnapshot:
        return self.engine.snapshot(loading=self._pending)


def run_inline(token: int, job: FetchJob, deliver: Deliver):
    """Launcher that resolves the fetch immediately on the calling thread."""
    deliver(token, asyncio.run(job()))
