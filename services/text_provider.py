# services/text_provider.py
"""
Adaptive practice text.

TextProvider asks a generation backend for text matching the session
config and the previous session's mistakes. Backend trouble never reaches
the caller: blank output and failures both turn into fixed fallback texts
plus a warning, so a session always has something to type.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Optional, Protocol

import litellm
from pydantic import BaseModel, Field

from app.config import (
    EMPTY_FALLBACK_TEXT,
    FAILED_FALLBACK_TEXT,
    SKILL_MAX,
    SKILL_MIN,
    ProviderSettings,
    SessionConfig,
)
from app.errors import BackendResponseError
from services.prompts import build_messages

log = logging.getLogger(__name__)


class GenerationRequest(BaseModel):
    mode: Literal["general", "code"]
    language: Optional[str] = None
    skill_level: int = Field(ge=SKILL_MIN, le=SKILL_MAX)
    previous_mistakes: Optional[str] = None

    @classmethod
    def from_config(cls, config: SessionConfig, previous_mistakes: Optional[str] = None) -> "GenerationRequest":
        mistakes = (previous_mistakes or "").strip() or None
        return cls(
            mode=config.mode_name,
            language=config.language,
            skill_level=config.skill_level,
            previous_mistakes=mistakes,
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"mode": self.mode, "skillLevel": self.skill_level}
        if self.mode == "code" and self.language:
            payload["language"] = self.language
        if self.previous_mistakes:
            payload["previousMistakes"] = self.previous_mistakes
        return payload


class GenerationResult(BaseModel):
    text: str


class TextBackend(Protocol):
    async def generate(self, request: GenerationRequest) -> GenerationResult: ...


class LiteLLMBackend:
    """Generation backend on top of any model LiteLLM can reach."""

    def __init__(self, settings: ProviderSettings):
        self.settings = settings

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        kwargs: dict[str, Any] = {
            "model": self.settings.model,
            "messages": build_messages(request.to_payload()),
            "temperature": self.settings.temperature,
            "timeout": self.settings.timeout,
        }
        if self.settings.api_base:
            kwargs["api_base"] = self.settings.api_base

        response = await litellm.acompletion(**kwargs)
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            raise BackendResponseError(f"Malformed completion response: {e}") from e
        return GenerationResult(text=content or "")


class GenerationWarning(Enum):
    EMPTY = "generation-empty"
    FAILED = "generation-failed"


@dataclass(frozen=True)
class TextOutcome:
    text: str
    warning: Optional[GenerationWarning] = None


def normalize_text(text: Optional[str]) -> str:
    """Trim and turn CRLF / CR line endings into LF, the only newline a key press produces."""
    return (text or "").replace("\r\n", "\n").replace("\r", "\n").strip()


class TextProvider:
    def __init__(self, backend: TextBackend):
        self.backend = backend

    async def request_text(self, config: SessionConfig, last_mistake_summary: Optional[str] = None) -> TextOutcome:
        request = GenerationRequest.from_config(config, last_mistake_summary)
        log.info("Requesting text: %s", request.to_payload())
        try:
            result = await self.backend.generate(request)
            text = normalize_text(result.text)
        except Exception:
            log.exception("Text generation failed; using fallback text")
            return TextOutcome(FAILED_FALLBACK_TEXT, GenerationWarning.FAILED)

        if not text:
            log.warning("Text generation returned nothing; using fallback text")
            return TextOutcome(EMPTY_FALLBACK_TEXT, GenerationWarning.EMPTY)
        return TextOutcome(text)
