# app/config.py
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Optional, Union
import os

from app.errors import ConfigError


TIME_OPTIONS = (15, 30, 60, 120)
SKILL_MIN, SKILL_MAX = 1, 10
DEFAULT_TIME_LIMIT = 30
DEFAULT_SKILL_LEVEL = 5
DEFAULT_LANGUAGE = "javascript"

AVAILABLE_LANGUAGES = [
    "javascript", "python", "java", "csharp", "html", "css",
    "typescript", "go", "rust", "php", "ruby",
]

EMPTY_FALLBACK_TEXT = "Couldn't fetch text, please try again. Defaulting to sample text."
FAILED_FALLBACK_TEXT = "Error fetching text. This is a sample text for practice."


@dataclass(frozen=True)
class GeneralMode:
    name = "general"


@dataclass(frozen=True)
class CodeMode:
    language: str = DEFAULT_LANGUAGE
    name = "code"

    def __post_init__(self):
        if not self.language or not self.language.strip():
            raise ConfigError("Code mode needs a language")


Mode = Union[GeneralMode, CodeMode]


@dataclass(frozen=True)
class SessionConfig:
    mode: Mode = field(default_factory=GeneralMode)
    skill_level: int = DEFAULT_SKILL_LEVEL
    time_limit_seconds: int = DEFAULT_TIME_LIMIT

    def __post_init__(self):
        if not isinstance(self.mode, (GeneralMode, CodeMode)):
            raise ConfigError(f"Unknown mode: {self.mode!r}")
        if isinstance(self.skill_level, bool) or not isinstance(self.skill_level, int):
            raise ConfigError(f"Skill level must be an integer, got {self.skill_level!r}")
        if not SKILL_MIN <= self.skill_level <= SKILL_MAX:
            raise ConfigError(f"Skill level must be {SKILL_MIN}-{SKILL_MAX}, got {self.skill_level}")
        if isinstance(self.time_limit_seconds, bool) or not isinstance(self.time_limit_seconds, int) \
                or self.time_limit_seconds not in TIME_OPTIONS:
            raise ConfigError(
                f"Time limit must be one of {', '.join(map(str, TIME_OPTIONS))}, "
                f"got {self.time_limit_seconds!r}"
            )

    @property
    def mode_name(self) -> str:
        return self.mode.name

    @property
    def language(self) -> Optional[str]:
        return self.mode.language if isinstance(self.mode, CodeMode) else None

    def with_changes(self, **changes) -> "SessionConfig":
        return replace(self, **changes)


def mode_from_name(name: str, language: Optional[str] = None) -> Mode:
    if name == "general":
        return GeneralMode()
    if name == "code":
        return CodeMode(language or DEFAULT_LANGUAGE)
    raise ConfigError(f"Unknown mode: {name!r}")


@dataclass(frozen=True)
class ProviderSettings:
    model: str = "gpt-4o-mini"
    temperature: float = 0.8
    timeout: float = 30.0
    api_base: Optional[str] = None


def _env_float(env, name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def load_provider_settings(env=None) -> ProviderSettings:
    """Read generation backend settings from TYPEMASTER_* environment variables."""
    env = os.environ if env is None else env
    settings = ProviderSettings(
        model=env.get("TYPEMASTER_MODEL") or ProviderSettings.model,
        temperature=_env_float(env, "TYPEMASTER_TEMPERATURE", ProviderSettings.temperature),
        timeout=_env_float(env, "TYPEMASTER_TIMEOUT", ProviderSettings.timeout),
        api_base=env.get("TYPEMASTER_API_BASE") or None,
    )
    if settings.timeout <= 0:
        raise ConfigError("TYPEMASTER_TIMEOUT must be positive")
    return settings
