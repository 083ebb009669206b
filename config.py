"""
Game configuration
Durations, context window and model settings, overridable from the environment
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

ROUND_DURATION = 300
VERDICT_DURATION = 60
MAX_HISTORY_MESSAGES = 6
REQUIRED_INTERACTIONS = 3


@dataclass(frozen=True)
class ModelSettings:
    """Sampling settings for one kind of model call."""
    model: str = "gpt-4.1-nano"
    temperature: float = 0.2
    top_p: Optional[float] = 0.5
    max_tokens: int = 150


@dataclass
class GameConfig:
    """Configuration for one game session."""
    round_seconds: int = ROUND_DURATION
    verdict_seconds: int = VERDICT_DURATION
    max_history_messages: int = MAX_HISTORY_MESSAGES
    required_interactions: int = REQUIRED_INTERACTIONS
    llm_provider: str = "openai"  # openai, langchain-openai or anthropic
    api_key: Optional[str] = None
    chat_settings: ModelSettings = field(default_factory=ModelSettings)
    flashback_settings: ModelSettings = field(
        default_factory=lambda: ModelSettings(model="gpt-4o-mini", temperature=0.7, top_p=None, max_tokens=256)
    )
    verdict_settings: ModelSettings = field(
        default_factory=lambda: ModelSettings(temperature=0.3, top_p=0.7, max_tokens=200)
    )
    environment: str = "development"
    log_level: str = "INFO"

    def __post_init__(self):
        if self.round_seconds <= 0 or self.verdict_seconds <= 0:
            raise ValueError("Phase durations must be positive")
        if self.max_history_messages < 0:
            raise ValueError("max_history_messages cannot be negative")
        if self.required_interactions < 1:
            raise ValueError("required_interactions must be at least 1")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_config() -> GameConfig:
    """Build a GameConfig from the environment (and a .env file if present)."""
    load_dotenv()

    chat_model = os.getenv("COURTROOM_CHAT_MODEL")
    chat_settings = ModelSettings(model=chat_model) if chat_model else ModelSettings()

    return GameConfig(
        round_seconds=_int_env("COURTROOM_ROUND_SECONDS", ROUND_DURATION),
        verdict_seconds=_int_env("COURTROOM_VERDICT_SECONDS", VERDICT_DURATION),
        max_history_messages=_int_env("COURTROOM_MAX_HISTORY", MAX_HISTORY_MESSAGES),
        llm_provider=os.getenv("COURTROOM_LLM_PROVIDER", "openai"),
        api_key=os.getenv("openai") or os.getenv("OPENAI_API_KEY"),
        chat_settings=chat_settings,
        environment=os.getenv("COURTROOM_ENV", "development"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
