"""Unit tests for game configuration."""

import pytest

from config import ROUND_DURATION, VERDICT_DURATION, GameConfig, load_config

ENV_VARS = [
    "COURTROOM_ROUND_SECONDS",
    "COURTROOM_VERDICT_SECONDS",
    "COURTROOM_MAX_HISTORY",
    "COURTROOM_LLM_PROVIDER",
    "COURTROOM_CHAT_MODEL",
    "COURTROOM_ENV",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Unset every override read by load_config."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestGameConfig:
    def test_defaults(self) -> None:
        config = GameConfig()
        assert config.round_seconds == 300
        assert config.verdict_seconds == 60
        assert config.max_history_messages == 6
        assert config.required_interactions == 3
        assert config.chat_settings.model == "gpt-4.1-nano"
        assert config.chat_settings.max_tokens == 150
        assert config.flashback_settings.model == "gpt-4o-mini"
        assert config.flashback_settings.top_p is None
        assert config.verdict_settings.max_tokens == 200

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"round_seconds": 0},
            {"verdict_seconds": -1},
            {"max_history_messages": -1},
            {"required_interactions": 0},
        ],
    )
    def test_invalid_values_rejected(self, kwargs) -> None:
        with pytest.raises(ValueError):
            GameConfig(**kwargs)


class TestLoadConfig:
    def test_defaults_without_environment(self, clean_env: pytest.MonkeyPatch) -> None:
        config = load_config()
        assert config.round_seconds == ROUND_DURATION
        assert config.verdict_seconds == VERDICT_DURATION
        assert config.llm_provider == "openai"
        assert config.log_level == "INFO"

    def test_environment_overrides(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("COURTROOM_ROUND_SECONDS", "120")
        clean_env.setenv("COURTROOM_VERDICT_SECONDS", "30")
        clean_env.setenv("COURTROOM_CHAT_MODEL", "gpt-4o-mini")
        clean_env.setenv("COURTROOM_LLM_PROVIDER", "anthropic")
        clean_env.setenv("LOG_LEVEL", "debug")

        config = load_config()

        assert config.round_seconds == 120
        assert config.verdict_seconds == 30
        assert config.chat_settings.model == "gpt-4o-mini"
        assert config.llm_provider == "anthropic"
        assert config.log_level == "DEBUG"

    def test_non_integer_duration(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("COURTROOM_ROUND_SECONDS", "five minutes")
        with pytest.raises(ValueError, match="COURTROOM_ROUND_SECONDS"):
            load_config()
