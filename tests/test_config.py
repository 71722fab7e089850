"""Unit tests for ChatConfig and get_chat_config."""

import pytest
from pydantic import ValidationError

from maverick_chat.config import DEFAULT_BASE_URL, DEFAULT_MODEL, ChatConfig, get_chat_config


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("GEMINI_API_KEY", "GEMINI_MODEL", "GEMINI_BASE_URL", "GEMINI_TIMEOUT", "MAVERICK_APPEARANCE"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestChatConfig:
    """Tests for ChatConfig validation."""

    def test_defaults_with_only_api_key(self, clean_env) -> None:
        config = ChatConfig(api_key="k")

        assert config.model_name == DEFAULT_MODEL
        assert config.base_url == DEFAULT_BASE_URL
        assert config.timeout == 30.0
        assert config.appearance == "system"

    def test_missing_api_key_rejected(self, clean_env) -> None:
        with pytest.raises(ValidationError) as exc_info:
            ChatConfig()

        assert "GEMINI_API_KEY" in str(exc_info.value)

    def test_whitespace_api_key_rejected(self, clean_env) -> None:
        with pytest.raises(ValidationError):
            ChatConfig(api_key="   ")

    def test_api_key_stripped(self, clean_env) -> None:
        assert ChatConfig(api_key="  abc  ").api_key == "abc"

    def test_base_url_trailing_slash_removed(self, clean_env) -> None:
        config = ChatConfig(api_key="k", base_url="http://localhost:8080/v1beta/")

        assert config.base_url == "http://localhost:8080/v1beta"

    def test_timeout_must_be_positive(self, clean_env) -> None:
        with pytest.raises(ValidationError):
            ChatConfig(api_key="k", timeout=0)

    def test_unknown_appearance_rejected(self, clean_env) -> None:
        with pytest.raises(ValidationError):
            ChatConfig(api_key="k", appearance="sepia")


class TestGetChatConfig:
    """Tests for loading from the environment."""

    def test_reads_environment(self, clean_env) -> None:
        clean_env.setenv("GEMINI_API_KEY", "env-key")
        clean_env.setenv("GEMINI_MODEL", "gemini-1.5-pro")
        clean_env.setenv("GEMINI_TIMEOUT", "12.5")
        clean_env.setenv("MAVERICK_APPEARANCE", "Dark")

        config = get_chat_config()

        assert config.api_key == "env-key"
        assert config.model_name == "gemini-1.5-pro"
        assert config.timeout == 12.5
        assert config.appearance == "dark"

    def test_fails_without_key(self, clean_env) -> None:
        with pytest.raises(ValidationError):
            get_chat_config()
