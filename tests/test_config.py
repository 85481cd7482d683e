"""
Tests for configuration module.
"""

import os
from unittest.mock import patch

import pytest

from ai_chat_agent.agent.strategies import SlidingWindow, Summarization
from ai_chat_agent.config import DEFAULT_SYSTEM_PROMPT, Settings


def test_settings_default_values():
    """Test that settings have sensible defaults."""
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)

        assert settings.app_name == "AI-Chat-Agent"
        assert settings.port == 3000
        assert settings.default_model == "nvidia/nemotron-3-nano-30b-a3b:free"
        assert settings.default_strategy == "sliding-window"
        assert settings.min_window_size == 2
        assert settings.system_prompt == DEFAULT_SYSTEM_PROMPT


def test_settings_from_env():
    """Test loading settings from environment variables."""
    env = {
        "OPENROUTER_API_KEY": "test_openrouter_key",
        "DEFAULT_MODEL": "deepseek-chat",
        "DEFAULT_STRATEGY": "summarization",
        "SUMMARY_BATCH_SIZE": "8",
    }

    with patch.dict(os.environ, env, clear=True):
        settings = Settings(_env_file=None)

        assert settings.openrouter_api_key == "test_openrouter_key"
        assert settings.default_model == "deepseek-chat"
        assert settings.default_strategy == "summarization"
        assert settings.summary_batch_size == 8


def test_min_window_must_be_positive():
    with patch.dict(os.environ, {"MIN_WINDOW_SIZE": "0"}, clear=True):
        with pytest.raises(ValueError):
            Settings(_env_file=None)


def test_get_provider_config():
    """Test getting provider configuration."""
    env = {
        "DEEPSEEK_API_KEY": "test_key",
        "MAX_TOKENS": "1024",
    }

    with patch.dict(os.environ, env, clear=True):
        settings = Settings(_env_file=None)
        config = settings.get_provider_config("deepseek")

        assert config.provider == "deepseek"
        assert config.api_key == "test_key"
        assert config.base_url == "https://api.deepseek.com"
        assert config.max_tokens == 1024


def test_get_provider_config_openrouter():
    with patch.dict(os.environ, {}, clear=True):
        config = Settings(_env_file=None).get_provider_config("openrouter")

        assert config.base_url == "https://openrouter.ai/api/v1"
        assert config.api_key == ""


def test_get_provider_config_unknown():
    with patch.dict(os.environ, {}, clear=True):
        with pytest.raises(ValueError):
            Settings(_env_file=None).get_provider_config("mystery")


def test_default_strategy_config():
    env = {
        "DEFAULT_STRATEGY": "summarization",
        "SUMMARY_RECENT_WINDOW": "4",
        "SUMMARY_BATCH_SIZE": "2",
    }

    with patch.dict(os.environ, env, clear=True):
        config = Settings(_env_file=None).default_strategy_config()

        assert config == Summarization(recent_window_size=4, summary_batch_size=2)


def test_default_strategy_config_clamps_window():
    env = {"DEFAULT_WINDOW_SIZE": "1"}

    with patch.dict(os.environ, env, clear=True):
        config = Settings(_env_file=None).default_strategy_config()

        assert config == SlidingWindow(window_size=2)
