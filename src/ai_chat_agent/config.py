"""
Configuration management for AI-Chat-Agent

Uses pydantic-settings for environment variable parsing and validation.
"""

from functools import lru_cache
from typing import TYPE_CHECKING, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from .agent.strategies import StrategyConfig

DEFAULT_SYSTEM_PROMPT = (
    "You must ALWAYS respond in English. Never use Chinese. "
    "If input is English, output must be English only."
)


class LLMConfig(BaseSettings):
    """Configuration for a single LLM provider."""

    model_config = SettingsConfigDict(extra="ignore")

    provider: Literal["deepseek", "openrouter", "anthropic"] = "openrouter"
    api_key: str = ""
    base_url: str | None = None
    max_tokens: int = 4096
    temperature: float = 0.7


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # Application
    app_name: str = "AI-Chat-Agent"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # LLM Providers (API Keys)
    deepseek_api_key: str = Field(default="", description="DeepSeek API key")
    openrouter_api_key: str = Field(default="", description="OpenRouter API key")
    anthropic_api_key: str = Field(default="", description="Anthropic API key for Claude")
    deepseek_base_url: str = Field(default="https://api.deepseek.com", description="DeepSeek endpoint")
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1", description="OpenRouter endpoint")

    # Default model settings
    default_model: str = Field(
        default="nvidia/nemotron-3-nano-30b-a3b:free",
        description="Model registry id used when a session does not pick one",
    )
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    max_tokens: int = 4096
    temperature: float = 0.7

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/chat.db",
        description="Database connection URL"
    )

    # Context strategy defaults
    default_strategy: Literal["sliding-window", "sticky-facts", "branching", "summarization"] = "sliding-window"
    default_window_size: int = Field(default=10, description="Messages kept by windowed strategies")
    summary_recent_window: int = Field(default=6, description="Messages never summarized")
    summary_batch_size: int = Field(default=4, description="Messages folded into one summary")
    max_summary_batches_per_turn: int = Field(default=1, description="Compression passes per turn")
    min_window_size: int = Field(default=2, description="Lower bound for client-supplied windows")

    @field_validator("min_window_size")
    @classmethod
    def check_min_window(cls, v: int) -> int:
        if v < 1:
            raise ValueError("min_window_size must be at least 1")
        return v

    def get_provider_config(self, provider: str) -> LLMConfig:
        """Get LLM configuration for a provider."""
        api_key_map = {
            "deepseek": self.deepseek_api_key,
            "openrouter": self.openrouter_api_key,
            "anthropic": self.anthropic_api_key,
        }

        base_url_map = {
            "deepseek": self.deepseek_base_url,
            "openrouter": self.openrouter_base_url,
            "anthropic": None,
        }

        if provider not in api_key_map:
            raise ValueError(f"Unknown LLM provider: {provider}")

        return LLMConfig(
            provider=provider,  # type: ignore
            api_key=api_key_map[provider],
            base_url=base_url_map[provider],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )

    def default_strategy_config(self) -> "StrategyConfig":
        """Build the strategy configuration new sessions start with."""
        from .agent.strategies import parse_strategy

        return parse_strategy(
            {
                "type": self.default_strategy,
                "window_size": self.default_window_size,
                "recent_window_size": self.summary_recent_window,
                "summary_batch_size": self.summary_batch_size,
                "max_batches_per_turn": self.max_summary_batches_per_turn,
            },
            min_window=self.min_window_size,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
