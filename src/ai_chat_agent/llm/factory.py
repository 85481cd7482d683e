"""
LLM factory for creating provider instances.

Supports: DeepSeek, OpenRouter (both OpenAI-compatible) and Anthropic Claude.
"""

from typing import Callable

from ..catalog import ModelConfig
from ..config import Settings
from .anthropic import AnthropicLLM
from .base import BaseLLM
from .openai import OpenAILLM

LLMFactory = Callable[[ModelConfig], BaseLLM]


def create_llm(model: ModelConfig, settings: Settings | None = None) -> BaseLLM:
    """Create an LLM client bound to a registry model.

    Provider routing:
    - deepseek -> OpenAILLM (DeepSeek OpenAI-compatible endpoint)
    - openrouter -> OpenAILLM (OpenRouter OpenAI-compatible endpoint)
    - anthropic -> AnthropicLLM (native Anthropic SDK)
    """
    if settings is None:
        from ..config import get_settings
        settings = get_settings()

    config = settings.get_provider_config(model.provider)

    if config.provider == "anthropic":
        return AnthropicLLM(
            api_key=config.api_key,
            model=model.id,
            base_url=config.base_url,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )
    elif config.provider in ("deepseek", "openrouter"):
        return OpenAILLM(
            api_key=config.api_key,
            model=model.id,
            base_url=config.base_url,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            provider=config.provider,
        )
    else:
        raise ValueError(f"Unknown LLM provider: {config.provider}")


def llm_factory_for(settings: Settings) -> LLMFactory:
    """Bind settings into a factory the session manager can call per model."""
    def factory(model: ModelConfig) -> BaseLLM:
        return create_llm(model, settings)

    return factory
