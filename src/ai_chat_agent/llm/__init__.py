"""
LLM module for multi-provider AI model support.

Providers:
- DeepSeek (via OpenAI-compatible endpoint)
- OpenRouter (via OpenAI-compatible endpoint)
- Anthropic Claude (native SDK)
"""

from .base import BaseLLM, LLMMessage, LLMResponse
from .anthropic import AnthropicLLM
from .openai import OpenAILLM
from .factory import LLMFactory, create_llm, llm_factory_for

__all__ = [
    "BaseLLM",
    "LLMMessage",
    "LLMResponse",
    "AnthropicLLM",
    "OpenAILLM",
    "LLMFactory",
    "create_llm",
    "llm_factory_for",
]
