"""
Tests for the model registry and provider factory.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from ai_chat_agent.catalog import DEFAULT_MODEL, MODELS, find_model, get_model
from ai_chat_agent.config import Settings
from ai_chat_agent.llm import AnthropicLLM, OpenAILLM, create_llm
from ai_chat_agent.llm.base import LLMMessage


def test_registry_ids_are_unique():
    ids = [m.id for m in MODELS]
    assert len(ids) == len(set(ids))


def test_default_model():
    assert DEFAULT_MODEL.id == "nvidia/nemotron-3-nano-30b-a3b:free"
    assert DEFAULT_MODEL.tier == "medium"


def test_get_model_known():
    model = get_model("deepseek-chat")
    assert model.provider == "deepseek"
    assert model.pricing.input == 0.28
    assert model.pricing.output == 0.42
    assert model.context_window == 128_000


def test_get_model_falls_back():
    assert get_model("not-a-model") is DEFAULT_MODEL
    assert get_model(None) is DEFAULT_MODEL
    assert get_model("", default=MODELS[0]) is MODELS[0]


def test_find_model_returns_none():
    assert find_model("not-a-model") is None


def test_to_dict():
    data = get_model("deepseek-chat").to_dict()
    assert data["pricing"] == {"input": 0.28, "output": 0.42}
    assert data["label"] == "DeepSeek Chat (Paid)"


def test_create_llm_routes_by_provider():
    settings = Settings(
        _env_file=None,
        deepseek_api_key="ds",
        openrouter_api_key="or",
        anthropic_api_key="an",
    )

    deepseek = create_llm(get_model("deepseek-chat"), settings)
    assert isinstance(deepseek, OpenAILLM)
    assert deepseek.provider_name == "deepseek"
    assert deepseek.model == "deepseek-chat"
    assert deepseek.base_url == "https://api.deepseek.com"

    openrouter = create_llm(get_model("stepfun/step-3.5-flash:free"), settings)
    assert isinstance(openrouter, OpenAILLM)
    assert openrouter.provider_name == "openrouter"

    claude = create_llm(get_model("claude-sonnet-4-20250514"), settings)
    assert isinstance(claude, AnthropicLLM)
    assert claude.api_key == "an"


@pytest.mark.asyncio
async def test_anthropic_sends_system_prompt_separately():
    claude = AnthropicLLM(api_key="an")
    claude.client.messages.create = AsyncMock(
        return_value=SimpleNamespace(
            content=[SimpleNamespace(type="text", text="Hello"), SimpleNamespace(type="tool_use")],
            usage=SimpleNamespace(input_tokens=12, output_tokens=3),
            model="claude-sonnet-4-20250514",
            stop_reason="end_turn",
        )
    )

    response = await claude.generate(
        [LLMMessage(role="user", content="Hi")], system_prompt="Be brief."
    )

    kwargs = claude.client.messages.create.call_args.kwargs
    assert kwargs["system"] == "Be brief."
    assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]
    assert response.content == "Hello"
    assert response.total_tokens == 15
