"""
Shared fixtures: a scripted provider and a temporary message store.
"""

import pytest

from ai_chat_agent.catalog import get_model
from ai_chat_agent.config import Settings
from ai_chat_agent.llm.base import BaseLLM, LLMMessage, LLMResponse
from ai_chat_agent.models import init_database
from ai_chat_agent.store import MessageStore


class ScriptedLLM(BaseLLM):
    """Provider double that replays queued replies and records every call."""

    def __init__(self, replies=None, input_tokens=10, output_tokens=5, model="test-model"):
        super().__init__(api_key="test", model=model)
        self.replies = list(replies or [])
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens
        self.calls: list[tuple[list[LLMMessage], str | None]] = []

    @property
    def provider_name(self) -> str:
        return "scripted"

    async def generate(self, messages, system_prompt=None):
        self.calls.append((list(messages), system_prompt))
        reply = self.replies.pop(0) if self.replies else f"reply {len(self.calls)}"
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(
            content=reply,
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
            model=self.model,
        )


def msgs(*pairs: str) -> list[LLMMessage]:
    """Build alternating user/assistant messages from their contents."""
    return [
        LLMMessage(role="user" if i % 2 == 0 else "assistant", content=text)
        for i, text in enumerate(pairs)
    ]


@pytest.fixture
def llm():
    return ScriptedLLM()


@pytest.fixture
def factory(llm):
    return lambda model: llm


@pytest.fixture
def free_model():
    return get_model("nvidia/nemotron-3-nano-30b-a3b:free")


@pytest.fixture
def paid_model():
    return get_model("deepseek-chat")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}",
    )


@pytest.fixture
async def store(settings):
    session_maker = await init_database(settings.database_url)
    yield MessageStore(session_maker)
    await session_maker.kw["bind"].dispose()
