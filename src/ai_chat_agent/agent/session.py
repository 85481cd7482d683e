"""
Session management for conversations.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

import structlog

from ..catalog import ModelConfig, get_model
from ..config import Settings
from ..llm import LLMFactory, LLMMessage
from ..models import MessageRole
from ..store import MessageStore
from .branches import Branch, BranchSwitch
from .core import ChatAgent, TurnResult
from .strategies import StrategyConfig

logger = structlog.get_logger()


@dataclass
class Attachment:
    """A file sent along with a user message."""

    filename: str
    media_type: str
    data: bytes


@dataclass
class ChatTurn:
    """A completed turn together with the session it belongs to."""

    session_id: str
    result: TurnResult
    file_ids: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = self.result.to_dict()
        data["sessionId"] = self.session_id
        data["fileIds"] = list(self.file_ids)
        return data


class SessionManager:
    """Registry of live chat agents keyed by session id.

    Agents live until ``delete_session``; sessions unknown to the registry
    are restored from the store, which only keeps raw turn history.
    """

    def __init__(
        self,
        store: MessageStore,
        settings: Settings,
        llm_factory: LLMFactory,
    ):
        self.store = store
        self.settings = settings
        self.llm_factory = llm_factory
        self._agents: dict[str, ChatAgent] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def default_model(self) -> ModelConfig:
        return get_model(self.settings.default_model)

    def active_session_ids(self) -> list[str]:
        return list(self._agents)

    def get_agent(self, session_id: str) -> ChatAgent | None:
        return self._agents.get(session_id)

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    async def resolve_or_create(
        self,
        session_id: str | None = None,
        model: str | None = None,
        strategy: StrategyConfig | None = None,
    ) -> tuple[ChatAgent, str]:
        """Return the live agent for a session, restoring or creating it."""
        if session_id and session_id in self._agents:
            agent = self._agents[session_id]
            if model:
                agent.set_model(get_model(model, self.default_model))
            if strategy is not None:
                agent.set_strategy(strategy)
            return agent, session_id

        session_id = session_id or str(uuid4())

        stored = await self.store.list_messages(session_id)
        history = [
            LLMMessage(role=m.role, content=m.content)  # type: ignore[arg-type]
            for m in stored
            if m.role in (MessageRole.USER.value, MessageRole.ASSISTANT.value)
        ]

        # a concurrent restore of the same id may have finished first
        if session_id in self._agents:
            return await self.resolve_or_create(session_id, model, strategy)

        agent = ChatAgent(
            model=get_model(model, self.default_model),
            llm_factory=self.llm_factory,
            strategy=strategy or self.settings.default_strategy_config(),
            system_prompt=self.settings.system_prompt,
            history=history,
        )
        self._agents[session_id] = agent

        if history:
            logger.info("Restored session", session_id=session_id, messages=len(history))
        else:
            logger.info("Created new session", session_id=session_id, model=agent.model.id)

        return agent, session_id

    async def process_message(
        self,
        content: str,
        session_id: str | None = None,
        model: str | None = None,
        strategy: StrategyConfig | None = None,
        attachments: list[Attachment] | None = None,
    ) -> ChatTurn:
        """Run a turn and persist it.

        The user message and its attachments are stored before the provider
        call. The assistant message is stored only when the call succeeds.
        Turns on the same session run one at a time, and model or strategy
        overrides wait for the running turn to finish.
        """
        session_id = session_id or str(uuid4())

        async with self._lock_for(session_id):
            agent, _ = await self.resolve_or_create(session_id, model, strategy)

            message_id = await self.store.append_message(
                session_id, MessageRole.USER.value, content, agent.model.id
            )
            file_ids = [
                await self.store.append_file(
                    message_id, session_id, a.filename, a.media_type, a.data
                )
                for a in attachments or []
            ]

            result = await agent.process_message(content)

            await self.store.append_message(
                session_id, MessageRole.ASSISTANT.value, result.content, result.metrics.model
            )

        return ChatTurn(session_id=session_id, result=result, file_ids=file_ids)

    async def retry(self, session_id: str) -> ChatTurn:
        """Regenerate the answer to the last user message after a failed turn."""
        async with self._lock_for(session_id):
            agent, _ = await self.resolve_or_create(session_id)
            result = await agent.retry()
            await self.store.append_message(
                session_id, MessageRole.ASSISTANT.value, result.content, result.metrics.model
            )

        return ChatTurn(session_id=session_id, result=result)

    def delete_session(self, session_id: str) -> bool:
        """Drop the in-memory agent. Persisted messages are kept."""
        agent = self._agents.pop(session_id, None)
        self._locks.pop(session_id, None)
        if agent is None:
            return False
        logger.info("Session cleared", session_id=session_id)
        return True

    def new_chat(self, session_id: str) -> None:
        self.delete_session(session_id)

    async def checkpoint(self, session_id: str) -> list[Branch]:
        async with self._lock_for(session_id):
            agent, _ = await self.resolve_or_create(session_id)
            return agent.create_checkpoint()

    async def switch_branch(self, session_id: str, branch_id: str) -> BranchSwitch | None:
        async with self._lock_for(session_id):
            agent, _ = await self.resolve_or_create(session_id)
            return agent.switch_branch(branch_id)
