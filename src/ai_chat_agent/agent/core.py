"""
Core chat agent - owns one session's dialogue state.

For every turn it:
1. Appends the user message to the active history
2. Runs the strategy's overhead call (summarization or fact extraction)
3. Builds the outbound message list for the active strategy
4. Calls the provider and appends the assistant response
5. Records token and cost metrics
"""

import time
from dataclasses import dataclass
from typing import Any

import structlog

from ..catalog import ModelConfig
from ..config import DEFAULT_SYSTEM_PROMPT
from ..errors import NothingToRetryError, ProviderError
from ..llm import BaseLLM, LLMFactory, LLMMessage
from .branches import Branch, BranchSet, BranchSwitch
from .compaction import compress_history
from .facts import FactExtraction, extract_facts
from .metrics import SessionMetrics, TurnMetrics, compute_cost
from .strategies import (
    SlidingWindow,
    StickyFacts,
    StrategyConfig,
    Summarization,
    build_outbound_messages,
    strategy_to_dict,
)

logger = structlog.get_logger()


@dataclass
class TurnResult:
    """Outcome of one completed turn."""

    content: str
    metrics: TurnMetrics
    session_metrics: SessionMetrics
    outbound_count: int
    facts_update: FactExtraction | None = None
    summaries_added: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "metrics": self.metrics.to_dict(),
            "sessionMetrics": self.session_metrics.to_dict(),
            "outboundCount": self.outbound_count,
            "factsUpdated": self.facts_update.ok if self.facts_update else None,
            "summariesAdded": self.summaries_added,
        }


@dataclass
class _Overhead:
    input_tokens: int = 0
    output_tokens: int = 0
    facts_update: FactExtraction | None = None
    summaries_added: int = 0

    @property
    def tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class ChatAgent:
    """Conversation state for a single session."""

    def __init__(
        self,
        model: ModelConfig,
        llm_factory: LLMFactory,
        strategy: StrategyConfig | None = None,
        system_prompt: str | None = None,
        history: list[LLMMessage] | None = None,
    ):
        self.llm_factory = llm_factory
        self.model = model
        self.llm: BaseLLM = llm_factory(model)
        self.strategy: StrategyConfig = strategy or SlidingWindow()
        self.system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT

        self._history: list[LLMMessage] = list(history or [])
        self.facts: dict[str, str] = {}
        self._summaries: list[str] = []
        self._summarized_count = 0
        self.branches = BranchSet()
        self.metrics = SessionMetrics()

    # ------------------------------------------------------------------ #
    # History
    # ------------------------------------------------------------------ #
    @property
    def active_history(self) -> list[LLMMessage]:
        """The list turns are appended to: the active branch or the main history."""
        active = self.branches.active
        return active.messages if active is not None else self._history

    @property
    def history(self) -> list[LLMMessage]:
        """A copy of the active history."""
        return list(self.active_history)

    @property
    def main_history(self) -> list[LLMMessage]:
        """A copy of the history as it stood outside any branch."""
        return list(self._history)

    @property
    def summaries(self) -> list[str]:
        """The summary log of the active line, which may be a branch."""
        active = self.branches.active
        return active.summaries if active is not None else self._summaries

    @property
    def summarized_count(self) -> int:
        active = self.branches.active
        return active.summarized_count if active is not None else self._summarized_count

    def _add_summarized(self, count: int) -> None:
        active = self.branches.active
        if active is not None:
            active.summarized_count += count
        else:
            self._summarized_count += count

    @property
    def total_messages(self) -> int:
        """Messages ever appended to the active line, including summarized ones."""
        return self.summarized_count + len(self.active_history)

    def add_user_message(self, content: str) -> None:
        self.active_history.append(LLMMessage(role="user", content=content))

    def add_assistant_message(self, content: str) -> None:
        self.active_history.append(LLMMessage(role="assistant", content=content))

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #
    def set_model(self, model: ModelConfig) -> None:
        """Switch models. Earlier turns keep the price they were charged at."""
        if model.id == self.model.id:
            return
        logger.info("Switching model", old=self.model.id, new=model.id)
        self.model = model
        self.llm = self.llm_factory(model)

    def set_strategy(self, strategy: StrategyConfig) -> None:
        """Switch strategies without touching the history."""
        if strategy == self.strategy:
            return
        logger.info(
            "Switching strategy",
            old=strategy_to_dict(self.strategy),
            new=strategy_to_dict(strategy),
        )
        self.strategy = strategy

    def outbound_messages(self, strategy: StrategyConfig | None = None) -> list[LLMMessage]:
        """The message list the next provider call would receive."""
        return build_outbound_messages(
            self.active_history,
            strategy or self.strategy,
            facts=self.facts,
            summaries=self.summaries,
        )

    # ------------------------------------------------------------------ #
    # Turns
    # ------------------------------------------------------------------ #
    async def process_message(self, message: str) -> TurnResult:
        """Run a full turn for a new user message.

        The user message stays in the history if the provider fails, so a
        later ``retry`` reuses it.
        """
        self.add_user_message(message)
        return await self._complete_turn(message)

    async def retry(self) -> TurnResult:
        """Regenerate the response for a trailing unanswered user message."""
        history = self.active_history
        if not history or history[-1].role != "user":
            raise NothingToRetryError("No unanswered user message to retry")
        return await self._complete_turn(history[-1].content)

    async def _run_overhead(
        self, message: str, llm: BaseLLM, strategy: StrategyConfig
    ) -> _Overhead:
        overhead = _Overhead()

        if isinstance(strategy, Summarization):
            result = await compress_history(
                llm,
                self.active_history,
                self.summaries,
                strategy,
            )
            self._add_summarized(result.messages_consumed)
            overhead.input_tokens = result.input_tokens
            overhead.output_tokens = result.output_tokens
            overhead.summaries_added = result.batches_consumed

        elif isinstance(strategy, StickyFacts):
            extraction = await extract_facts(llm, self.facts, message)
            if extraction.ok:
                self.facts = extraction.facts
            overhead.input_tokens = extraction.input_tokens
            overhead.output_tokens = extraction.output_tokens
            overhead.facts_update = extraction

        return overhead

    async def _complete_turn(self, message: str) -> TurnResult:
        # the whole turn runs on the model and strategy active when it began
        model, llm, strategy = self.model, self.llm, self.strategy

        try:
            overhead = await self._run_overhead(message, llm, strategy)
        except Exception as e:
            logger.error("Overhead call failed", model=model.id, strategy=strategy.type, error=str(e))
            raise ProviderError(model.id, str(e)) from e

        outbound = self.outbound_messages(strategy)

        logger.info(
            "Sending turn",
            model=model.id,
            tier=model.tier,
            provider=model.provider,
            strategy=strategy.type,
            history=len(self.active_history),
            outbound=len(outbound),
        )

        start_time = time.monotonic()
        try:
            response = await llm.generate(
                messages=outbound,
                system_prompt=self.system_prompt,
            )
        except Exception as e:
            logger.error("LLM generation error", model=model.id, error=str(e))
            raise ProviderError(model.id, str(e)) from e

        elapsed_ms = int((time.monotonic() - start_time) * 1000)

        self.add_assistant_message(response.content)

        cost = compute_cost(model, response.input_tokens, response.output_tokens)
        turn = TurnMetrics(
            response_time_ms=elapsed_ms,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
            overhead_tokens=overhead.tokens,
            cost=cost,
            model=model.id,
            tier=model.tier,
        )
        session_metrics = self.metrics.record_turn(
            response.input_tokens,
            response.output_tokens,
            overhead.tokens,
            cost,
        )

        logger.info(
            "Response complete",
            time_ms=elapsed_ms,
            input_tokens=turn.input_tokens,
            output_tokens=turn.output_tokens,
            overhead_tokens=turn.overhead_tokens,
            cost=f"{cost:.6f}",
            history=len(self.active_history),
        )

        return TurnResult(
            content=response.content,
            metrics=turn,
            session_metrics=session_metrics,
            outbound_count=len(outbound),
            facts_update=overhead.facts_update,
            summaries_added=overhead.summaries_added,
        )

    # ------------------------------------------------------------------ #
    # Branching
    # ------------------------------------------------------------------ #
    def create_checkpoint(self) -> list[Branch]:
        """Copy the active history and its summary log into two fresh branches."""
        return self.branches.create_checkpoint(
            self.active_history, self.summaries, self.summarized_count
        )

    def switch_branch(self, branch_id: str) -> BranchSwitch | None:
        return self.branches.switch(branch_id)

    @property
    def active_branch_id(self) -> str | None:
        return self.branches.active_branch_id

    def context_snapshot(self) -> dict[str, Any]:
        """Describe the in-memory context state."""
        return {
            "model": self.model.id,
            "strategy": strategy_to_dict(self.strategy),
            "historyLength": len(self.active_history),
            "totalMessages": self.total_messages,
            "facts": dict(self.facts),
            "summaries": list(self.summaries),
            "branches": [b.to_dict(include_messages=False) for b in self.branches.branches],
            "activeBranchId": self.active_branch_id,
            "metrics": self.metrics.to_dict(),
            "outbound": [
                {"role": m.role, "content": m.content} for m in self.outbound_messages()
            ],
        }
