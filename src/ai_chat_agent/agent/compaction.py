"""
Conversation Compaction - batch summarization of old history.

When the history outgrows the recent window by at least one batch, the
oldest batch is rendered as a transcript, summarized in a single-shot
provider call, appended to the summary log and removed from the history.
Summaries are never re-summarized, so compaction only ever consumes a
prefix of the history.
"""

from dataclasses import dataclass, field

import structlog

from ..llm.base import BaseLLM, LLMMessage
from .strategies import Summarization

logger = structlog.get_logger()

SUMMARY_SYSTEM_PROMPT = (
    "You are a conversation summarizer. Create concise, fact-preserving summaries."
)

SUMMARY_INSTRUCTION = """Summarize the following conversation excerpt into a concise context block.
Preserve:
- Any specific facts, names, dates, or numbers mentioned
- The user's requests and what was answered
- Any preferences or important information the user shared

Keep it under 200 words. Reply with the summary only.

Conversation:
{transcript}

Summary:"""


@dataclass
class CompressionResult:
    """Result of a compression pass over the history."""

    batches_consumed: int = 0
    messages_consumed: int = 0
    new_summaries: list[str] = field(default_factory=list)
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def overhead_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def compressed(self) -> bool:
        return self.batches_consumed > 0


def needs_compression(history_length: int, config: Summarization) -> bool:
    """Whether the history overflows the recent window by at least one batch."""
    if not config.enabled:
        return False
    return history_length - config.recent_window_size >= config.summary_batch_size


def render_batch(messages: list[LLMMessage]) -> str:
    """Render a batch as ``role: content`` blocks separated by blank lines."""
    return "\n\n".join(f"{m.role}: {m.content}" for m in messages)


async def summarize_batch(llm: BaseLLM, batch: list[LLMMessage]) -> tuple[str, int, int]:
    """Summarize one batch. Returns (summary, input_tokens, output_tokens)."""
    response = await llm.generate_once(
        SUMMARY_INSTRUCTION.format(transcript=render_batch(batch)),
        system_prompt=SUMMARY_SYSTEM_PROMPT,
    )
    return response.content.strip(), response.input_tokens, response.output_tokens


async def compress_history(
    llm: BaseLLM,
    history: list[LLMMessage],
    summaries: list[str],
    config: Summarization,
) -> CompressionResult:
    """Fold overflowing history batches into the summary log.

    Mutates ``history`` (removes consumed prefixes) and ``summaries``
    (appends one entry per batch). At most ``config.max_batches_per_turn``
    batches are consumed per call. A failed summarization call propagates
    and leaves both lists as they were before that batch.
    """
    result = CompressionResult()

    while (
        result.batches_consumed < config.max_batches_per_turn
        and needs_compression(len(history), config)
    ):
        batch = history[: config.summary_batch_size]

        logger.info(
            "Summarizing history batch",
            batch_size=len(batch),
            history_length=len(history),
            summaries=len(summaries),
        )

        summary, input_tokens, output_tokens = await summarize_batch(llm, batch)

        summaries.append(summary)
        del history[: config.summary_batch_size]

        result.batches_consumed += 1
        result.messages_consumed += len(batch)
        result.new_summaries.append(summary)
        result.input_tokens += input_tokens
        result.output_tokens += output_tokens

    if result.compressed:
        logger.info(
            "Compaction complete",
            batches=result.batches_consumed,
            remaining=len(history),
            summaries=len(summaries),
            overhead_tokens=result.overhead_tokens,
        )

    return result
