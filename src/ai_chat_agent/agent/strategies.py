"""
Context strategies - decide which messages go into each provider call.

Each strategy is a frozen configuration type; ``build_outbound_messages`` is a
pure function of the history, the active configuration and the strategy's
side state (facts table or summary log).
"""

from dataclasses import dataclass, field
from typing import Any, Union

from ..errors import InvalidStrategyError
from ..llm.base import LLMMessage

FACTS_ACK = "Understood. I'll keep these facts in mind."
SUMMARY_ACK = "I've noted the conversation context. Let me continue helping you with that in mind."


@dataclass(frozen=True)
class SlidingWindow:
    """Send only the last ``window_size`` messages."""

    window_size: int = 10
    type: str = field(default="sliding-window", init=False)


@dataclass(frozen=True)
class StickyFacts:
    """Send the extracted facts table followed by the last ``window_size`` messages."""

    window_size: int = 10
    type: str = field(default="sticky-facts", init=False)


@dataclass(frozen=True)
class Branching:
    """Send the full history of the active branch."""

    type: str = field(default="branching", init=False)


@dataclass(frozen=True)
class Summarization:
    """Fold old messages into summaries once they overflow the recent window."""

    recent_window_size: int = 6
    summary_batch_size: int = 4
    enabled: bool = True
    max_batches_per_turn: int = 1
    type: str = field(default="summarization", init=False)


StrategyConfig = Union[SlidingWindow, StickyFacts, Branching, Summarization]

STRATEGY_TYPES = ("sliding-window", "sticky-facts", "branching", "summarization")


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise InvalidStrategyError(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InvalidStrategyError(f"{name} must be an integer") from e


def _as_bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidStrategyError(f"{name} must be true or false")
    return value


def parse_strategy(data: dict[str, Any], min_window: int = 2) -> StrategyConfig:
    """Build a strategy configuration from a request payload.

    Accepts camelCase (``windowSize``) or snake_case (``window_size``) keys.
    Window sizes below ``min_window`` are raised to it.
    """
    if not isinstance(data, dict):
        raise InvalidStrategyError("Strategy must be an object")

    strategy_type = data.get("type")

    if strategy_type == "sliding-window":
        size = _as_int(_pick(data, "windowSize", "window_size", default=10), "windowSize")
        return SlidingWindow(window_size=max(size, min_window))

    if strategy_type == "sticky-facts":
        size = _as_int(_pick(data, "windowSize", "window_size", default=10), "windowSize")
        return StickyFacts(window_size=max(size, min_window))

    if strategy_type == "branching":
        return Branching()

    if strategy_type == "summarization":
        recent = _as_int(
            _pick(data, "recentWindowSize", "recent_window_size", default=6), "recentWindowSize"
        )
        batch = _as_int(
            _pick(data, "summaryBatchSize", "summary_batch_size", default=4), "summaryBatchSize"
        )
        passes = _as_int(
            _pick(data, "maxBatchesPerTurn", "max_batches_per_turn", default=1), "maxBatchesPerTurn"
        )
        if batch < 1:
            raise InvalidStrategyError("summaryBatchSize must be at least 1")
        return Summarization(
            recent_window_size=max(recent, min_window),
            summary_batch_size=batch,
            enabled=_as_bool(_pick(data, "enabled", default=True), "enabled"),
            max_batches_per_turn=max(passes, 1),
        )

    raise InvalidStrategyError(f"Unknown strategy type: {strategy_type!r}")


def strategy_to_dict(config: StrategyConfig) -> dict[str, Any]:
    """Serialize a strategy configuration with camelCase keys."""
    if isinstance(config, (SlidingWindow, StickyFacts)):
        return {"type": config.type, "windowSize": config.window_size}
    if isinstance(config, Branching):
        return {"type": config.type}
    if isinstance(config, Summarization):
        return {
            "type": config.type,
            "recentWindowSize": config.recent_window_size,
            "summaryBatchSize": config.summary_batch_size,
            "enabled": config.enabled,
            "maxBatchesPerTurn": config.max_batches_per_turn,
        }
    raise TypeError(f"Unsupported strategy configuration: {config!r}")


def sliding_window(history: list[LLMMessage], window_size: int) -> list[LLMMessage]:
    """Return the last ``window_size`` messages, oldest first."""
    if window_size <= 0:
        return []
    return list(history[-window_size:])


def render_facts(facts: dict[str, str]) -> str:
    """Render the facts table as a labeled block."""
    if not facts:
        return "[Known facts]\nNo facts recorded yet."
    lines = [f"- {label}: {value}" for label, value in facts.items()]
    return "[Known facts]\n" + "\n".join(lines)


def render_summaries(summaries: list[str]) -> str:
    """Concatenate the summary log, labeled in order."""
    parts = [f"Summary {i}:\n{text}" for i, text in enumerate(summaries, start=1)]
    return "[Previous conversation summary]\n" + "\n\n".join(parts)


def build_outbound_messages(
    history: list[LLMMessage],
    config: StrategyConfig,
    facts: dict[str, str] | None = None,
    summaries: list[str] | None = None,
) -> list[LLMMessage]:
    """Compute the exact message list for the next provider call.

    ``history`` is the active history: the active branch when branches exist,
    otherwise the session history (after any compression).
    """
    if isinstance(config, SlidingWindow):
        return sliding_window(history, config.window_size)

    if isinstance(config, StickyFacts):
        return [
            LLMMessage(role="user", content=render_facts(facts or {})),
            LLMMessage(role="assistant", content=FACTS_ACK),
        ] + sliding_window(history, config.window_size)

    if isinstance(config, Branching):
        return list(history)

    if isinstance(config, Summarization):
        if not summaries:
            return list(history)
        return [
            LLMMessage(role="user", content=render_summaries(summaries)),
            LLMMessage(role="assistant", content=SUMMARY_ACK),
        ] + list(history)

    raise TypeError(f"Unsupported strategy configuration: {config!r}")
