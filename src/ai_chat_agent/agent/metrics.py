"""
Token and cost accounting.
"""

from dataclasses import asdict, dataclass, replace
from typing import Any

from ..catalog import ModelConfig


def compute_cost(model: ModelConfig, input_tokens: int, output_tokens: int) -> float:
    """Price a call with the model's per-million-token rates."""
    return (
        (input_tokens / 1_000_000) * model.pricing.input
        + (output_tokens / 1_000_000) * model.pricing.output
    )


@dataclass(frozen=True)
class TurnMetrics:
    """Figures for a single completed turn."""

    response_time_ms: int
    input_tokens: int
    output_tokens: int
    overhead_tokens: int
    cost: float
    model: str
    tier: str

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def to_dict(self) -> dict[str, Any]:
        return {
            "responseTime": self.response_time_ms,
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "totalTokens": self.total_tokens,
            "overheadTokens": self.overhead_tokens,
            "cost": self.cost,
            "model": self.model,
            "tier": self.tier,
        }


@dataclass
class SessionMetrics:
    """Cumulative counters for one agent. Every field only grows."""

    input_tokens: int = 0
    output_tokens: int = 0
    overhead_tokens: int = 0
    exchanges: int = 0
    cost: float = 0.0

    def record_turn(
        self,
        input_tokens: int,
        output_tokens: int,
        overhead_tokens: int = 0,
        cost: float = 0.0,
    ) -> "SessionMetrics":
        """Add one turn and return a snapshot of the updated totals."""
        if min(input_tokens, output_tokens, overhead_tokens) < 0 or cost < 0:
            raise ValueError("Metrics can only grow")

        self.input_tokens += input_tokens
        self.output_tokens += output_tokens
        self.overhead_tokens += overhead_tokens
        self.exchanges += 1
        self.cost += cost
        return self.snapshot()

    def snapshot(self) -> "SessionMetrics":
        return replace(self)

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens + self.overhead_tokens

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        return {
            "inputTokens": data["input_tokens"],
            "outputTokens": data["output_tokens"],
            "overheadTokens": data["overhead_tokens"],
            "totalTokens": self.total_tokens,
            "exchanges": data["exchanges"],
            "cost": data["cost"],
        }
