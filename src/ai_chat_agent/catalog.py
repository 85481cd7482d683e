"""
Static registry of the models a chat session can use.
"""

from dataclasses import asdict, dataclass
from typing import Any, Literal

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class Pricing:
    """Price in USD per million tokens."""

    input: float
    output: float


@dataclass(frozen=True)
class ModelConfig:
    """A model entry in the registry."""

    id: str
    label: str
    tier: Literal["weak", "medium", "strong"]
    provider: Literal["deepseek", "openrouter", "anthropic"]
    pricing: Pricing
    context_window: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


MODELS: list[ModelConfig] = [
    ModelConfig(
        id="google/gemma-3n-e2b-it:free",
        label="Gemma 3n 2B (Overflow Demo)",
        tier="weak",
        provider="openrouter",
        pricing=Pricing(input=0, output=0),
        context_window=8_192,
    ),
    ModelConfig(
        id="arcee-ai/trinity-mini:free",
        label="Arcee Trinity Mini 3B (Weak)",
        tier="weak",
        provider="openrouter",
        pricing=Pricing(input=0, output=0),
        context_window=131_072,
    ),
    ModelConfig(
        id="nvidia/nemotron-3-nano-30b-a3b:free",
        label="NVIDIA Nemotron Nano 3B (Medium)",
        tier="medium",
        provider="openrouter",
        pricing=Pricing(input=0, output=0),
        context_window=262_144,
    ),
    ModelConfig(
        id="stepfun/step-3.5-flash:free",
        label="StepFun Step 3.5 Flash (Strong)",
        tier="strong",
        provider="openrouter",
        pricing=Pricing(input=0, output=0),
        context_window=262_144,
    ),
    ModelConfig(
        id="deepseek-chat",
        label="DeepSeek Chat (Paid)",
        tier="strong",
        provider="deepseek",
        pricing=Pricing(input=0.28, output=0.42),
        context_window=128_000,
    ),
    ModelConfig(
        id="claude-sonnet-4-20250514",
        label="Claude Sonnet 4 (Paid)",
        tier="strong",
        provider="anthropic",
        pricing=Pricing(input=3.0, output=15.0),
        context_window=200_000,
    ),
]

# NVIDIA Nemotron Nano
DEFAULT_MODEL = MODELS[2]


def find_model(model_id: str | None) -> ModelConfig | None:
    """Look up a model by id, returning None when it is not registered."""
    if not model_id:
        return None
    return next((m for m in MODELS if m.id == model_id), None)


def get_model(model_id: str | None, default: ModelConfig | None = None) -> ModelConfig:
    """Look up a model by id, falling back to the default entry."""
    fallback = default or DEFAULT_MODEL
    model = find_model(model_id)
    if model is None:
        if model_id:
            logger.warning("Unknown model, using default", requested=model_id, fallback=fallback.id)
        return fallback
    return model
