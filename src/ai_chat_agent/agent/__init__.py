"""
Agent module - conversation context management.

Includes:
- ChatAgent: Per-session dialogue state and turn processing
- SessionManager: Registry of live agents with restore-from-store
- Strategies: Which messages go into each provider call
- Compaction: Batch summarization of old history
- Facts: Sticky facts extraction
- Branches: Checkpoints and alternate conversation lines
- Metrics: Token and cost accounting
"""

from .branches import Branch, BranchSet, BranchSwitch
from .compaction import CompressionResult, compress_history
from .core import ChatAgent, TurnResult
from .facts import FactExtraction, extract_facts, parse_facts
from .metrics import SessionMetrics, TurnMetrics, compute_cost
from .session import Attachment, ChatTurn, SessionManager
from .strategies import (
    Branching,
    SlidingWindow,
    StickyFacts,
    StrategyConfig,
    Summarization,
    build_outbound_messages,
    parse_strategy,
)

__all__ = [
    "Attachment",
    "Branch",
    "BranchSet",
    "BranchSwitch",
    "Branching",
    "ChatAgent",
    "ChatTurn",
    "CompressionResult",
    "FactExtraction",
    "SessionManager",
    "SessionMetrics",
    "SlidingWindow",
    "StickyFacts",
    "StrategyConfig",
    "Summarization",
    "TurnMetrics",
    "TurnResult",
    "build_outbound_messages",
    "compress_history",
    "compute_cost",
    "extract_facts",
    "parse_facts",
    "parse_strategy",
]
