"""
Tests for context strategies.
"""

import pytest

from ai_chat_agent.agent.strategies import (
    FACTS_ACK,
    SUMMARY_ACK,
    Branching,
    SlidingWindow,
    StickyFacts,
    Summarization,
    build_outbound_messages,
    parse_strategy,
    sliding_window,
    strategy_to_dict,
)
from ai_chat_agent.errors import InvalidStrategyError

from conftest import msgs


@pytest.mark.parametrize("window", [1, 2, 3, 5])
def test_sliding_window_returns_last_messages_in_order(window):
    """The window is the tail of the history, oldest first."""
    history = msgs("U1", "A1", "U2", "A2", "U3")
    result = sliding_window(history, window)

    assert result == history[-window:]
    assert len(result) == window


@pytest.mark.parametrize("window", [6, 10, 100])
def test_sliding_window_larger_than_history(window):
    """A window larger than the history returns all of it."""
    history = msgs("U1", "A1", "U2", "A2", "U3")
    assert sliding_window(history, window) == history


def test_sliding_window_scenario():
    """windowSize=2 over [U1,A1,U2,A2,U3] sends [A2,U3]."""
    history = msgs("U1", "A1", "U2", "A2", "U3")
    outbound = build_outbound_messages(history, SlidingWindow(window_size=2))

    assert [m.content for m in outbound] == ["A2", "U3"]
    assert [m.role for m in outbound] == ["assistant", "user"]


def test_outbound_does_not_alias_history():
    """Mutating the outbound list leaves the history alone."""
    history = msgs("U1", "A1")
    outbound = build_outbound_messages(history, Branching())
    outbound.append(msgs("extra")[0])

    assert len(history) == 2


def test_sticky_facts_prepends_fact_block():
    """Facts come first, then the fixed acknowledgement, then the window."""
    history = msgs("U1", "A1", "U2", "A2", "U3")
    facts = {"name": "Alex", "city": "Berlin"}

    outbound = build_outbound_messages(history, StickyFacts(window_size=2), facts=facts)

    assert len(outbound) == 4
    assert outbound[0].role == "user"
    assert "name: Alex" in outbound[0].content
    assert "city: Berlin" in outbound[0].content
    assert outbound[1].role == "assistant"
    assert outbound[1].content == FACTS_ACK
    assert [m.content for m in outbound[2:]] == ["A2", "U3"]


def test_sticky_facts_without_facts():
    """An empty table still produces the fact block."""
    outbound = build_outbound_messages(msgs("U1"), StickyFacts(window_size=4))

    assert len(outbound) == 3
    assert "No facts recorded yet" in outbound[0].content


def test_branching_sends_full_history():
    """Branching never truncates."""
    history = msgs(*[f"M{i}" for i in range(40)])
    assert build_outbound_messages(history, Branching()) == history


def test_summarization_without_summaries_is_raw_history():
    history = msgs("U1", "A1", "U2")
    assert build_outbound_messages(history, Summarization(), summaries=[]) == history


def test_summarization_with_summaries():
    """All summaries are concatenated in order ahead of the remaining history."""
    history = msgs("U3", "A3")
    outbound = build_outbound_messages(
        history, Summarization(), summaries=["first part", "second part"]
    )

    assert len(outbound) == 4
    block = outbound[0].content
    assert block.index("Summary 1:") < block.index("first part") < block.index("Summary 2:")
    assert "second part" in block
    assert outbound[1].content == SUMMARY_ACK
    assert outbound[2:] == history


def test_parse_strategy_camel_and_snake_case():
    assert parse_strategy({"type": "sliding-window", "windowSize": 4}) == SlidingWindow(window_size=4)
    assert parse_strategy({"type": "sticky-facts", "window_size": 6}) == StickyFacts(window_size=6)
    assert parse_strategy({"type": "branching"}) == Branching()

    config = parse_strategy(
        {"type": "summarization", "recentWindowSize": 2, "summaryBatchSize": 2, "enabled": False}
    )
    assert config == Summarization(recent_window_size=2, summary_batch_size=2, enabled=False)


def test_parse_strategy_clamps_window():
    """Client windows below the minimum are raised to it."""
    assert parse_strategy({"type": "sliding-window", "windowSize": 0}).window_size == 2
    assert parse_strategy({"type": "sticky-facts", "windowSize": 1}, min_window=3).window_size == 3


def test_parse_strategy_rejects_unknown_type():
    with pytest.raises(InvalidStrategyError):
        parse_strategy({"type": "everything"})


def test_parse_strategy_rejects_bad_numbers():
    with pytest.raises(InvalidStrategyError):
        parse_strategy({"type": "sliding-window", "windowSize": "many"})
    with pytest.raises(InvalidStrategyError):
        parse_strategy({"type": "summarization", "summaryBatchSize": 0})


@pytest.mark.parametrize("value", ["false", "true", 0, 1])
def test_parse_strategy_requires_real_bool_for_enabled(value):
    with pytest.raises(InvalidStrategyError):
        parse_strategy({"type": "summarization", "enabled": value})


def test_strategy_to_dict_round_trips_through_parser():
    config = Summarization(recent_window_size=4, summary_batch_size=3, max_batches_per_turn=2)
    assert parse_strategy(strategy_to_dict(config)) == config
