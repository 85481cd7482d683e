"""
Checkpoints and branches.

A checkpoint copies the active history into two independent branches.
Turns are appended to the active branch only.
"""

import copy
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

import structlog

from ..llm.base import LLMMessage

logger = structlog.get_logger()

BRANCH_LABELS = ("Branch A", "Branch B")


@dataclass
class Branch:
    """An independently mutable copy of the history."""

    id: str
    label: str
    messages: list[LLMMessage] = field(default_factory=list)
    summaries: list[str] = field(default_factory=list)
    summarized_count: int = 0

    def to_dict(self, include_messages: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "messageCount": len(self.messages),
        }
        if include_messages:
            data["messages"] = [{"role": m.role, "content": m.content} for m in self.messages]
        return data


@dataclass
class BranchSwitch:
    """Result of switching to a branch."""

    messages: list[LLMMessage]
    active_branch_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "messages": [{"role": m.role, "content": m.content} for m in self.messages],
            "activeBranchId": self.active_branch_id,
        }


class BranchSet:
    """All branches of a session plus the active pointer."""

    def __init__(self):
        self.branches: list[Branch] = []
        self.active_branch_id: str | None = None

    def __bool__(self) -> bool:
        return bool(self.branches)

    def __len__(self) -> int:
        return len(self.branches)

    @property
    def active(self) -> Branch | None:
        return self.get(self.active_branch_id) if self.active_branch_id else None

    def get(self, branch_id: str) -> Branch | None:
        return next((b for b in self.branches if b.id == branch_id), None)

    def create_checkpoint(
        self,
        history: list[LLMMessage],
        summaries: list[str] | None = None,
        summarized_count: int = 0,
    ) -> list[Branch]:
        """Snapshot ``history`` into two new branches and activate the first.

        Each branch gets its own copy of the summary log, so compression on
        one branch never shows up in a sibling.

        Existing branches are kept, so a second checkpoint leaves four
        branches; the new pair is seeded from whatever history is passed in
        (the active branch when one exists).
        """
        new_branches = [
            Branch(
                id=str(uuid4()),
                label=label,
                messages=copy.deepcopy(history),
                summaries=list(summaries or []),
                summarized_count=summarized_count,
            )
            for label in BRANCH_LABELS
        ]
        self.branches.extend(new_branches)
        self.active_branch_id = new_branches[0].id

        logger.info(
            "Checkpoint created",
            seeded_messages=len(history),
            branch_ids=[b.id for b in new_branches],
            total_branches=len(self.branches),
        )
        return list(self.branches)

    def switch(self, branch_id: str) -> BranchSwitch | None:
        """Activate a branch; None when the id is not in this set."""
        branch = self.get(branch_id)
        if branch is None:
            logger.warning("Branch not found", branch_id=branch_id)
            return None

        self.active_branch_id = branch.id
        logger.info("Switched branch", branch_id=branch.id, label=branch.label)
        return BranchSwitch(messages=list(branch.messages), active_branch_id=branch.id)
