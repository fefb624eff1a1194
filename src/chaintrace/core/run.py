"""
Run records produced by tracers.

A run is one observed operation: an LLM call, a chain step or a tool
invocation. Runs form a tree. A parent owns its children through
``child_runs``; a child only remembers its parent's id.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, cast

from ..types import AgentAction
from ..utils.messages import to_jsonable


class RunType(str, Enum):
    """Kind of operation a run records."""

    LLM = "llm"
    CHAIN = "chain"
    TOOL = "tool"


@dataclass
class Run:
    """
    One node of a trace tree.

    ``execution_order`` is assigned once when the run starts.
    ``child_execution_order`` starts at the same value and only grows, as
    descendants finish, so the next sibling can be numbered after the whole
    subtree.
    """

    id: str
    name: str
    run_type: RunType
    start_time: datetime
    serialized: dict[str, Any]
    inputs: dict[str, Any]
    execution_order: int
    child_execution_order: int
    end_time: Optional[datetime] = None
    error: Optional[str] = None
    outputs: Optional[dict[str, Any]] = None
    extra: Optional[dict[str, Any]] = None
    reference_example_id: Optional[str] = None
    parent_run_id: Optional[str] = None
    child_runs: list["Run"] = field(default_factory=list)
    events: list[dict[str, Any]] = field(default_factory=list)

    @property
    def is_ended(self) -> bool:
        return self.end_time is not None

    @property
    def duration_ms(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds() * 1000

    def iter_runs(self):
        """Yield this run and every descendant, depth first in child order."""
        yield self
        for child in self.child_runs:
            yield from child.iter_runs()

    def to_dict(self) -> dict[str, Any]:
        """Serialize the run and its subtree into JSON-ready data."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "run_type": self.run_type.value,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "error": self.error,
            "serialized": to_jsonable(self.serialized),
            "inputs": to_jsonable(self.inputs),
            "outputs": to_jsonable(self.outputs),
            "extra": to_jsonable(self.extra),
            "reference_example_id": self.reference_example_id,
            "parent_run_id": self.parent_run_id,
            "execution_order": self.execution_order,
            "child_execution_order": self.child_execution_order,
            "child_runs": [child.to_dict() for child in self.child_runs],
        }
        if self.events:
            data["events"] = to_jsonable(self.events)
        return data


@dataclass
class AgentRun(Run):
    """A chain run that also records the actions its agent took."""

    actions: list[AgentAction] = field(default_factory=list)

    @classmethod
    def promote(cls, run: Run) -> "AgentRun":
        """
        Turn ``run`` into an agent run in place.

        The object keeps its identity, so the registry, the parent's
        ``child_runs`` and any reference taken earlier all see the same run.
        """
        if isinstance(run, cls):
            return run
        agent_run = cast("AgentRun", run)
        agent_run.__class__ = cls
        agent_run.actions = []
        return agent_run

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["actions"] = to_jsonable(self.actions)
        return data


__all__ = ["RunType", "Run", "AgentRun"]
