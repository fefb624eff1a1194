"""
Run registry for the chaintrace SDK.

``BaseTracer`` is a callback handler that turns lifecycle events into a tree
of ``Run`` records. It keeps every in-flight run in ``run_map``, links each
new run to its live parent, numbers runs in execution order and hands each
finished root run, with its whole subtree, to ``persist_run``.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, Optional

from ..callbacks.base import BaseCallbackHandler
from ..types import AgentAction, BaseChatMessage, ChainValues, LLMResult
from ..utils.exceptions import TracerError
from ..utils.logging import log_debug_enabled
from .run import AgentRun, Run, RunType

logger = logging.getLogger(__name__)

_NO_RUN_MESSAGES = {
    RunType.LLM: "No LLM run to end.",
    RunType.CHAIN: "No chain run to end.",
    RunType.TOOL: "No tool run to end.",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _llm_outputs(output: Any) -> dict[str, Any]:
    if isinstance(output, LLMResult):
        return output.to_dict()
    return dict(output)


class BaseTracer(BaseCallbackHandler, ABC):
    """
    Base class for tracers.

    Subclasses supply ``persist_run`` and may override the ``on_*`` hooks to
    react to individual events without touching the bookkeeping.
    """

    name = "base_tracer"

    def __init__(self) -> None:
        self.run_map: dict[str, Run] = {}

    def copy(self) -> "BaseTracer":
        return self

    @abstractmethod
    async def persist_run(self, run: Run) -> None:
        """Store a finished root run together with its subtree."""

    def _add_child_run(self, parent_run: Run, child_run: Run) -> None:
        parent_run.child_runs.append(child_run)

    def _get_execution_order(self, parent_run_id: Optional[str] = None) -> int:
        """Order number for a run started under ``parent_run_id``.

        A parent that is unknown or already finished counts as no parent.
        """
        parent_run = self.run_map.get(parent_run_id) if parent_run_id is not None else None
        if parent_run is None:
            return 1
        return parent_run.child_execution_order + 1

    def _start_trace(self, run: Run) -> None:
        if run.id in self.run_map:
            raise TracerError(f"Run {run.id} has already been started.", run.id)

        if run.parent_run_id is not None:
            parent_run = self.run_map.get(run.parent_run_id)
            if parent_run is not None:
                self._add_child_run(parent_run, run)
            else:
                logger.debug(
                    f"Parent run {run.parent_run_id} of {run.id} is not live, "
                    "tracing it as a root"
                )
        self.run_map[run.id] = run
        # Reserve the number now so a sibling started before this run ends
        # is numbered after it.
        self._propagate_execution_order(run)

    async def _end_trace(self, run: Run) -> None:
        try:
            if self._live_parent(run) is None:
                await self.persist_run(run)
            else:
                self._propagate_execution_order(run)
        finally:
            self.run_map.pop(run.id, None)

    async def _complete(
        self, run: Run, hook: Callable[[Run], Awaitable[None]]
    ) -> None:
        """Run the end/error hook, then retire the run even if the hook fails."""
        try:
            await hook(run)
        finally:
            await self._end_trace(run)

    def _propagate_execution_order(self, run: Run) -> None:
        ancestor = self._live_parent(run)
        while ancestor is not None:
            ancestor.child_execution_order = max(
                ancestor.child_execution_order, run.child_execution_order
            )
            ancestor = self._live_parent(ancestor)

    def _live_parent(self, run: Run) -> Optional[Run]:
        if run.parent_run_id is None:
            return None
        return self.run_map.get(run.parent_run_id)

    def _get_run(self, run_id: str, run_type: RunType) -> Run:
        run = self.run_map.get(run_id)
        if run is None or run.run_type is not run_type:
            raise TracerError(_NO_RUN_MESSAGES[run_type], run_id)
        return run

    def _create_run(
        self,
        serialized: dict[str, Any],
        inputs: dict[str, Any],
        run_type: RunType,
        run_id: str,
        parent_run_id: Optional[str],
        extra: Optional[dict[str, Any]] = None,
    ) -> Run:
        execution_order = self._get_execution_order(parent_run_id)
        reference_example_id = (extra or {}).get("reference_example_id")
        return Run(
            id=run_id,
            name=serialized.get("name", "unknown"),
            run_type=run_type,
            start_time=_now(),
            serialized=serialized,
            inputs=inputs,
            execution_order=execution_order,
            child_execution_order=execution_order,
            extra=extra,
            reference_example_id=reference_example_id,
            parent_run_id=parent_run_id,
        )

    def _finish(
        self,
        run: Run,
        outputs: Optional[dict[str, Any]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        run.end_time = _now()
        if error is not None:
            run.error = str(error) or type(error).__name__
        else:
            run.outputs = outputs
        if log_debug_enabled():
            logger.debug(
                f"Finished {run.run_type.value} run {run.name} ({run.id}) "
                f"order={run.execution_order}/{run.child_execution_order}"
            )

    async def handle_llm_start(
        self,
        llm: dict[str, Any],
        prompts: list[str],
        run_id: str,
        parent_run_id: Optional[str] = None,
        extra_params: Optional[dict[str, Any]] = None,
    ) -> None:
        run = self._create_run(
            llm, {"prompts": prompts}, RunType.LLM, run_id, parent_run_id, extra_params
        )
        self._start_trace(run)
        await self.on_llm_start(run)

    async def handle_chat_model_start(
        self,
        llm: dict[str, Any],
        messages: list[list[BaseChatMessage]],
        run_id: str,
        parent_run_id: Optional[str] = None,
        extra_params: Optional[dict[str, Any]] = None,
    ) -> None:
        run = self._create_run(
            llm, {"messages": messages}, RunType.LLM, run_id, parent_run_id, extra_params
        )
        self._start_trace(run)
        await self.on_llm_start(run)

    async def handle_llm_new_token(
        self, token: str, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        run = self.run_map.get(run_id)
        if run is None or run.run_type is not RunType.LLM:
            return
        run.events.append({"name": "new_token", "time": _now(), "kwargs": {"token": token}})
        await self.on_llm_new_token(run)

    async def handle_llm_end(
        self, output: LLMResult, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        run = self._get_run(run_id, RunType.LLM)
        self._finish(run, outputs=_llm_outputs(output))
        await self._complete(run, self.on_llm_end)

    async def handle_llm_error(
        self, error: BaseException, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        run = self._get_run(run_id, RunType.LLM)
        self._finish(run, error=error)
        await self._complete(run, self.on_llm_error)

    async def handle_chain_start(
        self,
        chain: dict[str, Any],
        inputs: ChainValues,
        run_id: str,
        parent_run_id: Optional[str] = None,
    ) -> None:
        run = self._create_run(chain, dict(inputs), RunType.CHAIN, run_id, parent_run_id)
        self._start_trace(run)
        await self.on_chain_start(run)

    async def handle_chain_end(
        self, outputs: ChainValues, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        run = self._get_run(run_id, RunType.CHAIN)
        self._finish(run, outputs=dict(outputs))
        await self._complete(run, self.on_chain_end)

    async def handle_chain_error(
        self, error: BaseException, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        run = self._get_run(run_id, RunType.CHAIN)
        self._finish(run, error=error)
        await self._complete(run, self.on_chain_error)

    async def handle_tool_start(
        self,
        tool: dict[str, Any],
        input: str,
        run_id: str,
        parent_run_id: Optional[str] = None,
    ) -> None:
        run = self._create_run(tool, {"input": input}, RunType.TOOL, run_id, parent_run_id)
        self._start_trace(run)
        await self.on_tool_start(run)

    async def handle_tool_end(
        self, output: str, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        run = self._get_run(run_id, RunType.TOOL)
        self._finish(run, outputs={"output": output})
        await self._complete(run, self.on_tool_end)

    async def handle_tool_error(
        self, error: BaseException, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        run = self._get_run(run_id, RunType.TOOL)
        self._finish(run, error=error)
        await self._complete(run, self.on_tool_error)

    async def handle_agent_action(
        self, action: AgentAction, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        run = self.run_map.get(run_id)
        if run is None or run.run_type is not RunType.CHAIN:
            return
        agent_run = AgentRun.promote(run)
        agent_run.actions.append(action)
        await self.on_agent_action(agent_run)

    # Hooks for subclasses

    async def on_llm_start(self, run: Run) -> None:
        pass

    async def on_llm_new_token(self, run: Run) -> None:
        pass

    async def on_llm_end(self, run: Run) -> None:
        pass

    async def on_llm_error(self, run: Run) -> None:
        pass

    async def on_chain_start(self, run: Run) -> None:
        pass

    async def on_chain_end(self, run: Run) -> None:
        pass

    async def on_chain_error(self, run: Run) -> None:
        pass

    async def on_tool_start(self, run: Run) -> None:
        pass

    async def on_tool_end(self, run: Run) -> None:
        pass

    async def on_tool_error(self, run: Run) -> None:
        pass

    async def on_agent_action(self, run: AgentRun) -> None:
        pass


__all__ = ["BaseTracer"]
