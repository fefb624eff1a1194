"""
Trace groups: bracket unrelated calls under one synthetic root run.

.. code-block:: python

    async with TraceGroup("nightly-eval") as manager:
        await llm.generate(prompts, callbacks=manager)
        await chain.call(inputs, callbacks=manager)
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional, TypeVar

from ..config import TracingConfig
from ..core.tracer import BaseTracer
from ..utils.exceptions import TraceGroupError
from .manager import CallbackManager, CallbackManagerForChainRun

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TraceGroup:
    """
    A named group whose root run is the parent of every call made through
    the manager returned by ``start()``.

    Args:
        group_name: Name of the synthetic root chain run
        session_name: Tracing project/session the group is recorded in
        example_id: Reference example the group's root run is tied to
        config: Tracing configuration (defaults to the environment)
        tracer: Tracer recording the group; an ``HttpTracer`` by default
    """

    def __init__(
        self,
        group_name: str,
        session_name: Optional[str] = None,
        example_id: Optional[str] = None,
        config: Optional[TracingConfig] = None,
        tracer: Optional[BaseTracer] = None,
    ):
        self.group_name = group_name
        self.session_name = session_name
        self.example_id = example_id
        self.config = config
        self.tracer = tracer
        self._run_manager: Optional[CallbackManagerForChainRun] = None

    @property
    def is_open(self) -> bool:
        return self._run_manager is not None

    def _get_tracer(self, config: TracingConfig) -> BaseTracer:
        if self.tracer is not None:
            return self.tracer
        from ..tracers.http import HttpTracer

        return HttpTracer(
            config=config, project_name=self.session_name, example_id=self.example_id
        )

    async def _get_trace_group_callback_manager(self) -> CallbackManagerForChainRun:
        config = self.config or TracingConfig.from_env()
        manager = CallbackManager.configure([self._get_tracer(config)], config=config)
        run_manager = None
        if manager is not None:
            run_manager = await manager.handle_chain_start({"name": self.group_name}, {})
        if run_manager is None:
            raise TraceGroupError(
                "Failed to create run group callback manager.",
                {"group_name": self.group_name},
            )
        logger.debug(f"Opened trace group {self.group_name} ({run_manager.run_id})")
        return run_manager

    async def start(self) -> CallbackManager:
        """Open the group's root run if needed and return a child manager."""
        if self._run_manager is None:
            self._run_manager = await self._get_trace_group_callback_manager()
        return self._run_manager.get_child()

    async def end(self) -> None:
        """Close the group's root run; the next ``start()`` opens a new one."""
        if self._run_manager is not None:
            run_manager = self._run_manager
            self._run_manager = None
            await run_manager.handle_chain_end({})
            logger.debug(f"Closed trace group {self.group_name} ({run_manager.run_id})")

    async def __aenter__(self) -> CallbackManager:
        return await self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.end()


async def trace_as_group(
    group_name: str,
    enclosed_code: Callable[..., Awaitable[T]],
    *args: Any,
    session_name: Optional[str] = None,
    example_id: Optional[str] = None,
    config: Optional[TracingConfig] = None,
    tracer: Optional[BaseTracer] = None,
) -> T:
    """
    Await ``enclosed_code(manager, *args)`` inside a trace group.

    The group's root run is closed whether the code returns or raises.
    """
    trace_group = TraceGroup(
        group_name,
        session_name=session_name,
        example_id=example_id,
        config=config,
        tracer=tracer,
    )
    callback_manager = await trace_group.start()
    try:
        return await enclosed_code(callback_manager, *args)
    finally:
        await trace_group.end()


__all__ = ["TraceGroup", "trace_as_group"]
