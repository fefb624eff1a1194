"""
Callback managers.

A ``CallbackManager`` holds the handlers that observe a call. Starting a run
through it returns a run manager bound to the new run id; that run manager
dispatches the run's remaining events and, for chains and tools, derives the
child manager handed to nested operations.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Union

from ..types import AgentAction, AgentFinish, BaseChatMessage, ChainValues, LLMResult
from .base import BaseCallbackHandler, CallbackEvent, ensure_handler
from .dispatch import handle_event

if TYPE_CHECKING:
    from ..config import TracingConfig

logger = logging.getLogger(__name__)

HandlerLike = Union[BaseCallbackHandler, Mapping[str, Callable[..., Any]]]
Callbacks = Union["CallbackManager", Sequence[HandlerLike]]

CONSOLE_HANDLER_NAME = "console_callback_handler"
TRACER_HANDLER_NAME = "chaintrace_tracer"


@dataclass
class CallbackManagerOptions:
    """Per-call switches layered over the tracing configuration."""

    verbose: bool = False
    tracing: bool = False


class BaseRunManager:
    """Dispatches the events of one run to the handlers observing it."""

    def __init__(
        self,
        run_id: str,
        handlers: Sequence[BaseCallbackHandler],
        inheritable_handlers: Sequence[BaseCallbackHandler],
        parent_run_id: Optional[str] = None,
    ):
        self.run_id = run_id
        self.handlers = list(handlers)
        self.inheritable_handlers = list(inheritable_handlers)
        self.parent_run_id = parent_run_id

    async def _dispatch(self, event: CallbackEvent, payload: Any) -> None:
        await handle_event(self.handlers, event, payload, self.run_id, self.parent_run_id)

    async def handle_text(self, text: str) -> None:
        await self._dispatch(CallbackEvent.TEXT, text)


class ParentRunManager(BaseRunManager):
    """Run manager for runs that can have nested runs."""

    def get_child(self) -> "CallbackManager":
        """
        Build the manager for operations nested in this run.

        Only inheritable handlers carry over, and this run becomes the parent
        of everything started through the returned manager.
        """
        manager = CallbackManager(parent_run_id=self.run_id)
        manager.set_handlers(self.inheritable_handlers)
        return manager


class CallbackManagerForLLMRun(BaseRunManager):
    async def handle_llm_new_token(self, token: str) -> None:
        await self._dispatch(CallbackEvent.LLM_NEW_TOKEN, token)

    async def handle_llm_error(self, error: BaseException) -> None:
        await self._dispatch(CallbackEvent.LLM_ERROR, error)

    async def handle_llm_end(self, output: LLMResult) -> None:
        await self._dispatch(CallbackEvent.LLM_END, output)


class CallbackManagerForChainRun(ParentRunManager):
    async def handle_chain_error(self, error: BaseException) -> None:
        await self._dispatch(CallbackEvent.CHAIN_ERROR, error)

    async def handle_chain_end(self, outputs: ChainValues) -> None:
        await self._dispatch(CallbackEvent.CHAIN_END, outputs)

    async def handle_agent_action(self, action: AgentAction) -> None:
        await self._dispatch(CallbackEvent.AGENT_ACTION, action)

    async def handle_agent_end(self, finish: AgentFinish) -> None:
        await self._dispatch(CallbackEvent.AGENT_END, finish)


class CallbackManagerForToolRun(ParentRunManager):
    async def handle_tool_error(self, error: BaseException) -> None:
        await self._dispatch(CallbackEvent.TOOL_ERROR, error)

    async def handle_tool_end(self, output: str) -> None:
        await self._dispatch(CallbackEvent.TOOL_END, output)


class BaseCallbackManager(ABC):
    """Interface for objects that hold a mutable set of handlers."""

    @abstractmethod
    def add_handler(self, handler: BaseCallbackHandler, inherit: bool = True) -> None:
        ...

    @abstractmethod
    def remove_handler(self, handler: BaseCallbackHandler) -> None:
        ...

    @abstractmethod
    def set_handlers(
        self, handlers: Sequence[BaseCallbackHandler], inherit: bool = True
    ) -> None:
        ...

    def set_handler(self, handler: BaseCallbackHandler, inherit: bool = True) -> None:
        self.set_handlers([handler], inherit=inherit)


class CallbackManager(BaseCallbackManager):
    """Entry point for dispatching run start events."""

    name = "callback_manager"

    def __init__(self, parent_run_id: Optional[str] = None):
        self._handlers: list[BaseCallbackHandler] = []
        self._inheritable_handlers: list[BaseCallbackHandler] = []
        self._parent_run_id = parent_run_id

    @property
    def handlers(self) -> list[BaseCallbackHandler]:
        return list(self._handlers)

    @property
    def inheritable_handlers(self) -> list[BaseCallbackHandler]:
        return list(self._inheritable_handlers)

    @property
    def parent_run_id(self) -> Optional[str]:
        return self._parent_run_id

    async def _dispatch_start(self, event: CallbackEvent, *args: Any) -> None:
        await handle_event(self._handlers, event, *args)

    def _run_manager(self, cls: type, run_id: str) -> Any:
        return cls(run_id, self._handlers, self._inheritable_handlers, self._parent_run_id)

    async def handle_llm_start(
        self,
        llm: dict[str, Any],
        prompts: list[str],
        run_id: Optional[str] = None,
        extra_params: Optional[dict[str, Any]] = None,
    ) -> CallbackManagerForLLMRun:
        run_id = run_id or str(uuid.uuid4())
        await self._dispatch_start(
            CallbackEvent.LLM_START, llm, prompts, run_id, self._parent_run_id, extra_params
        )
        return self._run_manager(CallbackManagerForLLMRun, run_id)

    async def handle_chat_model_start(
        self,
        llm: dict[str, Any],
        messages: list[list[BaseChatMessage]],
        run_id: Optional[str] = None,
        extra_params: Optional[dict[str, Any]] = None,
    ) -> CallbackManagerForLLMRun:
        run_id = run_id or str(uuid.uuid4())
        await self._dispatch_start(
            CallbackEvent.CHAT_MODEL_START,
            llm,
            messages,
            run_id,
            self._parent_run_id,
            extra_params,
        )
        return self._run_manager(CallbackManagerForLLMRun, run_id)

    async def handle_chain_start(
        self,
        chain: dict[str, Any],
        inputs: ChainValues,
        run_id: Optional[str] = None,
    ) -> CallbackManagerForChainRun:
        run_id = run_id or str(uuid.uuid4())
        await self._dispatch_start(
            CallbackEvent.CHAIN_START, chain, inputs, run_id, self._parent_run_id
        )
        return self._run_manager(CallbackManagerForChainRun, run_id)

    async def handle_tool_start(
        self,
        tool: dict[str, Any],
        input: str,
        run_id: Optional[str] = None,
    ) -> CallbackManagerForToolRun:
        run_id = run_id or str(uuid.uuid4())
        await self._dispatch_start(
            CallbackEvent.TOOL_START, tool, input, run_id, self._parent_run_id
        )
        return self._run_manager(CallbackManagerForToolRun, run_id)

    def add_handler(self, handler: BaseCallbackHandler, inherit: bool = True) -> None:
        self._handlers.append(handler)
        if inherit:
            self._inheritable_handlers.append(handler)

    def remove_handler(self, handler: BaseCallbackHandler) -> None:
        self._handlers = [h for h in self._handlers if h is not handler]
        self._inheritable_handlers = [
            h for h in self._inheritable_handlers if h is not handler
        ]

    def set_handlers(
        self, handlers: Sequence[BaseCallbackHandler], inherit: bool = True
    ) -> None:
        self._handlers = []
        self._inheritable_handlers = []
        for handler in handlers:
            self.add_handler(handler, inherit=inherit)

    def copy(
        self,
        additional_handlers: Optional[Sequence[BaseCallbackHandler]] = None,
        inherit: bool = True,
    ) -> "CallbackManager":
        """
        Copy this manager, optionally appending more handlers.

        Existing handlers keep their inheritance. Additional handlers get
        ``inherit``; a second console handler is never added.
        """
        manager = CallbackManager(parent_run_id=self._parent_run_id)
        for handler in self._handlers:
            inheritable = any(h is handler for h in self._inheritable_handlers)
            manager.add_handler(handler, inherit=inheritable)

        for handler in additional_handlers or []:
            if any(
                h.name == CONSOLE_HANDLER_NAME and h.name == handler.name
                for h in manager._handlers
            ):
                continue
            manager.add_handler(handler, inherit=inherit)
        return manager

    @classmethod
    def from_handlers(cls, methods: Mapping[str, Callable[..., Any]]) -> "CallbackManager":
        """Build a manager holding a single handler made of plain callables."""
        manager = cls()
        manager.add_handler(BaseCallbackHandler.from_methods(methods))
        return manager

    @classmethod
    def configure(
        cls,
        inheritable_handlers: Optional[Callbacks] = None,
        local_handlers: Optional[Callbacks] = None,
        options: Optional[CallbackManagerOptions] = None,
        config: Optional["TracingConfig"] = None,
    ) -> Optional["CallbackManager"]:
        """
        Assemble the manager a chain or tool uses for one call.

        Args:
            inheritable_handlers: Handlers (or an existing manager) that also
                observe nested runs
            local_handlers: Handlers (or a manager) for this call only
            options: Per-call verbose/tracing switches
            config: Tracing configuration; read from the environment if omitted

        Returns:
            The configured manager, or None when no handler applies
        """
        from ..config import TracingConfig

        callback_manager: Optional[CallbackManager] = None
        if inheritable_handlers is not None or local_handlers is not None:
            if isinstance(inheritable_handlers, CallbackManager):
                callback_manager = inheritable_handlers
            else:
                callback_manager = cls()
                callback_manager.set_handlers(
                    [ensure_handler(h) for h in inheritable_handlers or []],
                    inherit=True,
                )

            if isinstance(local_handlers, CallbackManager):
                local = local_handlers.handlers
            else:
                local = [ensure_handler(h) for h in local_handlers or []]
            callback_manager = callback_manager.copy(local, inherit=False)

        if config is None:
            config = TracingConfig.from_env()
        options = options or CallbackManagerOptions()

        verbose_enabled = config.verbose or options.verbose
        tracing_v2_enabled = config.tracing_v2
        tracing_enabled = config.tracing_enabled or options.tracing

        if verbose_enabled or tracing_enabled:
            if callback_manager is None:
                callback_manager = cls()

            if verbose_enabled and not _has_handler(callback_manager, CONSOLE_HANDLER_NAME):
                from .console import ConsoleCallbackHandler

                callback_manager.add_handler(ConsoleCallbackHandler(), inherit=True)

            if tracing_enabled and not _has_handler(callback_manager, TRACER_HANDLER_NAME):
                from ..tracers.initialize import (
                    get_tracing_callback_handler,
                    get_tracing_v2_callback_handler,
                )

                if tracing_v2_enabled:
                    handler = get_tracing_v2_callback_handler(config=config)
                else:
                    handler = get_tracing_callback_handler(
                        session=config.session, config=config
                    )
                callback_manager.add_handler(handler, inherit=True)
                logger.debug(f"Attached tracing handler {handler!r}")

        return callback_manager


def _has_handler(manager: CallbackManager, name: str) -> bool:
    return any(handler.name == name for handler in manager.handlers)


__all__ = [
    "Callbacks",
    "CallbackManagerOptions",
    "BaseRunManager",
    "ParentRunManager",
    "CallbackManagerForLLMRun",
    "CallbackManagerForChainRun",
    "CallbackManagerForToolRun",
    "BaseCallbackManager",
    "CallbackManager",
]
