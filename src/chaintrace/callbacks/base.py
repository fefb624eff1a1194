"""
Callback handler contract.

A handler observes the lifecycle of LLM, chain and tool runs. Every event
method defaults to a no-op, so a concrete handler only overrides the events
it cares about. Methods may be plain functions or coroutines.
"""

import uuid
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any, Optional

from ..types import AgentAction, AgentFinish, BaseChatMessage, ChainValues, LLMResult
from ..utils.exceptions import ConfigurationError


class ExecutionMode(str, Enum):
    """How the dispatcher runs a handler's event methods."""

    AWAIT = "await"
    BACKGROUND = "background"


class CallbackEvent(Enum):
    """
    Lifecycle events a handler can observe.

    Each member maps to the handler method that receives it and to the
    category flag (``ignore_llm``, ``ignore_chain``, ``ignore_agent``) a
    handler sets to opt out of the whole category.
    """

    LLM_START = ("llm_start", "handle_llm_start", "ignore_llm")
    CHAT_MODEL_START = ("chat_model_start", "handle_chat_model_start", "ignore_llm")
    LLM_NEW_TOKEN = ("llm_new_token", "handle_llm_new_token", "ignore_llm")
    LLM_END = ("llm_end", "handle_llm_end", "ignore_llm")
    LLM_ERROR = ("llm_error", "handle_llm_error", "ignore_llm")
    CHAIN_START = ("chain_start", "handle_chain_start", "ignore_chain")
    CHAIN_END = ("chain_end", "handle_chain_end", "ignore_chain")
    CHAIN_ERROR = ("chain_error", "handle_chain_error", "ignore_chain")
    TOOL_START = ("tool_start", "handle_tool_start", "ignore_agent")
    TOOL_END = ("tool_end", "handle_tool_end", "ignore_agent")
    TOOL_ERROR = ("tool_error", "handle_tool_error", "ignore_agent")
    AGENT_ACTION = ("agent_action", "handle_agent_action", "ignore_agent")
    AGENT_END = ("agent_end", "handle_agent_end", "ignore_agent")
    TEXT = ("text", "handle_text", None)

    def __init__(self, event_name: str, method: str, ignore_flag: Optional[str]):
        self.event_name = event_name
        self.method = method
        self.ignore_flag = ignore_flag

    def is_ignored_by(self, handler: "BaseCallbackHandler") -> bool:
        if self.ignore_flag is None:
            return False
        return bool(getattr(handler, self.ignore_flag, False))

    @classmethod
    def lookup(cls, key: str) -> "CallbackEvent":
        """Find an event by its event name or its handler method name."""
        for event in cls:
            if key in (event.event_name, event.method):
                return event
        raise ConfigurationError(f"Unknown callback event: {key}")


class BaseCallbackHandler:
    """Base class for callback handlers."""

    name: str = "base_callback_handler"

    ignore_llm: bool = False
    ignore_chain: bool = False
    ignore_agent: bool = False

    execution_mode: ExecutionMode = ExecutionMode.AWAIT

    @property
    def await_handlers(self) -> bool:
        return self.execution_mode is ExecutionMode.AWAIT

    def copy(self) -> "BaseCallbackHandler":
        """Return the handler to install on derived managers."""
        return self

    async def handle_llm_start(
        self,
        llm: dict[str, Any],
        prompts: list[str],
        run_id: str,
        parent_run_id: Optional[str] = None,
        extra_params: Optional[dict[str, Any]] = None,
    ) -> None:
        """Called when an LLM starts running."""

    async def handle_chat_model_start(
        self,
        llm: dict[str, Any],
        messages: list[list[BaseChatMessage]],
        run_id: str,
        parent_run_id: Optional[str] = None,
        extra_params: Optional[dict[str, Any]] = None,
    ) -> None:
        """Called when a chat model starts running.

        Handlers without a dedicated implementation receive the event through
        ``handle_llm_start`` with each conversation rendered as text.
        """
        raise NotImplementedError(
            f"{type(self).__name__} does not implement handle_chat_model_start"
        )

    async def handle_llm_new_token(
        self, token: str, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        """Called for each streamed token."""

    async def handle_llm_end(
        self, output: LLMResult, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        """Called when an LLM finishes running."""

    async def handle_llm_error(
        self, error: BaseException, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        """Called when an LLM errors."""

    async def handle_chain_start(
        self,
        chain: dict[str, Any],
        inputs: ChainValues,
        run_id: str,
        parent_run_id: Optional[str] = None,
    ) -> None:
        """Called when a chain starts running."""

    async def handle_chain_end(
        self, outputs: ChainValues, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        """Called when a chain finishes running."""

    async def handle_chain_error(
        self, error: BaseException, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        """Called when a chain errors."""

    async def handle_tool_start(
        self,
        tool: dict[str, Any],
        input: str,
        run_id: str,
        parent_run_id: Optional[str] = None,
    ) -> None:
        """Called when a tool starts running."""

    async def handle_tool_end(
        self, output: str, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        """Called when a tool finishes running."""

    async def handle_tool_error(
        self, error: BaseException, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        """Called when a tool errors."""

    async def handle_text(
        self, text: str, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        """Called with free-form text emitted during a run."""

    async def handle_agent_action(
        self, action: AgentAction, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        """Called when an agent decides on an action."""

    async def handle_agent_end(
        self, finish: AgentFinish, run_id: str, parent_run_id: Optional[str] = None
    ) -> None:
        """Called when an agent produces its final answer."""

    @classmethod
    def from_methods(
        cls, methods: Mapping[str, Callable[..., Any]]
    ) -> "FunctionCallbackHandler":
        """Wrap a mapping of event name to callable into a handler."""
        return FunctionCallbackHandler(methods)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class FunctionCallbackHandler(BaseCallbackHandler):
    """Handler assembled from plain callables, one per event."""

    def __init__(self, methods: Mapping[str, Callable[..., Any]]):
        self.name = str(uuid.uuid4())
        for key, fn in methods.items():
            if key in {"ignore_llm", "ignore_chain", "ignore_agent"}:
                setattr(self, key, bool(fn))
                continue
            if key == "execution_mode":
                self.execution_mode = ExecutionMode(fn)
                continue
            if not callable(fn):
                raise ConfigurationError(f"Callback for '{key}' is not callable")
            event = CallbackEvent.lookup(key)
            setattr(self, event.method, fn)


def ensure_handler(
    handler: "BaseCallbackHandler | Mapping[str, Callable[..., Any]]",
) -> BaseCallbackHandler:
    """Accept either a handler object or a mapping of callbacks."""
    if isinstance(handler, BaseCallbackHandler):
        return handler
    if isinstance(handler, Mapping):
        return BaseCallbackHandler.from_methods(handler)
    raise ConfigurationError(
        f"Expected a callback handler or a mapping of callbacks, got {type(handler).__name__}"
    )


__all__ = [
    "ExecutionMode",
    "CallbackEvent",
    "BaseCallbackHandler",
    "FunctionCallbackHandler",
    "ensure_handler",
]
