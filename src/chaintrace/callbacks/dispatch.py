"""
Event dispatch to callback handlers.

Every handler receives an event concurrently with the others. Each
invocation is isolated: an exception raised by one handler is logged and
never reaches the other handlers or the instrumented code. Handlers in
``ExecutionMode.BACKGROUND`` are scheduled as detached tasks; call
``await_all_callbacks`` to drain them, e.g. before process exit.
"""

import asyncio
import functools
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from ..utils.logging import log_debug_enabled, log_handler_error
from ..utils.messages import get_buffer_string
from .base import BaseCallbackHandler, CallbackEvent, ExecutionMode

logger = logging.getLogger(__name__)

_background_tasks: set["asyncio.Task[None]"] = set()


async def consume_callback(
    callback: Callable[[], Awaitable[None]], mode: ExecutionMode
) -> None:
    """Run ``callback`` now, or schedule it as a background task."""
    if mode is ExecutionMode.AWAIT:
        await callback()
        return

    task = asyncio.ensure_future(callback())
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


async def await_all_callbacks() -> None:
    """Wait for every background callback scheduled on the running loop."""
    loop = asyncio.get_running_loop()
    while True:
        pending = [t for t in _background_tasks if t.get_loop() is loop and not t.done()]
        if not pending:
            return
        await asyncio.gather(*pending, return_exceptions=True)


async def _invoke(method: Callable[..., Any], *args: Any) -> None:
    result = method(*args)
    if inspect.isawaitable(result):
        await result


async def handle_event_for_handler(
    handler: BaseCallbackHandler, event: CallbackEvent, *args: Any
) -> None:
    """Deliver one event to one handler, isolating any failure."""
    if event.is_ignored_by(handler):
        return

    try:
        await _invoke(getattr(handler, event.method), *args)
        return
    except NotImplementedError as e:
        if event is not CallbackEvent.CHAT_MODEL_START:
            log_handler_error(logger, handler, event.method, e)
            return
    except Exception as e:
        log_handler_error(logger, handler, event.method, e)
        return

    # No dedicated chat hook: deliver the conversations as rendered prompts.
    llm, messages, *rest = args
    try:
        prompts = [get_buffer_string(conversation) for conversation in messages]
    except Exception as e:
        log_handler_error(logger, handler, event.method, e)
        return
    await handle_event_for_handler(handler, CallbackEvent.LLM_START, llm, prompts, *rest)


async def handle_event(
    handlers: Iterable[BaseCallbackHandler], event: CallbackEvent, *args: Any
) -> None:
    """Fan ``event`` out to every handler."""
    handlers = list(handlers)
    if log_debug_enabled():
        logger.debug(f"Dispatching {event.event_name} to {len(handlers)} handler(s)")

    await asyncio.gather(
        *(
            consume_callback(
                functools.partial(handle_event_for_handler, handler, event, *args),
                handler.execution_mode,
            )
            for handler in handlers
        )
    )


__all__ = [
    "consume_callback",
    "await_all_callbacks",
    "handle_event",
    "handle_event_for_handler",
]
