"""
Helpers for turning chat messages into plain structures.
"""

import logging
from collections.abc import Sequence
from typing import Any

from ..types import (
    AIChatMessage,
    BaseChatMessage,
    ChatMessage,
    HumanChatMessage,
    SystemChatMessage,
)

logger = logging.getLogger(__name__)


def get_buffer_string(
    messages: Sequence[BaseChatMessage],
    human_prefix: str = "Human",
    ai_prefix: str = "AI",
) -> str:
    """
    Render a conversation as a single prompt string.

    Each message becomes one ``"<Role>: <text>"`` line. Chat messages with a
    custom role use that role as the prefix.

    Args:
        messages: Messages to render
        human_prefix: Prefix for human messages
        ai_prefix: Prefix for AI messages

    Returns:
        Newline-joined transcript

    Raises:
        ValueError: If a message type is not recognised
    """
    lines = []
    for message in messages:
        if isinstance(message, HumanChatMessage):
            role = human_prefix
        elif isinstance(message, AIChatMessage):
            role = ai_prefix
        elif isinstance(message, SystemChatMessage):
            role = "System"
        elif isinstance(message, ChatMessage):
            role = message.role
        else:
            raise ValueError(f"Got unsupported message type: {message!r}")
        lines.append(f"{role}: {message.text}")
    return "\n".join(lines)


def to_jsonable(value: Any) -> Any:
    """
    Convert payloads (messages, results, dataclasses) into JSON-ready data.

    Objects exposing ``to_dict`` are converted with it; containers are
    walked recursively; anything else that is not a JSON scalar is
    stringified.
    """
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if hasattr(value, "to_dict") and callable(value.to_dict):
        try:
            return to_jsonable(value.to_dict())
        except Exception as e:
            logger.debug(f"Error converting {type(value).__name__} to dict: {e}")
            return str(value)
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    if hasattr(value, "__dataclass_fields__"):
        return {
            name: to_jsonable(getattr(value, name))
            for name in value.__dataclass_fields__
        }
    return str(value)


__all__ = ["get_buffer_string", "to_jsonable"]
