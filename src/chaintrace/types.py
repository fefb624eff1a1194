"""
Payload types exchanged between executors and callback handlers.

These are the narrow shapes the tracing core needs from the surrounding
framework: chat messages handed to chat models, the result object returned
by a model call, and the actions an agent takes.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

ChainValues = dict[str, Any]


@dataclass
class BaseChatMessage:
    """A single message in a chat conversation."""

    text: str

    @property
    def type(self) -> str:
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "data": {"content": self.text}}


@dataclass
class HumanChatMessage(BaseChatMessage):
    @property
    def type(self) -> str:
        return "human"


@dataclass
class AIChatMessage(BaseChatMessage):
    @property
    def type(self) -> str:
        return "ai"


@dataclass
class SystemChatMessage(BaseChatMessage):
    @property
    def type(self) -> str:
        return "system"


@dataclass
class ChatMessage(BaseChatMessage):
    """Message with an arbitrary speaker role."""

    role: str = "user"

    @property
    def type(self) -> str:
        return "chat"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "data": {"content": self.text, "role": self.role}}


@dataclass
class Generation:
    """One candidate output of a model call."""

    text: str
    generation_info: Optional[dict[str, Any]] = None


@dataclass
class LLMResult:
    """Everything a model call produced: one list of generations per prompt."""

    generations: list[list[Generation]] = field(default_factory=list)
    llm_output: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "generations": [
                [
                    {"text": g.text, "generation_info": g.generation_info}
                    for g in prompt_generations
                ]
                for prompt_generations in self.generations
            ],
            "llm_output": self.llm_output,
        }


@dataclass
class AgentAction:
    """A tool invocation decided on by an agent."""

    tool: str
    tool_input: Union[str, dict[str, Any]]
    log: str = ""


@dataclass
class AgentFinish:
    """The final answer of an agent."""

    return_values: dict[str, Any]
    log: str = ""


__all__ = [
    "ChainValues",
    "BaseChatMessage",
    "HumanChatMessage",
    "AIChatMessage",
    "SystemChatMessage",
    "ChatMessage",
    "Generation",
    "LLMResult",
    "AgentAction",
    "AgentFinish",
]
