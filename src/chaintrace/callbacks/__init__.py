"""
Callback handlers and the managers that dispatch events to them.
"""

from .base import BaseCallbackHandler, CallbackEvent, ExecutionMode, FunctionCallbackHandler
from .dispatch import await_all_callbacks
from .manager import (
    BaseRunManager,
    CallbackManager,
    CallbackManagerForChainRun,
    CallbackManagerForLLMRun,
    CallbackManagerForToolRun,
    CallbackManagerOptions,
    Callbacks,
)

__all__ = [
    "BaseCallbackHandler",
    "CallbackEvent",
    "ExecutionMode",
    "FunctionCallbackHandler",
    "await_all_callbacks",
    "BaseRunManager",
    "CallbackManager",
    "CallbackManagerForChainRun",
    "CallbackManagerForLLMRun",
    "CallbackManagerForToolRun",
    "CallbackManagerOptions",
    "Callbacks",
]
