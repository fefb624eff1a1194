"""
chaintrace

Run tracing and callback dispatch for LLM, chain and tool executions.

Quick Start:
    ```python
    from chaintrace import CallbackManager, RunCollectorTracer

    collector = RunCollectorTracer()
    manager = CallbackManager.configure([collector])

    run_manager = await manager.handle_chain_start({"name": "qa"}, {"q": "hi"})
    child = run_manager.get_child()
    llm_run = await child.handle_llm_start({"name": "model"}, ["hi"])
    await llm_run.handle_llm_end(LLMResult(generations=[[Generation(text="hello")]]))
    await run_manager.handle_chain_end({"answer": "hello"})

    collector.traced_runs[0].child_runs  # [the llm run]
    ```
"""

__version__ = "0.1.0"

# Core components (imported first: the callback modules below depend on them)
from .core.run import AgentRun, Run, RunType
from .core.tracer import BaseTracer

# Callbacks
from .callbacks.base import (
    BaseCallbackHandler,
    CallbackEvent,
    ExecutionMode,
    FunctionCallbackHandler,
)
from .callbacks.dispatch import await_all_callbacks
from .callbacks.manager import (
    BaseRunManager,
    CallbackManager,
    CallbackManagerForChainRun,
    CallbackManagerForLLMRun,
    CallbackManagerForToolRun,
    CallbackManagerOptions,
    Callbacks,
)
from .callbacks.console import ConsoleCallbackHandler
from .callbacks.group import TraceGroup, trace_as_group

# Tracers
from .tracers import (
    FileTracer,
    HttpTracer,
    HttpTracerV1,
    OpenTelemetryTracer,
    RunCollectorTracer,
    get_tracing_callback_handler,
    get_tracing_v2_callback_handler,
)

# Configuration
from .config import TracingConfig

# Types
from .types import (
    AgentAction,
    AgentFinish,
    AIChatMessage,
    BaseChatMessage,
    ChainValues,
    ChatMessage,
    Generation,
    HumanChatMessage,
    LLMResult,
    SystemChatMessage,
)

# Exceptions
from .utils.exceptions import (
    ChainTraceError,
    ConfigurationError,
    PersistenceError,
    TraceGroupError,
    TracerError,
)

__all__ = [
    # Core
    "Run",
    "AgentRun",
    "RunType",
    "BaseTracer",
    # Callbacks
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
    "ConsoleCallbackHandler",
    "TraceGroup",
    "trace_as_group",
    # Tracers
    "RunCollectorTracer",
    "FileTracer",
    "HttpTracer",
    "HttpTracerV1",
    "OpenTelemetryTracer",
    "get_tracing_callback_handler",
    "get_tracing_v2_callback_handler",
    # Configuration
    "TracingConfig",
    # Types
    "AgentAction",
    "AgentFinish",
    "AIChatMessage",
    "BaseChatMessage",
    "ChainValues",
    "ChatMessage",
    "Generation",
    "HumanChatMessage",
    "LLMResult",
    "SystemChatMessage",
    # Exceptions
    "ChainTraceError",
    "ConfigurationError",
    "TracerError",
    "TraceGroupError",
    "PersistenceError",
]
