"""
Pytest configuration and shared fixtures for chaintrace tests.
"""

import pytest

from chaintrace import BaseCallbackHandler, BaseTracer, TracingConfig
from chaintrace.core.run import Run


class FakeTracer(BaseTracer):
    """Tracer that keeps persisted runs in memory."""

    name = "fake_tracer"

    def __init__(self):
        super().__init__()
        self.runs: list[Run] = []

    async def persist_run(self, run: Run) -> None:
        self.runs.append(run)


class RecordingHandler(BaseCallbackHandler):
    """Handler that records every event it receives."""

    def __init__(self, name: str = "recording_handler"):
        self.name = name
        self.events: list[tuple] = []

    async def handle_llm_start(self, llm, prompts, run_id, parent_run_id=None, extra_params=None):
        self.events.append(("llm_start", llm, prompts, run_id, parent_run_id, extra_params))

    async def handle_chat_model_start(
        self, llm, messages, run_id, parent_run_id=None, extra_params=None
    ):
        self.events.append(("chat_model_start", llm, messages, run_id, parent_run_id))

    async def handle_llm_new_token(self, token, run_id, parent_run_id=None):
        self.events.append(("llm_new_token", token, run_id, parent_run_id))

    async def handle_llm_end(self, output, run_id, parent_run_id=None):
        self.events.append(("llm_end", output, run_id, parent_run_id))

    async def handle_llm_error(self, error, run_id, parent_run_id=None):
        self.events.append(("llm_error", error, run_id, parent_run_id))

    async def handle_chain_start(self, chain, inputs, run_id, parent_run_id=None):
        self.events.append(("chain_start", chain, inputs, run_id, parent_run_id))

    async def handle_chain_end(self, outputs, run_id, parent_run_id=None):
        self.events.append(("chain_end", outputs, run_id, parent_run_id))

    async def handle_chain_error(self, error, run_id, parent_run_id=None):
        self.events.append(("chain_error", error, run_id, parent_run_id))

    async def handle_tool_start(self, tool, input, run_id, parent_run_id=None):
        self.events.append(("tool_start", tool, input, run_id, parent_run_id))

    async def handle_tool_end(self, output, run_id, parent_run_id=None):
        self.events.append(("tool_end", output, run_id, parent_run_id))

    async def handle_tool_error(self, error, run_id, parent_run_id=None):
        self.events.append(("tool_error", error, run_id, parent_run_id))

    async def handle_text(self, text, run_id, parent_run_id=None):
        self.events.append(("text", text, run_id, parent_run_id))

    async def handle_agent_action(self, action, run_id, parent_run_id=None):
        self.events.append(("agent_action", action, run_id, parent_run_id))

    async def handle_agent_end(self, finish, run_id, parent_run_id=None):
        self.events.append(("agent_end", finish, run_id, parent_run_id))

    def names(self) -> list[str]:
        return [event[0] for event in self.events]


class FailingHandler(BaseCallbackHandler):
    """Handler whose every start hook raises."""

    name = "failing_handler"

    async def handle_llm_start(self, *args, **kwargs):
        raise RuntimeError("llm start exploded")

    async def handle_chain_start(self, *args, **kwargs):
        raise RuntimeError("chain start exploded")

    async def handle_tool_start(self, *args, **kwargs):
        raise RuntimeError("tool start exploded")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep CHAINTRACE_* variables from the host out of the tests."""
    for var in (
        "CHAINTRACE_VERBOSE",
        "CHAINTRACE_TRACING",
        "CHAINTRACE_TRACING_V2",
        "CHAINTRACE_SESSION",
        "CHAINTRACE_ENDPOINT",
        "CHAINTRACE_API_KEY",
        "CHAINTRACE_PROJECT",
        "CHAINTRACE_TIMEOUT",
        "CHAINTRACE_DEBUG",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def fake_tracer():
    """Provide a tracer that records persisted runs."""
    return FakeTracer()


@pytest.fixture
def recording_handler():
    """Provide a handler that records every event."""
    return RecordingHandler()


@pytest.fixture
def failing_handler():
    """Provide a handler that raises from its start hooks."""
    return FailingHandler()


@pytest.fixture
def quiet_config():
    """Tracing configuration with every auto-attached handler disabled."""
    return TracingConfig()
