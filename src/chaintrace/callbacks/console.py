"""
Console callback handler used for verbose mode.

Prints one line per lifecycle event, prefixed with the breadcrumb of the
run's ancestors, e.g. ``[chain:1:qa > tool:2:search] Entering Tool run``.
"""

import json
import sys
from typing import Any, Optional, TextIO

from ..core.run import AgentRun, Run
from ..core.tracer import BaseTracer
from ..utils.messages import to_jsonable

_COLORS = {
    "blue": "\x1b[34m",
    "green": "\x1b[32m",
    "red": "\x1b[31m",
    "yellow": "\x1b[33m",
    "bold": "\x1b[1m",
}
_RESET = "\x1b[0m"


def _wrap(color: str, text: str, enabled: bool) -> str:
    if not enabled:
        return text
    return f"{_COLORS[color]}{text}{_RESET}"


def _try_json(value: Any) -> str:
    try:
        return json.dumps(to_jsonable(value), indent=2, default=str)
    except (TypeError, ValueError):
        return str(value)


def _elapsed(run: Run) -> str:
    duration = run.duration_ms
    if duration is None:
        return ""
    if duration < 1000:
        return f"{duration:.0f}ms"
    return f"{duration / 1000:.2f}s"


class ConsoleCallbackHandler(BaseTracer):
    """Tracer that writes a readable transcript of every run."""

    name = "console_callback_handler"

    def __init__(self, stream: Optional[TextIO] = None, colors: Optional[bool] = None):
        super().__init__()
        self.stream = stream or sys.stdout
        if colors is None:
            colors = hasattr(self.stream, "isatty") and self.stream.isatty()
        self.colors = colors

    async def persist_run(self, run: Run) -> None:
        pass

    def _print(self, text: str) -> None:
        print(text, file=self.stream)

    def _get_parents(self, run: Run) -> list[Run]:
        parents = []
        current = run
        while current.parent_run_id is not None:
            parent = self.run_map.get(current.parent_run_id)
            if parent is None:
                break
            parents.append(parent)
            current = parent
        return parents

    def _breadcrumbs(self, run: Run) -> str:
        chain = list(reversed(self._get_parents(run))) + [run]
        crumbs = " > ".join(
            f"{r.run_type.value}:{r.execution_order}:{r.name}" for r in chain
        )
        return _wrap("bold", f"[{crumbs}]", self.colors)

    def _kind(self, run: Run, label: str) -> str:
        return f"{self._breadcrumbs(run)} {label}"

    async def on_chain_start(self, run: Run) -> None:
        header = _wrap("green", "[chain/start]", self.colors)
        self._print(
            f"{header} {self._kind(run, 'Entering Chain run with input:')}\n"
            f"{_try_json(run.inputs)}"
        )

    async def on_chain_end(self, run: Run) -> None:
        header = _wrap("blue", "[chain/end]", self.colors)
        self._print(
            f"{header} {self._kind(run, f'[{_elapsed(run)}] Exiting Chain run with output:')}\n"
            f"{_try_json(run.outputs)}"
        )

    async def on_chain_error(self, run: Run) -> None:
        header = _wrap("red", "[chain/error]", self.colors)
        self._print(
            f"{header} {self._kind(run, f'[{_elapsed(run)}] Chain run errored with error:')}\n"
            f"{_try_json(run.error)}"
        )

    async def on_llm_start(self, run: Run) -> None:
        header = _wrap("green", "[llm/start]", self.colors)
        self._print(
            f"{header} {self._kind(run, 'Entering LLM run with input:')}\n"
            f"{_try_json(run.inputs)}"
        )

    async def on_llm_end(self, run: Run) -> None:
        header = _wrap("blue", "[llm/end]", self.colors)
        self._print(
            f"{header} {self._kind(run, f'[{_elapsed(run)}] Exiting LLM run with output:')}\n"
            f"{_try_json(run.outputs)}"
        )

    async def on_llm_error(self, run: Run) -> None:
        header = _wrap("red", "[llm/error]", self.colors)
        self._print(
            f"{header} {self._kind(run, f'[{_elapsed(run)}] LLM run errored with error:')}\n"
            f"{_try_json(run.error)}"
        )

    async def on_tool_start(self, run: Run) -> None:
        header = _wrap("green", "[tool/start]", self.colors)
        self._print(
            f"{header} {self._kind(run, 'Entering Tool run with input:')}\n"
            f"\"{run.inputs.get('input', '')}\""
        )

    async def on_tool_end(self, run: Run) -> None:
        header = _wrap("blue", "[tool/end]", self.colors)
        output = (run.outputs or {}).get("output", "")
        self._print(
            f"{header} {self._kind(run, f'[{_elapsed(run)}] Exiting Tool run with output:')}\n"
            f"\"{output}\""
        )

    async def on_tool_error(self, run: Run) -> None:
        header = _wrap("red", "[tool/error]", self.colors)
        self._print(
            f"{header} {self._kind(run, f'[{_elapsed(run)}] Tool run errored with error:')}\n"
            f"{run.error}"
        )

    async def on_agent_action(self, run: AgentRun) -> None:
        header = _wrap("blue", "[agent/action]", self.colors)
        action = run.actions[-1]
        self._print(
            f"{header} {self._kind(run, 'Agent selected action:')}\n"
            f"{_try_json(action)}"
        )


__all__ = ["ConsoleCallbackHandler"]
