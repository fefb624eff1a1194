"""
OpenTelemetry bridge: exports finished run trees as nested spans.
"""

import json
import logging
from datetime import datetime
from typing import Any, Optional

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import SpanKind, Status, StatusCode, TracerProvider

from ..core.run import Run
from ..core.tracer import BaseTracer
from ..utils.messages import to_jsonable

logger = logging.getLogger(__name__)


def _to_ns(value: datetime) -> int:
    return int(value.timestamp() * 1_000_000_000)


class OpenTelemetryTracer(BaseTracer):
    """
    Tracer that replays each finished root run into OpenTelemetry.

    Every run becomes one span named ``<run_type>.<name>`` whose parent is the
    span of its parent run. Start and end timestamps are the run's own, so
    the exported trace keeps the recorded timing.
    """

    name = "opentelemetry_tracer"

    def __init__(
        self,
        tracer_provider: Optional[TracerProvider] = None,
        instrumentation_name: str = "chaintrace",
        max_attribute_length: int = 1024,
    ):
        super().__init__()
        from .. import __version__

        provider = tracer_provider or trace.get_tracer_provider()
        self._otel_tracer = provider.get_tracer(instrumentation_name, __version__)
        self.max_attribute_length = max_attribute_length

    async def persist_run(self, run: Run) -> None:
        self._export(run, None)
        logger.debug(f"Exported run tree {run.id} to OpenTelemetry")

    def _serialize(self, value: Any) -> str:
        text = json.dumps(to_jsonable(value), default=str)
        if len(text) > self.max_attribute_length:
            return text[: self.max_attribute_length] + "..."
        return text

    def _attributes(self, run: Run) -> dict[str, Any]:
        attributes: dict[str, Any] = {
            "chaintrace.run.id": run.id,
            "chaintrace.run.name": run.name,
            "chaintrace.run.type": run.run_type.value,
            "chaintrace.run.execution_order": run.execution_order,
            "chaintrace.run.child_execution_order": run.child_execution_order,
            "chaintrace.run.inputs": self._serialize(run.inputs),
        }
        if run.parent_run_id is not None:
            attributes["chaintrace.run.parent_id"] = run.parent_run_id
        if run.outputs is not None:
            attributes["chaintrace.run.outputs"] = self._serialize(run.outputs)
        if run.reference_example_id is not None:
            attributes["chaintrace.run.reference_example_id"] = run.reference_example_id
        return attributes

    def _export(self, run: Run, context: Optional[Context]) -> None:
        span = self._otel_tracer.start_span(
            f"{run.run_type.value}.{run.name}",
            context=context,
            kind=SpanKind.INTERNAL,
            attributes=self._attributes(run),
            start_time=_to_ns(run.start_time),
        )
        if run.error is not None:
            span.set_status(Status(StatusCode.ERROR, run.error))
        else:
            span.set_status(Status(StatusCode.OK))

        child_context = trace.set_span_in_context(span)
        for child in run.child_runs:
            self._export(child, child_context)

        span.end(end_time=_to_ns(run.end_time or run.start_time))


__all__ = ["OpenTelemetryTracer"]
