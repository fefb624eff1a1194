"""
Concrete tracers: where finished run trees go.
"""

from .collector import RunCollectorTracer
from .file import FileTracer
from .http import HttpTracer, HttpTracerV1
from .initialize import get_tracing_callback_handler, get_tracing_v2_callback_handler
from .otel import OpenTelemetryTracer

__all__ = [
    "RunCollectorTracer",
    "FileTracer",
    "HttpTracer",
    "HttpTracerV1",
    "OpenTelemetryTracer",
    "get_tracing_callback_handler",
    "get_tracing_v2_callback_handler",
]
