"""
Custom exceptions for the chaintrace SDK.
"""

from typing import Any, Optional


class ChainTraceError(Exception):
    """Base exception for all chaintrace errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class ConfigurationError(ChainTraceError):
    """Raised when callbacks or tracing are configured incorrectly."""


class TracerError(ChainTraceError):
    """Raised when a tracer is asked to act on a run it does not track.

    This is a usage error: it means a start/end pairing is broken at the
    call site and is never retried.
    """

    def __init__(self, message: str, run_id: Optional[str] = None):
        super().__init__(message, {"run_id": run_id} if run_id else None)
        self.run_id = run_id

    def __str__(self) -> str:
        return self.message


class TraceGroupError(ChainTraceError):
    """Raised when a trace group cannot open its root run."""


class PersistenceError(ChainTraceError):
    """Raised by tracers whose backing store rejects a run."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code


__all__ = [
    "ChainTraceError",
    "ConfigurationError",
    "TracerError",
    "TraceGroupError",
    "PersistenceError",
]
