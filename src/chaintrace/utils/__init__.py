"""
Utility modules for the chaintrace SDK.
"""

from .exceptions import (
    ChainTraceError,
    ConfigurationError,
    PersistenceError,
    TraceGroupError,
    TracerError,
)

__all__ = [
    "ChainTraceError",
    "ConfigurationError",
    "TracerError",
    "TraceGroupError",
    "PersistenceError",
]
