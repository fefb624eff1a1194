"""
Logging helpers for the chaintrace SDK.

Modules log through ``logging.getLogger(__name__)``, so every SDK logger
lives under the ``chaintrace`` namespace and can be tuned with a single
``logging.getLogger("chaintrace")`` call.
"""

import logging
import os
from typing import Any

_TRUTHY = {"1", "true", "yes", "on"}


def log_debug_enabled() -> bool:
    """Whether verbose SDK diagnostics were requested via CHAINTRACE_DEBUG."""
    return os.getenv("CHAINTRACE_DEBUG", "").strip().lower() in _TRUTHY


def log_handler_error(
    logger: logging.Logger, handler: Any, method: str, error: BaseException
) -> None:
    """Report an exception raised inside a callback handler."""
    logger.error(
        "Error in handler %s (%s), %s: %s",
        type(handler).__name__,
        getattr(handler, "name", None),
        method,
        repr(error),
        exc_info=log_debug_enabled(),
    )


__all__ = ["log_debug_enabled", "log_handler_error"]
