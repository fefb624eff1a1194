"""
Factories for the tracing handlers auto-attached by ``CallbackManager.configure``.
"""

from typing import Optional

from ..config import TracingConfig
from .http import HttpTracer, HttpTracerV1


def get_tracing_callback_handler(
    session: Optional[str] = None, config: Optional[TracingConfig] = None
) -> HttpTracerV1:
    """Tracing handler for the legacy protocol, bound to a named session."""
    config = config or TracingConfig()
    return HttpTracerV1(config=config, session_name=session or config.session)


def get_tracing_v2_callback_handler(
    config: Optional[TracingConfig] = None,
) -> HttpTracer:
    """Tracing handler for the current protocol."""
    config = config or TracingConfig()
    return HttpTracer(config=config, project_name=config.project_name)


__all__ = ["get_tracing_callback_handler", "get_tracing_v2_callback_handler"]
