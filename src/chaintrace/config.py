"""
Tracing configuration.

``TracingConfig`` is a plain object handed to ``CallbackManager.configure``.
``TracingConfig.from_env`` is the one place the SDK reads environment
variables.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "CHAINTRACE_"
DEFAULT_ENDPOINT = "http://localhost:1984"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"", "0", "false", "no", "off"}


def _parse_bool(name: str, value: Optional[str]) -> bool:
    if value is None:
        return False
    normalized = value.strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    logger.warning(f"Unrecognised value for {name}: {value!r}, treating it as enabled")
    return True


@dataclass
class TracingConfig:
    """Switches and destinations for auto-attached handlers."""

    # Auto-attached handlers
    verbose: bool = False
    tracing: bool = False
    tracing_v2: bool = False

    # Tracing destination
    session: Optional[str] = None
    endpoint: str = DEFAULT_ENDPOINT
    api_key: Optional[str] = None
    project_name: str = "default"
    timeout_s: float = 10.0

    extra_headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.tracing_v2:
            self.tracing = True
        self.endpoint = self.endpoint.rstrip("/")
        if self.timeout_s <= 0:
            raise ConfigurationError("timeout_s must be positive")

    @property
    def tracing_enabled(self) -> bool:
        return self.tracing or self.tracing_v2

    @classmethod
    def from_env(
        cls, load_env_file: bool = False, dotenv_path: Optional[str] = None
    ) -> "TracingConfig":
        """
        Build a configuration from ``CHAINTRACE_*`` environment variables.

        Args:
            load_env_file: Load a ``.env`` file first (existing variables win)
            dotenv_path: Explicit ``.env`` location

        Returns:
            TracingConfig populated from the environment
        """
        if load_env_file:
            loaded = load_dotenv(dotenv_path=dotenv_path, override=False)
            logger.debug(f"Loaded .env file: {loaded}")

        def env(name: str) -> Optional[str]:
            return os.getenv(f"{ENV_PREFIX}{name}")

        timeout = env("TIMEOUT")
        try:
            timeout_s = float(timeout) if timeout else 10.0
        except ValueError:
            logger.warning(f"Invalid CHAINTRACE_TIMEOUT {timeout!r}, using 10s")
            timeout_s = 10.0

        return cls(
            verbose=_parse_bool("CHAINTRACE_VERBOSE", env("VERBOSE")),
            tracing=_parse_bool("CHAINTRACE_TRACING", env("TRACING")),
            tracing_v2=_parse_bool("CHAINTRACE_TRACING_V2", env("TRACING_V2")),
            session=env("SESSION") or None,
            endpoint=env("ENDPOINT") or DEFAULT_ENDPOINT,
            api_key=env("API_KEY") or None,
            project_name=env("PROJECT") or "default",
            timeout_s=timeout_s,
        )


__all__ = ["TracingConfig", "DEFAULT_ENDPOINT"]
