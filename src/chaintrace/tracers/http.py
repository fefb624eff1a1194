"""
HTTP tracers that ship finished root runs to a tracing backend.

``HttpTracer`` speaks the current protocol: one ``POST /runs`` per root run
carrying the whole tree. ``HttpTracerV1`` speaks the legacy session-based
protocol with kind-specific routes.
"""

import asyncio
import logging
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter

from ..config import TracingConfig
from ..core.run import Run, RunType
from ..core.tracer import BaseTracer
from ..utils.exceptions import PersistenceError
from ..utils.logging import log_debug_enabled

logger = logging.getLogger(__name__)

TRACER_NAME = "chaintrace_tracer"


def _get_sdk_version() -> str:
    from .. import __version__

    return __version__


class _HttpTracerBase(BaseTracer):
    name = TRACER_NAME

    def __init__(
        self,
        config: Optional[TracingConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__()
        self.config = config or TracingConfig()
        self.session = session or self._create_session()
        logger.info(f"{type(self).__name__} initialized for endpoint: {self.config.endpoint}")

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Content-Type": "application/json",
                "User-Agent": f"chaintrace/{_get_sdk_version()}",
            }
        )
        if self.config.api_key:
            session.headers["x-api-key"] = self.config.api_key
        session.headers.update(self.config.extra_headers)

        adapter = HTTPAdapter(pool_connections=4, pool_maxsize=4)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _build_url(self, path: str) -> str:
        return f"{self.config.endpoint}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = self._build_url(path)
        try:
            response = self.session.request(
                method, url, timeout=self.config.timeout_s, **kwargs
            )
        except requests.exceptions.RequestException as e:
            raise PersistenceError(f"Request to {url} failed: {e}") from e

        if response.status_code >= 400:
            raise PersistenceError(
                f"{method} {url} failed with status {response.status_code}: "
                f"{response.text[:200]}",
                status_code=response.status_code,
            )
        if log_debug_enabled():
            logger.debug(f"{method} {url} -> {response.status_code}")
        return response

    def close(self) -> None:
        self.session.close()


class HttpTracer(_HttpTracerBase):
    """Tracer for the current tracing protocol."""

    def __init__(
        self,
        config: Optional[TracingConfig] = None,
        project_name: Optional[str] = None,
        example_id: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(config=config, session=session)
        self.project_name = project_name or self.config.project_name
        self.example_id = example_id

    def _convert_run(self, run: Run) -> dict[str, Any]:
        payload = run.to_dict()
        payload["session_name"] = self.project_name
        if run.parent_run_id is None and self.example_id is not None:
            payload["reference_example_id"] = self.example_id
        return payload

    async def persist_run(self, run: Run) -> None:
        payload = self._convert_run(run)
        await asyncio.to_thread(self._request, "POST", "/runs", json=payload)
        logger.debug(f"Persisted run {run.id} to project {self.project_name}")


class HttpTracerV1(_HttpTracerBase):
    """Tracer for the legacy session-based protocol."""

    _ROUTES = {
        RunType.LLM: "/llm-runs",
        RunType.CHAIN: "/chain-runs",
        RunType.TOOL: "/tool-runs",
    }

    def __init__(
        self,
        config: Optional[TracingConfig] = None,
        session_name: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(config=config, session=session)
        self.session_name = session_name or "default"
        self._session_id: Optional[Any] = None

    def load_session(self) -> Any:
        """Resolve the tracing session id by name, creating it if needed."""
        if self._session_id is not None:
            return self._session_id

        response = self._request("GET", "/sessions", params={"name": self.session_name})
        sessions = response.json()
        if sessions:
            self._session_id = sessions[0]["id"]
        else:
            created = self._request("POST", "/sessions", json={"name": self.session_name})
            self._session_id = created.json()["id"]
            logger.info(f"Created tracing session {self.session_name!r}")
        return self._session_id

    def _convert_run(self, run: Run, session_id: Any) -> dict[str, Any]:
        data = run.to_dict()
        payload: dict[str, Any] = {
            "uuid": run.id,
            "serialized": data["serialized"],
            "start_time": data["start_time"],
            "end_time": data["end_time"],
            "execution_order": run.execution_order,
            "child_execution_order": run.child_execution_order,
            "extra": data["extra"],
            "error": run.error,
            "session_id": session_id,
        }
        if run.run_type is RunType.LLM:
            payload["prompts"] = data["inputs"].get("prompts") or data["inputs"].get(
                "messages"
            )
            payload["response"] = data["outputs"]
            return payload

        if run.run_type is RunType.CHAIN:
            payload["inputs"] = data["inputs"]
            payload["outputs"] = data["outputs"]
        else:
            payload["tool_input"] = run.inputs.get("input")
            payload["output"] = (run.outputs or {}).get("output")
            payload["action"] = str(run.serialized)

        for kind in RunType:
            payload[f"child_{kind.value}_runs"] = [
                self._convert_run(child, session_id)
                for child in run.child_runs
                if child.run_type is kind
            ]
        return payload

    def _persist(self, run: Run) -> None:
        session_id = self.load_session()
        payload = self._convert_run(run, session_id)
        self._request("POST", self._ROUTES[run.run_type], json=payload)

    async def persist_run(self, run: Run) -> None:
        await asyncio.to_thread(self._persist, run)
        logger.debug(f"Persisted {run.run_type.value} run {run.id} to session {self.session_name}")


__all__ = ["HttpTracer", "HttpTracerV1", "TRACER_NAME"]
