"""
Tests for the HTTP tracers.

The ``requests.Session`` is replaced by a mock so no request leaves the
process.
"""

import logging
from unittest.mock import Mock

import pytest
import requests
from requests.adapters import HTTPAdapter

from chaintrace import (
    AgentAction,
    HttpTracer,
    HttpTracerV1,
    LLMResult,
    PersistenceError,
    TracingConfig,
    __version__,
)


def make_response(status_code=200, json_data=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = json_data
    return response


@pytest.fixture
def config():
    return TracingConfig(
        endpoint="https://trace.example.com/", api_key="test-key", timeout_s=3
    )


@pytest.fixture
def mock_session():
    session = Mock(spec=requests.Session)
    session.request.return_value = make_response()
    return session


async def run_small_tree(tracer):
    """Chain c1 with a tool t1 and an llm l1 nested in the tool."""
    await tracer.handle_chain_start({"name": "qa"}, {"q": "?"}, "c1")
    await tracer.handle_tool_start({"name": "search"}, "query", "t1", "c1")
    await tracer.handle_llm_start({"name": "model"}, ["prompt"], "l1", "t1")
    await tracer.handle_llm_end(LLMResult(), "l1")
    await tracer.handle_tool_end("result", "t1")
    await tracer.handle_chain_end({"a": "!"}, "c1")


class TestHttpTracerSession:
    """Session creation and configuration."""

    def test_create_session_headers(self, config):
        """The default session carries JSON, user agent and api key headers."""
        config.extra_headers = {"X-Team": "a"}
        tracer = HttpTracer(config=config)

        headers = tracer.session.headers
        assert headers["Content-Type"] == "application/json"
        assert headers["User-Agent"] == f"chaintrace/{__version__}"
        assert headers["x-api-key"] == "test-key"
        assert headers["X-Team"] == "a"
        assert isinstance(tracer.session.get_adapter("https://trace.example.com"), HTTPAdapter)

    def test_no_api_key_header_without_key(self):
        """No api key header is sent when none is configured."""
        tracer = HttpTracer(config=TracingConfig())
        assert "x-api-key" not in tracer.session.headers

    def test_init_logs_endpoint(self, config, mock_session, caplog):
        """Initialization logs the endpoint."""
        with caplog.at_level(logging.INFO, logger="chaintrace"):
            HttpTracer(config=config, session=mock_session)

        assert "HttpTracer initialized for endpoint: https://trace.example.com" in caplog.text

    def test_close(self, config, mock_session):
        tracer = HttpTracer(config=config, session=mock_session)
        tracer.close()
        mock_session.close.assert_called_once()


class TestHttpTracer:
    """The current protocol: one POST per root run."""

    @pytest.mark.asyncio
    async def test_posts_whole_tree_once(self, config, mock_session):
        """Only the root is posted, with its subtree nested."""
        tracer = HttpTracer(config=config, project_name="proj", session=mock_session)

        await run_small_tree(tracer)

        mock_session.request.assert_called_once()
        args, kwargs = mock_session.request.call_args
        assert args == ("POST", "https://trace.example.com/runs")
        assert kwargs["timeout"] == 3
        payload = kwargs["json"]
        assert payload["id"] == "c1"
        assert payload["session_name"] == "proj"
        assert payload["run_type"] == "chain"
        assert payload["child_runs"][0]["id"] == "t1"
        assert payload["child_runs"][0]["child_runs"][0]["inputs"] == {"prompts": ["prompt"]}
        assert "reference_example_id" in payload

    @pytest.mark.asyncio
    async def test_example_id_on_root_only(self, config, mock_session):
        """The reference example is attached to the root run."""
        tracer = HttpTracer(config=config, example_id="ex-1", session=mock_session)

        await run_small_tree(tracer)

        payload = mock_session.request.call_args.kwargs["json"]
        assert payload["reference_example_id"] == "ex-1"
        assert payload["child_runs"][0]["reference_example_id"] is None
        assert payload["session_name"] == "default"

    @pytest.mark.asyncio
    async def test_http_error_raises_persistence_error(self, config, mock_session):
        """A 4xx/5xx response is reported as PersistenceError."""
        mock_session.request.return_value = make_response(500, text="boom")
        tracer = HttpTracer(config=config, session=mock_session)

        await tracer.handle_llm_start({"name": "model"}, ["p"], "l1")
        with pytest.raises(PersistenceError) as exc_info:
            await tracer.handle_llm_end(LLMResult(), "l1")

        assert exc_info.value.status_code == 500
        assert "boom" in str(exc_info.value)
        assert tracer.run_map == {}

    @pytest.mark.asyncio
    async def test_connection_error_raises_persistence_error(self, config, mock_session):
        """Network failures are wrapped."""
        mock_session.request.side_effect = requests.exceptions.ConnectionError("refused")
        tracer = HttpTracer(config=config, session=mock_session)

        await tracer.handle_tool_start({"name": "t"}, "x", "t1")
        with pytest.raises(PersistenceError, match="refused"):
            await tracer.handle_tool_end("y", "t1")


class TestHttpTracerV1:
    """The legacy session-based protocol."""

    @pytest.mark.asyncio
    async def test_existing_session_is_reused(self, config, mock_session):
        """The session id is looked up once and cached."""
        mock_session.request.side_effect = [
            make_response(json_data=[{"id": 7}]),
            make_response(),
            make_response(),
        ]
        tracer = HttpTracerV1(config=config, session_name="legacy", session=mock_session)

        await tracer.handle_llm_start({"name": "m"}, ["p"], "l1")
        await tracer.handle_llm_end(LLMResult(), "l1")
        await tracer.handle_llm_start({"name": "m"}, ["p"], "l2")
        await tracer.handle_llm_end(LLMResult(), "l2")

        calls = mock_session.request.call_args_list
        assert calls[0].args == ("GET", "https://trace.example.com/sessions")
        assert calls[0].kwargs["params"] == {"name": "legacy"}
        assert calls[1].args == ("POST", "https://trace.example.com/llm-runs")
        assert calls[1].kwargs["json"]["session_id"] == 7
        assert calls[1].kwargs["json"]["prompts"] == ["p"]
        assert calls[2].args == ("POST", "https://trace.example.com/llm-runs")

    def test_missing_session_is_created(self, config, mock_session):
        """An unknown session name is created on first use."""
        mock_session.request.side_effect = [
            make_response(json_data=[]),
            make_response(json_data={"id": 11}),
        ]
        tracer = HttpTracerV1(config=config, session=mock_session)

        assert tracer.load_session() == 11
        assert tracer.load_session() == 11

        create_call = mock_session.request.call_args_list[1]
        assert create_call.args == ("POST", "https://trace.example.com/sessions")
        assert create_call.kwargs["json"] == {"name": "default"}
        assert mock_session.request.call_count == 2

    @pytest.mark.asyncio
    async def test_children_are_grouped_by_kind(self, config, mock_session):
        """Child runs are nested under kind-specific keys."""
        mock_session.request.side_effect = [
            make_response(json_data=[{"id": 1}]),
            make_response(),
        ]
        tracer = HttpTracerV1(config=config, session=mock_session)

        await run_small_tree(tracer)

        post = mock_session.request.call_args_list[1]
        assert post.args == ("POST", "https://trace.example.com/chain-runs")
        payload = post.kwargs["json"]
        assert payload["uuid"] == "c1"
        assert payload["inputs"] == {"q": "?"}
        assert payload["outputs"] == {"a": "!"}
        assert payload["child_llm_runs"] == []
        assert payload["child_chain_runs"] == []
        (tool_payload,) = payload["child_tool_runs"]
        assert tool_payload["tool_input"] == "query"
        assert tool_payload["output"] == "result"
        assert tool_payload["execution_order"] == 2
        (llm_payload,) = tool_payload["child_llm_runs"]
        assert llm_payload["execution_order"] == 3
        assert llm_payload["response"] == {"generations": [], "llm_output": None}

    @pytest.mark.asyncio
    async def test_agent_runs_are_posted_as_chains(self, config, mock_session):
        mock_session.request.side_effect = [
            make_response(json_data=[{"id": 1}]),
            make_response(),
        ]
        tracer = HttpTracerV1(config=config, session=mock_session)

        await tracer.handle_chain_start({"name": "agent"}, {}, "a1")
        await tracer.handle_agent_action(AgentAction("search", "x"), "a1")
        await tracer.handle_chain_end({}, "a1")

        post = mock_session.request.call_args_list[1]
        assert post.args == ("POST", "https://trace.example.com/chain-runs")
