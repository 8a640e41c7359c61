"""Tests for Connection: pipeline assembly, parsing and error mapping."""

import json
import threading
from unittest.mock import MagicMock, patch

import pytest
import requests

from missive import (
    AuthenticationError,
    ConcurrencyLimitedHttpClient,
    Connection,
    HttpClient,
    InstrumentedHttpClient,
    Instrumenter,
    MissiveConfig,
    MissiveError,
    MissiveEventListener,
    NotFoundError,
    RateLimitError,
    RetryingHttpClient,
    ServerError,
    SessionHttpClient,
    TokenBucketRateLimitedHttpClient,
)
from missive._config import ClientConfig, RetryConfig
from missive._instrumentation import REQUEST, RESPONSE


def make_response(status_code=200, body=None, text=None, headers=None):
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.headers = headers or {}
    if text is None:
        text = "" if body is None else json.dumps(body)
    response.text = text
    response.content = text.encode("utf-8")
    if body is not None:
        response.json.return_value = body
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    return response


class MockHttpClient(HttpClient):
    """Mock HTTP client for testing."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, params=None, data=None, headers=None, timeout=None):
        self.calls.append({"method": method, "url": url, "params": params, "data": data, "timeout": timeout})
        outcome = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_connection(*responses, config=None, instrumenter=None):
    http = MockHttpClient(*responses)
    connection = Connection(
        token="test-token",
        config=config or MissiveConfig(),
        instrumenter=instrumenter,
        http_client=http,
    )
    return connection, http


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("missive._retry.time.sleep") as mock_sleep:
        yield mock_sleep


# =============================================================================
# Pipeline
# =============================================================================


class TestPipeline:

    def test_stage_order(self):
        connection, http = make_connection(make_response(200, {}))

        pipeline = connection.pipeline

        assert isinstance(pipeline, InstrumentedHttpClient)
        assert isinstance(pipeline.delegate, ConcurrencyLimitedHttpClient)
        assert isinstance(pipeline.delegate.delegate, TokenBucketRateLimitedHttpClient)
        assert isinstance(pipeline.delegate.delegate.delegate, RetryingHttpClient)
        assert pipeline.delegate.delegate.delegate.delegate is http

    def test_stages_use_config(self):
        config = MissiveConfig.load(
            rate_limit={"capacity": 900, "window": 900.0, "soft_limit_threshold": 10},
            concurrency={"max_concurrent": 2},
            retry={"max_retries": 1, "interval": 1.0, "backoff_factor": 2.0},
            allow_env_override=False,
        )
        connection, _ = make_connection(make_response(200, {}), config=config)

        concurrency = connection.pipeline.delegate
        rate_limit = concurrency.delegate
        retry = rate_limit.delegate
        assert concurrency.max_concurrent == 2
        assert (rate_limit.capacity, rate_limit.window, rate_limit.soft_limit_threshold) == (900, 900.0, 10)
        assert (retry.max_retries, retry.interval, retry.backoff_factor) == (1, 1.0, 2.0)

    def test_pipeline_is_built_once_under_concurrency(self):
        connection, _ = make_connection(make_response(200, {}))
        built = []
        original = connection._build_pipeline

        def build():
            built.append(1)
            return original()

        connection._build_pipeline = build
        barrier = threading.Barrier(8)
        pipelines = []

        def access():
            barrier.wait()
            pipelines.append(connection.pipeline)

        threads = [threading.Thread(target=access) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(built) == 1
        assert all(p is pipelines[0] for p in pipelines)

    def test_connections_do_not_share_limiter_state(self):
        first, _ = make_connection(make_response(200, {}))
        second, _ = make_connection(make_response(200, {}))

        first.request("GET", "users")

        assert first.pipeline.delegate.delegate.tokens == 299.0
        assert second.pipeline.delegate.delegate.tokens == 300.0

    def test_default_transport_carries_auth_headers(self):
        connection = Connection(token="secret-token", config=MissiveConfig())

        transport = connection.pipeline.delegate.delegate.delegate.delegate

        assert isinstance(transport, SessionHttpClient)
        assert transport.headers["Authorization"] == "Bearer secret-token"
        assert transport.headers["Content-Type"] == "application/json"
        assert transport.headers["User-Agent"].startswith("missive-sdk-python/")

    def test_requires_token(self):
        with pytest.raises(AssertionError):
            Connection(token="")


# =============================================================================
# Requests
# =============================================================================


class TestRequest:

    def test_strips_leading_slash_and_joins_base_url(self):
        connection, http = make_connection(make_response(200, {"users": []}))

        connection.request("GET", "/users")

        assert http.calls[0]["url"] == "https://public-api.missiveapp.com/v1/users"

    def test_absolute_urls_pass_through(self):
        connection, http = make_connection(make_response(200, {}))

        connection.request("GET", "https://public-api.missiveapp.com/v1/contacts/1")

        assert http.calls[0]["url"] == "https://public-api.missiveapp.com/v1/contacts/1"

    def test_custom_base_url(self):
        config = MissiveConfig(client=ClientConfig(base_url="https://example.test/api/"))
        connection, http = make_connection(make_response(200, {}), config=config)

        connection.request("GET", "teams")

        assert http.calls[0]["url"] == "https://example.test/api/teams"

    def test_sends_params_body_and_timeout(self):
        config = MissiveConfig(client=ClientConfig(request_timeout=15))
        connection, http = make_connection(make_response(201, {"tasks": {"id": "t1"}}), config=config)

        result = connection.request("post", "tasks", params={"notify": True}, body={"tasks": {"title": "x"}})

        assert result == {"tasks": {"id": "t1"}}
        call = http.calls[0]
        assert call["method"] == "POST"
        assert call["params"] == {"notify": "true"}
        assert call["data"] == {"tasks": {"title": "x"}}
        assert call["timeout"] == 15

    def test_empty_body_returns_none(self):
        connection, _ = make_connection(make_response(204))

        assert connection.request("DELETE", "posts/1") is None

    def test_non_json_success_body_is_an_error(self):
        connection, _ = make_connection(make_response(200, text="<html>oops</html>"))

        with pytest.raises(MissiveError) as exc_info:
            connection.request("GET", "users")

        assert exc_info.value.status == 200
        assert type(exc_info.value) is MissiveError

    def test_emits_request_and_response_events(self):
        events = []

        class Recorder(MissiveEventListener):
            def on_event(self, event, payload):
                events.append(event)

        connection, _ = make_connection(make_response(200, {}), instrumenter=Instrumenter([Recorder()]))

        connection.request("GET", "users")

        assert events == [REQUEST, RESPONSE]

    def test_event_path_includes_the_base_url_prefix(self):
        payloads = []

        class Recorder(MissiveEventListener):
            def on_request(self, payload):
                payloads.append(payload)

        connection, _ = make_connection(make_response(200, {}), instrumenter=Instrumenter([Recorder()]))

        connection.request("GET", "/users", params={"limit": 5})

        assert payloads[0]["path"] == "/v1/users"
        assert payloads[0]["url"] == "https://public-api.missiveapp.com/v1/users?limit=5"


# =============================================================================
# Error Mapping
# =============================================================================


class TestErrorMapping:

    @pytest.mark.parametrize("status,error_class", [
        (401, AuthenticationError),
        (403, AuthenticationError),
        (404, NotFoundError),
        (429, RateLimitError),
        (500, ServerError),
        (503, ServerError),
        (422, MissiveError),
    ])
    def test_error_status_raises_typed_error(self, status, error_class):
        connection, _ = make_connection(make_response(status, {"error": "Nope"}))

        with pytest.raises(error_class) as exc_info:
            connection.request("GET", "users")

        assert exc_info.value.status == status
        assert exc_info.value.message == "Nope"
        assert exc_info.value.body == {"error": "Nope"}

    def test_text_error_body_becomes_message(self):
        connection, _ = make_connection(make_response(502, text="Bad Gateway"))

        with pytest.raises(ServerError, match="Bad Gateway"):
            connection.request("GET", "users")

    def test_retryable_statuses_are_retried_before_raising(self, no_sleep):
        connection, http = make_connection(
            make_response(503, {"error": "down"}),
            make_response(200, {"users": []}),
        )

        assert connection.request("GET", "users") == {"users": []}
        assert len(http.calls) == 2

    def test_exhausted_retries_raise_classified_error(self, no_sleep):
        config = MissiveConfig(retry=RetryConfig(max_retries=2))
        connection, http = make_connection(make_response(429, {"error": "Too many"}), config=config)

        with pytest.raises(RateLimitError):
            connection.request("GET", "users")

        assert len(http.calls) == 3

    def test_connection_failure_becomes_missive_error(self, no_sleep):
        config = MissiveConfig(retry=RetryConfig(max_retries=0))
        error = requests.ConnectionError("connection refused")
        connection, _ = make_connection(error, config=config)

        with pytest.raises(MissiveError) as exc_info:
            connection.request("GET", "users")

        assert type(exc_info.value) is MissiveError
        assert exc_info.value.status is None
        assert exc_info.value.__cause__ is error

    def test_http_error_with_response_is_classified(self, no_sleep):
        failed = make_response(401, {"error": "Invalid token"})
        connection, _ = make_connection(requests.HTTPError("401", response=failed))

        with pytest.raises(AuthenticationError, match="Invalid token"):
            connection.request("GET", "users")

    def test_requests_exceptions_never_leak(self, no_sleep):
        config = MissiveConfig(retry=RetryConfig(max_retries=0))
        connection, _ = make_connection(requests.Timeout("read timed out"), config=config)

        with pytest.raises(MissiveError):
            connection.request("GET", "users")
