"""
Connection to the Missive API.

`Connection` owns one request pipeline (see `missive._http`) and exposes a
single operation, `request()`, that returns the parsed JSON body of a
successful response or raises a typed `MissiveError`.

Example:
    >>> from missive._connection import Connection
    >>> connection = Connection(token="...")
    >>> connection.request("GET", "/users", params={"limit": 10})
    {'users': [...], 'offset': 0, 'limit': 10}
"""

import logging
import threading
from typing import Any

import requests

from missive._concurrency import ConcurrencyLimitedHttpClient
from missive._config import MissiveConfig
from missive._errors import MissiveError, error_from_response
from missive._http import HttpClient, InstrumentedHttpClient, SessionHttpClient
from missive._instrumentation import Instrumenter
from missive._rate_limit import TokenBucketRateLimitedHttpClient
from missive._retry import RetryingHttpClient

logger = logging.getLogger(__name__)


def _user_agent() -> str:
    from missive import __version__
    return f"missive-sdk-python/{__version__}"


def _encode_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    """Render booleans the way the API expects them ("true"/"false")."""
    if not params:
        return None
    return {
        key: ("true" if value else "false") if isinstance(value, bool) else value
        for key, value in params.items()
    }


def _parse_body(response: requests.Response) -> Any:
    """
    Parse a response body as JSON.

    Returns None for an empty body. A non-JSON body is returned as text for
    error responses (so it can become the error message) and rejected for
    successful ones.
    """
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as e:
        if response.status_code >= 400:
            return response.text
        raise MissiveError(
            f"Invalid JSON in response (HTTP {response.status_code})",
            status=response.status_code,
            body=response.text,
        ) from e


class Connection:
    """
    Authenticated, rate-limited and retrying access to the Missive API.

    The pipeline is built lazily on the first request and reused afterwards.
    Each connection has its own token bucket and concurrency semaphore, so two
    connections (two tokens, typically) never throttle each other.

    Args:
        token: Missive API token, sent as a Bearer credential.
        config: SDK configuration. Defaults to `MissiveConfig()`.
        instrumenter: Where pipeline events are published. A private one is
            created when omitted.
        http_client: Innermost HTTP client. Tests inject fakes here; the
            default is a `SessionHttpClient` carrying the auth headers.
    """

    def __init__(
        self,
        token: str,
        config: MissiveConfig | None = None,
        instrumenter: Instrumenter | None = None,
        http_client: HttpClient | None = None,
    ):
        assert token, "API token is required."

        self.token = token
        self.config = config or MissiveConfig()
        self.instrumenter = instrumenter or Instrumenter()
        self._http_client = http_client

        self._pipeline: HttpClient | None = None
        self._transport: HttpClient | None = None
        self._lock = threading.Lock()

    @property
    def base_url(self) -> str:
        return self.config.client.base_url.rstrip("/")

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "User-Agent": _user_agent(),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    @property
    def pipeline(self) -> HttpClient:
        """The request pipeline, built on first access."""
        if self._pipeline is None:
            with self._lock:
                if self._pipeline is None:
                    self._pipeline = self._build_pipeline()
        return self._pipeline

    def _build_pipeline(self) -> HttpClient:
        logger.debug(f"Building request pipeline for {self.base_url}")

        retry = self.config.retry
        rate_limit = self.config.rate_limit

        transport = self._http_client or SessionHttpClient(headers=self.headers)
        self._transport = transport
        pipeline: HttpClient = RetryingHttpClient(
            delegate=transport,
            max_retries=retry.max_retries,
            interval=retry.interval,
            backoff_factor=retry.backoff_factor,
            retry_statuses=retry.retry_statuses,
            retry_methods=retry.retry_methods,
        )
        pipeline = TokenBucketRateLimitedHttpClient(
            delegate=pipeline,
            capacity=rate_limit.capacity,
            window=rate_limit.window,
            soft_limit_threshold=rate_limit.soft_limit_threshold,
            instrumenter=self.instrumenter,
        )
        pipeline = ConcurrencyLimitedHttpClient(
            delegate=pipeline,
            max_concurrent=self.config.concurrency.max_concurrent,
        )
        return InstrumentedHttpClient(delegate=pipeline, instrumenter=self.instrumenter)

    def build_url(self, path: str) -> str:
        """Resolve a path against the base URL. Absolute URLs pass through."""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if path.startswith("/"):
            path = path[1:]
        return f"{self.base_url}/{path}"

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        """
        Send a request through the pipeline and return the parsed body.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE).
            path: Path relative to the base URL, or an absolute URL.
            params: Query string parameters.
            body: JSON-serializable request body.

        Returns:
            The parsed JSON body (None for an empty body).

        Raises:
            AuthenticationError: On HTTP 401/403.
            NotFoundError: On HTTP 404.
            RateLimitError: On HTTP 429 after retries.
            ServerError: On HTTP 5xx after retries.
            MissiveError: On any other failure, including network errors.
        """
        method = method.upper()
        url = self.build_url(path)

        try:
            response = self.pipeline.request(
                method,
                url,
                params=_encode_params(params),
                data=body,
                headers=None,
                timeout=self.config.client.request_timeout,
            )
        except requests.RequestException as e:
            if e.response is not None:
                failed = e.response
                raise error_from_response(failed.status_code, _parse_body(failed)) from e
            raise MissiveError(f"{method} {url} failed: {e}") from e

        parsed = _parse_body(response)
        if response.status_code >= 400:
            raise error_from_response(response.status_code, parsed)
        return parsed

    def close(self) -> None:
        """Release pooled HTTP connections held by the underlying session."""
        if isinstance(self._transport, SessionHttpClient):
            self._transport.close()
