"""
HTTP client abstraction for the missive SDK.

Every stage of the request pipeline is an `HttpClient`: the innermost one
(`SessionHttpClient`) performs the actual send, and each outer stage is a
decorator wrapping a `delegate`. `Connection` assembles them in this order,
outermost first:

    InstrumentedHttpClient
      -> ConcurrencyLimitedHttpClient
        -> TokenBucketRateLimitedHttpClient
          -> RetryingHttpClient
            -> SessionHttpClient

Example:
    >>> from missive._http import SessionHttpClient, InstrumentedHttpClient
    >>> client = InstrumentedHttpClient(
    ...     delegate=SessionHttpClient(headers={"Authorization": "Bearer ..."}),
    ...     instrumenter=Instrumenter(),
    ... )
    >>> response = client.request("GET", "https://public-api.missiveapp.com/v1/users")
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, override
from urllib.parse import urlsplit

import requests
from ulid import ULID

from missive._instrumentation import REQUEST, RESPONSE, Instrumenter

logger = logging.getLogger(__name__)


# =============================================================================
# Abstract Base Class
# =============================================================================


class HttpClient(ABC):
    """
    Abstract base class for HTTP clients.

    Implementations either send the request over the wire or decorate another
    HttpClient with a cross-cutting concern (rate limiting, retries, ...).

    Example:
        >>> class MyHttpClient(HttpClient):
        ...     def request(self, method, url, params=None, data=None, headers=None, timeout=None):
        ...         return requests.request(method, url, params=params, json=data, timeout=timeout)
    """

    @abstractmethod
    def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        data: Any = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> requests.Response:
        """
        Execute an HTTP request.

        Args:
            method: Upper-case HTTP method (GET, POST, PATCH, DELETE, ...).
            url: The full URL to request.
            params: Query string parameters, in order.
            data: JSON-serializable body, or None for no body.
            headers: Additional headers (merged over the client's defaults).
            timeout: Request timeout in seconds, or None for no timeout.

        Returns:
            The HTTP response, whatever its status code.

        Raises:
            requests.RequestException: If the request could not be completed.
        """
        pass


# =============================================================================
# requests.Session Implementation
# =============================================================================


class SessionHttpClient(HttpClient):
    """
    HTTP client backed by a single `requests.Session`.

    The session is created lazily on the first request and reused for the
    lifetime of this object, so connections are pooled across calls. Creation
    uses double-checked locking, so concurrent first callers never build two
    sessions.

    Args:
        headers: Default headers applied to every request.
    """

    def __init__(self, headers: dict[str, str] | None = None):
        self.headers = dict(headers or {})
        self._session: requests.Session | None = None
        self._lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """The underlying session, created on first access."""
        if self._session is None:
            with self._lock:
                if self._session is None:
                    logger.debug("SessionHttpClient: creating requests.Session.")
                    self._session = self._create_session()
        return self._session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(self.headers)
        return session

    def close(self) -> None:
        """Close the underlying session, if it was ever created."""
        with self._lock:
            if self._session is not None:
                self._session.close()
                self._session = None

    @override
    def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        data: Any = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> requests.Response:
        """
        Send the request through the shared session.

        Raises:
            AssertionError: If method or url is empty.
            requests.RequestException: If the HTTP request fails.
        """
        assert method, "Method cannot be empty."
        assert url, "URL cannot be empty."

        return self.session.request(
            method,
            url,
            params=params or None,
            json=data,
            headers=headers,
            timeout=timeout,
        )


# =============================================================================
# Instrumentation Decorator
# =============================================================================


def _resolve_url(url: str, params: dict[str, Any] | None) -> str:
    """Return the URL with its query string, as it goes over the wire."""
    if not params:
        return url
    prepared = requests.PreparedRequest()
    prepared.prepare_url(url, params)
    return prepared.url or url


class InstrumentedHttpClient(HttpClient):
    """
    HTTP client decorator that publishes request/response events.

    Emits `missive.request` before delegating and `missive.response` once the
    delegate returns or raises. The response event always fires; when the
    delegate raised, its `status` is the one carried by the error (or None).

    Payloads carry `path`, the path of the resolved URL including the base
    URL's own prefix (`/v1/users` for `users`), and `url`, the full URL with
    its query string.

    Args:
        delegate: The underlying HTTP client.
        instrumenter: Where events are published.
    """

    def __init__(self, delegate: HttpClient, instrumenter: Instrumenter):
        assert delegate is not None, "Delegate HTTP client is required."
        assert instrumenter is not None, "Instrumenter is required."

        self.delegate = delegate
        self.instrumenter = instrumenter

    @override
    def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        data: Any = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> requests.Response:
        payload: dict[str, Any] = {
            "request_id": str(ULID()),
            "method": method,
            "path": urlsplit(url).path,
            "url": _resolve_url(url, params),
        }
        self.instrumenter.emit(REQUEST, dict(payload))

        start_time = time.monotonic()
        status: int | None = None
        try:
            response = self.delegate.request(method, url, params, data, headers, timeout)
            status = response.status_code
            return response
        except requests.RequestException as e:
            if e.response is not None:
                status = e.response.status_code
            raise
        finally:
            self.instrumenter.emit(RESPONSE, {
                **payload,
                "status": status,
                "duration": time.monotonic() - start_time,
            })
