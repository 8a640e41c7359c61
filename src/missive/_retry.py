"""
Automatic retries for transient Missive API failures.

Missive answers 429 when the per-token budget is spent and occasionally 5xx
under load. `RetryingHttpClient` sits between the rate limiter and the session
and replays such requests with exponential backoff (0.3s, 0.9s, 2.7s by default).

`Retrying` is the loop underneath it and can be used on its own:

    >>> from missive._retry import Retrying
    >>> for attempt in Retrying(max_retries=3, interval=0.3, backoff_factor=3):
    ...     with attempt:
    ...         contacts = client.contacts.list()
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, override

import requests

from missive._http import HttpClient

logger = logging.getLogger(__name__)


class RetryableError(Exception):
    """
    Subclass this to make an exception retryable by `Retrying`, whatever its
    `retry_on_exceptions` are.
    """


class RetriableResponseError(RetryableError):
    """
    A response came back with a retryable status.

    Raised (and swallowed) inside a retry attempt so that the loop sleeps and
    tries again; the response is kept so `Retry-After` can be read from it.
    """

    def __init__(self, response: requests.Response):
        self.response = response
        super().__init__(f"Retryable HTTP status {response.status_code}")


@dataclass(frozen=True)
class RetryAttempt:
    """What an attempt knows about itself. `attempt_number` is 0-based."""

    attempt_number: int
    max_retries: int

    @property
    def is_last_attempt(self) -> bool:
        return self.attempt_number >= self.max_retries


class Retrying:
    """
    Iterable of attempts, each one a context manager.

    Leaving an attempt with a retryable exception sleeps and moves on to the
    next attempt; any other exception, or a retryable one on the last attempt,
    propagates unchanged. Leave the loop with `break`/`return` on success.

    Args:
        max_retries: Retries after the first attempt. 0 means a single attempt.
        interval: Sleep before the first retry, in seconds.
        backoff_factor: The sleep before retry `n` (0-based) is
            `interval * backoff_factor ** n`.
        retry_on_exceptions: Exception types worth retrying, besides
            `RetryableError` subclasses.
        logger_prefix: Prepended to log lines, e.g. `"GET https://..."`.
    """

    # Longer Retry-After values are ignored in favor of the backoff delay.
    MAX_RETRY_AFTER = 60.0

    def __init__(
        self,
        max_retries: int = 3,
        interval: float = 0.3,
        backoff_factor: float = 3.0,
        retry_on_exceptions: tuple[type[Exception], ...] = (
            requests.Timeout,
            requests.ConnectionError,
        ),
        logger_prefix: str = "",
    ):
        assert max_retries >= 0, f"max_retries must be >= 0, got {max_retries}"
        assert interval > 0, f"interval must be > 0, got {interval}"
        assert backoff_factor >= 1, f"backoff_factor must be >= 1, got {backoff_factor}"
        assert retry_on_exceptions is not None, "retry_on_exceptions cannot be None"

        self.max_retries = max_retries
        self.interval = interval
        self.backoff_factor = backoff_factor
        self.retry_on_exceptions = retry_on_exceptions
        self.logger_prefix = logger_prefix

    def __iter__(self) -> Iterator[_AttemptContext]:
        for number in range(self.max_retries + 1):
            yield _AttemptContext(self, RetryAttempt(attempt_number=number, max_retries=self.max_retries))

    @property
    def _prefix(self) -> str:
        return f"{self.logger_prefix} | " if self.logger_prefix else ""

    def _should_retry(self, exception: Exception) -> bool:
        return isinstance(exception, (RetryableError, *self.retry_on_exceptions))

    def _calculate_wait_time(self, exception: Exception, attempt: int = 0) -> float:
        """
        Backoff delay for `attempt`, or the 429 response's Retry-After when
        that is longer.
        """
        backoff = self.interval * (self.backoff_factor ** attempt)

        if isinstance(exception, RetriableResponseError) and exception.response.status_code == 429:
            retry_after = self._parse_retry_after(exception.response)
            if retry_after is not None and retry_after > backoff:
                return retry_after

        return backoff

    def _parse_retry_after(self, response: requests.Response) -> float | None:
        # Only the delay-seconds form is understood, not HTTP dates.
        header = response.headers.get("Retry-After")
        if not header:
            return None
        try:
            seconds = float(header)
        except (TypeError, ValueError):
            return None

        if seconds > self.MAX_RETRY_AFTER:
            logger.warning(
                f"{self._prefix}Ignoring Retry-After of {seconds}s (above {self.MAX_RETRY_AFTER}s), "
                f"falling back to exponential backoff."
            )
            return None
        return seconds

    def _wait_before_retry(self, exception: Exception, attempt: RetryAttempt) -> None:
        delay = self._calculate_wait_time(exception, attempt.attempt_number)
        logger.warning(
            f"{self._prefix}⚠️ Attempt {attempt.attempt_number + 1}/{self.max_retries + 1} failed: {exception}"
        )
        logger.warning(f"{self._prefix}Retrying in {delay:.1f}s...")
        time.sleep(delay)

    def _give_up(self, exception: Exception) -> None:
        logger.error(f"{self._prefix}❌ Giving up after {self.max_retries} retries. Last error: {exception}")


class _AttemptContext:
    """Decides, on exit, whether the loop goes on (exception swallowed) or stops."""

    def __init__(self, retrying: Retrying, attempt: RetryAttempt):
        self._retrying = retrying
        self._attempt = attempt

    def __enter__(self) -> RetryAttempt:
        return self._attempt

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> bool:
        # KeyboardInterrupt and friends always propagate.
        if not isinstance(exc_val, Exception):
            return False
        if not self._retrying._should_retry(exc_val):
            return False

        if self._attempt.is_last_attempt:
            if self._retrying.max_retries > 0:
                self._retrying._give_up(exc_val)
            return False

        self._retrying._wait_before_retry(exc_val, self._attempt)
        return True


class RetryingHttpClient(HttpClient):
    """
    HTTP client decorator that retries transient failures.

    A request is retried when its method is in `retry_methods` and either the
    response status is in `retry_statuses` or the send raised a timeout or
    connection error. Once retries are exhausted, the last response is
    returned as-is (so the caller classifies it) or the last exception
    propagates.

    Args:
        delegate: The underlying HTTP client to delegate requests to.
        max_retries: Retries after the first attempt (default: 3).
        interval: Delay before the first retry in seconds (default: 0.3).
        backoff_factor: Delay multiplier per retry (default: 3).
        retry_statuses: Status codes that trigger a retry.
        retry_methods: Methods eligible for retry.
    """

    def __init__(
        self,
        delegate: HttpClient,
        max_retries: int = 3,
        interval: float = 0.3,
        backoff_factor: float = 3.0,
        retry_statuses: tuple[int, ...] = (429, 500, 502, 503, 504),
        retry_methods: tuple[str, ...] = ("GET", "POST", "PATCH", "DELETE"),
    ):
        assert delegate is not None, "Delegate HTTP client is required."
        assert retry_statuses is not None, "retry_statuses cannot be None."
        assert retry_methods is not None, "retry_methods cannot be None."

        self.delegate = delegate
        self.max_retries = max_retries
        self.interval = interval
        self.backoff_factor = backoff_factor
        self.retry_statuses = frozenset(retry_statuses)
        self.retry_methods = frozenset(m.upper() for m in retry_methods)

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
        if method.upper() not in self.retry_methods:
            return self.delegate.request(method, url, params, data, headers, timeout)

        retrying = Retrying(
            max_retries=self.max_retries,
            interval=self.interval,
            backoff_factor=self.backoff_factor,
            logger_prefix=f"{method} {url}",
        )
        for attempt in retrying:
            with attempt as current:
                response = self.delegate.request(method, url, params, data, headers, timeout)
                if response.status_code in self.retry_statuses and not current.is_last_attempt:
                    raise RetriableResponseError(response)
                return response

        # Unreachable: the last attempt either returns or raises.
        raise RuntimeError(f"Retry loop for {method} {url} ended without a response")
