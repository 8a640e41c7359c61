"""
Rate limiting for the missive SDK.

Missive enforces a per-token request budget (300 requests per minute and
900 per 15 minutes at the time of writing). `TokenBucketRateLimitedHttpClient`
keeps a connection inside that budget on the client side, and honors the
server's `Retry-After` header when the budget was exceeded anyway.

Example:
    >>> from missive._rate_limit import TokenBucketRateLimitedHttpClient
    >>> client = TokenBucketRateLimitedHttpClient(
    ...     delegate=SessionHttpClient(),
    ...     capacity=300,
    ...     window=60.0,
    ... )
"""

import logging
import math
import threading
import time
from typing import Any, override

import requests

from missive._http import HttpClient
from missive._instrumentation import RATE_LIMIT_HIT, Instrumenter

logger = logging.getLogger(__name__)

HEADER_RETRY_AFTER = "Retry-After"


class TokenBucketRateLimitedHttpClient(HttpClient):
    """
    HTTP client decorator that applies Token Bucket rate limiting to every request.

    Tokens refill in whole units: `floor(elapsed * capacity / window)` tokens are
    added when at least one full token has accrued, capped at `capacity`. When
    the bucket is empty, the caller sleeps for the time one token takes to
    accrue and then consumes it.

    All bucket state is mutated inside a single critical section per request,
    so the decorator is safe to share across threads. Waiting for a token
    happens inside that section too, which serializes callers while the
    bucket is empty.

    After the delegate returns:
        - if the remaining tokens are at or below `soft_limit_threshold`, a
          `missive.rate_limit.hit` event is emitted (no blocking);
        - if the response carries a positive integer `Retry-After` header,
          the caller sleeps that many seconds before getting the response.

    Args:
        delegate: The underlying HTTP client to delegate requests to.
        capacity: Tokens per window, and the maximum the bucket can hold.
        window: Window length in seconds.
        soft_limit_threshold: Remaining-token level that triggers the event.
        instrumenter: Where `missive.rate_limit.hit` is published. Optional.
    """

    def __init__(
        self,
        delegate: HttpClient,
        capacity: int = 300,
        window: float = 60.0,
        soft_limit_threshold: int = 30,
        instrumenter: Instrumenter | None = None,
    ):
        assert delegate is not None, "Delegate HTTP client is required."
        assert capacity is not None, "capacity cannot be None."
        assert capacity > 0, "capacity must be greater than 0."
        assert window is not None, "window cannot be None."
        assert window > 0, "window must be greater than 0."
        assert soft_limit_threshold is not None, "soft_limit_threshold cannot be None."
        assert soft_limit_threshold >= 0, "soft_limit_threshold must be >= 0."

        self.delegate = delegate
        self.capacity = capacity
        self.window = window
        self.soft_limit_threshold = soft_limit_threshold
        self.instrumenter = instrumenter

        # Token bucket state
        self._tokens = float(capacity)
        self._last_refill = time.monotonic()
        self._lock = threading.Lock()

    @property
    def tokens(self) -> float:
        """Tokens currently available (without refilling)."""
        with self._lock:
            return self._tokens

    def _refill(self) -> None:
        """Add whole tokens accrued since the last refill. Caller must hold the lock."""
        now = time.monotonic()
        elapsed = now - self._last_refill
        tokens_to_add = math.floor(elapsed * self.capacity / self.window)

        if tokens_to_add > 0:
            self._tokens = min(self._tokens + tokens_to_add, float(self.capacity))
            self._last_refill = now

    def _acquire_token(self) -> float:
        """
        Consume one token, blocking until one is available.

        Returns:
            The tokens remaining after consumption.
        """
        with self._lock:
            self._refill()

            if self._tokens < 1:
                wait_time = (1.0 - self._tokens) * self.window / self.capacity
                logger.debug(f"Rate limit bucket is empty. Waiting {wait_time:.3f}s for a token...")
                time.sleep(wait_time)
                self._tokens = 1.0

            self._tokens -= 1.0
            return self._tokens

    def _notify_soft_limit(self, remaining: float) -> None:
        if remaining > self.soft_limit_threshold or self.instrumenter is None:
            return
        self.instrumenter.emit(RATE_LIMIT_HIT, {
            "remaining_tokens": remaining,
            "threshold": self.soft_limit_threshold,
        })

    @staticmethod
    def _parse_retry_after(response: requests.Response) -> int:
        """
        Parse the Retry-After header as whole seconds.

        Only the numeric seconds format is supported; HTTP-date values and
        garbage are treated as 0 (no wait).
        """
        header = response.headers.get(HEADER_RETRY_AFTER)
        if not header:
            return 0
        try:
            return int(str(header).strip())
        except ValueError:
            return 0

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
        Acquire a token, delegate the request, then apply post-response backoff.

        This method blocks while the bucket is empty and while honoring a
        server-sent Retry-After header.
        """
        remaining = self._acquire_token()

        try:
            response = self.delegate.request(method, url, params, data, headers, timeout)
        finally:
            # The token is spent even when the send fails.
            self._notify_soft_limit(remaining)

        retry_after = self._parse_retry_after(response)
        if retry_after > 0:
            logger.warning(
                f"⚠️ Server asked to back off (Retry-After: {retry_after}s). "
                f"Sleeping before returning the response..."
            )
            time.sleep(retry_after)

        return response
