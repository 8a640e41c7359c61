"""
Concurrency limiting for the missive SDK.

Bounds how many requests a single connection keeps in flight at once,
regardless of how many threads share it.

Example:
    >>> from missive._concurrency import ConcurrencyLimitedHttpClient
    >>> client = ConcurrencyLimitedHttpClient(delegate=SessionHttpClient(), max_concurrent=5)
"""

import logging
import threading
from typing import Any, override

import requests

from missive._http import HttpClient

logger = logging.getLogger(__name__)


class ConcurrencyLimitedHttpClient(HttpClient):
    """
    HTTP client decorator backed by a counting semaphore.

    Each request acquires one permit before delegating and releases it when the
    delegate returns or raises. Callers block without timeout while all permits
    are held; wake-up order is whatever `threading.Semaphore` provides.

    Args:
        delegate: The underlying HTTP client to delegate requests to.
        max_concurrent: Maximum number of simultaneous in-flight requests.
    """

    def __init__(self, delegate: HttpClient, max_concurrent: int = 5):
        assert delegate is not None, "Delegate HTTP client is required."
        assert max_concurrent is not None, "max_concurrent cannot be None."
        assert max_concurrent > 0, "max_concurrent must be greater than 0."

        self.delegate = delegate
        self.max_concurrent = max_concurrent

        self._semaphore = threading.BoundedSemaphore(max_concurrent)
        self._in_flight = 0
        self._counter_lock = threading.Lock()

    @property
    def in_flight(self) -> int:
        """Number of permits currently held."""
        with self._counter_lock:
            return self._in_flight

    @property
    def available_permits(self) -> int:
        """Number of permits currently free."""
        return self.max_concurrent - self.in_flight

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
        if not self._semaphore.acquire(blocking=False):
            logger.debug(
                f"All {self.max_concurrent} request slots are busy. Waiting for a free slot..."
            )
            self._semaphore.acquire()

        try:
            with self._counter_lock:
                self._in_flight += 1
            try:
                return self.delegate.request(method, url, params, data, headers, timeout)
            finally:
                with self._counter_lock:
                    self._in_flight -= 1
        finally:
            self._semaphore.release()
