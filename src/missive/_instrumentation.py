"""
Observability events for the missive SDK.

The request pipeline and the paginator publish events through an `Instrumenter`.
Listeners are read-only observers: they can log, collect metrics or trace, but
must not alter requests or responses. A listener that raises is logged and
skipped; it never interrupts the request that emitted the event.

Events:
    - missive.request           {request_id, method, path, url}
    - missive.response          {request_id, method, path, url, status, duration}
    - missive.rate_limit.hit    {remaining_tokens, threshold}
    - missive.paginator.page    {page_number, url}

Example:
    >>> class MetricsListener(MissiveEventListener):
    ...     def on_response(self, payload):
    ...         statsd.timing("missive.request", payload["duration"])
    >>>
    >>> client = Client(api_token="...", instrumenter=Instrumenter([MetricsListener()]))
"""

import logging
import threading
from typing import Any, override

logger = logging.getLogger(__name__)

REQUEST = "missive.request"
RESPONSE = "missive.response"
RATE_LIMIT_HIT = "missive.rate_limit.hit"
PAGINATOR_PAGE = "missive.paginator.page"

_HOOKS = {
    REQUEST: "on_request",
    RESPONSE: "on_response",
    RATE_LIMIT_HIT: "on_rate_limit_hit",
    PAGINATOR_PAGE: "on_paginator_page",
}


class MissiveEventListener:
    """
    Base class for observing SDK events.

    `on_event()` receives every event and routes the known ones to a dedicated
    hook. All hooks have empty default implementations, so subclasses only need
    to override what they care about.
    """

    def on_event(self, event: str, payload: dict[str, Any]) -> None:
        """
        Called for every emitted event.

        Args:
            event: The event name (e.g., 'missive.request').
            payload: Event data. Must be treated as read-only.
        """
        hook = _HOOKS.get(event)
        if hook:
            getattr(self, hook)(payload)

    def on_request(self, payload: dict[str, Any]) -> None:
        """Called right before a request enters the pipeline."""
        pass

    def on_response(self, payload: dict[str, Any]) -> None:
        """Called when a request leaves the pipeline, with or without a response."""
        pass

    def on_rate_limit_hit(self, payload: dict[str, Any]) -> None:
        """Called when remaining rate-limit tokens drop to the soft threshold."""
        pass

    def on_paginator_page(self, payload: dict[str, Any]) -> None:
        """Called before each page fetch."""
        pass


class LoggingEventListener(MissiveEventListener):
    """Writes every event to the `missive` logger."""

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logging.getLogger("missive")

    @override
    def on_request(self, payload: dict[str, Any]) -> None:
        self._log.debug(f"{payload['request_id']} | ➡️ {payload['method']} {payload['url']}")

    @override
    def on_response(self, payload: dict[str, Any]) -> None:
        self._log.debug(
            f"{payload['request_id']} | ⬅️ {payload['method']} {payload['url']} "
            f"-> {payload['status']} in {payload['duration']:.3f}s"
        )

    @override
    def on_rate_limit_hit(self, payload: dict[str, Any]) -> None:
        self._log.warning(
            f"⚠️ Rate limit soft threshold reached: {payload['remaining_tokens']:.0f} tokens left "
            f"(threshold={payload['threshold']})"
        )

    @override
    def on_paginator_page(self, payload: dict[str, Any]) -> None:
        self._log.debug(f"Fetching page {payload['page_number']}: {payload['url']}")


class Instrumenter:
    """
    Thread-safe event dispatcher.

    Args:
        listeners: Initial listeners. More can be added with `subscribe()`.
    """

    def __init__(self, listeners: list[MissiveEventListener] | None = None):
        self._listeners: list[MissiveEventListener] = list(listeners or [])
        self._lock = threading.Lock()

    @property
    def listeners(self) -> list[MissiveEventListener]:
        """Snapshot of the registered listeners."""
        with self._lock:
            return list(self._listeners)

    def subscribe(self, listener: MissiveEventListener) -> None:
        """Register a listener."""
        assert listener is not None, "listener cannot be None."
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: MissiveEventListener) -> None:
        """Remove a previously registered listener (no-op if absent)."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        """
        Notify all listeners about an event.

        Exceptions raised by listeners are logged but do not interrupt execution.
        """
        for listener in self.listeners:
            try:
                listener.on_event(event, payload)
            except Exception as e:
                listener_name = listener.__class__.__name__
                logger.warning(
                    f"Event listener `{listener_name}` raised an exception on `{event}`: {e}"
                )
