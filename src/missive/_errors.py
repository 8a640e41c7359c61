"""
Error taxonomy for the missive SDK.

Every failure surfaced by `Connection.request()` is an instance of `MissiveError`
or one of its subclasses, chosen from the HTTP status code of the response:

    - AuthenticationError: 401 / 403
    - NotFoundError: 404
    - RateLimitError: 429
    - ServerError: 500..599
    - MissiveError: anything else (including malformed responses)

Example:
    >>> from missive import Client, NotFoundError
    >>> try:
    ...     client.conversations.get(id="missing")
    ... except NotFoundError as e:
    ...     print(f"Not found: {e} (HTTP {e.status})")
"""

from typing import Any


class MissiveError(Exception):
    """
    Base class for all errors raised by the missive SDK.

    Attributes:
        message: Human-readable error message.
        status: HTTP status code of the failed response, if any.
        body: Parsed body of the failed response, if any.
    """

    def __init__(self, message: str, status: int | None = None, body: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body


class MissingTokenError(MissiveError):
    """Raised when a client is created without an API token."""
    pass


class AuthenticationError(MissiveError):
    """Raised on HTTP 401 (unauthorized) or 403 (forbidden)."""
    pass


class NotFoundError(MissiveError):
    """Raised on HTTP 404, or when a lookup returns no matching entity."""
    pass


class RateLimitError(MissiveError):
    """Raised on HTTP 429 once retries are exhausted."""
    pass


class ServerError(MissiveError):
    """Raised on HTTP 5xx, or when the API acknowledges a write without returning it."""
    pass


def classify(status: int, body: Any = None) -> type[MissiveError]:
    """
    Map an HTTP status code to the error class that represents it.

    The mapping is total: unknown or even successful status codes map to the
    generic `MissiveError` instead of failing.

    Args:
        status: The HTTP status code.
        body: The parsed response body (unused by the mapping itself).

    Returns:
        The MissiveError subclass for the given status.
    """
    if status in (401, 403):
        return AuthenticationError
    if status == 404:
        return NotFoundError
    if status == 429:
        return RateLimitError
    if 500 <= status <= 599:
        return ServerError
    return MissiveError


def extract_error_message(status: int, body: Any) -> str:
    """
    Extract a human-readable message from an error response body.

    A string body is used verbatim; a dict body contributes its `error` field;
    otherwise the message falls back to `"HTTP {status}"`.
    """
    if isinstance(body, str) and body:
        return body
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {status}"


def error_from_response(status: int, body: Any) -> MissiveError:
    """Build (but do not raise) the typed error for a failed response."""
    error_class = classify(status, body)
    return error_class(extract_error_message(status, body), status=status, body=body)
