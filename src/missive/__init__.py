"""
Missive SDK for Python.

A client for the Missive team inbox public API. Every request goes through
one pipeline per client: instrumentation, a concurrency limit, a token-bucket
rate limit and automatic retries, in that order.

Quick Start:
    >>> from missive import Client
    >>> client = Client(api_token="...")
    >>> conversations = client.conversations.list(inbox=True, limit=10)
    >>> for contact in client.contacts.iter_all(contact_book="book-id"):
    ...     print(contact.get("email"))

Configuration:
    >>> from missive import Client, MissiveConfig
    >>> config = MissiveConfig.load(
    ...     client={"request_timeout": 30},
    ...     rate_limit={"capacity": 900, "window": 900.0},
    ...     retry={"max_retries": 5},
    ... )
    >>> client = Client(api_token="...", config=config)

Observability:
    >>> from missive import Instrumenter, LoggingEventListener
    >>> client = Client(api_token="...", instrumenter=Instrumenter([LoggingEventListener()]))

Main Classes:
    - Client: Entry point exposing one attribute per API resource.
    - MissiveObject: Read-only view over returned entities.
    - Connection: Authenticated request pipeline.
    - Paginator: Offset and until-cursor pagination.
    - Signature: Webhook signature helpers.

Errors:
    - MissiveError: Base class of every SDK error.
    - AuthenticationError, NotFoundError, RateLimitError, ServerError, MissingTokenError.
"""

from importlib.metadata import version as _get_version

__version__ = _get_version("missive-sdk")

from missive._client import Client
from missive._concurrency import ConcurrencyLimitedHttpClient
from missive._config import (
    ClientConfig,
    ConcurrencyConfig,
    ConfigEnvVarError,
    ConfigValidationError,
    MissiveConfig,
    RateLimitConfig,
    RetryConfig,
)
from missive._connection import Connection
from missive._errors import (
    AuthenticationError,
    MissingTokenError,
    MissiveError,
    NotFoundError,
    RateLimitError,
    ServerError,
    classify,
)
from missive._http import HttpClient, InstrumentedHttpClient, SessionHttpClient
from missive._instrumentation import (
    Instrumenter,
    LoggingEventListener,
    MissiveEventListener,
)
from missive._object import MissiveObject
from missive._paginator import Paginator
from missive._rate_limit import TokenBucketRateLimitedHttpClient
from missive._retry import RetryableError, Retrying, RetryingHttpClient
from missive._signature import Signature

__all__ = [
    "__version__",
    # Client
    "Client",
    "Connection",
    "Paginator",
    "MissiveObject",
    "Signature",
    # Configuration
    "MissiveConfig",
    "ClientConfig",
    "RateLimitConfig",
    "ConcurrencyConfig",
    "RetryConfig",
    "ConfigEnvVarError",
    "ConfigValidationError",
    # Errors
    "MissiveError",
    "MissingTokenError",
    "AuthenticationError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    "classify",
    # HTTP pipeline
    "HttpClient",
    "SessionHttpClient",
    "InstrumentedHttpClient",
    "ConcurrencyLimitedHttpClient",
    "TokenBucketRateLimitedHttpClient",
    "RetryingHttpClient",
    # Retry
    "Retrying",
    "RetryableError",
    # Observability
    "Instrumenter",
    "MissiveEventListener",
    "LoggingEventListener",
]
