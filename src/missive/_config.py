"""
Configuration for the missive SDK.

Configuration is an explicit, immutable value object (`MissiveConfig`) passed by
reference to `Client`, `Connection` and `Paginator`. There is no global state:
two clients built from two configs never observe each other's settings.

Hierarchy of precedence (highest to lowest):
1. Overrides passed to `MissiveConfig.load()`
2. Environment variables (MISSIVE_*) - when allow_env_override=True
3. Hardcoded defaults (in dataclass fields)

Example:
    >>> from missive import MissiveConfig
    >>>
    >>> # Defaults + env vars
    >>> config = MissiveConfig.load()
    >>> config.rate_limit.capacity
    300
    >>>
    >>> # Custom configuration
    >>> config = MissiveConfig.load(
    ...     client={"api_token": "secret", "request_timeout": 30},
    ...     concurrency={"max_concurrent": 2},
    ...     retry={"max_retries": 5},
    ... )
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field, fields, replace
from typing import Any, Self

DEFAULT_BASE_URL = "https://public-api.missiveapp.com/v1"


# =============================================================================
# Exceptions
# =============================================================================


class ConfigEnvVarError(ValueError):
    """Raised when an environment variable has an invalid value."""

    def __init__(
        self,
        env_var: str,
        value: str,
        expected_type: str,
        cause: Exception | None = None,
    ):
        self.env_var = env_var
        self.value = value
        self.expected_type = expected_type
        super().__init__(f"Invalid value for {env_var}: '{value}' (expected {expected_type})")
        self.__cause__ = cause


class ConfigValidationError(ValueError):
    """Raised when a configuration value fails validation."""

    def __init__(
        self,
        field: str,
        value: Any,
        message: str,
        section: str | None = None,
    ):
        self.field = field
        self.value = value
        self.section = section
        prefix = f"[{section}] " if section else ""
        super().__init__(f"{prefix}Invalid value for '{field}': {value!r}. {message}")


# =============================================================================
# Environment Variables
# =============================================================================


def _int_tuple(raw: str) -> tuple[int, ...]:
    return tuple(int(part) for part in raw.split(",") if part.strip())


def _upper_str_tuple(raw: str) -> tuple[str, ...]:
    return tuple(part.strip().upper() for part in raw.split(",") if part.strip())


class EnvVars:
    """
    Utility class for reading environment variables with type conversion.

    Example:
        >>> EnvVars.get("MISSIVE_REQUEST_TIMEOUT", type_hint=int)
        30
        >>> EnvVars.get("UNDEFINED_VAR")
        None
    """

    @staticmethod
    def get(
        var_name: str,
        type_hint: Any = str,
        converter: Callable[[str], Any] | None = None,
    ) -> Any:
        """
        Read an environment variable with optional type conversion.

        Args:
            var_name: The environment variable name.
            type_hint: Type hint used to infer the converter (ignored if converter is provided).
            converter: Custom converter function (takes precedence over type_hint).

        Returns:
            The converted value, or None if env var is not set/empty.

        Raises:
            ConfigEnvVarError: If the value cannot be converted.
        """
        raw_value = os.environ.get(var_name)
        if not raw_value:  # None or empty string
            return None

        actual_converter = converter or EnvVars._infer_converter(type_hint)
        try:
            return actual_converter(raw_value)
        except (ValueError, TypeError) as e:
            raise ConfigEnvVarError(
                env_var=var_name,
                value=raw_value,
                expected_type=type_hint.__name__ if hasattr(type_hint, "__name__") else str(type_hint),
                cause=e,
            ) from e

    @staticmethod
    def _infer_converter(type_hint: Any) -> Callable[[str], Any]:
        """
        Infer converter function from type hint.

        Handles both actual types and string annotations (PEP 563).
        """
        type_str = str(type_hint)

        if type_hint is int or type_str in ("int", "int | None"):
            return int
        if type_hint is float or type_str in ("float", "float | None"):
            return float
        if type_hint is bool or type_str == "bool":
            return lambda v: v.lower() in ("true", "1", "yes")
        return str


# =============================================================================
# Base Class
# =============================================================================


@dataclass(frozen=True)
class OverridableConfig:
    """
    Base class for immutable configuration dataclasses.

    Provides `.with_overrides()` for creating new instances with partial
    field updates, rejecting unknown field names early.

    Example:
        >>> config = RetryConfig()
        >>> custom = config.with_overrides({"max_retries": 5})
        >>> custom.max_retries
        5
    """

    def with_overrides(
        self,
        overrides: dict[str, Any],
        allow_none_fields: set[str] | None = None,
    ) -> Self:
        """
        Return a new instance with specified fields overridden.

        Args:
            overrides: Dict of field names to new values.
                       Only existing fields are allowed.
            allow_none_fields: Set of field names that accept None as a valid value.
                       By default, None values are filtered out.

        Returns:
            New instance with updated values.

        Raises:
            ValueError: If overrides contains unknown field names.
        """
        if not overrides:
            return self

        valid_fields = {f.name for f in fields(self)}
        invalid_fields = set(overrides.keys()) - valid_fields

        if invalid_fields:
            raise ValueError(
                f"Unknown config fields: {invalid_fields}. "
                f"Valid fields are: {valid_fields}"
            )

        allow_none = allow_none_fields or set()
        filtered = {k: v for k, v in overrides.items() if v is not None or k in allow_none}
        return replace(self, **filtered) if filtered else self

    def with_env_vars(self) -> Self:
        """
        Return new instance with environment variables applied.

        Reads env vars declared in field metadata and applies them as overrides.

        Raises:
            ConfigEnvVarError: If an env var has an invalid value.
        """
        overrides: dict[str, Any] = {}
        for f in fields(self):
            env_var = f.metadata.get("env")
            if env_var:
                value = EnvVars.get(
                    var_name=env_var,
                    type_hint=f.type,
                    converter=f.metadata.get("converter"),
                )
                if value is not None:
                    overrides[f.name] = value
        return self.with_overrides(overrides)


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass(frozen=True)
class ClientConfig(OverridableConfig):
    """
    Connection settings for the Missive API.

    Attributes:
        api_token: Personal API token used as Bearer credential.
            Env var: MISSIVE_API_TOKEN

        base_url: Base URL of the Missive public API.
            Env var: MISSIVE_BASE_URL

        request_timeout: Per-request timeout in seconds. None disables the timeout.
            Env var: MISSIVE_REQUEST_TIMEOUT
    """

    api_token: str | None = field(default=None, metadata={"env": "MISSIVE_API_TOKEN"}, repr=False)
    base_url: str = field(default=DEFAULT_BASE_URL, metadata={"env": "MISSIVE_BASE_URL"})
    request_timeout: float | None = field(default=None, metadata={"env": "MISSIVE_REQUEST_TIMEOUT"})

    def validate(self) -> Self:
        """Validate client configuration fields."""
        if self.api_token is not None and self.api_token == "":
            raise ConfigValidationError(
                "api_token", self.api_token,
                "Must not be empty string.", section="client"
            )
        if not (self.base_url.startswith("http://") or self.base_url.startswith("https://")):
            raise ConfigValidationError(
                "base_url", self.base_url,
                "Must start with 'http://' or 'https://'.", section="client"
            )
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ConfigValidationError(
                "request_timeout", self.request_timeout,
                "Must be greater than 0 (or None to disable).", section="client"
            )
        return self


@dataclass(frozen=True)
class RateLimitConfig(OverridableConfig):
    """
    Token bucket settings.

    Attributes:
        capacity: Tokens available per window (and the bucket's maximum).
            Env var: MISSIVE_RATE_LIMIT_CAPACITY

        window: Window length in seconds over which `capacity` tokens refill.
            Env var: MISSIVE_RATE_LIMIT_WINDOW

        soft_limit_threshold: Remaining-token level at or below which a
            `missive.rate_limit.hit` event is emitted.
            Env var: MISSIVE_RATE_LIMIT_SOFT_LIMIT_THRESHOLD
    """

    capacity: int = field(default=300, metadata={"env": "MISSIVE_RATE_LIMIT_CAPACITY"})
    window: float = field(default=60.0, metadata={"env": "MISSIVE_RATE_LIMIT_WINDOW"})
    soft_limit_threshold: int = field(default=30, metadata={"env": "MISSIVE_RATE_LIMIT_SOFT_LIMIT_THRESHOLD"})

    def validate(self) -> Self:
        """Validate rate limit configuration fields."""
        if self.capacity <= 0:
            raise ConfigValidationError(
                "capacity", self.capacity,
                "Must be greater than 0.", section="rate_limit"
            )
        if self.window <= 0:
            raise ConfigValidationError(
                "window", self.window,
                "Must be greater than 0.", section="rate_limit"
            )
        if self.soft_limit_threshold < 0:
            raise ConfigValidationError(
                "soft_limit_threshold", self.soft_limit_threshold,
                "Must be >= 0.", section="rate_limit"
            )
        return self


@dataclass(frozen=True)
class ConcurrencyConfig(OverridableConfig):
    """
    Concurrency limiter settings.

    Attributes:
        max_concurrent: Maximum simultaneous in-flight requests per connection.
            Env var: MISSIVE_CONCURRENCY_MAX_CONCURRENT
    """

    max_concurrent: int = field(default=5, metadata={"env": "MISSIVE_CONCURRENCY_MAX_CONCURRENT"})

    def validate(self) -> Self:
        """Validate concurrency configuration fields."""
        if self.max_concurrent <= 0:
            raise ConfigValidationError(
                "max_concurrent", self.max_concurrent,
                "Must be greater than 0.", section="concurrency"
            )
        return self


@dataclass(frozen=True)
class RetryConfig(OverridableConfig):
    """
    Automatic retry settings.

    Attributes:
        max_retries: Retries after the first attempt. Use 0 to disable.
            Env var: MISSIVE_RETRY_MAX_RETRIES

        interval: Delay in seconds before the first retry.
            Env var: MISSIVE_RETRY_INTERVAL

        backoff_factor: Multiplier applied to the delay after each retry
            (0.3s, 0.9s, 2.7s with the defaults).
            Env var: MISSIVE_RETRY_BACKOFF_FACTOR

        retry_statuses: HTTP status codes that trigger a retry.
            Env var: MISSIVE_RETRY_STATUSES (comma-separated)

        retry_methods: HTTP methods eligible for retry.
            Env var: MISSIVE_RETRY_METHODS (comma-separated)
    """

    max_retries: int = field(default=3, metadata={"env": "MISSIVE_RETRY_MAX_RETRIES"})
    interval: float = field(default=0.3, metadata={"env": "MISSIVE_RETRY_INTERVAL"})
    backoff_factor: float = field(default=3.0, metadata={"env": "MISSIVE_RETRY_BACKOFF_FACTOR"})
    retry_statuses: tuple[int, ...] = field(
        default=(429, 500, 502, 503, 504),
        metadata={"env": "MISSIVE_RETRY_STATUSES", "converter": _int_tuple},
    )
    retry_methods: tuple[str, ...] = field(
        default=("GET", "POST", "PATCH", "DELETE"),
        metadata={"env": "MISSIVE_RETRY_METHODS", "converter": _upper_str_tuple},
    )

    def validate(self) -> Self:
        """Validate retry configuration fields."""
        if self.max_retries < 0:
            raise ConfigValidationError(
                "max_retries", self.max_retries,
                "Must be >= 0.", section="retry"
            )
        if self.interval <= 0:
            raise ConfigValidationError(
                "interval", self.interval,
                "Must be greater than 0.", section="retry"
            )
        if self.backoff_factor < 1:
            raise ConfigValidationError(
                "backoff_factor", self.backoff_factor,
                "Must be >= 1.", section="retry"
            )
        return self


@dataclass(frozen=True)
class MissiveConfig:
    """
    Root configuration object.

    Attributes:
        client: Token, base URL and timeout.
        rate_limit: Token bucket settings.
        concurrency: Concurrency limiter settings.
        retry: Automatic retry settings.

    Example:
        >>> config = MissiveConfig.load(rate_limit={"capacity": 900, "window": 900.0})
        >>> client = Client(config=config)
    """

    client: ClientConfig = field(default_factory=ClientConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    concurrency: ConcurrencyConfig = field(default_factory=ConcurrencyConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)

    @classmethod
    def load(
        cls,
        *,
        client: dict[str, Any] | None = None,
        rate_limit: dict[str, Any] | None = None,
        concurrency: dict[str, Any] | None = None,
        retry: dict[str, Any] | None = None,
        allow_env_override: bool = True,
    ) -> MissiveConfig:
        """
        Build a validated configuration.

        Args:
            client: ClientConfig overrides (api_token, base_url, request_timeout).
            rate_limit: RateLimitConfig overrides (capacity, window, soft_limit_threshold).
            concurrency: ConcurrencyConfig overrides (max_concurrent).
            retry: RetryConfig overrides (max_retries, interval, backoff_factor, ...).
            allow_env_override: If True (default), MISSIVE_* env vars are used as
                fallback for fields NOT provided. If False, env vars are ignored.

        Returns:
            The validated MissiveConfig instance.

        Raises:
            ValueError: If any dict contains unknown field names.
            ConfigEnvVarError: If an env var has an invalid value.
            ConfigValidationError: If any config value fails validation.
        """
        base = cls()
        if allow_env_override:
            base = base.with_env_vars()

        return base.with_section_overrides(
            client=client,
            rate_limit=rate_limit,
            concurrency=concurrency,
            retry=retry,
        ).validate()

    def with_env_vars(self) -> MissiveConfig:
        """Return a new config with environment variables applied to every section."""
        return MissiveConfig(
            client=self.client.with_env_vars(),
            rate_limit=self.rate_limit.with_env_vars(),
            concurrency=self.concurrency.with_env_vars(),
            retry=self.retry.with_env_vars(),
        )

    def with_section_overrides(
        self,
        *,
        client: dict[str, Any] | None = None,
        rate_limit: dict[str, Any] | None = None,
        concurrency: dict[str, Any] | None = None,
        retry: dict[str, Any] | None = None,
    ) -> MissiveConfig:
        """Return a new config with per-section overrides applied."""
        return MissiveConfig(
            client=self.client.with_overrides(client or {}, allow_none_fields={"request_timeout"}),
            rate_limit=self.rate_limit.with_overrides(rate_limit or {}),
            concurrency=self.concurrency.with_overrides(concurrency or {}),
            retry=self.retry.with_overrides(retry or {}),
        )

    def validate(self) -> MissiveConfig:
        """
        Validate every section.

        Raises:
            ConfigValidationError: If any config value is invalid.
        """
        self.client.validate()
        self.rate_limit.validate()
        self.concurrency.validate()
        self.retry.validate()
        return self
