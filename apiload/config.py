"""
Load-Test Configuration.

Defines the configuration structure shared by the login controller and
the Locust scenarios.  Every setting has a default, can be overridden
by an environment variable, and is validated once at startup so that a
typo in CI surfaces as a clear error instead of a confusing run.

Profiles (``development``, ``testing``, ``production``) change the
defaults; environment variables always win over profile defaults.  The
profile is picked by the ``env`` argument or the ``LOAD_TEST_ENV``
environment variable.

Key Concepts Demonstrated:
- Explicit, typed configuration instead of a loose key/value bag
- Environment-variable overrides for 12-factor style deployability
- Fail-fast validation with a single dedicated exception type
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields, replace
from typing import Any
from urllib.parse import urljoin


class ConfigError(ValueError):
    """Raised when a configuration value is missing, malformed, or out of range."""


@dataclass(frozen=True)
class LoadTestConfig:
    """
    Settings for a load-test run.

    Timeouts are kept in milliseconds because that is how operators
    think about latency budgets; :attr:`request_timeout` converts them
    to the ``(connect, read)`` seconds tuple that ``requests`` expects.
    """

    base_url: str = "http://test.k6.io"
    login_endpoint: str = "/login"
    auth_endpoint: str = "/auth/token"
    health_endpoint: str = "/health"
    request_timeout_ms: int = 3000
    connection_timeout_ms: int = 1000
    environment: str = "staging"
    user_pool_size: int = 5
    max_retries: int = 3
    retry_interval_seconds: float = 2.0
    # None keeps the backoff uncapped.
    max_backoff_seconds: float | None = None
    max_response_time_ms: float = 2000.0
    refresh_probability: float = 0.3
    failure_threshold: int = 5
    reset_timeout_seconds: float = 30.0
    # Nominal think time for the request/check scenarios.
    sleep_duration_seconds: float = 1.0

    @property
    def login_url(self) -> str:
        """Absolute URL of the login call."""
        return _join_url(self.base_url, self.login_endpoint)

    @property
    def refresh_url(self) -> str:
        """Absolute URL of the token refresh call (``<auth endpoint>/refresh``)."""
        return _join_url(self.base_url, self.auth_endpoint.rstrip("/") + "/refresh")

    @property
    def health_url(self) -> str:
        return _join_url(self.base_url, self.health_endpoint)

    @property
    def request_timeout(self) -> tuple[float, float]:
        """``(connect, read)`` timeout in seconds, as accepted by ``requests``."""
        return (self.connection_timeout_ms / 1000.0, self.request_timeout_ms / 1000.0)

    def validate(self) -> LoadTestConfig:
        """
        Check value ranges and return ``self`` so calls can be chained.

        Raises:
            ConfigError: If any setting is outside its allowed range.
        """
        if not self.base_url:
            raise ConfigError("base_url must not be empty")
        if self.max_retries < 0:
            raise ConfigError("max_retries must be >= 0")
        if self.retry_interval_seconds <= 0:
            raise ConfigError("retry_interval_seconds must be > 0")
        if self.max_backoff_seconds is not None and self.max_backoff_seconds <= 0:
            raise ConfigError("max_backoff_seconds must be > 0 when set")
        if self.user_pool_size <= 0:
            raise ConfigError("user_pool_size must be > 0")
        if self.request_timeout_ms <= 0 or self.connection_timeout_ms <= 0:
            raise ConfigError("timeouts must be > 0 ms")
        if self.max_response_time_ms <= 0:
            raise ConfigError("max_response_time_ms must be > 0")
        if not 0.0 <= self.refresh_probability <= 1.0:
            raise ConfigError("refresh_probability must be between 0 and 1")
        if self.failure_threshold <= 0:
            raise ConfigError("failure_threshold must be > 0")
        if self.reset_timeout_seconds <= 0:
            raise ConfigError("reset_timeout_seconds must be > 0")
        if self.sleep_duration_seconds <= 0:
            raise ConfigError("sleep_duration_seconds must be > 0")
        return self


def _join_url(base_url: str, path: str) -> str:
    return urljoin(base_url.rstrip("/") + "/", path.lstrip("/"))


def _optional_float(raw: str) -> float | None:
    if raw.strip().lower() in ("", "none", "off"):
        return None
    return float(raw)


# Field name -> (environment variable, parser).
ENV_OVERRIDES: dict[str, tuple[str, Callable[[str], Any]]] = {
    "base_url": ("BASE_URL", str),
    "login_endpoint": ("LOGIN_ENDPOINT", str),
    "auth_endpoint": ("AUTH_ENDPOINT", str),
    "health_endpoint": ("HEALTH_ENDPOINT", str),
    "request_timeout_ms": ("REQUEST_TIMEOUT", int),
    "connection_timeout_ms": ("CONNECTION_TIMEOUT", int),
    "environment": ("ENVIRONMENT", str),
    "user_pool_size": ("USER_POOL_SIZE", int),
    "max_retries": ("MAX_RETRIES", int),
    "retry_interval_seconds": ("RETRY_INTERVAL", float),
    "max_backoff_seconds": ("MAX_BACKOFF", _optional_float),
    "max_response_time_ms": ("MAX_RESPONSE_TIME_MS", float),
    "refresh_probability": ("REFRESH_PROBABILITY", float),
    "failure_threshold": ("CIRCUIT_MAX_FAILURES", int),
    "reset_timeout_seconds": ("CIRCUIT_RESET_TIME", float),
    "sleep_duration_seconds": ("SLEEP_DURATION", float),
}

# Profile-specific defaults layered on top of the dataclass defaults.
PROFILES: dict[str, dict[str, Any]] = {
    "development": {},
    "testing": {
        "base_url": "http://localhost:5001",
        "environment": "testing",
        "retry_interval_seconds": 0.01,
        "reset_timeout_seconds": 1.0,
        "request_timeout_ms": 1000,
        "connection_timeout_ms": 500,
    },
    "production": {
        "environment": "production",
        "max_backoff_seconds": 60.0,
    },
}


def load_config(
    env: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> LoadTestConfig:
    """
    Build a validated configuration from profile defaults and env overrides.

    Args:
        env: Profile name.  When *None*, ``LOAD_TEST_ENV`` is consulted,
            falling back to ``"development"``.  Unknown names also fall
            back to ``"development"``.
        environ: Mapping to read overrides from (defaults to
            ``os.environ``); tests pass a plain dict.

    Returns:
        A validated :class:`LoadTestConfig`.

    Raises:
        ConfigError: If an override cannot be parsed or a value is out
            of range.
    """
    if environ is None:
        environ = os.environ
    if env is None:
        env = environ.get("LOAD_TEST_ENV", "development")

    config = replace(LoadTestConfig(), **PROFILES.get(env, PROFILES["development"]))

    overrides: dict[str, Any] = {}
    for field in fields(LoadTestConfig):
        env_name, parser = ENV_OVERRIDES[field.name]
        raw = environ.get(env_name)
        if raw is None:
            continue
        try:
            overrides[field.name] = parser(raw)
        except ValueError as exc:
            raise ConfigError(f"Invalid value for {env_name}: {raw!r}") from exc

    return replace(config, **overrides).validate()
