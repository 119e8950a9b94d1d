"""
Helper utilities for Locust performance scenarios.

Provides the setup-phase building blocks the Locust entrypoint relies
on (configuration, health probe, credential pool, shared circuit
breaker and metrics) plus small utilities shared by scenario classes.

Nothing here imports Locust, so the helpers can be unit tested as plain
functions without a Locust environment.

Key Concepts Demonstrated:
- One-time setup phase that fails fast before any load is generated
- Process-wide shared state handed to every virtual user explicitly
- Think-time with +/- 20 % variance to avoid lock-step traffic
"""

from __future__ import annotations

import itertools
import logging
import random
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from apiload.circuit_breaker import CircuitBreakerGate
from apiload.config import LoadTestConfig, load_config
from apiload.credentials import Credential, generate_credential_pool
from apiload.health import check_config_target
from apiload.metrics import LoginMetrics

logger = logging.getLogger(__name__)

# Virtual-user ids are only used to label traffic, so a process-local
# counter is enough.
_vu_ids = itertools.count(1)


@dataclass
class LoginFlowContext:
    """State created once in the setup phase and shared by every login user."""

    config: LoadTestConfig
    credentials: list[Credential]
    gate: CircuitBreakerGate
    metrics: LoginMetrics


def prepare_login_flow(
    host: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> LoginFlowContext:
    """
    Run the login scenario's setup phase.

    Args:
        host: The ``--host`` given to Locust; overrides ``BASE_URL``.
        environ: Environment mapping for configuration overrides.

    Returns:
        A ready :class:`LoginFlowContext`.

    Raises:
        apiload.health.HealthCheckError: If the target is not healthy.
        apiload.config.ConfigError: If the configuration is invalid.
    """
    config = load_config(environ=environ)
    if host:
        config = replace(config, base_url=host).validate()

    logger.info("Starting test in %s environment against %s", config.environment, config.base_url)

    check_config_target(config)

    credentials = generate_credential_pool(config.user_pool_size)
    logger.info("Generated user pool with %d test accounts", len(credentials))

    gate = CircuitBreakerGate(
        failure_threshold=config.failure_threshold,
        reset_timeout_seconds=config.reset_timeout_seconds,
    )
    return LoginFlowContext(
        config=config,
        credentials=credentials,
        gate=gate,
        metrics=LoginMetrics(),
    )


def next_vu_id() -> int:
    """Return a process-unique id for a newly started virtual user."""
    return next(_vu_ids)


def auth_header(token: str) -> dict[str, str]:
    """Build bearer auth headers for JSON API requests."""
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def jittered_wait(
    base_seconds: float | None = None,
    environ: Mapping[str, str] | None = None,
) -> Callable[[Any], float]:
    """
    Return a Locust ``wait_time`` function with +/- 20 % variance.

    Args:
        base_seconds: Nominal think-time.  Defaults to
            :attr:`LoadTestConfig.sleep_duration_seconds` (``SLEEP_DURATION``).
        environ: Environment mapping used when *base_seconds* is omitted.

    Raises:
        apiload.config.ConfigError: If ``SLEEP_DURATION`` is malformed.
    """
    if base_seconds is None:
        base_seconds = load_config(environ=environ).sleep_duration_seconds

    def wait_time_func(_user: Any) -> float:
        return base_seconds * random.randint(8, 12) / 10

    return wait_time_func


def select_user_classes(
    selected_tags: Iterable[str],
    tag_to_user_class: Mapping[str, type],
) -> list[type]:
    """Return the user classes registered for *selected_tags*, in registry order."""
    wanted = set(selected_tags)
    return [user_class for tag, user_class in tag_to_user_class.items() if tag in wanted]
