"""
Resilient login controller for API load tests.

Provides the pieces the Locust login scenario is built from: run
configuration, a shared circuit breaker, the response rubric, the
credential pool, custom metrics, and the retrying login executor.
"""

from __future__ import annotations

import logging

from apiload.circuit_breaker import CircuitBreakerGate, CircuitState, CircuitStatus
from apiload.config import ConfigError, LoadTestConfig, load_config
from apiload.credentials import Credential, build_login_payload, generate_credential_pool
from apiload.health import HealthCheckError, check_health
from apiload.login import LoginExecutor, backoff_delay
from apiload.metrics import LoginMetrics
from apiload.rubric import RubricResult, evaluate_checks, validate_login_response

__version__ = "0.1.0"

__all__ = [
    "CircuitBreakerGate",
    "CircuitState",
    "CircuitStatus",
    "ConfigError",
    "Credential",
    "HealthCheckError",
    "LoadTestConfig",
    "LoginExecutor",
    "LoginMetrics",
    "RubricResult",
    "backoff_delay",
    "build_login_payload",
    "check_health",
    "configure_logging",
    "evaluate_checks",
    "generate_credential_pool",
    "load_config",
    "validate_login_response",
]


def configure_logging(level: int = logging.INFO) -> None:
    """Apply the default log format when running outside the Locust CLI."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
