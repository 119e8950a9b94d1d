"""Setup-time health probe; a failure here aborts the run before load starts."""

from __future__ import annotations

import logging

import requests

from apiload.config import LoadTestConfig

logger = logging.getLogger(__name__)


class HealthCheckError(RuntimeError):
    """The target system did not report healthy during setup."""


def check_health(url: str, timeout: float | tuple[float, float] = 5) -> None:
    """
    GET *url* and require a ``200`` response.

    Raises:
        HealthCheckError: On any non-200 status or transport error.
    """
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise HealthCheckError(f"System health check failed: {exc}") from exc

    if response.status_code != 200:
        raise HealthCheckError(f"System health check failed: {response.status_code}")

    logger.info("Health check passed for %s", url)


def check_config_target(config: LoadTestConfig) -> None:
    """Probe the health endpoint of the configured target."""
    check_health(config.health_url, timeout=config.request_timeout)
