"""
Login attempt controller.

:class:`LoginExecutor` performs one logical login: it asks the circuit
breaker for permission, sends the request, validates the response
against the login rubric, and retries with exponential backoff until a
response passes or the retry budget is spent.

Every per-attempt problem (bad status, short token, non-JSON body,
timeout, refused connection) is absorbed here and surfaced only through
metrics and log lines.  Callers get the parsed body on success and
``None`` otherwise; ``None`` never means "abort the run".

The executor works with any ``requests``-compatible session.  Under
Locust, pass the user's ``HttpSession`` with ``catch_response=True`` so
that each attempt is marked as a success or failure in Locust's own
statistics according to the rubric, not just the status code.

Key Concepts Demonstrated:
- Retry with uncapped (optionally capped) exponential backoff, no jitter
- Circuit-breaker short-circuiting before any network call
- Injectable ``sleep`` and ``clock`` for deterministic tests
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

import requests

from apiload.circuit_breaker import CircuitBreakerGate
from apiload.config import LoadTestConfig
from apiload.credentials import Credential, build_login_payload, mask_identifier
from apiload.metrics import LoginMetrics
from apiload.rubric import RubricResult, validate_login_response

logger = logging.getLogger(__name__)

USER_AGENT = "Locust/LoadTest"
LOGIN_REQUEST_NAME = "login [POST]"
REFRESH_REQUEST_NAME = "token refresh [POST]"


def backoff_delay(
    retry_interval_seconds: float,
    attempt_index: int,
    max_backoff_seconds: float | None = None,
) -> float:
    """
    Delay to wait after the failed attempt number *attempt_index* (0-based).

    ``retry_interval_seconds * 2 ** attempt_index``, limited to
    *max_backoff_seconds* when one is given.
    """
    delay = retry_interval_seconds * (2 ** attempt_index)
    if max_backoff_seconds is not None:
        delay = min(delay, max_backoff_seconds)
    return delay


class LoginExecutor:
    """
    Run login attempts for one virtual user.

    The circuit breaker and metrics are normally shared by every user
    in the process; the HTTP client is per user.

    Args:
        client: ``requests.Session`` or Locust ``HttpSession``.
        config: Run configuration (URLs, retry budget, timeouts).
        gate: Shared circuit breaker.
        metrics: Shared metric registry; a private one is created when
            omitted.
        sleep: Blocking sleep used between retries.  Under Locust the
            patched ``time.sleep`` only pauses the calling user.
        clock: Monotonic clock in seconds used to time requests.
        catch_response: Use Locust's ``catch_response`` protocol.
    """

    def __init__(
        self,
        client: Any,
        config: LoadTestConfig,
        gate: CircuitBreakerGate,
        metrics: LoginMetrics | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.perf_counter,
        catch_response: bool = False,
    ) -> None:
        self.client = client
        self.config = config
        self.gate = gate
        self.metrics = metrics if metrics is not None else LoginMetrics()
        self._sleep = sleep
        self._clock = clock
        self.catch_response = catch_response

    def perform_login(self, credential: Credential, vu_id: int = 0) -> dict[str, Any] | None:
        """
        Log in with *credential*, retrying on failure.

        Returns:
            The parsed login response body, or ``None`` when the circuit
            is open or every attempt failed.
        """
        masked = mask_identifier(credential.identifier)
        if not self.gate.allow():
            logger.warning("Login for user %s skipped: circuit open", masked)
            return None

        body = self._prepare_payload(credential, vu_id)
        max_retries = self.config.max_retries

        for attempt in range(max_retries + 1):
            result = self._attempt(body, vu_id, attempt)

            if result.passed:
                self.metrics.successful_logins.add(1)
                self.metrics.login_failures.add(False)
                self.gate.record_result(True)
                logger.info("Login successful for user %s", masked)
                return result.body

            self.metrics.login_failures.add(True)
            self.gate.record_result(False)

            if attempt < max_retries:
                delay = backoff_delay(
                    self.config.retry_interval_seconds,
                    attempt,
                    self.config.max_backoff_seconds,
                )
                logger.warning(
                    "Login attempt %d failed (%s). Retrying in %ss",
                    attempt + 1,
                    result.describe_failure(),
                    delay,
                )
                self._sleep(delay)
            else:
                logger.warning(
                    "Login attempt %d failed (%s). No retries left",
                    attempt + 1,
                    result.describe_failure(),
                )

        self.gate.record_result(False)
        logger.error("Login failed for user %s after %d attempts", masked, max_retries + 1)
        return None

    def refresh_token(self, token: str) -> bool:
        """
        Exchange *token* for a new one.

        Returns:
            ``True`` when the refresh endpoint answered ``200``.
        """
        body = json.dumps({"token": token, "grant_type": "refresh_token"})
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        }
        if self.catch_response:
            with self.client.post(
                self.config.refresh_url,
                data=body,
                headers=headers,
                timeout=self.config.request_timeout,
                name=REFRESH_REQUEST_NAME,
                catch_response=True,
            ) as response:
                succeeded = response.status_code == 200
                if succeeded:
                    response.success()
                else:
                    response.failure(f"Expected 200, got {response.status_code}")
        else:
            try:
                response = self.client.post(
                    self.config.refresh_url,
                    data=body,
                    headers=headers,
                    timeout=self.config.request_timeout,
                )
                succeeded = response.status_code == 200
            except requests.RequestException as exc:
                logger.warning("Token refresh request failed: %s", exc)
                succeeded = False

        self.metrics.token_refresh_failures.add(not succeeded)
        if not succeeded:
            logger.warning("Token refresh failed")
        return succeeded

    def _prepare_payload(self, credential: Credential, vu_id: int) -> str:
        started = self._clock()
        body = json.dumps(build_login_payload(credential, vu_id))
        self.metrics.data_processing_time_ms.add((self._clock() - started) * 1000.0)
        return body

    def _headers(self, vu_id: int) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            "X-Request-ID": str(uuid.uuid4()),
            "X-Test-VU": str(vu_id),
        }

    def _attempt(self, body: str, vu_id: int, attempt: int) -> RubricResult:
        """Send one login request and apply the rubric."""
        request_kwargs = {
            "data": body,
            "headers": self._headers(vu_id),
            "timeout": self.config.request_timeout,
        }
        started = self._clock()

        if self.catch_response:
            with self.client.post(
                self.config.login_url,
                name=LOGIN_REQUEST_NAME,
                catch_response=True,
                **request_kwargs,
            ) as response:
                elapsed_ms = (self._clock() - started) * 1000.0
                result = validate_login_response(
                    response, elapsed_ms, self.config.max_response_time_ms
                )
                if result.passed:
                    response.success()
                else:
                    response.failure(result.describe_failure())
        else:
            try:
                response = self.client.post(self.config.login_url, **request_kwargs)
            except requests.RequestException as exc:
                # Timeouts and connection errors are ordinary failed attempts.
                logger.warning("Login attempt %d raised %s", attempt + 1, exc)
                response = None
            elapsed_ms = (self._clock() - started) * 1000.0
            result = validate_login_response(
                response, elapsed_ms, self.config.max_response_time_ms
            )

        self.metrics.request_duration_ms.add(elapsed_ms)
        self.metrics.data_sent_bytes.add(len(body))
        return result
