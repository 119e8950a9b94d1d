"""
Response Rubric Checks.

A rubric is an ordered set of named boolean checks applied to one HTTP
response.  A response passes only when every check passes; the result
keeps the per-check outcome so that failure logs and Locust failure
messages can name exactly which rule broke.

Key Concepts Demonstrated:
- Structured pass/fail results instead of a single boolean
- Checks that never raise: a check that blows up counts as failed
- Tolerant JSON parsing for non-JSON error bodies
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

CHECK_STATUS_OK = "status is 200"
CHECK_VALID_TOKEN = "has valid token"
CHECK_RESPONSE_TIME = "response time acceptable"
CHECK_CONTENT_TYPE = "content-type is JSON"

MIN_TOKEN_LENGTH = 10

Check = Callable[[Any], bool]


@dataclass
class RubricResult:
    """Outcome of a rubric evaluation."""

    checks: dict[str, bool] = field(default_factory=dict)
    body: Any = None

    @property
    def passed(self) -> bool:
        return bool(self.checks) and all(self.checks.values())

    @property
    def failed_checks(self) -> list[str]:
        return [name for name, ok in self.checks.items() if not ok]

    def describe_failure(self) -> str:
        """Human-readable summary used in log lines and Locust failures."""
        return "Failed checks: " + ", ".join(self.failed_checks)


def evaluate_checks(subject: Any, checks: Mapping[str, Check]) -> RubricResult:
    """
    Run every check in *checks* against *subject*.

    A check that raises (``KeyError`` on a missing field, ``TypeError``
    on an unexpected shape, and so on) is recorded as failed.
    """
    outcomes: dict[str, bool] = {}
    for name, check in checks.items():
        try:
            outcomes[name] = bool(check(subject))
        except Exception:  # noqa: BLE001 - a crashing check is a failed check
            logger.debug("Check %r raised", name, exc_info=True)
            outcomes[name] = False
    return RubricResult(checks=outcomes)


def parse_json(response: Any) -> Any:
    """Return the decoded JSON body, or ``None`` if there is no parsable body."""
    if response is None:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _status_code(response: Any) -> int | None:
    return getattr(response, "status_code", None) if response is not None else None


def _content_type(response: Any) -> str:
    headers = getattr(response, "headers", None) or {}
    return headers.get("Content-Type") or headers.get("content-type") or ""


def has_valid_token(body: Any) -> bool:
    """True when *body* is an object whose ``token`` is a string longer than 10 chars."""
    if not isinstance(body, dict):
        return False
    token = body.get("token")
    return isinstance(token, str) and len(token) > MIN_TOKEN_LENGTH


def validate_login_response(
    response: Any,
    elapsed_ms: float,
    max_response_time_ms: float = 2000.0,
) -> RubricResult:
    """
    Apply the login rubric to one response.

    Args:
        response: A ``requests``/Locust response, or ``None`` when the
            transport failed before a response existed.
        elapsed_ms: Measured wall time of the request.
        max_response_time_ms: Latency ceiling (exclusive).

    Returns:
        A :class:`RubricResult` whose ``body`` is the parsed JSON (or
        ``None``).
    """
    body = parse_json(response)
    result = evaluate_checks(
        response,
        {
            CHECK_STATUS_OK: lambda r: _status_code(r) == 200,
            CHECK_VALID_TOKEN: lambda _r: has_valid_token(body),
            CHECK_RESPONSE_TIME: lambda r: r is not None and elapsed_ms < max_response_time_ms,
            CHECK_CONTENT_TYPE: lambda r: r is not None and "application/json" in _content_type(r),
        },
    )
    result.body = body
    return result
