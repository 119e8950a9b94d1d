"""
Credential pool and login payload factories.

The pool is generated once during setup and read-only afterwards.
Identifiers combine the pool index with a random suffix, so collisions
across runs are unlikely but not impossible.

Key Concepts Demonstrated:
- Immutable credential records (frozen dataclass)
- Randomised identities to avoid rate limiting and data pollution
- Per-attempt correlation metadata for tracing requests server-side
"""

from __future__ import annotations

import random
import string
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

APP_VERSION = "2.5.0"
OS_TYPE = "Test"

_CHARSET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class Credential:
    identifier: str
    secret: str
    correlation_id: str


def random_string(length: int) -> str:
    """Return *length* random characters drawn from ``[a-z0-9]``."""
    return "".join(random.choices(_CHARSET, k=length))


def mask_identifier(identifier: str) -> str:
    """Shorten an identifier for log output, e.g. ``user0***``."""
    return f"{identifier[:5]}***"


def generate_credential_pool(pool_size: int) -> list[Credential]:
    """
    Generate *pool_size* test credentials.

    Args:
        pool_size: Number of credentials to create; must be positive.

    Returns:
        An ordered list of fresh :class:`Credential` values.

    Raises:
        ValueError: If *pool_size* is not positive.
    """
    if pool_size <= 0:
        raise ValueError("pool_size must be > 0")

    return [
        Credential(
            identifier=f"user{index}_{random_string(8)}@example.com",
            secret=f"Secure{random_string(12)}!{index}",
            correlation_id=str(uuid.uuid4()),
        )
        for index in range(pool_size)
    ]


def build_login_payload(
    credential: Credential,
    vu_id: int,
    test_run_id: str | None = None,
) -> dict[str, Any]:
    """
    Build the JSON body for one login call.

    ``clientInfo`` identifies the virtual user with a documentation-range
    IP (192.0.2.0/24) so test traffic is easy to filter out of access logs.
    """
    return {
        "email": credential.identifier,
        "password": credential.secret,
        "clientInfo": {
            "deviceId": f"locust-load-test-{vu_id}",
            "appVersion": APP_VERSION,
            "osType": OS_TYPE,
            "ipAddress": f"192.0.2.{vu_id % 255}",
        },
        "metadata": {
            "testRunId": test_run_id or str(uuid.uuid4()),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "correlationId": f"corr-{credential.correlation_id}",
        },
    }
