"""
Integration fixtures: a stub auth API served over real HTTP.

The Flask stub from :mod:`tests.integration.stub_auth_api` runs on a
background werkzeug server bound to an ephemeral port for the whole
session.  Its behaviour is reset before every test.
"""

from __future__ import annotations

import threading
from collections.abc import Generator

import pytest
import requests
from flask import Flask
from werkzeug.serving import make_server

from apiload.circuit_breaker import CircuitBreakerGate
from apiload.config import LoadTestConfig
from apiload.login import LoginExecutor
from apiload.metrics import LoginMetrics
from tests.integration.stub_auth_api import create_stub_app


@pytest.fixture(scope="session")
def stub_app() -> Flask:
    return create_stub_app()


@pytest.fixture(scope="session")
def stub_server_url(stub_app) -> Generator[str, None, None]:
    """Serve the stub app on 127.0.0.1 and yield its base URL."""
    server = make_server("127.0.0.1", 0, stub_app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_port}"
    server.shutdown()
    thread.join(timeout=5)


@pytest.fixture
def stub_api(stub_app, stub_server_url) -> Flask:
    """Reset the stub to healthy, always-succeeding behaviour."""
    stub_app.config.update(
        LOGIN_MODE="ok",
        FAIL_FIRST=0,
        HEALTHY=True,
        LOGIN_HITS=[],
        ISSUED_TOKENS=set(),
    )
    return stub_app


@pytest.fixture
def stub_config(stub_server_url) -> LoadTestConfig:
    return LoadTestConfig(
        base_url=stub_server_url,
        max_retries=2,
        retry_interval_seconds=0.01,
        failure_threshold=5,
        reset_timeout_seconds=30,
    ).validate()


@pytest.fixture
def session() -> Generator[requests.Session, None, None]:
    with requests.Session() as http_session:
        yield http_session


@pytest.fixture
def executor(session, stub_config, stub_api) -> LoginExecutor:
    """Executor wired to the stub; sleeps are recorded, not waited."""
    sleeps: list[float] = []
    login_executor = LoginExecutor(
        session,
        stub_config,
        CircuitBreakerGate(
            failure_threshold=stub_config.failure_threshold,
            reset_timeout_seconds=stub_config.reset_timeout_seconds,
        ),
        LoginMetrics(),
        sleep=sleeps.append,
    )
    login_executor.recorded_sleeps = sleeps
    return login_executor
