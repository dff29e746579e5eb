"""Behavioural coverage for the Chronologicon runtime service."""

from __future__ import annotations

import typing as typ

import falcon.testing
import pytest
from pytest_bdd import given, parsers, scenario, then, when

if typ.TYPE_CHECKING:
    from falcon.testing.client import Result


class RuntimeContext(typ.TypedDict, total=False):
    """Shared mutable scenario state."""

    client: falcon.testing.TestClient
    response: Result


@scenario(
    "../runtime.feature",
    "Health endpoint returns ok status",
)
def test_health_endpoint_returns_ok() -> None:
    """Wrap the pytest-bdd scenario for health endpoint."""


@scenario(
    "../runtime.feature",
    "Ready endpoint reports health-only mode",
)
def test_ready_endpoint_reports_mode() -> None:
    """Wrap the pytest-bdd scenario for ready endpoint."""


@pytest.fixture
def runtime_context(monkeypatch: pytest.MonkeyPatch) -> RuntimeContext:
    """Provision a test client for the runtime app without a database."""
    from chronologicon.runtime import create_app

    monkeypatch.delenv("CHRONOLOGICON_DATABASE_URL", raising=False)
    monkeypatch.delenv("CHRONOLOGICON_SEARCH_MAX_LIMIT", raising=False)
    client = falcon.testing.TestClient(create_app())
    return {"client": client}


@given("a running Chronologicon runtime app")
def given_running_app(runtime_context: RuntimeContext) -> None:
    """Ensure the runtime app is available via the test client."""
    assert "client" in runtime_context, "client should be set by fixture"


@when(parsers.parse("I request GET {path}"))
def when_request_get(runtime_context: RuntimeContext, path: str) -> None:
    """Issue a GET request to the given path."""
    client = runtime_context["client"]
    runtime_context["response"] = client.simulate_get(path)


@then(parsers.parse("the response status is {status:d}"))
def then_response_status(runtime_context: RuntimeContext, status: int) -> None:
    """Assert the HTTP response status code."""
    response = runtime_context["response"]
    assert response.status_code == status, (
        f"expected status {status}, got {response.status_code}"
    )


@then(parsers.parse('the response body {key} is "{expected}"'))
def then_response_body_field(
    runtime_context: RuntimeContext, key: str, expected: str
) -> None:
    """Assert one field of the JSON response body."""
    body = runtime_context["response"].json
    assert body.get(key) == expected, f"expected {key}={expected!r}, got {body}"
