"""Dramatiq broker selection for the ingestion actor.

Under pytest, or when ``CHRONOLOGICON_ALLOW_STUB_BROKER`` is truthy, an
in-memory ``StubBroker`` is installed. Otherwise Dramatiq's default broker
is used and a missing broker backend is reported as a configuration error.
"""

from __future__ import annotations

import os
import sys
import threading

import dramatiq
from dramatiq.brokers.stub import StubBroker

_BROKER_LOCK = threading.Lock()
_broker_configured = False

_TRUTHY = frozenset({"1", "true", "yes"})


def _is_running_tests() -> bool:
    """Return True under pytest."""
    return "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ


def stub_broker_allowed() -> bool:
    """Return True when an in-memory broker may stand in for a real one."""
    allow_stub = os.environ.get("CHRONOLOGICON_ALLOW_STUB_BROKER", "")
    return allow_stub.strip().lower() in _TRUTHY or _is_running_tests()


def ensure_broker_configured() -> None:
    """Install the broker the ingestion actor binds to, once per process.

    Raises
    ------
    RuntimeError
        If the default broker's backend is not installed and a stub broker
        is not allowed.

    """
    global _broker_configured

    if _broker_configured:
        return

    with _BROKER_LOCK:
        if _broker_configured:
            return

        if stub_broker_allowed():
            dramatiq.set_broker(StubBroker())
        else:
            try:
                dramatiq.get_broker()
            except ImportError as exc:
                message = (
                    "No Dramatiq broker available. Install a broker backend "
                    "(e.g. dramatiq[rabbitmq]) or set "
                    "CHRONOLOGICON_ALLOW_STUB_BROKER=1 for local runs."
                )
                raise RuntimeError(message) from exc

        _broker_configured = True
