"""Resolve the Dramatiq broker the export actor is declared on.

``creel.export.actor`` calls :func:`ensure_broker_configured` before its
``@dramatiq.actor`` decorator runs. Workers are expected to install a real
broker (for example via ``dramatiq --broker``) before importing the actor;
an in-process ``StubBroker`` is only installed for test runs or when
``CREEL_ALLOW_STUB_BROKER`` is truthy.
"""

from __future__ import annotations

import os
import sys
import threading

import dramatiq
from dramatiq.brokers.stub import StubBroker

from creel.errors import ExportConfigError
from creel.logging import get_logger, log_info

logger = get_logger(__name__)

_STUB_FLAG = "CREEL_ALLOW_STUB_BROKER"
_TRUTHY = frozenset({"1", "true", "yes", "on"})

_lock = threading.Lock()
_resolved: dramatiq.Broker | None = None


def stub_broker_allowed() -> bool:
    """Return True when an in-process StubBroker may stand in for a real one."""
    if "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ:
        return True
    return os.environ.get(_STUB_FLAG, "").strip().lower() in _TRUTHY


def _installed_broker() -> dramatiq.Broker | None:
    try:
        return dramatiq.get_broker()
    except (ImportError, LookupError):
        # No broker was set and Dramatiq's RabbitMQ default is unavailable.
        return None


def ensure_broker_configured() -> dramatiq.Broker:
    """Return the broker for export actors, installing a stub if allowed.

    Idempotent and safe to call from several threads.

    Returns
    -------
    dramatiq.Broker
        The broker Dramatiq will use for ``export_batch_job``.

    Raises
    ------
    ExportConfigError
        If no broker is installed and a stub broker is not allowed.

    """
    global _resolved

    with _lock:
        if _resolved is not None:
            return _resolved

        broker = _installed_broker()
        if broker is None:
            if not stub_broker_allowed():
                raise ExportConfigError.broker_missing(_STUB_FLAG)
            broker = StubBroker()
            dramatiq.set_broker(broker)
            log_info(logger, "Using in-process StubBroker for export actors")

        _resolved = broker
        return broker
