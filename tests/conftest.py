"""
Shared fixtures for contract validator tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from otel_contract_validator.models import Span

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: tests that talk to a live telemetry backend")
    config.addinivalue_line("markers", "real_data: tests that depend on data present in the backend")


@pytest.fixture
def now():
    """Fixed reference time used as the validator clock."""
    return NOW


@pytest.fixture
def make_span():
    """Factory building spans that start one minute before NOW by default."""
    counter = {"n": 0}

    def _make(name="POST /payments", service="payment-api", duration_ms=100.0,
              start_time=None, attributes=None, **kwargs):
        counter["n"] += 1
        return Span(
            span_id=kwargs.pop("span_id", f"span-{counter['n']}"),
            trace_id=kwargs.pop("trace_id", "trace-1"),
            name=name,
            service=service,
            duration_ms=duration_ms,
            start_time=start_time or NOW - timedelta(minutes=1),
            attributes=attributes if attributes is not None else {},
        )

    return _make
