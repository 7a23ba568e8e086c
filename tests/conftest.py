"""Shared pytest fixtures for Staybook tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402


@pytest.fixture(autouse=True)
def _booking_env(monkeypatch):
    """Run every test with default booking policy and a known JWT secret.

    Policy values are read from the environment on each call, so a stray
    variable in the developer's shell would otherwise change fee and cutoff
    expectations.
    """
    for name in (
        "BOOKING_SERVICE_FEE_PERCENT",
        "BOOKING_CANCELLATION_CUTOFF_DAYS",
        "BOOKING_OPEN_WINDOW_YEARS",
        "JWT_AUDIENCE",
        "JWT_ISSUER",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    yield
