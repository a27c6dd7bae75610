"""Pytest configuration and fixtures."""

from datetime import datetime, timezone

import pytest

from paddleguard.common.settings import Settings

SECRET = "s3cr3t"
TIMESTAMP = 1700000000


@pytest.fixture
def secret() -> str:
    """Shared webhook secret."""
    return SECRET


@pytest.fixture
def body() -> bytes:
    """Raw webhook body."""
    return b'{"a":1}'


@pytest.fixture
def event_time() -> int:
    """Event timestamp in Unix seconds."""
    return TIMESTAMP


@pytest.fixture
def now() -> datetime:
    """Verification time equal to the event timestamp."""
    return datetime.fromtimestamp(TIMESTAMP, tz=timezone.utc)


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        webhook_secret=SECRET,
        signature_tolerance_seconds=300,
        log_json=False,
        _env_file=None,
    )


@pytest.fixture
def paddle_event() -> bytes:
    """Sample Paddle Billing notification body."""
    return (
        b'{"event_id":"evt_01h8441jx8x1q971q9ksksqh82",'
        b'"event_type":"transaction.completed",'
        b'"occurred_at":"2023-11-14T22:13:20.000000Z",'
        b'"data":{"id":"txn_01h8441jn5pcwrfhwh78jqt8hk","status":"completed"}}'
    )
