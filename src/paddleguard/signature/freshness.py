"""Timestamp window check for signed webhook events."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from paddleguard.signature.errors import RejectReason, SignatureError

# Bounds replay exposure while tolerating sender/receiver clock skew.
DEFAULT_TOLERANCE = timedelta(minutes=5)


def check_freshness(
    timestamp: int,
    now: datetime,
    window: timedelta = DEFAULT_TOLERANCE,
) -> None:
    """
    Reject events dated in the future or older than the window.

    Both boundaries are inclusive: an event exactly at ``now`` or exactly at
    ``now - window`` passes.

    Args:
        timestamp: Event time in Unix seconds
        now: Current time; naive values are read as UTC
        window: Maximum accepted event age

    Raises:
        SignatureError: With TIMESTAMP_IN_FUTURE or TIMESTAMP_TOO_OLD
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    # Compared as Unix seconds; huge timestamps would overflow datetime.
    now_seconds = now.timestamp()
    if timestamp > now_seconds:
        raise SignatureError(
            RejectReason.TIMESTAMP_IN_FUTURE,
            "Event timestamp is in the future",
        )
    if timestamp < now_seconds - window.total_seconds():
        raise SignatureError(
            RejectReason.TIMESTAMP_TOO_OLD,
            "Event timestamp is outside the accepted window",
        )
