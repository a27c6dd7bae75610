"""Rejection reasons for webhook signature checks."""

from __future__ import annotations

from enum import Enum


class RejectReason(str, Enum):
    """Why a webhook signature was rejected."""

    MISSING_HEADER = "missing_header"
    MALFORMED_HEADER = "malformed_header"
    INVALID_TIMESTAMP = "invalid_timestamp"
    TIMESTAMP_IN_FUTURE = "timestamp_in_future"
    TIMESTAMP_TOO_OLD = "timestamp_too_old"
    DIGEST_MISMATCH = "digest_mismatch"


class SignatureError(Exception):
    """Signature check failure carrying a rejection reason."""

    def __init__(self, reason: RejectReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message
