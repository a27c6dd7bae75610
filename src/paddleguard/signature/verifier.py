"""Webhook signature verification.

Runs the checks in a fixed order: parse header, check timestamp window,
recompute the digest over the raw body, compare digests. Every failure
becomes a rejected result; nothing is raised to the caller.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from paddleguard.signature.digest import digests_match, sign
from paddleguard.signature.errors import RejectReason, SignatureError
from paddleguard.signature.freshness import DEFAULT_TOLERANCE, check_freshness
from paddleguard.signature.header import SignatureHeader, parse_signature_header

# Supplied digest characters kept for diagnostics
DIGEST_LOG_PREFIX = 8


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a signature check."""

    accepted: bool
    reason: RejectReason | None = None
    timestamp: int | None = None
    unsupported_fields: tuple[str, ...] = ()
    digest_prefix: str | None = None

    @classmethod
    def accept(cls, header: SignatureHeader) -> VerificationResult:
        return cls(
            accepted=True,
            timestamp=header.timestamp,
            unsupported_fields=header.unsupported_fields,
        )

    @classmethod
    def reject(
        cls,
        reason: RejectReason,
        header: SignatureHeader | None = None,
    ) -> VerificationResult:
        return cls(
            accepted=False,
            reason=reason,
            timestamp=header.timestamp if header else None,
            unsupported_fields=header.unsupported_fields if header else (),
            digest_prefix=header.digest_hex[:DIGEST_LOG_PREFIX] if header else None,
        )

    @property
    def outcome(self) -> str:
        return "accepted" if self.accepted else "rejected"

    def __bool__(self) -> bool:
        return self.accepted

    def log_fields(self) -> dict[str, Any]:
        """Non-sensitive fields for structured logging."""
        fields: dict[str, Any] = {"outcome": self.outcome}
        if self.reason is not None:
            fields["reason"] = self.reason.value
        if self.timestamp is not None:
            fields["event_timestamp"] = self.timestamp
        if self.unsupported_fields:
            fields["unsupported_fields"] = list(self.unsupported_fields)
        if self.digest_prefix is not None:
            fields["digest_prefix"] = self.digest_prefix
        return fields


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def verify(
    header_text: str | None,
    secret: str | bytes,
    body: str | bytes,
    now: datetime | None = None,
    window: timedelta = DEFAULT_TOLERANCE,
) -> VerificationResult:
    """
    Verify a webhook signature header against the raw request body.

    Args:
        header_text: Raw signature header value (None if absent)
        secret: Shared webhook secret
        body: Exact request body bytes as received
        now: Current time (defaults to the host clock; naive values are UTC)
        window: Maximum accepted event age

    Returns:
        Accepted or rejected VerificationResult
    """
    try:
        header = parse_signature_header(header_text)
    except SignatureError as exc:
        return VerificationResult.reject(exc.reason)

    try:
        check_freshness(header.timestamp, now or _utcnow(), window)
    except SignatureError as exc:
        return VerificationResult.reject(exc.reason, header)

    computed = sign(secret, header.timestamp_raw, body)
    if not digests_match(computed, header.digest_hex):
        return VerificationResult.reject(RejectReason.DIGEST_MISMATCH, header)

    return VerificationResult.accept(header)


class SignatureVerifier:
    """Verifier bound to a secret, tolerance window and clock."""

    def __init__(
        self,
        secret: str | bytes,
        tolerance: timedelta = DEFAULT_TOLERANCE,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not secret:
            raise ValueError("Webhook secret must not be empty")
        self._secret = secret
        self._tolerance = tolerance
        self._clock = clock or _utcnow

    @property
    def tolerance(self) -> timedelta:
        return self._tolerance

    def verify(
        self,
        header_text: str | None,
        body: str | bytes,
        now: datetime | None = None,
    ) -> VerificationResult:
        """Verify a header/body pair at ``now`` (or the bound clock)."""
        return verify(
            header_text,
            self._secret,
            body,
            now=now or self._clock(),
            window=self._tolerance,
        )

    def __repr__(self) -> str:
        return f"SignatureVerifier(tolerance={self._tolerance!r})"
