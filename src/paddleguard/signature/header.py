"""Parsing of the ``Paddle-Signature`` header.

The sender emits ``ts=<unix seconds>;h1=<hex digest>``. Only the first field
(timestamp) and the last field (digest) are interpreted, so fields appended
between them for secret rotation do not break parsing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from paddleguard.signature.errors import RejectReason, SignatureError

FIELD_SEPARATOR = ";"
KEY_VALUE_SEPARATOR = "="

_TIMESTAMP_RE = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class SignatureHeader:
    """Parsed signature header."""

    timestamp_raw: str
    timestamp: int
    digest_hex: str
    unsupported_fields: tuple[str, ...] = ()


def _field_value(field: str) -> str:
    _, sep, value = field.partition(KEY_VALUE_SEPARATOR)
    if not sep:
        raise SignatureError(
            RejectReason.MALFORMED_HEADER,
            "Signature field has no key/value separator",
        )
    return value


def parse_signature_header(header_text: str | None) -> SignatureHeader:
    """
    Parse a raw signature header value.

    Args:
        header_text: Header value as received, e.g. ``ts=1671552777;h1=eb4d...``

    Returns:
        Parsed SignatureHeader

    Raises:
        SignatureError: With MISSING_HEADER, MALFORMED_HEADER or INVALID_TIMESTAMP
    """
    if not header_text:
        raise SignatureError(RejectReason.MISSING_HEADER, "Signature header is missing")

    fields = header_text.split(FIELD_SEPARATOR)
    if not fields:
        raise SignatureError(RejectReason.MALFORMED_HEADER, "Signature header has no fields")

    timestamp_raw = _field_value(fields[0])
    digest_hex = _field_value(fields[-1])
    if not timestamp_raw or not digest_hex:
        raise SignatureError(
            RejectReason.MALFORMED_HEADER,
            "Signature header has an empty timestamp or digest",
        )

    if not _TIMESTAMP_RE.fullmatch(timestamp_raw):
        raise SignatureError(
            RejectReason.INVALID_TIMESTAMP,
            "Signature timestamp is not a non-negative integer",
        )

    try:
        timestamp = int(timestamp_raw)
    except ValueError:
        # digit strings past the interpreter's int conversion limit
        raise SignatureError(
            RejectReason.INVALID_TIMESTAMP,
            "Signature timestamp is too long",
        ) from None

    unsupported = tuple(
        field.partition(KEY_VALUE_SEPARATOR)[0] for field in fields[1:-1]
    )

    return SignatureHeader(
        timestamp_raw=timestamp_raw,
        timestamp=timestamp,
        digest_hex=digest_hex,
        unsupported_fields=unsupported,
    )
