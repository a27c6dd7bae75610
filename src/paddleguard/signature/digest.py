"""HMAC-SHA256 digest helpers for Paddle webhook signatures."""

from __future__ import annotations

import hashlib
import hmac
import time

MESSAGE_SEPARATOR = b":"
DIGEST_ALGORITHM = hashlib.sha256
DIGEST_HEX_LENGTH = 2 * DIGEST_ALGORITHM().digest_size


def _to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def build_message(timestamp_raw: str, body: str | bytes) -> bytes:
    """Build the signed payload ``<timestamp>:<raw body>``."""
    return MESSAGE_SEPARATOR.join([timestamp_raw.encode("utf-8"), _to_bytes(body)])


def compute_digest(secret: str | bytes, timestamp_raw: str, body: str | bytes) -> bytes:
    """Compute the raw HMAC-SHA256 digest of the signed payload."""
    message = build_message(timestamp_raw, body)
    return hmac.new(_to_bytes(secret), message, DIGEST_ALGORITHM).digest()


def sign(secret: str | bytes, timestamp_raw: str, body: str | bytes) -> str:
    """Create a lowercase hex-encoded signature."""
    return compute_digest(secret, timestamp_raw, body).hex()


def digests_match(computed_hex: str, supplied_hex: str) -> bool:
    """Compare two hex digests in constant time."""
    # compare_digest rejects non-ASCII str; surrogatepass keeps lone surrogates encodable
    return hmac.compare_digest(
        computed_hex.encode("utf-8", errors="surrogatepass"),
        supplied_hex.encode("utf-8", errors="surrogatepass"),
    )


def build_signature_header(
    secret: str | bytes,
    body: str | bytes,
    timestamp: int | None = None,
) -> str:
    """Build a ``ts=...;h1=...`` header value the way the sender does."""
    timestamp_raw = str(int(time.time()) if timestamp is None else timestamp)
    return f"ts={timestamp_raw};h1={sign(secret, timestamp_raw, body)}"
