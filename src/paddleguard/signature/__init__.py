"""Webhook signature verification core."""

from paddleguard.signature.digest import (
    build_message,
    build_signature_header,
    compute_digest,
    digests_match,
    sign,
)
from paddleguard.signature.errors import RejectReason, SignatureError
from paddleguard.signature.freshness import DEFAULT_TOLERANCE, check_freshness
from paddleguard.signature.header import SignatureHeader, parse_signature_header
from paddleguard.signature.verifier import SignatureVerifier, VerificationResult, verify

__all__ = [
    "DEFAULT_TOLERANCE",
    "RejectReason",
    "SignatureError",
    "SignatureHeader",
    "SignatureVerifier",
    "VerificationResult",
    "build_message",
    "build_signature_header",
    "check_freshness",
    "compute_digest",
    "digests_match",
    "parse_signature_header",
    "sign",
    "verify",
]
