"""Webhook signature middleware."""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from paddleguard.common.errors import ErrorCode, error_response
from paddleguard.common.logging import get_logger
from paddleguard.common.metrics import record_verification
from paddleguard.common.settings import Settings
from paddleguard.signature import SignatureVerifier, VerificationResult

logger = get_logger(__name__)


def build_verifier(settings: Settings) -> SignatureVerifier | None:
    """Create a verifier from settings, or None if no secret is configured."""
    secret = settings.secret_value
    if not secret:
        return None
    return SignatureVerifier(secret, tolerance=settings.signature_tolerance)


async def verify_request(
    request: Request,
    verifier: SignatureVerifier,
    header_name: str = "Paddle-Signature",
) -> VerificationResult:
    """
    Verify the signature of an inbound webhook request.

    The body is read once; Starlette caches it so later handlers see the
    same bytes.
    """
    header_value = request.headers.get(header_name)
    body = await request.body()

    start = time.perf_counter()
    result = verifier.verify(header_value, body)
    record_verification(
        result.outcome,
        result.reason.value if result.reason else None,
        time.perf_counter() - start,
    )

    if result.unsupported_fields:
        logger.warning(
            "Unsupported signature fields",
            fields=list(result.unsupported_fields),
        )

    if result:
        logger.info("Webhook signature accepted", **result.log_fields())
    else:
        logger.warning(
            "Webhook signature rejected",
            path=request.url.path,
            body_size=len(body),
            **result.log_fields(),
        )
    return result


class PaddleSignatureMiddleware(BaseHTTPMiddleware):
    """Reject webhook requests without a valid Paddle signature."""

    def __init__(
        self,
        app: ASGIApp,
        settings: Settings,
        verifier: SignatureVerifier | None = None,
    ) -> None:
        super().__init__(app)
        self._settings = settings
        self._paths = set(settings.webhook_paths)
        self._verifier = verifier or build_verifier(settings)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path not in self._paths:
            return await call_next(request)

        if self._verifier is None:
            logger.error("Webhook secret not configured", path=request.url.path)
            return error_response(
                ErrorCode.SERVER_MISCONFIGURED,
                "Webhook secret not configured",
                status_code=500,
            )

        logger.debug("Assessing webhook signature", path=request.url.path)
        result = await verify_request(request, self._verifier, self._settings.signature_header)
        request.state.signature = result

        if not result:
            return error_response(
                ErrorCode.UNAUTHORIZED,
                "Invalid webhook signature",
                status_code=401,
            )
        return await call_next(request)
