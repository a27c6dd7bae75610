"""Webhook receiver - accepts signed Paddle Billing notifications."""

import json
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from paddleguard.common.auth import PaddleSignatureMiddleware
from paddleguard.common.errors import ErrorCode, error_response
from paddleguard.common.http import RequestIdMiddleware
from paddleguard.common.logging import get_logger, setup_logging
from paddleguard.common.metrics import MetricsMiddleware, metrics_endpoint
from paddleguard.common.settings import Settings, get_settings
from paddleguard.signature import SignatureVerifier

logger = get_logger(__name__)


class WebhookReceiver:
    """HTTP handlers for the webhook receiver."""

    def __init__(self, settings: Settings):
        """Initialize receiver."""
        self._settings = settings
        self._received = 0

    @property
    def received_count(self) -> int:
        return self._received

    async def startup(self) -> None:
        """Log configuration problems early."""
        logger.info(
            "Starting webhook receiver...",
            paths=list(self._settings.webhook_paths),
            tolerance_seconds=self._settings.signature_tolerance_seconds,
        )
        if not self._settings.secret_value:
            logger.warning("Webhook secret not configured; signed paths will return 500")

    async def shutdown(self) -> None:
        """Clean up resources."""
        logger.info("Webhook receiver stopped", received=self._received)

    async def handle_webhook(self, request: Request) -> JSONResponse:
        """Handle a verified webhook notification."""
        body = await request.body()
        try:
            event: Any = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return error_response(ErrorCode.INVALID_JSON, "Invalid JSON", status_code=400)

        if not isinstance(event, dict):
            return error_response(
                ErrorCode.INVALID_JSON,
                "Event payload must be a JSON object",
                status_code=400,
            )

        self._received += 1
        event_id = event.get("event_id")
        event_type = event.get("event_type")
        logger.info("Webhook event received", event_id=event_id, event_type=event_type)

        return JSONResponse({
            "status": "received",
            "event_id": event_id,
            "event_type": event_type,
        })

    async def handle_health(self, request: Request) -> JSONResponse:
        """Health check."""
        return JSONResponse({
            "status": "healthy",
            "secret_configured": bool(self._settings.secret_value),
        })


def create_app(
    settings: Settings | None = None,
    verifier: SignatureVerifier | None = None,
) -> Starlette:
    """Create the Starlette application."""
    settings = settings or get_settings()
    receiver = WebhookReceiver(settings)

    @asynccontextmanager
    async def lifespan(app: Starlette):
        await receiver.startup()
        yield
        await receiver.shutdown()

    routes = [
        Route(path, receiver.handle_webhook, methods=["POST"])
        for path in settings.webhook_paths
    ]
    routes += [
        Route("/health", receiver.handle_health, methods=["GET"]),
        Route("/metrics", metrics_endpoint, methods=["GET"]),
    ]

    app = Starlette(routes=routes, lifespan=lifespan)
    app.state.receiver = receiver

    app.add_middleware(PaddleSignatureMiddleware, settings=settings, verifier=verifier)
    app.add_middleware(
        MetricsMiddleware,
        exclude_paths=["/health", "/metrics"],
    )
    app.add_middleware(RequestIdMiddleware, header_name=settings.request_id_header)

    return app


def main():
    """Entry point for the webhook receiver."""
    settings = get_settings()
    setup_logging(settings.log_level, json_output=settings.log_json)
    app = create_app(settings)

    uvicorn.run(
        app,
        host=settings.receiver_host,
        port=settings.receiver_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
