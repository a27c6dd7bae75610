"""Tests for the webhook signature middleware."""

from datetime import datetime, timezone

import pytest
from prometheus_client import REGISTRY
from structlog.testing import capture_logs
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from paddleguard.common.auth import PaddleSignatureMiddleware, build_verifier, verify_request
from paddleguard.common.settings import Settings
from paddleguard.signature import RejectReason, SignatureVerifier, build_signature_header


async def _echo(request: Request) -> JSONResponse:
    body = await request.body()
    result = request.state.signature
    return JSONResponse({
        "body": body.decode("utf-8"),
        "timestamp": result.timestamp,
    })


async def _open(request: Request) -> JSONResponse:
    return JSONResponse({"ok": True})


def _make_app(settings: Settings, verifier: SignatureVerifier | None = None) -> Starlette:
    app = Starlette(
        routes=[
            Route("/webhooks/paddle", _echo, methods=["POST"]),
            Route("/open", _open, methods=["POST"]),
        ]
    )
    app.add_middleware(PaddleSignatureMiddleware, settings=settings, verifier=verifier)
    return app


def _verification_count(outcome: str, reason: str) -> float:
    value = REGISTRY.get_sample_value(
        "paddleguard_signature_verifications_total",
        {"outcome": outcome, "reason": reason},
    )
    return value or 0.0


class TestPaddleSignatureMiddleware:
    """Tests for PaddleSignatureMiddleware."""

    def test_valid_signature_passes_body_downstream(self, settings, secret, body):
        """Accepted requests reach the handler with the same body bytes."""
        client = TestClient(_make_app(settings))
        header = build_signature_header(secret, body)

        response = client.post(
            "/webhooks/paddle",
            content=body,
            headers={"Paddle-Signature": header},
        )

        assert response.status_code == 200
        assert response.json()["body"] == body.decode("utf-8")
        assert response.json()["timestamp"] == int(header.split(";")[0][3:])

    def test_missing_header_is_unauthorized(self, settings, body):
        """Requests without a signature get 401."""
        client = TestClient(_make_app(settings))

        response = client.post("/webhooks/paddle", content=body)

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "unauthorized"

    def test_bad_digest_is_unauthorized(self, settings, secret, body):
        """Requests signed with another secret get 401."""
        client = TestClient(_make_app(settings))
        header = build_signature_header("other-secret", body)

        response = client.post(
            "/webhooks/paddle",
            content=body,
            headers={"Paddle-Signature": header},
        )

        assert response.status_code == 401

    def test_reason_not_echoed(self, settings, body):
        """The rejection reason is not revealed to the sender."""
        client = TestClient(_make_app(settings))

        response = client.post(
            "/webhooks/paddle",
            content=body,
            headers={"Paddle-Signature": "ts=abc;h1=xyz"},
        )

        assert response.status_code == 401
        assert "invalid_timestamp" not in response.text

    def test_overlong_timestamp_is_unauthorized(self, settings, body):
        """An unconvertible timestamp is a 401, not a server error."""
        client = TestClient(_make_app(settings))

        response = client.post(
            "/webhooks/paddle",
            content=body,
            headers={"Paddle-Signature": "ts=" + "1" * 5000 + ";h1=abc"},
        )

        assert response.status_code == 401

    def test_rejection_log_has_digest_prefix_only(self, settings, body):
        """Rejections log the reason and a short prefix of the supplied digest."""
        client = TestClient(_make_app(settings))
        supplied = "fedcba9876543210" * 4

        with capture_logs() as logs:
            client.post(
                "/webhooks/paddle",
                content=body,
                headers={"Paddle-Signature": f"ts=0;h1={supplied}"},
            )

        rejected = [entry for entry in logs if entry["event"] == "Webhook signature rejected"]
        assert len(rejected) == 1
        assert rejected[0]["reason"] == "timestamp_too_old"
        assert rejected[0]["digest_prefix"] == "fedcba98"
        assert supplied not in repr(logs)

    def test_unprotected_path_skips_check(self, settings):
        """Paths outside webhook_paths are not checked."""
        client = TestClient(_make_app(settings))
        response = client.post("/open", content=b"{}")
        assert response.status_code == 200

    def test_stale_event_is_unauthorized(self, settings, secret, body):
        """Events older than the tolerance get 401."""
        now = datetime.fromtimestamp(1700000000, tz=timezone.utc)
        verifier = SignatureVerifier(secret, clock=lambda: now)
        client = TestClient(_make_app(settings, verifier))
        header = build_signature_header(secret, body, timestamp=1700000000 - 301)

        response = client.post(
            "/webhooks/paddle",
            content=body,
            headers={"Paddle-Signature": header},
        )

        assert response.status_code == 401

    def test_custom_header_name(self, secret, body):
        """The signature header name is configurable."""
        settings = Settings(
            webhook_secret=secret,
            signature_header="X-Signature",
            _env_file=None,
        )
        client = TestClient(_make_app(settings))

        response = client.post(
            "/webhooks/paddle",
            content=body,
            headers={"X-Signature": build_signature_header(secret, body)},
        )

        assert response.status_code == 200

    def test_missing_secret_is_server_error(self, body):
        """Without a configured secret signed paths fail closed."""
        settings = Settings(_env_file=None, webhook_secret=None)
        client = TestClient(_make_app(settings))

        response = client.post("/webhooks/paddle", content=body)

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "server_misconfigured"

    def test_records_metrics(self, settings, body):
        """Rejections are counted by reason."""
        client = TestClient(_make_app(settings))
        before = _verification_count("rejected", "missing_header")

        client.post("/webhooks/paddle", content=body)

        assert _verification_count("rejected", "missing_header") == before + 1


class TestBuildVerifier:
    """Tests for build_verifier."""

    def test_from_settings(self, settings):
        """A verifier is built with the configured tolerance."""
        verifier = build_verifier(settings)
        assert verifier is not None
        assert verifier.tolerance.total_seconds() == 300

    def test_no_secret(self):
        """No secret means no verifier."""
        assert build_verifier(Settings(_env_file=None, webhook_secret=None)) is None

    def test_empty_secret(self):
        """An empty secret counts as not configured."""
        assert build_verifier(Settings(_env_file=None, webhook_secret="")) is None


def _request(body: bytes, headers: dict[str, str]) -> Request:
    sent = False

    async def receive():
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    scope = {
        "type": "http",
        "method": "POST",
        "path": "/webhooks/paddle",
        "query_string": b"",
        "headers": [
            (key.lower().encode("latin-1"), value.encode("latin-1"))
            for key, value in headers.items()
        ],
    }
    return Request(scope, receive)


class TestVerifyRequest:
    """Tests for the verify_request helper."""

    @pytest.mark.asyncio
    async def test_accepts_signed_request(self, secret, body):
        """A signed request is accepted and its body stays readable."""
        request = _request(body, {"Paddle-Signature": build_signature_header(secret, body)})

        result = await verify_request(request, SignatureVerifier(secret))

        assert result.accepted is True
        assert await request.body() == body

    @pytest.mark.asyncio
    async def test_rejects_unsigned_request(self, secret, body):
        """A request without the header is rejected."""
        request = _request(body, {})

        result = await verify_request(request, SignatureVerifier(secret))

        assert result.reason is RejectReason.MISSING_HEADER
