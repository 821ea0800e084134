"""Tests for the backend and negotiation HTTP clients."""

import json

import httpx
import pytest

from parlote.client.api import BackendClient, RealtimeNegotiator, raise_for_error
from parlote.errors import (
    AuthenticationError,
    NotFoundError,
    QuotaExceededError,
    TransportFailure,
    UpstreamError,
    ValidationError,
)

BACKEND_URL = "http://backend.test"
REALTIME_URL = "https://realtime.test/v1/realtime"


class Recorder:
    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


def make_http(recorder: Recorder) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=BACKEND_URL, transport=httpx.MockTransport(recorder))


class TestRaiseForError:
    @pytest.mark.parametrize(
        ("status", "error_class"),
        [
            (400, ValidationError),
            (401, AuthenticationError),
            (404, NotFoundError),
            (429, QuotaExceededError),
            (500, UpstreamError),
            (502, UpstreamError),
        ],
    )
    def test_maps_status_to_error(self, status, error_class):
        response = httpx.Response(status, json={"message": "nope", "type": "x"})
        with pytest.raises(error_class, match="nope"):
            raise_for_error(response)

    def test_non_json_body(self):
        with pytest.raises(UpstreamError, match="Bad Gateway"):
            raise_for_error(httpx.Response(502, text="Bad Gateway"))

    def test_success(self):
        raise_for_error(httpx.Response(200, json={"ok": True}))


class TestBackendClient:
    """Tests for BackendClient."""

    async def test_create_session(self):
        recorder = Recorder(
            httpx.Response(
                200, json={"sessionId": "sess_1", "clientSecret": "ek_1", "model": "m", "remainingSeconds": 240, "expiresAt": None}
            )
        )
        backend = BackendClient(make_http(recorder))

        descriptor = await backend.create_session("tok", "cafe", None)

        assert descriptor.session_id == "sess_1"
        assert descriptor.client_secret == "ek_1"
        assert descriptor.remaining_seconds == 240
        request = recorder.requests[0]
        assert request.url == f"{BACKEND_URL}/api/session"
        assert request.headers["Authorization"] == "Bearer tok"
        assert json.loads(request.content) == {"situationId": "cafe", "promptOverride": ""}

    async def test_create_session_malformed_body(self):
        """Test that a success response without a credential is an upstream error."""
        recorder = Recorder(httpx.Response(200, json={"sessionId": "s"}))
        backend = BackendClient(make_http(recorder))
        with pytest.raises(UpstreamError, match="/api/session"):
            await backend.create_session("tok", "cafe", None)

    async def test_ping_usage_non_json_body(self):
        recorder = Recorder(httpx.Response(200, text="<html>"))
        backend = BackendClient(make_http(recorder))
        with pytest.raises(UpstreamError):
            await backend.ping_usage("tok", 10)

    async def test_create_session_quota_exceeded(self):
        recorder = Recorder(httpx.Response(429, json={"message": "Daily usage limit reached", "type": "quota_exceeded"}))
        backend = BackendClient(make_http(recorder))
        with pytest.raises(QuotaExceededError, match="Daily usage limit reached"):
            await backend.create_session("tok", "cafe", None)

    async def test_ping_usage(self):
        recorder = Recorder(httpx.Response(200, json={"usedSeconds": 20, "remainingSeconds": 280}))
        backend = BackendClient(make_http(recorder))

        report = await backend.ping_usage("tok", 10)

        assert report.used_seconds == 20
        assert report.remaining_seconds == 280
        assert recorder.requests[0].url == f"{BACKEND_URL}/api/usage/ping"
        assert json.loads(recorder.requests[0].content) == {"seconds": 10}

    async def test_append_log(self):
        recorder = Recorder(httpx.Response(200, json={"ok": True}))
        backend = BackendClient(make_http(recorder))

        await backend.append_log("sess_1", "cafe", [{"type": "a"}])

        request = recorder.requests[0]
        assert "Authorization" not in request.headers
        assert json.loads(request.content) == {"sessionId": "sess_1", "situationId": "cafe", "events": [{"type": "a"}]}


class TestRealtimeNegotiator:
    """Tests for RealtimeNegotiator."""

    async def test_exchange(self):
        """Test that the offer is posted as SDP with the ephemeral credential."""
        recorder = Recorder(httpx.Response(201, text="v=0 answer"))
        negotiator = RealtimeNegotiator(make_http(recorder), REALTIME_URL)

        answer = await negotiator.exchange("gpt-realtime-test", "ek_1", "v=0 offer")

        assert answer == "v=0 answer"
        request = recorder.requests[0]
        assert request.url.params["model"] == "gpt-realtime-test"
        assert request.headers["Authorization"] == "Bearer ek_1"
        assert request.headers["Content-Type"] == "application/sdp"
        assert request.content == b"v=0 offer"

    async def test_rejected_exchange(self):
        recorder = Recorder(httpx.Response(401, text="expired"))
        negotiator = RealtimeNegotiator(make_http(recorder), REALTIME_URL)
        with pytest.raises(TransportFailure, match="expired"):
            await negotiator.exchange("m", "ek_1", "v=0 offer")

    async def test_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        negotiator = RealtimeNegotiator(httpx.AsyncClient(transport=httpx.MockTransport(handler)), REALTIME_URL)
        with pytest.raises(TransportFailure, match="Negotiation request failed"):
            await negotiator.exchange("m", "ek_1", "v=0 offer")
