"""Tests for client wiring."""

import httpx

from parlote.client.config import ClientConfig
from parlote.client.factory import create_http_client, create_negotiation_session
from parlote.client.negotiation import SessionState


class TestFactory:
    async def test_http_client_targets_backend(self):
        config = ClientConfig(backend_url="http://backend.test", request_timeout=5.0)
        http = create_http_client(config, transport=httpx.MockTransport(lambda _: httpx.Response(200)))
        assert http.base_url.host == "backend.test"
        assert http.timeout.read == 5.0
        await http.aclose()

    async def test_new_session_is_idle(self):
        """Test that every built session starts idle with the configured ping cadence."""
        config = ClientConfig(ping_interval_seconds=2.5, ping_increment_seconds=3)
        http = create_http_client(config)
        first = create_negotiation_session(config, http, devices=object(), transports=object())  # type: ignore[arg-type]
        second = create_negotiation_session(config, http, devices=object(), transports=object())  # type: ignore[arg-type]

        assert first is not second
        assert first.state is SessionState.IDLE
        assert first.start_enabled
        assert first._ping_interval == 2.5
        assert first._ping_increment == 3
        await http.aclose()
