"""Tests for the usage pump."""

import asyncio

import httpx

from parlote.client.api import BackendClient
from parlote.client.pump import UsagePump
from parlote.errors import UpstreamError


class TestUsagePump:
    """Tests for UsagePump."""

    async def test_tick_reports(self, backend):
        reports = []

        async def on_report(report):
            reports.append(report)

        pump = UsagePump(backend, "tok", on_report, increment=10)
        report = await pump.tick()

        assert backend.pings == [("tok", 10)]
        assert report.remaining_seconds == 290
        assert reports == [report]

    async def test_failed_ping_is_swallowed(self, backend):
        """Test that ping failures are logged and do not reach the callback."""
        reports = []

        async def on_report(report):
            reports.append(report)

        pump = UsagePump(backend, "tok", on_report)
        backend.ping_error = httpx.ConnectError("connection refused")
        assert await pump.tick() is None
        backend.ping_error = UpstreamError("boom")
        assert await pump.tick() is None
        assert reports == []

    async def test_runs_on_interval_until_stopped(self, backend):
        async def on_report(report):
            pass

        pump = UsagePump(backend, "tok", on_report, interval=0.01)
        pump.start()
        assert pump.running
        await asyncio.sleep(0.05)
        pump.stop()
        count = len(backend.pings)
        await asyncio.sleep(0.03)

        assert count >= 1
        assert len(backend.pings) == count
        assert not pump.running

    async def test_stop_from_callback(self, backend):
        """Test that the callback may stop the pump it runs under."""
        pump: UsagePump

        async def on_report(report):
            pump.stop()

        pump = UsagePump(backend, "tok", on_report, interval=0.01)
        pump.start()
        await asyncio.sleep(0.05)
        assert not pump.running
        assert len(backend.pings) == 1

    async def test_unexpected_error_does_not_stop_ticking(self, backend):
        """Test that an unexpected exception from a ping is logged and the next tick still reports."""
        reports = []

        async def on_report(report):
            reports.append(report)

        pump = UsagePump(backend, "tok", on_report)
        backend.ping_error = ValueError("unexpected body")
        assert await pump.tick() is None
        backend.ping_error = None
        assert await pump.tick() is not None
        assert len(reports) == 1

    async def test_malformed_success_body_then_recovery(self):
        """Test that a 200 reply that is not a usage report is skipped and the loop keeps running."""
        replies = [
            httpx.Response(200, text="<html>maintenance</html>"),
            httpx.Response(200, json={"usedSeconds": 20, "remainingSeconds": 280}),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            return replies.pop(0) if replies else httpx.Response(200, json={"usedSeconds": 30, "remainingSeconds": 270})

        http = httpx.AsyncClient(base_url="http://backend.test", transport=httpx.MockTransport(handler))
        reports = []

        async def on_report(report):
            reports.append(report)

        pump = UsagePump(BackendClient(http), "tok", on_report, interval=0.01)
        pump.start()
        await asyncio.sleep(0.2)
        pump.stop()
        await http.aclose()

        assert reports
        assert reports[0].remaining_seconds == 280
