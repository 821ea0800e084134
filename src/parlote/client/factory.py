"""Wiring of client components from ``ClientConfig``."""

import httpx

from parlote.client.api import BackendClient, RealtimeNegotiator
from parlote.client.config import ClientConfig
from parlote.client.negotiation import NegotiationSession
from parlote.client.transport import MediaDevices, TransportFactory


def create_http_client(config: ClientConfig, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=config.backend_url, timeout=config.request_timeout, transport=transport)


def create_negotiation_session(
    config: ClientConfig, http: httpx.AsyncClient, devices: MediaDevices, transports: TransportFactory
) -> NegotiationSession:
    """Build a fresh session. Each conversation attempt needs its own instance."""
    return NegotiationSession(
        BackendClient(http),
        RealtimeNegotiator(http, config.realtime_url),
        devices,
        transports,
        ping_interval=config.ping_interval_seconds,
        ping_increment=config.ping_increment_seconds,
    )
