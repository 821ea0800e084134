from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, cast
from urllib.parse import urlparse

import httpx
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from parlote.config import Config


class Service:
    """Base class for services with direct database access."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from parlote.core.modules.eventlog.service import EventLogService  # noqa: PLC0415
    from parlote.core.modules.identity.service import IdentityService  # noqa: PLC0415
    from parlote.core.modules.realtime.service import RealtimeService  # noqa: PLC0415
    from parlote.core.modules.situation.service import SituationService  # noqa: PLC0415
    from parlote.core.modules.usage.service import UsageService  # noqa: PLC0415

    identity: IdentityService
    usage: UsageService
    situation: SituationService
    realtime: RealtimeService
    eventlog: EventLogService

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []
        self._database = database

        # Service configuration: (attribute_name, module_path, class_name)
        service_configs = [
            ("identity", "parlote.core.modules.identity.service", "IdentityService"),
            ("usage", "parlote.core.modules.usage.service", "UsageService"),
            ("situation", "parlote.core.modules.situation.service", "SituationService"),
            ("realtime", "parlote.core.modules.realtime.service", "RealtimeService"),
            ("eventlog", "parlote.core.modules.eventlog.service", "EventLogService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(database)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services that have cleanup logic."""
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, database, HTTP client, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]]
    database: AsyncDatabase[dict[str, Any]]
    http: httpx.AsyncClient
    services: Services

    def __init__(self, config: Config, http_transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Initialize core with config, MongoDB, a shared HTTP client, and auto-register services.

        ``http_transport`` replaces the network layer of the outbound HTTP client (used by tests).
        """
        self.config = config
        self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard")
        self.database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        self.http = httpx.AsyncClient(timeout=config.upstream_timeout, transport=http_transport)
        self.services = Services(self.database)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Start all services on application startup."""
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services, close the HTTP client and the MongoDB connection on shutdown."""
        await self.services.stop_all()
        await self.http.aclose()
        await self.mongo_client.aclose()
