"""Shared pytest fixtures."""

import json
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any

import httpx
import pytest

from parlote.app import App
from parlote.config import Config
from parlote.core.core import Core, Services
from parlote.core.modules.realtime.models import SessionDescriptor
from parlote.core.modules.situation.models import Situation
from parlote.core.modules.usage.models import UsageReport

IDENTITY_URL = "https://identity.test"
SESSIONS_URL = "https://realtime.test/v1/realtime/sessions"
VALID_TOKEN = "good-token"
USER_ID = "user-1"


class FakeCollection:
    """In-memory stand-in for the few AsyncCollection methods the services use."""

    def __init__(self) -> None:
        self.docs: list[dict[str, Any]] = []
        self.indexes: list[tuple[Any, dict[str, Any]]] = []
        self.update_error: Exception | None = None

    async def create_index(self, keys: Any, **kwargs: Any) -> str:
        self.indexes.append((keys, kwargs))
        return "index"

    def _match(self, filter: dict[str, Any]) -> dict[str, Any] | None:
        return next((doc for doc in self.docs if all(doc.get(k) == v for k, v in filter.items())), None)

    async def find_one(self, filter: dict[str, Any]) -> dict[str, Any] | None:
        doc = self._match(filter)
        return dict(doc) if doc is not None else None

    async def update_one(self, filter: dict[str, Any], update: dict[str, Any], upsert: bool = False) -> None:
        if self.update_error is not None:
            raise self.update_error
        doc = self._match(filter)
        if doc is None:
            if not upsert:
                return
            doc = dict(filter)
            doc.update(update.get("$setOnInsert", {}))
            self.docs.append(doc)
        doc.update(update.get("$set", {}))


class FakeDatabase:
    def __init__(self) -> None:
        self.collections: dict[str, FakeCollection] = {}

    def get_collection(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())


class FakeUpstream:
    """Identity provider and realtime session endpoint behind an httpx MockTransport."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.session_status = 200
        self.session_body: dict[str, Any] | str = {"id": "sess_123", "client_secret": {"value": "ek_abc", "expires_at": 1760000000}}

    def session_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == SESSIONS_URL]

    def identity_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url).startswith(IDENTITY_URL)]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) == f"{IDENTITY_URL}/auth/v1/user":
            if request.headers.get("Authorization") == f"Bearer {VALID_TOKEN}":
                return httpx.Response(200, json={"id": USER_ID, "email": "learner@example.com"})
            return httpx.Response(401, json={"msg": "invalid JWT"})
        if str(request.url) == SESSIONS_URL:
            if isinstance(self.session_body, str):
                return httpx.Response(self.session_status, text=self.session_body)
            return httpx.Response(self.session_status, json=self.session_body)
        return httpx.Response(404)


@pytest.fixture
def situations_file(tmp_path: Path) -> Path:
    path = tmp_path / "situations.json"
    path.write_text(
        json.dumps(
            [
                {
                    "id": "cafe",
                    "title": "Au café",
                    "theme": "Commander un café",
                    "prompt": "You are a waiter in a Parisian café.",
                    "links": ["Un café, s'il vous plaît."],
                    "accent": "Parisien",
                    "ambience": "Terrasse",
                }
            ]
        )
    )
    return path


@pytest.fixture
def config(tmp_path: Path, situations_file: Path) -> Config:
    return Config(
        database_url="mongodb://localhost:27017/parlote_test",
        openai_api_key="sk-test",
        realtime_sessions_url=SESSIONS_URL,
        identity_url=IDENTITY_URL,
        identity_anon_key="anon-key",
        daily_limit_seconds=300,
        situations_path=str(situations_file),
        conversation_logs_path=str(tmp_path / "conversations"),
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def database() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def core(config: Config, upstream: FakeUpstream, database: FakeDatabase) -> Core:
    """Core wired to fakes, without a MongoDB connection."""
    core = Core.__new__(Core)
    core.config = config
    core.database = database  # type: ignore[assignment]
    core.http = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handle))
    core.services = Services(database)  # type: ignore[arg-type]
    core.services.set_core(core)
    return core


@pytest.fixture
def app(core: Core) -> App:
    app = App.__new__(App)
    app._core = core
    return app


@pytest.fixture
def cafe() -> Situation:
    return Situation(
        id="cafe",
        title="Au café",
        theme="Commander un café",
        prompt="You are a waiter in a Parisian café.",
        links=["Un café, s'il vous plaît."],
    )


@pytest.fixture
def seed_usage(database: FakeDatabase) -> Callable[..., None]:
    """Seed a usage record for the test user, today by default."""

    def seed(used_seconds: int, day: date | None = None) -> None:
        database.get_collection("usage").docs.append(
            {"user_id": USER_ID, "usage_date": (day or date.today()).isoformat(), "used_seconds": used_seconds}
        )

    return seed


class FakeBackend:
    """Scripted stand-in for BackendClient."""

    def __init__(self) -> None:
        self.session_error: Exception | None = None
        self.ping_error: Exception | None = None
        self.log_error: Exception | None = None
        self.remaining_seconds = 300
        self.session_calls: list[tuple[str, str, str | None]] = []
        self.pings: list[tuple[str, int]] = []
        self.logged: list[tuple[str, str | None, list[Any]]] = []

    async def create_session(self, access_token: str, situation_id: str, prompt_override: str | None) -> SessionDescriptor:
        self.session_calls.append((access_token, situation_id, prompt_override))
        if self.session_error is not None:
            raise self.session_error
        return SessionDescriptor(
            session_id="sess_123", client_secret="ek_abc", model="gpt-realtime-test", remaining_seconds=self.remaining_seconds
        )

    async def ping_usage(self, access_token: str, seconds: int) -> UsageReport:
        self.pings.append((access_token, seconds))
        if self.ping_error is not None:
            raise self.ping_error
        self.remaining_seconds = max(self.remaining_seconds - seconds, 0)
        return UsageReport(used_seconds=300 - self.remaining_seconds, remaining_seconds=self.remaining_seconds)

    async def append_log(self, session_id: str, situation_id: str | None, events: list[Any]) -> None:
        if self.log_error is not None:
            raise self.log_error
        self.logged.append((session_id, situation_id, events))


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()
