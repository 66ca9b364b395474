from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

SERVICE_ROOT = Path(__file__).resolve().parents[1]
if str(SERVICE_ROOT) not in sys.path:
    sys.path.insert(0, str(SERVICE_ROOT))

from echo_engine.config import get_settings
from echo_engine.db import close_mongo_connection, connect_to_mongo
from echo_engine.main import app
from echo_engine.models.profile import DiscoveryProfile
from echo_engine.models.session import SwipeSessionState
from echo_engine.services.engine_service import reset_engine_service
from echo_engine.services.swipe_limits import initial_limits

# Friday; the following Monday is 2026-10-19.
NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Settable clock handed to services in place of ``utc_now``."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_profile(
    profile_id: str,
    *,
    refreshed_at: datetime = NOW - timedelta(days=1),
    age: int = 27,
    first_name: Optional[str] = None,
) -> DiscoveryProfile:
    return DiscoveryProfile(
        id=profile_id,
        first_name=first_name or profile_id.title(),
        age=age,
        last_refreshed_at=refreshed_at,
    )


def make_state(
    queue_ids=("c1", "c2", "c3"),
    *,
    now: datetime = NOW,
    daily_quota: int = 20,
    **updates,
) -> SwipeSessionState:
    state = SwipeSessionState(
        user_id="viewer",
        queue=tuple(make_profile(pid) for pid in queue_ids),
        limits=initial_limits(now, daily_quota),
    )
    return state.model_copy(update=updates) if updates else state


class ListFeed:
    """In-memory discovery feed serving a fixed candidate list."""

    def __init__(self, profiles) -> None:
        self.profiles = list(profiles)
        self.calls = []

    async def fetch_page(self, viewer_id, filters, viewer_location=None):
        self.calls.append((viewer_id, filters, viewer_location))
        page = [p for p in self.profiles if p.id != viewer_id]
        return page[filters.offset : filters.offset + filters.limit]


@pytest.fixture(autouse=True)
def _env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONGO_URI", "mongodb://localhost:27017/test")
    monkeypatch.setenv("MONGO_DB_NAME", "echo-test")
    monkeypatch.setenv("ECHO_FREE_DAILY_SWIPES", "20")
    monkeypatch.setenv("ECHO_RESET_TIMEZONE", "UTC")
    monkeypatch.setenv("ECHO_MATCH_POLICY", "random")
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest_asyncio.fixture
async def mongo_client(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[AsyncMongoMockClient]:
    client = AsyncMongoMockClient()

    def _client_factory(*_args, **_kwargs) -> AsyncMongoMockClient:
        return client

    monkeypatch.setattr("echo_engine.db.AsyncIOMotorClient", _client_factory)
    yield client
    client.close()


@pytest_asyncio.fixture
async def mongo_db(mongo_client: AsyncMongoMockClient):
    return mongo_client[get_settings().mongo_db]


@pytest_asyncio.fixture
async def api_client(mongo_client: AsyncMongoMockClient) -> AsyncIterator[AsyncClient]:
    reset_engine_service()
    await connect_to_mongo()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()
    reset_engine_service()
    await close_mongo_connection()
