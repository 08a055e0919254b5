"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta

import pytest
from fakes import FakePersistenceService

from datastore_bridge import DataStoreConfig, DataStoreService, ProtocolGeneration, SessionContext
from datastore_bridge.transport import Transport


class FakeClock:
    """Deterministic clock for testing TTL behaviour."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2024, 1, 1, tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)


@pytest.fixture
def session():
    return SessionContext(cookie="test-cookie", place_id=1818, universe_id=42)


@pytest.fixture
def fake():
    return FakePersistenceService(universe_id=42)


@pytest.fixture
async def client(fake):
    http = fake.client()
    yield http
    await http.aclose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return DataStoreConfig()


@pytest.fixture
def transport(session, config, client):
    return Transport(session, config, client)


@pytest.fixture
def make_service(session, client, clock):
    """Build a service over the fake; keyword arguments become config overrides."""

    def _make(**overrides):
        return DataStoreService(session, DataStoreConfig(**overrides), client, clock=clock)

    return _make


@pytest.fixture
def service(make_service):
    return make_service()


@pytest.fixture(params=[ProtocolGeneration.LEGACY, ProtocolGeneration.V1])
def generation(request):
    return request.param
