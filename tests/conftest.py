"""Shared pytest fixtures for LoveHub tests."""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from lovehub.services import build_services
from lovehub.services.broker import MessageBroker
from lovehub.store import MemoryEntityStore
from lovehub.store.base import encode_collection, seed_state

START = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock: returns ``now`` then advances by ``step``."""

    def __init__(self, start: datetime = START, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current

    def set(self, when: datetime) -> None:
        self.now = when


def seeded_store(strict: bool = True) -> MemoryEntityStore:
    store = MemoryEntityStore(strict=strict)
    for kind, items in seed_state().items():
        store.put_raw(kind, encode_collection(kind, items))
    return store


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    """Memory store holding the five-user demo roster."""
    return seeded_store()


@pytest.fixture
def broker():
    return MessageBroker()


@pytest.fixture
def services(store, broker, clock):
    return build_services(store, broker, clock=clock)


@pytest.fixture
def empty_store():
    return MemoryEntityStore()


@pytest.fixture
def client():
    """API client running the full application lifespan on a fresh store."""
    from lovehub.main import app

    with TestClient(app) as test_client:
        yield test_client

