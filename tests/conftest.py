"""
Global test configuration and fixtures for the session store.

Provides a temporary SQLite database per test, a controllable clock so
expiry can be tested without sleeping, and a factory for connected stores.
"""

from typing import Any, Callable

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from sessionstore.db.init_db import init_database
from sessionstore.db.models.session_record import SessionRecord
from sessionstore.db.session import create_session_factory
from sessionstore.store.session_store import SessionStore


class FakeClock:
    """Epoch-millisecond clock that only moves when told to"""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def db_url(tmp_path):
    """URL of a fresh SQLite database file for each test"""
    return f"sqlite:///{tmp_path / 'sessions.db'}"


@pytest.fixture(scope="function")
def session_factory(db_url):
    """Session factory bound to a database with the session table created"""
    factory = create_session_factory(db_url)
    engine = factory.kw["bind"]
    init_database(engine)

    yield factory

    engine.dispose()


@pytest.fixture(scope="function")
def empty_session_factory(db_url):
    """Session factory bound to a database without the session table"""
    factory = create_session_factory(db_url)

    yield factory

    factory.kw["bind"].dispose()


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def clock():
    return FakeClock()


@pytest.fixture(scope="function")
def make_store(session_factory, clock) -> Callable[..., SessionStore]:
    """Build a store with the given options, connected to the test database"""
    def _make(**options: Any) -> SessionStore:
        return SessionStore(clock=clock, **options).connect(session_factory)
    return _make


@pytest.fixture(scope="function")
def store(make_store):
    return make_store(ttl=2)


# ============================================================================
# Inspection helpers
# ============================================================================

@pytest.fixture(scope="function")
def count_rows(session_factory) -> Callable[[], int]:
    """Count every row in the session table, tombstones included"""
    def _count() -> int:
        with session_factory() as db:
            return db.scalar(select(func.count()).select_from(SessionRecord))
    return _count


@pytest.fixture(scope="function")
def fetch_row(session_factory) -> Callable[[str], Any]:
    """Load the raw record for an id, tombstoned or not"""
    def _fetch(sid: str):
        with session_factory() as db:
            return db.get(SessionRecord, sid)
    return _fetch


def insert_row(factory: sessionmaker, sid: str, payload: str, expired_at: int, destroyed_at=None) -> None:
    with factory() as db:
        db.add(SessionRecord(id=sid, json=payload, expired_at=expired_at, destroyed_at=destroyed_at))
        db.commit()


@pytest.fixture(scope="function")
def seed_row(session_factory) -> Callable[..., None]:
    """Insert a record directly, bypassing the store"""
    def _seed(sid: str, payload: str = '{"views": 1}', expired_at: int = 0, destroyed_at=None) -> None:
        insert_row(session_factory, sid, payload, expired_at, destroyed_at)
    return _seed
