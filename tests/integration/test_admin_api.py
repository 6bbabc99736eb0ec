"""
Tests for the administrative session endpoints
"""

import pytest
from fastapi.testclient import TestClient

from sessionstore.api.sessions import create_app
from sessionstore.store.session_store import SessionStore

pytestmark = pytest.mark.integration


@pytest.fixture
def client(store):
    with TestClient(create_app(store)) as test_client:
        yield test_client


class TestSessionsApi:

    @pytest.mark.asyncio
    async def test_lists_live_sessions(self, store, client):
        await store.set("s1", {"views": 1})
        await store.set("s2", {"views": 2})
        await store.destroy("s2")

        response = client.get("/api/sessions")

        assert response.status_code == 200
        assert response.json() == {"count": 1, "sessions": [{"views": 1, "id": "s1"}]}

    @pytest.mark.asyncio
    async def test_destroys_session(self, store, client):
        await store.set("s1", {"views": 1})

        response = client.delete("/api/sessions/s1")

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert await store.get("s1") is None

    def test_destroy_unknown_session_succeeds(self, client):
        response = client.delete("/api/sessions/nope")

        assert response.status_code == 200

    def test_health_when_connected(self, client):
        response = client.get("/api/sessions/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["connected"] is True
        assert data["database"]["table_present"] is True
        assert data["database"]["database_type"] == "sqlite"


class TestSessionsApiFailures:

    @pytest.fixture
    def broken_client(self, empty_session_factory, clock):
        store = SessionStore(ttl=2, clock=clock).connect(empty_session_factory)
        with TestClient(create_app(store)) as test_client:
            yield test_client

    def test_backend_failure_maps_to_503(self, broken_client):
        response = broken_client.get("/api/sessions")

        assert response.status_code == 503
        assert response.json() == {"detail": "Session store unavailable"}

    def test_health_reports_disconnect(self, broken_client):
        broken_client.get("/api/sessions")

        data = broken_client.get("/api/sessions/health").json()

        assert data["status"] == "disconnected"
        assert data["connected"] is False
        assert data["database"]["table_present"] is False

    def test_health_without_database(self):
        with TestClient(create_app(SessionStore())) as test_client:
            data = test_client.get("/api/sessions/health").json()

        assert data == {"status": "disconnected", "connected": False, "database": None}
