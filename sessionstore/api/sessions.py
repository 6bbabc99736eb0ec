"""
Administrative session endpoints.

Enumeration, forced invalidation and a health probe for a SessionStore.
Cookie handling stays with the session middleware.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from pydantic import BaseModel

from sessionstore.core.exceptions import SessionStoreError
from sessionstore.db.health import check_database_health
from sessionstore.store.session_store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter()


class SessionListResponse(BaseModel):
    """Response model for live session enumeration"""
    count: int
    sessions: List[Dict[str, Any]]

    model_config = {
        "json_schema_extra": {
            "example": {
                "count": 1,
                "sessions": [{"id": "abc123", "views": 3}]
            }
        }
    }


class DestroyResponse(BaseModel):
    """Response model for session invalidation"""
    success: bool


class StoreHealthResponse(BaseModel):
    """Response model for session store health"""
    status: str
    connected: bool
    database: Optional[Dict[str, Any]] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "healthy",
                "connected": True,
                "database": {"status": "healthy", "database_type": "sqlite"}
            }
        }
    }


def get_session_store(request: Request) -> SessionStore:
    store = getattr(request.app.state, "session_store", None)
    if store is None:
        raise RuntimeError("Session store has not been initialised")
    return store


@router.get("/sessions/health", response_model=StoreHealthResponse)
def get_store_health(store: SessionStore = Depends(get_session_store)) -> StoreHealthResponse:
    """
    Get session store health.

    Reports the connectivity state and, when a database is bound, a probe
    of the database and the session table.
    """
    database = None
    factory = store.session_factory
    engine = factory.kw.get("bind") if factory is not None else None
    if engine is not None:
        database = check_database_health(engine)

    return StoreHealthResponse(
        status="healthy" if store.connected else "disconnected",
        connected=store.connected,
        database=database,
    )


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(store: SessionStore = Depends(get_session_store)) -> SessionListResponse:
    """List all live sessions."""
    try:
        sessions = await store.all()
    except SessionStoreError as e:
        logger.error(f"Error listing sessions: {type(e).__name__}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session store unavailable"
        )
    return SessionListResponse(count=len(sessions), sessions=sessions)


@router.delete("/sessions/{sid}", response_model=DestroyResponse)
async def destroy_session(
    sid: str,
    store: SessionStore = Depends(get_session_store),
) -> DestroyResponse:
    """Invalidate a session. Unknown ids are not an error."""
    try:
        await store.destroy(sid)
    except SessionStoreError as e:
        logger.error(f"Error destroying session: {type(e).__name__}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session store unavailable"
        )
    return DestroyResponse(success=True)


def create_app(store: SessionStore) -> FastAPI:
    """Build an admin app serving the session endpoints under /api"""
    app = FastAPI(
        title="Session Store Admin",
        description="Administrative access to persisted sessions",
    )
    app.state.session_store = store
    app.include_router(router, prefix="/api", tags=["Sessions"])
    return app
