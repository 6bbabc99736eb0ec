from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


def get_connect_args(url: str) -> Dict[str, Any]:
    """Get database-specific connection arguments"""
    if url.startswith("sqlite"):
        # Store operations run on worker threads
        return {"check_same_thread": False}
    # PostgreSQL and other databases don't need special args
    return {}


def create_db_engine(url: str, **engine_kwargs: Any) -> Engine:
    """Create an engine with the connection arguments the URL needs"""
    engine_kwargs.setdefault("connect_args", get_connect_args(url))
    # Bound values include session ids and payloads; keep them out of error text
    engine_kwargs.setdefault("hide_parameters", True)
    if url.startswith("sqlite") and (":memory:" in url or url.rstrip("/") == "sqlite:"):
        # Every thread must see the same in-memory database
        engine_kwargs.setdefault("poolclass", StaticPool)
    return create_engine(url, **engine_kwargs)


def create_session_factory(url: str, **engine_kwargs: Any) -> sessionmaker:
    """
    Create the session factory handed to SessionStore.connect().

    Args:
        url: SQLAlchemy database URL
        **engine_kwargs: Extra arguments for create_engine

    Returns:
        A sessionmaker bound to a new engine
    """
    engine = create_db_engine(url, **engine_kwargs)
    return sessionmaker(
        bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
    )


@contextmanager
def get_db_sync(factory: sessionmaker) -> Generator[Session, None, None]:
    """Open a DB session from the factory and always close it"""
    db = factory()
    try:
        yield db
    finally:
        db.close()
