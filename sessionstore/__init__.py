"""Session persistence on a relational database with expiry and tombstones."""

from sessionstore.core.config import Settings, StoreOptions
from sessionstore.core.exceptions import (
    SessionBackendError,
    SessionSerializationError,
    SessionStoreError,
    StoreNotConnectedError,
)
from sessionstore.db.session import create_session_factory
from sessionstore.store import ConnectionState, SessionStore, TtlPolicy

__version__ = "0.3.0"

__all__ = [
    "ConnectionState",
    "SessionBackendError",
    "SessionSerializationError",
    "SessionStore",
    "SessionStoreError",
    "Settings",
    "StoreNotConnectedError",
    "StoreOptions",
    "TtlPolicy",
    "create_session_factory",
]
