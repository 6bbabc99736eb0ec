"""Session store engine: TTL policy, cleanup, connectivity and operations."""

from sessionstore.store.cleanup import CleanupEngine
from sessionstore.store.connectivity import ConnectionState, Connectivity
from sessionstore.store.session_store import SessionStore
from sessionstore.store.ttl import ONE_DAY, TtlKind, TtlPolicy

__all__ = [
    "CleanupEngine",
    "ConnectionState",
    "Connectivity",
    "ONE_DAY",
    "SessionStore",
    "TtlKind",
    "TtlPolicy",
]
