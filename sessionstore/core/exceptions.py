"""Exceptions raised by the session store."""

from typing import Optional


class SessionStoreError(Exception):
    """Base class for session store failures"""
    pass


class SessionSerializationError(SessionStoreError):
    """Raised when a session payload cannot be encoded or decoded"""
    pass


class SessionBackendError(SessionStoreError):
    """
    Raised when the backing relational store fails.

    Wraps the underlying SQLAlchemy error so callers can handle every
    backend failure with a single except clause.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        original: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.original = original


class StoreNotConnectedError(SessionBackendError):
    """Raised when an operation runs before a repository handle was bound"""
    pass
