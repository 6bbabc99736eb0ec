"""
SQLAlchemy-backed session store.

Persists session payloads as JSON in a single table and enforces expiry.
Destroyed sessions are tombstoned rather than deleted so that a save racing
the destroy cannot bring them back; the cleanup engine removes them later.

Every operation is a coroutine that runs its blocking database work on a
worker thread. "Absent" is reported as None, failures are raised.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Optional, Union

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from sessionstore.core.config import StoreOptions
from sessionstore.core.exceptions import (
    SessionBackendError,
    SessionSerializationError,
    StoreNotConnectedError,
)
from sessionstore.db.models.session_record import SessionRecord, now_ms
from sessionstore.db.session import get_db_sync
from sessionstore.store.cleanup import CleanupEngine
from sessionstore.store.connectivity import ConnectionState, Connectivity
from sessionstore.store.ttl import TtlPolicy, has_fixed_expiry

logger = logging.getLogger(__name__)


def _describe_failure(operation: str, error: SQLAlchemyError) -> str:
    # str(error) carries the statement and its bound values
    cause = getattr(error, "orig", None) or error
    return f"Session store {operation} failed: {type(cause).__name__}"


class SessionStore:
    """Session store over a caller-owned SQLAlchemy session factory."""

    def __init__(
        self,
        options: Optional[StoreOptions] = None,
        *,
        clock: Optional[Callable[[], int]] = None,
        **overrides: Any,
    ):
        if options is None:
            options = StoreOptions(**overrides)
        elif overrides:
            options = dataclasses.replace(options, **overrides)

        self.options = options
        self.ttl_policy = TtlPolicy.from_option(options.ttl)
        self.cleanup = CleanupEngine(options.cleanup_limit, options.limit_subquery)
        self.connectivity = Connectivity(self, on_error=options.on_error)
        self._clock = clock or now_ms
        self._session_factory: Optional[sessionmaker] = None

    # ------------------------------------------------------------------
    # Connectivity
    # ------------------------------------------------------------------

    def connect(self, session_factory: sessionmaker) -> "SessionStore":
        """
        Bind the repository handle and become Connected.

        The factory (and its engine) stays owned by the caller; the store
        never opens or disposes of it.
        """
        self._session_factory = session_factory
        self.connectivity.mark_connected()
        return self

    def disconnect(self, error: Optional[BaseException] = None) -> None:
        self.connectivity.mark_disconnected(error)

    @property
    def session_factory(self) -> Optional[sessionmaker]:
        return self._session_factory

    @property
    def state(self) -> ConnectionState:
        return self.connectivity.state

    @property
    def connected(self) -> bool:
        return self.connectivity.connected

    def on(self, event: str, listener: Callable[..., None]) -> None:
        self.connectivity.on(event, listener)

    def off(self, event: str, listener: Callable[..., None]) -> None:
        self.connectivity.off(event, listener)

    def emit(self, event: str, *args: Any) -> None:
        self.connectivity.emit(event, *args)

    def get_ttl(self, sess: Any, sid: Optional[str] = None) -> int:
        return self.ttl_policy.resolve(self, sess, sid)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def get(self, sid: str) -> Optional[dict]:
        """Fetch the live session for `sid`, or None."""
        logger.debug("GET session", extra={"sid": sid})
        return await self._run("get", self._get_sync, sid)

    async def set(self, sid: str, sess: Any) -> None:
        """
        Commit `sess` under `sid`.

        Cleans up a bounded batch of expired rows first when cleanup is
        enabled. A session destroyed concurrently stays destroyed.

        Raises:
            SessionSerializationError: If the payload is not JSON-encodable;
                the database is not touched
            SessionBackendError: If the database fails
        """
        try:
            payload = json.dumps(sess)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to encode session payload: {e}")
            raise SessionSerializationError(f"Session payload cannot be encoded: {e}") from e

        ttl = self.get_ttl(sess, sid)
        logger.debug("SET session", extra={"sid": sid, "ttl": ttl})
        await self._run("set", self._set_sync, sid, payload, ttl)
        logger.debug("SET complete")

    async def destroy(self, sid: Union[str, Iterable[str]]) -> None:
        """Tombstone one session id or a batch of them."""
        ids = [sid] if isinstance(sid, str) else list(sid)
        logger.debug("DEL sessions", extra={"sid": ids})
        if not ids:
            return
        await self._run("destroy", self._destroy_sync, ids)

    async def touch(self, sid: str, sess: Any) -> None:
        """
        Push back the expiry of `sid` without rewriting its payload.

        Does nothing when the cookie carries its own fixed expiration.
        """
        if has_fixed_expiry(sess):
            logger.debug("Skip EXPIRE, cookie has fixed expiration", extra={"sid": sid})
            return

        ttl = self.get_ttl(sess, sid)
        logger.debug("EXPIRE session", extra={"sid": sid, "ttl": ttl})
        await self._run("touch", self._touch_sync, sid, ttl)
        logger.debug("EXPIRE complete")

    async def all(self) -> List[dict]:
        """All live sessions, each with its id injected."""
        return await self._run("all", self._all_sync)

    async def length(self) -> int:
        """Number of live sessions."""
        return await self._run("length", self._length_sync)

    # ------------------------------------------------------------------
    # Worker-thread bodies
    # ------------------------------------------------------------------

    async def _run(self, operation: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.to_thread(self._call, operation, func, *args)
        except SessionBackendError as e:
            logger.error(f"Session store {operation} failed", extra={
                "operation": operation,
                "error_type": type(e.original or e).__name__,
            })
            try:
                self.connectivity.report_failure(e)
            except Exception:
                logger.exception("Session store error handler failed", extra={
                    "operation": operation,
                })
            raise

    def _call(self, operation: str, func: Callable[..., Any], *args: Any) -> Any:
        factory = self._session_factory
        if factory is None:
            raise StoreNotConnectedError(
                "Session store is not connected to a database", operation=operation
            )

        with get_db_sync(factory) as db:
            try:
                return func(db, *args)
            except SQLAlchemyError as e:
                db.rollback()
                raise SessionBackendError(
                    _describe_failure(operation, e), operation=operation, original=e
                ) from e

    def _get_sync(self, db: Session, sid: str) -> Optional[dict]:
        row = db.execute(
            select(SessionRecord.id, SessionRecord.json)
            .where(SessionRecord.id == sid)
            .where(SessionRecord.is_live(self._clock()))
        ).first()
        if row is None:
            return None
        return self._decode(row.id, row.json)

    def _set_sync(self, db: Session, sid: str, payload: str, ttl: int) -> None:
        now = self._clock()
        expired_at = now + int(ttl * 1000)

        self.cleanup.purge(db, now)

        existing = self._find_record(db, sid)
        if existing is None:
            try:
                db.add(SessionRecord(id=sid, json=payload, expired_at=expired_at))
                db.flush()
            except IntegrityError:
                # A concurrent first save inserted the row; update it instead
                db.rollback()
                logger.debug("Insert raced another save, updating instead", extra={"sid": sid})
                self._update_live(db, sid, payload, expired_at)
        elif existing.destroyed_at is not None:
            logger.debug("Session was destroyed, not reviving it", extra={"sid": sid})
        else:
            self._update_live(db, sid, payload, expired_at)

        db.commit()

    def _find_record(self, db: Session, sid: str):
        """Look up the row for `sid`, tombstoned or not"""
        return db.execute(
            select(SessionRecord.id, SessionRecord.destroyed_at)
            .where(SessionRecord.id == sid)
        ).first()

    def _update_live(self, db: Session, sid: str, payload: str, expired_at: int) -> int:
        # Scoped to live rows: a destroy committed since the lookup wins
        result = db.execute(
            update(SessionRecord)
            .where(SessionRecord.id == sid)
            .where(SessionRecord.destroyed_at.is_(None))
            .values({SessionRecord.json: payload, SessionRecord.expired_at: expired_at})
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.debug("Session destroyed during save, skipping update", extra={"sid": sid})
        return result.rowcount

    def _destroy_sync(self, db: Session, ids: List[str]) -> None:
        destroyed_at = datetime.fromtimestamp(self._clock() / 1000, tz=timezone.utc)
        db.execute(
            update(SessionRecord)
            .where(SessionRecord.id.in_(ids))
            .where(SessionRecord.destroyed_at.is_(None))
            .values({SessionRecord.destroyed_at: destroyed_at})
            .execution_options(synchronize_session=False)
        )
        db.commit()

    def _touch_sync(self, db: Session, sid: str, ttl: int) -> None:
        db.execute(
            update(SessionRecord)
            .where(SessionRecord.id == sid)
            .where(SessionRecord.destroyed_at.is_(None))
            .values({SessionRecord.expired_at: self._clock() + int(ttl * 1000)})
            .execution_options(synchronize_session=False)
        )
        db.commit()

    def _all_sync(self, db: Session) -> List[dict]:
        rows = db.execute(
            select(SessionRecord.id, SessionRecord.json)
            .where(SessionRecord.is_live(self._clock()))
            .order_by(SessionRecord.id)
        ).all()
        return [self._decode(row.id, row.json) for row in rows]

    def _length_sync(self, db: Session) -> int:
        return db.scalar(
            select(func.count())
            .select_from(SessionRecord)
            .where(SessionRecord.is_live(self._clock()))
        ) or 0

    @staticmethod
    def _decode(sid: str, payload: str) -> Any:
        try:
            sess = json.loads(payload)
        except ValueError as e:
            logger.error(f"Stored session payload is not valid JSON: {e}")
            raise SessionSerializationError("Stored session payload cannot be decoded") from e

        if isinstance(sess, dict):
            sess["id"] = sid
        return sess
