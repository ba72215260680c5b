# coshh/services/state_store.py
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Protocol, Tuple

from sqlalchemy import delete, event, select, update
from sqlalchemy.orm import Session

from coshh.assessment.state import WorkflowState
from coshh.config import get_settings
from coshh.db import SessionLocal
from coshh.models import WorkflowSession

logger = logging.getLogger(__name__)


class StaleStateError(Exception):
    """
    The stored state changed since it was read.
    """


@dataclass(frozen=True)
class StoredState:
    state: WorkflowState
    version: int


class WorkflowStateStore(Protocol):
    """
    Writes given a ``session`` take part in that session's transaction:
    version conflicts raise before the commit, and nothing is stored if the
    transaction rolls back.
    """

    def get(self, key: str) -> Optional[StoredState]:
        ...

    def put(
        self,
        key: str,
        state: WorkflowState,
        ttl: Optional[int] = None,
        expected_version: Optional[int] = None,
        session: Optional[Session] = None,
    ) -> int:
        ...

    def delete(
        self,
        key: str,
        expected_version: Optional[int] = None,
        session: Optional[Session] = None,
    ) -> None:
        ...

    def purge_expired(self) -> int:
        ...


def _utcnow() -> datetime:
    return datetime.utcnow()


def _stale(key: str, current: int, expected: int) -> StaleStateError:
    return StaleStateError(f"Workflow state {key} is at version {current}, expected {expected}")


class InMemoryStateStore:
    """
    Process-local store. Keeps serialised JSON rather than live objects so
    two readers never share one mutable state. Expired entries are dropped
    on read and swept on every write.
    """

    def __init__(self, default_ttl: Optional[int] = None):
        self.default_ttl = default_ttl or get_settings().workflow_state_ttl_seconds
        self._lock = threading.Lock()
        self._items: Dict[str, Tuple[str, int, datetime]] = {}

    def get(self, key: str) -> Optional[StoredState]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            payload, version, expires_at = item
            if expires_at <= _utcnow():
                logger.info("Workflow state %s expired", key)
                del self._items[key]
                return None
        return StoredState(state=WorkflowState.model_validate_json(payload), version=version)

    def put(
        self,
        key: str,
        state: WorkflowState,
        ttl: Optional[int] = None,
        expected_version: Optional[int] = None,
        session: Optional[Session] = None,
    ) -> int:
        payload = state.model_dump_json()
        expires_at = _utcnow() + timedelta(seconds=ttl or self.default_ttl)
        with self._lock:
            version = self._check_version(key, expected_version) + 1

        def apply() -> None:
            with self._lock:
                self._items[key] = (payload, version, expires_at)
                self._purge_locked()

        self._run(apply, session)
        return version

    def delete(
        self,
        key: str,
        expected_version: Optional[int] = None,
        session: Optional[Session] = None,
    ) -> None:
        with self._lock:
            self._check_version(key, expected_version)

        def apply() -> None:
            with self._lock:
                self._items.pop(key, None)

        self._run(apply, session)

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_locked()

    def _check_version(self, key: str, expected_version: Optional[int]) -> int:
        current = self._items.get(key)
        current_version = current[1] if current is not None else 0
        if expected_version is not None and expected_version != current_version:
            raise _stale(key, current_version, expected_version)
        return current_version

    def _purge_locked(self) -> int:
        now = _utcnow()
        expired = [key for key, (_, _, expires_at) in self._items.items() if expires_at <= now]
        for key in expired:
            del self._items[key]
        if expired:
            logger.info("Purged %d expired workflow states", len(expired))
        return len(expired)

    @staticmethod
    def _run(apply: Callable[[], None], session: Optional[Session]) -> None:
        if session is None:
            apply()
        else:
            # Only touch the map once the caller's transaction has committed
            event.listen(session, "after_commit", lambda _session: apply(), once=True)

    def __len__(self) -> int:
        return len(self._items)


class DatabaseStateStore:
    """
    Stores each workflow as a row in workflow_sessions. Writes check the
    version column so concurrent writers cannot silently overwrite each other.
    """

    def __init__(self, session_factory=SessionLocal, default_ttl: Optional[int] = None):
        self.session_factory = session_factory
        self.default_ttl = default_ttl or get_settings().workflow_state_ttl_seconds

    def get(self, key: str) -> Optional[StoredState]:
        session = self.session_factory()
        try:
            row = session.get(WorkflowSession, key)
            if row is None:
                return None
            if row.expires_at <= _utcnow():
                logger.info("Workflow state %s expired", key)
                session.delete(row)
                session.commit()
                return None
            return StoredState(state=WorkflowState.model_validate(row.data), version=row.version)
        finally:
            session.close()

    def put(
        self,
        key: str,
        state: WorkflowState,
        ttl: Optional[int] = None,
        expected_version: Optional[int] = None,
        session: Optional[Session] = None,
    ) -> int:
        data = json.loads(state.model_dump_json())
        expires_at = _utcnow() + timedelta(seconds=ttl or self.default_ttl)
        return self._in_transaction(
            session, lambda s: self._put(s, key, data, expires_at, expected_version)
        )

    def delete(
        self,
        key: str,
        expected_version: Optional[int] = None,
        session: Optional[Session] = None,
    ) -> None:
        self._in_transaction(session, lambda s: self._delete(s, key, expected_version))

    def purge_expired(self) -> int:
        return self._in_transaction(None, self._purge)

    def _put(self, session: Session, key: str, data: dict, expires_at: datetime, expected_version: Optional[int]) -> int:
        current = session.scalar(select(WorkflowSession.version).where(WorkflowSession.key == key))
        if current is None:
            if expected_version:
                raise StaleStateError(f"Workflow state {key} no longer exists")
            # New sessions are where the table grows, so sweep here
            self._purge(session)
            session.add(WorkflowSession(key=key, data=data, version=1, expires_at=expires_at))
            session.flush()
            return 1

        if expected_version is not None and current != expected_version:
            raise _stale(key, current, expected_version)

        result = session.execute(
            update(WorkflowSession)
            .where(WorkflowSession.key == key, WorkflowSession.version == current)
            .values(data=data, version=current + 1, expires_at=expires_at)
        )
        if result.rowcount != 1:
            raise StaleStateError(f"Workflow state {key} was modified concurrently")
        return current + 1

    def _delete(self, session: Session, key: str, expected_version: Optional[int]) -> None:
        stmt = delete(WorkflowSession).where(WorkflowSession.key == key)
        if not expected_version:
            if expected_version == 0 and session.get(WorkflowSession, key) is not None:
                raise StaleStateError(f"Workflow state {key} was created concurrently")
            session.execute(stmt)
            return

        result = session.execute(stmt.where(WorkflowSession.version == expected_version))
        if result.rowcount != 1:
            raise StaleStateError(f"Workflow state {key} is no longer at version {expected_version}")

    def _purge(self, session: Session) -> int:
        result = session.execute(delete(WorkflowSession).where(WorkflowSession.expires_at <= _utcnow()))
        if result.rowcount:
            logger.info("Purged %d expired workflow states", result.rowcount)
        return result.rowcount

    def _in_transaction(self, session: Optional[Session], work):
        if session is not None:
            return work(session)

        own = self.session_factory()
        try:
            result = work(own)
            own.commit()
            return result
        except Exception:
            own.rollback()
            raise
        finally:
            own.close()


def get_state_store() -> WorkflowStateStore:
    settings = get_settings()
    if settings.workflow_state_backend == "database":
        return DatabaseStateStore()
    if settings.workflow_state_backend != "memory":
        raise ValueError(f"Unknown WORKFLOW_STATE_BACKEND: {settings.workflow_state_backend!r}")
    return InMemoryStateStore()
