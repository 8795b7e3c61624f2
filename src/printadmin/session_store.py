# session_store.py
"""
Server-side storage for admin session records.

Every store is keyed by session id and exposes a per-id lock. Callers hold
the lock only around a read-modify-write, so two tabs of the same browser
serialize their writes without blocking each other for a whole request.
"""
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import ContextManager, Dict, Iterator, Optional, Protocol, Tuple

from .db import get_conn, fetchone_dict
from .models import SessionRecord

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    def get(self, session_id: str) -> Optional[SessionRecord]: ...

    def put(self, session_id: str, record: SessionRecord) -> None: ...

    def delete(self, session_id: str) -> None: ...

    def lock(self, session_id: str) -> ContextManager[None]: ...

    def purge_expired(self, cutoff: int) -> int:
        """Drop records idle since before `cutoff`; returns how many went."""
        ...


class SessionLocks:
    """Registry of one lock per session id, dropped once nobody waits on it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, Tuple[threading.Lock, int]] = {}

    @contextmanager
    def hold(self, session_id: str) -> Iterator[None]:
        with self._guard:
            lock, users = self._locks.get(session_id, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[session_id] = (lock, users + 1)
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                _, users = self._locks[session_id]
                if users <= 1:
                    del self._locks[session_id]
                else:
                    self._locks[session_id] = (lock, users - 1)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class InMemorySessionStore:
    """Process-local store. Records are copied in and out."""

    def __init__(self) -> None:
        self._records: Dict[str, SessionRecord] = {}
        self._mutex = threading.Lock()
        self.locks = SessionLocks()

    def get(self, session_id: str) -> Optional[SessionRecord]:
        with self._mutex:
            record = self._records.get(session_id)
        return record.model_copy() if record is not None else None

    def put(self, session_id: str, record: SessionRecord) -> None:
        with self._mutex:
            self._records[session_id] = record.model_copy()

    def delete(self, session_id: str) -> None:
        with self._mutex:
            self._records.pop(session_id, None)

    def lock(self, session_id: str) -> ContextManager[None]:
        return self.locks.hold(session_id)

    def purge_expired(self, cutoff: int) -> int:
        with self._mutex:
            stale = [sid for sid, r in self._records.items() if r.last_activity < cutoff]
            for sid in stale:
                del self._records[sid]
        return len(stale)

    def __len__(self) -> int:
        with self._mutex:
            return len(self._records)


class SqliteSessionStore:
    """Store backed by the admin_sessions table (see db.init_db)."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = db_path
        self.locks = SessionLocks()

    def get(self, session_id: str) -> Optional[SessionRecord]:
        conn = get_conn(self.db_path)
        cur = conn.cursor()
        cur.execute("SELECT * FROM admin_sessions WHERE session_id=?;", (session_id,))
        row = fetchone_dict(cur.fetchone())
        conn.close()
        return SessionRecord.model_validate(row) if row else None

    def put(self, session_id: str, record: SessionRecord) -> None:
        conn = get_conn(self.db_path)
        cur = conn.cursor()
        cur.execute("""
            INSERT OR REPLACE INTO admin_sessions(session_id, principal, created_at, last_activity,
                                                  csrf_token, login_time, login_ip, intended_url, rotated_to)
            VALUES(?,?,?,?,?,?,?,?,?)
        """, (session_id, record.principal, record.created_at, record.last_activity,
              record.csrf_token, record.login_time, record.login_ip, record.intended_url,
              record.rotated_to))
        conn.commit()
        conn.close()

    def delete(self, session_id: str) -> None:
        conn = get_conn(self.db_path)
        cur = conn.cursor()
        cur.execute("DELETE FROM admin_sessions WHERE session_id=?;", (session_id,))
        if cur.rowcount == 0:
            logger.debug("session %s already gone", session_id[:8])
        conn.commit()
        conn.close()

    def lock(self, session_id: str) -> ContextManager[None]:
        return self.locks.hold(session_id)

    def purge_expired(self, cutoff: int) -> int:
        conn = get_conn(self.db_path)
        cur = conn.cursor()
        cur.execute("DELETE FROM admin_sessions WHERE last_activity < ?;", (cutoff,))
        purged = cur.rowcount
        conn.commit()
        conn.close()
        return purged
