# session_state.py
"""
Admin session state: the timeout policy and the request-scoped session handle.

`AdminSession.record` is `None` whenever there is no usable session, be it a
missing cookie, an unknown id or a record evicted for inactivity. Callers
branch on that, and on `expired` when they need to tell the cases apart.
"""
import logging
from typing import Any, Callable, Optional

from starlette.responses import Response

from .models import SessionRecord
from .session_store import SessionStore
from .settings import Settings
from .tokens import new_session_id, now

logger = logging.getLogger(__name__)


class AdminSessionManager:
    """Owns the single session store plus the clock and window every context uses."""

    def __init__(self, store: SessionStore, settings: Settings, clock: Callable[[], int] = now):
        self.store = store
        self.settings = settings
        self.clock = clock
        self._last_purge: int | None = None

    @property
    def timeout(self) -> int:
        return self.settings.SESSION_TIMEOUT_SECONDS

    def is_expired(self, record: SessionRecord, at: int | None = None) -> bool:
        current = self.clock() if at is None else at
        return current - record.last_activity > self.timeout

    def alias_lapsed(self, record: SessionRecord) -> bool:
        return self.clock() - record.last_activity > self.settings.SESSION_ROTATE_GRACE_SECONDS

    def should_rotate(self, record: SessionRecord) -> bool:
        interval = self.settings.SESSION_ROTATE_SECONDS
        return interval > 0 and self.clock() - record.created_at > interval

    def purge_expired(self) -> int:
        """Sweep every record that has been idle longer than the timeout."""
        n = self.clock()
        self._last_purge = n
        purged = self.store.purge_expired(n - self.timeout)
        if purged:
            logger.info("purged %d expired admin session(s)", purged)
        return purged

    def maybe_purge(self) -> int:
        n = self.clock()
        if self._last_purge is not None and n - self._last_purge < self.settings.SESSION_GC_INTERVAL_SECONDS:
            return 0
        return self.purge_expired()


class AdminSession:
    def __init__(self, manager: AdminSessionManager, session_id: str | None, cookie_params: dict):
        self.manager = manager
        self.session_id = session_id or None
        self.cookie_params = cookie_params
        self.record: Optional[SessionRecord] = None
        self.expired = False
        self._issue_cookie = False
        self._clear_cookie = False

    @property
    def store(self) -> SessionStore:
        return self.manager.store

    @property
    def principal(self) -> str | None:
        return self.record.principal if self.record is not None else None

    def load(self) -> Optional[SessionRecord]:
        """Read the record behind the cookie, evicting it when it has aged out."""
        if self.session_id is None:
            return None
        sid = self.session_id
        record = self._read(sid)
        while record is not None and record.rotated_to is not None:
            sid = record.rotated_to
            record = self._read(sid)
        if record is None:
            # unknown or evicted id: never adopted, a fresh one is issued on write
            self.session_id = None
            self._clear_cookie = self.expired
        elif sid != self.session_id:
            logger.debug("session %s followed to %s after rotation", self.session_id[:8], sid[:8])
            self._follow(sid)
        self.record = record
        return record

    def _read(self, sid: str) -> Optional[SessionRecord]:
        with self.store.lock(sid):
            record = self.store.get(sid)
            if record is None:
                return None
            if record.rotated_to is not None:
                if not self.manager.alias_lapsed(record):
                    return record
                self.store.delete(sid)
                return None
            if self.manager.is_expired(record):
                self.store.delete(sid)
                self.expired = True
                logger.info("session %s evicted after %ss of inactivity",
                            sid[:8], self.manager.clock() - record.last_activity)
                return None
        return record

    def _follow(self, sid: str) -> None:
        self.session_id = sid
        self._issue_cookie = True
        self._clear_cookie = False

    def update(self, **fields: Any) -> SessionRecord:
        """Persist `fields`, creating the session on first write."""
        if self.session_id is None or self.record is None:
            return self._create(**fields)
        with self.store.lock(self.session_id):
            current = self.store.get(self.session_id)
            if current is not None and current.rotated_to is None:
                record = current.model_copy(update=fields)
                self.store.put(self.session_id, record)
        if current is None:
            # destroyed by a parallel request (logout in another tab)
            return self._create(**fields)
        if current.rotated_to is not None:
            # rotated by a parallel request; the write belongs to the new id
            self._follow(current.rotated_to)
            return self.update(**fields)
        self.record = record
        return record

    def get_or_set(self, field: str, factory: Callable[[], Any]) -> Any:
        """Return `field`, storing `factory()` first if it is still empty."""
        if self.session_id is None or self.record is None:
            return getattr(self._create(**{field: factory()}), field)
        with self.store.lock(self.session_id):
            current = self.store.get(self.session_id)
            if current is not None and current.rotated_to is None:
                value = getattr(current, field)
                if value is None:
                    value = factory()
                    current = current.model_copy(update={field: value})
                    self.store.put(self.session_id, current)
        if current is None:
            return getattr(self._create(**{field: factory()}), field)
        if current.rotated_to is not None:
            self._follow(current.rotated_to)
            return self.get_or_set(field, factory)
        self.record = current
        return value

    def touch(self) -> SessionRecord:
        return self.update(last_activity=self.manager.clock())

    def regenerate_id(self, keep_alias: bool = False) -> str:
        """
        Move the record to a fresh id.

        The old id is dropped, unless `keep_alias` is set: then it stays behind
        for SESSION_ROTATE_GRACE_SECONDS as a pointer to the new id, so
        requests sent before the new cookie arrived are not logged out.
        Login must not keep an alias, the pre-login id is never trusted again.
        """
        if self.record is None:
            self._create()
            return self.session_id  # type: ignore[return-value]
        old_id = self.session_id
        new_id = new_session_id()
        n = self.manager.clock()
        record = self.record.model_copy(update={"session_id": new_id, "created_at": n})
        with self.store.lock(old_id):  # type: ignore[arg-type]
            current = self.store.get(old_id)  # type: ignore[arg-type]
            if current is not None and current.rotated_to is not None:
                # a parallel request rotated first; join its id instead of forking
                self._follow(current.rotated_to)
                self.record = self.store.get(current.rotated_to)
                return current.rotated_to
            if keep_alias:
                alias = SessionRecord(session_id=old_id, created_at=n, last_activity=n, rotated_to=new_id)
                self.store.put(old_id, alias)  # type: ignore[arg-type]
            else:
                self.store.delete(old_id)  # type: ignore[arg-type]
            self.store.put(new_id, record)
        self._follow(new_id)
        self.record = record
        logger.debug("session %s regenerated as %s", old_id[:8], new_id[:8])  # type: ignore[index]
        return new_id

    def destroy(self) -> None:
        if self.session_id is not None:
            with self.store.lock(self.session_id):
                self.store.delete(self.session_id)
        self.session_id = None
        self.record = None
        self._issue_cookie = False
        self._clear_cookie = True

    def apply_cookie(self, response: Response, cookie_name: str) -> None:
        """Write the pending cookie change, if any, onto the outgoing response."""
        if self._issue_cookie and self.session_id is not None:
            response.set_cookie(key=cookie_name, value=self.session_id, **self.cookie_params)
        elif self._clear_cookie:
            response.delete_cookie(
                cookie_name,
                path=self.cookie_params["path"],
                secure=self.cookie_params["secure"],
                httponly=self.cookie_params["httponly"],
                samesite=self.cookie_params["samesite"],
            )

    def _create(self, **fields: Any) -> SessionRecord:
        self.manager.maybe_purge()
        n = self.manager.clock()
        sid = new_session_id()
        record = SessionRecord(**{"session_id": sid, "created_at": n, "last_activity": n, **fields})
        with self.store.lock(sid):
            self.store.put(sid, record)
        self._follow(sid)
        self.record = record
        logger.debug("session %s created", sid[:8])
        return record
