# auth.py
"""
Auth guard for admin pages and the admin JSON API.

Both variants run the same check against the same session and clock; a page
request that fails is redirected to the login page, an API request gets a
JSON error. Failures always end the request before the handler runs.
"""
import logging
from typing import Callable, Optional

from fastapi import Depends, Request

from . import csrf
from .errors import AuthenticationRequired, LoginRedirect, SessionExpired
from .models import SessionPayload
from .session_bootstrap import open_session
from .session_state import AdminSession

logger = logging.getLogger(__name__)

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def current_principal(session: AdminSession) -> Optional[str]:
    """Principal of a live, logged-in session, without touching it."""
    record = session.record
    if record is None or not record.authenticated:
        return None
    return record.principal


def _authenticate(session: AdminSession) -> Optional[str]:
    principal = current_principal(session)
    if principal is None:
        return None
    session.touch()
    if session.manager.should_rotate(session.record):  # type: ignore[arg-type]
        # requests already in flight with the old cookie still find the session
        session.regenerate_id(keep_alias=True)
    return principal


def require_auth(redirect_path: str | None = None) -> Callable[[Request], str]:
    """Page variant: returns a dependency that redirects unauthenticated browsers."""

    def dependency(request: Request) -> str:
        session = open_session(request)
        principal = _authenticate(session)
        if principal is not None:
            return principal

        target = redirect_path or session.manager.settings.LOGIN_PATH
        if session.expired:
            target += ("&" if "?" in target else "?") + "expired=1"
        if request.method == "GET":
            url = request.url.path + (f"?{request.url.query}" if request.url.query else "")
            session.update(intended_url=url)
        raise LoginRedirect(target)

    return dependency


def require_api_auth(request: Request, submitted: Optional[str] = Depends(csrf.submitted_token)) -> str:
    """API variant: 401 when not logged in or expired, 403 on a bad CSRF token."""
    session = open_session(request)
    if session.expired:
        session.destroy()
        raise SessionExpired()
    if current_principal(session) is None:
        raise AuthenticationRequired()
    if request.method not in SAFE_METHODS:
        csrf.require_token(request, session, submitted)
    return _authenticate(session)  # type: ignore[return-value]


def login(session: AdminSession, principal: str, client_ip: str | None = None) -> Optional[str]:
    """Mark the session as logged in; returns the page the visitor was headed to."""
    intended = session.record.intended_url if session.record is not None else None
    session.regenerate_id()
    n = session.manager.clock()
    session.update(
        principal=principal,
        login_time=n,
        login_ip=client_ip or "unknown",
        last_activity=n,
        intended_url=None,
    )
    csrf.regenerate_token(session)
    logger.info("admin '%s' logged in from %s", principal, client_ip or "unknown")
    return intended


def logout(session: AdminSession) -> None:
    principal = current_principal(session)
    session.destroy()
    if principal is not None:
        logger.info("admin '%s' logged out", principal)


def session_payload(session: AdminSession) -> SessionPayload:
    principal = current_principal(session)
    return SessionPayload(
        authenticated=principal is not None,
        login=principal,
        csrf_token=csrf.get_token(session),
    )
