# session_bootstrap.py
"""
Shared admin session bootstrap.

Admin pages and the JSON API both go through `open_session`, so they read
the same cookie with the same attributes and land on the same record in the
same store. `ADMIN_SESSION_NAME` is defined here and nowhere else;
`check_session_setup` refuses to start the app otherwise.
"""
import ast
import logging
from pathlib import Path
from typing import Any, Dict

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from .errors import SessionConfigurationError
from .session_state import AdminSession, AdminSessionManager
from .settings import Settings

logger = logging.getLogger(__name__)

ADMIN_SESSION_NAME = "APP_ADMIN_SESSION"

_STATE_SESSION = "admin_session"
_STATE_MIDDLEWARE = "admin_session_middleware"
_STATE_HEADERS_SENT = "admin_session_headers_sent"


def is_secure_transport(request: Request) -> bool:
    if request.url.scheme == "https":
        return True
    if request.headers.get("x-forwarded-proto", "").lower() == "https":
        return True
    return request.url.port == 443


def cookie_params(settings: Settings, secure: bool) -> Dict[str, Any]:
    samesite = settings.COOKIE_SAMESITE.lower()
    if samesite not in ("lax", "strict"):
        samesite = "lax"
    return {
        "httponly": True,
        "secure": settings.COOKIE_SECURE if settings.COOKIE_SECURE is not None else secure,
        "samesite": samesite,
        "path": "/",
    }


def get_session_manager(request: Request) -> AdminSessionManager:
    return request.app.state.session_manager


def open_session(request: Request) -> AdminSession:
    """Start or resume the admin session for this request. Safe to call repeatedly."""
    session = getattr(request.state, _STATE_SESSION, None)
    if session is not None:
        return session

    if not getattr(request.state, _STATE_MIDDLEWARE, False):
        raise SessionConfigurationError("AdminSessionMiddleware is not installed; session cookie cannot be set")
    if getattr(request.state, _STATE_HEADERS_SENT, False):
        raise SessionConfigurationError("response headers already sent; session cookie can no longer be set")

    manager = get_session_manager(request)
    session = AdminSession(
        manager,
        request.cookies.get(ADMIN_SESSION_NAME),
        cookie_params(manager.settings, is_secure_transport(request)),
    )
    session.load()
    setattr(request.state, _STATE_SESSION, session)
    return session


class AdminSessionMiddleware(BaseHTTPMiddleware):
    """Writes the session cookie once the handler is done with the session."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        setattr(request.state, _STATE_MIDDLEWARE, True)
        response = await call_next(request)
        setattr(request.state, _STATE_HEADERS_SENT, True)

        session = getattr(request.state, _STATE_SESSION, None)
        if session is not None:
            session.apply_cookie(response, ADMIN_SESSION_NAME)
        return response


def assert_single_session_name_definition(package_dir: Path | None = None) -> Path:
    """Return the one module defining ADMIN_SESSION_NAME, or raise."""
    root = package_dir or Path(__file__).parent
    found = []
    for path in sorted(root.rglob("*.py")):
        tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        for node in ast.walk(tree):
            if isinstance(node, ast.Assign):
                targets = node.targets
            elif isinstance(node, ast.AnnAssign):
                targets = [node.target]
            else:
                continue
            if any(isinstance(t, ast.Name) and t.id == "ADMIN_SESSION_NAME" for t in targets):
                found.append(f"{path}:{node.lineno}")
    if len(found) != 1:
        raise SessionConfigurationError(
            f"ADMIN_SESSION_NAME must be defined exactly once, found {len(found)}: {found}"
        )
    return Path(found[0].rsplit(":", 1)[0])


def check_session_setup(app: FastAPI) -> None:
    if not any(m.cls is AdminSessionMiddleware for m in app.user_middleware):
        raise SessionConfigurationError("AdminSessionMiddleware is not installed")
    if getattr(app.state, "session_manager", None) is None:
        raise SessionConfigurationError("no session manager configured")
    assert_single_session_name_definition()
    logger.info("admin session '%s' configured (timeout %ss)",
                ADMIN_SESSION_NAME, app.state.session_manager.timeout)
