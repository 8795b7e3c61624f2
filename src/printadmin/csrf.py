# csrf.py
"""CSRF token manager: one token per session, shared by admin pages and the API."""
import html
import logging
from typing import Optional

from fastapi import Request

from .errors import CsrfTokenInvalid
from .session_state import AdminSession
from .tokens import new_csrf_token, tokens_match

logger = logging.getLogger(__name__)

CSRF_HEADER = "X-CSRF-Token"
CSRF_FIELD = "csrf_token"
FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _generate(session: AdminSession) -> str:
    return new_csrf_token(session.manager.settings.CSRF_TOKEN_BYTES)


def get_token(session: AdminSession) -> str:
    """The session's token, generated on first use."""
    return session.get_or_set("csrf_token", lambda: _generate(session))


def regenerate_token(session: AdminSession) -> str:
    token = _generate(session)
    session.update(csrf_token=token)
    return token


def get_token_meta(session: AdminSession) -> str:
    token = html.escape(get_token(session), quote=True)
    return f'<meta name="csrf-token" content="{token}">'


def get_token_field(session: AdminSession, field_name: str = CSRF_FIELD) -> str:
    name = html.escape(field_name, quote=True)
    token = html.escape(get_token(session), quote=True)
    return f'<input type="hidden" name="{name}" value="{token}">'


def verify(session: AdminSession, submitted: str | None) -> bool:
    stored = session.record.csrf_token if session.record is not None else None
    if not submitted or not stored:
        return False
    return tokens_match(stored, submitted)


async def submitted_token(request: Request) -> Optional[str]:
    """Token sent with the request: the header, or the form field of a plain form post."""
    token = request.headers.get(CSRF_HEADER)
    if token:
        return token
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        value = form.get(CSRF_FIELD)
        return value if isinstance(value, str) else None
    return None


def require_token(request: Request, session: AdminSession, submitted: str | None) -> None:
    if not verify(session, submitted):
        logger.warning("CSRF check failed for %s %s", request.method, request.url.path)
        raise CsrfTokenInvalid()
