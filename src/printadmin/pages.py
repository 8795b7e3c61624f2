# pages.py
"""Bare page shells for the admin UI; the real markup is served as static assets."""
import html
import json

from . import csrf
from .auth import session_payload
from .session_state import AdminSession


def _session_script(session: AdminSession) -> str:
    payload = session_payload(session).model_dump(by_alias=True)
    # keep "</script>" inside a value from closing the tag
    data = json.dumps(payload).replace("</", "<\\/")
    return f"<script>window.ADMIN_SESSION = {data};</script>"


def render_page(title: str, session: AdminSession, body: str = "", with_session: bool = True) -> str:
    script = _session_script(session) if with_session else ""
    return (
        "<!DOCTYPE html>\n"
        '<html lang="ru">\n<head>\n'
        '<meta charset="UTF-8">\n'
        f"<title>{html.escape(title)}</title>\n"
        f"{csrf.get_token_meta(session)}\n"
        "</head>\n<body>\n"
        f"{body}\n"
        f"{script}\n"
        "</body>\n</html>\n"
    )
