# main.py
import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from . import auth, csrf, site_settings
from .credentials import get_admin_credentials, verify_admin_login
from .db import init_db
from .errors import CredentialsNotConfigured, InvalidCredentials, register_exception_handlers
from .models import ErrorResponse, LoginRequest, LoginResponse, SessionPayload
from .pages import render_page
from .session_bootstrap import AdminSessionMiddleware, check_session_setup, open_session
from .session_state import AdminSession, AdminSessionManager
from .session_store import SessionStore, SqliteSessionStore
from .settings import Settings, settings as default_settings
from .tokens import now

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None,
               store: SessionStore | None = None,
               clock: Callable[[], int] | None = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        init_db(settings.DB_PATH)
        check_session_setup(app)
        app.state.session_manager.purge_expired()
        yield

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.session_manager = AdminSessionManager(
        store if store is not None else SqliteSessionStore(settings.DB_PATH),
        settings,
        clock or now,
    )
    app.add_middleware(AdminSessionMiddleware)
    register_exception_handlers(app)
    _add_routes(app, settings)
    app.include_router(site_settings.router)
    return app


def _add_routes(app: FastAPI, settings: Settings) -> None:
    auth_errors = {401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    # ------------------------- pages -------------------------

    @app.get(settings.LOGIN_PATH, response_class=HTMLResponse)
    def login_page(request: Request, session: AdminSession = Depends(open_session)):
        if auth.current_principal(session) is not None:
            return RedirectResponse(settings.DASHBOARD_PATH, status_code=303)
        notice = ""
        if session.expired or request.query_params.get("expired"):
            notice = '<p class="notice">Сессия истекла, войдите снова.</p>\n'
        body = (
            f"{notice}"
            '<form id="login-form" data-action="/api/admin/login">\n'
            f"{csrf.get_token_field(session)}\n"
            '<input name="login" autocomplete="username">\n'
            '<input name="password" type="password" autocomplete="current-password">\n'
            "</form>"
        )
        return render_page("Вход", session, body, with_session=False)

    @app.get(settings.DASHBOARD_PATH, response_class=HTMLResponse)
    def dashboard(request: Request, principal: str = Depends(auth.require_auth())):
        session = open_session(request)
        return render_page("Админ-панель", session, '<main id="admin-app"></main>')

    # -------------------------- API --------------------------

    @app.post("/api/admin/login", response_model=LoginResponse, responses=auth_errors)
    def api_login(payload: LoginRequest, request: Request,
                  session: AdminSession = Depends(open_session),
                  submitted: Optional[str] = Depends(csrf.submitted_token)):
        # pre-login session carries the token the login page handed out
        csrf.require_token(request, session, submitted)

        creds = get_admin_credentials(settings.DB_PATH)
        if creds is None:
            logger.error("login attempted but admin credentials are not configured")
            raise CredentialsNotConfigured()

        if not verify_admin_login(creds, payload.login.strip(), payload.password):
            logger.warning("failed admin login for '%s'", payload.login)
            raise InvalidCredentials()

        client_ip = request.client.host if request.client else None
        intended = auth.login(session, creds.login, client_ip)
        return LoginResponse(
            login=creds.login,
            csrf_token=csrf.get_token(session),
            redirect=intended or settings.DASHBOARD_PATH,
        )

    @app.post("/api/admin/logout", responses=auth_errors)
    def api_logout(request: Request, principal: str = Depends(auth.require_api_auth)):
        auth.logout(open_session(request))
        return {"success": True}

    @app.get("/api/admin/session", response_model=SessionPayload, responses=auth_errors)
    def api_session(request: Request, principal: str = Depends(auth.require_api_auth)):
        return auth.session_payload(open_session(request))


app = create_app()
