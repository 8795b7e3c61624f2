# errors.py
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse

logger = logging.getLogger(__name__)


class SessionConfigurationError(RuntimeError):
    """The shared session cannot be set up; fatal, never handled per request."""


class AdminApiError(HTTPException):
    """JSON API rejection, rendered as {"success": false, "error": ..., "code": ...}."""

    status_code_default = 400
    code = "bad_request"
    message = "Bad request"

    def __init__(self, detail: str | None = None):
        super().__init__(status_code=self.status_code_default, detail=detail or self.message)


class AdminAuthError(AdminApiError):
    """Base for auth/CSRF rejections on the JSON API channel."""

    status_code_default = 401
    code = "auth_error"
    message = "Authentication error"


class AuthenticationRequired(AdminAuthError):
    code = "auth_required"
    message = "Authentication required. Please log in to access this resource."


class SessionExpired(AdminAuthError):
    code = "session_expired"
    message = "Session expired"


class CsrfTokenInvalid(AdminAuthError):
    status_code_default = 403
    code = "csrf_invalid"
    message = "Invalid CSRF token"


class InvalidCredentials(AdminAuthError):
    code = "invalid_credentials"
    message = "Invalid login or password"


class CredentialsNotConfigured(AdminAuthError):
    status_code_default = 503
    code = "credentials_not_configured"
    message = "Admin credentials are not configured"


class InvalidSettingsUpdate(AdminApiError):
    code = "invalid_settings"
    message = "Invalid settings update"


class LoginRedirect(HTTPException):
    """Page-channel rejection: send the browser to the login page."""

    def __init__(self, location: str):
        super().__init__(status_code=303, detail="login_required", headers={"Location": location})
        self.location = location


async def admin_api_error_handler(request: Request, exc: AdminApiError) -> JSONResponse:
    logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.code, exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail, "code": exc.code},
    )


async def login_redirect_handler(request: Request, exc: LoginRedirect) -> RedirectResponse:
    logger.info("%s %s redirected to %s", request.method, request.url.path, exc.location)
    return RedirectResponse(exc.location, status_code=exc.status_code)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AdminApiError, admin_api_error_handler)
    app.add_exception_handler(LoginRedirect, login_redirect_handler)
