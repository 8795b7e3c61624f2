# models.py
from pydantic import BaseModel, ConfigDict, Field

class SessionRecord(BaseModel):
    session_id: str
    principal: str | None = None     # None until login
    created_at: int
    last_activity: int
    csrf_token: str | None = None
    login_time: int | None = None
    login_ip: str | None = None
    intended_url: str | None = None
    rotated_to: str | None = None    # set on the alias left behind by id rotation

    @property
    def authenticated(self) -> bool:
        return self.principal is not None

class LoginRequest(BaseModel):
    login: str
    password: str

class LoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    login: str
    csrf_token: str = Field(alias="csrfToken")
    redirect: str

class SessionPayload(BaseModel):
    """What page scripts and API clients learn about the current session."""
    model_config = ConfigDict(populate_by_name=True)

    authenticated: bool
    login: str | None = None
    csrf_token: str = Field(alias="csrfToken")

class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    code: str
