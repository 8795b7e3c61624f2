# settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    APP_NAME: str = "printadmin"
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    DB_PATH: str = "./printadmin.db"

    COOKIE_SECURE: bool | None = None  # None = follow the request transport
    COOKIE_SAMESITE: str = "lax"  # "lax" | "strict"

    SESSION_TIMEOUT_SECONDS: int = 30 * 60      # inactivity window
    SESSION_ROTATE_SECONDS: int = 15 * 60       # 0 disables id rotation
    SESSION_ROTATE_GRACE_SECONDS: int = 30      # old id keeps resolving to the new one
    SESSION_GC_INTERVAL_SECONDS: int = 5 * 60   # min gap between sweeps of expired records
    CSRF_TOKEN_BYTES: int = 32

    LOGIN_PATH: str = "/admin/login"
    DASHBOARD_PATH: str = "/admin/"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

settings = Settings()
