# credentials.py
from pathlib import Path
from typing import NamedTuple, Optional

from .db import get_setting, set_settings
from .security import hash_password, verify_password
from .tokens import tokens_match

ADMIN_LOGIN_KEY = "admin_login"
ADMIN_PASSWORD_HASH_KEY = "admin_password_hash"
CREDENTIAL_KEYS = frozenset({ADMIN_LOGIN_KEY, ADMIN_PASSWORD_HASH_KEY})


class AdminCredentials(NamedTuple):
    login: str
    password_hash: str


def get_admin_credentials(db_path: str | Path) -> Optional[AdminCredentials]:
    login = get_setting(db_path, ADMIN_LOGIN_KEY)
    password_hash = get_setting(db_path, ADMIN_PASSWORD_HASH_KEY)
    if not login or not password_hash:
        return None
    return AdminCredentials(login, password_hash)


def set_admin_credentials(db_path: str | Path, login: str, password: str, rounds: int = 12) -> None:
    set_settings(db_path, {
        ADMIN_LOGIN_KEY: login,
        ADMIN_PASSWORD_HASH_KEY: hash_password(password, rounds=rounds),
    })


def verify_admin_login(creds: AdminCredentials, login: str, password: str) -> bool:
    # check the password even on a wrong login so both paths cost the same
    login_ok = tokens_match(creds.login, login)
    password_ok = verify_password(password, creds.password_hash)
    return login_ok and password_ok
