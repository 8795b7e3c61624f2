import re

import pytest
from fastapi.testclient import TestClient

from printadmin.credentials import set_admin_credentials
from printadmin.db import init_db
from printadmin.main import create_app
from printadmin.session_state import AdminSessionManager
from printadmin.session_store import InMemorySessionStore
from printadmin.settings import Settings

ADMIN_LOGIN = "admin"
ADMIN_PASSWORD = "correct horse battery"

META_RE = re.compile(r'<meta name="csrf-token" content="([^"]+)">')


class FakeClock:
    def __init__(self, start: int = 1_700_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(DB_PATH=str(tmp_path / "admin.db"), _env_file=None)


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def manager(store, settings, clock):
    return AdminSessionManager(store, settings, clock)


@pytest.fixture
def app(settings, store, clock):
    init_db(settings.DB_PATH)
    set_admin_credentials(settings.DB_PATH, ADMIN_LOGIN, ADMIN_PASSWORD, rounds=4)
    return create_app(settings=settings, store=store, clock=clock)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def _page_token(client) -> str:
    response = client.get("/admin/login")
    assert response.status_code == 200
    match = META_RE.search(response.text)
    assert match, response.text
    return match.group(1)


@pytest.fixture
def login(client):
    """Log the test client in; returns the post-login CSRF token."""

    def _login(login=ADMIN_LOGIN, password=ADMIN_PASSWORD):
        token = _page_token(client)
        response = client.post(
            "/api/admin/login",
            json={"login": login, "password": password},
            headers={"X-CSRF-Token": token},
        )
        assert response.status_code == 200, response.text
        return response.json()["csrfToken"]

    return _login


@pytest.fixture
def page_token(client):
    return lambda: _page_token(client)
