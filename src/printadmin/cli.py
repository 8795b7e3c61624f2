# cli.py
import click

from .credentials import set_admin_credentials
from .db import init_db
from .settings import settings


@click.group()
def cli():
    """printadmin admin backend."""


@cli.command("setup-admin")
@click.option("--login", "login", required=True, help="Admin login name.")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True,
              help="Admin password (prompted when omitted).")
@click.option("--db-path", default=None, help="SQLite database, defaults to DB_PATH.")
def setup_admin(login: str, password: str, db_path: str | None):
    """Store the admin login and a bcrypt hash of the password."""
    login = login.strip()
    if not login:
        raise click.BadParameter("login must not be empty", param_hint="--login")
    if len(password) < 8:
        raise click.BadParameter("password must be at least 8 characters", param_hint="--password")
    path = db_path or settings.DB_PATH
    init_db(path)
    set_admin_credentials(path, login, password)
    click.echo(f"Admin credentials saved for '{login}' in {path}")


@cli.command()
@click.option("--reload", is_flag=True, help="Reload on code changes.")
def run(reload: bool):
    """Serve the admin backend with uvicorn."""
    import uvicorn

    from .logging_config import setup_logging

    setup_logging(settings.LOG_LEVEL)
    uvicorn.run(
        "printadmin.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=reload,
        log_level=settings.LOG_LEVEL.lower(),
        log_config=None,
    )
