from click.testing import CliRunner

from printadmin.cli import cli
from printadmin.credentials import get_admin_credentials, verify_admin_login


def test_setup_admin_stores_hashed_credentials(tmp_path):
    db_path = str(tmp_path / "admin.db")
    result = CliRunner().invoke(
        cli, ["setup-admin", "--login", " owner ", "--password", "s3cret-pass", "--db-path", db_path]
    )
    assert result.exit_code == 0, result.output
    assert "owner" in result.output

    creds = get_admin_credentials(db_path)
    assert creds.login == "owner"
    assert creds.password_hash != "s3cret-pass"
    assert verify_admin_login(creds, "owner", "s3cret-pass")
    assert not verify_admin_login(creds, "owner", "wrong-pass")


def test_setup_admin_prompts_for_password(tmp_path):
    db_path = str(tmp_path / "admin.db")
    result = CliRunner().invoke(
        cli, ["setup-admin", "--login", "owner", "--db-path", db_path],
        input="s3cret-pass\ns3cret-pass\n",
    )
    assert result.exit_code == 0, result.output
    assert get_admin_credentials(db_path).login == "owner"


def test_setup_admin_rejects_short_password(tmp_path):
    db_path = str(tmp_path / "admin.db")
    result = CliRunner().invoke(
        cli, ["setup-admin", "--login", "owner", "--password", "short", "--db-path", db_path]
    )
    assert result.exit_code == 2
    assert not (tmp_path / "admin.db").exists()
