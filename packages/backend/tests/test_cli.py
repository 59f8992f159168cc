"""CLI tests — commands that don't need a running server."""

from click.testing import CliRunner

from docdesk.cli.main import main


def _env(**values):
    env = {
        "DOCDESK_AUTH_SECRET": "cli-secret-for-docdesk-command-tests",
        "DOCDESK_ENVIRONMENT": "development",
    }
    env.update(values)
    return env


def test_check_config_ok():
    result = CliRunner().invoke(main, ["check-config"], env=_env())
    assert result.exit_code == 0
    assert "store logging: query, error, warn" in result.output
    assert "Configuration OK." in result.output


def test_check_config_production_without_secret():
    result = CliRunner().invoke(
        main,
        ["check-config"],
        env=_env(DOCDESK_ENVIRONMENT="production", DOCDESK_AUTH_SECRET=""),
    )
    assert result.exit_code == 1
    assert "store logging: error" in result.output


def test_check_config_warns_about_missing_secret_in_development():
    result = CliRunner().invoke(
        main, ["check-config"], env=_env(DOCDESK_AUTH_SECRET="")
    )
    assert result.exit_code == 1


def test_providers_command():
    result = CliRunner().invoke(
        main,
        ["providers"],
        env=_env(DOCDESK_GOOGLE_CLIENT_ID="id", DOCDESK_GOOGLE_CLIENT_SECRET="s"),
    )
    assert result.exit_code == 0
    assert "credentials" in result.output
    assert "google" in result.output


def test_init_db(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    result = CliRunner().invoke(main, ["init-db"], env=_env(DOCDESK_DATABASE_URL=url))
    assert result.exit_code == 0, result.output
    assert (tmp_path / "cli.db").exists()
