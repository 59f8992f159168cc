"""Settings tests — environment table and startup validation."""

import pytest

from docdesk.config import Settings
from docdesk.errors import ConfigurationError
from docdesk.main import check_config


def _settings(**values) -> Settings:
    return Settings(_env_file=None, **values)


@pytest.mark.parametrize("environment", ["development", "test"])
def test_verbose_store_logging_outside_production(environment):
    s = _settings(environment=environment)
    assert s.db_log_levels == ("query", "error", "warn")
    assert not s.is_production


def test_production_store_logging_is_error_only():
    s = _settings(environment="production", auth_secret="x")
    assert s.db_log_levels == ("error",)
    assert "query" not in s.db_log_levels


def test_environment_is_case_insensitive():
    assert _settings(environment="Production").is_production


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("DOCDESK_ENVIRONMENT", "production")
    monkeypatch.setenv("DOCDESK_AUTH_SECRET", "from-env")
    s = _settings()
    assert s.is_production
    assert s.auth_secret == "from-env"


def test_google_needs_id_and_secret():
    assert not _settings(google_client_id="id").google_enabled
    assert _settings(google_client_id="id", google_client_secret="s").google_enabled


def test_missing_secret_is_a_problem_only_in_production():
    assert _settings(environment="development").config_problems() == []
    problems = _settings(environment="production").config_problems()
    assert len(problems) == 1
    assert "DOCDESK_AUTH_SECRET" in problems[0]


def test_check_config_fails_fast_in_production():
    with pytest.raises(ConfigurationError) as exc:
        check_config(_settings(environment="production"))
    assert exc.value.problems


def test_check_config_only_warns_elsewhere():
    check_config(_settings(environment="development", database_url=""))
