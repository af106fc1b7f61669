import pytest

from mingle.config import DEV_AUTH_SECRET, Settings, get_database_url, resolve_sqlite_path

_ENV_VARS = (
    "ENVIRONMENT",
    "DATABASE_URL",
    "DATABASE_URL_PROD",
    "DATABASE_URL_STAGING",
    "SQLITE_PATH",
    "ROOT_DIR",
    "AUTH_SECRET",
    "CLIENT_URL",
    "TOKEN_TTL_SECONDS",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.mark.unit
def test_database_url_falls_back_to_sqlite_file(clean_env, tmp_path):
    clean_env.setenv("ROOT_DIR", str(tmp_path))

    assert resolve_sqlite_path() == str(tmp_path / "mingle.db")
    assert get_database_url() == f"sqlite:///{tmp_path / 'mingle.db'}"


@pytest.mark.unit
def test_database_url_prefers_environment_specific_url(clean_env):
    clean_env.setenv("DATABASE_URL", "postgresql://generic")
    clean_env.setenv("DATABASE_URL_STAGING", "postgresql://staging")
    clean_env.setenv("DATABASE_URL_PROD", "postgresql://prod")

    assert get_database_url() == "postgresql://staging"

    clean_env.setenv("ENVIRONMENT", "production")
    assert get_database_url() == "postgresql://prod"


@pytest.mark.unit
def test_production_requires_database_url(clean_env):
    clean_env.setenv("ENVIRONMENT", "production")

    with pytest.raises(ValueError):
        get_database_url()


@pytest.mark.unit
def test_settings_from_env(clean_env, tmp_path):
    clean_env.setenv("SQLITE_PATH", str(tmp_path / "x.db"))
    clean_env.setenv("CLIENT_URL", "http://a.test, http://b.test")
    clean_env.setenv("TOKEN_TTL_SECONDS", "120")

    settings = Settings.from_env(dotenv_path=str(tmp_path / "missing.env"))

    assert settings.database_url.endswith("x.db")
    assert settings.auth_secret == DEV_AUTH_SECRET
    assert settings.token_ttl_seconds == 120
    assert settings.cors_origins == ["http://a.test", "http://b.test"]


@pytest.mark.unit
def test_production_requires_auth_secret(clean_env):
    clean_env.setenv("ENVIRONMENT", "production")
    clean_env.setenv("DATABASE_URL_PROD", "postgresql://prod")

    with pytest.raises(ValueError, match="AUTH_SECRET"):
        Settings.from_env(dotenv_path="/nonexistent/.env")
