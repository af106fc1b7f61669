"""
Runtime configuration read from the environment (and an optional .env file).
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

DEFAULT_TOKEN_TTL_SECONDS = 7 * 24 * 3600
DEFAULT_CLIENT_URL = "http://localhost:5173"
DEV_AUTH_SECRET = "mingle-dev-secret-change-in-production"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def get_environment() -> str:
    return os.getenv("ENVIRONMENT", "").strip().lower()


def is_production() -> bool:
    return get_environment() in ("production", "prod")


def resolve_sqlite_path(root_dir: Optional[str] = None) -> str:
    """
    Resolve the SQLite DB location used when no server database is configured.

    SQLITE_PATH wins; otherwise ROOT_DIR/mingle.db (or ./mingle.db).
    """
    explicit = os.getenv("SQLITE_PATH")
    if explicit:
        p = str(explicit).strip().strip('"').strip("'")
        return os.path.abspath(os.path.expanduser(p))

    base = root_dir or os.getenv("ROOT_DIR") or "."
    base = os.path.abspath(os.path.expanduser(str(base).strip().strip('"').strip("'")))
    return os.path.join(base, "mingle.db")


def get_database_url() -> str:
    """
    Get database connection URL from environment.

    Determines environment from ENVIRONMENT variable:
    - 'production' or 'prod' -> DATABASE_URL_PROD
    - 'staging' or 'stage' (or unset) -> DATABASE_URL_STAGING

    Falls back to DATABASE_URL, then to a local SQLite file.
    """
    env = get_environment()

    if env in ("production", "prod"):
        url = os.getenv("DATABASE_URL_PROD")
        if url:
            return url

    if env in ("staging", "stage") or not env:
        url = os.getenv("DATABASE_URL_STAGING")
        if url:
            return url

    url = os.getenv("DATABASE_URL")
    if url:
        return url

    if env in ("production", "prod"):
        raise ValueError("No database URL found. Set DATABASE_URL_PROD or DATABASE_URL")

    return f"sqlite:///{resolve_sqlite_path()}"


@dataclass
class Settings:
    database_url: str
    auth_secret: str
    token_ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS
    cors_origins: List[str] = field(default_factory=lambda: [DEFAULT_CLIENT_URL])
    db_pool_size: int = 10
    db_max_overflow: int = 20
    sql_echo: bool = False

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        load_dotenv(dotenv_path)

        auth_secret = os.getenv("AUTH_SECRET")
        if not auth_secret:
            if is_production():
                raise ValueError("AUTH_SECRET must be set in production")
            auth_secret = DEV_AUTH_SECRET

        client_urls = os.getenv("CLIENT_URL", DEFAULT_CLIENT_URL)
        origins = [u.strip() for u in client_urls.split(",") if u.strip()]

        return cls(
            database_url=get_database_url(),
            auth_secret=auth_secret,
            token_ttl_seconds=int(os.getenv("TOKEN_TTL_SECONDS", str(DEFAULT_TOKEN_TTL_SECONDS))),
            cors_origins=origins,
            db_pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
            db_max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "20")),
            sql_echo=_env_flag("SQL_ECHO"),
        )
