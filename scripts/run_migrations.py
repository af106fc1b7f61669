#!/usr/bin/env python3
"""
Run Alembic migrations for the Mingle databases (prod + staging).

Reads the env files named by MINGLE_ENV_PROD and MINGLE_ENV_STAGING (default
/opt/mingle-config/.env.prod and .env.staging) to pick up DATABASE_URL_PROD and
DATABASE_URL_STAGING, then runs Alembic migrations against each database that
is configured.

Usage:
    python3 scripts/run_migrations.py            # both DBs
    python3 scripts/run_migrations.py --prod     # prod only
    python3 scripts/run_migrations.py --staging  # staging only
    python3 scripts/run_migrations.py --url sqlite:///./mingle.db
"""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from alembic import command
from alembic.config import Config
from dotenv import load_dotenv
from sqlalchemy import create_engine, inspect, text

project_root = Path(__file__).resolve().parent.parent
ALEMBIC_INI = project_root / "mingle" / "db" / "alembic.ini"


def _load_env_files() -> None:
    """Load prod and staging env files; variables already set are not overwritten."""
    prod_file = Path(os.getenv("MINGLE_ENV_PROD", "/opt/mingle-config/.env.prod"))
    staging_file = Path(os.getenv("MINGLE_ENV_STAGING", "/opt/mingle-config/.env.staging"))
    for path in (prod_file, staging_file):
        if path.exists():
            print(f"  Loading env file: {path}")
            load_dotenv(path, override=False)
        else:
            print(f"  (env file not found, skipping: {path})")


def _print_table_counts(database_url: str) -> None:
    """Print name and row count for every table after the upgrade."""
    engine = create_engine(database_url)
    try:
        tables = sorted(inspect(engine).get_table_names())
        if not tables:
            print("  No tables found.")
            return
        print("\n  Table row counts:")
        width = max(len(t) for t in tables)
        with engine.connect() as conn:
            for name in tables:
                count = conn.execute(text(f'SELECT COUNT(*) FROM "{name}"')).scalar()
                print(f"    {name:<{width}}  {count:>10,} rows")
    except Exception as e:
        print(f"  (Could not list table counts: {e})")
    finally:
        engine.dispose()


def _run_migrations_for(label: str, database_url: str) -> bool:
    """Run Alembic migrations against a single database URL. Returns True on success."""
    if not ALEMBIC_INI.exists():
        print(f"  ERROR: alembic.ini not found at {ALEMBIC_INI}")
        return False

    safe_url = database_url.split("@")[1] if "@" in database_url else database_url
    print(f"\n{'=' * 60}")
    print(f"  [{label}] -> {safe_url}")
    print(f"{'=' * 60}")

    try:
        alembic_cfg = Config(str(ALEMBIC_INI))
        alembic_cfg.set_main_option("sqlalchemy.url", database_url)
        print("  Running Alembic upgrade head ...")
        command.upgrade(alembic_cfg, "head")
        print(f"  OK: migrations completed for [{label}]")
        _print_table_counts(database_url)
        return True
    except Exception as e:
        print(f"  FAILED: migration failed for [{label}]: {e}")
        import traceback
        traceback.print_exc()
        return False


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run Alembic migrations against the Mingle databases.")
    parser.add_argument("--prod", action="store_true", help="Run only against the production DB")
    parser.add_argument("--staging", action="store_true", help="Run only against the staging DB")
    parser.add_argument("--url", help="Run only against this database URL")
    args = parser.parse_args(argv)

    print("=== Mingle DB Migrations ===")

    if args.url:
        return 0 if _run_migrations_for("CUSTOM", args.url) else 1

    # Default: run both unless a specific flag was given
    run_prod = args.prod or not args.staging
    run_staging = args.staging or not args.prod

    print("Loading env files ...")
    _load_env_files()

    targets: List[Tuple[str, str]] = []
    if run_prod:
        targets.append(("PRODUCTION", "DATABASE_URL_PROD"))
    if run_staging:
        targets.append(("STAGING", "DATABASE_URL_STAGING"))

    results: List[Tuple[str, bool]] = []
    for label, env_name in targets:
        url = os.getenv(env_name)
        if url:
            results.append((label, _run_migrations_for(label, url)))
        else:
            print(f"\n  [{label}] skipped: {env_name} not set")
            results.append((label, False))

    print(f"\n{'=' * 60}")
    print("  Summary:")
    for label, ok in results:
        print(f"    {'OK' if ok else 'FAILED'} {label}")
    print(f"{'=' * 60}\n")

    return 0 if all(ok for _, ok in results) else 1


if __name__ == "__main__":
    sys.exit(main())
