#!/usr/bin/env python3
"""
FastAPI webapp module for running with uvicorn.

Usage:
    uvicorn run_webapp_local:app --host 0.0.0.0 --port 8080
    python3 run_webapp_local.py

Environment Variables:
    DATABASE_URL: Database URL (default: SQLite file at SQLITE_PATH or ROOT_DIR/mingle.db)
    AUTH_SECRET: Token signing secret (required in production)
    CLIENT_URL: Allowed CORS origin(s), comma separated
"""

import os

import uvicorn

from mingle.config import Settings
from mingle.webapp.api import create_webapp_api
from mingle.utils.logger import get_logger

logger = get_logger(__name__)

settings = Settings.from_env()

# Create FastAPI app instance (exposed for uvicorn)
app = create_webapp_api(settings=settings)

logger.info("Mingle API module loaded")
logger.info(f"  CORS origins: {', '.join(settings.cors_origins)}")
logger.info("  API docs: http://localhost:8080/api/docs")


if __name__ == "__main__":
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8080")))
