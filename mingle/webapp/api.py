"""
FastAPI web application for the Mingle social backend.
Provides the JSON API consumed by the single-page client.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mingle.config import Settings
from mingle.db.database import Database
from mingle.errors import MingleError
from mingle.services.content_service import ContentEngine
from mingle.services.conversation_service import ConversationEngine
from mingle.services.identity_service import IdentityStore
from mingle.services.social_graph import SocialGraphEngine
from mingle.webapp.auth import Credentials
from mingle.webapp.routers import auth, comments, conversations, health, likes, messages, posts, users
from mingle.utils.logger import get_logger

logger = get_logger(__name__)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = first.get("msg", "invalid value")
    return f"{location}: {detail}" if location else detail


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(MingleError)
    async def handle_domain_error(request: Request, exc: MingleError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
            return _error_response(exc.status_code, "Internal server error")
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return _error_response(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return _error_response(exc.status_code, message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return _error_response(500, "Internal server error")


def create_webapp_api(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    credentials: Optional[Credentials] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Runtime configuration (defaults to Settings.from_env())
        database: Store handle to use instead of one built from settings.database_url
        credentials: Credentials service to use instead of one built from settings.auth_secret

    Returns:
        Configured FastAPI application
    """
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="Mingle API",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if database is None:
        database = Database(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            echo=settings.sql_echo,
        )
        if database.is_sqlite:
            # Local SQLite has no migration step; Postgres is migrated with Alembic
            database.create_schema()

    identity = IdentityStore(database)

    # Store collaborators in app state
    app.state.settings = settings
    app.state.db = database
    app.state.credentials = credentials or Credentials(settings.auth_secret, settings.token_ttl_seconds)
    app.state.identity = identity
    app.state.social_graph = SocialGraphEngine(identity)
    app.state.content = ContentEngine(identity)
    app.state.conversations = ConversationEngine(identity)

    _install_error_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(posts.router)
    app.include_router(comments.router)
    app.include_router(likes.router)
    app.include_router(conversations.router)
    app.include_router(messages.router)

    logger.info(f"Mingle API created (sqlite={database.is_sqlite})")
    return app
