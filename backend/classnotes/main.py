"""
ClassNotes Backend - FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() validates settings, builds the Database handle and the
       services, stores them on app.state, then registers middleware,
       exception handlers, routers and static mounts.
Who:   uvicorn (`uvicorn classnotes.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Request ID → Logging → GZip → CORS         │
    │                                                          │
    │  Routes:      /api/register  /api/login   /api/users     │
    │               /api/classes   /api/semesters              │
    │               /api/subjects  /api/notes   /health        │
    │                                                          │
    │  Static:      /uploads (stored files)  / (front end)     │
    │                                                          │
    │  app.state:   database, file_store, auth_service,        │
    │               catalog_service, note_service              │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   configure logging, ensure the storage directory exists
    Shutdown:  dispose the database engine (close pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from classnotes import __version__
from classnotes.config import Settings, settings as default_settings
from classnotes.database import Database
from classnotes.exceptions import (
    AuthenticationError,
    ClassNotesError,
    ConflictError,
    DatabaseError,
    FileStorageError,
    ForbiddenError,
    ValidationError,
)
from classnotes.middleware.logging import RequestLoggingMiddleware
from classnotes.middleware.request_id import RequestIDMiddleware, request_id_var
from classnotes.routes import auth, catalog, health, notes, users
from classnotes.services.auth_service import AuthService
from classnotes.services.catalog_service import CatalogService
from classnotes.services.file_service import UPLOADS_MOUNT, FileStore
from classnotes.services.note_service import NoteService
from classnotes.services.security import Argon2PasswordHasher, JWTTokenSigner

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure the root logger once for the whole process.

    Format: 2024-06-10T12:00:00 [INFO] classnotes.services.note_service: Note created: ...
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # These log every operation at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    app_settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    logger.info("=" * 60)
    logger.info("ClassNotes Backend %s starting up...", __version__)

    storage = Path(app_settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())
    logger.info("API docs: http://%s:%d/docs", app_settings.backend_host, app_settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("ClassNotes Backend shutting down...")
    await app.state.database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(status_code: int, error: str, message: str, details: Optional[dict] = None) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the shared error envelope.

    Handler hierarchy:
        ValidationError, RequestValidationError  → 400
        AuthenticationError                      → 401
        ForbiddenError (invalid/expired token)   → 403
        ConflictError                            → 409
        FileStorageError, DatabaseError          → 500 (generic message)
        ClassNotesError (base)                   → 500
        Exception (fallback)                     → 500

    Security: 5xx responses never include exception context; it is
    logged server-side only.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error: %s", exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg', 'invalid value')}" if field else "Invalid request"
        logger.warning("Request validation error: %s", message)
        return _error_response(400, "validation_error", message, {"field": field} if field else None)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return _error_response(401, "unauthorized", exc.message)

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        logger.info("Rejected token: %s", exc.message)
        return _error_response(403, "forbidden", exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return _error_response(409, "conflict", exc.message, exc.context)

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error("File storage error: %s | Context: %s", exc.message, exc.context)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("Database error: %s | Context: %s", exc.message, exc.context)
        return _error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(ClassNotesError)
    async def handle_application_error(request: Request, exc: ClassNotesError):
        logger.error("Unhandled application error: %s | Context: %s", exc.message, exc.context)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def build_services(app: FastAPI, app_settings: Settings) -> None:
    """Construct the database handle and services onto app.state."""
    database = Database(app_settings)
    file_store = FileStore(
        storage_root=app_settings.storage_root,
        max_file_size=app_settings.max_file_size,
        allowed_extensions=app_settings.allowed_extensions_set,
    )
    hasher = Argon2PasswordHasher(
        time_cost=app_settings.argon2_time_cost,
        memory_cost=app_settings.argon2_memory_cost,
        parallelism=app_settings.argon2_parallelism,
    )
    signer = JWTTokenSigner(
        secret_key=app_settings.jwt_secret,
        expiry_hours=app_settings.token_expiry_hours,
        algorithm=app_settings.jwt_algorithm,
    )

    app.state.settings = app_settings
    app.state.database = database
    app.state.file_store = file_store
    app.state.auth_service = AuthService(hasher=hasher, signer=signer)
    app.state.catalog_service = CatalogService()
    app.state.note_service = NoteService(file_store=file_store)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to build from; the process-wide settings
            when omitted. Tests pass their own per-test instance.

    Raises:
        ValueError: DATABASE_URL or JWT_SECRET missing or unsafe. The
            app refuses to start rather than run with a guessable secret.
    """
    app_settings = app_settings or default_settings
    setup_logging(app_settings.log_level)
    app_settings.validate_required_for_production()

    app = FastAPI(
        title="ClassNotes API",
        description=(
            "Share study notes organised by class, semester and subject. "
            "Authenticate with /api/login and send the token as a Bearer header."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    build_services(app, app_settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(catalog.router)
    app.include_router(notes.router)
    app.include_router(health.router)

    # ── Static Mounts ─────────────────────────────────────────────────────
    # Stored files are public to anyone who knows the generated name
    app.mount(
        UPLOADS_MOUNT,
        StaticFiles(directory=str(app.state.file_store.storage_root)),
        name="uploads",
    )

    # Mounted last: "/" would otherwise shadow every route registered after it
    if app_settings.frontend_dir:
        frontend = Path(app_settings.frontend_dir)
        if frontend.is_dir():
            app.mount("/", StaticFiles(directory=str(frontend), html=True), name="frontend")
            logger.info("Serving front end from %s", frontend.resolve())
        else:
            logger.warning("FRONTEND_DIR %s does not exist; not serving a front end", frontend)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `classnotes.main:app` to be importable
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "classnotes.main:app",
        host=default_settings.backend_host,
        port=default_settings.backend_port,
    )
