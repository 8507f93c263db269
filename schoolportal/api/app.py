"""FastAPI application factory for the school portal."""

import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..database import Database, Repository, seed_database
from ..errors import PortalError
from ..logutils import get_correlation_id, get_logger, with_context
from ..session_manager import SessionStore
from .routers import admin_router, auth_router, grades_router, professor_router, public_router, student_router

logger = get_logger(__name__)

CORS_ORIGINS = [o.strip() for o in os.getenv("PORTAL_CORS_ORIGINS", "*").split(",") if o.strip()]


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"Invalid request: {location} {first.get('msg', '')}".strip()


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PortalError)
    async def portal_error(request: Request, exc: PortalError) -> JSONResponse:
        logger.info(
            "Request rejected",
            extra={"extra_data": {"path": request.url.path, "status": exc.status_code, "error": type(exc).__name__}},
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"error": _validation_message(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", extra={"extra_data": {"path": request.url.path}})
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(
    db: Optional[Database] = None,
    sessions: Optional[SessionStore] = None,
    seed: bool = True,
) -> FastAPI:
    """Build the portal application.

    Args:
        db: Store handle; a ``Database`` at ``DATABASE_PATH`` when omitted
        sessions: Session store; a fresh in-memory one when omitted
        seed: Insert the demo data on startup when the database is empty

    Returns:
        Configured FastAPI application
    """
    if db is None:
        db = Database()
    if sessions is None:
        sessions = SessionStore()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db.init_schema()
        if seed:
            seed_database(db)
        yield
        db.close()

    app = FastAPI(
        title="School Portal API",
        description="Grades, attendance and news for students, professors and admins.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.db = db
    app.state.repository = Repository(db)
    app.state.sessions = sessions

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_context(request: Request, call_next):
        with with_context(operation=f"{request.method} {request.url.path}"):
            response = await call_next(request)
            response.headers["X-Correlation-ID"] = get_correlation_id()
            logger.debug(
                "Request handled",
                extra={"extra_data": {"status": response.status_code}},
            )
            return response

    _register_error_handlers(app)

    app.include_router(auth_router.router, prefix="/api", tags=["Auth"])
    app.include_router(student_router.router, prefix="/api/student", tags=["Students"])
    app.include_router(professor_router.router, prefix="/api", tags=["Professors"])
    app.include_router(grades_router.router, prefix="/api/grades", tags=["Grades"])
    app.include_router(public_router.router, prefix="/api", tags=["Public"])
    app.include_router(admin_router.router, prefix="/api/admin", tags=["Admin"])

    @app.get("/health", tags=["Health Check"])
    def health() -> dict:
        return {"status": "ok", "version": app.version}

    return app
