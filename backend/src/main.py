"""Registrar Intake API - Main FastAPI Application

Document request intake for a school registrar.

This module creates and configures the main FastAPI application, including:
- API routers (document requests, document files, file types)
- Middleware (correlation ID, CORS)
- Exception handlers rendering the {success, data, message} envelope
- Health and metrics endpoints
"""

import logging
import traceback
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.responses import error_response
from config import get_settings
from domain.documents.errors import RegistrarError, ValidationFailed

# Observability
from observability.logging_config import configure_logging
from observability.middleware import RequestIDMiddleware
from observability.router import router as observability_router

# Domain Routers
from document_requests.router import router as document_requests_router
from document_files.router import router as document_files_router
from document_files.router import file_types_router

settings = get_settings()

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler (startup / shutdown logging)."""
    logger.info("Registrar Intake API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    yield

    logger.info("Registrar Intake API shutting down...")


_docs_enabled = settings.ENVIRONMENT != "production"

app = FastAPI(
    title="Registrar Intake API",
    description="Document request intake and file handling for the school registrar",
    version="0.1.0",
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
    openapi_url="/openapi.json" if _docs_enabled else None,
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================

# Request ID Middleware (must be first for proper correlation)
app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

def _debug_details(exc: Exception) -> Dict[str, Any]:
    """Exception details added to 500 responses when DEBUG is on"""
    frames = traceback.extract_tb(exc.__traceback__)
    last = frames[-1] if frames else None
    return {
        "exception": type(exc).__name__,
        "file": last.filename if last else None,
        "line": last.lineno if last else None,
        "trace": traceback.format_exception(type(exc), exc, exc.__traceback__),
    }


def _server_error(exc: Exception) -> JSONResponse:
    data = _debug_details(exc) if get_settings().DEBUG else None
    return error_response(GENERIC_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR, data)


@app.exception_handler(RegistrarError)
async def registrar_exception_handler(request: Request, exc: RegistrarError) -> JSONResponse:
    """Render application errors with their own status and message."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")

    data = {"errors": exc.messages} if isinstance(exc, ValidationFailed) else None
    return error_response(exc.message, exc.status_code, data)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors, grouped by field."""
    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={"path": request.url.path}
    )
    errors: Dict[str, list] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "header")]
        field = ".".join(location) or "request"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))

    return error_response("Validation failed", status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework HTTP errors (404 routes, 405, explicit raises) in the envelope."""
    return error_response(str(exc.detail), exc.status_code)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc
    )
    return _server_error(exc)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions.

    Full details are logged; they are only returned to the client in debug mode.
    """
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc
    )
    return _server_error(exc)


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

# Observability (/metrics, /v1/health)
app.include_router(observability_router)

app.include_router(document_requests_router, prefix="/v1")
app.include_router(document_files_router, prefix="/v1")
app.include_router(file_types_router, prefix="/v1")


@app.get("/", include_in_schema=False)
async def root() -> Dict[str, Any]:
    """Root endpoint - API information."""
    return {
        "name": "Registrar Intake API",
        "version": "0.1.0",
        "status": "running",
        "docs": "/docs" if _docs_enabled else None,
    }


def create_app() -> FastAPI:
    """Application factory for tests and ASGI servers."""
    return app


if __name__ == "__main__":
    import os
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
