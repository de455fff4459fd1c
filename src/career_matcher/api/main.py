"""Main FastAPI application for Career Matcher."""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from career_matcher import __version__
from career_matcher.api.models import ErrorResponse
from career_matcher.api.routes import all_routers
from career_matcher.config import settings
from career_matcher.core.errors import (
    ApplicationErrorKind,
    CareerMatcherError,
    IngestionErrorKind,
    InvalidInputError,
    InvalidSortError,
)
from career_matcher.session import CareerSession
from career_matcher.utils.logging import configure_logging, get_logger

# Configure logging
configure_logging()
logger = get_logger(__name__)

ERROR_STATUS_CODES: Dict[str, int] = {
    f"ingestion.{IngestionErrorKind.INVALID_INPUT.value}": 415,
    f"ingestion.{IngestionErrorKind.TRANSFER_FAILED.value}": 502,
    f"ingestion.{IngestionErrorKind.ANALYSIS_FAILED.value}": 422,
    f"ingestion.{IngestionErrorKind.SUPERSEDED.value}": 409,
    f"application.{ApplicationErrorKind.INVALID_TRANSITION.value}": 409,
    f"application.{ApplicationErrorKind.DUPLICATE_APPLICATION.value}": 409,
    f"application.{ApplicationErrorKind.NOT_FOUND.value}": 404,
    InvalidSortError.code: 400,
}


def status_code_for(error: CareerMatcherError) -> int:
    """HTTP status for a core error."""
    if isinstance(error, InvalidInputError) and "limit" in error.context:
        return 413
    return ERROR_STATUS_CODES.get(error.code, 500)


def create_app(session_factory: Optional[Callable[[], CareerSession]] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        session_factory: Builds the candidate session at startup; defaults to
            ``CareerSession.from_settings``
    """
    session_factory = session_factory or CareerSession.from_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Career Matcher API")
        app.state.session = session_factory()
        logger.info("Application startup completed successfully")

        yield

        logger.info("Shutting down Career Matcher API")
        app.state.session = None

    app = FastAPI(
        title="Career Matcher API",
        description="Résumé ingestion, explainable job matching and application tracking",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan
    )

    # Add middleware
    setup_middleware(app)

    # Add exception handlers
    setup_exception_handlers(app)

    # Include routers
    for router in all_routers:
        app.include_router(router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {
            "name": "Career Matcher API",
            "version": __version__,
            "status": "running",
            "docs": "/docs" if settings.debug else "disabled"
        }

    return app


def setup_middleware(app: FastAPI) -> None:
    """Setup application middleware."""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = asyncio.get_running_loop().time()

        logger.info(
            "Request started",
            method=request.method,
            url=str(request.url),
            client_ip=request.client.host if request.client else None
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                method=request.method,
                url=str(request.url),
                error=str(e),
                duration_seconds=asyncio.get_running_loop().time() - start_time
            )
            raise

        logger.info(
            "Request completed",
            method=request.method,
            url=str(request.url),
            status_code=response.status_code,
            duration_seconds=asyncio.get_running_loop().time() - start_time
        )
        return response


def _error_response(status_code: int, error_code: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error_code=error_code,
            message=message,
            details=details,
            timestamp=datetime.now(timezone.utc)
        ).model_dump(mode="json")
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Setup global exception handlers."""

    @app.exception_handler(CareerMatcherError)
    async def career_matcher_exception_handler(request: Request, exc: CareerMatcherError):
        status_code = status_code_for(exc)
        logger.warning(
            "Request rejected",
            error_code=exc.code,
            status_code=status_code,
            message=exc.message,
            url=str(request.url)
        )
        return _error_response(status_code, exc.code, exc.message)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            url=str(request.url)
        )
        return _error_response(exc.status_code, "http_error", str(exc.detail))

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(
            "Starlette HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            url=str(request.url)
        )
        return _error_response(exc.status_code, "http_error", str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(
            "Validation error",
            errors=exc.errors(),
            url=str(request.url)
        )
        return _error_response(
            422,
            "validation_error",
            "Request validation failed",
            details={"validation_errors": [
                {"loc": list(error.get("loc", ())), "msg": error.get("msg")} for error in exc.errors()
            ]}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            url=str(request.url)
        )
        return _error_response(
            500,
            "internal_error",
            "An unexpected error occurred",
            details={"error_type": type(exc).__name__} if settings.debug else None
        )


# Create the application instance
app = create_app()
