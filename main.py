#!/usr/bin/env python3

"""
Main application entry point for the Taskkeeper API.

Architecture: FastAPI application with bearer-token authentication and
owner-scoped task storage in PostgreSQL.
Key Features: Lifecycle management, database health checks, uniform error
responses, request tracing, CORS configuration.
"""

import asyncio
import sys

# Add this block to switch asyncio event loop policy on Windows
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import errno
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.auth import protected_router as auth_protected_router
from app.api.auth import router as auth_router
from app.api.http import protected_router as probe_router
from app.api.http import router as http_router
from app.api.tasks import router as tasks_router
from app.config import settings
from app.db import check_db_connection, close_db, init_db
from app.dependencies.services import get_token_service
from app.errors import INTERNAL_ERROR, AppError, ConfigurationError
from app.middleware import TRACE_HEADER, RequestContextMiddleware
from app.schemas import ErrorResponse, ValidationErrorItem
from app.utils.logger import redact_loggers, setup_logger

logger = setup_logger("main")

# Loggers configured by uvicorn rather than setup_logger.
SERVER_LOGGERS = ("", "uvicorn", "uvicorn.error", "uvicorn.access")

_HTTP_ERROR_CODES = {
    status.HTTP_401_UNAUTHORIZED: "unauthenticated",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Validate security configuration and prepare the database before serving.
    """
    logger.info("Application startup...")
    redact_loggers(*SERVER_LOGGERS)
    try:
        get_token_service()
        logger.info("Token service configured.")
    except ConfigurationError as e:
        logger.critical(f"Startup error: {e}")
        raise SystemExit(f"Startup failed: {e}") from e

    if settings.db_init_on_startup:
        try:
            logger.info("Initializing database...")
            await init_db()
            logger.info("Database initialization complete.")

            logger.info("Checking database connectivity...")
            if await check_db_connection():
                logger.info("Database connectivity confirmed.")
            else:
                logger.critical("Database connectivity check failed.")
                raise SystemExit("Database connection failed.")
        except SystemExit:
            raise
        except Exception as e:
            logger.critical(f"Startup error: {e}")
            raise SystemExit(f"Startup failed: {e}") from e

    logger.info("Taskkeeper API startup successful.")
    yield

    logger.info("Taskkeeper API shutdown...")
    await close_db()
    logger.info("Shutdown complete.")


def _trace_id(request: Request) -> str | None:
    return getattr(request.state, "trace_id", None)


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    errors: list[ValidationErrorItem] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=code,
        message=message,
        errors=errors or [],
        trace_id=_trace_id(request),
    )
    headers = dict(headers or {})
    if body.trace_id:
        headers.setdefault(TRACE_HEADER, body.trace_id)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body, by_alias=True),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        error = exc.error
        return error_response(
            request, int(error.status), error.code, error.message, headers=exc.headers
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        items = []
        for err in exc.errors():
            location = [str(part) for part in err.get("loc", ()) if part != "body"]
            items.append(
                ValidationErrorItem(
                    field=".".join(location) or None,
                    message=err.get("msg", "Invalid value"),
                )
            )
        return error_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            "validation_error",
            "Request validation failed.",
            errors=items,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed."
        return error_response(
            request,
            exc.status_code,
            _HTTP_ERROR_CODES.get(exc.status_code, "http_error"),
            message,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(OSError)
    async def oserror_exception_handler(request: Request, exc: OSError):
        logger.error(
            f"OSError caught: {type(exc).__name__}, errno: {exc.errno}, "
            f"winerror: {getattr(exc, 'winerror', None)}",
            exc_info=exc,
        )
        is_timeout_or_refused = False
        if getattr(exc, "winerror", None) == 121:
            is_timeout_or_refused = True
        elif exc.errno in [errno.ETIMEDOUT, errno.ECONNREFUSED]:
            is_timeout_or_refused = True

        if is_timeout_or_refused:
            logger.error(
                f"Returning 503 due to DB connection issue: {settings.db_unavailable_hint}"
            )
            return error_response(
                request,
                status.HTTP_503_SERVICE_UNAVAILABLE,
                "service_unavailable",
                settings.db_unavailable_hint,
            )
        return error_response(
            request,
            int(INTERNAL_ERROR.status),
            INTERNAL_ERROR.code,
            INTERNAL_ERROR.message,
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.method} {request.url.path} "
            f"[trace {_trace_id(request)}]: {type(exc).__name__}",
            exc_info=exc,
        )
        return error_response(
            request,
            int(INTERNAL_ERROR.status),
            INTERNAL_ERROR.code,
            INTERNAL_ERROR.message,
        )


def create_app():
    app = FastAPI(title="Taskkeeper API", lifespan=lifespan)

    register_exception_handlers(app)

    app.include_router(http_router)
    app.include_router(probe_router)
    app.include_router(auth_router)
    app.include_router(auth_protected_router)
    app.include_router(tasks_router)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    return app


app = create_app()


def main():
    """
    Start the FastAPI application with uvicorn.
    """
    port = int(settings.server_port)
    host = settings.server_host

    logger.info(f"Starting Taskkeeper API server on {host}:{port}")

    try:
        if settings.server_workers > 1:
            # uvicorn needs an import string to spawn workers
            uvicorn.run("main:app", host=host, port=port, workers=settings.server_workers)
        else:
            uvicorn.run(app, host=host, port=port)
    except Exception as e:
        logger.error(f"Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
