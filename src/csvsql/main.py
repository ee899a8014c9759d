"""
csvsql - Main Application.

FastAPI application exposing CSV import and the SQL-subset query engine.
"""

import logging
import sys
import traceback
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from csvsql import __version__
from csvsql.api.routes.connections import router as connections_router
from csvsql.api.routes.metrics import router as metrics_router
from csvsql.api.routes.query import router as query_router
from csvsql.api.routes.tables import router as tables_router
from csvsql.config import get_settings
from csvsql.core.database_service import DatabaseService
from csvsql.exceptions import CsvsqlException
from csvsql.observability import get_metrics_store
from csvsql.schemas import HealthResponse

# Configure standard logging
logging.basicConfig(
    level=get_settings().app_log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("csvsql")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info(
        f"Starting csvsql API v{__version__} "
        f"[env={settings.app_env}] "
        f"[features={settings.features.to_dict()}]"
    )
    yield
    logger.info("Shutting down csvsql API")


# =============================================================================
# Middleware
# =============================================================================


async def add_request_id(request: Request, call_next):
    """Add request ID to all requests."""
    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    return response


async def log_requests(request: Request, call_next):
    """Log all requests."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(f"[{request_id}] {request.method} {request.url.path}")

    response = await call_next(request)

    logger.info(f"[{request_id}] {request.method} {request.url.path} -> {response.status_code}")

    return response


# =============================================================================
# Exception Handlers
# =============================================================================


async def csvsql_exception_handler(request: Request, exc: CsvsqlException):
    """Handle csvsql exceptions."""
    request_id = getattr(request.state, "request_id", None)
    logger.warning(f"CsvsqlException: {exc.code} - {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.code,
                "message": exc.message,
                "details": exc.details,
                "request_id": request_id,
            }
        },
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    request_id = getattr(request.state, "request_id", None)

    logger.error(f"Unhandled exception on {request.url.path}")
    logger.error(f"Exception type: {type(exc).__name__}")
    logger.error(f"Traceback:\n{traceback.format_exc()}")
    get_metrics_store().record_error("INTERNAL_ERROR")

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": str(exc) if get_settings().app_debug else "An unexpected error occurred",
                "request_id": request_id,
            }
        },
    )


# =============================================================================
# Application factory
# =============================================================================


def create_app(service: DatabaseService | None = None) -> FastAPI:
    """
    Build the API. The database service lives on ``app.state`` for the
    lifetime of the app; pass one in to share or inspect it.
    """
    settings = get_settings()

    app = FastAPI(
        title="csvsql API",
        description="Import CSV files as in-memory tables and query them with a small SQL subset.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.state.database_service = service or DatabaseService(
        metrics=get_metrics_store(),
        type_sample_size=settings.engine.type_sample_size,
        csv_encodings=settings.engine.csv_encodings,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Registered in reverse: request ids are assigned before logging runs.
    app.middleware("http")(log_requests)
    app.middleware("http")(add_request_id)

    app.add_exception_handler(CsvsqlException, csvsql_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check(request: Request):
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            version=__version__,
            features=settings.features.to_dict(),
            app_env=settings.app_env,
            table_count=len(request.app.state.database_service.list_tables()),
        )

    app.include_router(tables_router)
    app.include_router(query_router)
    app.include_router(connections_router)
    app.include_router(metrics_router)

    return app


app = create_app()
