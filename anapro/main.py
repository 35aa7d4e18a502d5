"""
AnaPro Platform - Main Application Entry Point
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from loguru import logger

from anapro.config import Settings, settings as default_settings
from anapro.api.v1.router import api_router
from anapro.core.chain.verifier import ChainVerifier
from anapro.db.database import Database
from anapro.utils.exceptions import AnaProException
from anapro.utils.logger import configure_logging


def register_exception_handlers(app: FastAPI) -> None:
    """Translate every failure into an ``{"error": ...}`` body."""

    @app.exception_handler(AnaProException)
    async def anapro_exception_handler(request: Request, exc: AnaProException):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": f"{field}: {message}" if field else message,
                "code": "VALIDATION_ERROR",
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )


def create_application(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    verifier: Optional[ChainVerifier] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to the environment)
        database: Pre-built Database; one is built from settings at startup otherwise
        verifier: Chain verifier for deposits; defaults to the configured RPC endpoint
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events handler."""
        owns_database = database is None
        if owns_database:
            configure_logging()
        logger.info(f"🚀 Starting {settings.APP_NAME}...")

        app.state.db = database or Database.from_settings(settings)
        app.state.verifier = verifier or ChainVerifier()
        logger.info("✅ Database engine ready")

        yield

        logger.info(f"🛑 Shutting down {settings.APP_NAME}...")
        if owns_database:
            await app.state.db.dispose()
        logger.info("👋 Goodbye!")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Custodial balance ledger for wallet-authenticated crypto investments",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Available before startup for tests that skip the lifespan
    if database is not None:
        app.state.db = database
    if verifier is not None:
        app.state.verifier = verifier

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for load balancers."""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": "1.0.0"
        }

    @app.get("/ready", tags=["Health"])
    async def readiness_check(request: Request):
        """Readiness check - verifies the database is reachable."""
        checks = {"database": "unknown"}

        try:
            await request.app.state.db.ping()
            checks["database"] = "connected"
        except Exception as e:
            checks["database"] = f"error: {str(e)[:50]}"

        all_healthy = all(v == "connected" for v in checks.values())
        return JSONResponse(
            status_code=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "ready" if all_healthy else "degraded", "checks": checks},
        )

    return app


# Create the application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "anapro.main:app",
        host=default_settings.BACKEND_HOST,
        port=default_settings.BACKEND_PORT,
        reload=default_settings.DEBUG,
        log_level="info"
    )
