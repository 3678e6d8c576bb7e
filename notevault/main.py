"""FastAPI application entry point."""

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError

from .config import settings
from .database import engine, warmup_connection_pool
from .routers import admin_router, auth_router, notes_router, users_router
from .services.errors import NotevaultError
from .services.schema_capabilities import SchemaCapabilities, detect_schema_capabilities

# Configure logging to show errors
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown tasks."""
    # Startup
    logger.info("Warming up database connection pool...")
    await warmup_connection_pool()
    logger.info("Database connection pool ready")

    logger.info("Resolving schema capabilities...")
    app.state.schema_capabilities = await detect_schema_capabilities(engine)

    if settings.policy_mode == "permissive":
        logger.warning("Role policy is PERMISSIVE: denied checks are logged and allowed")

    yield

    # Shutdown
    logger.info("Disposing database engine...")
    await engine.dispose()
    logger.info("Database engine disposed")


# Create FastAPI application
app = FastAPI(
    title="Notevault API",
    description="Multi-tenant notes with folders, trash recovery and community versions",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Domain errors raised by the service layer
@app.exception_handler(NotevaultError)
async def notevault_error_handler(request: Request, exc: NotevaultError):
    """Render a domain error with its mapped HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


# Database pool exhaustion handler - return 503 so clients can retry
@app.exception_handler(SQLAlchemyTimeoutError)
async def db_pool_exhausted_handler(request: Request, exc: SQLAlchemyTimeoutError):
    """Handle database connection pool exhaustion with 503 Service Unavailable."""
    logger.warning(
        f"Database pool exhausted on {request.method} {request.url}: {exc}"
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": "Service temporarily unavailable. Please retry.",
            "retry_after": 5,
        },
        headers={"Retry-After": "5"},
    )


# Global exception handler to log errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log all unhandled exceptions with full traceback."""
    logger.error(f"Unhandled exception on {request.method} {request.url}:")
    logger.error(f"Exception type: {type(exc).__name__}")
    logger.error(f"Exception message: {str(exc)}")
    logger.error(f"Traceback:\n{traceback.format_exc()}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Include API routers
app.include_router(auth_router)
app.include_router(notes_router)
app.include_router(users_router)
app.include_router(admin_router)


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {
        "status": "healthy",
        "service": "Notevault API",
        "version": "1.0.0",
    }


@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint for monitoring."""
    capabilities = getattr(request.app.state, "schema_capabilities", None) or SchemaCapabilities.full()
    return {
        "status": "healthy",
        "schema": capabilities.as_dict(),
        "policy_mode": settings.policy_mode,
    }
