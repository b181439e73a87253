"""
FastAPI Application Entry Point.
Initializes the FastAPI app with middleware, CORS, error handlers and routes,
then wraps it with the Socket.IO server.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.core.database import engine
from app.core.exceptions import AppException, ConflictError, InternalError
from app.core.logging_config import configure_logging
from app.core.rate_limit import limiter
from app.core.websocket import connection_manager

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting chat server ({settings.environment})")
    yield
    # Shutdown
    connection_manager.reset()
    await engine.dispose()
    logger.info("Chat server stopped")


# Initialize FastAPI application
app = FastAPI(
    title="Chat Relay Server",
    description="FastAPI backend for realtime chats with read receipts, delivery tracking and Socket.IO fanout",
    version="1.0.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Add rate limiter state and error handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# Error handlers: every error body is {"error": ..., "details"?: ...}
@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "details": details},
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(status_code=409, content=ConflictError("Conflict").to_dict())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    # Exception text is only exposed in development
    error = InternalError("Server error", str(exc) if settings.is_development else None)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())



# CORS Middleware
# Socket.IO handles CORS for its own endpoint (cors_allowed_origins)
cors_origins = settings.get_allowed_origins_list()

app.add_middleware(
    CORSMiddleware,
    allow_origins=[cors_origins] if cors_origins == "*" else cors_origins,
    allow_credentials=cors_origins != "*",
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health Check Endpoints
@app.get("/health", tags=["Health"])
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "environment": settings.environment,
    }


@app.get("/health/ready", tags=["Health"])
async def readiness_check():
    """
    Readiness check endpoint.
    Verifies database connectivity.
    """
    from sqlalchemy import text
    from app.core.database import AsyncSessionLocal

    database_ok = False
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
            database_ok = True
    except Exception:
        logger.error("Readiness check: database unreachable", exc_info=True)

    return JSONResponse(
        status_code=200 if database_ok else 503,
        content={
            "status": "ready" if database_ok else "not ready",
            "checks": {"database": database_ok},
        }
    )


@app.get("/health/websocket", tags=["Health"])
async def websocket_health_check():
    """Socket.IO hub counters."""
    stats = connection_manager.get_stats()
    return {
        "status": "configured",
        "websocket_endpoint": "/socket.io/",
        "active_connections": stats["connections"],
        "active_users": stats["users"],
        "active_rooms": stats["rooms"],
        "heartbeat_interval": settings.ws_heartbeat_interval,
    }


# Include API routers
from app.api.v1 import chats, msgs  # noqa: E402

app.include_router(chats.router)
app.include_router(msgs.router)

# Save reference to FastAPI app (for testing)
fastapi_app = app

# Wrap FastAPI inside Socket.IO ASGIApp - this becomes the final ASGI app
# Client connects to: /socket.io/?EIO=4&transport=websocket
app = connection_manager.get_asgi_app(fastapi_app)
