"""
Fishbone Diagram API
====================

REST API for the diagram portal: accounts, diagram CRUD and the
interactive editor (layout, bone edits, expansion, export).

Run locally (from the project root):
    python -m uvicorn apps.diagram_portal.api.main:app --reload --port 3000

API Docs:
    http://localhost:3000/docs
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fishbone import __version__
from fishbone.errors import (
    AddressingError,
    DiagramNotFoundError,
    FishboneError,
    InvalidContentError,
    PersistenceError,
    StructuralError,
)
from fishbone.utils.safe_logging import PIIProtector, configure_logging

from .config import CORS_ORIGINS, get_diagrams_db_path, get_users_db_path, settings
from .dependencies import get_users_store
from .routes import auth, diagrams, editor
from .services.auth_service import seed_demo_users

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

API_PREFIX = "/api"

# Domain error -> HTTP status
ERROR_STATUS = {
    InvalidContentError: 400,
    AddressingError: 404,
    DiagramNotFoundError: 404,
    StructuralError: 409,
    PersistenceError: 503,
}


def _log_startup_banner():
    """Log which environment and data files the API is using."""
    env = settings.ENV.upper()
    logger.info("=" * 60)
    logger.info("   FISHBONE DIAGRAM API  --  %s MODE", env)
    logger.info("=" * 60)
    logger.info("   Diagrams:    %s", get_diagrams_db_path())
    logger.info("   Users:       %s", get_users_db_path())
    logger.info("   Demo users:  %s", "enabled" if settings.SEED_DEMO_USERS else "disabled")
    logger.info("=" * 60)

    if env == "PRODUCTION" and settings.JWT_SECRET_KEY.startswith("CHANGE-THIS"):
        logger.warning("   [WARN] JWT_SECRET_KEY is the default value in production")


# Lifespan for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    _log_startup_banner()
    if settings.SEED_DEMO_USERS:
        users = app.dependency_overrides.get(get_users_store, get_users_store)()
        created = seed_demo_users(users)
        if created:
            logger.info("   [OK] Seeded %d demo users", len(created))
    yield
    # Shutdown
    logger.info("[STOP] Diagram API shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Fishbone Diagram API",
    description="Cause-and-effect diagram editor API",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.ENV != "production" else None,  # Disable docs in prod
    redoc_url="/redoc" if settings.ENV != "production" else None,
)


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request, call_next):
    """Add security headers to all API responses."""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Cache-Control"] = "no-store"
    return response


# Request timing middleware
@app.middleware("http")
async def add_timing_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(round(process_time * 1000, 2)) + "ms"
    return response


# ============================================================
# Exception handlers
# ============================================================

@app.exception_handler(FishboneError)
async def fishbone_exception_handler(request: Request, exc: FishboneError):
    status_code = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)),
        500,
    )
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        detail = "Storage is unavailable, try again later" if status_code == 503 else "Internal server error"
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, status_code, exc)
        detail = str(exc)
    return JSONResponse(status_code=status_code, content={"detail": detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": "Validation failed", "errors": errors},
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error: %s", PIIProtector.sanitize_message(str(exc)))
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


# Include routers
app.include_router(auth.router, prefix=f"{API_PREFIX}/auth", tags=["Authentication"])
app.include_router(diagrams.router, prefix=f"{API_PREFIX}/diagrams", tags=["Diagrams"])
app.include_router(editor.router, prefix=f"{API_PREFIX}/diagrams", tags=["Editor"])


# Health check endpoint
@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint for monitoring"""
    return {
        "status": "healthy",
        "version": __version__,
        "environment": settings.ENV
    }


# Root endpoint
@app.get("/", tags=["System"])
async def root():
    """API root - returns basic info"""
    return {
        "name": "Fishbone Diagram API",
        "version": __version__,
        "docs": "/docs" if settings.ENV != "production" else "disabled"
    }
