# pyright: reportMissingTypeStubs=false
"""
Diagnostic Center Backend API

A FastAPI application serving the OPD front desk, doctor referral
commissions and branch accounts of a multi-branch diagnostic center.

Features:
- Branch-scoped OPD, test order and expense management
- Doctor commission ledger with payment notifications
- Financial reports per branch or across all branches
- PostgreSQL database with SQLAlchemy ORM
"""

import logging
from contextlib import asynccontextmanager
import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import accounts, commissions, expenses, opd
from core.constants import CORS_ORIGINS
from core.exceptions import ForbiddenError, InvalidStateError, NotFoundError
from services import EmailService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)
logger.info("🏥 Diagnostic Center API starting...")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("🚀 Starting Diagnostic Center Backend API")
    if EmailService.is_enabled():
        logger.info("✅ Commission payment emails enabled")
    else:
        logger.warning("⚠️  RESEND_API_KEY not set, commission payment emails disabled")

    yield

    logger.info("🛑 Shutting down Diagnostic Center Backend API")


# Create FastAPI application
app = FastAPI(
    title="Diagnostic Center Backend",
    description="OPD, commissions and accounts for a multi-branch diagnostic center",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI
    redoc_url="/redoc",  # ReDoc
    lifespan=lifespan,
)

# CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(
    opd.router,
    prefix="/api/opd",
    tags=["opd"],
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Resource not found"},
        500: {"description": "Internal server error"},
    },
)
app.include_router(
    commissions.router,
    prefix="/api/commissions",
    tags=["commissions"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Resource not found"},
        500: {"description": "Internal server error"},
    },
)
app.include_router(
    accounts.router,
    prefix="/api/accounts",
    tags=["accounts"],
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        500: {"description": "Internal server error"},
    },
)
app.include_router(
    expenses.router,
    prefix="/api/expenses",
    tags=["expenses"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        500: {"description": "Internal server error"},
    },
)


@app.get(
    "/",
    summary="Root endpoint",
    description="Returns basic API information",
)
async def root() -> dict[str, str]:
    """Get API information."""
    return {
        "message": "Diagnostic Center Backend API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get(
    "/health",
    summary="Health check",
    description="Returns the health status of the API",
)
async def health_check() -> dict[str, str]:
    """Check if the API is healthy and responding."""
    return {"status": "healthy"}


# Global exception handlers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions globally."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": "internal_error"},
    )


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=404,
        content={"detail": str(exc), "type": "not_found"},
    )


@app.exception_handler(ForbiddenError)
async def forbidden_error_handler(request: Request, exc: ForbiddenError):
    logger.warning(f"Forbidden: {exc} ({request.method} {request.url.path})")
    return JSONResponse(
        status_code=403,
        content={"detail": str(exc), "type": "forbidden"},
    )


@app.exception_handler(InvalidStateError)
async def invalid_state_error_handler(request: Request, exc: InvalidStateError):
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "type": "invalid_state"},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions."""
    logger.warning(f"ValueError: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "type": "validation_error"},
    )


@app.exception_handler(httpx.HTTPStatusError)
async def http_status_error_handler(request: Request, exc: httpx.HTTPStatusError):
    """Handle HTTP status errors from external services."""
    logger.exception(f"External service error: {exc}")
    return JSONResponse(
        status_code=502,
        content={"detail": "External service error", "type": "external_service_error"},
    )
