"""
Box Keeper API - Main Application Entry Point
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from boxkeeper.core.config import get_settings
from boxkeeper.core.database import init_db, dispose_db
from boxkeeper.core.errors import (
    BoxKeeperError,
    ConflictError,
    InvalidInputError,
    MaxDepthExceededError,
    MembershipError,
    NotFoundError,
    WorkspaceMismatchError,
)
from boxkeeper.schemas.common import ErrorResponse
from boxkeeper.api.v1.router import api_router

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (MaxDepthExceededError, status.HTTP_400_BAD_REQUEST),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (WorkspaceMismatchError, status.HTTP_403_FORBIDDEN),
    (MembershipError, status.HTTP_403_FORBIDDEN),
]


def status_code_for(exc: BoxKeeperError) -> int:
    """HTTP status for a domain error; anything unmapped is a server error."""
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler for startup and shutdown events.
    """
    # Startup
    logger.info("Starting Box Keeper API...")

    await init_db()
    logger.info("Database initialized")

    yield

    # Shutdown
    logger.info("Shutting down Box Keeper API...")
    await dispose_db()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    ## Box Keeper

    Catalogue of storage boxes, the locations they live in and the QR labels stuck on them:

    * **Locations** - Nested up to 5 levels deep, addressed by a materialized path
    * **Boxes** - Stored in at most one location, labelled with at most one QR code
    * **QR codes** - Pre-generated in batches, printed, then claimed by boxes

    ### Authentication

    Requests are authenticated upstream; the acting user arrives in the
    `X-User-Id` header.
    """,
    openapi_url="/api/v1/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include API router
app.include_router(api_router, prefix="/api/v1")


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.APP_VERSION}


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs_url": "/api/docs",
        "openapi_url": "/api/v1/openapi.json",
    }


@app.exception_handler(BoxKeeperError)
async def domain_exception_handler(request: Request, exc: BoxKeeperError):
    """Translate domain errors raised by the services into JSON responses."""
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=exc.message, error_code=exc.error_code).model_dump(),
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "boxkeeper.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
