"""
Fireteam Friends Backend API - Main Application
"""
import logging
import sys
import traceback
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import uvicorn

from .core.config import settings
from .core.dependencies import get_record_store
from .core.exceptions import InvalidArgument, PartialWriteInconsistency, RelationshipError, StoreFailure
from .core.rate_limit import limiter
from .schemas.social import ErrorResponse
from .api.v1 import api_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENVIRONMENT})")

    try:
        store = get_record_store()
        store.prepare()
        logger.info(f"Record store ready: {store.status()}")
    except Exception as e:
        logger.error(f"Failed to initialize record store: {e}")
        raise

    yield  # Application runs here

    logger.info(f"Shutting down {settings.PROJECT_NAME}")


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Friends graph for the Destiny 2 companion app",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False
)

# Rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RelationshipError)
async def relationship_error_handler(request: Request, exc: RelationshipError):
    """Render friend graph failures as {success, kind, message}."""
    body = ErrorResponse(**exc.to_dict())

    if isinstance(exc, PartialWriteInconsistency):
        error_id = str(uuid.uuid4())[:8]
        logger.critical(
            f"[ERROR_ID: {error_id}] Inconsistent records for {exc.caller_id} and "
            f"{exc.counterpart_id} after {exc.operation} on {request.method} {request.url.path}"
        )
        body.error_id = error_id
    elif isinstance(exc, StoreFailure):
        logger.error(
            f"{exc.kind.value} for key {exc.key} on {request.method} {request.url.path}: {exc.reason}"
        )
    else:
        logger.info(f"{exc.kind.value} on {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Missing or malformed request fields are invalid arguments."""
    problems = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))

    message = "Invalid request: " + "; ".join(problems) if problems else "Invalid request"
    return await relationship_error_handler(request, InvalidArgument(message))


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unexpected errors."""
    # Generate a unique error ID for tracking
    error_id = str(uuid.uuid4())[:8]

    # Always log the full error on the server
    logger.error(
        f"[ERROR_ID: {error_id}] Unhandled exception on {request.method} {request.url.path}",
        exc_info=True
    )

    if settings.DEBUG:
        # Development: return detailed error for debugging
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "detail": str(exc),
                "error_id": error_id,
                "type": type(exc).__name__,
                "path": str(request.url.path),
                "traceback": traceback.format_exc()
            }
        )
    else:
        # Production: return generic error, hide internal details
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "detail": "An internal server error occurred. Please try again later.",
                "error_id": error_id
            }
        )


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "service": settings.PROJECT_NAME,
        "version": "1.0.0",
        "status": "running",
        "environment": settings.ENVIRONMENT,
        "docs_url": "/docs" if settings.DEBUG else "disabled",
        "features": [
            "Friend requests with auto-accept of crossed requests",
            "Accept / decline / remove",
            "Player search annotation",
            f"Record store: {settings.RECORD_STORE_BACKEND}"
        ]
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    from fireteam.utils.time_utils import to_utc_isoformat, utc_now

    try:
        return {
            "status": "healthy",
            "timestamp": to_utc_isoformat(utc_now()),
            "service": "fireteam-friends-api",
            "version": "1.0.0",
            "services": {
                "record_store": get_record_store().status()
            }
        }

    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return {
            "status": "unhealthy",
            "error": str(e)
        }


# Include API router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


if __name__ == "__main__":
    # Run the application
    uvicorn.run(
        "fireteam.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
