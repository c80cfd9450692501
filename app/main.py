"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.dependencies import gate_request
from app.exceptions import (
    InternalError,
    NotFoundError,
    RateLimitError,
    VoiceAgentException,
    http_status_for,
)
from app.models.schemas import ErrorResponse
from app.routers import auth, extraction, transcription
from app.utils.helpers import utc_now_iso

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    logger.info("Starting Voice Extraction API...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Max upload size: {settings.max_upload_size_mb}MB")
    logger.info(
        f"Rate limit: {settings.rate_limit_max_requests} requests "
        f"per {settings.rate_limit_window_seconds:.0f}s"
    )
    logger.info(f"Extraction model: {settings.openai_model}")
    logger.info(
        f"Batch extraction: max {settings.batch_max_items} items, "
        f"chunks of {settings.batch_chunk_size}, {settings.batch_delay_seconds}s pacing"
    )

    yield

    # Shutdown
    logger.info("Shutting down Voice Extraction API...")


def error_response(
    status_code: int,
    error: str,
    details: list = None,
    headers: dict = None
) -> JSONResponse:
    """Build the shared ``{error, details?}`` error body."""
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers
    )


# Initialize FastAPI app
app = FastAPI(
    title="Voice Extraction API",
    description="Speech-to-text and structured data extraction for auto repair shops",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# Registered before CORS so CORS stays outermost and also covers gate rejections
@app.middleware("http")
async def enforce_request_gate(request: Request, call_next):
    """Rate limit and authenticate /api requests before their body is read."""
    try:
        remaining = await gate_request(request)
    except VoiceAgentException as exc:
        return await handle_app_error(request, exc)

    response = await call_next(request)
    if remaining is not None:
        response.headers["RateLimit-Remaining"] = str(remaining)
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error translation: one place maps error kinds to HTTP responses

@app.exception_handler(VoiceAgentException)
async def handle_app_error(request: Request, exc: VoiceAgentException) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimitError) and exc.retry_after is not None:
        headers = {"Retry-After": str(max(1, round(exc.retry_after)))}

    status_code = http_status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({status_code}): {exc.message}")

    return error_response(status_code, exc.message, exc.details, headers)


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]
    return error_response(400, "Validation failed", details)


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return await handle_app_error(request, NotFoundError("Endpoint not found"))
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return await handle_app_error(request, InternalError("Internal server error", original_error=exc))


# Include routers (rate limiting and authentication happen in enforce_request_gate)
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(transcription.router, prefix="/api/transcription", tags=["transcription"])
app.include_router(extraction.router, prefix="/api/extraction", tags=["extraction"])


@app.get("/health")
async def health_check():
    """Unauthenticated liveness check."""
    return {
        "status": "healthy",
        "timestamp": utc_now_iso()
    }


def run():
    """Run the application with uvicorn."""
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
