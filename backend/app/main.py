"""
FastAPI application entry point for the signing service.
Sets up the API with lifespan events for credential loading.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.api.router import api_router
from app.auth.firebase import initialize_firebase
from app.middleware.metrics_middleware import MetricsMiddleware
from app.storage.errors import ConfigurationError, UploadPipelineError, ValidationError
from app.storage.signing_service import SigningService
from app.utils.logging import configure_logging

logger = logging.getLogger(__name__)

SIGNING_PREFIX = "/api/uploads"


def describe_validation_error(exc: RequestValidationError) -> str:
    """First validation problem as one line, e.g. "Missing required parameter: key"."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = str(first["loc"][-1]) if first.get("loc") else "body"
    if first.get("type") == "missing":
        return f"Missing required parameter: {field}"
    return f"Invalid parameter {field}: {first.get('msg', 'invalid value')}"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.
    - Startup: Load storage credentials once, initialize Firebase Admin SDK
    - Shutdown: Cleanup (if needed)
    """
    # Configure structured JSON logging
    configure_logging('gallery-signer', settings.log_level)

    # Credentials are read once here and injected into the service
    try:
        app.state.signing_service = SigningService.from_settings(settings)
    except ConfigurationError as e:
        logger.error(f"Storage signing disabled: {e}")
        if settings.environment == "production":
            raise
        # Outside production, requests fail with a server error instead
        app.state.signing_service = None
        app.state.signing_config_error = e

    # Skip if Firebase config not provided (for local dev without Firebase)
    if settings.firebase_project_id:
        try:
            initialize_firebase(settings.firebase_project_id, settings.firebase_credentials_json)
        except Exception as e:
            if settings.environment == "production":
                raise
            logger.warning(f"Firebase initialization failed: {e}")

    yield


# Create FastAPI app
app = FastAPI(
    title="Gallery Upload Signer",
    description="Presigned upload URLs for gallery media stored in R2",
    version="0.1.0",
    lifespan=lifespan
)

# CORS middleware (for the browser admin console)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Metrics middleware (must be after CORS to track all requests)
app.add_middleware(MetricsMiddleware)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.exception_handler(UploadPipelineError)
async def upload_pipeline_error_handler(request: Request, exc: UploadPipelineError):
    """Translate pipeline errors to {error} bodies."""
    if isinstance(exc, ConfigurationError):
        logger.error(f"Rejected {request.url.path}: {exc}")
    elif exc.status_code >= 500:
        logger.error(f"Upstream failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies get the same 400 {error} body as a bad key."""
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={"error": describe_validation_error(exc)},
    )


@app.exception_handler(StarletteHTTPException)
async def signing_http_error_handler(request: Request, exc: StarletteHTTPException):
    """Auth failures on the signing routes use {error}; other routes keep {detail}."""
    if not request.url.path.startswith(SIGNING_PREFIX):
        return await http_exception_handler(request, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Gallery Upload Signer",
        "version": "0.1.0",
        "environment": settings.environment
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
