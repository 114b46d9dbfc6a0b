"""Main FastAPI application for the Tutor Pipeline Service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog
from prometheus_fastapi_instrumentator import Instrumentator

from tutor_pipeline.core.config import settings
from tutor_pipeline.core.logging import setup_logging
from tutor_pipeline.core.dependencies import build_services, get_completion_client, get_repository
from tutor_pipeline.core.exceptions import (
    InvalidAnswerError,
    MockExamGenerationError,
    NotFoundError,
    PermissionDeniedError,
    TutorPipelineError,
    UnsupportedFileTypeError,
)
from tutor_pipeline.routers import documents, learning

# Setup structured logging
setup_logging()
logger = structlog.get_logger()

ERROR_STATUS = {
    NotFoundError: 404,
    PermissionDeniedError: 403,
    InvalidAnswerError: 400,
    UnsupportedFileTypeError: 400,
    MockExamGenerationError: 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle manager."""
    # Startup
    logger.info("Starting Tutor Pipeline Service", version=settings.APP_VERSION)

    # Tests may install their own services before startup
    if not hasattr(app.state, "pipeline"):
        repository = await get_repository()
        pipeline, learner = build_services(repository, get_completion_client())
        app.state.repository = repository
        app.state.pipeline = pipeline
        app.state.learner = learner

    yield

    # Shutdown
    logger.info("Shutting down Tutor Pipeline Service", pending_jobs=app.state.pipeline.queue.pending)
    await app.state.pipeline.queue.drain()

    if hasattr(app.state, "repository") and app.state.repository:
        await app.state.repository.close()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Document-to-curriculum pipeline: concepts, exercises and spaced repetition",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production() else None,
    redoc_url="/redoc" if not settings.is_production() else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup Prometheus metrics
if settings.ENABLE_METRICS:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")

# Include routers
app.include_router(documents.router, prefix="/api/documents", tags=["documents"])
app.include_router(learning.router, prefix="/api", tags=["learning"])


@app.exception_handler(TutorPipelineError)
async def handle_service_error(request: Request, exc: TutorPipelineError):
    """Translate domain errors into HTTP responses."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        500,
    )
    log = logger.warning if status_code < 500 else logger.error
    log("Request failed", path=request.url.path, error=str(exc), error_type=type(exc).__name__)
    return JSONResponse(content={"detail": str(exc)}, status_code=status_code)


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "status": "operational"
    }


@app.get("/health", tags=["health"])
async def health_check(request: Request):
    """Health check endpoint."""
    health_status = {
        "status": "healthy",
        "service": settings.SERVICE_NAME,
        "version": settings.APP_VERSION,
        "checks": {}
    }

    # Check storage
    try:
        await request.app.state.repository.list_documents(user_id=0)
        health_status["checks"]["storage"] = "healthy"
    except Exception as e:
        health_status["checks"]["storage"] = f"unhealthy: {str(e)}"
        health_status["status"] = "degraded"

    health_status["checks"]["background_jobs"] = request.app.state.pipeline.queue.pending

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(content=health_status, status_code=status_code)


@app.get("/config", tags=["debug"])
async def get_config():
    """Get current configuration (development only)."""
    if settings.is_production():
        return JSONResponse(
            content={"error": "Not available in production"},
            status_code=403
        )

    return {
        "environment": settings.ENVIRONMENT,
        "openai_model": settings.OPENAI_MODEL,
        "database": "memory" if settings.uses_memory_storage() else settings.DATABASE_URL.split("://")[0],
        "max_upload_size_mb": settings.MAX_UPLOAD_SIZE_MB,
        "allowed_file_types": settings.ALLOWED_FILE_TYPES,
        "chunk_target_tokens": settings.CHUNK_TARGET_TOKENS,
        "chunk_overlap_fraction": settings.CHUNK_OVERLAP_FRACTION,
        "max_concurrent_jobs": settings.MAX_CONCURRENT_JOBS,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tutor_pipeline.main:app",
        host="0.0.0.0",
        port=settings.SERVICE_PORT,
        reload=settings.ENVIRONMENT == "development",
        log_config=None  # Use structlog instead
    )
