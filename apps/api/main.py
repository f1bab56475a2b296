"""
FastAPI application entry point.

Sets up middleware, routers and error handling for the Hridaya API.
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from routers import chat, experiments, log_entries, practice, profile
from core.config import settings
from core.database import check_db_connection
from core.logging import setup_logging
from core.exceptions import APIException
from core.security_headers import SecurityHeadersMiddleware
import logging
import time

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)

QUIET_PATHS = {"/health", "/ping"}

app = FastAPI(
    title="Hridaya API",
    description="Contemplative self-experiments, practice streaks and a research-partner chat",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)


# CORS middleware
# Production: set CORS_ORIGINS env var (comma-separated)
# Development: DEBUG=True allows all origins
if settings.DEBUG:
    allowed_origins = ["*"]
elif settings.CORS_ORIGINS:
    allowed_origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",")]
else:
    allowed_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(SecurityHeadersMiddleware)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing information."""
    start_time = time.time()

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(
            f"Request failed: {request.method} {request.url.path}",
            exc_info=True,
            extra={
                "extra_fields": {
                    "method": request.method,
                    "path": request.url.path,
                    "error": str(e),
                }
            }
        )
        raise

    process_time = time.time() - start_time
    # Uptime probes hit these every few seconds
    level = logging.DEBUG if request.url.path in QUIET_PATHS else logging.INFO
    logger.log(
        level,
        f"Response: {request.method} {request.url.path} - {response.status_code}",
        extra={
            "extra_fields": {
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "process_time_ms": round(process_time * 1000, 2),
            }
        }
    )
    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Known API errors: keep the status, add the machine-readable code."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=exc.headers)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(
        f"Unhandled exception: {exc}",
        exc_info=True,
        extra={
            "extra_fields": {
                "method": request.method,
                "path": request.url.path,
            }
        }
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.get("/health")
async def health():
    """
    Health check for load balancers and uptime monitors.

    Returns:
        - 200: Core systems operational
        - 503: Database unavailable
    """
    if not check_db_connection():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "database": "unavailable",
            }
        )

    return {
        "status": "healthy",
        "chat": "configured" if settings.ANTHROPIC_API_KEY else "unconfigured",
        "timestamp": time.time(),
    }


@app.get("/ping")
async def ping():
    """Minimal ping endpoint; no dependencies checked."""
    return {"pong": True}


# Include routers
app.include_router(profile.router)
app.include_router(experiments.router)
app.include_router(log_entries.router)
app.include_router(chat.router)
app.include_router(practice.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT)
