"""
FastAPI application entry point.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.api import health, assets, requests, assignments, employees, payments
from app.core.config import ENABLE_RECONCILIATION_JOB, FRONTEND_ORIGINS
from app.core.errors import AssetVerseError
from app.services.scheduler import start_reconciliation_job, stop_scheduler

logger = logging.getLogger(__name__)

app = FastAPI(
    title="AssetVerse API",
    description="Shared asset requests, assignments and subscription capacity for organizations",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(assets.router, prefix="/api/assets", tags=["assets"])
app.include_router(requests.router, prefix="/api/requests", tags=["requests"])
app.include_router(assignments.router, prefix="/api/assignments", tags=["assignments"])
app.include_router(employees.router, prefix="/api", tags=["organization"])
app.include_router(payments.router, prefix="/api", tags=["payments"])


@app.exception_handler(AssetVerseError)
async def assetverse_error_handler(request: Request, exc: AssetVerseError):
    """Translate domain errors into {"detail", "code"} responses."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.on_event("startup")
async def startup_event():
    """Initialize background jobs on startup."""
    if not ENABLE_RECONCILIATION_JOB:
        logger.info("Payment reconciliation job disabled")
        return
    try:
        start_reconciliation_job()
    except Exception as e:
        logger.warning(f"Could not start payment reconciliation job: {e}")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    stop_scheduler()
