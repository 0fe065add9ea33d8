import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from waterlog import __version__
from waterlog.config import settings
from waterlog.routers import (
    archetypes_router, auth_router, events_router, overview_router,
    plants_router, rooms_router, uploads_router, users_router,
)
from waterlog.services.scheduler import start_scheduler, stop_scheduler
from waterlog.services.scheduling import SchedulingError, SettingsValidationError

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger("waterlog")

# Rate limiter
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan for startup/shutdown events."""
    # Startup
    start_scheduler()
    yield
    # Shutdown
    stop_scheduler()


app = FastAPI(
    title="Waterlog API",
    description="Household plant-watering tracker with an adaptive check schedule",
    version=__version__,
    lifespan=lifespan
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(SettingsValidationError)
async def settings_validation_handler(request: Request, exc: SettingsValidationError):
    """Invalid smoothing parameters are a user-correctable input error."""
    logger.warning(f"Rejected watering settings on {request.url.path}: {exc}")
    return JSONResponse(status_code=422, content={"detail": f"Invalid watering settings: {exc}"})


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    logger.warning(f"Scheduling error on {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Set basic security headers for all API responses."""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response

# Include routers
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(rooms_router)
app.include_router(overview_router)
app.include_router(archetypes_router)
app.include_router(plants_router)
app.include_router(events_router)
app.include_router(uploads_router)

# Uploaded plant photos
app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")

Instrumentator().instrument(app).expose(app, include_in_schema=False)


@app.get("/health")
def health_check():
    """Health check endpoint for Docker."""
    return {"status": "healthy"}


@app.get("/")
def root():
    """Root endpoint with API information."""
    return {
        "name": "Waterlog API",
        "version": __version__,
        "docs": "/docs",
    }
