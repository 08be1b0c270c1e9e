"""
FastAPI application main module.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.config import configure_logging, get_settings
from app.database import close_redis, init_redis
from app.exceptions import IndexUnavailable, SearchTimeout
from app.routers import charging, sync

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    await init_redis(app)
    yield
    # Shutdown
    await close_redis(app)


settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title=settings.app_name,
    description="Nearby EV charger search backed by a Redis geo index",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify allowed origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(charging.router)
app.include_router(sync.router)


@app.exception_handler(IndexUnavailable)
async def index_unavailable_handler(request: Request, exc: IndexUnavailable):
    logger.error("Charger store unavailable for %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Charger store unavailable"})


@app.exception_handler(SearchTimeout)
async def search_timeout_handler(request: Request, exc: SearchTimeout):
    return JSONResponse(status_code=504, content={"detail": str(exc)})


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "name": settings.app_name,
        "status": "healthy",
        "version": "1.0.0",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "ok"}
