# clip_sync/main.py
"""
FastAPI application entry point.
Hosts the clip sync loop as a background task and exposes its status.
Run with: uvicorn clip_sync.main:app
"""

import asyncio
import time

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from clip_sync.config import settings
from clip_sync.routers import health, sync
from clip_sync.services.event_source import BoschEventSource
from clip_sync.services.object_store import DriveObjectStore
from clip_sync.services.sync_loop import SyncLoop
from clip_sync.utils.logger import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="Clip Sync API",
    description="Archives Bosch camera clips to Google Drive and reports on the sync loop.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    async def dispatch(self, request: Request, call_next):
        open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}
        if request.url.path in open_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(health.router, prefix="/api/v1", tags=["💚 Health"])
app.include_router(sync.router,   prefix="/api/v1", tags=["🔄 Sync"])

# Collaborators and loop live on app.state so routers and tests can reach them
app.state.source = BoschEventSource(settings)
app.state.store = DriveObjectStore(settings)
app.state.sync_loop = SyncLoop(app.state.source, app.state.store, settings)
app.state.sync_task = None


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Clip Sync starting up...")
    if not settings.SYNC_ENABLED:
        logger.warning("Sync is disabled (SYNC_ENABLED=false), API only.")
        return
    app.state.sync_task = asyncio.create_task(app.state.sync_loop.run(), name="clip-sync-loop")
    logger.info("🔄 Sync loop started")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Clip Sync shutting down...")
    task = app.state.sync_task
    if task is not None:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        app.state.sync_task = None
