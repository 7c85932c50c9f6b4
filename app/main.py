"""Expense Bridge — FastAPI Application Entry Point.

Receives bitable webhook pushes, normalizes the records, keeps them in flat
JSON files, and serves a small expense dashboard.
"""

import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse, Response

from app.config import settings
from app.storage import JsonFileStore
from app.api.system_routes import router as system_router
from app.api.receive_routes import router as receive_router
from app.api.record_routes import router as record_router
from app.core.errors import register_error_handlers
from app.core.logging import get_logger

logger = get_logger("main")

FRONTEND_DIR = Path(__file__).resolve().parent.parent / "frontend"

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Max-Age": "86400",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 Expense Bridge starting up...")
    store = JsonFileStore.from_settings(settings)
    store.load()
    app.state.store = store
    logger.info(
        f"📦 Storage ready: {store.received_count} received entries, "
        f"{store.processed_count} processed records"
    )
    if not settings.require_signature:
        logger.warning("Signature headers are optional; unsigned pushes are accepted")
    yield
    logger.info("Expense Bridge shut down")


app = FastAPI(
    title="Expense Bridge",
    description="Bitable webhook receiver and expense dashboard backed by flat JSON files.",
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

register_error_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with its status and duration."""
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - started) * 1000, 2)
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code}",
        extra={
            "endpoint": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response


# Routers
app.include_router(system_router)
app.include_router(receive_router)
app.include_router(record_router)

# Static files (frontend)
app.mount("/static", StaticFiles(directory=str(FRONTEND_DIR)), name="static")


@app.get("/dashboard", include_in_schema=False)
async def dashboard():
    """Serve the expense dashboard."""
    return FileResponse(str(FRONTEND_DIR / "index.html"))


@app.options("/{full_path:path}", include_in_schema=False)
async def preflight(full_path: str):
    """Answer any preflight that CORSMiddleware did not already handle."""
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)
