"""PAINEL — FastAPI Application Entry Point.

Aggregation and month-grouping engine for Meta and Google Ads exports.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.api.report_routes import router as report_router
from app.config import settings
from app.core.logging import get_logger

logger = get_logger("main")

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("PAINEL starting up...")
    if settings.reference_date:
        logger.info(f"Month inference pinned to reference date {settings.reference_date}")
    yield
    logger.info("PAINEL shut down")


app = FastAPI(
    title=settings.api_title,
    description="Group, filter and compare Meta and Google Ads performance by account, campaign, ad group, creative and month.",
    version=VERSION,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging
@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code}",
        extra={
            "endpoint": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )
    return response


# Routers
app.include_router(report_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "painel",
        "version": VERSION,
    }
