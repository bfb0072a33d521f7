"""
FastAPI Application — entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio_api.config import settings
from portfolio_api.database import init_db, close_db, async_session
from portfolio_api.routes import router, VERSION
from portfolio_api.routes.analytics import analytics_router
from portfolio_api.routes.portfolio import router as portfolio_router
from portfolio_api.services.event_store import build_event_store

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown hook."""
    logger.info("🚀 Starting Folio Portfolio API v%s", VERSION)
    await init_db()
    logger.info("✅ Database ready")

    app.state.event_store = build_event_store(settings, session_factory=async_session)
    logger.info(
        "✅ Event store ready (%s backend, %d-day window)",
        "rest" if settings.rest_store_enabled else "sql",
        settings.analytics_window_days,
    )

    yield

    await close_db()
    logger.info("👋 Shutdown complete")


app = FastAPI(
    title="Folio Portfolio API",
    description=(
        "Portfolio builder backend — profiles, projects, public portfolio "
        "pages, and visit/click analytics."
    ),
    version=VERSION,
    lifespan=lifespan,
)

# CORS — public portfolio pages send the visitor cookie cross-origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api/v1")
app.include_router(analytics_router, prefix="/api/v1")
app.include_router(portfolio_router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root():
    return {
        "service": "Folio Portfolio API",
        "version": VERSION,
        "docs": "/docs",
    }
