"""
API Routes — health and shared dependencies.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from portfolio_api.config import settings
from portfolio_api.schemas import HealthResponse
from portfolio_api.services.event_store import EventStore, build_event_store

logger = logging.getLogger(__name__)

router = APIRouter()

VERSION = "1.0.0"


def get_event_store(request: Request) -> EventStore:
    """FastAPI dependency — the store built at startup, or a fresh one."""
    store = getattr(request.app.state, "event_store", None)
    if store is None:
        store = build_event_store(settings)
        request.app.state.event_store = store
    return store


# ── Health ──────────────────────────────────────────────

@router.get("/health", response_model=HealthResponse, tags=["system"])
async def health():
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=VERSION,
        event_store="rest" if settings.rest_store_enabled else "sql",
    )
