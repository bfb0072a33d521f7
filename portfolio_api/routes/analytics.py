"""
Folio Portfolio API — Analytics routes (tracking + dashboard summary).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_api.config import settings
from portfolio_api.database import get_db
from portfolio_api.models.profile import Project
from portfolio_api.routes import get_event_store
from portfolio_api.schemas.analytics import (
    AnalyticsSummary,
    EventListResponse,
    TrackEventRequest,
    TrackEventResponse,
)
from portfolio_api.services.aggregator import summarize, window_start
from portfolio_api.services.event_store import EventStore, EventStoreError
from portfolio_api.services.recorder import InvalidEventError, record_event
from portfolio_api.services.visitor import CookieVisitorStorage, get_or_create_visitor_id

logger = logging.getLogger(__name__)
analytics_router = APIRouter(prefix="/analytics", tags=["analytics"])


async def resolve_project_titles(db: AsyncSession, summary: AnalyticsSummary) -> AnalyticsSummary:
    """Fill ``title`` on each top project from the projects table."""
    ids = [p.id for p in summary.top_projects]
    if not ids:
        return summary

    result = await db.execute(select(Project.id, Project.title).where(Project.id.in_(ids)))
    titles = {pid: title for pid, title in result.all()}
    for entry in summary.top_projects:
        entry.title = titles.get(entry.id, "")
    return summary


def visitor_storage_for(request: Request, response: Response) -> CookieVisitorStorage:
    return CookieVisitorStorage(request, response, max_age=settings.visitor_cookie_max_age)


# ═══════════════════════════════════════════════════════
#  Tracking (public)
# ═══════════════════════════════════════════════════════

@analytics_router.post("/events", response_model=TrackEventResponse, status_code=202)
async def track_event(
    req: TrackEventRequest,
    request: Request,
    response: Response,
    store: EventStore = Depends(get_event_store),
):
    """
    Record a page view or project click from a public portfolio.
    Store failures are not surfaced: the answer is 202 either way.
    """
    storage = visitor_storage_for(request, response)
    try:
        stored = await record_event(
            store,
            storage,
            req.profile_id,
            req.event_type,
            req.project_id,
            visitor_key=settings.visitor_cookie_name,
        )
    except InvalidEventError as e:
        raise HTTPException(422, str(e))

    visitor_id = get_or_create_visitor_id(storage, settings.visitor_cookie_name)
    return TrackEventResponse(recorded=stored is not None, visitor_id=visitor_id)


# ═══════════════════════════════════════════════════════
#  Dashboard
# ═══════════════════════════════════════════════════════

@analytics_router.get("/{profile_id}/summary", response_model=AnalyticsSummary)
async def get_summary(
    profile_id: str,
    db: AsyncSession = Depends(get_db),
    store: EventStore = Depends(get_event_store),
):
    """Trailing-window summary with project titles joined in."""
    try:
        summary = await summarize(
            store,
            profile_id,
            window_days=settings.analytics_window_days,
            top_limit=settings.top_projects_limit,
        )
    except EventStoreError as e:
        logger.error("❌ Summary for profile %s failed: %s", profile_id, e)
        raise HTTPException(503, "Analytics are temporarily unavailable")

    return await resolve_project_titles(db, summary)


@analytics_router.get("/{profile_id}/events", response_model=EventListResponse)
async def list_events(
    profile_id: str,
    store: EventStore = Depends(get_event_store),
):
    """Raw in-window events, newest first."""
    try:
        events = await store.query(profile_id, window_start(days=settings.analytics_window_days))
    except EventStoreError as e:
        logger.error("❌ Event listing for profile %s failed: %s", profile_id, e)
        raise HTTPException(503, "Analytics are temporarily unavailable")

    return EventListResponse(events=events, total=len(events))
