"""
Summary Aggregator — dashboard stats for one profile over a trailing window.

Everything is recomputed from the raw event list on every call; there is
no caching of partial sums. ``summarize_events`` is the pure part and is
what the tests exercise directly; ``summarize`` just adds the store read.

Data-quality gaps are tolerated rather than raised:

* rows with an unknown ``event_type`` are ignored,
* a null/empty ``visitor_id`` does not count as a visitor,
* a click with no ``project_id`` counts as a click but is unattributable,
* naive timestamps are taken to be UTC.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Iterable

from portfolio_api.schemas.analytics import (
    AnalyticsEventRecord,
    AnalyticsSummary,
    DailyViews,
    EventType,
    ProjectClicks,
)
from portfolio_api.services.event_store import EventStore

logger = logging.getLogger(__name__)

# ── tunables ──
WINDOW_DAYS = 30
TOP_PROJECTS_LIMIT = 5


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def window_start(now: datetime | None = None, days: int = WINDOW_DAYS) -> datetime:
    """Inclusive lower bound of the trailing window ending at *now*."""
    now = _as_utc(now) if now else datetime.now(timezone.utc)
    return now - timedelta(days=days)


def summarize_events(
    events: Iterable[AnalyticsEventRecord],
    now: datetime | None = None,
    window_days: int = WINDOW_DAYS,
    top_limit: int = TOP_PROJECTS_LIMIT,
) -> AnalyticsSummary:
    """
    Build an ``AnalyticsSummary`` from raw events.

    Events older than ``now - window_days`` are dropped; there is no upper
    bound, so future-dated rows (clock skew) are kept. Ties in
    ``top_projects`` keep the order in which projects were first seen in
    *events* — with the store's newest-first ordering that puts the most
    recently clicked project first.
    """
    since = window_start(now, window_days)

    views: list[AnalyticsEventRecord] = []
    clicks: list[AnalyticsEventRecord] = []
    for event in events:
        if _as_utc(event.created_at) < since:
            continue
        if event.event_type == EventType.PAGE_VIEW.value:
            views.append(event)
        elif event.event_type == EventType.PROJECT_CLICK.value:
            clicks.append(event)
        # anything else: a type this version doesn't know about

    visitors = {e.visitor_id for e in (*views, *clicks) if e.visitor_id}

    per_day: Counter[str] = Counter(
        _as_utc(e.created_at).date().isoformat() for e in views
    )
    views_by_date = [
        DailyViews(date=day, views=count)
        for day, count in sorted(per_day.items())
    ]

    per_project: Counter[str] = Counter(e.project_id for e in clicks if e.project_id)
    # most_common() is stable for equal counts (first-encountered wins)
    top_projects = [
        ProjectClicks(id=project_id, title="", clicks=count)
        for project_id, count in per_project.most_common(top_limit)
    ]

    return AnalyticsSummary(
        total_views=len(views),
        unique_visitors=len(visitors),
        project_clicks=len(clicks),
        views_by_date=views_by_date,
        top_projects=top_projects,
    )


async def summarize(
    store: EventStore,
    profile_id: str,
    now: datetime | None = None,
    window_days: int = WINDOW_DAYS,
    top_limit: int = TOP_PROJECTS_LIMIT,
) -> AnalyticsSummary:
    """
    Read the window for *profile_id* and summarise it.

    Store failures propagate (``EventStoreError``) so the dashboard can show
    an error state. A profile with no events — or no such profile — gets a
    zeroed summary.
    """
    now = _as_utc(now) if now else datetime.now(timezone.utc)
    events = await store.query(profile_id, window_start(now, window_days))
    summary = summarize_events(events, now=now, window_days=window_days, top_limit=top_limit)
    logger.debug(
        "Summarised %d events for profile %s: %d views, %d visitors, %d clicks",
        len(events), profile_id, summary.total_views, summary.unique_visitors,
        summary.project_clicks,
    )
    return summary
