"""
Event Recorder — appends page views and project clicks to the event store.

Tracking must never get in the way of someone viewing a portfolio, so
store failures are logged and swallowed here. Bad input (unknown event
type, click without a project) is a caller bug and is raised.
"""

import logging

from portfolio_api.schemas.analytics import AnalyticsEventRecord, EventType
from portfolio_api.services.event_store import EventStore, EventStoreError
from portfolio_api.services.visitor import VISITOR_ID_KEY, VisitorStorage, get_or_create_visitor_id

logger = logging.getLogger(__name__)


class InvalidEventError(ValueError):
    """Event rejected at the boundary before reaching the store."""


def validate_event(event_type: str | EventType, project_id: str | None) -> EventType:
    try:
        kind = EventType(event_type)
    except ValueError:
        raise InvalidEventError(f"Unknown event type: {event_type!r}") from None

    if kind is EventType.PROJECT_CLICK and not project_id:
        raise InvalidEventError("project_click events require a project_id")
    return kind


async def record_event(
    store: EventStore,
    storage: VisitorStorage,
    profile_id: str,
    event_type: str | EventType,
    project_id: str | None = None,
    visitor_key: str = VISITOR_ID_KEY,
) -> AnalyticsEventRecord | None:
    """
    Append one analytics event for *profile_id*.

    The visitor id is resolved (and persisted in *storage*) before the
    write, so a failed write still leaves the browser with a stable id.
    Returns the stored record, or ``None`` if the store failed.
    """
    if not profile_id:
        raise InvalidEventError("profile_id is required")
    kind = validate_event(event_type, project_id)
    visitor_id = get_or_create_visitor_id(storage, visitor_key)

    record = {
        "profile_id": profile_id,
        "project_id": project_id or None,
        "event_type": kind.value,
        "visitor_id": visitor_id,
    }

    try:
        stored = await store.insert(record)
    except EventStoreError as e:
        logger.warning("Failed to record %s for profile %s: %s", kind.value, profile_id, e)
        return None

    logger.debug("Recorded %s for profile %s (event %s)", kind.value, profile_id, stored.id)
    return stored


async def record_event_quietly(
    store: EventStore,
    storage: VisitorStorage,
    profile_id: str,
    event_type: str | EventType,
    project_id: str | None = None,
    visitor_key: str = VISITOR_ID_KEY,
) -> None:
    """``record_event`` for background tasks: invalid events are logged, not raised."""
    try:
        await record_event(store, storage, profile_id, event_type, project_id, visitor_key)
    except InvalidEventError as e:
        logger.warning("Dropped invalid analytics event: %s", e)
