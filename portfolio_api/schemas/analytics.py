"""
Folio Portfolio API — Analytics schemas (events, summaries, tracking requests).

Wire names follow the dashboard's camelCase contract via aliases;
Python attributes stay snake_case.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class EventType(str, Enum):
    PAGE_VIEW = "page_view"
    PROJECT_CLICK = "project_click"


class AnalyticsEventRecord(BaseModel):
    """One stored analytics row, as returned by any event store."""
    id: str
    profile_id: str
    project_id: str | None = None
    # Kept as a plain string so rows with an unknown type can still be read
    event_type: str
    visitor_id: str | None = None
    country: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class DailyViews(BaseModel):
    date: str  # "YYYY-MM-DD", UTC
    views: int


class ProjectClicks(BaseModel):
    id: str
    title: str = ""
    clicks: int


class AnalyticsSummary(BaseModel):
    """Derived stats for one profile over the trailing window. Never persisted."""
    total_views: int = Field(0, alias="totalViews")
    unique_visitors: int = Field(0, alias="uniqueVisitors")
    project_clicks: int = Field(0, alias="projectClicks")
    views_by_date: list[DailyViews] = Field(default_factory=list, alias="viewsByDate")
    top_projects: list[ProjectClicks] = Field(default_factory=list, alias="topProjects")

    model_config = {"populate_by_name": True}


class TrackEventRequest(BaseModel):
    profile_id: str = Field(..., alias="profileId", min_length=1, max_length=36)
    event_type: EventType = Field(..., alias="eventType")
    project_id: str | None = Field(None, alias="projectId", max_length=36)

    model_config = {"populate_by_name": True}


class TrackEventResponse(BaseModel):
    recorded: bool
    visitor_id: str = Field(..., alias="visitorId")

    model_config = {"populate_by_name": True}


class EventListResponse(BaseModel):
    events: list[AnalyticsEventRecord]
    total: int
