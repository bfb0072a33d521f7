"""
Folio Portfolio API — Pydantic request/response schemas.
"""

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from portfolio_api.schemas.analytics import (  # noqa: F401
    AnalyticsEventRecord,
    AnalyticsSummary,
    DailyViews,
    EventListResponse,
    EventType,
    ProjectClicks,
    TrackEventRequest,
    TrackEventResponse,
)

USERNAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
URL_RE = re.compile(r"^https?://.+")


def _optional_url(value: str | None) -> str | None:
    """Empty string → None; anything else must be an http(s) URL."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not URL_RE.match(value):
        raise ValueError("Must be a valid URL starting with http:// or https://")
    return value


# ── Profiles ────────────────────────────────────────────────

class ProfileCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=30)
    full_name: str | None = Field(None, max_length=100)
    headline: str | None = Field(None, max_length=150)
    bio: str | None = Field(None, max_length=2000)
    profession: str | None = Field(None, max_length=100)
    location: str | None = Field(None, max_length=100)
    avatar_url: str | None = Field(None, max_length=500)
    is_public: bool = True

    @field_validator("username")
    @classmethod
    def _check_username(cls, v: str) -> str:
        v = v.strip()
        if not USERNAME_RE.match(v):
            raise ValueError("Username can only contain letters, numbers, underscores, and hyphens")
        return v

    @field_validator("avatar_url")
    @classmethod
    def _check_avatar(cls, v: str | None) -> str | None:
        return _optional_url(v)


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(None, max_length=100)
    headline: str | None = Field(None, max_length=150)
    bio: str | None = Field(None, max_length=2000)
    profession: str | None = Field(None, max_length=100)
    location: str | None = Field(None, max_length=100)
    avatar_url: str | None = Field(None, max_length=500)
    is_public: bool | None = None

    @field_validator("avatar_url")
    @classmethod
    def _check_avatar(cls, v: str | None) -> str | None:
        return _optional_url(v)


class ProfileResponse(BaseModel):
    id: str
    username: str
    full_name: str | None = None
    headline: str | None = None
    bio: str | None = None
    profession: str | None = None
    location: str | None = None
    avatar_url: str | None = None
    is_public: bool = True
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


# ── Projects ────────────────────────────────────────────────

class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=150)
    short_description: str | None = Field(None, max_length=300)
    tools: list[str] = Field(default_factory=list, max_length=20)
    cover_image_url: str | None = Field(None, max_length=500)
    is_public: bool = True
    display_order: int = 0

    @field_validator("title")
    @classmethod
    def _strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v

    @field_validator("tools")
    @classmethod
    def _check_tools(cls, v: list[str]) -> list[str]:
        tools = [t.strip() for t in v]
        if any(len(t) > 50 for t in tools):
            raise ValueError("Tool name must be less than 50 characters")
        return tools

    @field_validator("cover_image_url")
    @classmethod
    def _check_cover(cls, v: str | None) -> str | None:
        return _optional_url(v)


class ProjectUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=150)
    short_description: str | None = Field(None, max_length=300)
    tools: list[str] | None = Field(None, max_length=20)
    cover_image_url: str | None = Field(None, max_length=500)
    is_public: bool | None = None
    display_order: int | None = None

    @field_validator("cover_image_url")
    @classmethod
    def _check_cover(cls, v: str | None) -> str | None:
        return _optional_url(v)


class ProjectResponse(BaseModel):
    id: str
    profile_id: str
    title: str
    short_description: str | None = None
    tools: list[str] = []
    cover_image_url: str | None = None
    is_public: bool = True
    display_order: int = 0
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class ProjectListResponse(BaseModel):
    projects: list[ProjectResponse]
    total: int


class PublicPortfolioResponse(BaseModel):
    profile: ProfileResponse
    projects: list[ProjectResponse]


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "1.0.0"
    timestamp: str | None = None
    event_store: str = "sql"
