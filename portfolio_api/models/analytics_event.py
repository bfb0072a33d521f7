"""
Folio Portfolio API — Analytics event model.

One row per page view or project click recorded on a public portfolio.
Rows are append-only: the recorder inserts them and nothing here
updates or deletes them.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Index
from sqlalchemy.orm import Mapped, mapped_column

from portfolio_api.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalyticsEvent(Base):
    """Immutable visit/click fact for a portfolio owner."""
    __tablename__ = "analytics"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    profile_id: Mapped[str] = mapped_column(String(36), nullable=False)
    project_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    # "page_view" or "project_click"
    event_type: Mapped[str] = mapped_column(String(20), nullable=False)

    # Opaque browser token, absent on older rows
    visitor_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Reserved — never populated by the recorder
    country: Mapped[str | None] = mapped_column(String(2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    __table_args__ = (
        Index("ix_analytics_profile_created", "profile_id", "created_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "profile_id": self.profile_id,
            "project_id": self.project_id,
            "event_type": self.event_type,
            "visitor_id": self.visitor_id,
            "country": self.country,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<AnalyticsEvent {self.event_type} profile={self.profile_id} project={self.project_id}>"
