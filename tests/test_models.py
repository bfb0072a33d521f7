"""
Tests for ORM models — Profile, Project, AnalyticsEvent.
"""

from sqlalchemy import select

from portfolio_api.models.analytics_event import AnalyticsEvent
from portfolio_api.models.profile import Profile, Project


class TestProfileModel:
    async def test_create_profile(self, db_session):
        profile = Profile(username="ada_l", full_name="Ada Lovelace")
        db_session.add(profile)
        await db_session.commit()
        await db_session.refresh(profile)

        assert profile.id is not None
        assert profile.is_public is True
        assert profile.created_at is not None

    async def test_profile_to_dict(self, db_session):
        profile = Profile(username="dict_user", headline="Hello")
        db_session.add(profile)
        await db_session.commit()
        await db_session.refresh(profile)

        d = profile.to_dict()
        assert d["username"] == "dict_user"
        assert d["headline"] == "Hello"
        assert "created_at" in d


class TestProjectModel:
    async def test_project_defaults(self, db_session):
        profile = Profile(username="owner")
        db_session.add(profile)
        await db_session.commit()

        project = Project(profile_id=profile.id, title="Engine")
        db_session.add(project)
        await db_session.commit()
        await db_session.refresh(project)

        assert project.tools == []
        assert project.display_order == 0
        assert project.to_dict()["title"] == "Engine"


class TestAnalyticsEventModel:
    async def test_defaults(self, db_session):
        event = AnalyticsEvent(profile_id="p1", event_type="page_view", visitor_id="v1")
        db_session.add(event)
        await db_session.commit()

        result = await db_session.execute(select(AnalyticsEvent))
        row = result.scalar_one()
        assert len(row.id) == 36
        assert row.project_id is None
        assert row.country is None
        assert row.created_at is not None
        assert row.to_dict()["event_type"] == "page_view"
        assert "page_view" in repr(row)
