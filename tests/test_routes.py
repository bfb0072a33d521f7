"""
Tests for API routes — health, profiles/projects CRUD, public portfolio, analytics.
"""

from unittest.mock import AsyncMock

from sqlalchemy import select

from portfolio_api.main import app
from portfolio_api.models.analytics_event import AnalyticsEvent
from portfolio_api.routes import get_event_store
from portfolio_api.services.event_store import EventStoreError
from portfolio_api.services.visitor import is_valid_visitor_id


async def _create_profile(client, **overrides) -> dict:
    body = {"username": "ada_l", "full_name": "Ada Lovelace"}
    body.update(overrides)
    resp = await client.post("/api/v1/profiles", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _create_project(client, profile_id: str, **overrides) -> dict:
    body = {"title": "Difference Engine", "tools": ["brass", "gears"]}
    body.update(overrides)
    resp = await client.post(f"/api/v1/profiles/{profile_id}/projects", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestHealthEndpoint:
    async def test_health(self, client):
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert "version" in data
        assert "timestamp" in data


class TestRootEndpoint:
    async def test_root(self, client):
        resp = await client.get("/")
        assert resp.status_code == 200
        assert "Folio" in resp.json()["service"]


class TestProfilesAPI:
    async def test_create_and_get(self, client, sample_profile):
        created = await _create_profile(client, **sample_profile)
        assert created["username"] == "ada_l"

        resp = await client.get(f"/api/v1/profiles/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["full_name"] == "Ada Lovelace"

    async def test_duplicate_username(self, client):
        await _create_profile(client)
        resp = await client.post("/api/v1/profiles", json={"username": "ada_l"})
        assert resp.status_code == 409

    async def test_invalid_username(self, client):
        resp = await client.post("/api/v1/profiles", json={"username": "no spaces!"})
        assert resp.status_code == 422

    async def test_patch_profile(self, client):
        created = await _create_profile(client)
        resp = await client.patch(
            f"/api/v1/profiles/{created['id']}",
            json={"headline": "Poetical scientist", "avatar_url": ""},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["headline"] == "Poetical scientist"
        assert data["avatar_url"] is None

    async def test_profile_not_found(self, client):
        resp = await client.get("/api/v1/profiles/nope")
        assert resp.status_code == 404


class TestProjectsAPI:
    async def test_create_list_patch_delete(self, client):
        profile = await _create_profile(client)
        second = await _create_project(client, profile["id"], title="Notes", display_order=2)
        first = await _create_project(client, profile["id"], title="Engine", display_order=1)

        resp = await client.get(f"/api/v1/profiles/{profile['id']}/projects")
        assert resp.status_code == 200
        assert [p["title"] for p in resp.json()["projects"]] == ["Engine", "Notes"]

        resp = await client.patch(f"/api/v1/projects/{first['id']}", json={"title": "Analytical Engine"})
        assert resp.status_code == 200
        assert resp.json()["title"] == "Analytical Engine"

        resp = await client.delete(f"/api/v1/projects/{second['id']}")
        assert resp.status_code == 204
        resp = await client.get(f"/api/v1/profiles/{profile['id']}/projects")
        assert resp.json()["total"] == 1

    async def test_project_validation(self, client):
        profile = await _create_profile(client)
        resp = await client.post(
            f"/api/v1/profiles/{profile['id']}/projects",
            json={"title": "   "},
        )
        assert resp.status_code == 422

        resp = await client.post(
            f"/api/v1/profiles/{profile['id']}/projects",
            json={"title": "Ok", "cover_image_url": "ftp://nope"},
        )
        assert resp.status_code == 422

    async def test_project_for_missing_profile(self, client):
        resp = await client.post("/api/v1/profiles/ghost/projects", json={"title": "X"})
        assert resp.status_code == 404


class TestPublicPortfolio:
    async def test_records_page_view_and_sets_cookie(self, client, db_session):
        profile = await _create_profile(client)
        await _create_project(client, profile["id"], title="Public")
        await _create_project(client, profile["id"], title="Hidden", is_public=False)

        resp = await client.get("/api/v1/portfolio/ada_l")
        assert resp.status_code == 200
        data = resp.json()
        assert data["profile"]["username"] == "ada_l"
        assert [p["title"] for p in data["projects"]] == ["Public"]
        assert is_valid_visitor_id(resp.cookies.get("visitor_id"))

        rows = (await db_session.execute(select(AnalyticsEvent))).scalars().all()
        assert len(rows) == 1
        assert rows[0].event_type == "page_view"
        assert rows[0].profile_id == profile["id"]
        assert rows[0].visitor_id == resp.cookies.get("visitor_id")

    async def test_private_profile_hidden(self, client, db_session):
        await _create_profile(client, is_public=False)
        resp = await client.get("/api/v1/portfolio/ada_l")
        assert resp.status_code == 404
        rows = (await db_session.execute(select(AnalyticsEvent))).scalars().all()
        assert rows == []

    async def test_unknown_username(self, client):
        resp = await client.get("/api/v1/portfolio/nobody")
        assert resp.status_code == 404

    async def test_project_click(self, client, db_session):
        profile = await _create_profile(client)
        project = await _create_project(client, profile["id"])

        resp = await client.post(f"/api/v1/portfolio/ada_l/projects/{project['id']}/click")
        assert resp.status_code == 202

        rows = (await db_session.execute(select(AnalyticsEvent))).scalars().all()
        assert len(rows) == 1
        assert rows[0].event_type == "project_click"
        assert rows[0].project_id == project["id"]

    async def test_page_view_survives_store_failure(self, client):
        await _create_profile(client)
        broken = AsyncMock()
        broken.insert.side_effect = EventStoreError("down")
        app.dependency_overrides[get_event_store] = lambda: broken

        resp = await client.get("/api/v1/portfolio/ada_l")
        assert resp.status_code == 200
        broken.insert.assert_awaited_once()


class TestTrackingAPI:
    async def test_track_page_view(self, client):
        resp = await client.post(
            "/api/v1/analytics/events",
            json={"profileId": "profile-1", "eventType": "page_view"},
        )
        assert resp.status_code == 202
        data = resp.json()
        assert data["recorded"] is True
        assert is_valid_visitor_id(data["visitorId"])
        assert resp.cookies.get("visitor_id") == data["visitorId"]

    async def test_visitor_cookie_reused(self, client, db_session):
        first = await client.post(
            "/api/v1/analytics/events",
            json={"profileId": "profile-1", "eventType": "page_view"},
        )
        visitor_id = first.json()["visitorId"]

        client.cookies.clear()
        client.cookies.set("visitor_id", visitor_id)
        second = await client.post(
            "/api/v1/analytics/events",
            json={"profileId": "profile-1", "eventType": "project_click", "projectId": "p1"},
        )
        assert second.json()["visitorId"] == visitor_id

        rows = (await db_session.execute(select(AnalyticsEvent))).scalars().all()
        assert {r.visitor_id for r in rows} == {visitor_id}

    async def test_unknown_event_type(self, client):
        resp = await client.post(
            "/api/v1/analytics/events",
            json={"profileId": "profile-1", "eventType": "scroll"},
        )
        assert resp.status_code == 422

    async def test_click_without_project(self, client):
        resp = await client.post(
            "/api/v1/analytics/events",
            json={"profileId": "profile-1", "eventType": "project_click"},
        )
        assert resp.status_code == 422

    async def test_store_failure_not_surfaced(self, client):
        broken = AsyncMock()
        broken.insert.side_effect = EventStoreError("down")
        app.dependency_overrides[get_event_store] = lambda: broken

        resp = await client.post(
            "/api/v1/analytics/events",
            json={"profileId": "profile-1", "eventType": "page_view"},
        )
        assert resp.status_code == 202
        assert resp.json()["recorded"] is False


class TestSummaryAPI:
    async def test_summary_with_titles(self, client):
        profile = await _create_profile(client)
        engine = await _create_project(client, profile["id"], title="Engine")
        notes = await _create_project(client, profile["id"], title="Notes")

        for body in (
            {"eventType": "page_view"},
            {"eventType": "page_view"},
            {"eventType": "project_click", "projectId": engine["id"]},
            {"eventType": "project_click", "projectId": engine["id"]},
            {"eventType": "project_click", "projectId": notes["id"]},
            {"eventType": "project_click", "projectId": "deleted-project"},
        ):
            client.cookies.clear()
            await client.post(
                "/api/v1/analytics/events",
                json={"profileId": profile["id"], **body},
            )

        resp = await client.get(f"/api/v1/analytics/{profile['id']}/summary")
        assert resp.status_code == 200
        data = resp.json()
        # cookie jar cleared before each call, so every event is a new browser
        assert data["totalViews"] == 2
        assert data["uniqueVisitors"] == 6
        assert data["projectClicks"] == 4
        assert sum(d["views"] for d in data["viewsByDate"]) == 2
        top = data["topProjects"]
        assert top[0] == {"id": engine["id"], "title": "Engine", "clicks": 2}
        titles = {p["id"]: p["title"] for p in top}
        assert titles[notes["id"]] == "Notes"
        assert titles["deleted-project"] == ""

    async def test_summary_empty_profile(self, client):
        resp = await client.get("/api/v1/analytics/unknown/summary")
        assert resp.status_code == 200
        assert resp.json() == {
            "totalViews": 0,
            "uniqueVisitors": 0,
            "projectClicks": 0,
            "viewsByDate": [],
            "topProjects": [],
        }

    async def test_summary_store_failure(self, client):
        broken = AsyncMock()
        broken.query.side_effect = EventStoreError("down")
        app.dependency_overrides[get_event_store] = lambda: broken

        resp = await client.get("/api/v1/analytics/profile-1/summary")
        assert resp.status_code == 503

    async def test_list_events(self, client):
        for _ in range(2):
            await client.post(
                "/api/v1/analytics/events",
                json={"profileId": "profile-1", "eventType": "page_view"},
            )
        resp = await client.get("/api/v1/analytics/profile-1/events")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 2
        assert all(e["event_type"] == "page_view" for e in data["events"])
