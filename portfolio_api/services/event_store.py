"""
Folio Portfolio API — Analytics event store backends.

Two interchangeable backends behind one small interface:

* ``SqlEventStore``  — the ``analytics`` table through async SQLAlchemy.
* ``RestEventStore`` — a remote PostgREST-style API (``/rest/v1/analytics``)
  through aiohttp.

Callers receive a store by injection (see ``build_event_store``); nothing
in the recorder or aggregator reaches for a global client.
"""

import asyncio
import json
import logging
from datetime import datetime
from typing import Protocol

import aiohttp
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.exc import SQLAlchemyError

from portfolio_api.models.analytics_event import AnalyticsEvent
from portfolio_api.schemas.analytics import AnalyticsEventRecord

logger = logging.getLogger(__name__)

ANALYTICS_TABLE = "analytics"


class EventStoreError(RuntimeError):
    """The event store could not complete a read or write."""


class EventStore(Protocol):
    async def insert(self, record: dict) -> AnalyticsEventRecord:
        ...

    async def query(self, profile_id: str, since: datetime) -> list[AnalyticsEventRecord]:
        ...


# ── SQL backend ─────────────────────────────────────────────


class SqlEventStore:
    """Event store over the local ``analytics`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def insert(self, record: dict) -> AnalyticsEventRecord:
        row = AnalyticsEvent(
            profile_id=record["profile_id"],
            project_id=record.get("project_id"),
            event_type=record["event_type"],
            visitor_id=record.get("visitor_id"),
            country=record.get("country"),
        )
        try:
            async with self._session_factory() as session:
                session.add(row)
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as e:
            raise EventStoreError(f"insert into {ANALYTICS_TABLE} failed: {e}") from e
        return AnalyticsEventRecord.model_validate(row)

    async def query(self, profile_id: str, since: datetime) -> list[AnalyticsEventRecord]:
        stmt = (
            select(AnalyticsEvent)
            .where(AnalyticsEvent.profile_id == profile_id)
            .where(AnalyticsEvent.created_at >= since)
            .order_by(AnalyticsEvent.created_at.desc())
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise EventStoreError(f"query on {ANALYTICS_TABLE} failed: {e}") from e
        return [AnalyticsEventRecord.model_validate(r) for r in rows]


# ── REST backend ────────────────────────────────────────────


class RestEventStore:
    """Event store over a remote PostgREST-compatible HTTP API."""

    def __init__(self, base_url: str, api_key: str = "", timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    @property
    def table_url(self) -> str:
        return f"{self.base_url}/rest/v1/{ANALYTICS_TABLE}"

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _request(
        self,
        method: str,
        params: dict | None = None,
        payload: dict | None = None,
        prefer: str | None = None,
    ) -> list[dict]:
        """Single HTTP round-trip. Any failure becomes ``EventStoreError``."""
        headers = self._headers()
        if prefer:
            headers["Prefer"] = prefer
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(
                    method, self.table_url, params=params, json=payload, headers=headers
                ) as resp:
                    body = await resp.text()
                    if resp.status >= 300:
                        raise EventStoreError(
                            f"Event store HTTP {resp.status}: {body[:300]}"
                        )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise EventStoreError(f"Event store unreachable: {e}") from e

        if not body:
            return []
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise EventStoreError(f"Event store returned invalid JSON: {body[:300]}") from e
        return data if isinstance(data, list) else [data]

    async def insert(self, record: dict) -> AnalyticsEventRecord:
        rows = await self._request("POST", payload=record, prefer="return=representation")
        if not rows:
            raise EventStoreError("Event store insert returned no row")
        try:
            return AnalyticsEventRecord.model_validate(rows[0])
        except ValidationError as e:
            raise EventStoreError(f"Event store insert returned a malformed row: {e}") from e

    async def query(self, profile_id: str, since: datetime) -> list[AnalyticsEventRecord]:
        params = {
            "select": "*",
            "profile_id": f"eq.{profile_id}",
            "created_at": f"gte.{since.isoformat()}",
            "order": "created_at.desc",
        }
        rows = await self._request("GET", params=params)

        events: list[AnalyticsEventRecord] = []
        for row in rows:
            try:
                events.append(AnalyticsEventRecord.model_validate(row))
            except ValidationError as e:
                # malformed rows are left out of every metric
                row_id = row.get("id") if isinstance(row, dict) else row
                logger.warning("Skipping malformed analytics row %s: %s", row_id, e)
        return events


# ── Factory ─────────────────────────────────────────────────


def build_event_store(settings, session_factory=None) -> EventStore:
    """Pick the configured backend."""
    if settings.rest_store_enabled:
        logger.info("📡 Using remote event store at %s", settings.event_store_url)
        return RestEventStore(
            settings.event_store_url,
            api_key=settings.event_store_api_key,
            timeout=settings.event_store_timeout,
        )
    if session_factory is None:
        from portfolio_api.database import async_session
        session_factory = async_session
    return SqlEventStore(session_factory)
