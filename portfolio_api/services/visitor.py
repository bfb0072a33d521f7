"""
Visitor identity — anonymous, browser-scoped visitor tokens.

A visitor id is a random UUID kept in the visitor's own durable storage
(a cookie when called over HTTP). It only approximates "unique visitor"
counts: it is never derived from, or linked to, personal identity.
"""

import logging
import uuid
from typing import Protocol

from fastapi import Request, Response

logger = logging.getLogger(__name__)

VISITOR_ID_KEY = "visitor_id"


class VisitorStorage(Protocol):
    """Tiny key-value capability backing the visitor id."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryVisitorStorage:
    """Dict-backed storage — one instance per simulated browser."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class CookieVisitorStorage:
    """Reads from the request cookie jar and writes back via Set-Cookie."""

    def __init__(self, request: Request, response: Response, max_age: int = 400 * 24 * 3600):
        self.request = request
        self.response = response
        self.max_age = max_age
        self._written: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        if key in self._written:
            return self._written[key]
        return self.request.cookies.get(key)

    def set(self, key: str, value: str) -> None:
        self._written[key] = value
        self.response.set_cookie(
            key,
            value,
            max_age=self.max_age,
            httponly=True,
            samesite="lax",
        )


def is_valid_visitor_id(value: str | None) -> bool:
    """True when *value* parses as a UUID."""
    if not value:
        return False
    try:
        uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        return False
    return True


def get_or_create_visitor_id(storage: VisitorStorage, key: str = VISITOR_ID_KEY) -> str:
    """Return the stored visitor id, minting and persisting one on first use."""
    visitor_id = storage.get(key)
    if visitor_id and visitor_id.strip():
        return visitor_id

    # uuid4 draws from os.urandom
    visitor_id = str(uuid.uuid4())
    storage.set(key, visitor_id)
    logger.debug("New visitor id issued under %r", key)
    return visitor_id
