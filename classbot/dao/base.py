"""Generic base DAO: CRUD (ORM) + cursor pagination (Core)."""

import base64
import hashlib
import hmac
import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select, tuple_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from classbot.core.database import Base

ModelT = TypeVar("ModelT", bound=Base)

PAGE_SIZE_MIN = 1
PAGE_SIZE_MAX = 100
PAGE_SIZE_DEFAULT = 20

# HMAC secret for cursor signing.
# In production set CLASSBOT_CURSOR_SECRET env var.
_CURSOR_SECRET: bytes = os.environ.get(
    "CLASSBOT_CURSOR_SECRET", "changeme-cursor-secret"
).encode()


class InvalidCursorError(ValueError):
    """Raised when a cursor string cannot be decoded or has invalid signature."""


class DuplicateKeyError(ValueError):
    """Raised when an insert collides with an existing unique key.

    ``key`` names the unique column and ``value`` the colliding value, so
    callers can tell "already recorded" apart from other database failures.
    """

    def __init__(self, table: str, key: str, value: Any) -> None:
        self.table = table
        self.key = key
        self.value = value
        super().__init__(f"{table}.{key}={value!r} already exists")


@dataclass
class Cursor:
    """Decoded cursor: (timestamp, id)."""

    timestamp: datetime
    id: int


@dataclass
class Page(Generic[ModelT]):
    """Paginated result set."""

    data: list[ModelT]
    next_cursor: str | None
    has_more: bool
    total: int | None = None


def _sign(payload: str) -> str:
    """Return a truncated HMAC-SHA256 hex digest for *payload*."""
    return hmac.new(_CURSOR_SECRET, payload.encode(), hashlib.sha256).hexdigest()[:16]


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def encode_cursor(timestamp: datetime, row_id: int) -> str:
    """Encode (timestamp, id) into a signed, URL-safe base64 string."""
    payload = json.dumps({"t": _as_utc(timestamp).isoformat(), "i": row_id})
    sig = _sign(payload)
    return base64.urlsafe_b64encode(f"{payload}|{sig}".encode()).decode()


def decode_cursor(cursor: str) -> Cursor:
    """Decode a signed base64 cursor string back to (timestamp, id).

    Raises ``InvalidCursorError`` for malformed or tampered cursors.
    """
    try:
        raw = base64.urlsafe_b64decode(cursor.encode()).decode()
        payload, sig = raw.rsplit("|", 1)
        expected = _sign(payload)
        if not hmac.compare_digest(sig, expected):
            raise InvalidCursorError(f"cursor signature mismatch: {cursor!r}")
        data = json.loads(payload)
        return Cursor(timestamp=datetime.fromisoformat(data["t"]), id=int(data["i"]))
    except InvalidCursorError:
        raise
    except (json.JSONDecodeError, KeyError, TypeError, ValueError, UnicodeDecodeError) as exc:
        raise InvalidCursorError(f"invalid cursor: {cursor!r}") from exc


def _clamp_page_size(page_size: int) -> int:
    return max(PAGE_SIZE_MIN, min(page_size, PAGE_SIZE_MAX))


class BaseDAO(Generic[ModelT]):
    """Base data-access object. Subclasses set ``model`` class attribute."""

    model: type[ModelT]

    # ── ORM methods ──────────────────────────────────────────────────────

    @staticmethod
    def _require_pk(pk: int) -> None:
        """Raise ValueError if *pk* is None."""
        if pk is None:
            raise ValueError("pk must not be None")

    async def get_by_id(self, session: AsyncSession, pk: int) -> ModelT | None:
        self._require_pk(pk)
        return await session.get(self.model, pk)

    async def create(self, session: AsyncSession, **values: Any) -> ModelT:
        obj = self.model(**values)
        session.add(obj)
        await session.flush()
        await session.refresh(obj)
        return obj

    async def create_unique(
        self, session: AsyncSession, unique_key: str, **values: Any
    ) -> ModelT:
        """Insert a row inside a SAVEPOINT, translating unique collisions.

        If the insert fails and a row with the same ``unique_key`` value is
        already present, raises :class:`DuplicateKeyError`; any other
        integrity failure is re-raised unchanged.  The enclosing transaction
        stays usable either way.
        """
        try:
            async with session.begin_nested():
                obj = self.model(**values)
                session.add(obj)
                await session.flush()
        except IntegrityError:
            value = values.get(unique_key)
            if await self.get_by_field(session, **{unique_key: value}) is not None:
                raise DuplicateKeyError(self.model.__tablename__, unique_key, value) from None
            raise
        await session.refresh(obj)
        return obj

    async def get_by_field(self, session: AsyncSession, **filters: Any) -> ModelT | None:
        """Return the first row matching all *filters*, or None.

        Usage::

            alert = await dao.get_by_field(session, sha="deadbeef")

        Raises ``ValueError`` if called without any filters.
        """
        if not filters:
            raise ValueError("get_by_field() requires at least one filter")
        stmt = select(self.model)
        for key, val in filters.items():
            stmt = stmt.where(getattr(self.model, key) == val)
        result = await session.execute(stmt)
        return result.scalars().first()

    # ── Core methods ─────────────────────────────────────────────────────

    async def paginate(
        self,
        session: AsyncSession,
        query: Select,
        cursor: str | None = None,
        page_size: int = PAGE_SIZE_DEFAULT,
    ) -> Page[ModelT]:
        """Apply cursor-based pagination to *query*.

        The query must select from a table that has ``timestamp`` and ``id``
        columns. Ordering (timestamp DESC, id DESC) and LIMIT are appended
        by this method; callers should NOT add their own ORDER BY / LIMIT.

        Raises ``InvalidCursorError`` if *cursor* is malformed.
        """
        page_size = _clamp_page_size(page_size)
        table = self.model.__table__

        if cursor:
            cur = decode_cursor(cursor)
            query = query.where(tuple_(table.c.timestamp, table.c.id) < (cur.timestamp, cur.id))

        query = query.order_by(
            table.c.timestamp.desc(),
            table.c.id.desc(),
        ).limit(page_size + 1)

        result = await session.execute(query)
        rows = list(result.scalars().unique().all())

        has_more = len(rows) > page_size
        data = rows[:page_size]

        next_cursor = None
        if has_more and data:
            last = data[-1]
            next_cursor = encode_cursor(last.timestamp, last.id)

        return Page(data=data, next_cursor=next_cursor, has_more=has_more)

    async def count(self, session: AsyncSession, query: Select | None = None) -> int:
        """Return the row count for *query*, or total rows if query is None."""
        if query is None:
            query = select(func.count()).select_from(self.model.__table__)
        else:
            query = select(func.count()).select_from(query.subquery())

        result = await session.execute(query)
        return result.scalar_one()
