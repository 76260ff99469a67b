"""
SQLite user store using aiosqlite.

Stores registered users keyed by phone number.
The table is created automatically on connect.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

import aiosqlite

from otp_auth.errors import IdentityConflict
from otp_auth.models import User

logger = logging.getLogger(__name__)


# ── Schema ────────────────────────────────────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id              TEXT PRIMARY KEY,
    phone           TEXT NOT NULL UNIQUE,
    registered_at   TEXT NOT NULL,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_users_registered_at ON users(registered_at);
"""

# Whitelisted ORDER BY clauses, keyed by the public ?sort= value
_SORT_CLAUSES = {
    "registered_at:desc": "ORDER BY registered_at DESC, id",
    "registered_at:asc": "ORDER BY registered_at ASC, id",
}
DEFAULT_SORT = "registered_at:desc"


# ── Helpers ───────────────────────────────────────────────────────────────


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _escape_like(text: str) -> str:
    """Make % and _ in user input match literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_user(row: aiosqlite.Row) -> User:
    return User(
        id=row["id"],
        phone=row["phone"],
        registered_at=row["registered_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


# ══════════════════════════════════════════════════════════════════════════
#                          USER REPOSITORY
# ══════════════════════════════════════════════════════════════════════════


class UserRepository:
    """Find/create/list users. One connection per application instance."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the database and create tables if they don't exist."""
        path = Path(self._db_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        self._db = await aiosqlite.connect(str(path))
        self._db.row_factory = aiosqlite.Row  # dict-like rows
        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.executescript(_SCHEMA)
        await self._db.commit()
        logger.info("Database initialized at %s", path)

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None
            logger.info("Database connection closed")

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Database not initialized, call connect() first"
        return self._db

    async def ping(self) -> None:
        async with self.db.execute("SELECT 1") as cur:
            await cur.fetchone()

    # ── Lookups ────────────────────────────────────────────────────────

    async def get_by_phone(self, phone: str) -> User | None:
        async with self.db.execute(
            "SELECT * FROM users WHERE phone = ?", (phone,)
        ) as cur:
            row = await cur.fetchone()
        return _row_to_user(row) if row else None

    async def get_by_id(self, user_id: str) -> User | None:
        async with self.db.execute(
            "SELECT * FROM users WHERE id = ?", (user_id,)
        ) as cur:
            row = await cur.fetchone()
        return _row_to_user(row) if row else None

    # ── Writes ─────────────────────────────────────────────────────────

    async def create(self, phone: str) -> User:
        """
        Insert a new user for *phone*.

        Raises IdentityConflict if the phone is already registered
        (e.g. a concurrent first login won the race).
        """
        now = _now_iso()
        user_id = str(uuid4())
        try:
            await self.db.execute(
                """
                INSERT INTO users (id, phone, registered_at, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (user_id, phone, now, now, now),
            )
            await self.db.commit()
        except aiosqlite.IntegrityError as exc:
            await self.db.rollback()
            raise IdentityConflict(f"User with phone {phone} already exists") from exc

        logger.info("Registered new user %s", user_id)
        return User(
            id=user_id,
            phone=phone,
            registered_at=now,
            created_at=now,
            updated_at=now,
        )

    # ── Listing ────────────────────────────────────────────────────────

    async def list_users(
        self,
        *,
        limit: int,
        offset: int,
        query: str | None = None,
        sort: str = DEFAULT_SORT,
    ) -> tuple[list[User], int]:
        """Return one page of users plus the total matching count."""
        where = ""
        params: list = []
        if query:
            where = "WHERE phone LIKE ? ESCAPE '\\'"
            params.append(f"%{_escape_like(query)}%")

        async with self.db.execute(
            f"SELECT COUNT(*) FROM users {where}", params
        ) as cur:
            (total,) = await cur.fetchone()

        order_by = _SORT_CLAUSES.get(sort, _SORT_CLAUSES[DEFAULT_SORT])
        async with self.db.execute(
            f"SELECT * FROM users {where} {order_by} LIMIT ? OFFSET ?",
            [*params, limit, offset],
        ) as cur:
            rows = await cur.fetchall()
        return [_row_to_user(r) for r in rows], total
