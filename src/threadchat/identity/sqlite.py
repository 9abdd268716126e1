"""SQLite identity provider.

Keeps the current session in a SQLite database so a returning user gets the
same identity on the next launch. Uses aiosqlite for async access.
"""

from pathlib import Path
from uuid import uuid4

import aiosqlite

from ..exceptions import IdentityUnavailableError
from .base import IdentityProvider
from .models import Identity


class SQLiteIdentityProvider(IdentityProvider):
    """SQLite-backed identity provider.

    Stores a single current session row; creating a new anonymous identity
    replaces it.
    """

    def __init__(self, path: str | Path = "./threadchat.db"):
        self._db_path = Path(path)
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Initialize database connection and schema."""
        if self._db_path != Path(":memory:"):
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._connection = await aiosqlite.connect(self._db_path)
            await self._connection.execute("""
                CREATE TABLE IF NOT EXISTS identity_session (
                    slot INTEGER PRIMARY KEY CHECK (slot = 1),
                    uid TEXT NOT NULL,
                    is_anonymous INTEGER NOT NULL,
                    display_name TEXT
                )
            """)
            await self._connection.commit()
        except aiosqlite.Error as e:
            raise IdentityUnavailableError(str(e)) from e

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise IdentityUnavailableError("SQLite identity provider is not connected")
        return self._connection

    async def resolve_session(self) -> Identity | None:
        connection = self._require_connection()
        try:
            async with connection.execute(
                "SELECT uid, is_anonymous, display_name FROM identity_session WHERE slot = 1"
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise IdentityUnavailableError(str(e)) from e

        if row is None:
            return None

        uid, is_anonymous, display_name = row
        return Identity(uid=uid, is_anonymous=bool(is_anonymous), display_name=display_name)

    async def create_anonymous_identity(self) -> Identity:
        connection = self._require_connection()
        identity = Identity(uid=uuid4().hex, is_anonymous=True)
        try:
            await connection.execute("""
                INSERT INTO identity_session (slot, uid, is_anonymous, display_name)
                VALUES (1, ?, 1, NULL)
                ON CONFLICT(slot) DO UPDATE SET
                    uid = excluded.uid,
                    is_anonymous = excluded.is_anonymous,
                    display_name = excluded.display_name
            """, (identity.uid,))
            await connection.commit()
        except aiosqlite.Error as e:
            raise IdentityUnavailableError(str(e)) from e
        return identity

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
