"""Async Data Access Layer for the users table."""

from __future__ import annotations

import sqlite3
import time
import uuid
from typing import Optional, Sequence

from models.errors import InvalidInputError
from models.user_record import UserRecord
from utils.database_init import AsyncDatabaseInitializer


class UserDAL:
    """Create and look up users. Emails are stored lower-cased."""

    _COLUMN_LIST = "id, email, password_hash, first_name, last_name, created_at"

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_user(
        self,
        email: str,
        password_hash: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> UserRecord:
        """Insert a user and return it.

        Raises:
            InvalidInputError: If the email is already registered.
        """
        record = UserRecord(
            id=uuid.uuid4().hex,
            email=email.strip().lower(),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            created_at=int(time.time()),
        )
        async with self._db.connection() as conn:
            try:
                await conn.execute(
                    f"INSERT INTO users ({self._COLUMN_LIST}) VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        record.id,
                        record.email,
                        record.password_hash,
                        record.first_name,
                        record.last_name,
                        record.created_at,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise InvalidInputError("An account with this email already exists.") from exc
            await conn.commit()
        return record

    async def get_by_id(self, user_id: str) -> Optional[UserRecord]:
        async with self._db.connection() as conn:
            cur = await conn.execute(f"SELECT {self._COLUMN_LIST} FROM users WHERE id = ?", (user_id,))
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def get_by_email(self, email: str) -> Optional[UserRecord]:
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM users WHERE email = ?", (email.strip().lower(),)
            )
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> UserRecord:
        return UserRecord(
            id=row[0],
            email=row[1],
            password_hash=row[2],
            first_name=row[3],
            last_name=row[4],
            created_at=row[5],
        )
