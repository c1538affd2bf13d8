import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite

LOGGER = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        first_name TEXT,
        last_name TEXT,
        created_at INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS artworks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        owner_id TEXT NOT NULL,
        title TEXT NOT NULL,
        artist TEXT,
        medium TEXT,
        dimensions TEXT,
        year TEXT,
        condition TEXT,
        description TEXT,
        tags TEXT NOT NULL DEFAULT '[]',
        suggested_price INTEGER,
        image_path TEXT NOT NULL,
        additional_images TEXT NOT NULL DEFAULT '[]',
        thumbnail BLOB,
        analysis_status TEXT NOT NULL DEFAULT 'pending',
        analysis_complete INTEGER NOT NULL DEFAULT 0,
        analysis_error TEXT,
        analysis_data TEXT,
        visibility TEXT NOT NULL DEFAULT 'public',
        marketplace_listed INTEGER NOT NULL DEFAULT 0,
        listing_platform TEXT,
        listing_status TEXT,
        listing_price INTEGER,
        created_at INTEGER NOT NULL,
        updated_at INTEGER NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_artworks_owner ON artworks(owner_id)",
    "CREATE INDEX IF NOT EXISTS idx_artworks_visibility ON artworks(visibility)",
)


class AsyncDatabaseInitializer:
    """
    Manage the async SQLite database that backs the artwork catalog.

    - The database file is located at: <DATABASE_DIR>/app.db
    - Stored images live next to it under <DATABASE_DIR>/images
    - `db_dir` overrides DATABASE_DIR; one of them is required. A RuntimeError
      is raised if the location is missing or is not a directory.
    - The first call to `ensure_database()` creates the tables and indexes.
      When DATABASE_RESET_ON_START is truthy (or `reset=True`), any existing
      database file is deleted first.
    - Subsequent calls to `ensure_database()` on the same instance are no-ops,
      so it is safe for `connection()` to call it.
    """

    def __init__(self, db_dir: Optional[Path | str] = None, *, reset: Optional[bool] = None) -> None:
        env_dir = str(db_dir) if db_dir is not None else os.getenv("DATABASE_DIR")

        if env_dir is None or not env_dir.strip():
            raise RuntimeError(
                "DATABASE_DIR environment variable must be set to a writable "
                "directory path where the SQLite database file will be stored."
            )

        resolved = Path(env_dir).expanduser()

        if resolved.exists() and not resolved.is_dir():
            raise RuntimeError(
                f"DATABASE_DIR={env_dir!r} points to a file, not a directory "
                f"({resolved}). Please set DATABASE_DIR to a directory path."
            )

        try:
            resolved.mkdir(parents=True, exist_ok=True)
        except Exception as exc:
            raise RuntimeError(
                f"Failed to create or access database directory at {resolved}"
            ) from exc

        if reset is None:
            reset = os.getenv("DATABASE_RESET_ON_START", "").strip().lower() in ("1", "true", "yes")

        self.db_dir = resolved
        self.db_path = self.db_dir / "app.db"
        self.images_dir = self.db_dir / "images"
        self._reset = reset
        self._initialized = False

    async def ensure_database(self) -> None:
        """
        Ensure the SQLite database at `self.db_path` has the catalog schema.

        Subsequent calls on the same instance are no-ops.
        """
        if self._initialized:
            return

        if self._reset and self.db_path.exists():
            try:
                self.db_path.unlink()
            except Exception as exc:
                raise RuntimeError(
                    f"Failed to delete existing database at {self.db_path}"
                ) from exc
            LOGGER.info("Removed existing database at %s", self.db_path)

        self.images_dir.mkdir(parents=True, exist_ok=True)

        max_attempts = 3
        for attempt in range(1, max_attempts + 1):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    await db.execute("PRAGMA journal_mode=WAL;")
                    for statement in _SCHEMA:
                        await db.execute(statement)
                    await db.commit()
                break
            except FileNotFoundError:
                # On some platforms a transient missing file error may occur; retry a few times.
                if attempt >= max_attempts:
                    raise
                await asyncio.sleep(0.1 * attempt)

        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection`.

        The schema is created on first use via `ensure_database()`.
        """
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        try:
            yield conn
        finally:
            await conn.close()
