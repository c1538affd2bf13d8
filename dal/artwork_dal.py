"""Async Data Access Layer for the artworks table.

Provides ArtworkDAL with the record-store operations used by the analysis
pipeline (placeholder creation, result/failure application) and the plain
owner-scoped CRUD used by the HTTP layer. Every write is a single UPDATE
statement committed once, so readers never observe a partially applied
analysis.
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, List, Optional, Sequence

from models.analysis_result import AnalysisResult, AnalysisStatus, to_minor_units
from models.artwork_record import (
    EDITABLE_FIELDS,
    PLACEHOLDER_DESCRIPTION,
    PLACEHOLDER_TITLE,
    REANALYZING_TITLE,
    ArtworkRecord,
)
from models.errors import InvalidInputError
from utils.database_init import AsyncDatabaseInitializer


class ArtworkDAL:
    """Data access layer for artwork records.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).
    """

    _COLUMNS = (
        "id",
        "owner_id",
        "title",
        "artist",
        "medium",
        "dimensions",
        "year",
        "condition",
        "description",
        "tags",
        "suggested_price",
        "image_path",
        "additional_images",
        "thumbnail",
        "analysis_status",
        "analysis_complete",
        "analysis_error",
        "analysis_data",
        "visibility",
        "marketplace_listed",
        "listing_platform",
        "listing_status",
        "listing_price",
        "created_at",
        "updated_at",
    )
    _COLUMN_LIST = ", ".join(_COLUMNS)
    _SEARCH_COLUMNS = ("title", "artist", "medium", "description", "tags")

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_placeholder(
        self,
        owner_id: str,
        image_path: str,
        thumbnail: bytes,
        additional_images: Optional[List[str]] = None,
    ) -> ArtworkRecord:
        """Insert a pending artwork row and return it once committed.

        Args:
            owner_id: Id of the uploading user.
            image_path: Stored location of the normalized primary image.
            thumbnail: JPEG thumbnail bytes.
            additional_images: Stored locations of extra images.

        Returns:
            The persisted `ArtworkRecord` with its new id.
        """
        now = int(time.time())
        extras = list(additional_images or [])
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "INSERT INTO artworks (owner_id, title, description, tags, suggested_price, image_path, "
                "additional_images, thumbnail, analysis_status, analysis_complete, created_at, updated_at) "
                "VALUES (?, ?, ?, '[]', 0, ?, ?, ?, ?, 0, ?, ?)",
                (
                    owner_id,
                    PLACEHOLDER_TITLE,
                    PLACEHOLDER_DESCRIPTION,
                    image_path,
                    json.dumps(extras),
                    thumbnail,
                    AnalysisStatus.PENDING.value,
                    now,
                    now,
                ),
            )
            await conn.commit()
            artwork_id = cur.lastrowid

        return ArtworkRecord(
            id=artwork_id,
            owner_id=owner_id,
            title=PLACEHOLDER_TITLE,
            description=PLACEHOLDER_DESCRIPTION,
            image_path=image_path,
            thumbnail=thumbnail,
            additional_images=extras,
            suggested_price=0,
            analysis_status=AnalysisStatus.PENDING.value,
            analysis_complete=False,
            created_at=now,
            updated_at=now,
        )

    async def mark_analyzing(self, artwork_id: int) -> bool:
        """Move a record into the analyzing state."""
        return await self._update(
            artwork_id, None, {"analysis_status": AnalysisStatus.ANALYZING.value}
        )

    async def apply_analysis_result(
        self, artwork_id: int, result: AnalysisResult, owner_id: Optional[str] = None
    ) -> bool:
        """Write every analysed field and mark the record complete.

        The model reports prices in whole currency units; they are stored in
        cents via `to_minor_units`.

        Returns:
            True if a row was updated.
        """
        updates = {
            "title": result.title,
            "artist": result.artist,
            "medium": result.medium,
            "year": result.estimated_year,
            "condition": result.condition,
            "description": result.description,
            "tags": json.dumps(result.tags()),
            "suggested_price": to_minor_units(result.suggested_price),
            "analysis_status": AnalysisStatus.COMPLETE.value,
            "analysis_complete": 1,
            "analysis_error": None,
            "analysis_data": json.dumps(result.to_payload()),
        }
        return await self._update(artwork_id, owner_id, updates)

    async def apply_analysis_failure(
        self,
        artwork_id: int,
        title: str,
        reason: str,
        error_kind: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> bool:
        """Replace the visible fields with a failure marker."""
        updates = {
            "title": title,
            "description": reason,
            "analysis_status": AnalysisStatus.FAILED.value,
            "analysis_complete": 0,
            "analysis_error": error_kind,
        }
        return await self._update(artwork_id, owner_id, updates)

    async def reset_for_reanalysis(self, artwork_id: int, owner_id: str) -> bool:
        """Reset an owned record to the re-analyzing placeholder."""
        updates = {
            "title": REANALYZING_TITLE,
            "description": PLACEHOLDER_DESCRIPTION,
            "analysis_status": AnalysisStatus.PENDING.value,
            "analysis_complete": 0,
            "analysis_error": None,
        }
        return await self._update(artwork_id, owner_id, updates)

    async def update_fields(self, artwork_id: int, owner_id: str, fields: Dict[str, Any]) -> bool:
        """Apply a direct user edit to the editable columns of an owned record.

        Raises:
            InvalidInputError: If a field is not editable.
        """
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise InvalidInputError(f"Fields are not editable: {', '.join(sorted(unknown))}")
        updates = dict(fields)
        if "tags" in updates:
            updates["tags"] = json.dumps(list(updates["tags"] or []))
        if "visibility" in updates and updates["visibility"] not in ("public", "private"):
            raise InvalidInputError("Visibility must be 'public' or 'private'.")
        return await self._update(artwork_id, owner_id, updates)

    async def set_description(self, artwork_id: int, owner_id: str, description: str) -> bool:
        return await self._update(artwork_id, owner_id, {"description": description})

    async def set_suggested_price(self, artwork_id: int, owner_id: str, price_cents: int) -> bool:
        return await self._update(artwork_id, owner_id, {"suggested_price": int(price_cents)})

    async def set_listing(self, artwork_id: int, owner_id: str, platform: str, price_cents: int) -> bool:
        """Record an active marketplace listing on an owned artwork."""
        updates = {
            "marketplace_listed": 1,
            "listing_platform": platform,
            "listing_status": "active",
            "listing_price": int(price_cents),
        }
        return await self._update(artwork_id, owner_id, updates)

    async def clear_listing(self, artwork_id: int, owner_id: str) -> bool:
        updates = {"marketplace_listed": 0, "listing_status": "withdrawn"}
        return await self._update(artwork_id, owner_id, updates)

    async def get(self, artwork_id: int, owner_id: Optional[str] = None) -> Optional[ArtworkRecord]:
        """Return the record for `artwork_id`, or None if missing.

        When `owner_id` is given only that user's record is returned.
        """
        sql = f"SELECT {self._COLUMN_LIST} FROM artworks WHERE id = ?"
        params: List[Any] = [artwork_id]
        if owner_id is not None:
            sql += " AND owner_id = ?"
            params.append(owner_id)
        async with self._db.connection() as conn:
            cur = await conn.execute(sql, tuple(params))
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def get_visible(self, artwork_id: int, viewer_id: Optional[str]) -> Optional[ArtworkRecord]:
        """Return the record if it is public or owned by `viewer_id`."""
        record = await self.get(artwork_id)
        if record is None:
            return None
        if record.visibility == "public" or (viewer_id is not None and record.owner_id == viewer_id):
            return record
        return None

    async def list_by_owner(self, owner_id: str, limit: int = 100, offset: int = 0) -> List[ArtworkRecord]:
        return await self._select("WHERE owner_id = ?", (owner_id,), limit, offset)

    async def list_public(self, limit: int = 100, offset: int = 0) -> List[ArtworkRecord]:
        return await self._select("WHERE visibility = 'public'", (), limit, offset)

    async def list_recent(self, viewer_id: Optional[str], limit: int = 6) -> List[ArtworkRecord]:
        """Newest artworks the viewer may see."""
        where, params = self._visibility_clause(viewer_id)
        return await self._select(f"WHERE {where}", params, limit, 0)

    async def list_listings(self, owner_id: str) -> List[ArtworkRecord]:
        return await self._select(
            "WHERE owner_id = ? AND marketplace_listed = 1", (owner_id,), 100, 0
        )

    async def search(self, query: str, viewer_id: Optional[str] = None, limit: int = 100) -> List[ArtworkRecord]:
        """Case-insensitive substring search over the descriptive columns."""
        needle = f"%{query.strip().lower()}%"
        matches = " OR ".join(f"LOWER(COALESCE({col}, '')) LIKE ?" for col in self._SEARCH_COLUMNS)
        where, params = self._visibility_clause(viewer_id)
        return await self._select(
            f"WHERE ({matches}) AND {where}",
            tuple([needle] * len(self._SEARCH_COLUMNS)) + params,
            limit,
            0,
        )

    async def delete(self, artwork_id: int, owner_id: str) -> bool:
        """Delete an owned row. Returns True if a row was deleted."""
        async with self._db.connection() as conn:
            await conn.execute(
                "DELETE FROM artworks WHERE id = ? AND owner_id = ?", (artwork_id, owner_id)
            )
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    async def stats(self, since: int) -> Dict[str, Any]:
        """Aggregate counts and averages for the admin dashboard.

        Args:
            since: Unix timestamp marking the start of "today".
        """
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "SELECT COUNT(*), "
                "SUM(CASE WHEN created_at >= ? THEN 1 ELSE 0 END), "
                "SUM(analysis_complete), "
                "AVG(CASE WHEN suggested_price > 0 THEN suggested_price END), "
                "SUM(marketplace_listed) "
                "FROM artworks",
                (since,),
            )
            totals = await cur.fetchone()
            cur = await conn.execute("SELECT COUNT(*), SUM(CASE WHEN created_at >= ? THEN 1 ELSE 0 END) FROM users", (since,))
            users = await cur.fetchone()
            cur = await conn.execute(
                "SELECT u.id, u.email, COUNT(a.id), COALESCE(SUM(a.suggested_price), 0), MAX(a.created_at) "
                "FROM users u LEFT JOIN artworks a ON a.owner_id = u.id "
                "GROUP BY u.id, u.email ORDER BY COUNT(a.id) DESC, u.email"
            )
            per_user = await cur.fetchall()
            cur = await conn.execute(
                "SELECT COUNT(DISTINCT owner_id) FROM artworks WHERE created_at >= ?", (since,)
            )
            active = await cur.fetchone()

        return {
            "userStats": {
                "totalUsers": int(users[0] or 0),
                "newUsersToday": int(users[1] or 0),
                "activeUsers": int(active[0] or 0),
            },
            "artworkStats": {
                "totalArtworks": int(totals[0] or 0),
                "artworksToday": int(totals[1] or 0),
                "analyzedArtworks": int(totals[2] or 0),
                "avgPrice": int(round(totals[3])) if totals[3] is not None else 0,
                "listedArtworks": int(totals[4] or 0),
            },
            "userAnalytics": [
                {
                    "userId": row[0],
                    "email": row[1],
                    "artworkCount": int(row[2] or 0),
                    "totalValue": int(row[3] or 0),
                    "lastUploadAt": row[4],
                }
                for row in per_user
            ],
        }

    async def _update(self, artwork_id: int, owner_id: Optional[str], updates: Dict[str, Any]) -> bool:
        """Run one UPDATE for `updates`, scoped by owner when given."""
        if not updates:
            return False
        fields = [f"{col} = ?" for col in updates]
        fields.append("updated_at = ?")
        params: List[Any] = list(updates.values())
        params.append(int(time.time()))
        sql = f"UPDATE artworks SET {', '.join(fields)} WHERE id = ?"
        params.append(artwork_id)
        if owner_id is not None:
            sql += " AND owner_id = ?"
            params.append(owner_id)

        async with self._db.connection() as conn:
            await conn.execute(sql, tuple(params))
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    async def _select(self, where: str, params: Sequence[Any], limit: int, offset: int) -> List[ArtworkRecord]:
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM artworks {where} ORDER BY id DESC LIMIT ? OFFSET ?",
                (*params, limit, offset),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    @staticmethod
    def _visibility_clause(viewer_id: Optional[str]) -> tuple:
        if viewer_id is None:
            return "visibility = 'public'", ()
        return "(visibility = 'public' OR owner_id = ?)", (viewer_id,)

    @staticmethod
    def _row_to_record(row: Sequence[Any]) -> ArtworkRecord:
        """Convert a DB row tuple into an ArtworkRecord."""
        return ArtworkRecord(
            id=row[0],
            owner_id=row[1],
            title=row[2],
            artist=row[3],
            medium=row[4],
            dimensions=row[5],
            year=row[6],
            condition=row[7],
            description=row[8],
            tags=json.loads(row[9]) if row[9] else [],
            suggested_price=row[10],
            image_path=row[11],
            additional_images=json.loads(row[12]) if row[12] else [],
            thumbnail=row[13],
            analysis_status=row[14],
            analysis_complete=bool(row[15]),
            analysis_error=row[16],
            analysis_data=json.loads(row[17]) if row[17] else None,
            visibility=row[18],
            marketplace_listed=bool(row[19]),
            listing_platform=row[20],
            listing_status=row[21],
            listing_price=row[22],
            created_at=row[23],
            updated_at=row[24],
        )
