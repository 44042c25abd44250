"""
PostgreSQL-backed metadata store for media records.

Status changes are conditional updates keyed on the expected current
status, so a row can only move PENDING -> PROCESSING -> READY | FAILED.
"""

import json
import logging
from typing import Any, List, Optional, Tuple

import asyncpg

from ..core.models import (
    MediaFilter,
    MediaMetadata,
    MediaRecord,
    MediaSort,
    MediaStatus,
    ThumbnailDescriptor,
)

logger = logging.getLogger(__name__)

MEDIA_TABLE = "mediaq_media"

SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS {MEDIA_TABLE} (
    id BIGSERIAL PRIMARY KEY,
    uploader_id BIGINT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    mime_type TEXT NOT NULL,
    size BIGINT NOT NULL,
    width INTEGER,
    height INTEGER,
    duration INTEGER,
    original_key TEXT NOT NULL,
    thumbnails JSONB NOT NULL DEFAULT '[]'::jsonb,
    status TEXT NOT NULL DEFAULT 'PENDING'
        CHECK (status IN ('PENDING', 'PROCESSING', 'READY', 'FAILED')),
    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
    processed_at TIMESTAMP WITH TIME ZONE
);

CREATE INDEX IF NOT EXISTS idx_{MEDIA_TABLE}_status ON {MEDIA_TABLE}(status);
CREATE INDEX IF NOT EXISTS idx_{MEDIA_TABLE}_created_at ON {MEDIA_TABLE}(created_at);
CREATE INDEX IF NOT EXISTS idx_{MEDIA_TABLE}_uploader ON {MEDIA_TABLE}(uploader_id);
"""

_COLUMNS = """
    id, uploader_id, name, description, mime_type, size, width, height,
    duration, original_key, thumbnails, status, created_at, updated_at,
    processed_at
"""


def _affected(result: Optional[str]) -> int:
    return int(result.split()[-1]) if result else 0


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _filter_conditions(filters: MediaFilter) -> Tuple[str, List[Any]]:
    """WHERE clause and its positional parameters for a listing."""
    conditions: List[str] = []
    params: List[Any] = []

    if filters.mime_type:
        params.append(filters.mime_type)
        conditions.append(f"mime_type = ${len(params)}")
    if filters.uploaded_after:
        params.append(filters.uploaded_after)
        conditions.append(f"created_at >= ${len(params)}")
    if filters.uploaded_before:
        params.append(filters.uploaded_before)
        conditions.append(f"created_at <= ${len(params)}")
    if filters.search:
        params.append(f"%{_escape_like(filters.search)}%")
        conditions.append(f"(name ILIKE ${len(params)} OR description ILIKE ${len(params)})")

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return where, params


def _row_to_record(row) -> MediaRecord:
    thumbnails = row["thumbnails"]
    if isinstance(thumbnails, str):
        thumbnails = json.loads(thumbnails)
    return MediaRecord(
        id=row["id"],
        uploader_id=row["uploader_id"],
        name=row["name"],
        description=row["description"],
        mime_type=row["mime_type"],
        size=row["size"],
        width=row["width"],
        height=row["height"],
        duration=row["duration"],
        original_key=row["original_key"],
        thumbnails=[ThumbnailDescriptor.model_validate(t) for t in thumbnails or []],
        status=MediaStatus(row["status"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        processed_at=row["processed_at"],
    )


class MediaStore:
    """Media records stored in PostgreSQL through an asyncpg pool."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def setup(self) -> None:
        """Create the media table and indexes if missing."""
        async with self._pool.acquire() as conn:
            await conn.execute(SCHEMA_SQL)
        logger.info(f"Ensured table {MEDIA_TABLE}")

    async def find_by_id(self, media_id: int) -> Optional[MediaRecord]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_COLUMNS} FROM {MEDIA_TABLE} WHERE id = $1", media_id
            )
        return _row_to_record(row) if row else None

    async def list(self, filters: MediaFilter) -> List[MediaRecord]:
        """One page of records matching filters, ordered by upload time."""
        where, params = _filter_conditions(filters)
        direction = "ASC" if filters.sort == MediaSort.CREATED_AT_ASC else "DESC"
        params.extend([filters.size, filters.offset])
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_COLUMNS} FROM {MEDIA_TABLE}
                {where}
                ORDER BY created_at {direction}, id {direction}
                LIMIT ${len(params) - 1} OFFSET ${len(params)}
                """,
                *params,
            )
        return [_row_to_record(row) for row in rows]

    async def create(self, metadata: MediaMetadata, original_key: str) -> MediaRecord:
        """Insert a new record at PENDING."""
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO {MEDIA_TABLE} (
                    uploader_id, name, description, mime_type, size,
                    width, height, duration, original_key, status
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                RETURNING {_COLUMNS}
                """,
                metadata.uploader_id,
                metadata.name,
                metadata.description,
                metadata.mime_type,
                metadata.size,
                metadata.width,
                metadata.height,
                metadata.duration,
                original_key,
                MediaStatus.PENDING.value,
            )
        return _row_to_record(row)

    async def claim_for_processing(self, media_id: int) -> bool:
        """PENDING -> PROCESSING; False when another consumer got there first."""
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                f"""
                UPDATE {MEDIA_TABLE}
                SET status = $2, updated_at = NOW()
                WHERE id = $1 AND status = $3
                """,
                media_id,
                MediaStatus.PROCESSING.value,
                MediaStatus.PENDING.value,
            )
        return _affected(result) == 1

    async def mark_ready(self, media_id: int, thumbnails: List[ThumbnailDescriptor]) -> bool:
        """PROCESSING -> READY with the complete thumbnail set in one statement."""
        payload = json.dumps([t.model_dump(by_alias=True) for t in thumbnails])
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                f"""
                UPDATE {MEDIA_TABLE}
                SET status = $2, thumbnails = $3::jsonb,
                    processed_at = NOW(), updated_at = NOW()
                WHERE id = $1 AND status = $4
                """,
                media_id,
                MediaStatus.READY.value,
                payload,
                MediaStatus.PROCESSING.value,
            )
        return _affected(result) == 1

    async def mark_failed(self, media_id: int) -> bool:
        """PROCESSING -> FAILED; thumbnails are left untouched (empty)."""
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                f"""
                UPDATE {MEDIA_TABLE}
                SET status = $2, updated_at = NOW()
                WHERE id = $1 AND status = $3
                """,
                media_id,
                MediaStatus.FAILED.value,
                MediaStatus.PROCESSING.value,
            )
        return _affected(result) == 1
