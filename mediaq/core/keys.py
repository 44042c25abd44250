"""Object key layout for originals and thumbnails."""

import posixpath
import uuid
from datetime import datetime, timezone
from typing import Optional

ORIGINALS_PREFIX = "media/originals"
THUMBNAILS_PREFIX = "media/thumbnails"


def _shard(now: Optional[datetime]) -> str:
    now = now or datetime.now(timezone.utc)
    return f"{now.year}/{now.month}"


def original_key(filename: str, now: Optional[datetime] = None) -> str:
    """media/originals/{year}/{month}/{uuid4}{ext}"""
    extension = posixpath.splitext(filename or "")[1].lower()
    return f"{ORIGINALS_PREFIX}/{_shard(now)}/{uuid.uuid4()}{extension}"


def thumbnail_key(
    media_id: int,
    width: int,
    height: int,
    source_key: str,
    now: Optional[datetime] = None,
) -> str:
    """media/thumbnails/{year}/{month}/{media_id}-{w}x{h}{source ext}"""
    extension = posixpath.splitext(source_key)[1]
    return f"{THUMBNAILS_PREFIX}/{_shard(now)}/{media_id}-{width}x{height}{extension}"
