"""Partitioned cache for resolved reference previews."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import CachedReferenceRecord
from ..models import ResolvedPreview

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CachedEntry:
    """A cache hit. ``preview`` is ``None`` when the miss itself was cached."""

    preview: ResolvedPreview | None
    expires_at: datetime


class ReferenceCache:
    """Store previews under ``(prefix, key)`` with bulk invalidation per prefix."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        ttl_seconds: int,
    ) -> None:
        self._session_factory = session_factory
        self._ttl = timedelta(seconds=ttl_seconds)

    async def get(self, prefix: str, key: str) -> CachedEntry | None:
        now = datetime.utcnow()
        async with self._session_factory() as session:
            record = await session.scalar(
                select(CachedReferenceRecord).where(
                    CachedReferenceRecord.prefix == prefix,
                    CachedReferenceRecord.cache_key == key,
                )
            )
        if record is None or record.expires_at <= now:
            return None
        preview = (
            ResolvedPreview.model_validate(record.payload)
            if record.payload is not None
            else None
        )
        return CachedEntry(preview=preview, expires_at=record.expires_at)

    async def set(
        self, prefix: str, key: str, preview: ResolvedPreview | None
    ) -> None:
        """Upsert an entry. Concurrent writers of the same key end with one row."""

        values = {
            "payload": preview.model_dump(mode="json") if preview is not None else None,
            "expires_at": datetime.utcnow() + self._ttl,
        }
        refresh = (
            update(CachedReferenceRecord)
            .where(
                CachedReferenceRecord.prefix == prefix,
                CachedReferenceRecord.cache_key == key,
            )
            .values(**values)
        )
        async with self._session_factory() as session:
            result = await session.execute(refresh)
            if result.rowcount:
                await session.commit()
                return
            session.add(CachedReferenceRecord(prefix=prefix, cache_key=key, **values))
            try:
                await session.commit()
            except IntegrityError:
                # Another writer inserted the row first; overwrite it instead.
                await session.rollback()
                await session.execute(refresh)
                await session.commit()

    async def invalidate(self, prefix: str) -> int:
        """Drop every entry of a partition and return how many were removed."""

        async with self._session_factory() as session:
            result = await session.execute(
                delete(CachedReferenceRecord).where(
                    CachedReferenceRecord.prefix == prefix
                )
            )
            await session.commit()
        removed = result.rowcount or 0
        logger.info("Invalidated %s cached references for prefix %r", removed, prefix)
        return removed

    async def clear(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(delete(CachedReferenceRecord))
            await session.commit()
        removed = result.rowcount or 0
        logger.info("Cleared %s cached references", removed)
        return removed
