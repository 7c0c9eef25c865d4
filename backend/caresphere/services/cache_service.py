"""
Bible Cache Service

Cache-aside layer over the bible_cache table. Provider responses are
stored as JSON with an expiry; fresh rows are served without calling
the provider, stale or missing rows trigger a fetch and an upsert.

Concurrent misses on the same key both fetch; the upsert is
last-writer-wins so duplicate fetches only waste work.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic import TypeAdapter
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from caresphere.core.database import upsert_insert
from caresphere.core.errors import ValidationError
from caresphere.core.tasks import run_in_background
from caresphere.models.cache_entry import BibleCacheEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROVIDER = "youversion"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BibleCacheService:
    """Cache-aside orchestrator backed by PostgreSQL"""

    def __init__(
        self,
        db: AsyncSession,
        provider: str = PROVIDER,
        clock: Callable[[], datetime] = utcnow,
        session_factory: Optional[async_sessionmaker] = None,
    ):
        self.db = db
        self.provider = provider
        self.clock = clock
        # Hit counts commit on their own sessions, outside the caller's transaction
        self.session_factory = session_factory or async_sessionmaker(
            db.bind, class_=AsyncSession, expire_on_commit=False
        )

    async def cached_fetch(
        self,
        cache_key: str,
        resource_type: str,
        ttl_seconds: int,
        fetcher: Callable[[], Awaitable[T]],
        result_type: Optional[Any] = None,
    ) -> T:
        """
        Return the cached value for `cache_key` or fetch, store and return it.

        `resource_type` labels the row for monitoring only. When
        `result_type` is given, values are dumped to JSON through a pydantic
        TypeAdapter on store and validated back into that type on hit.
        Errors raised by `fetcher` propagate unchanged and leave the table
        untouched.
        """
        if ttl_seconds <= 0:
            raise ValidationError(f"ttl_seconds must be positive, got {ttl_seconds}")

        adapter = TypeAdapter(result_type) if result_type is not None else None
        now = self.clock()

        result = await self.db.execute(
            select(BibleCacheEntry.payload).where(
                BibleCacheEntry.cache_key == cache_key,
                BibleCacheEntry.expires_at > now,
            )
        )
        cached = result.first()
        if cached is not None:
            payload = cached[0]
            logger.debug(f"Cache hit for {cache_key}")
            run_in_background(self._record_hit(cache_key), f"hit counter for {cache_key}")
            return adapter.validate_python(payload) if adapter else payload

        logger.debug(f"Cache miss for {cache_key} ({resource_type}), fetching from {self.provider}")
        value = await fetcher()

        stored = adapter.dump_python(value, mode="json") if adapter else value
        await self._store(cache_key, resource_type, stored, now + timedelta(seconds=ttl_seconds), now)
        return value

    async def get_entry(self, cache_key: str) -> Optional[BibleCacheEntry]:
        """Load the raw cache row regardless of expiry"""
        result = await self.db.execute(
            select(BibleCacheEntry)
            .where(BibleCacheEntry.cache_key == cache_key)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _store(
        self,
        cache_key: str,
        resource_type: str,
        payload: Any,
        expires_at: datetime,
        now: datetime,
    ) -> None:
        insert_stmt = upsert_insert(self.db, BibleCacheEntry).values(
            cache_key=cache_key,
            provider=self.provider,
            resource_type=resource_type,
            payload=payload,
            expires_at=expires_at,
            hit_count=0,
        )
        upsert_stmt = insert_stmt.on_conflict_do_update(
            index_elements=["cache_key"],
            set_={
                "provider": insert_stmt.excluded.provider,
                "resource_type": insert_stmt.excluded.resource_type,
                "payload": insert_stmt.excluded.payload,
                "expires_at": insert_stmt.excluded.expires_at,
                "hit_count": 0,
                "updated_at": now,
            },
        )
        try:
            await self.db.execute(upsert_stmt)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def _record_hit(self, cache_key: str) -> None:
        async with self.session_factory() as session:
            await session.execute(
                update(BibleCacheEntry)
                .where(BibleCacheEntry.cache_key == cache_key)
                .values(hit_count=BibleCacheEntry.hit_count + 1)
            )
            await session.commit()
