"""
Bible Service

Serves Bible content through the PostgreSQL cache-aside layer and
manages each organization's Verse of the Day.

Version ID reference (YouVersion internal IDs):
    1 = KJV, 59 = ESV, 111 = NIV, 116 = NLT, 206 = NKJV
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from caresphere.core.config import settings
from caresphere.core.database import upsert_insert
from caresphere.core.errors import NotFoundError, ValidationError
from caresphere.models.organization import Organization
from caresphere.models.verse_of_day import BibleVerseOfDay
from caresphere.schemas.bible import (
    Book,
    Chapter,
    ProviderVerseOfDay,
    SearchResult,
    SetVerseOfDayRequest,
    Verse,
    VerseOfDay,
    Version,
)
from caresphere.services.cache_service import PROVIDER, BibleCacheService
from caresphere.services.youversion_client import YouVersionClient

logger = logging.getLogger(__name__)


def to_schedule_date(value: Optional[Union[date, datetime]] = None) -> date:
    """Strip time of day; defaults to today in server time"""
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.astimezone().date() if value.tzinfo else value.date()
    return value


class BibleService:
    """Bible content and Verse of the Day operations"""

    def __init__(
        self,
        db: AsyncSession,
        client: Optional[YouVersionClient] = None,
        cache: Optional[BibleCacheService] = None,
    ):
        self.db = db
        self.client = client or YouVersionClient()
        self.cache = cache or BibleCacheService(db)

    @staticmethod
    def default_translation() -> str:
        return settings.BIBLE_DEFAULT_TRANSLATION or "1"

    async def get_translations(self, language_tag: Optional[str] = None) -> List[Version]:
        """All available translations; cached for 30 days"""
        return await self.cache.cached_fetch(
            f"translations:{language_tag or 'all'}",
            "translations",
            settings.BIBLE_CACHE_TTL_TRANSLATIONS,
            lambda: self.client.get_translations(language_tag),
            result_type=List[Version],
        )

    async def get_books(self, translation_id: Optional[str] = None) -> List[Book]:
        """Books for a translation; cached for 30 days"""
        vid = translation_id or self.default_translation()
        return await self.cache.cached_fetch(
            f"books:{vid}",
            "books",
            settings.BIBLE_CACHE_TTL_TRANSLATIONS,
            lambda: self.client.get_books(vid),
            result_type=List[Book],
        )

    async def get_verse(self, reference: str, translation_id: Optional[str] = None) -> Verse:
        """Single verse by USFM reference, e.g. "JHN.3.16"; cached for 7 days"""
        vid = translation_id or self.default_translation()
        return await self.cache.cached_fetch(
            f"verse:{vid}:{reference}",
            "verse",
            settings.BIBLE_CACHE_TTL_VERSE,
            lambda: self.client.get_verse(reference, vid),
            result_type=Verse,
        )

    async def get_passage(self, reference: str, translation_id: Optional[str] = None) -> List[Verse]:
        """Verse range, e.g. "JHN.3.16-18"; cached for 7 days"""
        vid = translation_id or self.default_translation()
        return await self.cache.cached_fetch(
            f"passage:{vid}:{reference}",
            "passage",
            settings.BIBLE_CACHE_TTL_VERSE,
            lambda: self.client.get_passage(reference, vid),
            result_type=List[Verse],
        )

    async def get_chapter(self, chapter_id: str, translation_id: Optional[str] = None) -> Chapter:
        """All verses of a chapter, e.g. "JHN.3"; cached for 7 days"""
        vid = translation_id or self.default_translation()
        return await self.cache.cached_fetch(
            f"chapter:{vid}:{chapter_id}",
            "chapter",
            settings.BIBLE_CACHE_TTL_VERSE,
            lambda: self.client.get_chapter(chapter_id, vid),
            result_type=Chapter,
        )

    async def search(
        self,
        query: str,
        translation_id: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> SearchResult:
        """Full-text search; cached for 1 day per (query, translation, page)"""
        if not query or not query.strip():
            raise ValidationError("Search query must not be empty")
        vid = translation_id or self.default_translation()
        normalized = query.lower().strip()
        return await self.cache.cached_fetch(
            f"search:{vid}:{normalized}:{limit}:{offset}",
            "search",
            settings.BIBLE_CACHE_TTL_SEARCH,
            lambda: self.client.search(query, vid, limit, offset),
            result_type=SearchResult,
        )

    # Verse of the Day

    async def get_verse_of_day(
        self,
        organization_id: str,
        on_date: Optional[Union[date, datetime]] = None,
    ) -> VerseOfDay:
        """
        Return the organization's verse for a date.

        An existing row (automatic or admin-set) is returned verbatim.
        Otherwise the provider's global verse for the day is pulled through
        the cache, stored for the organization as automatic and returned.
        """
        scheduled_date = to_schedule_date(on_date)

        existing = await self._find_votd(organization_id, scheduled_date)
        if existing:
            return self._votd_response(existing)

        votd = await self.cache.cached_fetch(
            f"votd:global:{scheduled_date.isoformat()}",
            "votd",
            settings.BIBLE_CACHE_TTL_VOTD,
            lambda: self.client.get_verse_of_the_day(self.default_translation()),
            result_type=ProviderVerseOfDay,
        )

        reference = votd.reference or (votd.verse.reference if votd.verse else "") or ""
        verse_text = votd.verse.content if votd.verse else ""
        if votd.verse and votd.verse.version_id is not None:
            translation_id = str(votd.verse.version_id)
        else:
            translation_id = self.default_translation()

        insert_stmt = upsert_insert(self.db, BibleVerseOfDay).values(
            organization_id=organization_id,
            scheduled_date=scheduled_date,
            reference=reference,
            translation_id=translation_id,
            verse_text=verse_text,
            provider=PROVIDER,
            is_automatic=True,
        )
        # A concurrent request may have stored the row first; keep theirs.
        await self.db.execute(
            insert_stmt.on_conflict_do_nothing(index_elements=["organization_id", "scheduled_date"])
        )
        await self.db.commit()

        stored = await self._find_votd(organization_id, scheduled_date)
        logger.info(f"Stored automatic verse of the day {stored.reference} for org {organization_id} on {scheduled_date}")
        return self._votd_response(stored)

    async def set_verse_of_day(
        self,
        organization_id: str,
        payload: SetVerseOfDayRequest,
        set_by: Optional[str] = None,
    ) -> VerseOfDay:
        """Admin override: upsert the verse for (organization, date)"""
        vid = payload.translation_id or self.default_translation()
        scheduled_date = to_schedule_date(payload.scheduled_date)

        text = payload.verse_text
        if not text:
            try:
                verse = await self.get_verse(payload.reference, vid)
                text = verse.content or ""
            except Exception as e:
                logger.warning(f"Could not fetch text for {payload.reference}: {str(e)}")
                text = ""

        values = {
            "reference": payload.reference,
            "translation_id": vid,
            "verse_text": text,
            "is_automatic": payload.is_automatic,
            "set_by": set_by,
        }
        insert_stmt = upsert_insert(self.db, BibleVerseOfDay).values(
            organization_id=organization_id,
            scheduled_date=scheduled_date,
            provider=PROVIDER,
            **values,
        )
        await self.db.execute(
            insert_stmt.on_conflict_do_update(
                index_elements=["organization_id", "scheduled_date"],
                set_={**values, "updated_at": func.now()},
            )
        )
        await self.db.commit()

        stored = await self._find_votd(organization_id, scheduled_date)
        logger.info(f"Verse of the day for org {organization_id} on {scheduled_date} set to {payload.reference}")
        return self._votd_response(stored)

    async def require_bible_enabled(self, organization_id: str) -> Organization:
        """Raise unless the organization exists and has Bible features on"""
        organization = await self.db.get(Organization, organization_id)
        if not organization:
            raise NotFoundError("Organization")
        if not organization.bible_enabled:
            raise ValidationError(
                f'Bible features are not enabled for "{organization.name}". '
                "Contact your administrator to enable them."
            )
        return organization

    async def _find_votd(self, organization_id: str, scheduled_date: date) -> Optional[BibleVerseOfDay]:
        result = await self.db.execute(
            select(BibleVerseOfDay).where(
                BibleVerseOfDay.organization_id == organization_id,
                BibleVerseOfDay.scheduled_date == scheduled_date,
            ).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _votd_response(row: BibleVerseOfDay) -> VerseOfDay:
        return VerseOfDay(
            reference=row.reference,
            verse_text=row.verse_text,
            translation_id=row.translation_id,
            is_automatic=row.is_automatic,
            scheduled_date=row.scheduled_date,
        )
