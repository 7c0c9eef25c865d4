"""
Personal Bible library: bookmarks, notes and highlights.

Always served from PostgreSQL; no provider calls.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from caresphere.core.database import upsert_insert
from caresphere.core.errors import NotFoundError
from caresphere.models.bible_library import BibleBookmark, BibleHighlight, BibleNote
from caresphere.schemas.bible import BookmarkCreate, HighlightCreate, NoteCreate, NoteUpdate

logger = logging.getLogger(__name__)


class BibleLibraryService:
    """Per-user Bible library operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # Bookmarks

    async def get_bookmarks(self, user_id: str, collection: Optional[str] = None) -> List[BibleBookmark]:
        query = select(BibleBookmark).where(BibleBookmark.user_id == user_id)
        if collection:
            query = query.where(BibleBookmark.collection == collection)
        result = await self.db.execute(query.order_by(BibleBookmark.created_at.desc()))
        return list(result.scalars().all())

    async def create_bookmark(self, user_id: str, payload: BookmarkCreate) -> BibleBookmark:
        insert_stmt = upsert_insert(self.db, BibleBookmark).values(user_id=user_id, **payload.model_dump())
        await self.db.execute(
            insert_stmt.on_conflict_do_update(
                index_elements=["user_id", "reference", "translation_id"],
                set_={
                    "verse_text": payload.verse_text,
                    "collection": payload.collection,
                    "updated_at": func.now(),
                },
            )
        )
        await self.db.commit()
        return await self._fetch_unique(
            BibleBookmark, user_id, payload.reference, payload.translation_id
        )

    async def delete_bookmark(self, user_id: str, bookmark_id: str) -> None:
        bookmark = await self._owned(BibleBookmark, user_id, bookmark_id, "Bookmark")
        await self.db.delete(bookmark)
        await self.db.commit()

    # Notes

    async def get_notes(self, user_id: str, reference: Optional[str] = None) -> List[BibleNote]:
        query = select(BibleNote).where(BibleNote.user_id == user_id)
        if reference:
            query = query.where(BibleNote.reference == reference)
        result = await self.db.execute(query.order_by(BibleNote.created_at.desc()))
        return list(result.scalars().all())

    async def create_note(self, user_id: str, payload: NoteCreate) -> BibleNote:
        note = BibleNote(user_id=user_id, **payload.model_dump())
        self.db.add(note)
        await self.db.commit()
        await self.db.refresh(note)
        return note

    async def update_note(self, user_id: str, note_id: str, updates: NoteUpdate) -> BibleNote:
        note = await self._owned(BibleNote, user_id, note_id, "Note")
        for field, value in updates.model_dump(exclude_none=True).items():
            setattr(note, field, value)
        await self.db.commit()
        await self.db.refresh(note)
        return note

    async def delete_note(self, user_id: str, note_id: str) -> None:
        note = await self._owned(BibleNote, user_id, note_id, "Note")
        await self.db.delete(note)
        await self.db.commit()

    # Highlights

    async def get_highlights(self, user_id: str, reference: Optional[str] = None) -> List[BibleHighlight]:
        query = select(BibleHighlight).where(BibleHighlight.user_id == user_id)
        if reference:
            query = query.where(BibleHighlight.reference == reference)
        result = await self.db.execute(query.order_by(BibleHighlight.created_at.desc()))
        return list(result.scalars().all())

    async def create_highlight(self, user_id: str, payload: HighlightCreate) -> BibleHighlight:
        insert_stmt = upsert_insert(self.db, BibleHighlight).values(user_id=user_id, **payload.model_dump())
        await self.db.execute(
            insert_stmt.on_conflict_do_update(
                index_elements=["user_id", "reference", "translation_id"],
                set_={"color": payload.color, "updated_at": func.now()},
            )
        )
        await self.db.commit()
        return await self._fetch_unique(
            BibleHighlight, user_id, payload.reference, payload.translation_id
        )

    async def delete_highlight(self, user_id: str, highlight_id: str) -> None:
        highlight = await self._owned(BibleHighlight, user_id, highlight_id, "Highlight")
        await self.db.delete(highlight)
        await self.db.commit()

    async def _owned(self, model, user_id: str, row_id: str, label: str):
        result = await self.db.execute(
            select(model).where(model.id == row_id, model.user_id == user_id)
        )
        row = result.scalar_one_or_none()
        if not row:
            raise NotFoundError(label)
        return row

    async def _fetch_unique(self, model, user_id: str, reference: str, translation_id: str):
        result = await self.db.execute(
            select(model).where(
                model.user_id == user_id,
                model.reference == reference,
                model.translation_id == translation_id,
            ).execution_options(populate_existing=True)
        )
        return result.scalar_one()
