"""
Bible API endpoints

Content routes (translations, books, verses, passages, chapters, search)
go through the PostgreSQL cache. Verse of the Day routes need Bible
features enabled on the caller's organization. Bookmarks, notes and
highlights are per user.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from caresphere.core.database import get_db
from caresphere.core.errors import CareSphereError
from caresphere.core.security import get_current_user_id
from caresphere.schemas.bible import (
    BookmarkCreate,
    BookmarkResponse,
    HighlightCreate,
    HighlightResponse,
    NoteCreate,
    NoteResponse,
    NoteUpdate,
    SetVerseOfDayRequest,
)
from caresphere.schemas.common import DataResponse, ErrorResponse, ListResponse
from caresphere.services.bible_library_service import BibleLibraryService
from caresphere.services.bible_service import BibleService
from caresphere.services.organization_service import get_user_organization, is_org_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bible", tags=["bible"])

CONTENT_RESPONSES = {
    401: {"description": "Unauthorized", "model": ErrorResponse},
    404: {"description": "Bible resource not found", "model": ErrorResponse},
    502: {"description": "Bible provider error", "model": ErrorResponse},
    500: {"description": "Internal server error", "model": ErrorResponse},
}


def get_bible_service(db: AsyncSession = Depends(get_db)) -> BibleService:
    """Dependency to get Bible service instance"""
    return BibleService(db)


def get_library_service(db: AsyncSession = Depends(get_db)) -> BibleLibraryService:
    """Dependency to get Bible library service instance"""
    return BibleLibraryService(db)


def _internal_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"Error {action}: {str(e)}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error"
    )


@router.get("/translations", response_model=ListResponse, responses=CONTENT_RESPONSES)
async def list_translations(
    language_tag: Optional[str] = Query(None, description="ISO 639 language tag, e.g. eng"),
    user_id: str = Depends(get_current_user_id),
    bible: BibleService = Depends(get_bible_service),
):
    """List available Bible translations (cached 30 days)"""
    try:
        translations = await bible.get_translations(language_tag)
        return ListResponse(data=translations, count=len(translations), total=len(translations))
    except CareSphereError:
        raise
    except Exception as e:
        raise _internal_error("fetching translations", e)


@router.get("/books", response_model=ListResponse, responses=CONTENT_RESPONSES)
async def list_books(
    translation_id: Optional[str] = Query(None, description="YouVersion version id"),
    user_id: str = Depends(get_current_user_id),
    bible: BibleService = Depends(get_bible_service),
):
    """List books of a translation (cached 30 days)"""
    try:
        books = await bible.get_books(translation_id)
        return ListResponse(data=books, count=len(books), total=len(books))
    except CareSphereError:
        raise
    except Exception as e:
        raise _internal_error("fetching books", e)


@router.get("/verses/{reference}", response_model=DataResponse, responses=CONTENT_RESPONSES)
async def get_verse(
    reference: str,
    translation_id: Optional[str] = Query(None, description="YouVersion version id"),
    user_id: str = Depends(get_current_user_id),
    bible: BibleService = Depends(get_bible_service),
):
    """Get a single verse by USFM reference, e.g. JHN.3.16"""
    try:
        return DataResponse(data=await bible.get_verse(reference, translation_id))
    except CareSphereError:
        raise
    except Exception as e:
        raise _internal_error(f"fetching verse {reference}", e)


@router.get("/passages/{reference}", response_model=ListResponse, responses=CONTENT_RESPONSES)
async def get_passage(
    reference: str,
    translation_id: Optional[str] = Query(None, description="YouVersion version id"),
    user_id: str = Depends(get_current_user_id),
    bible: BibleService = Depends(get_bible_service),
):
    """Get a verse range, e.g. JHN.3.16-18"""
    try:
        verses = await bible.get_passage(reference, translation_id)
        return ListResponse(data=verses, count=len(verses), total=len(verses))
    except CareSphereError:
        raise
    except Exception as e:
        raise _internal_error(f"fetching passage {reference}", e)


@router.get("/chapters/{chapter_id}", response_model=DataResponse, responses=CONTENT_RESPONSES)
async def get_chapter(
    chapter_id: str,
    translation_id: Optional[str] = Query(None, description="YouVersion version id"),
    user_id: str = Depends(get_current_user_id),
    bible: BibleService = Depends(get_bible_service),
):
    """Get all verses of a chapter, e.g. JHN.3"""
    try:
        return DataResponse(data=await bible.get_chapter(chapter_id, translation_id))
    except CareSphereError:
        raise
    except Exception as e:
        raise _internal_error(f"fetching chapter {chapter_id}", e)


@router.get("/search", response_model=DataResponse, responses=CONTENT_RESPONSES)
async def search_bible(
    query: str = Query(..., min_length=1, description="Search text"),
    translation_id: Optional[str] = Query(None, description="YouVersion version id"),
    limit: int = Query(10, ge=1, le=50),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    bible: BibleService = Depends(get_bible_service),
):
    """Full-text search (cached 1 day per query and page)"""
    try:
        return DataResponse(data=await bible.search(query.strip(), translation_id, limit, offset))
    except CareSphereError:
        raise
    except Exception as e:
        raise _internal_error("searching the Bible", e)


async def _caller_organization_id(db: AsyncSession, user_id: str, bible: BibleService) -> str:
    organization = await get_user_organization(db, user_id)
    if not organization:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You must be part of an organization"
        )
    await bible.require_bible_enabled(organization.id)
    return organization.id


@router.get("/verse-of-day", response_model=DataResponse, responses=CONTENT_RESPONSES)
async def get_verse_of_day(
    on_date: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD, defaults to today"),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    bible: BibleService = Depends(get_bible_service),
):
    """Verse of the Day for the caller's organization"""
    try:
        organization_id = await _caller_organization_id(db, user_id, bible)
        return DataResponse(data=await bible.get_verse_of_day(organization_id, on_date))
    except (HTTPException, CareSphereError):
        raise
    except Exception as e:
        raise _internal_error("fetching verse of the day", e)


@router.post("/verse-of-day", response_model=DataResponse, responses=CONTENT_RESPONSES)
async def set_verse_of_day(
    payload: SetVerseOfDayRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    bible: BibleService = Depends(get_bible_service),
):
    """Admin: set or override the Verse of the Day"""
    try:
        organization_id = await _caller_organization_id(db, user_id, bible)
        if not await is_org_admin(db, user_id, organization_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only organization admins can set the verse of the day"
            )
        payload.is_automatic = False
        result = await bible.set_verse_of_day(organization_id, payload, set_by=user_id)
        return DataResponse(data=result, message="Verse of the day updated")
    except (HTTPException, CareSphereError):
        raise
    except Exception as e:
        raise _internal_error("setting verse of the day", e)


# Bookmarks

@router.get("/bookmarks", response_model=ListResponse)
async def list_bookmarks(
    collection: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    library: BibleLibraryService = Depends(get_library_service),
):
    bookmarks = await library.get_bookmarks(user_id, collection)
    data = [BookmarkResponse.model_validate(b) for b in bookmarks]
    return ListResponse(data=data, count=len(data), total=len(data))


@router.post("/bookmarks", response_model=DataResponse)
async def create_bookmark(
    payload: BookmarkCreate,
    user_id: str = Depends(get_current_user_id),
    library: BibleLibraryService = Depends(get_library_service),
):
    bookmark = await library.create_bookmark(user_id, payload)
    return DataResponse(data=BookmarkResponse.model_validate(bookmark))


@router.delete("/bookmarks/{bookmark_id}", response_model=DataResponse)
async def delete_bookmark(
    bookmark_id: str,
    user_id: str = Depends(get_current_user_id),
    library: BibleLibraryService = Depends(get_library_service),
):
    try:
        await library.delete_bookmark(user_id, bookmark_id)
        return DataResponse(data={"id": bookmark_id}, message="Bookmark deleted")
    except CareSphereError:
        raise


# Notes

@router.get("/notes", response_model=ListResponse)
async def list_notes(
    reference: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    library: BibleLibraryService = Depends(get_library_service),
):
    notes = await library.get_notes(user_id, reference)
    data = [NoteResponse.model_validate(n) for n in notes]
    return ListResponse(data=data, count=len(data), total=len(data))


@router.post("/notes", response_model=DataResponse)
async def create_note(
    payload: NoteCreate,
    user_id: str = Depends(get_current_user_id),
    library: BibleLibraryService = Depends(get_library_service),
):
    note = await library.create_note(user_id, payload)
    return DataResponse(data=NoteResponse.model_validate(note))


@router.patch("/notes/{note_id}", response_model=DataResponse)
async def update_note(
    note_id: str,
    updates: NoteUpdate,
    user_id: str = Depends(get_current_user_id),
    library: BibleLibraryService = Depends(get_library_service),
):
    try:
        note = await library.update_note(user_id, note_id, updates)
        return DataResponse(data=NoteResponse.model_validate(note))
    except CareSphereError:
        raise


@router.delete("/notes/{note_id}", response_model=DataResponse)
async def delete_note(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    library: BibleLibraryService = Depends(get_library_service),
):
    try:
        await library.delete_note(user_id, note_id)
        return DataResponse(data={"id": note_id}, message="Note deleted")
    except CareSphereError:
        raise


# Highlights

@router.get("/highlights", response_model=ListResponse)
async def list_highlights(
    reference: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    library: BibleLibraryService = Depends(get_library_service),
):
    highlights = await library.get_highlights(user_id, reference)
    data = [HighlightResponse.model_validate(h) for h in highlights]
    return ListResponse(data=data, count=len(data), total=len(data))


@router.post("/highlights", response_model=DataResponse)
async def create_highlight(
    payload: HighlightCreate,
    user_id: str = Depends(get_current_user_id),
    library: BibleLibraryService = Depends(get_library_service),
):
    highlight = await library.create_highlight(user_id, payload)
    return DataResponse(data=HighlightResponse.model_validate(highlight))


@router.delete("/highlights/{highlight_id}", response_model=DataResponse)
async def delete_highlight(
    highlight_id: str,
    user_id: str = Depends(get_current_user_id),
    library: BibleLibraryService = Depends(get_library_service),
):
    try:
        await library.delete_highlight(user_id, highlight_id)
        return DataResponse(data={"id": highlight_id}, message="Highlight deleted")
    except CareSphereError:
        raise
