"""
Bible content schemas (YouVersion shapes) and request payloads
"""

from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from datetime import date


class YouVersionModel(BaseModel):
    """Provider objects keep unknown fields so cached payloads round-trip"""
    model_config = ConfigDict(extra="allow")


class Verse(YouVersionModel):
    id: str = Field(default="")
    reference: str = Field(default="")
    content: str = Field(default="")
    version_id: Optional[int] = Field(default=None)
    version_abbreviation: Optional[str] = Field(default=None)
    copyright: Optional[str] = Field(default=None)


class ChapterRef(YouVersionModel):
    id: str = Field(...)
    chapter: int = Field(...)


class Book(YouVersionModel):
    id: str = Field(...)  # e.g. "GEN"
    abbreviation: Optional[str] = Field(default=None)
    long_name: Optional[str] = Field(default=None)
    canon: Optional[str] = Field(default=None)  # ot / nt / deut
    chapters: Optional[List[ChapterRef]] = Field(default=None)


class Version(YouVersionModel):
    id: int = Field(...)
    title: Optional[str] = Field(default=None)
    abbreviation: Optional[str] = Field(default=None)
    local_abbreviation: Optional[str] = Field(default=None)
    local_title: Optional[str] = Field(default=None)
    language: Optional[str] = Field(default=None)
    language_tag: Optional[str] = Field(default=None)


class Chapter(YouVersionModel):
    id: str = Field(...)  # e.g. "GEN.1"
    book_id: Optional[str] = Field(default=None)
    book_long_name: Optional[str] = Field(default=None)
    chapter_number: Optional[int] = Field(default=None)
    verses: List[Verse] = Field(default_factory=list)
    version_id: Optional[int] = Field(default=None)


class VotdImage(YouVersionModel):
    url: str = Field(...)
    attribution: Optional[str] = Field(default=None)


class ProviderVerseOfDay(YouVersionModel):
    day: Optional[str] = Field(default=None)
    reference: Optional[str] = Field(default=None)
    verse: Optional[Verse] = Field(default=None)
    image: Optional[VotdImage] = Field(default=None)


class SearchResult(BaseModel):
    total: int = Field(default=0)
    verseItems: List[Verse] = Field(default_factory=list)


class VerseOfDay(BaseModel):
    """Organization verse of the day as returned to callers"""
    reference: str = Field(...)
    verse_text: str = Field(...)
    translation_id: str = Field(...)
    is_automatic: bool = Field(...)
    scheduled_date: date = Field(...)


class SetVerseOfDayRequest(BaseModel):
    reference: str = Field(..., min_length=1)
    translation_id: Optional[str] = Field(default=None)
    verse_text: Optional[str] = Field(default=None)
    scheduled_date: Optional[date] = Field(default=None)
    is_automatic: bool = Field(default=False)


class BookmarkCreate(BaseModel):
    reference: str = Field(..., min_length=1)
    translation_id: str = Field(..., min_length=1)
    verse_text: str = Field(...)
    collection: Optional[str] = Field(default=None)


class NoteCreate(BaseModel):
    reference: str = Field(..., min_length=1)
    translation_id: str = Field(..., min_length=1)
    note_text: str = Field(..., min_length=1)
    is_private: bool = Field(default=True)


class NoteUpdate(BaseModel):
    note_text: Optional[str] = Field(default=None, min_length=1)
    is_private: Optional[bool] = Field(default=None)


class HighlightCreate(BaseModel):
    reference: str = Field(..., min_length=1)
    translation_id: str = Field(..., min_length=1)
    color: str = Field(default="yellow")
    organization_id: Optional[str] = Field(default=None)


class BookmarkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    reference: str
    translation_id: str
    verse_text: str
    collection: Optional[str] = None


class NoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    reference: str
    translation_id: str
    note_text: str
    is_private: bool


class HighlightResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    reference: str
    translation_id: str
    color: str
    organization_id: Optional[str] = None
