"""
Tests for personal bookmarks, notes and highlights
"""

import pytest

from caresphere.core.errors import NotFoundError
from caresphere.schemas.bible import BookmarkCreate, HighlightCreate, NoteCreate, NoteUpdate
from caresphere.services.bible_library_service import BibleLibraryService


@pytest.fixture
def library(db):
    return BibleLibraryService(db)


class TestBookmarks:

    @pytest.mark.asyncio
    async def test_bookmark_same_verse_twice_updates_in_place(self, library):
        first = await library.create_bookmark(
            "u1", BookmarkCreate(reference="JHN.3.16", translation_id="1", verse_text="For God so loved")
        )
        second = await library.create_bookmark(
            "u1",
            BookmarkCreate(reference="JHN.3.16", translation_id="1", verse_text="For God so loved", collection="Favs"),
        )

        assert second.id == first.id
        assert second.collection == "Favs"
        assert len(await library.get_bookmarks("u1")) == 1

    @pytest.mark.asyncio
    async def test_bookmarks_are_per_user_and_filter_by_collection(self, library):
        await library.create_bookmark("u1", BookmarkCreate(reference="PSA.23.1", translation_id="1",
                                                           verse_text="The LORD", collection="Comfort"))
        await library.create_bookmark("u1", BookmarkCreate(reference="ROM.8.28", translation_id="1",
                                                           verse_text="And we know"))
        await library.create_bookmark("u2", BookmarkCreate(reference="PSA.23.1", translation_id="1",
                                                           verse_text="The LORD"))

        assert len(await library.get_bookmarks("u1")) == 2
        comfort = await library.get_bookmarks("u1", collection="Comfort")
        assert [b.reference for b in comfort] == ["PSA.23.1"]

    @pytest.mark.asyncio
    async def test_cannot_delete_another_users_bookmark(self, library):
        bookmark = await library.create_bookmark(
            "u1", BookmarkCreate(reference="JHN.1.1", translation_id="1", verse_text="In the beginning")
        )

        with pytest.raises(NotFoundError):
            await library.delete_bookmark("u2", bookmark.id)

        await library.delete_bookmark("u1", bookmark.id)
        assert await library.get_bookmarks("u1") == []


class TestNotes:

    @pytest.mark.asyncio
    async def test_create_update_delete(self, library):
        note = await library.create_note(
            "u1", NoteCreate(reference="JHN.3.16", translation_id="1", note_text="Sermon idea")
        )
        assert note.is_private is True

        updated = await library.update_note("u1", note.id, NoteUpdate(note_text="Preached 3/1", is_private=False))
        assert updated.note_text == "Preached 3/1"
        assert updated.is_private is False

        await library.delete_note("u1", note.id)
        assert await library.get_notes("u1") == []

    @pytest.mark.asyncio
    async def test_notes_filter_by_reference(self, library):
        await library.create_note("u1", NoteCreate(reference="JHN.3.16", translation_id="1", note_text="a"))
        await library.create_note("u1", NoteCreate(reference="JHN.3.16", translation_id="1", note_text="b"))
        await library.create_note("u1", NoteCreate(reference="GEN.1.1", translation_id="1", note_text="c"))

        assert len(await library.get_notes("u1", reference="JHN.3.16")) == 2

    @pytest.mark.asyncio
    async def test_update_missing_note(self, library):
        with pytest.raises(NotFoundError):
            await library.update_note("u1", "missing", NoteUpdate(note_text="x"))


class TestHighlights:

    @pytest.mark.asyncio
    async def test_rehighlight_changes_color(self, library):
        first = await library.create_highlight("u1", HighlightCreate(reference="PSA.23.1", translation_id="1"))
        first_id, first_color = first.id, first.color
        second = await library.create_highlight(
            "u1", HighlightCreate(reference="PSA.23.1", translation_id="1", color="green")
        )

        assert first_color == "yellow"
        assert second.id == first_id
        assert second.color == "green"

    @pytest.mark.asyncio
    async def test_delete_highlight(self, library):
        highlight = await library.create_highlight("u1", HighlightCreate(reference="PSA.23.1", translation_id="1"))

        await library.delete_highlight("u1", highlight.id)

        assert await library.get_highlights("u1") == []
