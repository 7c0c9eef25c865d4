"""
Personal Bible features: bookmarks, notes and highlights
"""

import uuid

from sqlalchemy import Column, String, Boolean, DateTime, Text, UniqueConstraint
from sqlalchemy.sql import func

from caresphere.core.database import Base


class BibleBookmark(Base):
    """Saved verse, one per user/reference/translation"""
    __tablename__ = "bible_bookmarks"
    __table_args__ = (
        UniqueConstraint("user_id", "reference", "translation_id", name="uq_bookmark_user_ref_trans"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    reference = Column(String, nullable=False)
    translation_id = Column(String(20), nullable=False)
    verse_text = Column(Text, nullable=False)
    collection = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class BibleNote(Base):
    """Free-form note attached to a reference"""
    __tablename__ = "bible_notes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    reference = Column(String, nullable=False, index=True)
    translation_id = Column(String(20), nullable=False)
    note_text = Column(Text, nullable=False)
    is_private = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class BibleHighlight(Base):
    """Coloured highlight, one per user/reference/translation"""
    __tablename__ = "bible_highlights"
    __table_args__ = (
        UniqueConstraint("user_id", "reference", "translation_id", name="uq_highlight_user_ref_trans"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    reference = Column(String, nullable=False, index=True)
    translation_id = Column(String(20), nullable=False)
    color = Column(String(20), nullable=False, default="yellow")
    organization_id = Column(String(36), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
