"""
Per-organization Verse of the Day
"""

import uuid

from sqlalchemy import Column, String, DateTime, Date, Boolean, Text, UniqueConstraint
from sqlalchemy.sql import func

from caresphere.core.database import Base


class BibleVerseOfDay(Base):
    """Automatic or admin-set verse for one organization on one date"""
    __tablename__ = "bible_verse_of_day"
    __table_args__ = (
        UniqueConstraint("organization_id", "scheduled_date", name="uq_votd_org_date"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String(36), nullable=False, index=True)
    scheduled_date = Column(Date, nullable=False)

    reference = Column(String, nullable=False)
    translation_id = Column(String(20), nullable=False)
    verse_text = Column(Text, nullable=False, default="")
    provider = Column(String(50), nullable=False, default="youversion")
    is_automatic = Column(Boolean, nullable=False, default=True)
    set_by = Column(String(36), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
