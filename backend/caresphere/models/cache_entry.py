"""
Cache entry model for persistent Bible content caching
"""

from sqlalchemy import Column, String, DateTime, Integer, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from caresphere.core.database import Base


class BibleCacheEntry(Base):
    """Expiring key/value row holding a provider response"""
    __tablename__ = "bible_cache"

    cache_key = Column(String, primary_key=True, index=True)
    provider = Column(String(50), nullable=False, default="youversion")
    resource_type = Column(String(50), nullable=False, index=True)
    payload = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    hit_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    def __repr__(self):
        return f"<BibleCacheEntry(key='{self.cache_key}', type='{self.resource_type}', hits={self.hit_count})>"
