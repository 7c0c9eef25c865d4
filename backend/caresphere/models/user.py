"""
User model (accounts are managed by the auth service)
"""

import uuid

from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func

from caresphere.core.database import Base

LEADER_ROLES = ("KINGDOM_SUPER_ADMIN", "SUPER_ADMIN", "ADMIN", "MINISTRY_LEADER")
ADMIN_ROLES = ("KINGDOM_SUPER_ADMIN", "SUPER_ADMIN", "ADMIN")


class User(Base):
    """Application user"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    email = Column(String, unique=True, index=True, nullable=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=True)
    role = Column(String(30), nullable=False, default="MEMBER")
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
