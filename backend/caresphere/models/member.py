"""
Member model (managed by the member service)
"""

import uuid

from sqlalchemy import Column, String, Date, DateTime, ForeignKey
from sqlalchemy.sql import func

from caresphere.core.database import Base


class Member(Base):
    """Person on an organization's roll"""
    __tablename__ = "members"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    whatsapp_number = Column(String, nullable=True)
    photo_url = Column(String, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    member_status = Column(String(20), nullable=False, default="ACTIVE")  # ACTIVE / PENDING / INACTIVE

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
