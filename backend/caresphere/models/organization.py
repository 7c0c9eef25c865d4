"""
Organization and membership models (managed by the organization service)
"""

import enum
import uuid

from sqlalchemy import Column, String, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func

from caresphere.core.database import Base


class OrganizationType(str, enum.Enum):
    CHURCH = "CHURCH"
    NONPROFIT = "NONPROFIT"
    OTHER = "OTHER"


class Organization(Base):
    """Tenant organization"""
    __tablename__ = "organizations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    organization_type = Column(
        Enum(OrganizationType, name="organization_type"),
        nullable=False,
        default=OrganizationType.CHURCH
    )
    is_active = Column(Boolean, default=True)
    bible_enabled = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class OrganizationUser(Base):
    """Link between a user and an organization"""
    __tablename__ = "organization_users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    is_active = Column(Boolean, default=True)
    is_owner = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
