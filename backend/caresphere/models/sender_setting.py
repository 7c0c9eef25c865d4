"""
Sender settings at user, organization or global scope
"""

import enum
import uuid

from sqlalchemy import CheckConstraint, Column, String, DateTime, Enum, UniqueConstraint
from sqlalchemy.sql import func

from caresphere.core.database import Base


class SettingScope(str, enum.Enum):
    """Granularity at which sender settings are overridden"""
    USER = "USER"
    ORGANIZATION = "ORGANIZATION"
    GLOBAL = "GLOBAL"


class SenderSetting(Base):
    """Sender identity override. reference_id is null only for GLOBAL scope."""
    __tablename__ = "sender_settings"
    __table_args__ = (
        UniqueConstraint(
            "scope",
            "reference_id",
            name="uq_sender_setting_scope_ref",
            postgresql_nulls_not_distinct=True,
        ),
        CheckConstraint(
            "(scope = 'GLOBAL') = (reference_id IS NULL)",
            name="ck_sender_setting_reference_scope",
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    scope = Column(Enum(SettingScope, name="setting_scope"), nullable=False, index=True)
    reference_id = Column(String(36), nullable=True, index=True)

    sender_name = Column(String, nullable=True)
    sender_email = Column(String, nullable=True)
    sender_phone = Column(String, nullable=True)
    organization_id = Column(String(36), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
