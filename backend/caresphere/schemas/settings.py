"""
Sender settings schemas
"""

from typing import Optional, Literal
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import datetime

from caresphere.models.sender_setting import SettingScope


class SenderSettingUpsert(BaseModel):
    scope: SettingScope = Field(...)
    reference_id: Optional[str] = Field(default=None)
    sender_name: Optional[str] = Field(default=None)
    sender_email: Optional[EmailStr] = Field(default=None)
    sender_phone: Optional[str] = Field(default=None)
    organization_id: Optional[str] = Field(default=None)


class SenderSettingDelete(BaseModel):
    scope: SettingScope = Field(...)
    reference_id: Optional[str] = Field(default=None)


class SenderSettingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    scope: SettingScope
    reference_id: Optional[str] = None
    sender_name: Optional[str] = None
    sender_email: Optional[str] = None
    sender_phone: Optional[str] = None
    organization_id: Optional[str] = None
    updated_at: Optional[datetime] = None


class ResolvedSenderSettings(BaseModel):
    """Fully populated sender identity plus the scope that supplied it"""
    sender_id: str
    default_from: str
    default_from_name: str
    sms_from: str
    voice_from: str
    resolved_scope: Literal["user", "organization", "global", "env"]
