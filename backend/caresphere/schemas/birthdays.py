"""
Birthday schemas
"""

from typing import Optional, List, Literal
from pydantic import BaseModel, Field
from datetime import date

from caresphere.models.organization import OrganizationType


class BirthdayMember(BaseModel):
    id: str
    first_name: str
    last_name: Optional[str] = None
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    whatsapp_number: Optional[str] = None
    photo_url: Optional[str] = None
    date_of_birth: date
    days_until: int = Field(..., ge=0)  # 0 = today
    birthday_date: str  # "January 15"
    age: Optional[int] = None  # age they will turn


class UpcomingBirthdays(BaseModel):
    today: List[BirthdayMember] = Field(default_factory=list)
    upcoming: List[BirthdayMember] = Field(default_factory=list)
    total: int = 0


class BirthdayMessageRequest(BaseModel):
    recipient_name: str = Field(..., min_length=1)
    sender_name: Optional[str] = Field(default=None)
    organization_type: Optional[OrganizationType] = Field(default=None)
    channel: Literal["EMAIL", "SMS", "WHATSAPP"] = Field(default="EMAIL")
    age: Optional[int] = Field(default=None, ge=0)


class GeneratedBirthdayMessage(BaseModel):
    subject: str
    body: str


class OrganizationNotifyResult(BaseModel):
    organization_id: str
    organization_name: str
    processed: int
    notifications_sent: int


class NotifyRunResult(BaseModel):
    organizations: int
    results: List[OrganizationNotifyResult] = Field(default_factory=list)

    @property
    def notifications_sent(self) -> int:
        return sum(r.notifications_sent for r in self.results)
