"""
Birthday Service

Finds members with upcoming or same-day birthdays, writes birthday
messages tailored to the organization type, and emails alerts to
organization leaders.

The notification run is triggered externally (HTTP cron call or the
optional scheduler job) and walks every active organization in turn.
A failed send is logged and skipped so the run always completes.
"""

import calendar
import logging
import random
from datetime import date
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from caresphere.core.tasks import best_effort
from caresphere.models.member import Member
from caresphere.models.organization import Organization, OrganizationType, OrganizationUser
from caresphere.models.user import LEADER_ROLES, User
from caresphere.schemas.birthdays import (
    BirthdayMember,
    GeneratedBirthdayMessage,
    NotifyRunResult,
    OrganizationNotifyResult,
    UpcomingBirthdays,
)
from caresphere.services.messaging_service import EkdSendService, SendResult
from caresphere.services.settings_service import SenderSettingsService

logger = logging.getLogger(__name__)

ALERT_WINDOWS = (7, 3)
BIRTHDAY_STATUSES = ("ACTIVE", "PENDING")

SCRIPTURES = [
    "Psalm 90:14 - Satisfy us in the morning with your steadfast love, that we may rejoice and be glad all our days.",
    "Numbers 6:24-26 - The Lord bless you and keep you; the Lord make his face shine on you and be gracious to you.",
    "Jeremiah 29:11 - For I know the plans I have for you, declares the Lord, plans to prosper you and not to harm you.",
    "Philippians 4:7 - The peace of God, which surpasses all understanding, will guard your hearts and your minds in Christ Jesus.",
    "Proverbs 10:22 - The blessing of the Lord brings wealth, without painful toil for it.",
    "Isaiah 40:31 - Those who hope in the Lord will renew their strength. They will soar on wings like eagles.",
    "Romans 15:13 - May the God of hope fill you with all joy and peace as you trust in Him.",
]


def birthday_in_year(dob: date, year: int) -> date:
    """Birthday falling in `year`; Feb 29 maps to Feb 28 outside leap years"""
    if dob.month == 2 and dob.day == 29 and not calendar.isleap(year):
        return date(year, 2, 28)
    return date(year, dob.month, dob.day)


def next_birthday(dob: date, today: date) -> date:
    candidate = birthday_in_year(dob, today.year)
    if candidate < today:
        candidate = birthday_in_year(dob, today.year + 1)
    return candidate


def days_until_birthday(dob: date, today: date) -> int:
    """0 if the birthday is today, 1 if tomorrow, and so on"""
    return (next_birthday(dob, today) - today).days


def to_birthday_member(member: Member, today: date) -> BirthdayMember:
    dob = member.date_of_birth
    upcoming = next_birthday(dob, today)
    age = upcoming.year - dob.year
    return BirthdayMember(
        id=member.id,
        first_name=member.first_name,
        last_name=member.last_name,
        full_name=member.full_name,
        email=member.email,
        phone=member.phone,
        whatsapp_number=member.whatsapp_number,
        photo_url=member.photo_url,
        date_of_birth=dob,
        days_until=(upcoming - today).days,
        birthday_date=f"{upcoming.strftime('%B')} {upcoming.day}",
        age=age if age >= 0 else None,
    )


def generate_birthday_message(
    recipient_name: str,
    sender_name: str,
    organization_type: OrganizationType,
    channel: str = "EMAIL",
    age: Optional[int] = None,
) -> GeneratedBirthdayMessage:
    """Birthday subject and body for an organization type and channel"""
    first_name = recipient_name.split(" ")[0]
    is_email = channel == "EMAIL"

    if organization_type == OrganizationType.CHURCH:
        scripture = random.choice(SCRIPTURES)
        if is_email:
            age_line = (
                f"What a blessing it is to celebrate {age} amazing years of your journey!\n\n" if age else ""
            )
            return GeneratedBirthdayMessage(
                subject=f"🎂 Happy Birthday, {first_name}! God's blessings be upon you today",
                body=(
                    f"Dear {recipient_name},\n\n"
                    f"On behalf of everyone at {sender_name}, we want to wish you a very Happy Birthday! 🎉\n\n"
                    "Today is a day to celebrate the incredible gift that you are, to your family, to our "
                    "community, and to the Kingdom of God. We thank God for the day He created you and for "
                    "every year He has sovereignly guided your life.\n\n"
                    f"{age_line}"
                    "May this year be your best yet, filled with the peace that surpasses understanding, the "
                    "joy of the Lord as your strength, and the abundant blessings He has promised you.\n\n"
                    "✨ A Word for You Today:\n"
                    f"\"{scripture}\"\n\n"
                    "We love you and are grateful for the ways you bless us. May the Lord graciously answer "
                    "your heart's desires today and throughout this new year of your life.\n\n"
                    "With great love and God's blessings,\n"
                    f"{sender_name}"
                ),
            )
        return GeneratedBirthdayMessage(
            subject=f"Happy Birthday from {sender_name}",
            body=(
                f"🎂 Happy Birthday, {first_name}! 🎉 On behalf of {sender_name}, we celebrate you today! "
                f"May God's blessings overflow in your life. \"{scripture.split(' - ')[0]}\"\n\n"
                "We love and appreciate you! 🙏"
            ),
        )

    if organization_type == OrganizationType.NONPROFIT:
        if is_email:
            age_line = f"Congratulations on turning {age}! " if age else ""
            return GeneratedBirthdayMessage(
                subject=f"Happy Birthday, {first_name}! 🎂 From all of us at {sender_name}",
                body=(
                    f"Dear {recipient_name},\n\n"
                    f"Happy Birthday from the entire {sender_name} family! 🎉\n\n"
                    "Today we celebrate YOU: your growth, your contributions, and the positive difference you "
                    "make in the lives of others. You are an incredible part of what makes our community "
                    "special.\n\n"
                    f"{age_line}We hope this birthday brings you joy, rest, and everything your heart desires.\n\n"
                    "May this new year of your life be filled with meaningful moments, good health, and "
                    "continued impact.\n\n"
                    "With warmth and appreciation,\n"
                    f"The {sender_name} Team"
                ),
            )
        return GeneratedBirthdayMessage(
            subject=f"Happy Birthday from {sender_name}",
            body=(
                f"🎂 Happy Birthday, {first_name}! 🎉 Everyone at {sender_name} wishes you a wonderful day. "
                "You make our community better every single day. Wishing you all the best on your special day! 💐"
            ),
        )

    if is_email:
        age_line = f"Here's to {age} wonderful years and many more to come! " if age else ""
        return GeneratedBirthdayMessage(
            subject=f"Happy Birthday, {first_name}! 🎂",
            body=(
                f"Dear {recipient_name},\n\n"
                f"Wishing you a very Happy Birthday on behalf of {sender_name}! 🎉\n\n"
                "We hope your day is everything you wished for and more, filled with love, laughter, and "
                "beautiful memories.\n\n"
                f"{age_line}May this new chapter bring you everything you deserve.\n\n"
                "Warmest wishes,\n"
                f"{sender_name}"
            ),
        )
    return GeneratedBirthdayMessage(
        subject=f"Happy Birthday from {sender_name}",
        body=(
            f"🎂 Happy Birthday, {first_name}! 🎉 Everyone at {sender_name} wishes you a fantastic day "
            "filled with joy and celebration!"
        ),
    )


def build_leader_alert(
    leader_name: str,
    org_name: str,
    members: List[BirthdayMember],
    days_away: int,
) -> GeneratedBirthdayMessage:
    """Summary email telling a leader whose birthday is coming up"""
    count = len(members)
    if days_away == 0:
        subject = f"🎂 Today's Birthdays in {org_name}: {count} member{'s' if count > 1 else ''}"
        who = "one of your members" if count == 1 else f"{count} of your members"
        greeting = f"Today is a special day for {who}!"
        closing = "🎉 Today is the perfect day to reach out!"
    else:
        subject = f"🔔 {days_away}-Day Birthday Reminder for {org_name}: {count} upcoming"
        greeting = (
            f"You have {count} member birthday{'s' if count > 1 else ''} coming up "
            f"in the next {days_away} days."
        )
        closing = "⏰ Plan ahead and make their day special!"

    lines = []
    for m in members:
        when = "🎂 TODAY!" if m.days_until == 0 else f"in {m.days_until} day{'s' if m.days_until > 1 else ''}"
        turning = f" (turning {m.age})" if m.age else ""
        lines.append(f"• {m.full_name}{turning}: {m.birthday_date} ({when})")

    body = (
        f"Dear {leader_name},\n\n"
        f"{greeting} Don't forget to send them a birthday message and make them feel celebrated.\n\n"
        + "\n".join(lines)
        + "\n\nYou can send personalized birthday messages directly from the CareSphere app.\n\n"
        f"{closing}\n\n"
        "With love,\n"
        "The CareSphere Team"
    )
    return GeneratedBirthdayMessage(subject=subject, body=body)


class BirthdayService:
    """Birthday queries and notification fan-out"""

    def __init__(
        self,
        db: AsyncSession,
        email_service: Optional[EkdSendService] = None,
        sender_settings: Optional[SenderSettingsService] = None,
    ):
        self.db = db
        self.email_service = email_service or EkdSendService()
        self.sender_settings = sender_settings or SenderSettingsService(db)

    async def get_upcoming_birthdays(
        self,
        organization_id: str,
        window_days: int = 30,
        today: Optional[date] = None,
    ) -> UpcomingBirthdays:
        """Members whose next birthday is within `window_days`, split into today/upcoming"""
        today = today or date.today()
        result = await self.db.execute(
            select(Member)
            .where(
                Member.organization_id == organization_id,
                Member.date_of_birth.is_not(None),
                Member.member_status.in_(BIRTHDAY_STATUSES),
            )
            .order_by(Member.first_name.asc())
        )
        members = [to_birthday_member(m, today) for m in result.scalars().all()]
        within = sorted(
            (m for m in members if m.days_until <= window_days),
            key=lambda m: m.days_until,
        )
        return UpcomingBirthdays(
            today=[m for m in within if m.days_until == 0],
            upcoming=[m for m in within if m.days_until > 0],
            total=len(within),
        )

    async def get_org_leaders(self, organization_id: str) -> List[User]:
        """Active owners and active users holding a leader role, de-duplicated"""
        result = await self.db.execute(
            select(User)
            .join(OrganizationUser, OrganizationUser.user_id == User.id)
            .where(
                OrganizationUser.organization_id == organization_id,
                OrganizationUser.is_active.is_(True),
                or_(User.role.in_(LEADER_ROLES), OrganizationUser.is_owner.is_(True)),
            )
            .order_by(User.first_name.asc())
        )
        leaders: List[User] = []
        seen = set()
        for user in result.scalars().all():
            if user.id in seen:
                continue
            seen.add(user.id)
            leaders.append(user)
        return leaders

    async def send_birthday_alert_to_leader(
        self,
        leader_email: str,
        leader_name: str,
        org_name: str,
        members: List[BirthdayMember],
        days_away: int,
    ) -> Optional[SendResult]:
        if not members:
            return None
        alert = build_leader_alert(leader_name, org_name, members, days_away)
        return await self.email_service.send_email(leader_email, alert.subject, alert.body)

    async def notify_all(self, today: Optional[date] = None) -> NotifyRunResult:
        """
        Send birthday alerts and greetings for every active organization.

        Leaders are alerted about birthdays exactly 7 and 3 days away and
        about today's; members whose birthday is today receive a greeting.
        """
        today = today or date.today()
        # Rows rather than ORM instances; they stay readable after a rollback
        result = await self.db.execute(
            select(Organization.id, Organization.name, Organization.organization_type)
            .where(Organization.is_active.is_(True))
            .order_by(Organization.name)
        )
        organizations = list(result.all())
        logger.info(f"Processing birthday notifications for {len(organizations)} organizations")

        results: List[OrganizationNotifyResult] = []
        for org in organizations:
            try:
                results.append(await self._notify_organization(org, today))
            except Exception as e:
                await self.db.rollback()
                logger.error(f"Birthday notifications failed for org {org.id}: {str(e)}", exc_info=True)

        return NotifyRunResult(organizations=len(results), results=results)

    async def _notify_organization(self, org, today: date) -> OrganizationNotifyResult:
        birthdays = await self.get_upcoming_birthdays(org.id, window_days=max(ALERT_WINDOWS), today=today)
        leaders = [leader for leader in await self.get_org_leaders(org.id) if leader.email]
        sent = 0
        processed = len(birthdays.today)

        for window in ALERT_WINDOWS:
            due = [m for m in birthdays.upcoming if m.days_until == window]
            processed += len(due)
            sent += await self._alert_leaders(leaders, org.name, due, window)

        if birthdays.today:
            sent += await self._alert_leaders(leaders, org.name, birthdays.today, 0)

            sender = await self.sender_settings.resolve_sender_settings(organization_id=org.id)
            for member in birthdays.today:
                if not member.email:
                    continue
                message = generate_birthday_message(
                    recipient_name=member.full_name,
                    sender_name=org.name,
                    organization_type=org.organization_type,
                    channel="EMAIL",
                    age=member.age,
                )
                delivered = await best_effort(
                    self.email_service.send_email(
                        member.email,
                        message.subject,
                        message.body,
                        from_email=sender.default_from or None,
                        from_name=sender.default_from_name or None,
                    ),
                    f"birthday email to member {member.id}",
                )
                if delivered is not None:
                    sent += 1

        logger.info(f"Org {org.id}: {processed} birthdays processed, {sent} notifications sent")
        return OrganizationNotifyResult(
            organization_id=org.id,
            organization_name=org.name,
            processed=processed,
            notifications_sent=sent,
        )

    async def _alert_leaders(
        self,
        leaders: List[User],
        org_name: str,
        members: List[BirthdayMember],
        days_away: int,
    ) -> int:
        if not members:
            return 0
        sent = 0
        for leader in leaders:
            delivered = await best_effort(
                self.send_birthday_alert_to_leader(
                    leader_email=leader.email,
                    leader_name=leader.full_name,
                    org_name=org_name,
                    members=members,
                    days_away=days_away,
                ),
                f"{days_away}-day birthday alert to leader {leader.id}",
            )
            if delivered is not None:
                sent += 1
        return sent
