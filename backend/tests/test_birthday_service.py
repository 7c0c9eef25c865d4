"""
Tests for birthday date math, message generation and the notification run
"""

from datetime import date

import httpx
import pytest

from caresphere.models.organization import OrganizationType
from caresphere.models.sender_setting import SettingScope
from caresphere.schemas.birthdays import BirthdayMember
from caresphere.services.birthday_service import (
    BirthdayService,
    birthday_in_year,
    build_leader_alert,
    days_until_birthday,
    generate_birthday_message,
    next_birthday,
)
from caresphere.services.settings_service import SenderSettingsService

from conftest import (
    RecordingTransport,
    accepting_send_transport,
    make_email_service,
    seed_member,
    seed_organization,
    seed_user,
)

TODAY = date(2025, 3, 1)


class TestBirthdayMath:

    def test_birthday_today_is_zero_days(self):
        assert days_until_birthday(date(1990, 3, 1), TODAY) == 0

    def test_birthday_tomorrow(self):
        assert days_until_birthday(date(1990, 3, 2), TODAY) == 1

    def test_birthday_already_passed_rolls_to_next_year(self):
        assert next_birthday(date(1990, 2, 27), TODAY) == date(2026, 2, 27)
        assert days_until_birthday(date(1990, 2, 27), TODAY) == 363

    def test_leap_day_maps_to_feb_28_in_common_years(self):
        assert birthday_in_year(date(2000, 2, 29), 2025) == date(2025, 2, 28)
        assert birthday_in_year(date(2000, 2, 29), 2024) == date(2024, 2, 29)
        assert days_until_birthday(date(2000, 2, 29), date(2025, 2, 28)) == 0
        assert days_until_birthday(date(2000, 2, 29), date(2024, 2, 29)) == 0

    def test_year_end_wraparound(self):
        assert days_until_birthday(date(1990, 1, 2), date(2024, 12, 31)) == 2


class TestMessages:

    def test_church_email(self):
        message = generate_birthday_message("Grace Hopper", "Grace Chapel", OrganizationType.CHURCH, "EMAIL", age=40)

        assert "Grace" in message.subject
        assert message.body.startswith("Dear Grace Hopper,")
        assert "40 amazing years" in message.body
        assert message.body.rstrip().endswith("Grace Chapel")

    def test_church_sms_quotes_scripture_reference_only(self):
        message = generate_birthday_message("Grace Hopper", "Grace Chapel", OrganizationType.CHURCH, "SMS")

        assert message.subject == "Happy Birthday from Grace Chapel"
        assert "Happy Birthday, Grace!" in message.body
        assert " - " not in message.body

    def test_nonprofit_email(self):
        message = generate_birthday_message("Alan Turing", "Code Club", OrganizationType.NONPROFIT, age=30)

        assert message.subject == "Happy Birthday, Alan! 🎂 From all of us at Code Club"
        assert "Congratulations on turning 30!" in message.body
        assert "The Code Club Team" in message.body

    def test_other_email_without_age(self):
        message = generate_birthday_message("Ada Lovelace", "Analytical Society", OrganizationType.OTHER)

        assert message.subject == "Happy Birthday, Ada! 🎂"
        assert "wonderful years" not in message.body

    def test_leader_alert_for_today(self):
        member = BirthdayMember(
            id="m1", first_name="Ada", full_name="Ada Member", date_of_birth=date(1990, 3, 1),
            days_until=0, birthday_date="March 1", age=35,
        )
        alert = build_leader_alert("Pastor John", "Grace Chapel", [member], 0)

        assert alert.subject == "🎂 Today's Birthdays in Grace Chapel: 1 member"
        assert "Ada Member (turning 35): March 1 (🎂 TODAY!)" in alert.body

    def test_leader_alert_for_upcoming(self):
        members = [
            BirthdayMember(id=f"m{i}", first_name="M", full_name=f"M {i}", date_of_birth=date(1990, 3, 8),
                           days_until=7, birthday_date="March 8")
            for i in range(2)
        ]
        alert = build_leader_alert("Pastor John", "Grace Chapel", members, 7)

        assert alert.subject == "🔔 7-Day Birthday Reminder for Grace Chapel: 2 upcoming"
        assert "in 7 days" in alert.body


class TestQueries:

    @pytest.mark.asyncio
    async def test_upcoming_birthdays_split_and_filter(self, db):
        organization = await seed_organization(db)
        await seed_member(db, organization, "Today", date(1990, 3, 1))
        await seed_member(db, organization, "Soon", date(1985, 3, 4))
        await seed_member(db, organization, "Later", date(1980, 5, 1))
        await seed_member(db, organization, "Inactive", date(1990, 3, 2), member_status="INACTIVE")
        await seed_member(db, organization, "Unknown", None)
        service = BirthdayService(db, email_service=make_email_service(accepting_send_transport()))

        result = await service.get_upcoming_birthdays(organization.id, window_days=30, today=TODAY)

        assert [m.first_name for m in result.today] == ["Today"]
        assert [m.first_name for m in result.upcoming] == ["Soon"]
        assert result.total == 2
        assert result.today[0].age == 35
        assert result.upcoming[0].days_until == 3
        assert result.upcoming[0].birthday_date == "March 4"

    @pytest.mark.asyncio
    async def test_org_leaders(self, db):
        organization = await seed_organization(db)
        admin = await seed_user(db, organization, "Admin", "admin@example.com", role="ADMIN")
        owner = await seed_user(db, organization, "Owner", "owner@example.com", role="MEMBER", is_owner=True)
        await seed_user(db, organization, "Plain", "plain@example.com", role="MEMBER")
        other_org = await seed_organization(db, name="Other")
        await seed_user(db, other_org, "Elsewhere", "elsewhere@example.com", role="ADMIN")
        service = BirthdayService(db, email_service=make_email_service(accepting_send_transport()))

        leaders = await service.get_org_leaders(organization.id)

        assert {leader.id for leader in leaders} == {admin.id, owner.id}

    @pytest.mark.asyncio
    async def test_alert_with_no_members_sends_nothing(self, db):
        transport = accepting_send_transport()
        service = BirthdayService(db, email_service=make_email_service(transport))

        result = await service.send_birthday_alert_to_leader("a@example.com", "A", "Org", [], 3)

        assert result is None
        assert transport.call_count == 0


async def seed_church_with_birthdays(db, name="Grace Chapel"):
    organization = await seed_organization(db, name=name)
    await seed_user(db, organization, "Admin", f"admin@{name[:5].lower()}.test", role="ADMIN")
    await seed_user(db, organization, "Owner", f"owner@{name[:5].lower()}.test", is_owner=True)
    await seed_member(db, organization, "Birthday", date(1990, 3, 1), email=f"birthday@{name[:5].lower()}.test")
    await seed_member(db, organization, "Three", date(1985, 3, 4))
    await seed_member(db, organization, "Seven", date(1980, 3, 8))
    await seed_member(db, organization, "Four", date(1992, 3, 5))
    return organization


class TestNotifyAll:

    @pytest.mark.asyncio
    async def test_alerts_leaders_and_greets_members(self, db):
        await seed_church_with_birthdays(db)
        transport = accepting_send_transport()
        service = BirthdayService(db, email_service=make_email_service(transport))

        result = await service.notify_all(today=TODAY)

        # 2 leaders x (7-day, 3-day, today) alerts + 1 member greeting
        assert result.organizations == 1
        assert result.notifications_sent == 7
        assert result.results[0].processed == 3
        assert transport.call_count == 7
        recipients = [body["to"] for body in transport.json_bodies()]
        assert "birthday@grace.test" in recipients

    @pytest.mark.asyncio
    async def test_member_greeting_uses_organization_sender(self, db):
        organization = await seed_church_with_birthdays(db)
        await SenderSettingsService(db).create_or_update_sender_setting(
            SettingScope.ORGANIZATION,
            organization.id,
            {"sender_email": "hello@grace.test", "sender_name": "Grace Chapel Office"},
        )
        transport = accepting_send_transport()
        service = BirthdayService(db, email_service=make_email_service(transport))

        await service.notify_all(today=TODAY)

        greeting = next(b for b in transport.json_bodies() if b["to"] == "birthday@grace.test")
        assert greeting["from"] == "hello@grace.test"
        assert greeting["fromName"] == "Grace Chapel Office"

    @pytest.mark.asyncio
    async def test_failed_send_is_skipped(self, db):
        await seed_church_with_birthdays(db)

        def handler(request: httpx.Request) -> httpx.Response:
            if b"admin@grace.test" in request.content:
                return httpx.Response(500, json={"success": False, "error": {"code": "SERVER", "message": "down"}})
            return httpx.Response(200, json={"success": True, "messageId": "ok"})

        transport = RecordingTransport(handler)
        service = BirthdayService(db, email_service=make_email_service(transport))

        result = await service.notify_all(today=TODAY)

        assert transport.call_count == 7
        assert result.notifications_sent == 4

    @pytest.mark.asyncio
    async def test_failing_organization_does_not_stop_the_run(self, db):
        broken = await seed_church_with_birthdays(db, name="Broken Church")
        await seed_church_with_birthdays(db, name="Healthy Church")
        transport = accepting_send_transport()
        service = BirthdayService(db, email_service=make_email_service(transport))
        broken_id = broken.id
        real_get_leaders = service.get_org_leaders

        async def get_leaders(organization_id):
            if organization_id == broken_id:
                raise RuntimeError("database hiccup")
            return await real_get_leaders(organization_id)

        service.get_org_leaders = get_leaders

        result = await service.notify_all(today=TODAY)

        assert result.organizations == 1
        assert result.results[0].organization_name == "Healthy Church"
        assert result.notifications_sent == 7

    @pytest.mark.asyncio
    async def test_inactive_organizations_are_skipped(self, db):
        organization = await seed_organization(db, name="Closed", is_active=False)
        await seed_member(db, organization, "Birthday", date(1990, 3, 1), email="b@closed.test")
        transport = accepting_send_transport()
        service = BirthdayService(db, email_service=make_email_service(transport))

        result = await service.notify_all(today=TODAY)

        assert result.organizations == 0
        assert transport.call_count == 0
