"""
Pytest configuration and fixtures for the CareSphere backend tests

Services run against a throwaway SQLite file created from the ORM
metadata. Remote APIs (YouVersion, EKDSend) are replaced with
httpx.MockTransport handlers, so no test touches the network.
"""

import json
import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Add the backend directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from caresphere.core.database import Base
from caresphere.core.tasks import drain_background_tasks
from caresphere.models import Member, Organization, OrganizationType, OrganizationUser, User
from caresphere.services.messaging_service import EkdSendService
from caresphere.services.youversion_client import YouVersionClient


class FakeClock:
    """Settable clock for cache expiry tests"""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled"""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def json_bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


def json_transport(routes: Dict[str, Any], status_code: int = 200) -> RecordingTransport:
    """Serve `routes[path]` as JSON; unknown paths answer 404"""

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        for suffix, body in routes.items():
            if path.endswith(suffix):
                return httpx.Response(status_code, json=body)
        return httpx.Response(404, json={"message": "not found"})

    return RecordingTransport(handler)


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite engine with all tables created

    A file rather than :memory: gives every session its own connection,
    as PostgreSQL does.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'caresphere_test.db'}",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await drain_background_tasks()
        await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def verse_payload() -> Dict[str, Any]:
    return {
        "id": "JHN.3.16",
        "reference": "John 3:16",
        "content": "For God so loved the world...",
        "version_id": 1,
        "version_abbreviation": "KJV",
    }


@pytest.fixture
def votd_payload() -> Dict[str, Any]:
    return {
        "day": {
            "day": "2025-03-01",
            "reference": "Psalm 23:1",
            "verse": {
                "id": "PSA.23.1",
                "reference": "Psalm 23:1",
                "content": "The LORD is my shepherd; I shall not want.",
                "version_id": 1,
            },
        }
    }


def make_client(transport: httpx.MockTransport, api_key: str = "yv-test-key") -> YouVersionClient:
    return YouVersionClient(api_key=api_key, base_url="https://yv.test/v1", transport=transport)


def make_email_service(transport: httpx.MockTransport, api_key: str = "ekd-test-key") -> EkdSendService:
    return EkdSendService(api_key=api_key, api_url="https://ekd.test/api/v1", timeout=5, transport=transport)


def accepting_send_transport() -> RecordingTransport:
    """EKDSend stub that accepts every message"""
    counter = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        counter["n"] += 1
        return httpx.Response(
            202,
            json={"success": True, "messageId": f"msg-{counter['n']}", "queuedAt": "2025-03-01T07:00:00Z"},
        )

    return RecordingTransport(handler)


async def seed_organization(
    db: AsyncSession,
    name: str = "Grace Chapel",
    organization_type: OrganizationType = OrganizationType.CHURCH,
    bible_enabled: bool = True,
    is_active: bool = True,
) -> Organization:
    organization = Organization(
        name=name,
        organization_type=organization_type,
        bible_enabled=bible_enabled,
        is_active=is_active,
    )
    db.add(organization)
    await db.commit()
    await db.refresh(organization)
    return organization


async def seed_user(
    db: AsyncSession,
    organization: Optional[Organization] = None,
    first_name: str = "Ada",
    email: Optional[str] = "ada@example.com",
    role: str = "MEMBER",
    is_owner: bool = False,
) -> User:
    user = User(first_name=first_name, last_name="Leader", email=email, role=role)
    db.add(user)
    await db.flush()
    if organization is not None:
        db.add(OrganizationUser(organization_id=organization.id, user_id=user.id, is_owner=is_owner))
    await db.commit()
    await db.refresh(user)
    return user


async def seed_member(
    db: AsyncSession,
    organization: Organization,
    first_name: str,
    date_of_birth: Optional[date],
    email: Optional[str] = None,
    member_status: str = "ACTIVE",
) -> Member:
    member = Member(
        organization_id=organization.id,
        first_name=first_name,
        last_name="Member",
        email=email,
        date_of_birth=date_of_birth,
        member_status=member_status,
    )
    db.add(member)
    await db.commit()
    await db.refresh(member)
    return member
