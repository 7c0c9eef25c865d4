"""
Organization lookups for the caller of a request
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from caresphere.models.organization import Organization, OrganizationUser
from caresphere.models.user import ADMIN_ROLES, User

logger = logging.getLogger(__name__)


async def get_user_organization(db: AsyncSession, user_id: str) -> Optional[Organization]:
    """The user's first active organization membership, if any"""
    result = await db.execute(
        select(Organization)
        .join(OrganizationUser, OrganizationUser.organization_id == Organization.id)
        .where(
            OrganizationUser.user_id == user_id,
            OrganizationUser.is_active.is_(True),
            Organization.is_active.is_(True),
        )
        .order_by(OrganizationUser.created_at.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def is_org_admin(db: AsyncSession, user_id: str, organization_id: str) -> bool:
    """Owners and users with an admin role administer the organization"""
    result = await db.execute(
        select(OrganizationUser.is_owner, User.role)
        .join(User, User.id == OrganizationUser.user_id)
        .where(
            OrganizationUser.user_id == user_id,
            OrganizationUser.organization_id == organization_id,
            OrganizationUser.is_active.is_(True),
        )
    )
    row = result.first()
    if row is None:
        return False
    return bool(row.is_owner) or row.role in ADMIN_ROLES


async def user_has_role(db: AsyncSession, user_id: str, *roles: str) -> bool:
    user = await db.get(User, user_id)
    return user is not None and user.role in roles
