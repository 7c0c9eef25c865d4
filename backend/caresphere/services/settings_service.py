"""
Sender Settings Service

Sender identities can be overridden per user, per organization or
globally. Resolution order: user > organization > global > env.

The whole row of the first scope that has one wins. Fields left null on
that row fall back to the static defaults, not to the next scope down.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from caresphere.core.config import Settings, settings
from caresphere.core.errors import ValidationError
from caresphere.models.sender_setting import SenderSetting, SettingScope
from caresphere.schemas.settings import ResolvedSenderSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SenderDefaults:
    """Static sender configuration used when no stored setting supplies a value"""
    sender_id: str = ""
    default_from: str = ""
    default_from_name: str = ""
    sms_from: str = ""
    voice_from: str = ""

    @classmethod
    def from_settings(cls, config: Settings) -> "SenderDefaults":
        return cls(
            sender_id=config.SENDER_ID,
            default_from=config.DEFAULT_FROM_EMAIL,
            default_from_name=config.DEFAULT_FROM_NAME,
            sms_from=config.DEFAULT_SMS_FROM,
            voice_from=config.DEFAULT_VOICE_FROM,
        )


def _reference_for(scope: SettingScope, reference_id: Optional[str]) -> Optional[str]:
    if scope == SettingScope.GLOBAL:
        return None
    if not reference_id:
        raise ValidationError(f"reference_id is required for {scope.value} scope")
    return reference_id


class SenderSettingsService:
    """CRUD and precedence resolution for sender settings"""

    def __init__(self, db: AsyncSession, defaults: Optional[SenderDefaults] = None):
        self.db = db
        self.defaults = defaults or SenderDefaults.from_settings(settings)

    async def get_sender_setting(
        self,
        scope: SettingScope,
        reference_id: Optional[str] = None,
    ) -> Optional[SenderSetting]:
        reference = None if scope == SettingScope.GLOBAL else reference_id
        if scope != SettingScope.GLOBAL and not reference:
            return None
        return await self._find(scope, reference)

    async def create_or_update_sender_setting(
        self,
        scope: SettingScope,
        reference_id: Optional[str],
        data: Dict[str, Any],
    ) -> SenderSetting:
        reference = _reference_for(scope, reference_id)
        setting = await self._find(scope, reference)

        if setting:
            for field, value in data.items():
                setattr(setting, field, value)
            logger.info(f"Updated {scope.value} sender setting {reference or '(global)'}")
        else:
            setting = SenderSetting(scope=scope, reference_id=reference, **data)
            self.db.add(setting)
            logger.info(f"Created {scope.value} sender setting {reference or '(global)'}")

        await self.db.commit()
        await self.db.refresh(setting)
        return setting

    async def delete_sender_setting(self, scope: SettingScope, reference_id: Optional[str] = None) -> bool:
        setting = await self.get_sender_setting(scope, reference_id)
        if not setting:
            return False
        await self.db.delete(setting)
        await self.db.commit()
        logger.info(f"Deleted {scope.value} sender setting {setting.reference_id or '(global)'}")
        return True

    async def resolve_sender_settings(
        self,
        user_id: Optional[str] = None,
        organization_id: Optional[str] = None,
    ) -> ResolvedSenderSettings:
        """Most specific sender identity for a user/organization context"""
        setting: Optional[SenderSetting] = None
        resolved_scope = "env"

        if user_id:
            setting = await self._find(SettingScope.USER, user_id)
            if setting:
                resolved_scope = "user"

        if not setting and organization_id:
            setting = await self._find(SettingScope.ORGANIZATION, organization_id)
            if setting:
                resolved_scope = "organization"

        if not setting:
            setting = await self._find(SettingScope.GLOBAL, None)
            if setting:
                resolved_scope = "global"

        defaults = self.defaults
        return ResolvedSenderSettings(
            sender_id=defaults.sender_id,
            default_from=_or_default(setting, "sender_email", defaults.default_from),
            default_from_name=_or_default(setting, "sender_name", defaults.default_from_name),
            sms_from=_or_default(setting, "sender_phone", defaults.sms_from),
            voice_from=defaults.voice_from,
            resolved_scope=resolved_scope,
        )

    async def _find(self, scope: SettingScope, reference_id: Optional[str]) -> Optional[SenderSetting]:
        query = select(SenderSetting).where(SenderSetting.scope == scope)
        if reference_id is None:
            query = query.where(SenderSetting.reference_id.is_(None))
        else:
            query = query.where(SenderSetting.reference_id == reference_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none()


def _or_default(setting: Optional[SenderSetting], field: str, default: str) -> str:
    if setting is None:
        return default
    value = getattr(setting, field)
    return default if value is None else value
