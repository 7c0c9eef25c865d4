"""
Sender settings API endpoints

Administrators manage sender identities at user, organization or global
scope. Any authenticated user can see the identity resolved for them.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from caresphere.core.database import get_db
from caresphere.core.errors import CareSphereError
from caresphere.core.security import get_current_user_id
from caresphere.models.sender_setting import SettingScope
from caresphere.models.user import ADMIN_ROLES
from caresphere.schemas.common import DataResponse, ErrorResponse
from caresphere.schemas.settings import SenderSettingDelete, SenderSettingResponse, SenderSettingUpsert
from caresphere.services.organization_service import get_user_organization, user_has_role
from caresphere.services.settings_service import SenderSettingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


def get_settings_service(db: AsyncSession = Depends(get_db)) -> SenderSettingsService:
    """Dependency to get sender settings service instance"""
    return SenderSettingsService(db)


async def require_admin(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> str:
    """Only SUPER_ADMIN and ADMIN users manage sender settings"""
    if not await user_has_role(db, user_id, *ADMIN_ROLES):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required"
        )
    return user_id


@router.get(
    "/senders",
    response_model=DataResponse,
    responses={
        403: {"description": "Administrator access required", "model": ErrorResponse},
        500: {"description": "Internal server error", "model": ErrorResponse}
    }
)
async def get_sender_setting(
    scope: SettingScope = Query(...),
    reference_id: Optional[str] = Query(None),
    user_id: str = Depends(require_admin),
    service: SenderSettingsService = Depends(get_settings_service),
):
    """Stored sender setting for one scope, or null if none is stored"""
    try:
        setting = await service.get_sender_setting(scope, reference_id)
        data = SenderSettingResponse.model_validate(setting) if setting else None
        return DataResponse(data=data)
    except Exception as e:
        logger.error(f"Error fetching sender setting: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )


@router.post(
    "/senders",
    response_model=DataResponse,
    responses={
        400: {"description": "Invalid scope or reference", "model": ErrorResponse},
        403: {"description": "Administrator access required", "model": ErrorResponse},
        500: {"description": "Internal server error", "model": ErrorResponse}
    }
)
async def upsert_sender_setting(
    payload: SenderSettingUpsert,
    user_id: str = Depends(require_admin),
    service: SenderSettingsService = Depends(get_settings_service),
):
    """Create or update the sender setting for a scope"""
    try:
        data = payload.model_dump(exclude={"scope", "reference_id"}, exclude_unset=True)
        setting = await service.create_or_update_sender_setting(payload.scope, payload.reference_id, data)
        return DataResponse(
            data=SenderSettingResponse.model_validate(setting),
            message="Sender setting saved"
        )
    except CareSphereError:
        raise
    except Exception as e:
        logger.error(f"Error saving sender setting: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )


@router.delete(
    "/senders",
    response_model=DataResponse,
    responses={
        403: {"description": "Administrator access required", "model": ErrorResponse},
        404: {"description": "Sender setting not found", "model": ErrorResponse}
    }
)
async def delete_sender_setting(
    payload: SenderSettingDelete,
    user_id: str = Depends(require_admin),
    service: SenderSettingsService = Depends(get_settings_service),
):
    deleted = await service.delete_sender_setting(payload.scope, payload.reference_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sender setting not found")
    return DataResponse(data={"deleted": True}, message="Sender setting deleted")


@router.get("/senders/resolved", response_model=DataResponse)
async def get_resolved_sender(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    service: SenderSettingsService = Depends(get_settings_service),
):
    """Sender identity that messages sent on the caller's behalf will use"""
    organization = await get_user_organization(db, user_id)
    resolved = await service.resolve_sender_settings(
        user_id=user_id,
        organization_id=organization.id if organization else None,
    )
    return DataResponse(data=resolved)
