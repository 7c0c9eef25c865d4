"""
Birthday API endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from caresphere.core.database import get_db
from caresphere.core.security import get_current_user_id, verify_cron_secret
from caresphere.models.organization import OrganizationType
from caresphere.schemas.birthdays import BirthdayMessageRequest
from caresphere.schemas.common import DataResponse, ErrorResponse
from caresphere.services.birthday_service import BirthdayService, generate_birthday_message
from caresphere.services.organization_service import get_user_organization

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/birthdays", tags=["birthdays"])


def get_birthday_service(db: AsyncSession = Depends(get_db)) -> BirthdayService:
    """Dependency to get birthday service instance"""
    return BirthdayService(db)


@router.get(
    "/upcoming",
    response_model=DataResponse,
    responses={
        400: {"description": "Caller has no organization", "model": ErrorResponse},
        500: {"description": "Internal server error", "model": ErrorResponse}
    }
)
async def get_upcoming_birthdays(
    window_days: int = Query(30, ge=0, le=366, description="Look-ahead window in days"),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    service: BirthdayService = Depends(get_birthday_service),
):
    """Today's and upcoming member birthdays for the caller's organization"""
    try:
        organization = await get_user_organization(db, user_id)
        if not organization:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You must be part of an organization"
            )
        birthdays = await service.get_upcoming_birthdays(organization.id, window_days=window_days)
        return DataResponse(data=birthdays)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching upcoming birthdays: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )


@router.post("/message", response_model=DataResponse)
async def generate_message(
    request: BirthdayMessageRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Draft a birthday message; organization name and type default to the caller's"""
    organization = await get_user_organization(db, user_id)
    sender_name = request.sender_name or (organization.name if organization else "CareSphere")
    organization_type = request.organization_type or (
        organization.organization_type if organization else OrganizationType.OTHER
    )
    message = generate_birthday_message(
        recipient_name=request.recipient_name,
        sender_name=sender_name,
        organization_type=organization_type,
        channel=request.channel,
        age=request.age,
    )
    return DataResponse(data=message)


@router.post(
    "/notify",
    response_model=DataResponse,
    dependencies=[Depends(verify_cron_secret)],
    responses={
        401: {"description": "Invalid cron secret", "model": ErrorResponse},
        500: {"description": "Internal server error", "model": ErrorResponse}
    }
)
async def notify_birthdays(service: BirthdayService = Depends(get_birthday_service)):
    """
    Run birthday notifications for every active organization

    Intended for an external daily cron. Individual send failures are
    logged and skipped; the totals report what was actually sent.
    """
    try:
        result = await service.notify_all()
        return DataResponse(
            data={
                "organizations": result.organizations,
                "notifications_sent": result.notifications_sent,
                "results": result.results,
            },
            message=f"Processed {result.organizations} organizations"
        )
    except Exception as e:
        logger.error(f"Birthday notification run failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )
