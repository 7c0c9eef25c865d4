"""
Scheduler Status API Endpoints

Monitor the optional in-process birthday job and trigger it by hand.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi import status as http_status

from caresphere.core.scheduler import scheduler
from caresphere.core.security import verify_cron_secret
from caresphere.schemas.common import DataResponse, ErrorResponse

router = APIRouter(prefix="/scheduler", tags=["scheduler"])


@router.get(
    "/status",
    response_model=DataResponse,
    responses={
        200: {"description": "Scheduler status retrieved successfully"},
        500: {"description": "Internal server error", "model": ErrorResponse}
    }
)
async def get_scheduler_status(history: int = Query(5, ge=0, le=50)):
    """
    Get status of the background scheduler

    Returns the scheduler state, its jobs with next run times and the
    most recent birthday job executions.
    """
    try:
        job_status = scheduler.get_job_status()
        job_history = await scheduler.get_recent_job_logs(limit=history) if history else []

        return DataResponse(data={
            "scheduler": job_status,
            "job_history": job_history,
        })

    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get scheduler status: {str(e)}"
        )


@router.post(
    "/trigger/birthdays",
    response_model=DataResponse,
    dependencies=[Depends(verify_cron_secret)],
    responses={
        200: {"description": "Job ran"},
        401: {"description": "Invalid cron secret", "model": ErrorResponse},
        500: {"description": "Internal server error", "model": ErrorResponse}
    }
)
async def trigger_birthday_job():
    """Run the birthday notification job now and return its execution record"""
    try:
        log_entry = await scheduler.run_birthday_job(triggered_manually=True)
        return DataResponse(
            data=log_entry.execution_summary,
            message=f"Birthday job finished with status {log_entry.status}"
        )
    except Exception as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to trigger job: {str(e)}"
        )
