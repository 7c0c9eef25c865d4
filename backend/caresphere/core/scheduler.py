"""
Background Job Scheduler

Optional in-process trigger for the birthday notification run, using
APScheduler. Disabled unless ENABLE_SCHEDULER is set; deployments that
call POST /api/v1/birthdays/notify from an external cron leave it off.
"""

import logging
from datetime import datetime
from typing import Optional, List
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR
from sqlalchemy import select, desc

from caresphere.core.config import settings
from caresphere.core.database import AsyncSessionLocal
from caresphere.models.job_execution_log import JobExecutionLog
from caresphere.services.birthday_service import BirthdayService

logger = logging.getLogger(__name__)

BIRTHDAY_JOB_ID = "birthday-notifications"


class BackgroundScheduler:
    """Manages background job scheduling"""

    def __init__(self, session_factory=AsyncSessionLocal):
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.session_factory = session_factory
        self.is_running = False

    async def start(self):
        """Start the background scheduler"""
        if self.is_running:
            return

        try:
            self.scheduler = AsyncIOScheduler(
                timezone='UTC',
                job_defaults={
                    'coalesce': True,  # Combine multiple pending executions into one
                    'max_instances': 1,  # Only one instance of each job at a time
                    'misfire_grace_time': 3600
                }
            )

            self.scheduler.add_listener(
                self._job_executed_listener,
                EVENT_JOB_EXECUTED
            )
            self.scheduler.add_listener(
                self._job_error_listener,
                EVENT_JOB_ERROR
            )

            self.scheduler.add_job(
                func=self.run_birthday_job,
                trigger=CronTrigger(hour=settings.BIRTHDAY_JOB_HOUR, minute=0),
                id=BIRTHDAY_JOB_ID,
                name='Daily Birthday Notifications',
                replace_existing=True
            )

            self.scheduler.start()
            self.is_running = True

            logger.info("Background scheduler started successfully")
            logger.info(f"Scheduled jobs: {[job.id for job in self.scheduler.get_jobs()]}")

        except Exception as e:
            logger.error(f"Failed to start background scheduler: {str(e)}", exc_info=True)
            raise

    async def stop(self):
        """Stop the background scheduler"""
        if not self.is_running or not self.scheduler:
            return

        try:
            self.scheduler.shutdown(wait=True)
            self.is_running = False
            logger.info("Background scheduler stopped successfully")

        except Exception as e:
            logger.error(f"Error stopping background scheduler: {str(e)}", exc_info=True)

    async def run_birthday_job(self, triggered_manually: bool = False) -> JobExecutionLog:
        """Run birthday notifications for all organizations and record the execution"""
        job_start = datetime.utcnow()
        logger.info("Starting birthday notification job")

        log_entry = JobExecutionLog(
            job_name=BIRTHDAY_JOB_ID,
            job_id=BIRTHDAY_JOB_ID,
            started_at=job_start,
            triggered_manually=triggered_manually
        )

        try:
            async with self.session_factory() as db:
                result = await BirthdayService(db).notify_all()

            job_end = datetime.utcnow()
            log_entry.completed_at = job_end
            log_entry.duration_seconds = (job_end - job_start).total_seconds()
            log_entry.organizations_processed = result.organizations
            log_entry.notifications_sent = result.notifications_sent
            log_entry.status = 'success'
            logger.info(
                f"Birthday notifications completed: "
                f"{result.organizations} organizations, "
                f"{result.notifications_sent} notifications, "
                f"{log_entry.duration_seconds:.1f}s"
            )

        except Exception as e:
            job_end = datetime.utcnow()
            log_entry.completed_at = job_end
            log_entry.duration_seconds = (job_end - job_start).total_seconds()
            log_entry.status = 'error'
            log_entry.error_message = str(e)
            logger.error(
                f"Birthday notification job failed after {log_entry.duration_seconds:.1f}s: {str(e)}",
                exc_info=True
            )

        finally:
            await self._save_job_log(log_entry)

        return log_entry

    def _job_executed_listener(self, event):
        """Listener for successful job executions"""
        logger.info(f"Job '{event.job_id}' executed successfully")

    def _job_error_listener(self, event):
        """Listener for job execution errors"""
        logger.error(
            f"Job '{event.job_id}' failed: {event.exception}",
            exc_info=event.exception
        )

    def get_job_status(self) -> dict:
        """Get status of all scheduled jobs"""
        if not self.scheduler:
            return {"status": "not_started", "jobs": []}

        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger)
            })

        return {
            "status": "running" if self.is_running else "stopped",
            "jobs": jobs,
        }

    async def _save_job_log(self, log_entry: JobExecutionLog):
        """Save job execution log to database"""
        try:
            async with self.session_factory() as db:
                db.add(log_entry)
                await db.commit()
                logger.debug(f"Saved job execution log: {log_entry.job_name} - {log_entry.status}")
        except Exception as e:
            logger.error(f"Failed to save job execution log: {str(e)}", exc_info=True)

    async def get_recent_job_logs(self, limit: int = 10) -> List[dict]:
        """Get recent job execution logs"""
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(JobExecutionLog)
                    .order_by(desc(JobExecutionLog.started_at))
                    .limit(limit)
                )
                logs = result.scalars().all()
                return [log.execution_summary for log in logs]
        except Exception as e:
            logger.error(f"Failed to get job logs: {str(e)}")
            return []


# Global scheduler instance
scheduler = BackgroundScheduler()
