"""
Job Execution Log Model

Tracks the execution history of scheduled jobs for monitoring.
"""

from sqlalchemy import Column, String, DateTime, Integer, Float, Text, Boolean
from caresphere.core.database import Base
import uuid
from datetime import datetime


class JobExecutionLog(Base):
    """Log entries for scheduled job executions"""
    __tablename__ = "job_execution_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)

    # Job identification
    job_name = Column(String(100), nullable=False, index=True)
    job_id = Column(String(100), nullable=False)

    # Execution timing
    started_at = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    duration_seconds = Column(Float, nullable=True)

    # Execution results
    status = Column(String(20), nullable=False, index=True)  # 'success', 'error'
    error_message = Column(Text, nullable=True)

    # Processing metrics (birthday notification runs)
    organizations_processed = Column(Integer, default=0)
    notifications_sent = Column(Integer, default=0)

    # Metadata
    triggered_manually = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<JobExecutionLog(job_name='{self.job_name}', status='{self.status}', duration={self.duration_seconds}s)>"

    @property
    def execution_summary(self) -> dict:
        """Return a summary of the job execution"""
        return {
            "job_name": self.job_name,
            "status": self.status,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "organizations_processed": self.organizations_processed,
            "notifications_sent": self.notifications_sent,
            "error_message": self.error_message,
            "triggered_manually": self.triggered_manually
        }
