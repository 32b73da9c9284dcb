"""
Bảo trì job ledger (chạy định kỳ cạnh queue processor):
- Job pending/in_progress quá STUCK_JOB_MINUTES -> failed ("Processing timeout - stuck in progress"),
  để campaign không bị khóa vĩnh viễn bởi ràng buộc một-job-active.
- Xóa job failed quá FAILED_JOB_RETENTION_DAYS, completed quá COMPLETED_JOB_RETENTION_DAYS.
- Xóa campaign_logs debug/info quá LOG_RETENTION_DAYS.
"""
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy import and_, delete, or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from autoblog.config import Settings, get_settings
from autoblog.logging_config import get_logger
from autoblog.models import CampaignLog, ContentJob
from autoblog.models.content_job import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
)
from autoblog.utils.timeutils import utcnow

logger = get_logger(__name__)

STUCK_JOB_ERROR = "Processing timeout - stuck in progress"
PURGEABLE_LOG_SEVERITIES = ("debug", "info")


async def fail_stuck_jobs(db: AsyncSession, stuck_minutes: int, now: Optional[datetime] = None) -> int:
    """Đánh dấu failed các job kẹt; trả về số row."""
    now = now or utcnow()
    cutoff = now - timedelta(minutes=stuck_minutes)
    r = await db.execute(
        update(ContentJob)
        .where(
            or_(
                and_(ContentJob.status == STATUS_IN_PROGRESS, ContentJob.started_at < cutoff),
                and_(ContentJob.status == STATUS_PENDING, ContentJob.scheduled_for < cutoff),
            )
        )
        .values(status=STATUS_FAILED, error_message=STUCK_JOB_ERROR, completed_at=now)
    )
    return r.rowcount or 0


async def purge_terminal_jobs(db: AsyncSession, status: str, retention_days: int, now: Optional[datetime] = None) -> int:
    """Xóa job terminal có completed_at cũ hơn retention_days."""
    now = now or utcnow()
    r = await db.execute(
        delete(ContentJob).where(
            ContentJob.status == status,
            ContentJob.completed_at < now - timedelta(days=retention_days),
        )
    )
    return r.rowcount or 0


async def purge_old_logs(db: AsyncSession, retention_days: int, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    r = await db.execute(
        delete(CampaignLog).where(
            CampaignLog.created_at < now - timedelta(days=retention_days),
            CampaignLog.severity.in_(PURGEABLE_LOG_SEVERITIES),
        )
    )
    return r.rowcount or 0


async def run_maintenance(
    db: AsyncSession,
    settings: Optional[Settings] = None,
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """Một vòng bảo trì; caller commit."""
    settings = settings or get_settings()
    now = now or utcnow()
    out = {
        "stuck_failed": await fail_stuck_jobs(db, settings.stuck_job_minutes, now),
        "failed_purged": await purge_terminal_jobs(db, STATUS_FAILED, settings.failed_job_retention_days, now),
        "completed_purged": await purge_terminal_jobs(db, STATUS_COMPLETED, settings.completed_job_retention_days, now),
        "logs_purged": await purge_old_logs(db, settings.log_retention_days, now),
    }
    if out["stuck_failed"]:
        logger.warning("maintenance.stuck_jobs_failed", count=out["stuck_failed"])
    logger.info("maintenance.done", **out)
    return out
