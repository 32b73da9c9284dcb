"""
Job ledger (bảng content_jobs): tạo job, chuyển trạng thái, ghi nội dung / ảnh / kết quả publish / lỗi.
- Tối đa 1 job pending|in_progress cho mỗi campaign (create_job raise JobAlreadyActiveError).
- Job terminal (completed|failed) không bao giờ bị sửa: update chỉ match row chưa terminal.
- Thống kê 7 ngày + recent activity cho dashboard.
"""
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from autoblog.db import async_session_factory
from autoblog.errors import JobAlreadyActiveError, LedgerWriteError
from autoblog.logging_config import get_logger
from autoblog.models import Campaign, ContentJob, WordPressSite
from autoblog.models.content_job import (
    ACTIVE_STATUSES,
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    TERMINAL_STATUSES,
)
from autoblog.services.interfaces import GeneratedContent, PublishResult
from autoblog.utils.timeutils import utcnow

logger = get_logger(__name__)

ALL_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_FAILED)
TITLE_MAX_LEN = 500
STATS_WINDOW_DAYS = 7


class SqlJobLedger:
    """JobLedger trên bảng content_jobs."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    async def create_job(self, campaign_id: UUID, content_type: Optional[str] = None) -> UUID:
        """Insert job pending. Campaign đã có job chưa terminal -> JobAlreadyActiveError."""
        try:
            async with self._session_factory() as db:
                r = await db.execute(
                    select(ContentJob.id).where(
                        ContentJob.campaign_id == campaign_id,
                        ContentJob.status.in_(ACTIVE_STATUSES),
                    )
                )
                if r.first() is not None:
                    raise JobAlreadyActiveError(campaign_id)
                job = ContentJob(
                    campaign_id=campaign_id,
                    status=STATUS_PENDING,
                    content_type=content_type,
                    scheduled_for=self._clock(),
                )
                db.add(job)
                await db.commit()
                return job.id
        except IntegrityError as e:
            # Unique index partial bắt race giữa check và insert.
            raise JobAlreadyActiveError(campaign_id) from e
        except (SQLAlchemyError, OSError) as e:
            raise LedgerWriteError(f"could not create job for campaign {campaign_id}: {e}") from e

    async def _update(self, job_id: UUID, **values: Any) -> None:
        try:
            async with self._session_factory() as db:
                r = await db.execute(
                    update(ContentJob)
                    .where(
                        ContentJob.id == job_id,
                        ContentJob.status.notin_(TERMINAL_STATUSES),
                    )
                    .values(**values)
                )
                await db.commit()
        except (SQLAlchemyError, OSError) as e:
            raise LedgerWriteError(f"could not update job {job_id}: {e}") from e
        if r.rowcount == 0:
            raise LedgerWriteError(f"job {job_id} not found or already terminal")

    async def set_status(self, job_id: UUID, status: str) -> None:
        """Chỉ pending/in_progress; terminal đi qua set_published / set_failed."""
        if status not in ACTIVE_STATUSES:
            raise ValueError(f"set_status only accepts {ACTIVE_STATUSES}, got {status!r}")
        values: Dict[str, Any] = {"status": status}
        if status == STATUS_IN_PROGRESS:
            values["started_at"] = self._clock()
        await self._update(job_id, **values)

    async def set_content(self, job_id: UUID, content: GeneratedContent) -> None:
        await self._update(
            job_id,
            title=(content.title or "")[:TITLE_MAX_LEN],
            keywords=list(content.keywords),
            generated_content=content.to_payload(),
        )

    async def set_image(self, job_id: UUID, image_url: str) -> None:
        await self._update(job_id, featured_image_url=image_url)

    async def set_published(self, job_id: UUID, result: PublishResult) -> None:
        await self._update(
            job_id,
            status=STATUS_COMPLETED,
            remote_post_id=str(result.remote_post_id),
            remote_post_url=result.remote_post_url,
            error_message=None,
            completed_at=self._clock(),
        )

    async def set_failed(self, job_id: UUID, error_message: str) -> None:
        await self._update(
            job_id,
            status=STATUS_FAILED,
            error_message=error_message,
            completed_at=self._clock(),
        )

    async def get_job(self, job_id: UUID) -> Optional[ContentJob]:
        async with self._session_factory() as db:
            r = await db.execute(select(ContentJob).where(ContentJob.id == job_id))
            return r.scalar_one_or_none()

    async def list_jobs(self, campaign_id: UUID) -> List[ContentJob]:
        """Job của campaign, cũ nhất trước."""
        async with self._session_factory() as db:
            r = await db.execute(
                select(ContentJob)
                .where(ContentJob.campaign_id == campaign_id)
                .order_by(ContentJob.scheduled_for.asc())
            )
            return list(r.scalars().all())


async def get_queue_stats(db: AsyncSession, within_days: int = STATS_WINDOW_DAYS) -> Dict[str, int]:
    """Đếm job theo status trong within_days ngày gần nhất; status không có row = 0."""
    since = utcnow() - timedelta(days=within_days)
    r = await db.execute(
        select(ContentJob.status, func.count(ContentJob.id))
        .where(ContentJob.scheduled_for >= since)
        .group_by(ContentJob.status)
    )
    stats = {s: 0 for s in ALL_STATUSES}
    for status, count in r.all():
        stats[status] = int(count)
    return stats


async def get_recent_activity(db: AsyncSession, limit: int = 10) -> List[Dict[str, Any]]:
    """Job mới nhất kèm topic campaign và tên site (nếu còn)."""
    q = (
        select(ContentJob, Campaign.topic, WordPressSite.site_name)
        .join(Campaign, Campaign.id == ContentJob.campaign_id)
        .outerjoin(WordPressSite, WordPressSite.id == Campaign.wordpress_site_id)
        .order_by(ContentJob.scheduled_for.desc())
        .limit(limit)
    )
    r = await db.execute(q)
    return [
        {
            "id": job.id,
            "campaign_id": job.campaign_id,
            "status": job.status,
            "title": job.title,
            "content_type": job.content_type,
            "remote_post_url": job.remote_post_url,
            "error_message": job.error_message,
            "scheduled_for": job.scheduled_for,
            "completed_at": job.completed_at,
            "campaign_topic": topic,
            "site_name": site_name,
        }
        for job, topic, site_name in r.all()
    ]
