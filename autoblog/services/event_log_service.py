"""
Event sink: ghi campaign_logs (audit trail cho dashboard / activity feed).
record() là fire-and-forget: lỗi ghi log chỉ được log lại, không bao giờ raise ra pipeline.
"""
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from autoblog.db import async_session_factory
from autoblog.logging_config import get_logger
from autoblog.models import CampaignLog

logger = get_logger(__name__)

EVENT_CONTENT_PUBLISHED = "content_published"
EVENT_CONTENT_FAILED = "content_generation_failed"
EVENT_SCHEDULE_ERROR = "schedule_error"

SEVERITIES = ("debug", "info", "warn", "error", "fatal")


class SqlEventSink:
    """EventSink trên bảng campaign_logs."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = async_session_factory) -> None:
        self._session_factory = session_factory

    async def record(
        self,
        campaign_id: Optional[UUID],
        event_type: str,
        message: str,
        severity: str = "info",
        metadata_: Optional[Dict[str, Any]] = None,
    ) -> None:
        if severity not in SEVERITIES:
            severity = "info"
        try:
            async with self._session_factory() as db:
                db.add(
                    CampaignLog(
                        campaign_id=campaign_id,
                        event_type=event_type,
                        message=message,
                        severity=severity,
                        metadata_=metadata_ or {},
                    )
                )
                await db.commit()
        except Exception as e:
            logger.warning(
                "event_log.record_failed",
                campaign_id=str(campaign_id) if campaign_id else None,
                event_type=event_type,
                error=str(e),
            )


async def list_campaign_logs(
    db: AsyncSession,
    campaign_id: Optional[UUID] = None,
    limit: int = 50,
) -> List[CampaignLog]:
    """Event log mới nhất trước; campaign_id=None lấy tất cả."""
    q = select(CampaignLog).order_by(CampaignLog.created_at.desc()).limit(limit)
    if campaign_id is not None:
        q = q.where(CampaignLog.campaign_id == campaign_id)
    r = await db.execute(q)
    return list(r.scalars().all())
