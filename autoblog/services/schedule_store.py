"""
Schedule store (SQL): campaign đến hạn + ghi next_publish_at.
Query due: status=active, có wordpress_site_id, site is_active, next_publish_at <= now; cũ nhất trước.
"""
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from autoblog.db import async_session_factory
from autoblog.errors import DiscoveryError, LedgerWriteError
from autoblog.logging_config import get_logger
from autoblog.models import Campaign, WordPressSite
from autoblog.services.interfaces import CampaignSnapshot, SiteSnapshot
from autoblog.utils.timeutils import ensure_utc, utcnow

logger = get_logger(__name__)

STATUS_ACTIVE = "active"


def site_snapshot(site: WordPressSite) -> SiteSnapshot:
    return SiteSnapshot(
        id=site.id,
        site_name=site.site_name,
        site_url=site.site_url,
        api_endpoint=site.api_endpoint,
        username=site.username,
        password_encrypted=site.password_encrypted,
        is_active=bool(site.is_active),
    )


def campaign_snapshot(campaign: Campaign, site: Optional[WordPressSite] = None) -> CampaignSnapshot:
    """Bản sao bất biến của campaign (+ site) để processor dùng ngoài session."""
    hours = campaign.schedule_hours
    return CampaignSnapshot(
        id=campaign.id,
        topic=campaign.topic,
        context=campaign.context or "",
        tone_of_voice=campaign.tone_of_voice or "conversational",
        writing_style=campaign.writing_style or "pas",
        imperfection_list=list(campaign.imperfection_list or []),
        content_types=list(campaign.content_types or []),
        content_type_variables=dict(campaign.content_type_variables or {}),
        schedule_hours=Decimal(str(hours)) if hours is not None else None,
        schedule=campaign.schedule,
        next_publish_at=ensure_utc(campaign.next_publish_at),
        site_id=campaign.wordpress_site_id,
        site=site_snapshot(site) if site is not None else None,
    )


class SqlScheduleStore:
    """ScheduleStore trên bảng campaigns / wordpress_sites."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    async def find_due_campaigns(self) -> List[CampaignSnapshot]:
        """Campaign đến hạn, sắp theo next_publish_at tăng dần. Lỗi DB -> DiscoveryError."""
        now = self._clock()
        q = (
            select(Campaign, WordPressSite)
            .join(WordPressSite, WordPressSite.id == Campaign.wordpress_site_id)
            .where(
                Campaign.status == STATUS_ACTIVE,
                Campaign.wordpress_site_id.isnot(None),
                Campaign.next_publish_at.isnot(None),
                Campaign.next_publish_at <= now,
                WordPressSite.is_active.is_(True),
            )
            .order_by(Campaign.next_publish_at.asc())
        )
        try:
            async with self._session_factory() as db:
                r = await db.execute(q)
                rows = r.all()
        except (SQLAlchemyError, OSError) as e:
            logger.error("schedule_store.discovery_failed", error=str(e))
            raise DiscoveryError(f"schedule store unreachable: {e}") from e
        return [campaign_snapshot(campaign, site) for campaign, site in rows]

    async def write_next_due(self, campaign_id: UUID, next_due: datetime) -> None:
        """Ghi next_publish_at. Chỉ queue processor gọi hàm này."""
        try:
            async with self._session_factory() as db:
                await db.execute(
                    update(Campaign)
                    .where(Campaign.id == campaign_id)
                    .values(next_publish_at=next_due, updated_at=self._clock())
                )
                await db.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.error("schedule_store.write_next_due_failed", campaign_id=str(campaign_id), error=str(e))
            raise LedgerWriteError(f"could not write next due for campaign {campaign_id}: {e}") from e

    async def get_site(self, site_id: UUID) -> Optional[SiteSnapshot]:
        """Đọc lại site ngay trước khi publish; đã xóa hoặc inactive -> None."""
        async with self._session_factory() as db:
            r = await db.execute(
                select(WordPressSite).where(
                    WordPressSite.id == site_id,
                    WordPressSite.is_active.is_(True),
                )
            )
            site = r.scalar_one_or_none()
        return site_snapshot(site) if site is not None else None
