"""
QueueProcessor chạy trên adapter SQL thật (SQLite in-memory):
- Kịch bản cụ thể end-to-end: job completed với remote_post_id 42, next_publish_at = lúc chạy + 1h, có event content_published.
- Ledger mất kết nối (OSError) -> attempt vẫn publish và campaign vẫn được reschedule.
"""
import random
from datetime import timedelta
from typing import Dict, List
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select

from autoblog.models import Campaign
from autoblog.services.event_log_service import EVENT_CONTENT_PUBLISHED, SqlEventSink, list_campaign_logs
from autoblog.services.interfaces import CampaignSnapshot, GeneratedContent, PublishResult, SiteSnapshot
from autoblog.services.job_ledger import SqlJobLedger
from autoblog.services.queue_processor import QueueProcessor
from autoblog.services.schedule_store import SqlScheduleStore
from autoblog.utils.timeutils import ensure_utc


class StubGenerator:
    async def generate_title(self, campaign: CampaignSnapshot) -> str:
        return "X"

    async def generate_body(self, campaign: CampaignSnapshot, content_type: str, variables: Dict[str, str]) -> GeneratedContent:
        return GeneratedContent(
            title="X",
            body="Espresso needs a fine grind and fresh beans.",
            keywords=["espresso"],
            content_type=content_type,
        )


class StubPublisher:
    def __init__(self) -> None:
        self.published: List[str] = []

    async def publish(self, site: SiteSnapshot, content: GeneratedContent) -> PublishResult:
        self.published.append(content.title)
        return PublishResult(remote_post_id="42", remote_post_url="https://blog.example.com/?p=42")


def unreachable_session_factory() -> MagicMock:
    session = MagicMock()
    session.__aenter__.side_effect = ConnectionRefusedError(111, "Connect call failed")
    return lambda: session


@pytest.mark.asyncio
async def test_concrete_scenario_over_sql_adapters(session_factory, make_site, make_campaign, t0) -> None:
    site = await make_site()
    campaign = await make_campaign(site, next_publish_at=t0, schedule_hours="1.00")
    run_at = t0 + timedelta(minutes=5)
    clock = lambda: run_at  # noqa: E731
    ledger = SqlJobLedger(session_factory, clock=clock)
    processor = QueueProcessor(
        SqlScheduleStore(session_factory, clock=clock),
        ledger,
        StubGenerator(),
        StubPublisher(),
        SqlEventSink(session_factory),
        clock=clock,
        rng=random.Random(7),
    )

    report = await processor.run_cycle()

    assert report.completed == [campaign.id]
    jobs = await ledger.list_jobs(campaign.id)
    assert len(jobs) == 1
    assert jobs[0].status == "completed"
    assert jobs[0].remote_post_id == "42"
    assert jobs[0].title == "X"
    async with session_factory() as db:
        refreshed = (await db.execute(select(Campaign).where(Campaign.id == campaign.id))).scalar_one()
        assert ensure_utc(refreshed.next_publish_at) == run_at + timedelta(hours=1)
        logs = await list_campaign_logs(db, campaign_id=campaign.id)
    assert [log.event_type for log in logs] == [EVENT_CONTENT_PUBLISHED]
    assert '"X"' in logs[0].message

    # Chưa tới hạn mới -> cycle tiếp theo không tạo job.
    again = await processor.run_cycle()
    assert again.due_count == 0
    assert len(await ledger.list_jobs(campaign.id)) == 1


@pytest.mark.asyncio
async def test_unreachable_ledger_still_publishes_and_reschedules(session_factory, make_site, make_campaign, t0) -> None:
    site = await make_site()
    campaign = await make_campaign(site, next_publish_at=t0, schedule_hours="1.00")
    clock = lambda: t0  # noqa: E731
    publisher = StubPublisher()
    processor = QueueProcessor(
        SqlScheduleStore(session_factory, clock=clock),
        SqlJobLedger(unreachable_session_factory(), clock=clock),
        StubGenerator(),
        publisher,
        SqlEventSink(session_factory),
        clock=clock,
        rng=random.Random(7),
    )

    report = await processor.run_cycle()

    assert report.completed == [campaign.id]
    assert report.outcomes[0].job_id is None
    assert publisher.published == ["X"]
    async with session_factory() as db:
        refreshed = (await db.execute(select(Campaign).where(Campaign.id == campaign.id))).scalar_one()
    assert ensure_utc(refreshed.next_publish_at) == t0 + timedelta(hours=1)
