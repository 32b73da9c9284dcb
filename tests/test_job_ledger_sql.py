"""
Test SqlJobLedger trên SQLite in-memory:
- pending -> in_progress -> completed / failed, timestamps.
- Một job active mỗi campaign (JobAlreadyActiveError); job terminal không bị sửa.
- Thống kê 7 ngày + recent activity.
"""
import uuid
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from autoblog.errors import JobAlreadyActiveError, LedgerWriteError
from autoblog.services.interfaces import GeneratedContent, PublishResult
from autoblog.services.job_ledger import SqlJobLedger, get_queue_stats, get_recent_activity
from autoblog.utils.timeutils import ensure_utc


def content(title: str = "Espresso at home") -> GeneratedContent:
    return GeneratedContent(
        title=title,
        body="Grind fine. Tamp evenly.",
        keywords=["espresso", "grinder"],
        image_prompt="espresso",
        content_type="how_to_guide",
    )


@pytest.mark.asyncio
async def test_job_lifecycle_to_completed(session_factory, make_site, make_campaign, t0) -> None:
    site = await make_site()
    campaign = await make_campaign(site)
    ledger = SqlJobLedger(session_factory, clock=lambda: t0)

    job_id = await ledger.create_job(campaign.id, "how_to_guide")
    job = await ledger.get_job(job_id)
    assert job.status == "pending"
    assert job.content_type == "how_to_guide"

    await ledger.set_status(job_id, "in_progress")
    await ledger.set_content(job_id, content())
    await ledger.set_image(job_id, "https://img.example.com/1.png")
    await ledger.set_published(job_id, PublishResult(remote_post_id="42", remote_post_url="http://site/42"))

    job = await ledger.get_job(job_id)
    assert job.status == "completed"
    assert job.title == "Espresso at home"
    assert job.keywords == ["espresso", "grinder"]
    assert job.generated_content["word_count"] == 4
    assert job.featured_image_url == "https://img.example.com/1.png"
    assert job.remote_post_id == "42"
    assert job.remote_post_url == "http://site/42"
    assert ensure_utc(job.started_at) == t0
    assert ensure_utc(job.completed_at) == t0


@pytest.mark.asyncio
async def test_failed_job_records_error_and_completed_at(session_factory, make_site, make_campaign, t0) -> None:
    site = await make_site()
    campaign = await make_campaign(site)
    ledger = SqlJobLedger(session_factory, clock=lambda: t0)

    job_id = await ledger.create_job(campaign.id)
    await ledger.set_status(job_id, "in_progress")
    await ledger.set_failed(job_id, "Content generation timed out after 180s")

    job = await ledger.get_job(job_id)
    assert job.status == "failed"
    assert job.error_message == "Content generation timed out after 180s"
    assert ensure_utc(job.completed_at) == t0


@pytest.mark.asyncio
async def test_second_active_job_is_rejected(session_factory, make_site, make_campaign) -> None:
    site = await make_site()
    campaign = await make_campaign(site)
    ledger = SqlJobLedger(session_factory)

    first = await ledger.create_job(campaign.id)
    with pytest.raises(JobAlreadyActiveError):
        await ledger.create_job(campaign.id)

    await ledger.set_failed(first, "boom")
    second = await ledger.create_job(campaign.id)
    assert second != first
    assert len(await ledger.list_jobs(campaign.id)) == 2


@pytest.mark.asyncio
async def test_terminal_job_is_never_mutated(session_factory, make_site, make_campaign) -> None:
    site = await make_site()
    campaign = await make_campaign(site)
    ledger = SqlJobLedger(session_factory)

    job_id = await ledger.create_job(campaign.id)
    await ledger.set_published(job_id, PublishResult(remote_post_id="7"))

    with pytest.raises(LedgerWriteError):
        await ledger.set_failed(job_id, "late failure")
    with pytest.raises(LedgerWriteError):
        await ledger.set_content(job_id, content("other"))
    job = await ledger.get_job(job_id)
    assert job.status == "completed"
    assert job.error_message is None


@pytest.mark.asyncio
async def test_unknown_job_and_bad_status(session_factory) -> None:
    ledger = SqlJobLedger(session_factory)
    with pytest.raises(LedgerWriteError):
        await ledger.set_status(uuid.uuid4(), "in_progress")
    with pytest.raises(ValueError):
        await ledger.set_status(uuid.uuid4(), "completed")


@pytest.mark.asyncio
async def test_queue_stats_and_recent_activity(session_factory, make_site, make_campaign, t0) -> None:
    site = await make_site()
    a = await make_campaign(site, topic="espresso")
    b = await make_campaign(site, topic="pour over")
    ledger = SqlJobLedger(session_factory)

    done = await ledger.create_job(a.id, "listicle")
    await ledger.set_content(done, content("Ten espresso tips"))
    await ledger.set_published(done, PublishResult(remote_post_id="1", remote_post_url="http://site/1"))
    failed = await ledger.create_job(b.id)
    await ledger.set_failed(failed, "WordPress access denied")
    await ledger.create_job(a.id)

    async with session_factory() as db:
        stats = await get_queue_stats(db)
        activity = await get_recent_activity(db, limit=10)

    assert stats == {"pending": 1, "in_progress": 0, "completed": 1, "failed": 1}
    assert len(activity) == 3
    by_id = {row["id"]: row for row in activity}
    assert by_id[done]["title"] == "Ten espresso tips"
    assert by_id[done]["campaign_topic"] == "espresso"
    assert by_id[done]["site_name"] == "Test Blog"
    assert by_id[failed]["error_message"] == "WordPress access denied"


@pytest.mark.asyncio
async def test_queue_stats_window_excludes_old_jobs(session_factory, make_site, make_campaign) -> None:
    site = await make_site()
    campaign = await make_campaign(site)
    from autoblog.utils.timeutils import utcnow

    old_ledger = SqlJobLedger(session_factory, clock=lambda: utcnow() - timedelta(days=30))
    job_id = await old_ledger.create_job(campaign.id)
    await old_ledger.set_failed(job_id, "old")

    async with session_factory() as db:
        assert (await get_queue_stats(db, within_days=7))["failed"] == 0
        assert (await get_queue_stats(db, within_days=60))["failed"] == 1


@pytest.mark.asyncio
async def test_connection_error_becomes_ledger_write_error() -> None:
    session = MagicMock()
    session.__aenter__.side_effect = ConnectionRefusedError(111, "Connect call failed")
    ledger = SqlJobLedger(lambda: session)

    with pytest.raises(LedgerWriteError):
        await ledger.create_job(uuid.uuid4(), "how_to_guide")
    with pytest.raises(LedgerWriteError):
        await ledger.set_failed(uuid.uuid4(), "boom")
