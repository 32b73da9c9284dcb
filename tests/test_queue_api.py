"""
Test Queue API qua ASGITransport:
- GET /health, /queue/status, /queue/stats, /queue/activity, /queue/logs.
- POST /queue/run: 503 khi worker tắt; trả về tóm tắt cycle khi chạy.
"""
import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from autoblog.db import get_db
from autoblog.main import app
from autoblog.services.event_log_service import SqlEventSink
from autoblog.services.interfaces import PublishResult
from autoblog.services.job_ledger import SqlJobLedger
from autoblog.services.queue_processor import AttemptOutcome, CycleReport


@pytest.fixture
def override_db(session_factory):
    async def _get_db():
        async with session_factory() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.mark.asyncio
async def test_health() -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert "X-Request-ID" in resp.headers


@pytest.mark.asyncio
async def test_status_when_worker_disabled() -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        resp = await client.get("/queue/status")
    assert resp.status_code == 200
    data = resp.json()
    assert data["enabled"] is False
    assert data["running"] is False
    assert data["interval_seconds"] == 300


@pytest.mark.asyncio
async def test_run_returns_503_when_worker_disabled() -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        resp = await client.post("/queue/run")
    assert resp.status_code == 503
    assert "disabled" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_run_triggers_cycle() -> None:
    started = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)
    report = CycleReport(started_at=started, finished_at=started, due_count=1)
    outcome = AttemptOutcome(campaign_id=uuid.uuid4(), status="completed")
    report.outcomes.append(outcome)
    processor = MagicMock()
    processor.trigger = AsyncMock(return_value={"success": True, "message": "Processed 1 due campaign(s)", "report": report})

    with patch("autoblog.routers.queue_router.get_processor", return_value=processor):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            resp = await client.post("/queue/run")

    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["success"] is True
    assert data["cycle"]["due_count"] == 1
    assert data["cycle"]["completed"] == [str(outcome.campaign_id)]
    processor.trigger.assert_awaited_once()


@pytest.mark.asyncio
async def test_stats_activity_and_logs(session_factory, override_db, make_site, make_campaign) -> None:
    site = await make_site()
    campaign = await make_campaign(site, topic="espresso")
    ledger = SqlJobLedger(session_factory)
    job_id = await ledger.create_job(campaign.id, "listicle")
    await ledger.set_published(job_id, PublishResult(remote_post_id="42", remote_post_url="http://site/42"))
    await ledger.create_job(campaign.id)
    await SqlEventSink(session_factory).record(campaign.id, "content_published", 'Published "X"')

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        stats = await client.get("/queue/stats")
        activity = await client.get("/queue/activity", params={"limit": 5})
        logs = await client.get("/queue/logs", params={"campaign_id": str(campaign.id)})

    assert stats.status_code == 200, stats.text
    assert stats.json() == {"window_days": 7, "pending": 1, "in_progress": 0, "completed": 1, "failed": 0}
    items = activity.json()["items"]
    assert len(items) == 2
    assert {i["campaign_topic"] for i in items} == {"espresso"}
    assert any(i["remote_post_url"] == "http://site/42" for i in items)
    assert logs.status_code == 200
    assert [entry["event_type"] for entry in logs.json()] == ["content_published"]
