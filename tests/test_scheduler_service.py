"""Test lifecycle worker: start/stop scheduler, QUEUE_ENABLED=false, maintenance tick."""
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from autoblog.config import Settings
from autoblog.services import scheduler_service


@pytest.mark.asyncio
async def test_disabled_queue_does_not_start_processor() -> None:
    processor = MagicMock()
    processor.start = AsyncMock()
    with patch.object(scheduler_service, "get_settings", return_value=Settings(QUEUE_ENABLED=False)):
        await scheduler_service.start_scheduler(None, processor=processor)
        assert scheduler_service.get_processor() is None
        assert scheduler_service.get_queue_status()["enabled"] is False
    processor.start.assert_not_awaited()


@pytest.mark.asyncio
async def test_start_and_stop_scheduler() -> None:
    processor = MagicMock()
    processor.start = AsyncMock()
    processor.stop = AsyncMock()
    processor.status.return_value = {
        "running": True,
        "processing": False,
        "interval_seconds": 60,
        "last_cycle_at": None,
        "last_cycle": None,
    }
    settings = Settings(QUEUE_ENABLED=True, QUEUE_INTERVAL_SECONDS=60)
    with patch.object(scheduler_service, "get_settings", return_value=settings), patch.object(
        scheduler_service, "_maintenance_tick", new=AsyncMock()
    ) as tick:
        await scheduler_service.start_scheduler(None, processor=processor)
        # Gọi lần hai: no-op.
        await scheduler_service.start_scheduler(None, processor=processor)
        await asyncio.sleep(0.01)
        assert scheduler_service.get_processor() is processor
        status = scheduler_service.get_queue_status()
        assert status["enabled"] is True
        assert status["running"] is True
        assert status["interval_seconds"] == 60

        await scheduler_service.stop_scheduler()

    processor.start.assert_awaited_once()
    processor.stop.assert_awaited_once()
    tick.assert_awaited()
    assert scheduler_service.get_processor() is None


@pytest.mark.asyncio
async def test_maintenance_tick_swallows_errors() -> None:
    with patch.object(scheduler_service, "run_maintenance", new=AsyncMock(side_effect=RuntimeError("db down"))):
        await scheduler_service._maintenance_tick()
    assert scheduler_service.get_queue_status()["last_maintenance_at"] is not None
