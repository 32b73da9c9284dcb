"""
Worker chạy trong process FastAPI: queue processor + maintenance loop.
ENV: QUEUE_ENABLED, QUEUE_INTERVAL_SECONDS, MAINTENANCE_INTERVAL_SECONDS.
Một instance cho mỗi deployment (không có distributed lock).
"""
import asyncio
from datetime import datetime
from typing import Optional

from autoblog.config import get_settings
from autoblog.db import async_session_factory
from autoblog.logging_config import get_logger
from autoblog.services.maintenance_service import run_maintenance
from autoblog.services.queue_processor import QueueProcessor
from autoblog.utils.timeutils import utcnow

logger = get_logger(__name__)

_processor: Optional[QueueProcessor] = None
_maintenance_task: Optional[asyncio.Task[None]] = None
_stop_event: Optional[asyncio.Event] = None
_last_maintenance_at: Optional[datetime] = None
_enabled = False


def get_processor() -> Optional[QueueProcessor]:
    """Processor đang chạy; None nếu QUEUE_ENABLED=false hoặc chưa start."""
    return _processor


def get_queue_status() -> dict:
    """enabled, running, processing, interval_seconds, last_cycle_at, last_maintenance_at."""
    settings = get_settings()
    out = {
        "enabled": _enabled,
        "running": False,
        "processing": False,
        "interval_seconds": settings.queue_interval_seconds,
        "last_cycle_at": None,
        "last_cycle": None,
    }
    if _processor is not None:
        out.update(_processor.status())
    out["last_maintenance_at"] = _last_maintenance_at.isoformat() if _last_maintenance_at else None
    return out


async def _maintenance_tick() -> None:
    """Fail job bị kẹt + dọn job / log hết hạn lưu trữ."""
    global _last_maintenance_at
    _last_maintenance_at = utcnow()
    async with async_session_factory() as db:
        try:
            counts = await run_maintenance(db, now=_last_maintenance_at)
            await db.commit()
            logger.info("maintenance.tick", **counts)
        except Exception as e:
            logger.warning("maintenance.tick_error", error=str(e))
            await db.rollback()


async def _maintenance_loop(stop_event: asyncio.Event) -> None:
    interval = max(60, get_settings().maintenance_interval_seconds)
    while not stop_event.is_set():
        try:
            await _maintenance_tick()
        except Exception as e:
            logger.warning("maintenance.loop_error", error=str(e))
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass


async def start_scheduler(app: object, processor: Optional[QueueProcessor] = None) -> None:
    """Khởi động queue processor + maintenance (gọi từ lifespan startup)."""
    global _processor, _maintenance_task, _stop_event, _enabled
    settings = get_settings()
    if _processor is not None:
        logger.info("queue.already_running")
        return
    _enabled = settings.queue_enabled
    if not _enabled:
        logger.info("scheduler.disabled")
        return
    _processor = processor or QueueProcessor.from_settings(settings)
    await _processor.start()
    _stop_event = asyncio.Event()
    _maintenance_task = asyncio.create_task(_maintenance_loop(_stop_event))
    logger.info(
        "scheduler.started",
        interval_seconds=settings.queue_interval_seconds,
        maintenance_interval_seconds=settings.maintenance_interval_seconds,
    )


async def stop_scheduler() -> None:
    """Dừng maintenance và queue processor; cycle đang chạy được chờ xong."""
    global _processor, _maintenance_task, _stop_event, _enabled
    _enabled = False
    if _stop_event:
        _stop_event.set()
    if _maintenance_task:
        await _maintenance_task
    if _processor is not None:
        await _processor.stop()
    _processor = None
    _maintenance_task = None
    _stop_event = None
    logger.info("scheduler.stopped")
