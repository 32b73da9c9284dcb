"""Queue API: trạng thái worker, thống kê job, activity feed, event log, chạy tay một cycle."""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from autoblog.db import get_db
from autoblog.schemas.queue import (
    ActivityItemOut,
    CycleSummaryOut,
    QueueActivityResponse,
    QueueRunResponse,
    QueueStatsResponse,
    QueueStatusResponse,
)
from autoblog.services.event_log_service import list_campaign_logs
from autoblog.services.job_ledger import STATS_WINDOW_DAYS, get_queue_stats, get_recent_activity
from autoblog.services.scheduler_service import get_processor, get_queue_status

router = APIRouter(prefix="/queue", tags=["queue"])


@router.get("/status", response_model=QueueStatusResponse)
async def queue_status() -> QueueStatusResponse:
    """enabled, running, processing, interval, last cycle."""
    return QueueStatusResponse(**get_queue_status())


@router.get("/stats", response_model=QueueStatsResponse)
async def queue_stats(
    days: int = Query(STATS_WINDOW_DAYS, ge=1, le=90),
    db: AsyncSession = Depends(get_db),
) -> QueueStatsResponse:
    stats = await get_queue_stats(db, within_days=days)
    return QueueStatsResponse(window_days=days, **stats)


@router.get("/activity", response_model=QueueActivityResponse)
async def queue_activity(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> QueueActivityResponse:
    """Job mới nhất (kèm topic campaign, tên site)."""
    rows = await get_recent_activity(db, limit=limit)
    return QueueActivityResponse(items=[ActivityItemOut(**row) for row in rows])


@router.get("/logs")
async def queue_logs(
    campaign_id: Optional[UUID] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
) -> List[dict]:
    """Campaign event log (content_published, content_generation_failed, schedule_error)."""
    logs = await list_campaign_logs(db, campaign_id=campaign_id, limit=limit)
    return [
        {
            "id": str(log.id),
            "campaign_id": str(log.campaign_id) if log.campaign_id else None,
            "event_type": log.event_type,
            "message": log.message,
            "severity": log.severity,
            "metadata": log.metadata_,
            "created_at": log.created_at.isoformat() if log.created_at else None,
        }
        for log in logs
    ]


@router.post("/run", response_model=QueueRunResponse)
async def run_queue() -> QueueRunResponse:
    """Chạy ngay một cycle. Worker tắt (QUEUE_ENABLED=false) -> 503."""
    processor = get_processor()
    if processor is None:
        raise HTTPException(status_code=503, detail="Queue processor is disabled")
    result = await processor.trigger()
    report = result["report"]
    return QueueRunResponse(
        success=result["success"],
        message=result["message"],
        cycle=CycleSummaryOut(**report.summary()) if report is not None else None,
    )
