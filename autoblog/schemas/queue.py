"""Queue API responses."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CycleSummaryOut(BaseModel):
    """Tóm tắt một cycle."""

    started_at: str
    finished_at: Optional[str] = None
    skipped: bool = False
    due_count: int = 0
    completed: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)


class QueueStatusResponse(BaseModel):
    """GET /queue/status."""

    enabled: bool
    running: bool
    processing: bool
    interval_seconds: float
    last_cycle_at: Optional[str] = None
    last_cycle: Optional[CycleSummaryOut] = None
    last_maintenance_at: Optional[str] = None


class QueueStatsResponse(BaseModel):
    """GET /queue/stats: số job theo status trong window_days ngày."""

    window_days: int
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    failed: int = 0


class ActivityItemOut(BaseModel):
    """Một job trong activity feed."""

    id: UUID
    campaign_id: UUID
    status: str
    title: Optional[str] = None
    content_type: Optional[str] = None
    remote_post_url: Optional[str] = None
    error_message: Optional[str] = None
    scheduled_for: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    campaign_topic: Optional[str] = None
    site_name: Optional[str] = None


class QueueActivityResponse(BaseModel):
    """GET /queue/activity."""

    items: List[ActivityItemOut]


class QueueRunResponse(BaseModel):
    """POST /queue/run."""

    success: bool
    message: str
    cycle: Optional[CycleSummaryOut] = None
