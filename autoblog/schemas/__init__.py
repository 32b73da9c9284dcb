"""Pydantic request/response schemas."""
from autoblog.schemas.campaign import CampaignCreate, CampaignScheduleIn, CampaignUpdate
from autoblog.schemas.queue import (
    ActivityItemOut,
    CycleSummaryOut,
    QueueActivityResponse,
    QueueRunResponse,
    QueueStatsResponse,
    QueueStatusResponse,
)

__all__ = [
    "CampaignCreate",
    "CampaignScheduleIn",
    "CampaignUpdate",
    "ActivityItemOut",
    "CycleSummaryOut",
    "QueueActivityResponse",
    "QueueRunResponse",
    "QueueStatsResponse",
    "QueueStatusResponse",
]
