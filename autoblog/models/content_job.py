"""Content job model (job ledger)."""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from autoblog.db import Base
from autoblog.models.types import JsonType

STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

ACTIVE_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS)
TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_FAILED)

_ACTIVE_WHERE = text("status IN ('pending', 'in_progress')")


class ContentJob(Base):
    """
    Một lần thử sinh + đăng nội dung cho campaign.
    status: pending -> in_progress -> completed | failed. Terminal thì không sửa nữa; retry = job mới.
    completed_at đánh dấu kết thúc attempt (thành công hay thất bại).
    """

    __tablename__ = "content_jobs"
    __table_args__ = (
        # Tối đa một job chưa terminal cho mỗi campaign.
        Index(
            "ux_content_jobs_active_campaign",
            "campaign_id",
            unique=True,
            postgresql_where=_ACTIVE_WHERE,
            sqlite_where=_ACTIVE_WHERE,
        ),
        Index("ix_content_jobs_status_created", "status", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    campaign_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STATUS_PENDING)
    content_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    title: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    keywords: Mapped[Optional[list]] = mapped_column(JsonType, nullable=True)
    generated_content: Mapped[Optional[dict]] = mapped_column(JsonType, nullable=True)
    featured_image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    remote_post_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    remote_post_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    scheduled_for: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    campaign = relationship("Campaign", back_populates="content_jobs")
