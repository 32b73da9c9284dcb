"""Campaign model."""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from autoblog.db import Base
from autoblog.models.types import JsonType


class Campaign(Base):
    """
    Campaign: chỉ thị sản xuất nội dung định kỳ.
    status: active | paused | completed | error. Chỉ status=active mới được queue chọn.
    schedule_hours là nguồn chuẩn (0.10 - 168.00 giờ); schedule là chuỗi legacy ("24h").
    next_publish_at chỉ được ghi bởi queue processor sau mỗi attempt.
    """

    __tablename__ = "campaigns"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    wordpress_site_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("wordpress_sites.id", ondelete="SET NULL"),
        nullable=True,
    )
    topic: Mapped[str] = mapped_column(String(255), nullable=False)
    context: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tone_of_voice: Mapped[str] = mapped_column(String(50), nullable=False, default="conversational")
    writing_style: Mapped[str] = mapped_column(String(50), nullable=False, default="pas")
    imperfection_list: Mapped[list] = mapped_column(JsonType, nullable=False, default=list)
    schedule: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, default="24h")
    schedule_hours: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    content_types: Mapped[list] = mapped_column(JsonType, nullable=False, default=list)
    content_type_variables: Mapped[dict] = mapped_column(JsonType, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    next_publish_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    wordpress_site = relationship("WordPressSite", back_populates="campaigns")
    content_jobs = relationship("ContentJob", back_populates="campaign")
    logs = relationship("CampaignLog", back_populates="campaign")
