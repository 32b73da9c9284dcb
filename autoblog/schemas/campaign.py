"""Campaign write boundary: kiểm tra schedule_hours và content_types trước khi tới DB / processor."""
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from autoblog.content_types import validate_content_types
from autoblog.scheduling import format_schedule, validate_schedule_hours

DEFAULT_SCHEDULE_HOURS = Decimal("24.00")


class CampaignScheduleIn(BaseModel):
    """Body đổi lịch: schedule_hours trong [0.10, 168.00], 2 chữ số thập phân."""

    schedule_hours: Decimal = Field(..., description="Khoảng cách giữa hai lần đăng (giờ)")

    @field_validator("schedule_hours", mode="before")
    @classmethod
    def _check_hours(cls, v: Any) -> Decimal:
        return validate_schedule_hours(v)


class CampaignCreate(BaseModel):
    """Tạo campaign. content_types rỗng = mọi template."""

    wordpress_site_id: Optional[UUID] = None
    topic: str = Field(..., min_length=1, max_length=255)
    context: str = ""
    tone_of_voice: str = "conversational"
    writing_style: str = "pas"
    imperfection_list: List[str] = Field(default_factory=list)
    content_types: List[str] = Field(default_factory=list)
    content_type_variables: Dict[str, Any] = Field(default_factory=dict)
    schedule_hours: Decimal = DEFAULT_SCHEDULE_HOURS

    @field_validator("schedule_hours", mode="before")
    @classmethod
    def _check_hours(cls, v: Any) -> Decimal:
        return validate_schedule_hours(v)

    @field_validator("content_types", mode="before")
    @classmethod
    def _check_content_types(cls, v: Any) -> List[str]:
        return validate_content_types(v)

    def model_values(self) -> Dict[str, Any]:
        """Giá trị cho Campaign(...); schedule là chuỗi hiển thị dẫn xuất từ schedule_hours."""
        values = self.model_dump()
        values["schedule"] = format_schedule(self.schedule_hours)
        return values


class CampaignUpdate(BaseModel):
    """Sửa campaign; chỉ field được gửi mới bị đổi."""

    wordpress_site_id: Optional[UUID] = None
    topic: Optional[str] = Field(None, min_length=1, max_length=255)
    context: Optional[str] = None
    tone_of_voice: Optional[str] = None
    writing_style: Optional[str] = None
    imperfection_list: Optional[List[str]] = None
    content_types: Optional[List[str]] = None
    content_type_variables: Optional[Dict[str, Any]] = None
    schedule_hours: Optional[Decimal] = None
    status: Optional[str] = Field(None, pattern="^(active|paused|completed|error)$")

    @field_validator("schedule_hours", mode="before")
    @classmethod
    def _check_hours(cls, v: Any) -> Optional[Decimal]:
        return None if v is None else validate_schedule_hours(v)

    @field_validator("content_types", mode="before")
    @classmethod
    def _check_content_types(cls, v: Any) -> Optional[List[str]]:
        return None if v is None else validate_content_types(v)

    def model_values(self) -> Dict[str, Any]:
        values = self.model_dump(exclude_unset=True)
        if values.get("schedule_hours") is not None:
            values["schedule"] = format_schedule(values["schedule_hours"])
        return values
