"""
Scheduling arithmetic cho campaign.
- next_due = now + interval_hours * 3600s, tính bằng wall clock SAU khi attempt terminal.
- schedule_hours (Decimal, 2 chữ số thập phân, [0.10, 168.00]) là nguồn chuẩn.
- schedule (chuỗi legacy "24h") chỉ dùng làm fallback cho row cũ; thiếu cả hai -> ScheduleConfigError.
"""
import re
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from autoblog.errors import ScheduleConfigError

MIN_SCHEDULE_HOURS = Decimal("0.10")
MAX_SCHEDULE_HOURS = Decimal("168.00")
_TWO_PLACES = Decimal("0.01")
_LEGACY_SCHEDULE_RE = re.compile(r"^\s*(\d+)(?:\.\d+)?\s*h?\s*$", re.IGNORECASE)

HoursLike = Union[Decimal, float, int, str]


def validate_schedule_hours(value: HoursLike) -> Decimal:
    """
    Chuẩn hóa về Decimal 2 chữ số và kiểm tra khoảng [0.10, 168.00].
    Dùng tại ranh giới ghi campaign (schema), không dùng trong processor.
    """
    try:
        hours = Decimal(str(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"schedule_hours must be a number, got {value!r}") from e
    if hours < MIN_SCHEDULE_HOURS or hours > MAX_SCHEDULE_HOURS:
        raise ValueError(
            f"schedule_hours must be between {MIN_SCHEDULE_HOURS} and {MAX_SCHEDULE_HOURS}, got {hours}"
        )
    return hours


def parse_legacy_schedule(schedule: Optional[str]) -> Optional[int]:
    """'24h' -> 24, '24.00h' -> 24. Không parse được -> None."""
    if not schedule:
        return None
    m = _LEGACY_SCHEDULE_RE.match(schedule)
    if not m:
        return None
    return int(m.group(1))


def resolve_interval_hours(schedule_hours: Optional[HoursLike], schedule: Optional[str] = None) -> Decimal:
    """
    Interval (giờ) dùng để reschedule: ưu tiên schedule_hours; nếu thiếu thì parse chuỗi legacy.
    Thiếu cả hai (hoặc legacy không hợp lệ) -> ScheduleConfigError, không default ngầm.
    """
    if schedule_hours is not None:
        return Decimal(str(schedule_hours))
    legacy = parse_legacy_schedule(schedule)
    if legacy is None or legacy <= 0:
        raise ScheduleConfigError(
            f"campaign has no schedule_hours and legacy schedule {schedule!r} is not usable"
        )
    return Decimal(legacy)


def compute_next_due(now: datetime, interval_hours: HoursLike) -> datetime:
    """now + interval_hours giờ."""
    seconds = Decimal(str(interval_hours)) * 3600
    return now + timedelta(seconds=float(seconds))


def format_schedule(hours: HoursLike) -> str:
    """Chuỗi hiển thị dẫn xuất, ví dụ Decimal('24') -> '24.00h'. Không đọc ngược làm nguồn chuẩn."""
    return f"{Decimal(str(hours)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)}h"
