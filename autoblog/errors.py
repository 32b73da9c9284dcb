"""
Error taxonomy của queue engine.
Chỉ DiscoveryError được phép abort cả cycle; các lỗi còn lại bị bắt ở ranh giới attempt
và ghi vào content job (error_message).
"""


class AutoblogError(Exception):
    """Base class for engine errors."""


class DiscoveryError(AutoblogError):
    """Schedule store unreachable while discovering due campaigns."""


class GenerationError(AutoblogError):
    """Content generator failed or returned unusable output. Fatal to the job."""


class ImageGenerationError(AutoblogError):
    """Featured image generation failed. Never fatal to the job."""


class PublishError(AutoblogError):
    """Publishing to the target site failed. Fatal to the job."""


class LedgerWriteError(AutoblogError):
    """A job ledger write could not be persisted."""


class JobAlreadyActiveError(LedgerWriteError):
    """The campaign already has a pending or in_progress job."""

    def __init__(self, campaign_id: object) -> None:
        super().__init__(f"campaign {campaign_id} already has an active content job")
        self.campaign_id = campaign_id


class ScheduleConfigError(AutoblogError):
    """Campaign has neither schedule_hours nor a parsable legacy schedule."""
