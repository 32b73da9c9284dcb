"""
Hợp đồng của các collaborator mà queue processor dùng.
Snapshot là bản sao bất biến đọc từ DB lúc discovery; processor không giữ ORM object qua các await.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol
from uuid import UUID


@dataclass(frozen=True)
class SiteSnapshot:
    id: UUID
    site_name: str
    site_url: str
    api_endpoint: str
    username: str
    password_encrypted: str
    is_active: bool = True


@dataclass(frozen=True)
class CampaignSnapshot:
    id: UUID
    topic: str
    context: str = ""
    tone_of_voice: str = "conversational"
    writing_style: str = "pas"
    imperfection_list: List[str] = field(default_factory=list)
    content_types: List[str] = field(default_factory=list)
    content_type_variables: Dict[str, Any] = field(default_factory=dict)
    schedule_hours: Optional[Decimal] = None
    schedule: Optional[str] = None
    next_publish_at: Optional[datetime] = None
    site_id: Optional[UUID] = None
    site: Optional[SiteSnapshot] = None


@dataclass
class GeneratedContent:
    title: str
    body: str
    keywords: List[str] = field(default_factory=list)
    image_prompt: Optional[str] = None
    content_type: Optional[str] = None
    featured_image_url: Optional[str] = None
    generated_at: Optional[str] = None

    @property
    def word_count(self) -> int:
        return len(self.body.split())

    def to_payload(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "body": self.body,
            "keywords": list(self.keywords),
            "image_prompt": self.image_prompt,
            "content_type": self.content_type,
            "word_count": self.word_count,
            "generated_at": self.generated_at,
        }


@dataclass(frozen=True)
class PublishResult:
    remote_post_id: str
    remote_post_url: Optional[str] = None


class ScheduleStore(Protocol):
    async def find_due_campaigns(self) -> List[CampaignSnapshot]: ...

    async def write_next_due(self, campaign_id: UUID, next_due: datetime) -> None: ...

    async def get_site(self, site_id: UUID) -> Optional[SiteSnapshot]: ...


class JobLedger(Protocol):
    async def create_job(self, campaign_id: UUID, content_type: Optional[str] = None) -> UUID: ...

    async def set_status(self, job_id: UUID, status: str) -> None: ...

    async def set_content(self, job_id: UUID, content: GeneratedContent) -> None: ...

    async def set_image(self, job_id: UUID, image_url: str) -> None: ...

    async def set_published(self, job_id: UUID, result: PublishResult) -> None: ...

    async def set_failed(self, job_id: UUID, error_message: str) -> None: ...


class ContentGenerator(Protocol):
    async def generate_title(self, campaign: CampaignSnapshot) -> str: ...

    async def generate_body(
        self,
        campaign: CampaignSnapshot,
        content_type: str,
        variables: Dict[str, str],
    ) -> GeneratedContent: ...


class ImageGenerator(Protocol):
    async def generate_image(self, prompt: str) -> str: ...


class Publisher(Protocol):
    async def publish(self, site: SiteSnapshot, content: GeneratedContent) -> PublishResult: ...


class EventSink(Protocol):
    async def record(
        self,
        campaign_id: Optional[UUID],
        event_type: str,
        message: str,
        severity: str = "info",
        metadata_: Optional[Dict[str, Any]] = None,
    ) -> None: ...
