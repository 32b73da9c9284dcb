"""
Queue processor: vòng lặp discover -> generate -> (image) -> publish -> reschedule.
- Một cycle tại một thời điểm (asyncio.Lock); tick trùng bị bỏ qua, không xếp hàng.
- Campaign xử lý tuần tự theo next_publish_at tăng dần; lỗi một campaign không dừng các campaign khác.
- Chỉ DiscoveryError làm hỏng cả cycle; tick sau thử lại.
- Sau mỗi attempt terminal (completed | failed) luôn reschedule: next_due = now + interval_hours.
- stop() không cancel cycle đang chạy; attempt đang dở luôn đi tới trạng thái terminal.
"""
import asyncio
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Dict, List, Optional, Type, TypeVar
from uuid import UUID

from autoblog.config import Settings, get_settings
from autoblog.content_types import get_content_type, pick_content_type, resolve_variables
from autoblog.errors import (
    AutoblogError,
    DiscoveryError,
    GenerationError,
    ImageGenerationError,
    JobAlreadyActiveError,
    LedgerWriteError,
    PublishError,
    ScheduleConfigError,
)
from autoblog.logging_config import get_logger
from autoblog.models.content_job import STATUS_COMPLETED, STATUS_FAILED, STATUS_IN_PROGRESS
from autoblog.scheduling import compute_next_due, resolve_interval_hours
from autoblog.services.event_log_service import (
    EVENT_CONTENT_FAILED,
    EVENT_CONTENT_PUBLISHED,
    EVENT_SCHEDULE_ERROR,
)
from autoblog.services.interfaces import (
    CampaignSnapshot,
    ContentGenerator,
    EventSink,
    GeneratedContent,
    ImageGenerator,
    JobLedger,
    Publisher,
    ScheduleStore,
    SiteSnapshot,
)
from autoblog.utils.timeutils import utcnow

logger = get_logger(__name__)

T = TypeVar("T")

OUTCOME_SKIPPED = "skipped"


@dataclass
class AttemptOutcome:
    """Kết quả một attempt của campaign trong cycle."""

    campaign_id: UUID
    job_id: Optional[UUID] = None
    status: str = STATUS_FAILED
    content_type: Optional[str] = None
    title: Optional[str] = None
    image_url: Optional[str] = None
    remote_post_id: Optional[str] = None
    remote_post_url: Optional[str] = None
    error: Optional[str] = None
    next_due: Optional[datetime] = None


@dataclass
class CycleReport:
    started_at: datetime
    finished_at: Optional[datetime] = None
    skipped: bool = False
    due_count: int = 0
    outcomes: List[AttemptOutcome] = field(default_factory=list)

    @property
    def completed(self) -> List[UUID]:
        return [o.campaign_id for o in self.outcomes if o.status == STATUS_COMPLETED]

    @property
    def failed(self) -> List[UUID]:
        return [o.campaign_id for o in self.outcomes if o.status == STATUS_FAILED]

    def summary(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "skipped": self.skipped,
            "due_count": self.due_count,
            "completed": [str(c) for c in self.completed],
            "failed": [str(c) for c in self.failed],
        }


class QueueProcessor:
    """
    Điều phối schedule store, job ledger, generator, image generator (tùy chọn), publisher và event sink.
    Một instance cho mỗi deployment; chạy hai instance trên cùng DB sẽ xử lý trùng campaign.
    """

    def __init__(
        self,
        schedule_store: ScheduleStore,
        job_ledger: JobLedger,
        generator: ContentGenerator,
        publisher: Publisher,
        event_sink: EventSink,
        image_generator: Optional[ImageGenerator] = None,
        *,
        interval_seconds: float = 300,
        generator_timeout: Optional[float] = 180.0,
        image_timeout: Optional[float] = 120.0,
        publisher_timeout: Optional[float] = 90.0,
        clock=utcnow,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._schedule_store = schedule_store
        self._job_ledger = job_ledger
        self._generator = generator
        self._publisher = publisher
        self._event_sink = event_sink
        self._image_generator = image_generator
        self.interval_seconds = interval_seconds
        self.generator_timeout = generator_timeout
        self.image_timeout = image_timeout
        self.publisher_timeout = publisher_timeout
        self._clock = clock
        self._rng = rng
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task[None]] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._last_cycle_at: Optional[datetime] = None
        self._last_report: Optional[CycleReport] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "QueueProcessor":
        """Wiring mặc định: adapter SQL + OpenAI + WordPress theo app config."""
        from autoblog.services.content_generator import OpenAIContentGenerator
        from autoblog.services.event_log_service import SqlEventSink
        from autoblog.services.image_generator import OpenAIImageGenerator
        from autoblog.services.job_ledger import SqlJobLedger
        from autoblog.services.schedule_store import SqlScheduleStore
        from autoblog.services.wordpress_publisher import WordPressPublisher

        settings = settings or get_settings()
        image_generator = OpenAIImageGenerator(settings) if settings.image_generation_enabled else None
        return cls(
            SqlScheduleStore(),
            SqlJobLedger(),
            OpenAIContentGenerator(settings),
            WordPressPublisher(settings),
            SqlEventSink(),
            image_generator,
            interval_seconds=settings.queue_interval_seconds,
            generator_timeout=settings.generator_timeout_seconds,
            image_timeout=settings.image_timeout_seconds,
            publisher_timeout=settings.publisher_timeout_seconds,
        )

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_processing(self) -> bool:
        return self._lock.locked()

    @property
    def last_cycle_at(self) -> Optional[datetime]:
        return self._last_cycle_at

    @property
    def last_report(self) -> Optional[CycleReport]:
        return self._last_report

    async def start(self) -> None:
        """Bắt đầu vòng lặp định kỳ; cycle đầu chạy ngay. Gọi lại khi đang chạy: no-op."""
        if self.is_running:
            logger.info("queue.already_running")
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run_loop(self._stop_event))
        logger.info("queue.started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """Dừng tick tương lai; chờ cycle đang chạy kết thúc thay vì cancel."""
        if self._task is None:
            return
        if self._stop_event is not None:
            self._stop_event.set()
        task, self._task = self._task, None
        await task
        logger.info("queue.stopped")

    async def _run_loop(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await self.run_cycle()
            except DiscoveryError as e:
                logger.warning("queue.discovery_failed", error=str(e))
            except Exception as e:
                logger.exception("queue.cycle_error", error=str(e))
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass

    async def run_cycle(self) -> CycleReport:
        """
        Một tick: lấy campaign đến hạn, xử lý tuần tự.
        Đang có cycle khác -> trả về report skipped ngay. DiscoveryError được raise ra ngoài (lock đã nhả).
        """
        report = CycleReport(started_at=self._clock())
        if self._lock.locked():
            logger.info("queue.cycle_skipped", reason="already_processing")
            report.skipped = True
            return report
        async with self._lock:
            self._last_cycle_at = report.started_at
            logger.info("queue.cycle_started", at=report.started_at.isoformat())
            campaigns = await self._schedule_store.find_due_campaigns()
            report.due_count = len(campaigns)
            for campaign in campaigns:
                try:
                    outcome = await self.process_campaign(campaign)
                except Exception as e:
                    logger.exception("queue.campaign_error", campaign_id=str(campaign.id), error=str(e))
                    outcome = AttemptOutcome(campaign_id=campaign.id, error=str(e))
                report.outcomes.append(outcome)
            report.finished_at = self._clock()
            self._last_report = report
            logger.info(
                "queue.cycle_finished",
                due=report.due_count,
                completed=len(report.completed),
                failed=len(report.failed),
            )
        return report

    async def trigger(self) -> Dict[str, Any]:
        """Chạy tay một cycle (POST /queue/run)."""
        if self.is_processing:
            return {"success": False, "message": "Queue is already processing", "report": None}
        try:
            report = await self.run_cycle()
        except DiscoveryError as e:
            logger.warning("queue.discovery_failed", error=str(e), manual=True)
            return {"success": False, "message": f"Could not load due campaigns: {e}", "report": None}
        if report.skipped:
            return {"success": False, "message": "Queue is already processing", "report": report}
        return {
            "success": True,
            "message": f"Processed {report.due_count} due campaign(s)",
            "report": report,
        }

    def status(self) -> Dict[str, Any]:
        return {
            "running": self.is_running,
            "processing": self.is_processing,
            "interval_seconds": self.interval_seconds,
            "last_cycle_at": self._last_cycle_at.isoformat() if self._last_cycle_at else None,
            "last_cycle": self._last_report.summary() if self._last_report else None,
        }

    async def process_campaign(self, campaign: CampaignSnapshot) -> AttemptOutcome:
        """
        Một attempt: create_job -> in_progress -> generate -> image (best-effort) -> publish.
        Kết thúc completed hoặc failed, sau đó reschedule và ghi event.
        Campaign đã có job chưa terminal -> skipped, không tạo job, không reschedule.
        """
        content_type = pick_content_type(campaign.content_types, self._rng)
        outcome = AttemptOutcome(campaign_id=campaign.id, content_type=content_type)
        try:
            outcome.job_id = await self._job_ledger.create_job(campaign.id, content_type)
        except JobAlreadyActiveError as e:
            logger.warning("queue.job_already_active", campaign_id=str(campaign.id))
            outcome.status = OUTCOME_SKIPPED
            outcome.error = str(e)
            return outcome
        except LedgerWriteError as e:
            logger.error("queue.ledger_write_failed", op="create_job", campaign_id=str(campaign.id), error=str(e))
        logger.info(
            "queue.job_created",
            campaign_id=str(campaign.id),
            job_id=str(outcome.job_id) if outcome.job_id else None,
            content_type=content_type,
        )

        try:
            await self._attempt(campaign, outcome)
        except (GenerationError, PublishError) as e:
            outcome.status = STATUS_FAILED
            outcome.error = str(e)
        except Exception as e:
            logger.exception("queue.attempt_error", campaign_id=str(campaign.id), error=str(e))
            outcome.status = STATUS_FAILED
            outcome.error = f"Unexpected error: {e}"

        if outcome.status == STATUS_FAILED:
            logger.warning(
                "queue.job_failed",
                campaign_id=str(campaign.id),
                job_id=str(outcome.job_id) if outcome.job_id else None,
                error=outcome.error,
            )
            await self._ledger("set_failed", outcome.job_id, outcome.error)

        outcome.next_due = await self._reschedule(campaign)
        await self._record_outcome(campaign, outcome)
        return outcome

    async def _attempt(self, campaign: CampaignSnapshot, outcome: AttemptOutcome) -> None:
        job_id = outcome.job_id
        await self._ledger("set_status", job_id, STATUS_IN_PROGRESS)

        template = get_content_type(outcome.content_type)
        if template is None:
            raise GenerationError(f"unknown content type: {outcome.content_type}")
        variables = resolve_variables(template, campaign, campaign.content_type_variables)
        content = await self._bounded(
            self._generator.generate_body(campaign, outcome.content_type, variables),
            self.generator_timeout,
            GenerationError,
            "Content generation",
        )
        if not isinstance(content, GeneratedContent) or not content.title or not content.body:
            raise GenerationError("Content generator returned a malformed result")
        outcome.title = content.title
        await self._ledger("set_content", job_id, content)

        if self._image_generator is not None:
            try:
                image_url = await self._bounded(
                    self._image_generator.generate_image(content.image_prompt or content.title),
                    self.image_timeout,
                    ImageGenerationError,
                    "Image generation",
                )
            except ImageGenerationError as e:
                logger.warning("queue.image_failed", campaign_id=str(campaign.id), error=str(e))
            else:
                content.featured_image_url = image_url
                outcome.image_url = image_url
                await self._ledger("set_image", job_id, image_url)

        site = await self._current_site(campaign)
        result = await self._bounded(
            self._publisher.publish(site, content),
            self.publisher_timeout,
            PublishError,
            "Publishing",
        )
        outcome.status = STATUS_COMPLETED
        outcome.remote_post_id = result.remote_post_id
        outcome.remote_post_url = result.remote_post_url
        logger.info(
            "queue.job_completed",
            campaign_id=str(campaign.id),
            job_id=str(job_id) if job_id else None,
            remote_post_id=result.remote_post_id,
        )
        await self._ledger("set_published", job_id, result)

    async def _current_site(self, campaign: CampaignSnapshot) -> SiteSnapshot:
        """Đọc lại site ngay trước publish; site đã bị xóa / tắt giữa cycle -> PublishError."""
        if campaign.site_id is None:
            raise PublishError("site not found: campaign has no linked WordPress site")
        try:
            site = await self._schedule_store.get_site(campaign.site_id)
        except Exception as e:
            raise PublishError(f"could not load WordPress site: {e}") from e
        if site is None:
            raise PublishError(f"site not found: WordPress site {campaign.site_id} was deleted or deactivated")
        return site

    async def _bounded(
        self,
        awaitable: Awaitable[T],
        timeout: Optional[float],
        error_cls: Type[AutoblogError],
        label: str,
    ) -> T:
        """Chờ external call với timeout; timeout / lỗi lạ -> error_cls."""
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except error_cls:
            raise
        except asyncio.TimeoutError as e:
            raise error_cls(f"{label} timed out after {timeout:g}s") from e
        except Exception as e:
            raise error_cls(f"{label} failed: {e}") from e

    async def _ledger(self, op: str, job_id: Optional[UUID], *args: Any) -> bool:
        """Ghi ledger best-effort: LedgerWriteError chỉ log, attempt vẫn tiếp tục."""
        if job_id is None:
            logger.warning("queue.ledger_write_skipped", op=op, reason="no_job")
            return False
        try:
            await getattr(self._job_ledger, op)(job_id, *args)
        except LedgerWriteError as e:
            logger.error("queue.ledger_write_failed", op=op, job_id=str(job_id), error=str(e))
            return False
        return True

    async def _reschedule(self, campaign: CampaignSnapshot) -> Optional[datetime]:
        """next_due = now (sau khi terminal) + interval_hours. Lỗi cấu hình lịch -> schedule_error event."""
        try:
            hours = resolve_interval_hours(campaign.schedule_hours, campaign.schedule)
        except ScheduleConfigError as e:
            logger.error("queue.schedule_config_error", campaign_id=str(campaign.id), error=str(e))
            await self._record(campaign.id, EVENT_SCHEDULE_ERROR, str(e), severity="error")
            return None
        next_due = compute_next_due(self._clock(), hours)
        try:
            await self._schedule_store.write_next_due(campaign.id, next_due)
        except LedgerWriteError as e:
            logger.error("queue.reschedule_failed", campaign_id=str(campaign.id), error=str(e))
            return None
        logger.info(
            "queue.rescheduled",
            campaign_id=str(campaign.id),
            interval_hours=str(hours),
            next_due=next_due.isoformat(),
        )
        return next_due

    async def _record_outcome(self, campaign: CampaignSnapshot, outcome: AttemptOutcome) -> None:
        metadata = {
            "job_id": str(outcome.job_id) if outcome.job_id else None,
            "content_type": outcome.content_type,
        }
        if outcome.status == STATUS_COMPLETED:
            metadata["remote_post_id"] = outcome.remote_post_id
            metadata["remote_post_url"] = outcome.remote_post_url
            await self._record(
                campaign.id,
                EVENT_CONTENT_PUBLISHED,
                f'Published "{outcome.title}"',
                metadata=metadata,
            )
        else:
            await self._record(
                campaign.id,
                EVENT_CONTENT_FAILED,
                f"Content generation failed: {outcome.error}",
                severity="error",
                metadata=metadata,
            )

    async def _record(
        self,
        campaign_id: UUID,
        event_type: str,
        message: str,
        severity: str = "info",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        try:
            await self._event_sink.record(campaign_id, event_type, message, severity=severity, metadata_=metadata)
        except Exception as e:
            logger.warning("queue.event_record_failed", campaign_id=str(campaign_id), event_type=event_type, error=str(e))
