"""
OpenAI content generator: title ideas, blog post body (theo content-type template), keywords, image prompt.
Tất cả gọi chat completion nằm trong module này. Lỗi provider / output không dùng được -> GenerationError.
"""
import asyncio
import json
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from autoblog.config import Settings
from autoblog.content_types import build_prompt, get_content_type
from autoblog.errors import GenerationError
from autoblog.logging_config import get_logger
from autoblog.services.interfaces import CampaignSnapshot, GeneratedContent

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are an expert content writer who creates engaging, SEO-optimized blog posts. "
    "Always write in the specified tone and style, and include relevant keywords naturally."
)
TITLE_SYSTEM_PROMPT = (
    "You are an expert content strategist who creates compelling, SEO-optimized blog post titles. "
    "Generate titles that are engaging, click-worthy, and aligned with the business context."
)
KEYWORD_SYSTEM_PROMPT = "You are an SEO expert. Generate 5-8 relevant keywords for the given topic and content."

TONE_INSTRUCTIONS = {
    "conversational": "Write in a conversational, friendly tone as if talking to a friend.",
    "formal": "Write in a professional, formal tone suitable for business audiences.",
    "humorous": "Write with humor and wit, making it entertaining while informative.",
    "storytelling": "Write using storytelling techniques, with engaging narratives and examples.",
}
STYLE_INSTRUCTIONS = {
    "pas": "Use the Problem-Agitate-Solution (PAS) framework: identify a problem, agitate it, then provide a solution.",
    "aida": "Use the AIDA framework: Attention, Interest, Desire, Action.",
    "listicle": "Write as a numbered list with clear headings and actionable points.",
}

_TITLE_RE = re.compile(r"TITLE:\s*(.+?)(?:\n|$)", re.IGNORECASE)
_CONTENT_RE = re.compile(r"CONTENT:\s*([\s\S]+)", re.IGNORECASE)
_NUMBERING_RE = re.compile(r"^\s*\d+[.)]\s*")
_BULLET_RE = re.compile(r"^[-*\s]+")
MIN_TITLE_LEN = 10
MAX_KEYWORDS = 8


def build_body_prompt(campaign: CampaignSnapshot, content_type: str, variables: Dict[str, str]) -> str:
    """Prompt = template của content type + tone/style/điều cần tránh + định dạng TITLE/CONTENT."""
    template = get_content_type(content_type)
    if template is None:
        raise GenerationError(f"unknown content type: {content_type}")
    parts = [build_prompt(template, variables)]
    if campaign.context:
        parts.append(f"Context: {campaign.context}")
    parts.append(f"Tone: {TONE_INSTRUCTIONS.get(campaign.tone_of_voice, TONE_INSTRUCTIONS['conversational'])}")
    parts.append(f"Style: {STYLE_INSTRUCTIONS.get(campaign.writing_style, STYLE_INSTRUCTIONS['pas'])}")
    if campaign.imperfection_list:
        parts.append(f"Avoid these topics/approaches: {', '.join(campaign.imperfection_list)}")
    parts.append("Format the response as:\nTITLE: [Your title here]\nCONTENT: [Your full blog post content here]")
    return "\n\n".join(parts)


def build_title_prompt(campaign: CampaignSnapshot, count: int) -> str:
    return (
        f"Generate {count} compelling blog post titles for the following campaign:\n\n"
        f"Topic: {campaign.topic}\n"
        f"Business Context: {campaign.context}\n"
        f"Tone of Voice: {campaign.tone_of_voice}\n"
        f"Writing Style: {campaign.writing_style}\n\n"
        "Requirements:\n"
        "- Titles should be 50-70 characters long for optimal SEO\n"
        "- Include relevant keywords naturally\n"
        "- Vary the approach (how-to, listicle, question, statement, etc.)\n"
        "- Avoid clickbait but make them compelling\n\n"
        "Return the titles as a numbered list (1. Title here, 2. Title here, etc.)"
    )


def parse_generated_post(text: str) -> Tuple[str, str]:
    """Tách TITLE / CONTENT. Thiếu marker CONTENT thì cả text là body; thiếu TITLE -> chuỗi rỗng."""
    title_m = _TITLE_RE.search(text)
    content_m = _CONTENT_RE.search(text)
    title = title_m.group(1).strip() if title_m else ""
    body = content_m.group(1).strip() if content_m else text.strip()
    return title, body


def parse_titles(text: str) -> List[str]:
    """Danh sách đánh số -> list title; bỏ dòng quá ngắn."""
    titles = []
    for line in text.splitlines():
        title = _NUMBERING_RE.sub("", line).strip().strip('"')
        if len(title) > MIN_TITLE_LEN:
            titles.append(title)
    return titles


def parse_keywords(text: str) -> List[str]:
    """JSON array nếu parse được; nếu không thì tách theo dòng."""
    try:
        data = json.loads(text)
        if isinstance(data, list):
            return [str(k).strip() for k in data if str(k).strip()][:MAX_KEYWORDS]
    except (json.JSONDecodeError, TypeError):
        pass
    out = []
    for line in text.splitlines():
        kw = _BULLET_RE.sub("", _NUMBERING_RE.sub("", line)).strip().strip('"')
        if kw:
            out.append(kw)
    return out[:MAX_KEYWORDS]


def fallback_keywords(topic: str) -> List[str]:
    return [topic.lower(), "blog", "article", "tips", "guide"]


def build_image_prompt(topic: str, title: str) -> str:
    return (
        f'A professional, high-quality image related to "{topic}". {title}. '
        "Clean, modern style, suitable for a blog post header. No text overlay."
    )


def _strip_code_fence(content: str) -> str:
    if content.startswith("```"):
        lines = content.split("\n")
        content = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])
    return content


class OpenAIContentGenerator:
    """ContentGenerator qua OpenAI chat completions. Chỉ gọi GPT tại đây."""

    def __init__(self, settings: Settings, client: Any = None) -> None:
        """Khởi tạo từ app config (OPENAI_*). client cho phép inject (test)."""
        self.api_key = settings.openai_api_key
        self.model = settings.openai_model
        self.keyword_model = settings.openai_keyword_model
        self.timeout_seconds = settings.openai_timeout_seconds
        self.max_retries = settings.openai_max_retries
        self.temperature = settings.openai_temperature
        self.max_tokens = settings.openai_max_tokens
        self._client: Any = client

    def _get_client(self):  # noqa: ANN201
        """Lazy init OpenAI client (avoids import if key missing)."""
        if self._client is not None:
            return self._client
        if not self.api_key:
            raise GenerationError("OpenAI API key not configured. Cannot generate content.")
        from openai import OpenAI

        self._client = OpenAI(api_key=self.api_key, timeout=float(self.timeout_seconds), max_retries=self.max_retries)
        return self._client

    async def _complete(self, model: str, system: str, user: str, max_tokens: int, temperature: float) -> str:
        client = self._get_client()
        resp = await asyncio.to_thread(
            client.chat.completions.create,
            model=model,
            messages=[{"role": "system", "content": system}, {"role": "user", "content": user}],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        return _strip_code_fence((resp.choices[0].message.content or "").strip())

    async def generate_titles(self, campaign: CampaignSnapshot, count: int = 5) -> List[str]:
        """Sinh count title ứng viên (dùng cho title queue duyệt tay)."""
        start = time.perf_counter()
        try:
            text = await self._complete(self.model, TITLE_SYSTEM_PROMPT, build_title_prompt(campaign, count), 500, 0.8)
        except GenerationError:
            raise
        except Exception as e:
            logger.warning("generator.titles_failed", model=self.model, campaign_id=str(campaign.id), error=str(e))
            raise GenerationError(f"Title generation failed: {e}") from e
        titles = parse_titles(text)
        logger.info(
            "generator.titles_success",
            model=self.model,
            latency_ms=round((time.perf_counter() - start) * 1000),
            count=len(titles),
        )
        return titles

    async def generate_title(self, campaign: CampaignSnapshot) -> str:
        titles = await self.generate_titles(campaign, count=1)
        if not titles:
            raise GenerationError("Title generation returned no usable title")
        return titles[0]

    async def generate_keywords(self, topic: str, body: str) -> List[str]:
        """Keyword SEO; lỗi -> fallback keywords (không fail job)."""
        user = (
            f"Topic: {topic}\n\nContent: {body[:500]}...\n\n"
            "Generate 5-8 relevant SEO keywords as a JSON array."
        )
        try:
            text = await self._complete(self.keyword_model, KEYWORD_SYSTEM_PROMPT, user, 200, 0.3)
        except Exception as e:
            logger.warning("generator.keywords_failed", model=self.keyword_model, error=str(e))
            return fallback_keywords(topic)
        return parse_keywords(text) or fallback_keywords(topic)

    async def generate_body(
        self,
        campaign: CampaignSnapshot,
        content_type: str,
        variables: Dict[str, str],
    ) -> GeneratedContent:
        """
        Sinh bài blog cho campaign theo content_type.
        Returns GeneratedContent(title, body, keywords, image_prompt). Raise GenerationError khi lỗi.
        """
        prompt = build_body_prompt(campaign, content_type, variables)
        start = time.perf_counter()
        try:
            text = await self._complete(self.model, SYSTEM_PROMPT, prompt, self.max_tokens, self.temperature)
        except GenerationError:
            raise
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            logger.warning("generator.body_failed", model=self.model, latency_ms=round(latency_ms), error=str(e))
            raise GenerationError(f"Content generation failed: {e}") from e
        title, body = parse_generated_post(text)
        if not body:
            raise GenerationError("Content generation failed: empty response")
        title = title or "Generated Blog Post"
        keywords = await self.generate_keywords(campaign.topic, body)
        latency_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "generator.body_success",
            model=self.model,
            latency_ms=round(latency_ms),
            content_type=content_type,
            campaign_id=str(campaign.id),
        )
        return GeneratedContent(
            title=title,
            body=body,
            keywords=keywords,
            image_prompt=build_image_prompt(campaign.topic, title),
            content_type=content_type,
            generated_at=datetime.now(timezone.utc).isoformat(),
        )
