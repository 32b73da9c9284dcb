"""
Registry 15 content-type template (prompt + danh sách biến).
Biến được giải theo 3 tầng (thấp -> cao): default tĩnh của template -> field của campaign -> biến explicit.
Giá trị rỗng rơi xuống tầng thấp hơn.
"""
import random
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

MAX_CONTENT_TYPES = 5


@dataclass(frozen=True)
class ContentType:
    key: str
    name: str
    description: str
    prompt: str
    variables: Tuple[str, ...]


_TEMPLATES: Tuple[ContentType, ...] = (
    ContentType(
        key="how_to_guide",
        name="How-To Guide",
        description="Step-by-step instructional content",
        prompt=(
            "You are an expert SEO content writer. Write a detailed how-to guide on [TOPIC]. Audience: [AUDIENCE]. "
            "Primary keyword: [KEYWORD]. Structure the blog with step-by-step instructions, numbered lists, practical "
            "examples, and a summary checklist at the end. Include a clear introduction, detailed sections, and a "
            "conclusion with a CTA: [CTA]. Add 3-5 FAQ questions with short answers. Target length: [WORD_COUNT]. "
            "Tone: [TONE]."
        ),
        variables=("TOPIC", "AUDIENCE", "KEYWORD", "CTA", "WORD_COUNT", "TONE"),
    ),
    ContentType(
        key="listicle",
        name="Listicle",
        description="Top X style posts with numbered lists",
        prompt=(
            "Write a [NUMBER]-point listicle blog post about [TOPIC]. Audience: [AUDIENCE]. Primary keyword: [KEYWORD]. "
            "Each point should have a heading, explanation, and example. Use bullet points and tables where relevant. "
            "Add an engaging introduction, a key takeaways section at the end, and FAQs. Tone: [TONE]. "
            "Target length: [WORD_COUNT]."
        ),
        variables=("NUMBER", "TOPIC", "AUDIENCE", "KEYWORD", "TONE", "WORD_COUNT"),
    ),
    ContentType(
        key="comparison_post",
        name="Comparison Post",
        description="Compare products, services, or strategies",
        prompt=(
            "Write a comparison blog post on [PRODUCT_A] vs [PRODUCT_B]. Audience: [AUDIENCE]. Primary keyword: "
            "[KEYWORD]. Include pros, cons, pricing, features, and a side-by-side comparison table. Add a conclusion "
            "with a recommendation and CTA: [CTA]. Include FAQs (3-5). Tone: [TONE]. Target length: [WORD_COUNT]."
        ),
        variables=("PRODUCT_A", "PRODUCT_B", "AUDIENCE", "KEYWORD", "CTA", "TONE", "WORD_COUNT"),
    ),
    ContentType(
        key="review_post",
        name="Review Post",
        description="Detailed reviews of tools, products, or services",
        prompt=(
            "Write a detailed review blog post about [PRODUCT_SERVICE]. Audience: [AUDIENCE]. Primary keyword: "
            "[KEYWORD]. Cover introduction, features, benefits, pricing, pros and cons, who it's best for, and "
            "alternatives. Include bullet lists and tables for clarity. Add FAQs and a final verdict with a CTA: "
            "[CTA]. Tone: [TONE]. Target length: [WORD_COUNT]."
        ),
        variables=("PRODUCT_SERVICE", "AUDIENCE", "KEYWORD", "CTA", "TONE", "WORD_COUNT"),
    ),
    ContentType(
        key="ultimate_guide",
        name="Ultimate Guide",
        description="Comprehensive coverage of a topic",
        prompt=(
            "You are an expert SEO content writer. Write an ultimate guide blog post on [TOPIC]. Audience: [AUDIENCE]. "
            "Primary keyword: [KEYWORD]. Cover definitions, benefits, strategies, tools, mistakes to avoid, and "
            "future trends. Use H2/H3 subheadings, bullet lists, tables, and examples. Add FAQs and a strong CTA at "
            "the end: [CTA]. Tone: [TONE]. Target length: [WORD_COUNT]."
        ),
        variables=("TOPIC", "AUDIENCE", "KEYWORD", "CTA", "TONE", "WORD_COUNT"),
    ),
    ContentType(
        key="case_study",
        name="Case Study/Storytelling",
        description="Real examples and success stories",
        prompt=(
            "Write a storytelling blog post in the format of a case study about [TOPIC_CLIENT_BRAND]. Audience: "
            "[AUDIENCE]. Primary keyword: [KEYWORD]. Structure as: Background, Challenges, Solutions, Results, Key "
            "Lessons. Use narrative tone with data, quotes, or examples. Add FAQs at the end. CTA: [CTA]. "
            "Target length: [WORD_COUNT]."
        ),
        variables=("TOPIC_CLIENT_BRAND", "AUDIENCE", "KEYWORD", "CTA", "WORD_COUNT"),
    ),
    ContentType(
        key="problem_solution",
        name="Problem-Solution Post",
        description="Address pain points with solutions",
        prompt=(
            "Write a problem-solution blog post about [TOPIC]. Audience: [AUDIENCE]. Primary keyword: [KEYWORD]. "
            "Start with the pain point, describe why it's a problem, then present a solution step-by-step. Use "
            "bullet points and real-world examples. Add FAQs and a persuasive conclusion with CTA: [CTA]. "
            "Tone: [TONE]. Target length: [WORD_COUNT]."
        ),
        variables=("TOPIC", "AUDIENCE", "KEYWORD", "CTA", "TONE", "WORD_COUNT"),
    ),
    ContentType(
        key="trending_topic",
        name="Trending Topic/News Analysis",
        description="Fresh, timely content on current events",
        prompt=(
            "Write a trending topic blog post analyzing [LATEST_TREND_EVENT]. Audience: [AUDIENCE]. Primary keyword: "
            "[KEYWORD]. Provide background, implications, expert opinions, and action steps. Structure with "
            "subheadings and bullet lists. Add a conclusion with CTA: [CTA]. FAQs optional. Tone: [TONE]. "
            "Target length: [WORD_COUNT]."
        ),
        variables=("LATEST_TREND_EVENT", "AUDIENCE", "KEYWORD", "CTA", "TONE", "WORD_COUNT"),
    ),
    ContentType(
        key="thought_leadership",
        name="Thought Leadership Post",
        description="Position yourself as an expert authority",
        prompt=(
            "Write a thought leadership blog post sharing insights on [TOPIC]. Audience: [AUDIENCE]. Primary keyword: "
            "[KEYWORD]. Use authoritative but approachable tone. Include personal insights, industry trends, expert "
            "references, and forward-looking predictions. Structure with H2/H3s. Add FAQs. Conclusion with CTA: "
            "[CTA]. Target length: [WORD_COUNT]."
        ),
        variables=("TOPIC", "AUDIENCE", "KEYWORD", "CTA", "WORD_COUNT"),
    ),
    ContentType(
        key="beginners_guide",
        name="Beginner's Guide",
        description="Educational content for entry-level readers",
        prompt=(
            "Write a beginner's guide blog post on [TOPIC]. Audience: [BEGINNERS_NEWBIES]. Primary keyword: "
            "[KEYWORD]. Break concepts into simple steps, use analogies, bullet points, and examples. Add a glossary "
            "of key terms and FAQs. End with a conclusion and CTA: [CTA]. Tone: friendly and educational. "
            "Target length: [WORD_COUNT]."
        ),
        variables=("TOPIC", "BEGINNERS_NEWBIES", "KEYWORD", "CTA", "WORD_COUNT"),
    ),
    ContentType(
        key="advanced_guide",
        name="Advanced/Expert Guide",
        description="Deep content for experienced audiences",
        prompt=(
            "Write an advanced blog post on [TOPIC] for experienced [AUDIENCE]. Primary keyword: [KEYWORD]. Cover "
            "deep strategies, expert techniques, and advanced tools. Use industry terminology, data, and case "
            "examples. Add FAQs. End with a CTA: [CTA]. Tone: authoritative and professional. "
            "Target length: [WORD_COUNT]."
        ),
        variables=("TOPIC", "AUDIENCE", "KEYWORD", "CTA", "WORD_COUNT"),
    ),
    ContentType(
        key="faq_post",
        name="FAQ Post",
        description="Answer common questions for voice/AI searches",
        prompt=(
            "Write a FAQ-style blog post about [TOPIC]. Audience: [AUDIENCE]. Primary keyword: [KEYWORD]. Create "
            "10-15 common questions with detailed answers. Format with H2 for each question and schema-friendly "
            "answers. Add a conclusion with CTA: [CTA]. Tone: [TONE]. Target length: [WORD_COUNT]."
        ),
        variables=("TOPIC", "AUDIENCE", "KEYWORD", "CTA", "TONE", "WORD_COUNT"),
    ),
    ContentType(
        key="checklist_template",
        name="Checklist/Template Post",
        description="Actionable, practical step-by-step content",
        prompt=(
            "Write a checklist-style blog post on [TOPIC]. Audience: [AUDIENCE]. Primary keyword: [KEYWORD]. Provide "
            "a step-by-step checklist with tick-box style bullet points. Add a downloadable version CTA: [CTA]. "
            "Include FAQs and key takeaways. Tone: [TONE]. Target length: [WORD_COUNT]."
        ),
        variables=("TOPIC", "AUDIENCE", "KEYWORD", "CTA", "TONE", "WORD_COUNT"),
    ),
    ContentType(
        key="opinion_editorial",
        name="Opinion/Editorial Post",
        description="Express strong viewpoints and opinions",
        prompt=(
            "Write an editorial opinion blog post about [TOPIC]. Audience: [AUDIENCE]. Primary keyword: [KEYWORD]. "
            "Share a clear stance, provide arguments for and against, and back with examples/data. Add FAQs. "
            "Conclusion should reinforce your position and CTA: [CTA]. Tone: persuasive and authoritative. "
            "Target length: [WORD_COUNT]."
        ),
        variables=("TOPIC", "AUDIENCE", "KEYWORD", "CTA", "TONE", "WORD_COUNT"),
    ),
    ContentType(
        key="resource_roundup",
        name="Resource Roundup Post",
        description="Curate tools, tips, or external resources",
        prompt=(
            "Write a resource roundup blog post listing the best [TOOLS_RESOURCES_BOOKS] for [TOPIC]. Audience: "
            "[AUDIENCE]. Primary keyword: [KEYWORD]. Include a short intro for each resource, pros/cons, and links. "
            "Use a comparison table if relevant. Add FAQs and CTA: [CTA]. Tone: [TONE]. Target length: [WORD_COUNT]."
        ),
        variables=("TOOLS_RESOURCES_BOOKS", "TOPIC", "AUDIENCE", "KEYWORD", "CTA", "TONE", "WORD_COUNT"),
    ),
)

CONTENT_TYPES: Dict[str, ContentType] = {t.key: t for t in _TEMPLATES}

# Tầng 1: default tĩnh, không phụ thuộc campaign.
TEMPLATE_DEFAULTS: Dict[str, str] = {
    "TOPIC": "the topic",
    "AUDIENCE": "general audience",
    "KEYWORD": "main keyword",
    "TONE": "conversational",
    "WORD_COUNT": "1500-2000",
    "CTA": "Learn more about our services",
    "NUMBER": "10",
    "PRODUCT_A": "Product A",
    "PRODUCT_B": "Product B",
    "PRODUCT_SERVICE": "the product/service",
    "TOPIC_CLIENT_BRAND": "the topic",
    "LATEST_TREND_EVENT": "the latest trend",
    "BEGINNERS_NEWBIES": "beginners",
    "TOOLS_RESOURCES_BOOKS": "tools and resources",
}

_PLACEHOLDER_RE = re.compile(r"\[([A-Z_]+)\]")


def all_content_types() -> Dict[str, ContentType]:
    return dict(CONTENT_TYPES)


def get_content_type(key: str) -> Optional[ContentType]:
    return CONTENT_TYPES.get(key)


def all_variables() -> List[str]:
    """Tất cả biến duy nhất, theo thứ tự xuất hiện trong registry."""
    seen: Dict[str, None] = {}
    for t in _TEMPLATES:
        for v in t.variables:
            seen.setdefault(v, None)
    return list(seen)


def validate_content_types(keys: Any) -> List[str]:
    """
    Kiểm tra lựa chọn content type tại ranh giới ghi campaign.
    Rỗng hợp lệ (= mọi template). Tối đa 5, tất cả phải có trong registry. Lỗi -> ValueError.
    """
    if not isinstance(keys, (list, tuple)):
        raise ValueError("content_types must be a list")
    if len(keys) > MAX_CONTENT_TYPES:
        raise ValueError(f"maximum {MAX_CONTENT_TYPES} content types allowed")
    invalid = [k for k in keys if k not in CONTENT_TYPES]
    if invalid:
        raise ValueError(f"invalid content types: {', '.join(map(str, invalid))}")
    return list(keys)


def pick_content_type(selected: Optional[Sequence[str]], rng: Optional[random.Random] = None) -> str:
    """Chọn ngẫu nhiên đều trong các type đã cấu hình; rỗng thì chọn trong toàn bộ registry."""
    pool = [k for k in (selected or []) if k in CONTENT_TYPES] or list(CONTENT_TYPES)
    return (rng or random).choice(pool)


def campaign_defaults(campaign: Any) -> Dict[str, str]:
    """Tầng 2: biến dẫn xuất từ field của campaign."""
    topic = (getattr(campaign, "topic", None) or "").strip()
    context = (getattr(campaign, "context", None) or "").strip()
    tone = (getattr(campaign, "tone_of_voice", None) or "").strip()
    out: Dict[str, str] = {}
    if topic:
        out["TOPIC"] = topic
        out["KEYWORD"] = topic
        out["TOPIC_CLIENT_BRAND"] = topic
    if context:
        out["AUDIENCE"] = context
    if tone:
        out["TONE"] = tone
    return out


def resolve_variables(
    content_type: ContentType,
    campaign: Any = None,
    explicit: Optional[Mapping[str, Any]] = None,
) -> Dict[str, str]:
    """
    Giải biến cho một template: default tĩnh < campaign < explicit.
    Chỉ trả về biến mà template khai báo. Giá trị None/rỗng không ghi đè tầng thấp hơn.
    """
    resolved: Dict[str, str] = {}
    tiers: Iterable[Mapping[str, Any]] = (
        TEMPLATE_DEFAULTS,
        campaign_defaults(campaign) if campaign is not None else {},
        explicit or {},
    )
    for tier in tiers:
        for name, value in tier.items():
            if value is None:
                continue
            text = str(value).strip()
            if text:
                resolved[name] = text
    return {name: resolved[name] for name in content_type.variables if name in resolved}


def build_prompt(content_type: ContentType, variables: Mapping[str, str]) -> str:
    """Thay [VAR] trong prompt; placeholder không có giá trị thì giữ nguyên."""
    return _PLACEHOLDER_RE.sub(lambda m: variables.get(m.group(1)) or m.group(0), content_type.prompt)
