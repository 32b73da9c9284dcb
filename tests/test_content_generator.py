"""
Test OpenAIContentGenerator với client giả (không gọi OpenAI thật):
- Prompt theo content type + tone/style; parse TITLE/CONTENT; keyword JSON hoặc fallback.
- Lỗi provider / body rỗng -> GenerationError.
"""
import uuid
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from autoblog.config import Settings
from autoblog.errors import GenerationError, ImageGenerationError
from autoblog.services.content_generator import (
    OpenAIContentGenerator,
    build_body_prompt,
    fallback_keywords,
    parse_generated_post,
    parse_keywords,
    parse_titles,
)
from autoblog.services.image_generator import OpenAIImageGenerator
from autoblog.services.interfaces import CampaignSnapshot


def completion(text: str) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


def campaign(**kw) -> CampaignSnapshot:
    base = dict(
        id=uuid.uuid4(),
        topic="home espresso",
        context="coffee enthusiasts",
        tone_of_voice="formal",
        writing_style="listicle",
        imperfection_list=["brand bashing"],
    )
    base.update(kw)
    return CampaignSnapshot(**base)


def test_build_body_prompt_includes_template_tone_style_and_avoid_list() -> None:
    prompt = build_body_prompt(campaign(), "listicle", {"TOPIC": "grinders", "NUMBER": "7"})
    assert "7-point listicle" in prompt
    assert "grinders" in prompt
    assert "professional, formal tone" in prompt
    assert "numbered list" in prompt
    assert "Avoid these topics/approaches: brand bashing" in prompt
    assert "TITLE:" in prompt and "CONTENT:" in prompt


def test_build_body_prompt_unknown_type() -> None:
    with pytest.raises(GenerationError):
        build_body_prompt(campaign(), "poem", {})


def test_parse_generated_post() -> None:
    title, body = parse_generated_post("TITLE: Espresso 101\nCONTENT: Grind fine.\n\nTamp.")
    assert title == "Espresso 101"
    assert body == "Grind fine.\n\nTamp."
    assert parse_generated_post("just text") == ("", "just text")


def test_parse_titles_and_keywords() -> None:
    titles = parse_titles('1. "How to Pull a Perfect Espresso Shot"\n2) Short\n3. Ten Grinders Worth Buying in 2026')
    assert titles == ["How to Pull a Perfect Espresso Shot", "Ten Grinders Worth Buying in 2026"]
    assert parse_keywords('["espresso", "grinder", " "]') == ["espresso", "grinder"]
    assert parse_keywords("1. espresso\n- grinder\n* tamper") == ["espresso", "grinder", "tamper"]
    assert fallback_keywords("Espresso") == ["espresso", "blog", "article", "tips", "guide"]


@pytest.mark.asyncio
async def test_generate_body_parses_completion_and_keywords() -> None:
    client = MagicMock()
    client.chat.completions.create.side_effect = [
        completion("TITLE: Espresso at Home\nCONTENT: Use a burr grinder and fresh beans."),
        completion('```json\n["espresso", "burr grinder"]\n```'),
    ]
    generator = OpenAIContentGenerator(Settings(), client=client)

    result = await generator.generate_body(campaign(), "how_to_guide", {"TOPIC": "home espresso"})

    assert result.title == "Espresso at Home"
    assert result.body == "Use a burr grinder and fresh beans."
    assert result.keywords == ["espresso", "burr grinder"]
    assert result.content_type == "how_to_guide"
    assert "home espresso" in result.image_prompt
    assert client.chat.completions.create.call_count == 2


@pytest.mark.asyncio
async def test_generate_body_keyword_failure_uses_fallback() -> None:
    client = MagicMock()
    client.chat.completions.create.side_effect = [
        completion("CONTENT: Body without a title."),
        RuntimeError("rate limited"),
    ]
    generator = OpenAIContentGenerator(Settings(), client=client)

    result = await generator.generate_body(campaign(), "faq_post", {})

    assert result.title == "Generated Blog Post"
    assert result.keywords == fallback_keywords("home espresso")


@pytest.mark.asyncio
async def test_generate_body_provider_error_is_generation_error() -> None:
    client = MagicMock()
    client.chat.completions.create.side_effect = RuntimeError("503 upstream")
    generator = OpenAIContentGenerator(Settings(), client=client)

    with pytest.raises(GenerationError) as exc:
        await generator.generate_body(campaign(), "faq_post", {})
    assert "503 upstream" in str(exc.value)


@pytest.mark.asyncio
async def test_generate_body_empty_response_is_generation_error() -> None:
    client = MagicMock()
    client.chat.completions.create.return_value = completion("")
    generator = OpenAIContentGenerator(Settings(), client=client)

    with pytest.raises(GenerationError):
        await generator.generate_body(campaign(), "faq_post", {})


@pytest.mark.asyncio
async def test_missing_api_key_is_generation_error() -> None:
    generator = OpenAIContentGenerator(Settings(OPENAI_API_KEY=None))
    with pytest.raises(GenerationError):
        await generator.generate_title(campaign())


@pytest.mark.asyncio
async def test_generate_title_returns_first_candidate() -> None:
    client = MagicMock()
    client.chat.completions.create.return_value = completion("1. The Beginner's Guide to Espresso Machines")
    generator = OpenAIContentGenerator(Settings(), client=client)

    assert await generator.generate_title(campaign()) == "The Beginner's Guide to Espresso Machines"


@pytest.mark.asyncio
async def test_image_generator_returns_url_or_raises() -> None:
    client = MagicMock()
    client.images.generate.return_value = SimpleNamespace(data=[SimpleNamespace(url="https://img.example.com/x.png")])
    assert await OpenAIImageGenerator(Settings(), client=client).generate_image("espresso") == "https://img.example.com/x.png"

    client.images.generate.return_value = SimpleNamespace(data=[])
    with pytest.raises(ImageGenerationError):
        await OpenAIImageGenerator(Settings(), client=client).generate_image("espresso")

    client.images.generate.side_effect = RuntimeError("content policy")
    with pytest.raises(ImageGenerationError):
        await OpenAIImageGenerator(Settings(), client=client).generate_image("espresso")
