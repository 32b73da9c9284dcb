"""
Test registry content type + giải biến 3 tầng (default tĩnh < campaign < explicit).
"""
import random
from types import SimpleNamespace

import pytest

from autoblog.content_types import (
    CONTENT_TYPES,
    TEMPLATE_DEFAULTS,
    all_content_types,
    all_variables,
    build_prompt,
    get_content_type,
    pick_content_type,
    resolve_variables,
    validate_content_types,
)


def campaign(**kw):
    base = {"topic": "home espresso", "context": "coffee enthusiasts", "tone_of_voice": "humorous"}
    base.update(kw)
    return SimpleNamespace(**base)


def test_registry_has_fifteen_templates() -> None:
    assert len(all_content_types()) == 15
    assert get_content_type("listicle").name
    assert get_content_type("nope") is None
    variables = all_variables()
    assert len(variables) == len(set(variables))
    assert set(variables) <= set(TEMPLATE_DEFAULTS)


def test_static_defaults_when_nothing_else() -> None:
    ct = get_content_type("how_to_guide")
    resolved = resolve_variables(ct)
    assert resolved["TOPIC"] == TEMPLATE_DEFAULTS["TOPIC"]
    assert resolved["WORD_COUNT"] == "1500-2000"
    assert set(resolved) == set(ct.variables)


def test_campaign_fields_override_static_defaults() -> None:
    resolved = resolve_variables(get_content_type("how_to_guide"), campaign())
    assert resolved["TOPIC"] == "home espresso"
    assert resolved["KEYWORD"] == "home espresso"
    assert resolved["AUDIENCE"] == "coffee enthusiasts"
    assert resolved["TONE"] == "humorous"
    assert resolved["CTA"] == TEMPLATE_DEFAULTS["CTA"]


def test_explicit_variables_override_campaign_fields() -> None:
    resolved = resolve_variables(
        get_content_type("how_to_guide"),
        campaign(),
        {"TOPIC": "latte art", "CTA": "Book a class"},
    )
    assert resolved["TOPIC"] == "latte art"
    assert resolved["CTA"] == "Book a class"
    assert resolved["AUDIENCE"] == "coffee enthusiasts"


def test_blank_values_fall_through_to_lower_tier() -> None:
    resolved = resolve_variables(
        get_content_type("how_to_guide"),
        campaign(context=""),
        {"TOPIC": "   ", "AUDIENCE": None},
    )
    assert resolved["TOPIC"] == "home espresso"
    assert resolved["AUDIENCE"] == TEMPLATE_DEFAULTS["AUDIENCE"]


def test_only_declared_variables_are_returned() -> None:
    ct = get_content_type("case_study")
    resolved = resolve_variables(ct, campaign(), {"NUMBER": "5"})
    assert "NUMBER" not in resolved
    assert resolved["TOPIC_CLIENT_BRAND"] == "home espresso"


def test_build_prompt_substitutes_and_keeps_unknown_placeholders() -> None:
    ct = get_content_type("listicle")
    prompt = build_prompt(ct, {"TOPIC": "grinders", "NUMBER": "7"})
    assert "grinders" in prompt
    assert "[TOPIC]" not in prompt
    assert "[AUDIENCE]" in prompt


def test_validate_content_types() -> None:
    assert validate_content_types([]) == []
    assert validate_content_types(["listicle"]) == ["listicle"]
    with pytest.raises(ValueError):
        validate_content_types("listicle")
    with pytest.raises(ValueError):
        validate_content_types(["listicle", "bogus"])
    with pytest.raises(ValueError):
        validate_content_types(list(CONTENT_TYPES)[:6])


def test_pick_content_type_is_uniform_over_configured_set() -> None:
    rng = random.Random(1)
    picks = {pick_content_type(["listicle", "faq_post"], rng) for _ in range(50)}
    assert picks == {"listicle", "faq_post"}


def test_pick_content_type_falls_back_to_registry() -> None:
    rng = random.Random(3)
    assert pick_content_type([], rng) in CONTENT_TYPES
    assert pick_content_type(None, rng) in CONTENT_TYPES
    assert pick_content_type(["bogus"], rng) in CONTENT_TYPES
