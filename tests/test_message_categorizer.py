from __future__ import annotations

import pytest

from services.message_categorizer import KeywordMatcher, MessageCategorizer, MessageCategory, build_matchers


@pytest.fixture
def categorize(prompt_manager):
    return prompt_manager.categorize


@pytest.mark.parametrize("message", ["", "   ", "\n\t "])
def test_empty_and_whitespace_messages_are_empty(categorize, message):
    assert categorize(message) == MessageCategory.EMPTY


def test_length_check_runs_before_emergency(categorize):
    message = "I have severe chest pain. " + ("x" * 5000)
    assert len(message) > 5000
    assert categorize(message) == MessageCategory.TOO_LONG


def test_message_at_length_limit_is_not_too_long(categorize):
    message = "chest pain " + ("x" * (5000 - len("chest pain ")))
    assert len(message) == 5000
    assert categorize(message) == MessageCategory.EMERGENCY


def test_emergency_wins_over_every_other_category(categorize):
    assert categorize("I have chest pain and also want a recipe") == MessageCategory.EMERGENCY
    assert categorize("I think about suicide, is there a sexual cause?") == MessageCategory.EMERGENCY


@pytest.mark.parametrize(
    "message",
    [
        "My father is UNCONSCIOUS on the floor",
        "I can't breathe properly",
        "There is severe bleeding from my leg",
    ],
)
def test_emergency_keywords_are_case_insensitive(categorize, message):
    assert categorize(message) == MessageCategory.EMERGENCY


def test_dangerous_is_checked_before_inappropriate(categorize):
    assert categorize("What is the lethal dose of paracetamol?") == MessageCategory.DANGEROUS
    assert categorize("how many pills of sexual enhancers should I take") == MessageCategory.DANGEROUS


def test_inappropriate_patterns(categorize):
    assert categorize("Show me nude pictures") == MessageCategory.INAPPROPRIATE
    assert categorize("Tell me about SEX positions") == MessageCategory.INAPPROPRIATE


def test_non_health_redirect(categorize):
    assert categorize("What's the weather forecast for tomorrow?") == MessageCategory.NON_HEALTH
    assert categorize("Can you share a good recipe for dinner") == MessageCategory.NON_HEALTH


@pytest.mark.parametrize("message", ["hello", "Hi", "  good morning  ", "thanks", "ok", "yo!", "?"])
def test_greetings_and_very_short_messages(categorize, message):
    assert categorize(message) == MessageCategory.GREETING


def test_greeting_is_checked_after_unsafe_categories(categorize):
    # 3글자 이하라도 부적절 패턴이 먼저
    assert categorize("sex") == MessageCategory.INAPPROPRIATE


def test_routine_keywords_suppress_consultation(categorize):
    message = "I've had a mild headache for weeks, getting worse"
    assert categorize(message) == MessageCategory.ROUTINE_HEALTH


def test_consultation_needed_without_routine_topic(categorize):
    assert categorize("I found a lump on my neck") == MessageCategory.CONSULTATION_NEEDED


def test_routine_health(categorize):
    assert categorize("Any tips for better sleep at night?") == MessageCategory.ROUTINE_HEALTH


def test_general_fallback(categorize):
    assert categorize("Can you explain what ayurveda says about digestion?") == MessageCategory.GENERAL


def test_matching_is_substring_based(categorize):
    # "cold" 는 "scolded" 안에서도 매치된다 (부분 문자열 매칭 유지)
    assert categorize("My boss scolded me today") == MessageCategory.ROUTINE_HEALTH


def test_categorize_is_deterministic(categorize):
    message = "I feel tired after lunch every day"
    assert {categorize(message) for _ in range(5)} == {MessageCategory.ROUTINE_HEALTH}


def test_regex_and_substring_matchers():
    substring = KeywordMatcher(name="s", patterns=("Chest Pain",))
    regex = KeywordMatcher(name="r", patterns=(r"^hi$",), mode="regex")

    assert substring.matches("sudden CHEST PAIN")
    assert not substring.matches("chest")
    assert regex.matches("HI")
    assert not regex.matches("hi there")


def test_matchers_compare_by_declared_patterns():
    first = KeywordMatcher(name="s", patterns=("cough",))
    second = KeywordMatcher(name="s", patterns=("cough",))

    assert first == second
    assert hash(first) == hash(second)
    assert "_compiled" not in repr(first)
    assert first._compiled == ("cough",)


def test_unknown_match_mode_is_rejected():
    with pytest.raises(ValueError):
        KeywordMatcher(name="bad", patterns=("x",), mode="fuzzy")


def test_categorizer_requires_all_keyword_sets():
    matchers = build_matchers({"emergency": {"patterns": ["stroke"]}})
    with pytest.raises(ValueError, match="Missing keyword sets"):
        MessageCategorizer(matchers)


def test_matcher_table_is_read_only(prompt_manager):
    with pytest.raises(TypeError):
        prompt_manager.config.matchers["emergency"] = KeywordMatcher(name="x", patterns=())
