"""
tests/test_ai_engine.py — Unit tests for the AI engine layer.

Tests parsing, retry behaviour and the intent classifier WITHOUT making real
LLM API calls. The transport is a FakeGenerator (see conftest.py) and the
retry clock is a RecordingSleep, so nothing here waits on real backoff.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from tenacity import RetryError

from leadscore.ai_engine.classifier import (
    FALLBACK_MARKER,
    IntentClassifier,
    build_intent_messages,
    heuristic_fallback_analysis,
)
from leadscore.ai_engine.parser import (
    ParsedIntent,
    UnparsedIntent,
    estimate_confidence,
    parse_intent_response,
)
from leadscore.ai_engine.retry import RetryPolicy
from leadscore.ai_engine.utils import ChatModelGenerator, build_openrouter_llm, truncate_for_context
from leadscore.config import settings
from leadscore.domain import IntentLevel
from leadscore.errors import ClassificationError, ClassifierNotConfiguredError


# ── parse_intent_response ─────────────────────────────────────────────────────

class TestParseIntentResponse:
    def test_parses_intent_and_reasoning_lines(self):
        assert parse_intent_response("Intent: High\nReasoning: strong fit") == ParsedIntent(
            level=IntentLevel.HIGH, reasoning="strong fit",
        )

    def test_labels_are_case_insensitive(self):
        result = parse_intent_response("intent: medium\nreasoning: Some overlap with the offer.")
        assert result.level == IntentLevel.MEDIUM
        assert result.reasoning == "Some overlap with the offer."

    def test_falls_back_to_keyword_families(self):
        result = parse_intent_response("This prospect shows moderate interest in automation tools.")
        assert isinstance(result, ParsedIntent)
        assert result.level == IntentLevel.MEDIUM
        assert result.reasoning == "This prospect shows moderate interest in automation tools"

    def test_high_family_checked_before_low(self):
        result = parse_intent_response("Weak title alignment but a strong industry match overall.")
        assert result.level == IntentLevel.HIGH

    def test_reasoning_falls_back_to_raw_text(self):
        result = parse_intent_response("High!")
        assert result == ParsedIntent(level=IntentLevel.HIGH, reasoning="High!")

    def test_no_intent_signal_is_unparsed_low(self):
        result = parse_intent_response("I cannot tell.")
        assert isinstance(result, UnparsedIntent)
        assert result.level == IntentLevel.LOW

    def test_empty_text_is_unparsed(self):
        result = parse_intent_response("")
        assert isinstance(result, UnparsedIntent)
        assert result.reasoning


# ── estimate_confidence ───────────────────────────────────────────────────────

class TestEstimateConfidence:
    def test_neutral_text_is_half(self):
        assert estimate_confidence("Intent: Medium\nReasoning: Some overlap") == 0.5

    def test_certainty_words_raise_confidence(self):
        assert estimate_confidence("Clearly an excellent fit") == 0.7

    def test_hedge_words_lower_confidence(self):
        assert estimate_confidence("It might work, maybe, but it is unclear") == 0.2

    def test_repeated_word_counts_once(self):
        assert estimate_confidence("strong strong strong") == 0.6

    def test_clamped_to_unit_interval(self):
        text = "clearly definitely obviously certainly strong excellent perfect ideal exactly precisely"
        assert estimate_confidence(text) == 1.0
        hedges = "might maybe possibly unclear limited insufficient uncertain difficult hard to determine"
        assert estimate_confidence(hedges) == 0.0


# ── truncate_for_context ──────────────────────────────────────────────────────

class TestTruncateForContext:
    def test_short_string_unchanged(self):
        assert truncate_for_context("Short text", max_chars=100) == "Short text"

    def test_long_string_truncated(self):
        result = truncate_for_context("a" * 3000, max_chars=2000)
        assert len(result) == 2003  # 2000 chars + "..."
        assert result.endswith("...")

    def test_none_becomes_empty(self):
        assert truncate_for_context(None) == ""


# ── RetryPolicy ───────────────────────────────────────────────────────────────

class TestRetryPolicy:
    def test_backoff_doubles_between_attempts(self, recording_sleep):
        attempts = []

        async def always_fails():
            attempts.append(1)
            raise RuntimeError("remote down")

        policy = RetryPolicy(max_attempts=3, base_delay_s=1.0, timeout_s=1.0, sleep=recording_sleep)
        with pytest.raises(RetryError) as exc_info:
            asyncio.run(policy.run(always_fails))

        assert len(attempts) == 3
        assert recording_sleep.delays == [1.0, 2.0]
        assert isinstance(exc_info.value.last_attempt.exception(), RuntimeError)

    def test_returns_first_successful_result(self, recording_sleep):
        outcomes = [RuntimeError("flaky"), "ok"]

        async def flaky():
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        policy = RetryPolicy(max_attempts=3, base_delay_s=0.5, sleep=recording_sleep)
        assert asyncio.run(policy.run(flaky)) == "ok"
        assert recording_sleep.delays == [0.5]

    def test_timeout_counts_as_failure(self, recording_sleep):
        async def slow():
            await asyncio.sleep(1)

        policy = RetryPolicy(max_attempts=2, base_delay_s=0.0, timeout_s=0.01, sleep=recording_sleep)
        with pytest.raises(RetryError) as exc_info:
            asyncio.run(policy.run(slow))

        assert isinstance(exc_info.value.last_attempt.exception(), asyncio.TimeoutError)

    def test_delay_for(self):
        policy = RetryPolicy(base_delay_s=0.25)
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [0.25, 0.5, 1.0]

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


# ── Transport helpers ─────────────────────────────────────────────────────────

class TestTransport:
    def test_build_llm_without_key_raises(self):
        with patch.object(settings, "openrouter_api_key", None):
            with pytest.raises(ClassifierNotConfiguredError):
                build_openrouter_llm()

    def test_build_llm_disables_client_retries(self):
        with patch.object(settings, "openrouter_api_key", "sk-test"):
            llm = build_openrouter_llm(timeout_s=5.0)
        assert llm.max_retries == 0

    def test_chat_model_generator_returns_content(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=MagicMock(content="Intent: Low"))
        text = asyncio.run(ChatModelGenerator(llm).generate([]))
        assert text == "Intent: Low"
        llm.ainvoke.assert_awaited_once()


# ── IntentClassifier ──────────────────────────────────────────────────────────

def _classifier(generator, sleep, attempts=3):
    return IntentClassifier(
        generator,
        retry_policy=RetryPolicy(max_attempts=attempts, base_delay_s=1.0, timeout_s=1.0, sleep=sleep),
    )


class TestIntentClassifier:
    def test_prompt_embeds_prospect_and_offer(self, make_prospect, offer):
        prompt = "\n".join(m.content for m in build_intent_messages(make_prospect(), offer))
        assert "Ava Patel" in prompt
        assert "AI Outreach Automation" in prompt
        assert "Technology companies" in prompt
        assert "Intent:" in prompt

    def test_classify_parses_model_output(self, make_generator, recording_sleep, make_prospect, offer):
        classifier = _classifier(make_generator(), recording_sleep)
        analysis = asyncio.run(classifier.classify(make_prospect(), offer))

        assert analysis.intent_level == IntentLevel.HIGH
        assert analysis.intent_score == 50
        assert analysis.reasoning == "strong fit"
        assert analysis.confidence == 0.6
        assert analysis.fallback is False

    def test_empty_responses_are_retried(self, make_generator, recording_sleep, make_prospect, offer):
        generator = make_generator(responses=["", "   ", "Intent: Low\nReasoning: Weak fit for this offer."])
        analysis = asyncio.run(_classifier(generator, recording_sleep).classify(make_prospect(), offer))

        assert len(generator.calls) == 3
        assert recording_sleep.delays == [1.0, 2.0]
        assert analysis.intent_level == IntentLevel.LOW
        assert analysis.intent_score == 10

    def test_classify_raises_after_exhausting_retries(self, make_generator, recording_sleep, make_prospect, offer):
        generator = make_generator(default=RuntimeError("service unavailable"))
        with pytest.raises(ClassificationError) as exc_info:
            asyncio.run(_classifier(generator, recording_sleep).classify(make_prospect(), offer))

        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.last_error, RuntimeError)
        assert len(generator.calls) == 3

    def test_unparsable_text_falls_back_without_retry(self, make_generator, recording_sleep, make_prospect, offer):
        generator = make_generator(responses=["I cannot tell."])
        analysis = asyncio.run(_classifier(generator, recording_sleep).classify(make_prospect(), offer))

        assert len(generator.calls) == 1
        assert analysis.fallback is True
        assert analysis.confidence == 0.3
        assert analysis.reasoning.startswith(FALLBACK_MARKER)
        assert analysis.intent_level == IntentLevel.HIGH   # CEO + industry match

    def test_analyze_intent_never_raises(self, make_generator, recording_sleep, make_prospect, offer):
        generator = make_generator(default=asyncio.TimeoutError())
        analysis = asyncio.run(_classifier(generator, recording_sleep).analyze_intent(make_prospect(), offer))

        assert analysis.confidence == 0.3
        assert FALLBACK_MARKER in analysis.reasoning
        assert analysis.intent_score == analysis.intent_level.score

    def test_connectivity_ok(self, make_generator, recording_sleep):
        result = asyncio.run(_classifier(make_generator(default="OK"), recording_sleep).check_connectivity())
        assert result.connected is True
        assert result.error is None
        assert result.response_time_ms >= 0

    def test_connectivity_failure_is_reported(self, make_generator, recording_sleep):
        generator = make_generator(default=ConnectionError("refused"))
        result = asyncio.run(_classifier(generator, recording_sleep, attempts=2).check_connectivity())
        assert result.connected is False
        assert "refused" in result.error


# ── Heuristic fallback ────────────────────────────────────────────────────────

class TestHeuristicFallback:
    def test_decision_maker_with_industry_match_is_high(self, make_prospect, offer):
        assert heuristic_fallback_analysis(make_prospect(), offer).intent_level == IntentLevel.HIGH

    def test_one_signal_is_medium(self, make_prospect, offer):
        analysis = heuristic_fallback_analysis(make_prospect(industry="Agriculture"), offer)
        assert analysis.intent_level == IntentLevel.MEDIUM
        assert analysis.intent_score == 30

    def test_no_signal_is_low(self, make_prospect, offer):
        analysis = heuristic_fallback_analysis(
            make_prospect(role="Software Engineer", industry="Agriculture"), offer,
        )
        assert analysis.intent_level == IntentLevel.LOW
        assert analysis.fallback is True
        assert analysis.reasoning.startswith(FALLBACK_MARKER)
