"""
Tests for error classification and the retry controller.
"""

import asyncio

import pytest

from grim_translator.ai.exceptions import RateLimitError, TranslationError
from grim_translator.ai.retry import ErrorKind, RetryController, RetryPolicy, classify_error
from helpers import FakeModel, failing_then


class TestClassifyError:
    """Tests for classify_error."""

    @pytest.mark.parametrize("message", [
        "Error 429: Too many requests",
        "Rate limit reached for requests",
        "RATE LIMIT",
        "Resource exhausted. Try again later.",
        "resource EXHAUSTED",
        "API quota exceeded",
        "Quota",
    ])
    def test_rate_limit_messages(self, message):
        assert classify_error(Exception(message)) is ErrorKind.RATE_LIMITED

    @pytest.mark.parametrize("message", [
        "Authentication failed",
        "Gemini API error (401): API key not valid",
        "Connection reset by peer",
        "",
    ])
    def test_other_messages_are_fatal(self, message):
        assert classify_error(Exception(message)) is ErrorKind.FATAL

    def test_works_with_any_exception_type(self):
        assert classify_error(TranslationError("Gemini API error (429): slow down")) is ErrorKind.RATE_LIMITED
        assert classify_error(ValueError("bad value")) is ErrorKind.FATAL


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_attempts == 3

    def test_delays_strictly_increase(self):
        policy = RetryPolicy(base_delay=0.5, multiplier=3)
        delays = [policy.delay_for(attempt) for attempt in range(1, 5)]
        assert delays == [0.5, 1.5, 4.5, 13.5]

    @pytest.mark.parametrize("kwargs", [
        {"max_attempts": 0},
        {"base_delay": 0},
        {"multiplier": 1},
    ])
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)


class TestRetryController:
    """Tests for RetryController.call."""

    def test_success_on_first_attempt(self, no_sleep_retry, sleeps):
        model = FakeModel(lambda prompt: "ok")

        assert asyncio.run(no_sleep_retry.call(model, "prompt")) == "ok"
        assert model.call_count == 1
        assert sleeps == []

    def test_two_rate_limits_then_success(self, no_sleep_retry, sleeps):
        model = FakeModel(failing_then(2, "Error 429: Too many requests", "ok"))

        assert asyncio.run(no_sleep_retry.call(model, "prompt")) == "ok"
        assert model.call_count == 3
        assert sleeps == [1.0, 2.0]

    def test_exhausted_rate_limit_raises_rate_limit_error(self, no_sleep_retry, sleeps):
        model = FakeModel(failing_then(3, "Resource exhausted", "never"))

        with pytest.raises(RateLimitError) as exc_info:
            asyncio.run(no_sleep_retry.call(model, "prompt"))

        assert str(exc_info.value) == "Rate limit exceeded. Maximum retry attempts reached."
        assert exc_info.value.name == "RateLimitError"
        assert type(exc_info.value).__name__ == "RateLimitError"
        assert exc_info.value.code == "rate_limit"
        assert str(exc_info.value.__cause__) == "Resource exhausted"
        assert model.call_count == 3
        # No wait after the final attempt
        assert len(sleeps) == 2

    def test_fatal_error_is_raised_unchanged_without_retry(self, no_sleep_retry, sleeps):
        error = RuntimeError("Authentication failed")

        def handler(prompt):
            raise error

        model = FakeModel(handler)

        with pytest.raises(RuntimeError) as exc_info:
            asyncio.run(no_sleep_retry.call(model, "prompt"))

        assert exc_info.value is error
        assert model.call_count == 1
        assert sleeps == []

    def test_fatal_error_after_rate_limit_stops_retrying(self, no_sleep_retry):
        messages = iter(["quota exceeded", "Authentication failed"])

        def handler(prompt):
            raise Exception(next(messages))

        model = FakeModel(handler)

        with pytest.raises(Exception, match="Authentication failed"):
            asyncio.run(no_sleep_retry.call(model, "prompt"))
        assert model.call_count == 2

    def test_custom_attempt_budget(self, sleeps):
        async def fake_sleep(delay):
            sleeps.append(delay)

        controller = RetryController(RetryPolicy(max_attempts=1), sleep=fake_sleep)
        model = FakeModel(failing_then(1, "429", "ok"))

        with pytest.raises(RateLimitError):
            asyncio.run(controller.call(model, "prompt"))
        assert model.call_count == 1
        assert sleeps == []

    def test_default_sleep_is_asyncio_sleep(self):
        controller = RetryController(RetryPolicy(base_delay=0.001))
        model = FakeModel(failing_then(1, "rate limit", "ok"))

        assert asyncio.run(controller.call(model, "prompt")) == "ok"
        assert model.call_count == 2
