"""Tests for the retry supervisor."""

import asyncio

import pytest

from conftest import FakeChannel, SleepRecorder
from shopx.core.config import RetryConfig
from shopx.core.errors import CheckoutPreconditionError, RetryExhaustedError
from shopx.core.retry import RetrySupervisor


def flaky(failures, result="ok", error=RuntimeError("boom")):
    calls = {"count": 0}

    async def fn():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise error
        return result

    return fn, calls


@pytest.mark.asyncio
async def test_warns_once_per_failure_then_succeeds():
    channel = FakeChannel()
    sleeps = SleepRecorder()
    supervisor = RetrySupervisor(channel, max_attempts=3, base_delay=1.0, sleep=sleeps)
    fn, calls = flaky(2)

    result = await supervisor.execute("Product search", fn)

    assert result == "ok"
    assert calls["count"] == 3
    assert channel.texts == [
        "Product search failed (attempt 1/3): boom",
        "Product search failed (attempt 2/3): boom",
    ]
    assert sleeps.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_exhaustion_raises_with_operation_and_last_error():
    channel = FakeChannel()
    sleeps = SleepRecorder()
    supervisor = RetrySupervisor(channel, max_attempts=3, base_delay=0.5, sleep=sleeps)
    fn, calls = flaky(10, error=ValueError("layout changed"))

    with pytest.raises(RetryExhaustedError) as exc_info:
        await supervisor.execute("Product extraction", fn)

    error = exc_info.value
    assert error.operation == "Product extraction"
    assert error.attempts == 3
    assert isinstance(error.last_error, ValueError)
    assert str(error) == "Product extraction failed after 3 attempts: layout changed"
    assert calls["count"] == 3
    assert len(channel.messages) == 3
    # No wait after the final attempt
    assert sleeps.delays == [0.5, 1.0]


@pytest.mark.asyncio
async def test_non_retryable_error_propagates_immediately(channel, supervisor):
    fn, calls = flaky(10, error=CheckoutPreconditionError("wrong page"))

    with pytest.raises(CheckoutPreconditionError):
        await supervisor.execute("Checkout", fn)

    assert calls["count"] == 1
    assert channel.messages == []


@pytest.mark.asyncio
async def test_per_call_attempt_override(channel, supervisor):
    fn, calls = flaky(10)

    with pytest.raises(RetryExhaustedError) as exc_info:
        await supervisor.execute("Checkout", fn, max_attempts=5)

    assert exc_info.value.attempts == 5
    assert calls["count"] == 5
    assert channel.texts[-1] == "Checkout failed (attempt 5/5): boom"


@pytest.mark.asyncio
async def test_blank_error_message_uses_exception_name(channel, supervisor):
    fn, _ = flaky(1, error=ConnectionError())

    await supervisor.execute("Query planning", fn)

    assert channel.texts == ["Query planning failed (attempt 1/3): ConnectionError"]


@pytest.mark.asyncio
async def test_attempt_timeout_counts_as_failure(channel):
    supervisor = RetrySupervisor(channel, max_attempts=2, base_delay=0, attempt_timeout=0.01)

    async def hang():
        await asyncio.sleep(10)

    with pytest.raises(RetryExhaustedError) as exc_info:
        await supervisor.execute("Product search", hang)

    assert exc_info.value.attempts == 2
    assert isinstance(exc_info.value.last_error, asyncio.TimeoutError)


def test_backoff_doubles():
    supervisor = RetrySupervisor(FakeChannel(), base_delay=1.0)
    assert [supervisor.backoff(i) for i in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]
    assert supervisor.backoff(2, base_delay=0.25) == 0.5


def test_from_config():
    supervisor = RetrySupervisor.from_config(
        FakeChannel(), RetryConfig(max_attempts=4, base_delay=2.0, attempt_timeout=None)
    )
    assert supervisor.max_attempts == 4
    assert supervisor.base_delay == 2.0
    assert supervisor.attempt_timeout is None


def test_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RetrySupervisor(FakeChannel(), max_attempts=0)
