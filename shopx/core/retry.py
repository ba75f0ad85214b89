"""Retry supervisor.

Every page-automation and completion call goes through ``RetrySupervisor.execute``
so backoff and failure reporting behave the same everywhere.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from shopx.core.config import RetryConfig
from shopx.core.errors import NonRetryableError, RetryExhaustedError, describe_error
from shopx.core.notify import NotificationChannel

T = TypeVar("T")


@dataclass
class AttemptRecord:
    """Attempt bookkeeping for one supervised operation.

    Attributes:
        operation: Operation name shown to the user
        attempts: Number of attempts made so far
        last_error: Most recent failure, if any
    """

    operation: str
    attempts: int = 0
    last_error: Optional[BaseException] = None


class RetrySupervisor:
    """Runs named operations with bounded exponential-backoff retry.

    Each failed attempt is reported over the notification channel as
    ``"<operation> failed (attempt i/max): <error>"``. Between attempts the
    supervisor waits ``base_delay * 2 ** (attempt - 1)`` seconds. When every
    attempt fails, ``RetryExhaustedError`` is raised with the operation name
    and the last underlying error.

    Errors derived from ``NonRetryableError`` propagate immediately.
    """

    def __init__(
        self,
        channel: NotificationChannel,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        attempt_timeout: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.channel = channel
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.attempt_timeout = attempt_timeout
        self._sleep = sleep

    @classmethod
    def from_config(cls, channel: NotificationChannel, config: RetryConfig, **kwargs) -> "RetrySupervisor":
        return cls(
            channel,
            max_attempts=config.max_attempts,
            base_delay=config.base_delay,
            attempt_timeout=config.attempt_timeout,
            **kwargs,
        )

    def backoff(self, attempt: int, base_delay: float | None = None) -> float:
        """Delay before the attempt following ``attempt`` (1-based)."""
        base = self.base_delay if base_delay is None else base_delay
        return base * (2 ** (attempt - 1))

    async def execute(
        self,
        operation: str,
        fn: Callable[[], Awaitable[T]],
        max_attempts: int | None = None,
        base_delay: float | None = None,
    ) -> T:
        """Run ``fn`` until it succeeds or the attempt budget is spent.

        Args:
            operation: Name used in warnings and in the terminal error
            fn: Zero-argument coroutine function to run
            max_attempts: Overrides the supervisor default for this call
            base_delay: Overrides the supervisor default for this call

        Returns:
            Whatever ``fn`` returns on its first successful attempt

        Raises:
            RetryExhaustedError: If every attempt failed
        """
        limit = max_attempts or self.max_attempts
        record = AttemptRecord(operation=operation)

        while record.attempts < limit:
            record.attempts += 1
            try:
                if self.attempt_timeout:
                    return await asyncio.wait_for(fn(), timeout=self.attempt_timeout)
                return await fn()
            except NonRetryableError:
                raise
            except Exception as e:
                record.last_error = e
                print(f"[Retry] {operation} attempt {record.attempts}/{limit} failed: {e!r}")
                await self.channel.send_message(
                    f"{operation} failed (attempt {record.attempts}/{limit}): {describe_error(e)}"
                )

            if record.attempts < limit:
                await self._sleep(self.backoff(record.attempts, base_delay))

        raise RetryExhaustedError(operation, record.attempts, record.last_error)
