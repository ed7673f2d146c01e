"""Retry strategies for polling host conditions.

The network gate waits for connectivity with a fixed interval and, by
default, no upper bound. The policy is an object handed in at construction
so tests can swap in a zero-delay or capped strategy and a fake sleep.

Example:
    >>> from relaykit.core.retry import ConstantBackoff, RetryContext
    >>>
    >>> strategy = ConstantBackoff(delay=5.0)          # forever, every 5s
    >>> ctx = RetryContext(strategy, sleep=lambda s: None)
    >>> ctx.poll(lambda: True)
    1
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class RetryExhausted(Exception):
    """Raised by ``RetryContext.poll`` when the strategy gives up."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Gave up after {attempts} attempts")


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Calculate delay before next retry attempt.

        Args:
            attempt: Zero-based attempt number (0 = first retry)

        Returns:
            Delay in seconds before next attempt
        """
        ...

    @abstractmethod
    def should_retry(self, attempt: int) -> bool:
        """Determine if another retry should be attempted.

        Args:
            attempt: Number of attempts made so far

        Returns:
            True if should retry, False otherwise
        """
        ...


@dataclass
class ConstantBackoff(RetryStrategy):
    """Constant delay between retries.

    ``max_retries=None`` means retry forever.
    """

    delay: float = 1.0
    max_retries: int | None = None

    def __post_init__(self) -> None:
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")
        if self.max_retries is not None and self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

    def next_delay(self, attempt: int) -> float:
        """Return constant delay."""
        return self.delay

    def should_retry(self, attempt: int) -> bool:
        if self.max_retries is None:
            return True
        return attempt <= self.max_retries

    @property
    def unbounded(self) -> bool:
        return self.max_retries is None


@dataclass
class RetryContext:
    """Tracks attempts while polling a condition.

    Example:
        >>> ctx = RetryContext(ConstantBackoff(delay=0, max_retries=2))
        >>> ctx.poll(lambda: False)
        Traceback (most recent call last):
        ...
        RetryExhausted: Gave up after 3 attempts
    """

    strategy: RetryStrategy
    on_retry: Callable[[int, float], None] | None = None
    sleep: Callable[[float], None] = time.sleep
    attempt: int = field(default=0, init=False)
    started_at: datetime = field(default_factory=utcnow, init=False)

    @property
    def elapsed_seconds(self) -> float:
        """Total elapsed time since the context was created."""
        return (utcnow() - self.started_at).total_seconds()

    def poll(self, condition: Callable[[], bool]) -> int:
        """Call ``condition`` until it returns True.

        Returns:
            Number of attempts it took.

        Raises:
            RetryExhausted: if the strategy stops allowing retries.
        """
        while True:
            self.attempt += 1
            if condition():
                return self.attempt

            if not self.strategy.should_retry(self.attempt):
                raise RetryExhausted(self.attempt)

            delay = self.strategy.next_delay(self.attempt - 1)
            if self.on_retry:
                self.on_retry(self.attempt, delay)
            self.sleep(delay)
