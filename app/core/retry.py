"""
Bounded exponential backoff as a pure state machine.

A RetryPolicy never sleeps and never calls anything. It only answers
"given the attempt that just failed, is there another one and how long
should the caller wait before it". The actual waiting belongs to the caller:
retry_async() uses asyncio.sleep, Celery tasks pass the delay as countdown.

Usage:
    from core.retry import RetryPolicy, retry_async

    policy = RetryPolicy(max_attempts=3, base_delay=1.5)
    state = policy.start()
    while True:
        try:
            return do_work()
        except TransientIOError:
            state = policy.next(state)
            if state is None:
                raise
            time.sleep(state.delay)

    # or, for coroutines
    profile = await retry_async(lambda: store.refresh(uid), policy=policy)
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.conf import settings

from core.exceptions import TransientIOError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryState:
    """
    Position inside a retry sequence.

    Attributes:
        attempt: 1-indexed number of the attempt about to run
        delay: Seconds to wait before running it (0 for the first attempt)
    """

    attempt: int
    delay: float = 0.0


@dataclass(frozen=True)
class RetryPolicy:
    """
    Exponential backoff bounded by attempt count and maximum delay.

    The delay before attempt n+1 is base_delay * multiplier ** (n - 1),
    capped at max_delay, plus up to `jitter` (a fraction) of extra delay.

    With the defaults the sequence is: attempt 1 immediately, attempt 2
    after 1.5s, attempt 3 after 3s, then give up.
    """

    max_attempts: int = 3
    base_delay: float = 1.5
    multiplier: float = 2.0
    max_delay: float = 30.0
    jitter: float = 0.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must not be negative")

    @classmethod
    def from_settings(cls, prefix: str = "PUSH_RETRY") -> RetryPolicy:
        """
        Build a policy from <prefix>_MAX_ATTEMPTS / _BASE_DELAY / _MAX_DELAY.

        Missing settings fall back to the dataclass defaults.
        """
        return cls(
            max_attempts=getattr(settings, f"{prefix}_MAX_ATTEMPTS", cls.max_attempts),
            base_delay=getattr(settings, f"{prefix}_BASE_DELAY", cls.base_delay),
            max_delay=getattr(settings, f"{prefix}_MAX_DELAY", cls.max_delay),
        )

    def start(self) -> RetryState:
        return RetryState(attempt=1, delay=0.0)

    def delay_for(self, failed_attempt: int) -> float:
        """Seconds to wait after the given 1-indexed attempt failed."""
        delay = min(
            self.base_delay * (self.multiplier ** (failed_attempt - 1)),
            self.max_delay,
        )
        if self.jitter:
            delay += delay * random.uniform(0, self.jitter)
        return delay

    def next(self, state: RetryState) -> RetryState | None:
        """
        Transition after `state.attempt` failed.

        Returns None when the attempt budget is exhausted.
        """
        if state.attempt >= self.max_attempts:
            return None
        return RetryState(
            attempt=state.attempt + 1,
            delay=self.delay_for(state.attempt),
        )

    def schedule(self) -> list[float]:
        """Delays preceding each retry, in order. Empty for a single-attempt policy."""
        delays = []
        state: RetryState | None = self.start()
        while (state := self.next(state)) is not None:
            delays.append(state.delay)
        return delays


async def retry_async(
    func: Callable[[], Awaitable[Any]],
    *,
    policy: RetryPolicy | None = None,
    retry_on: tuple[type[BaseException], ...] = (TransientIOError,),
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Any:
    """
    Await func() until it succeeds or the policy gives up.

    Only exceptions listed in retry_on are retried; the last one is re-raised
    once the budget is spent. `sleep` is injectable so tests don't wait.
    """
    policy = policy or RetryPolicy()
    state: RetryState | None = policy.start()
    while True:
        try:
            return await func()
        except retry_on as e:
            failed = state.attempt
            state = policy.next(state)
            if state is None:
                logger.warning(f"Giving up after {failed} attempts: {e}")
                raise
            logger.info(
                f"Attempt {failed} failed ({e}); retrying in {state.delay:.2f}s"
            )
            await sleep(state.delay)
