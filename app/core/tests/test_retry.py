"""
Tests for the retry state machine and retry_async.
"""

import pytest
from asgiref.sync import async_to_sync

from core.exceptions import PermissionDeniedError, TransientIOError
from core.retry import RetryPolicy, RetryState, retry_async


class TestRetryPolicy:
    def test_default_schedule(self):
        """3 attempts: immediately, after 1.5s, after 3s."""
        assert RetryPolicy().schedule() == [1.5, 3.0]

    def test_start_is_first_attempt_without_delay(self):
        assert RetryPolicy().start() == RetryState(attempt=1, delay=0.0)

    def test_next_advances_attempt_and_delay(self):
        policy = RetryPolicy()

        second = policy.next(policy.start())
        third = policy.next(second)

        assert second == RetryState(attempt=2, delay=1.5)
        assert third == RetryState(attempt=3, delay=3.0)

    def test_gives_up_after_max_attempts(self):
        policy = RetryPolicy(max_attempts=3)

        assert policy.next(RetryState(attempt=3)) is None

    def test_single_attempt_policy_never_retries(self):
        assert RetryPolicy(max_attempts=1).schedule() == []

    def test_delay_is_capped(self):
        policy = RetryPolicy(max_attempts=10, base_delay=1.0, max_delay=5.0)

        assert policy.schedule() == [1.0, 2.0, 4.0, 5.0, 5.0, 5.0, 5.0, 5.0, 5.0]

    def test_jitter_only_adds_delay(self):
        policy = RetryPolicy(base_delay=2.0, jitter=0.5)

        for _ in range(20):
            assert 2.0 <= policy.delay_for(1) <= 3.0

    @pytest.mark.parametrize(
        "kwargs", [{"max_attempts": 0}, {"base_delay": -1}, {"max_delay": -1}]
    )
    def test_rejects_invalid_configuration(self, kwargs):
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)

    def test_from_settings(self, settings):
        settings.PUSH_RETRY_MAX_ATTEMPTS = 5
        settings.PUSH_RETRY_BASE_DELAY = 0.5
        settings.PUSH_RETRY_MAX_DELAY = 10.0

        policy = RetryPolicy.from_settings()

        assert policy.max_attempts == 5
        assert policy.base_delay == 0.5
        assert policy.max_delay == 10.0


class TestRetryAsync:
    """
    Why it matters: session refresh must ride out short identity-provider
    outages without retrying forever or retrying a rejected credential.
    """

    def make_sleep(self):
        slept = []

        async def sleep(delay):
            slept.append(delay)

        return sleep, slept

    def test_returns_first_success(self):
        sleep, slept = self.make_sleep()

        async def succeed():
            return "ok"

        assert async_to_sync(retry_async)(succeed, sleep=sleep) == "ok"
        assert slept == []

    def test_retries_transient_errors_with_backoff(self):
        sleep, slept = self.make_sleep()
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise TransientIOError("down")
            return "ok"

        assert async_to_sync(retry_async)(flaky, sleep=sleep) == "ok"
        assert slept == [1.5, 3.0]

    def test_reraises_after_budget_is_spent(self):
        sleep, slept = self.make_sleep()
        calls = []

        async def down():
            calls.append(1)
            raise TransientIOError("down")

        with pytest.raises(TransientIOError):
            async_to_sync(retry_async)(down, sleep=sleep)

        assert len(calls) == 3
        assert slept == [1.5, 3.0]

    def test_other_errors_are_not_retried(self):
        sleep, slept = self.make_sleep()
        calls = []

        async def denied():
            calls.append(1)
            raise PermissionDeniedError("no")

        with pytest.raises(PermissionDeniedError):
            async_to_sync(retry_async)(denied, sleep=sleep)

        assert len(calls) == 1
