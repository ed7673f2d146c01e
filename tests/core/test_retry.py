"""Tests for relaykit.core.retry module."""

import pytest

from relaykit.core.retry import ConstantBackoff, RetryContext, RetryExhausted


class TestConstantBackoff:
    def test_delay_never_grows(self):
        strategy = ConstantBackoff(delay=5.0)
        assert [strategy.next_delay(n) for n in range(5)] == [5.0] * 5

    def test_unbounded_by_default(self):
        strategy = ConstantBackoff(delay=5.0)
        assert strategy.unbounded is True
        assert strategy.should_retry(10_000) is True

    def test_capped(self):
        strategy = ConstantBackoff(delay=0, max_retries=2)
        assert strategy.unbounded is False
        assert strategy.should_retry(1) is True
        assert strategy.should_retry(2) is True
        assert strategy.should_retry(3) is False

    @pytest.mark.parametrize("kwargs", [{"delay": -1}, {"delay": 1, "max_retries": -1}])
    def test_rejects_negative_values(self, kwargs):
        with pytest.raises(ValueError):
            ConstantBackoff(**kwargs)


class TestRetryContext:
    def test_first_attempt_success_does_not_sleep(self, recording_sleep):
        ctx = RetryContext(ConstantBackoff(delay=5.0), sleep=recording_sleep)
        assert ctx.poll(lambda: True) == 1
        assert recording_sleep.delays == []

    def test_succeeds_after_failures(self, recording_sleep):
        answers = iter([False, False, True])
        ctx = RetryContext(ConstantBackoff(delay=5.0), sleep=recording_sleep)
        assert ctx.poll(lambda: next(answers)) == 3
        assert recording_sleep.delays == [5.0, 5.0]

    def test_exhaustion_counts_every_attempt(self, recording_sleep):
        ctx = RetryContext(ConstantBackoff(delay=0.5, max_retries=2), sleep=recording_sleep)
        with pytest.raises(RetryExhausted) as exc_info:
            ctx.poll(lambda: False)
        assert exc_info.value.attempts == 3
        assert recording_sleep.delays == [0.5, 0.5]

    def test_on_retry_receives_attempt_and_delay(self, recording_sleep):
        seen = []
        ctx = RetryContext(
            ConstantBackoff(delay=2.0, max_retries=3),
            on_retry=lambda attempt, delay: seen.append((attempt, delay)),
            sleep=recording_sleep,
        )
        with pytest.raises(RetryExhausted):
            ctx.poll(lambda: False)
        assert seen == [(1, 2.0), (2, 2.0), (3, 2.0)]

    def test_elapsed_seconds_is_non_negative(self):
        ctx = RetryContext(ConstantBackoff())
        assert ctx.elapsed_seconds >= 0
