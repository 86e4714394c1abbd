"""
Tests for the retry policy
"""
from api.retry import RetryPolicy


class TestRetryPolicy:
    """Test retry budget and linear backoff."""

    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_retries == 3
        assert policy.base_delay == 1.0

    def test_backoff_is_linear(self):
        policy = RetryPolicy(base_delay=1.0)
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [1.0, 2.0, 3.0]

    def test_backoff_scales_with_base(self):
        policy = RetryPolicy(base_delay=0.25)
        assert policy.delay_for(2) == 0.5

    def test_budget(self):
        policy = RetryPolicy(max_retries=3)
        assert policy.should_retry(0)
        assert policy.should_retry(2)
        assert not policy.should_retry(3)

    def test_zero_budget_never_retries(self):
        assert not RetryPolicy(max_retries=0).should_retry(0)
