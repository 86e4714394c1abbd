"""
Retry policy for failed dispatches.

Transport errors and non-2xx, non-429 responses share one bounded budget and
one linear backoff. Throttling (429) is handled by the rate limiter instead.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """
    Linear backoff with a fixed retry budget.

    A job gets one initial attempt plus up to ``max_retries`` retries. The
    retry numbered ``n`` (1-based) waits ``base_delay * n`` seconds.
    """

    max_retries: int = 3
    base_delay: float = 1.0

    def should_retry(self, attempt_count: int) -> bool:
        """True while retries already consumed are below the budget."""
        return attempt_count < self.max_retries

    def delay_for(self, attempt_number: int) -> float:
        """Backoff before the given 1-based retry."""
        return self.base_delay * max(1, attempt_number)
