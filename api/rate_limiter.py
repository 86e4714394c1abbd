"""
Dispatch spacing and server cool-downs.

The limiter enforces a minimum interval between dispatches and honours
HTTP 429 cool-downs. Only successful dispatches move the spacing window;
a failed attempt never earns a fresh window.
"""
import logging
from typing import Optional

from api.clock import Clock

logger = logging.getLogger(f'{__name__}.RateLimiter')

DEFAULT_RETRY_AFTER = 1.0


def parse_retry_after(value: Optional[str], default: float = DEFAULT_RETRY_AFTER) -> float:
    """
    Parse a Retry-After header value in seconds.

    Args:
        value: Raw header value (may be None)
        default: Seconds to use when the header is absent or unusable

    Returns:
        Cool-down in seconds
    """
    if value is None or not str(value).strip():
        return default
    try:
        seconds = float(str(value).strip())
    except ValueError:
        logger.warning(f"Unparsable Retry-After header {value!r}, using {default}s")
        return default
    if seconds != seconds or seconds < 0:  # NaN or negative
        return default
    return seconds


class RateLimiter:
    """
    Minimum-spacing limiter with 429 cool-down support.

    State is per client instance and mutated only by the dispatch loop.
    """

    def __init__(self, min_interval: float = 0.5):
        """
        Initialize rate limiter.

        Args:
            min_interval: Minimum seconds between successful dispatches
        """
        self.min_interval = min_interval
        self.last_dispatch_time: Optional[float] = None
        self.cooldown_until: Optional[float] = None

    def delay(self, now: float) -> float:
        """Seconds to wait before the next dispatch may start."""
        delay = 0.0
        if self.last_dispatch_time is not None:
            delay = max(0.0, self.min_interval - (now - self.last_dispatch_time))

        if self.cooldown_until is not None:
            if now >= self.cooldown_until:
                self.cooldown_until = None
            else:
                delay = max(delay, self.cooldown_until - now)

        return delay

    async def wait(self, clock: Clock) -> float:
        """
        Suspend until a dispatch is permitted.

        Returns:
            The delay that was waited, in seconds
        """
        delay = self.delay(clock.now())
        if delay > 0:
            logger.debug(f"Rate limit: waiting {delay:.3f}s before dispatch")
            await clock.sleep(delay)
        return delay

    def record_dispatch(self, dispatched_at: float) -> None:
        """Advance the spacing window. Call only after a successful response."""
        self.last_dispatch_time = dispatched_at

    def enter_cooldown(self, now: float, retry_after: float) -> None:
        """Block dispatching for retry_after seconds (HTTP 429)."""
        self.cooldown_until = now + retry_after
        logger.warning(f"Rate limited by server: cooling down for {retry_after}s")

    @property
    def in_cooldown(self) -> bool:
        return self.cooldown_until is not None
