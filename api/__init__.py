"""
API client layer for the Discord REST client

Request pipeline (cache, rate limiter, retry policy, queue) and its facade.
"""
from .cache import TTLCache
from .client import DiscordClient, get_api_client
from .clock import LoopClock, ManualClock
from .endpoints import EndpointDescriptor
from .queue import JobState, QueuedJob, RequestQueue
from .rate_limiter import RateLimiter, parse_retry_after
from .retry import RetryPolicy
from .transport import AiohttpTransport, TransportResponse

__all__ = [
    'DiscordClient', 'get_api_client',
    'TTLCache', 'RateLimiter', 'parse_retry_after', 'RetryPolicy',
    'RequestQueue', 'QueuedJob', 'JobState', 'EndpointDescriptor',
    'AiohttpTransport', 'TransportResponse', 'LoopClock', 'ManualClock'
]
