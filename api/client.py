"""
Discord REST API client

Facade over the request pipeline: cache lookup first, otherwise a job on the
single-flight queue. Each client instance owns its own cache, queue, rate
limiter and clock.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Mapping, Optional, Union

from api import endpoints
from api.cache import TTLCache
from api.clock import Clock, LoopClock
from api.endpoints import EndpointDescriptor
from api.queue import RequestQueue
from api.rate_limiter import RateLimiter
from api.retry import RetryPolicy
from api.transport import AiohttpTransport
from config import ClientConfig, get_config
from exceptions import ConfigurationException

logger = logging.getLogger(f'{__name__}.DiscordClient')

Snowflake = Union[str, int]


class DiscordClient:
    """
    Async client for the Discord REST API.

    Features:
    - Single in-flight request with minimum dispatch spacing
    - In-memory TTL cache of successful responses
    - Linear-backoff retries for transport errors and non-2xx responses
    - Unlimited, budget-free waits on HTTP 429
    - Token passed through verbatim as the Authorization header
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        transport: Optional[Any] = None,
        clock: Optional[Clock] = None
    ):
        """
        Initialize API client with configuration.

        Args:
            token: Authorization header value (overrides config)
            base_url: Override default API base URL from config
            config: Configuration override (uses global config by default)
            transport: Custom transport (defaults to a pooled aiohttp transport)
            clock: Time source for cache expiry, spacing and retries

        Raises:
            ConfigurationException: If base URL or token is missing
        """
        self.config = config or get_config()
        self.base_url = base_url or self.config.api_base_url
        self.token = token or self.config.token

        if not self.base_url:
            raise ConfigurationException("API base URL must be configured")
        if not self.token:
            raise ConfigurationException("Discord token must be configured")

        self.clock = clock or LoopClock()
        self.cache = TTLCache(default_ttl=self.config.cache_ttl, clock=self.clock)
        self.rate_limiter = RateLimiter(min_interval=self.config.min_request_interval)
        self.retry_policy = RetryPolicy(
            max_retries=self.config.max_retries,
            base_delay=self.config.retry_base_delay
        )
        self._transport = transport or AiohttpTransport(
            timeout=self.config.request_timeout,
            connect_timeout=self.config.connect_timeout,
            connection_limit=self.config.connection_limit
        )
        self.queue = RequestQueue(
            transport=self._transport,
            base_url=self.base_url,
            cache=self.cache,
            rate_limiter=self.rate_limiter,
            retry_policy=self.retry_policy,
            clock=self.clock,
            headers=self.headers,
            default_retry_after=self.config.default_retry_after
        )

        logger.debug(f"DiscordClient initialized with base_url: {self.base_url}")

    @property
    def headers(self) -> Dict[str, str]:
        """Get headers with authentication and content type."""
        return {
            'Authorization': self.token,
            'Content-Type': 'application/json',
            'User-Agent': self.config.user_agent
        }

    async def request(
        self,
        path: str,
        method: str = 'GET',
        json: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        force: bool = False
    ) -> Any:
        """
        Make a request through the pipeline.

        Args:
            path: API path, e.g. '/users/@me' (query string allowed)
            method: HTTP method
            json: JSON-serializable request body
            headers: Extra headers for this request
            force: Skip the cache read (the response is still cached)

        Returns:
            Parsed JSON response (None for an empty 2xx body)

        Raises:
            APIException: Final non-2xx response or exhausted transport retries
            ResponseParseException: Malformed 2xx body
        """
        endpoint = EndpointDescriptor.build(path, method=method, json_body=json, headers=headers)
        return await self.execute(endpoint, force=force)

    async def execute(self, endpoint: EndpointDescriptor, force: bool = False) -> Any:
        """Run a prebuilt descriptor: cache hit or a queued job."""
        if not force:
            cached = self.cache.get(endpoint.cache_key)
            if cached is not None:
                return cached

        return await self.queue.submit(endpoint, force=force)

    # Convenience operations

    async def get_current_user(self) -> Dict[str, Any]:
        return await self.execute(endpoints.current_user())

    async def get_guilds(self) -> List[Dict[str, Any]]:
        return await self.execute(endpoints.current_user_guilds())

    async def get_guild_channels(self, guild_id: Snowflake) -> List[Dict[str, Any]]:
        return await self.execute(endpoints.guild_channels(guild_id))

    async def get_channel(self, channel_id: Snowflake) -> Dict[str, Any]:
        return await self.execute(endpoints.channel(channel_id))

    async def get_channel_messages(
        self,
        channel_id: Snowflake,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Get recent messages in a channel, newest first.

        Args:
            channel_id: Channel snowflake
            limit: Number of messages (1-100, defaults to config)

        Raises:
            ValidationException: If limit is out of range
        """
        if limit is None:
            limit = self.config.default_message_limit
        return await self.execute(endpoints.channel_messages(channel_id, limit))

    async def send_message(self, channel_id: Snowflake, content: str) -> Dict[str, Any]:
        """
        Post a text message to a channel.

        Always bypasses the cache read so that repeating the same text sends
        it again.

        Raises:
            ValidationException: If content is empty
        """
        return await self.execute(endpoints.create_message(channel_id, content), force=True)

    async def get_channel_members(
        self,
        channel_id: Snowflake,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Get members of the guild a channel belongs to.

        Returns:
            Guild member objects, or an empty list for channels outside a guild
        """
        if limit is None:
            limit = self.config.default_member_limit

        channel = await self.get_channel(channel_id)
        guild_id = channel.get('guild_id') if channel else None
        if not guild_id:
            logger.debug(f"Channel {channel_id} has no guild, no members to fetch")
            return []

        return await self.execute(endpoints.guild_members(guild_id, limit))

    def clear_cache(self) -> None:
        """Drop all cached responses."""
        self.cache.clear()

    async def close(self) -> None:
        """Drain queued jobs, then close the transport and drop cached state."""
        await self.queue.join()
        await self._transport.close()
        self.cache.clear()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit with cleanup."""
        await self.close()


@asynccontextmanager
async def get_api_client(token: Optional[str] = None, **kwargs):
    """
    Get API client as async context manager.

    Usage:
        async with get_api_client(token) as client:
            user = await client.get_current_user()
    """
    client = DiscordClient(token=token, **kwargs)
    try:
        yield client
    finally:
        await client.close()
