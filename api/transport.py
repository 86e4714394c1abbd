"""
HTTP transport for the request pipeline.

The pipeline only needs {method, url, headers, body} in and
{status, headers, text} out. AiohttpTransport provides that over a pooled
aiohttp session; any other object with the same send()/close() methods can
be injected instead. Retryable network failures must surface as
TransportException.
"""
import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import aiohttp
from multidict import CIMultiDict

from exceptions import TransportException

logger = logging.getLogger(f'{__name__}.AiohttpTransport')


@dataclass
class TransportResponse:
    """Status, case-insensitive headers and raw body text of one HTTP response."""

    status: int
    headers: CIMultiDict = field(default_factory=CIMultiDict)
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Parse the body as JSON. An empty body (e.g. 204) parses to None."""
        if not self.text.strip():
            return None
        return json.loads(self.text)


class AiohttpTransport:
    """
    Async HTTP transport with connection pooling.

    The session is created lazily on first use and recreated if closed.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        connect_timeout: float = 10.0,
        connection_limit: int = 100,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize transport.

        Args:
            timeout: Total request timeout in seconds
            connect_timeout: Connection timeout in seconds
            connection_limit: Total connection pool size
            session: Optional pre-built session (caller keeps ownership)
        """
        self.timeout = timeout
        self.connect_timeout = connect_timeout
        self.connection_limit = connection_limit
        self._session = session
        self._owns_session = session is None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure aiohttp session exists and is not closed."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.connection_limit,
                ttl_dns_cache=300,  # DNS cache TTL
                use_dns_cache=True
            )

            timeout = aiohttp.ClientTimeout(total=self.timeout, connect=self.connect_timeout)

            self._session = aiohttp.ClientSession(connector=connector, timeout=timeout)
            self._owns_session = True

            logger.debug("Created new aiohttp session with connection pooling")

        return self._session

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[str] = None
    ) -> TransportResponse:
        """
        Issue one HTTP request.

        Args:
            method: HTTP method
            url: Complete URL
            headers: Request headers
            body: Serialized request body, if any

        Returns:
            TransportResponse for any HTTP status

        Raises:
            TransportException: For connection errors and timeouts
        """
        session = await self._ensure_session()

        try:
            async with session.request(method, url, headers=dict(headers), data=body) as response:
                text = await response.text()
                return TransportResponse(
                    status=response.status,
                    headers=CIMultiDict(response.headers),
                    text=text
                )

        except aiohttp.ClientError as e:
            logger.error(f"HTTP client error for {method} {url}: {e}")
            raise TransportException(f"Network error: {e}") from e
        except asyncio.TimeoutError as e:
            logger.error(f"Timeout for {method} {url}")
            raise TransportException(f"Request timed out after {self.timeout}s") from e

    async def close(self) -> None:
        """Close the HTTP session if this transport created it."""
        if self._session and not self._session.closed and self._owns_session:
            await self._session.close()
            logger.debug("Closed aiohttp session")
