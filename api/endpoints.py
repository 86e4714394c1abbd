"""
Endpoint descriptors and URL templates for the Discord REST API.

A descriptor is the immutable shape of one request. It doubles as the cache
identity: two descriptors with the same path, method, body and headers map
to the same cache key.
"""
import hashlib
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from exceptions import ValidationException

MESSAGE_LIMIT_RANGE = (1, 100)
MEMBER_LIMIT_RANGE = (1, 1000)


@dataclass(frozen=True)
class EndpointDescriptor:
    """Immutable request shape: path (with query string), method, body, headers."""

    path: str
    method: str = 'GET'
    body: Optional[str] = None
    headers: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def build(
        cls,
        path: str,
        method: str = 'GET',
        json_body: Any = None,
        headers: Optional[Mapping[str, Any]] = None
    ) -> 'EndpointDescriptor':
        """
        Build a descriptor from caller-friendly arguments.

        Args:
            path: API path relative to the base URL, e.g. '/users/@me'
            method: HTTP method (case-insensitive)
            json_body: JSON-serializable payload, serialized canonically
            headers: Extra request headers

        Returns:
            Frozen EndpointDescriptor
        """
        body = None
        if json_body is not None:
            body = json.dumps(json_body, sort_keys=True, separators=(',', ':'), ensure_ascii=False)

        header_items = tuple(sorted((str(k), str(v)) for k, v in (headers or {}).items()))
        return cls(path=path, method=method.upper(), body=body, headers=header_items)

    @property
    def header_dict(self) -> Dict[str, str]:
        return dict(self.headers)

    @property
    def cache_key(self) -> str:
        """Structural cache key: method and path in clear, body and headers hashed."""
        key = f"discord:{self.method}:{self.path}"
        if self.body is None and not self.headers:
            return key

        key_data = json.dumps([self.body, list(self.headers)], separators=(',', ':'))
        key_hash = hashlib.sha256(key_data.encode()).hexdigest()[:16]
        return f"{key}:{key_hash}"

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


def build_url(base_url: str, path: str) -> str:
    """
    Join the API base URL and an endpoint path.

    Args:
        base_url: API root, e.g. 'https://discord.com/api/v10'
        path: Endpoint path; absolute URLs are returned unchanged

    Returns:
        Complete URL for the request
    """
    if path.startswith(('http://', 'https://')):
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def add_params(path: str, params: Optional[List[Tuple[str, Union[str, int]]]] = None) -> str:
    """
    Add query parameters to a path.

    Args:
        path: Base path
        params: List of (key, value) tuples

    Returns:
        Path with query parameters appended
    """
    if not params:
        return path

    param_str = "&".join(f"{key}={value}" for key, value in params)
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{param_str}"


def _check_limit(name: str, limit: int, bounds: Tuple[int, int]) -> int:
    low, high = bounds
    if isinstance(limit, bool) or not isinstance(limit, int) or not low <= limit <= high:
        raise ValidationException(f"{name} must be an integer between {low} and {high}, got {limit!r}")
    return limit


# Endpoint templates

def current_user() -> EndpointDescriptor:
    return EndpointDescriptor.build('/users/@me')


def current_user_guilds() -> EndpointDescriptor:
    return EndpointDescriptor.build('/users/@me/guilds')


def guild_channels(guild_id: Union[str, int]) -> EndpointDescriptor:
    return EndpointDescriptor.build(f'/guilds/{guild_id}/channels')


def guild_members(guild_id: Union[str, int], limit: int) -> EndpointDescriptor:
    limit = _check_limit('limit', limit, MEMBER_LIMIT_RANGE)
    return EndpointDescriptor.build(add_params(f'/guilds/{guild_id}/members', [('limit', limit)]))


def channel(channel_id: Union[str, int]) -> EndpointDescriptor:
    return EndpointDescriptor.build(f'/channels/{channel_id}')


def channel_messages(channel_id: Union[str, int], limit: int) -> EndpointDescriptor:
    limit = _check_limit('limit', limit, MESSAGE_LIMIT_RANGE)
    return EndpointDescriptor.build(add_params(f'/channels/{channel_id}/messages', [('limit', limit)]))


def create_message(channel_id: Union[str, int], content: str) -> EndpointDescriptor:
    if not content or not content.strip():
        raise ValidationException("Message content cannot be empty")
    return EndpointDescriptor.build(
        f'/channels/{channel_id}/messages',
        method='POST',
        json_body={'content': content}
    )
