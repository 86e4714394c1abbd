"""
Chat service

Typed layer over DiscordClient: the client returns raw JSON, the service
turns it into models and applies the ordering a chat view needs.
"""
from typing import List, Optional

from api.client import DiscordClient, Snowflake
from models import Channel, Guild, Message, User
from utils.logging import get_contextual_logger, set_log_context


class ChatService:
    """
    Model-returning wrapper around the convenience endpoints.

    Errors from the client propagate unchanged.
    """

    def __init__(self, client: DiscordClient):
        self.client = client
        self.logger = get_contextual_logger(f'{__name__}.ChatService')

    async def get_current_user(self) -> User:
        data = await self.client.get_current_user()
        return User.from_api_data(data)

    async def get_guilds(self) -> List[Guild]:
        data = await self.client.get_guilds()
        return [Guild.from_api_data(item) for item in data or []]

    async def get_channels(self, guild_id: Snowflake) -> List[Channel]:
        """All channels of a guild, ordered by their position."""
        set_log_context(guild_id=guild_id, operation='get_channels')
        data = await self.client.get_guild_channels(guild_id)
        channels = [Channel.from_api_data(item) for item in data or []]
        return sorted(channels, key=lambda ch: (ch.position if ch.position is not None else 0, int(ch.id)))

    async def get_text_channels(self, guild_id: Snowflake) -> List[Channel]:
        channels = await self.get_channels(guild_id)
        return [channel for channel in channels if channel.is_text]

    async def get_messages(self, channel_id: Snowflake, limit: Optional[int] = None) -> List[Message]:
        """
        Recent messages in chronological order (oldest first).

        The API returns newest first; the order is reversed here.
        """
        set_log_context(channel_id=channel_id, operation='get_messages')
        data = await self.client.get_channel_messages(channel_id, limit=limit)
        messages = [Message.from_api_data(item) for item in data or []]
        messages.reverse()
        self.logger.debug(f"Loaded {len(messages)} messages", message_count=len(messages))
        return messages

    async def send_message(self, channel_id: Snowflake, content: str) -> Message:
        set_log_context(channel_id=channel_id, operation='send_message')
        data = await self.client.send_message(channel_id, content)
        message = Message.from_api_data(data)
        self.logger.info(f"Sent message {message.id}", message_id=message.id)
        return message

    async def get_channel_members(self, channel_id: Snowflake, limit: Optional[int] = None) -> List[User]:
        """Users of the guild a channel belongs to; empty for DM channels."""
        set_log_context(channel_id=channel_id, operation='get_channel_members')
        data = await self.client.get_channel_members(channel_id, limit=limit)
        return [User.from_api_data(member['user']) for member in data or [] if member.get('user')]
