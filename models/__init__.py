"""
Data models for the Discord REST client

Pydantic models for the payloads returned by the convenience endpoints.
"""

from models.base import DiscordBaseModel
from models.user import User
from models.guild import Guild
from models.channel import Channel, ChannelType
from models.message import Message

__all__ = [
    'DiscordBaseModel',
    'User',
    'Guild',
    'Channel',
    'ChannelType',
    'Message',
]
