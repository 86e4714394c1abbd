"""
Channel model
"""
from enum import IntEnum
from typing import Optional

from pydantic import Field

from models.base import DiscordBaseModel


class ChannelType(IntEnum):
    """Discord channel types."""
    GUILD_TEXT = 0
    DM = 1
    GUILD_VOICE = 2
    GROUP_DM = 3
    GUILD_CATEGORY = 4
    GUILD_ANNOUNCEMENT = 5
    ANNOUNCEMENT_THREAD = 10
    PUBLIC_THREAD = 11
    PRIVATE_THREAD = 12
    GUILD_STAGE_VOICE = 13
    GUILD_DIRECTORY = 14
    GUILD_FORUM = 15
    GUILD_MEDIA = 16


class Channel(DiscordBaseModel):
    """Guild or DM channel."""

    type: int = Field(..., description="ChannelType value")
    name: Optional[str] = Field(None, description="Channel name (absent for DMs)")
    guild_id: Optional[str] = Field(None, description="Owning guild, if any")
    position: Optional[int] = Field(None, description="Sort position in the guild")
    parent_id: Optional[str] = Field(None, description="Category or parent channel")
    topic: Optional[str] = Field(None, description="Channel topic")

    @property
    def is_text(self) -> bool:
        return self.type == ChannelType.GUILD_TEXT

    @property
    def in_guild(self) -> bool:
        return self.guild_id is not None
