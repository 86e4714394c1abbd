"""
Message model

Represents a channel message with its author embedded.
"""
from datetime import datetime
from typing import Optional

from pydantic import Field

from models.base import DiscordBaseModel
from models.user import User


class Message(DiscordBaseModel):
    """Message posted in a channel."""

    channel_id: str = Field(..., description="Channel the message belongs to")
    author: User = Field(..., description="Message author")
    content: str = Field("", description="Message text")
    timestamp: datetime = Field(..., description="When the message was sent")
    edited_timestamp: Optional[datetime] = Field(None, description="Last edit time")
    pinned: bool = Field(False, description="Whether the message is pinned")

    @classmethod
    def from_api_data(cls, data: dict) -> 'Message':
        """
        Create Message instance from API data, building the nested author.
        """
        if not data:
            raise ValueError("Cannot create Message from empty data")

        message_data = data.copy()
        if isinstance(message_data.get('author'), dict):
            message_data['author'] = User.from_api_data(message_data['author'])

        return cls(**message_data)

    @property
    def is_edited(self) -> bool:
        return self.edited_timestamp is not None
