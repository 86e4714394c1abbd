"""
User model

Represents a Discord user as returned by /users/@me and embedded in messages.
"""
from typing import Optional

from pydantic import Field

from constants import CDN_BASE_URL, DEFAULT_AVATAR_COUNT, DEFAULT_IMAGE_SIZE, LEGACY_AVATAR_COUNT
from models.base import DiscordBaseModel


class User(DiscordBaseModel):
    """Discord user account."""

    username: str = Field(..., description="Unique username")
    discriminator: str = Field("0", description="Legacy 4-digit tag, '0' for migrated users")
    global_name: Optional[str] = Field(None, description="Display name")
    avatar: Optional[str] = Field(None, description="Avatar hash")
    bot: bool = Field(False, description="Whether the account is a bot")

    @property
    def display_name(self) -> str:
        return self.global_name or self.username

    @property
    def default_avatar_index(self) -> int:
        if self.discriminator and self.discriminator != "0":
            return int(self.discriminator) % LEGACY_AVATAR_COUNT
        return (int(self.id) >> 22) % DEFAULT_AVATAR_COUNT

    def avatar_url(self, size: int = DEFAULT_IMAGE_SIZE, cdn_base: str = CDN_BASE_URL) -> str:
        """Avatar image URL, falling back to the default embed avatar."""
        if self.avatar:
            return f"{cdn_base}/avatars/{self.id}/{self.avatar}.png?size={size}"
        return f"{cdn_base}/embed/avatars/{self.default_avatar_index}.png"
