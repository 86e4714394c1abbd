"""
Guild model

Partial guild objects as returned by /users/@me/guilds.
"""
from typing import Optional

from pydantic import Field

from constants import CDN_BASE_URL, DEFAULT_IMAGE_SIZE
from models.base import DiscordBaseModel


class Guild(DiscordBaseModel):
    """Guild (server) the current user belongs to."""

    name: str = Field(..., description="Guild name")
    icon: Optional[str] = Field(None, description="Icon hash")
    owner: bool = Field(False, description="Whether the current user owns the guild")
    permissions: Optional[str] = Field(None, description="Current user's permission bitset")

    def icon_url(self, size: int = DEFAULT_IMAGE_SIZE, cdn_base: str = CDN_BASE_URL) -> Optional[str]:
        """Icon image URL, or None when the guild has no icon."""
        if not self.icon:
            return None
        return f"{cdn_base}/icons/{self.id}/{self.icon}.png?size={size}"
