"""
Base model for all Discord entities

Provides common functionality for validation, serialization and building
models from raw API payloads.
"""
from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, Field

from constants import DISCORD_EPOCH_MS


class DiscordBaseModel(BaseModel):
    """Base model for Discord entities identified by a snowflake."""

    model_config = {
        "validate_assignment": True,
        "use_enum_values": True,
        "extra": "ignore",
        "coerce_numbers_to_str": True
    }

    id: str = Field(..., description="Snowflake ID")

    def __repr__(self):
        fields = ', '.join(f'{k}={v}' for k, v in self.model_dump(exclude_none=True).items())
        return f"{self.__class__.__name__}({fields})"

    @property
    def created_at(self) -> datetime:
        """Creation time encoded in the snowflake."""
        timestamp_ms = (int(self.id) >> 22) + DISCORD_EPOCH_MS
        return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)

    def to_dict(self, exclude_none: bool = True) -> Dict[str, Any]:
        """Convert model to dictionary, optionally excluding None values."""
        return self.model_dump(exclude_none=exclude_none)

    @classmethod
    def from_api_data(cls, data: Dict[str, Any]):
        """Create model instance from API response data."""
        if not data:
            raise ValueError(f"Cannot create {cls.__name__} from empty data")
        return cls(**data)
