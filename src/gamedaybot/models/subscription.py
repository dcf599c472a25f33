"""Channel subscription to the gameday feed."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SubscribedChannel(BaseModel):
    """A Discord channel receiving play reports, with its reporting preferences."""

    guild_id: int
    channel_id: int
    scoring_plays_only: bool = False
    delay_seconds: int = Field(default=0, ge=0)

    def wants(self, is_scoring_play: bool) -> bool:
        """Whether this channel's filter lets a play through."""
        return is_scoring_play or not self.scoring_plays_only
