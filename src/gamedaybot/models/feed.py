"""Update notifications pushed by the Gameday socket."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field

GAME_FINISHED = "game_finished"
FULL_REFRESH = "full_refresh"


class UpdateNotification(BaseModel):
    """One push message: tells us an update exists, not what changed."""

    game_pk: int
    update_id: str
    time_stamp: str = ""
    game_events: list[str] = Field(default_factory=list)
    change_type: str | None = None
    payload_length: int = 0

    @classmethod
    def from_message(cls, text: str) -> UpdateNotification:
        """Parse a raw socket frame. Raises ValueError on malformed payloads."""
        raw: dict[str, Any] = json.loads(text)
        if not isinstance(raw, dict):
            msg = f"expected a JSON object, got {type(raw).__name__}"
            raise ValueError(msg)
        change_event = raw.get("changeEvent") or {}
        return cls(
            game_pk=raw.get("gamePk"),
            update_id=str(raw.get("updateId", "")),
            time_stamp=str(raw.get("timeStamp", "")),
            game_events=list(raw.get("gameEvents") or []),
            change_type=change_event.get("type"),
            payload_length=len(text),
        )

    @property
    def is_game_finished(self) -> bool:
        return GAME_FINISHED in self.game_events

    @property
    def is_full_refresh(self) -> bool:
        return self.change_type == FULL_REFRESH
