"""Outbound message transport used by the dispatcher and the backfill poller."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from gamedaybot.models.message import PlayMessage

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when a message could not be sent or edited."""


class NotificationTransport(Protocol):
    async def send(self, channel_id: int, message: PlayMessage) -> Any:
        """Post a message and return a handle that ``edit`` accepts."""
        ...

    async def edit(self, handle: Any, message: PlayMessage) -> None:
        """Re-render an already-sent message."""
        ...


@dataclass
class SentMessage:
    """A message that reached a channel, with the content it was rendered from."""

    channel_id: int
    handle: Any
    content: PlayMessage

    @property
    def message_id(self) -> Any:
        return getattr(self.handle, "id", self.handle)


class LogTransport:
    """Writes play reports to the log instead of a chat service.

    Used when Discord is disabled (local development) so the pipeline can
    still follow a live game end to end.
    """

    def __init__(self) -> None:
        self._next_id = 0

    async def send(self, channel_id: int, message: PlayMessage) -> int:
        self._next_id += 1
        logger.info(
            "play_message channel=%d id=%d title=%r\n%s",
            channel_id,
            self._next_id,
            message.title,
            message.render(),
        )
        return self._next_id

    async def edit(self, handle: Any, message: PlayMessage) -> None:
        logger.info("play_message_edited id=%s\n%s", handle, message.render())
