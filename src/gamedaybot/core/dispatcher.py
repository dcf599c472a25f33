"""Fan a play report out to every subscribed channel.

Each channel has its own filter (scoring plays only) and reporting delay.
Immediate sends are collected and handed to the backfill poller as one
batch. Delayed sends run as independent tasks; once one fires it starts its
own backfill for the single message it produced. Scheduled sends cannot be
cancelled.
"""

from __future__ import annotations

import asyncio
import logging

from gamedaybot.core.backfill import MetricBackfillPoller
from gamedaybot.core.retry import Sleep
from gamedaybot.core.state import GameState
from gamedaybot.core.transport import NotificationTransport, SentMessage, TransportError
from gamedaybot.models.message import PlayMessage
from gamedaybot.models.play import ExtractedPlay
from gamedaybot.models.subscription import SubscribedChannel

logger = logging.getLogger(__name__)


class FanOutDispatcher:
    def __init__(
        self,
        transport: NotificationTransport,
        poller: MetricBackfillPoller,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.transport = transport
        self.poller = poller
        self._sleep = sleep
        self._scheduled: set[asyncio.Task[None]] = set()

    async def dispatch(
        self, game: GameState, play: ExtractedPlay, template: PlayMessage
    ) -> list[SentMessage]:
        """Send or schedule ``template`` for every channel that wants the play.

        Returns the messages sent immediately.
        """
        sent: list[SentMessage] = []
        for channel in list(game.channels):
            if not channel.wants(play.is_scoring_play):
                logger.debug("dispatch_skipped channel=%d reason=scoring_only", channel.channel_id)
                continue
            if channel.delay_seconds == 0 or play.is_start_event:
                message = await self._send(channel, template)
                if message is not None:
                    sent.append(message)
            else:
                self._schedule(game, play, channel, template)
        if sent:
            self.poller.start(game, play, sent)
        return sent

    def _schedule(
        self,
        game: GameState,
        play: ExtractedPlay,
        channel: SubscribedChannel,
        template: PlayMessage,
    ) -> None:
        logger.debug(
            "dispatch_delayed channel=%d delay=%ds", channel.channel_id, channel.delay_seconds
        )
        task = asyncio.create_task(
            self._send_later(game, play, channel, template),
            name=f"delayed-send-{channel.channel_id}",
        )
        self._scheduled.add(task)
        task.add_done_callback(self._scheduled.discard)

    async def _send_later(
        self,
        game: GameState,
        play: ExtractedPlay,
        channel: SubscribedChannel,
        template: PlayMessage,
    ) -> None:
        await self._sleep(channel.delay_seconds)
        message = await self._send(channel, template)
        if message is not None:
            self.poller.start(game, play, [message])

    async def _send(self, channel: SubscribedChannel, template: PlayMessage) -> SentMessage | None:
        content = template.model_copy(deep=True)
        try:
            handle = await self.transport.send(channel.channel_id, content)
        except TransportError:
            logger.warning("message_send_failed channel=%d", channel.channel_id, exc_info=True)
            return None
        except Exception:  # Last-resort handler — one channel must not cost the others the play
            logger.exception("message_send_error channel=%d", channel.channel_id)
            return None
        if handle is None:
            return None
        return SentMessage(channel_id=channel.channel_id, handle=handle, content=content)

    @property
    def scheduled_count(self) -> int:
        return len(self._scheduled)

    async def drain(self) -> None:
        """Wait for every scheduled send to fire."""
        while self._scheduled:
            await asyncio.gather(*list(self._scheduled), return_exceptions=True)
