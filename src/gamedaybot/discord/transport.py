"""Discord implementation of the notification transport."""

from __future__ import annotations

import logging

import aiohttp
import discord

from gamedaybot.core.transport import TransportError
from gamedaybot.discord.embeds import build_play_embed
from gamedaybot.models.message import PlayMessage

logger = logging.getLogger(__name__)

# discord.py lets connection failures from its HTTP session through unwrapped.
SEND_ERRORS = (discord.DiscordException, aiohttp.ClientError, TimeoutError)


class DiscordTransport:
    """Sends play embeds to channels and edits them in place."""

    def __init__(self, client: discord.Client) -> None:
        self.client = client

    async def _resolve_channel(self, channel_id: int) -> discord.abc.Messageable | None:
        channel = self.client.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.client.fetch_channel(channel_id)
            except discord.NotFound:
                logger.warning("discord_channel_missing channel=%d", channel_id)
                return None
            except discord.DiscordException as exc:
                raise TransportError(f"could not fetch channel {channel_id}") from exc
        if not isinstance(channel, discord.abc.Messageable):
            logger.warning("discord_channel_not_messageable channel=%d", channel_id)
            return None
        return channel

    async def send(self, channel_id: int, message: PlayMessage) -> discord.Message | None:
        channel = await self._resolve_channel(channel_id)
        if channel is None:
            return None
        try:
            return await channel.send(embed=build_play_embed(message))
        except SEND_ERRORS as exc:
            raise TransportError(f"send to channel {channel_id} failed") from exc

    async def edit(self, handle: discord.Message, message: PlayMessage) -> None:
        try:
            await handle.edit(embed=build_play_embed(message))
        except SEND_ERRORS as exc:
            raise TransportError(f"edit of message {handle.id} failed") from exc
