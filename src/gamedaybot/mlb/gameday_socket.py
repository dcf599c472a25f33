"""Gameday push socket client.

The socket pushes a small JSON notification per game update; the notification
only says *that* something changed, the change itself is fetched over HTTP.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

import aiohttp

logger = logging.getLogger(__name__)


class GamedaySocketError(Exception):
    """The push socket could not be opened or closed with an error."""


class GamedaySocket:
    def __init__(
        self,
        base_url: str = "wss://ws.statsapi.mlb.com/api/v1/game/push/subscribe/gameday",
        *,
        heartbeat_seconds: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.heartbeat_seconds = heartbeat_seconds

    def url_for(self, game_pk: int) -> str:
        return f"{self.base_url}/{game_pk}"

    async def stream(self, game_pk: int) -> AsyncIterator[str]:
        """Yield text frames until the server closes the socket.

        A clean close ends the iteration; anything else raises
        ``GamedaySocketError``.
        """
        url = self.url_for(game_pk)
        try:
            async with (
                aiohttp.ClientSession() as session,
                session.ws_connect(url, heartbeat=self.heartbeat_seconds) as ws,
            ):
                logger.info("gameday_socket_opened game_pk=%d", game_pk)
                async for msg in ws:
                    if msg.type == aiohttp.WSMsgType.TEXT:
                        yield msg.data
                    elif msg.type == aiohttp.WSMsgType.ERROR:
                        raise GamedaySocketError(f"socket error: {ws.exception()}")
                logger.info("gameday_socket_closed game_pk=%d code=%s", game_pk, ws.close_code)
        except aiohttp.ClientError as exc:
            raise GamedaySocketError(f"could not connect to {url}: {exc}") from exc
