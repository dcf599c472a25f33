"""Follow one live game from first pitch to final out.

``GamedayTracker`` is the coordinator. The status poller finds the game
nearest to now and, once it is in progress, builds a fresh ``GameState``
from a full snapshot. From then on the Gameday socket feeds notifications
into a queue that a single loop processes in arrival order. Each
notification brings the snapshot up to date (full refresh, or diff patches
merged one batch at a time) and runs a reporting pass after every step.

When the game finishes, the socket is closed and status polling takes over
again.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, Protocol

from gamedaybot.core.colors import pick_team_colors
from gamedaybot.core.patch import PatchError, apply_patch
from gamedaybot.core.reporter import PlayReporter
from gamedaybot.core.retry import Sleep
from gamedaybot.core.state import GameState
from gamedaybot.mlb.statsapi import StatsApiError, in_progress_game, nearest_games
from gamedaybot.models.feed import UpdateNotification
from gamedaybot.models.subscription import SubscribedChannel

logger = logging.getLogger(__name__)

ChannelLoader = Callable[[], Awaitable[list[SubscribedChannel]]]


class LiveFeedSource(Protocol):
    async def current_games(self, *, team_id: int | None = None) -> list[dict[str, Any]]: ...

    async def fetch_full_snapshot(
        self, game_pk: int, update_id: str | None = None
    ) -> dict[str, Any]: ...

    async def fetch_update_diff(
        self, game_pk: int, update_id: str, since: str | None
    ) -> list[dict[str, Any]] | dict[str, Any]: ...


class NotificationStream(Protocol):
    def stream(self, game_pk: int) -> Any: ...


class GamedayTracker:
    def __init__(
        self,
        source: LiveFeedSource,
        socket: NotificationStream,
        reporter: PlayReporter,
        load_channels: ChannelLoader,
        *,
        favorite_team_id: int | None = None,
        contrast_ratio: float = 1.5,
        reconnect_delay_seconds: float = 5.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.source = source
        self.socket = socket
        self.reporter = reporter
        self.load_channels = load_channels
        self.favorite_team_id = favorite_team_id
        self.contrast_ratio = contrast_ratio
        self.reconnect_delay_seconds = reconnect_delay_seconds
        self._sleep = sleep
        self.game: GameState | None = None
        self.queue: asyncio.Queue[UpdateNotification] = asyncio.Queue()
        self._reader_task: asyncio.Task[None] | None = None
        self._loop_task: asyncio.Task[None] | None = None

    @property
    def is_tracking(self) -> bool:
        return self.game is not None and not self.game.finished

    # --- status polling ---

    async def poll_status(self, now: datetime | None = None) -> GameState | None:
        """Start tracking the nearest game if it is in progress.

        Does nothing while a game is already being tracked.
        """
        if self.is_tracking:
            return None
        now = now or datetime.now(UTC)
        try:
            games = await self.source.current_games(team_id=self.favorite_team_id)
        except StatsApiError:
            logger.warning("status_poll_failed", exc_info=True)
            return None
        nearest = nearest_games(games, now)
        live = in_progress_game(nearest)
        if live is None:
            logger.debug("status_poll no_live_game nearest=%d", len(nearest))
            return None
        logger.info(
            "game_in_progress game_pk=%s double_header=%s", live.get("gamePk"), len(nearest) > 1
        )
        return await self.start_tracking(int(live["gamePk"]))

    async def start_tracking(self, game_pk: int, *, listen: bool = True) -> GameState:
        """Build a fresh state for ``game_pk`` and, if ``listen``, start consuming updates."""
        snapshot = await self.source.fetch_full_snapshot(game_pk)
        channels = await self.load_channels()
        game = GameState(game_pk=game_pk, snapshot=snapshot, channels=channels)
        game.home_color, game.away_color = pick_team_colors(
            game.team_id("home"), game.team_id("away"), self.contrast_ratio
        )
        self.game = game
        self.queue = asyncio.Queue()
        logger.info("tracking_started game_pk=%d channels=%d", game_pk, len(channels))
        if listen:
            self._reader_task = asyncio.create_task(
                self._read_socket(game), name=f"gameday-socket-{game_pk}"
            )
            self._loop_task = asyncio.create_task(
                self._process_loop(game), name=f"gameday-loop-{game_pk}"
            )
        return game

    # --- notification intake ---

    def enqueue(self, text: str) -> UpdateNotification | None:
        """Parse one socket frame and queue it. Malformed frames are dropped."""
        try:
            notification = UpdateNotification.from_message(text)
        except ValueError:
            logger.warning("notification_malformed length=%d", len(text))
            return None
        self.queue.put_nowait(notification)
        return notification

    async def _read_socket(self, game: GameState) -> None:
        while not game.finished:
            try:
                async for frame in self.socket.stream(game.game_pk):
                    self.enqueue(frame)
                    if game.finished:
                        return
            except Exception:  # Last-resort handler — keep following the game after socket drops
                logger.exception("gameday_socket_failed game_pk=%d", game.game_pk)
            if game.finished:
                return
            logger.info("gameday_socket_reconnecting game_pk=%d", game.game_pk)
            await self._sleep(self.reconnect_delay_seconds)

    async def _process_loop(self, game: GameState) -> None:
        while not game.finished:
            notification = await self.queue.get()
            try:
                await self.handle_notification(notification)
            except Exception:  # Last-resort handler — one bad update must not stop the game
                logger.exception("notification_failed update_id=%s", notification.update_id)
            finally:
                self.queue.task_done()

    # --- update handling ---

    async def handle_notification(self, notification: UpdateNotification) -> None:
        game = self.game
        if game is None or game.finished:
            return
        if game.is_duplicate_notification(notification.time_stamp, notification.payload_length):
            logger.debug("notification_duplicate update_id=%s", notification.update_id)
            return
        if notification.is_game_finished:
            await self.finish()
            return

        if notification.is_full_refresh:
            logger.debug("full_refresh update_id=%s", notification.update_id)
            snapshot = await self.source.fetch_full_snapshot(game.game_pk, notification.update_id)
            game.replace_snapshot(snapshot)
            await self.reporter.report(game)
            return

        update = await self.source.fetch_update_diff(
            game.game_pk, notification.update_id, game.feed_timestamp
        )
        if isinstance(update, dict):
            game.replace_snapshot(update)
            await self.reporter.report(game)
            return
        for batch in update:
            refetched = await self.merge_batch(game, batch)
            await self.reporter.report(game)
            if refetched:
                # The fresh snapshot already holds the remaining batches.
                break

    async def merge_batch(self, game: GameState, batch: Any) -> bool:
        """Merge one patch batch. On failure the snapshot is refetched whole.

        Returns True if the snapshot was refetched.
        """
        operations = batch.get("diff") if isinstance(batch, dict) else batch
        try:
            if not isinstance(operations, list):
                raise PatchError("patch batch has no operations")
            applied = apply_patch(game.snapshot, operations)
            logger.debug("patch_applied game_pk=%d ops=%d", game.game_pk, applied)
        except PatchError as exc:
            logger.warning("patch_failed game_pk=%d error=%s refetching", game.game_pk, exc)
            game.replace_snapshot(await self.source.fetch_full_snapshot(game.game_pk))
            return True
        return False

    async def finish(self) -> None:
        """Stop following the current game and go back to status polling."""
        game = self.game
        if game is None or game.finished:
            return
        game.finished = True
        game.start_reported = False
        logger.info("game_finished game_pk=%d reported=%d", game.game_pk, len(game.ledger))
        reader = self._reader_task
        if reader is not None and reader is not asyncio.current_task() and not reader.done():
            reader.cancel()
        self._reader_task = None

    async def refresh_channels(self) -> list[SubscribedChannel]:
        """Reload the subscriber cache after a subscription change."""
        channels = await self.load_channels()
        if self.game is not None:
            self.game.channels = channels
        logger.info("subscriptions_refreshed channels=%d", len(channels))
        return channels

    async def stop(self) -> None:
        """Cancel the socket reader and processing loop (app shutdown)."""
        tasks = [t for t in (self._reader_task, self._loop_task) if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._reader_task = None
        self._loop_task = None

    def status(self) -> dict[str, Any]:
        game = self.game
        if game is None:
            return {"tracking": False, "game_pk": None}
        return {
            "tracking": not game.finished,
            "game_pk": game.game_pk,
            "current_at_bat_index": game.current_at_bat_index,
            "last_reported_complete_index": game.last_reported_complete_index,
            "reported_count": len(game.ledger),
            "subscriber_count": len(game.channels),
        }


async def poll_status_job(tracker: GamedayTracker) -> None:
    """Scheduler entry point for ``poll_status``."""
    try:
        await tracker.poll_status()
    except Exception:  # Last-resort handler — the next interval must still run
        logger.exception("status_poll_job_failed")
