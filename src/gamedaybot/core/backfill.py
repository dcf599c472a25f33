"""Fill advanced metrics into play reports after they have been sent.

Baseball Savant publishes xBA and the HR/Park count for a batted ball a while
after the play. For every batch of sent messages about a ball in play, the
poller re-reads Savant's game feed on a fixed interval and edits each message
as soon as a metric shows up. The two metrics arrive independently; a
message is finished once neither is pending.

If the attempt budget runs out, or the feed cannot be read, whatever is
still pending becomes "Not Available.".

Strikeouts get a single strike-zone check instead of polling.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from gamedaybot.core.retry import RetryPolicy, Sleep
from gamedaybot.core.state import GameState
from gamedaybot.core.strike_zone import judge_final_pitch
from gamedaybot.core.transport import NotificationTransport, SentMessage, TransportError
from gamedaybot.mlb.statsapi import StatsApiError
from gamedaybot.models.play import ExtractedPlay, PlayEvent

logger = logging.getLogger(__name__)

GREEN_CIRCLE = "\U0001f7e2"
HOUSE = "\U0001f3e0"
UNICORN = "\U0001f984"
TOTAL_PARKS = 30
OUTSIDE_ZONE_NOTE = "The pitch was outside the strike zone."


class MetricsSource(Protocol):
    async def savant_game_feed(self, game_pk: int) -> dict[str, Any]: ...

    async def park_breakdown(self, game_pk: int, play_id: str) -> dict[str, Any]: ...


@dataclass
class MessageTracker:
    sent: SentMessage
    done: bool = False


@dataclass
class BackfillJob:
    """Polling state for one play and the messages reporting it."""

    game_pk: int
    play_id: str
    home_venue_id: int | None
    trackers: list[MessageTracker]
    hr_park_text: str | None = field(default=None)

    @property
    def done(self) -> bool:
        return all(t.done for t in self.trackers)


def find_savant_play(feed: dict[str, Any] | None, play_id: str) -> dict[str, Any] | None:
    """Look a play up by id in the away then home play lists."""
    if not feed:
        return None
    for side in ("team_away", "team_home"):
        for play in feed.get(side) or []:
            if isinstance(play, dict) and play.get("play_id") == play_id:
                return play
    return None


def format_xba(xba: Any) -> str:
    text = str(xba)
    try:
        likely_hit = float(text) > 0.5
    except ValueError:
        likely_hit = False
    return f"{text} {GREEN_CIRCLE}" if likely_hit else text


def describe_parks(breakdown: dict[str, Any], home_venue_id: int | None) -> str:
    """Name the parks a ball would (or would not) have left."""
    hr_parks = breakdown.get("hr") or []
    not_parks = breakdown.get("not") or []
    if hr_parks:
        listed, text = hr_parks, "only a HR at"
    elif not_parks:
        listed, text = not_parks, "a HR at every park except"
    else:
        return ""
    names = ", ".join(str(park.get("name", "")) for park in listed)
    suffix = f" ({text} {names})"
    if any(park.get("id") == home_venue_id for park in listed):
        suffix += f" {HOUSE}"
    elif len(listed) == 1:
        suffix += f" {UNICORN}"
    return suffix


class MetricBackfillPoller:
    """Starts and runs backfill work for sent play reports."""

    def __init__(
        self,
        source: MetricsSource,
        transport: NotificationTransport,
        *,
        interval_seconds: float = 15.0,
        max_attempts: int = 10,
        outliers: frozenset[int] = frozenset({1, 2, 3, 27, 28, 29}),
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.source = source
        self.transport = transport
        self.interval_seconds = interval_seconds
        self.max_attempts = max_attempts
        self.outliers = outliers
        self._sleep = sleep
        self._tasks: set[asyncio.Task[None]] = set()

    def start(
        self, game: GameState, play: ExtractedPlay, sent: list[SentMessage]
    ) -> asyncio.Task[None] | None:
        """Kick off backfill for a batch of messages in the background."""
        if not sent or not (play.is_in_play or play.is_strikeout):
            return None
        task = asyncio.create_task(self._run(game, play, sent), name="metric-backfill")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for all running backfill work."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, game: GameState, play: ExtractedPlay, sent: list[SentMessage]) -> None:
        try:
            await self.backfill(game, play, sent)
        except Exception:  # Last-resort handler — a background task must not die silently
            logger.exception("backfill_failed play_id=%s", play.play_id)

    async def backfill(self, game: GameState, play: ExtractedPlay, sent: list[SentMessage]) -> None:
        if play.is_in_play:
            trackers = [MessageTracker(message) for message in sent]
            if not play.play_id:
                logger.info("backfill_skipped reason=no_play_id at_bat=%s", play.at_bat_index)
                await self.expire(trackers)
                return
            job = BackfillJob(
                game_pk=game.game_pk,
                play_id=play.play_id,
                home_venue_id=game.venue_id,
                trackers=trackers,
            )
            await self.poll_hit_metrics(job)
        elif play.is_strikeout:
            await self.check_strikeout_zone(game, play, sent)

    async def poll_hit_metrics(self, job: BackfillJob) -> bool:
        """Poll Savant for one play. Returns True if every message was completed."""
        if all(not t.sent.content.pending_fields() for t in job.trackers):
            return True
        policy: RetryPolicy[BackfillJob] = RetryPolicy(
            interval_seconds=self.interval_seconds,
            max_attempts=self.max_attempts,
            is_done=lambda j: j.done,
            on_exhausted=self._on_exhausted,
        )
        try:
            return await policy.run(job, self._attempt, sleep=self._sleep)
        except StatsApiError:
            logger.exception("savant_poll_failed play_id=%s", job.play_id)
            await self.expire(job.trackers)
            return False

    async def _on_exhausted(self, job: BackfillJob) -> None:
        logger.info("savant_poll_exhausted play_id=%s attempts=%d", job.play_id, self.max_attempts)
        await self.expire(job.trackers)

    async def _attempt(self, job: BackfillJob, number: int) -> None:
        logger.debug("savant_poll play_id=%s attempt=%d", job.play_id, number)
        feed = await self.source.savant_game_feed(job.game_pk)
        match = find_savant_play(feed, job.play_id)
        if match is None:
            return
        await self.apply_metrics(job, match)

    async def apply_metrics(self, job: BackfillJob, savant_play: dict[str, Any]) -> None:
        """Fill whatever metrics the Savant play has into every unfinished message."""
        xba = savant_play.get("xba")
        parks = (savant_play.get("contextMetrics") or {}).get("homeRunBallparks")

        open_trackers = [t for t in job.trackers if not t.done]
        if parks is not None and job.hr_park_text is None and any(
            t.sent.content.is_pending("hr_park") for t in open_trackers
        ):
            job.hr_park_text = await self.hr_park_text(job, int(parks))

        for tracker in open_trackers:
            content = tracker.sent.content
            changed = False
            if xba:
                changed |= content.fill("xba", format_xba(xba))
            if job.hr_park_text is not None:
                changed |= content.fill("hr_park", job.hr_park_text)
            if changed:
                logger.debug(
                    "savant_metrics_filled play_id=%s message=%s",
                    job.play_id,
                    tracker.sent.message_id,
                )
                await self._edit(tracker.sent)
            if not content.pending_fields():
                tracker.done = True

    async def hr_park_text(self, job: BackfillJob, parks: int) -> str:
        text = f"{parks}/{TOTAL_PARKS}"
        if parks == 0:
            return text + " (gone nowhere!)"
        if parks == TOTAL_PARKS:
            return text + " (gone everywhere!)"
        if parks not in self.outliers:
            return text
        try:
            breakdown = await self.source.park_breakdown(job.game_pk, job.play_id)
        except StatsApiError:
            logger.warning("park_breakdown_failed play_id=%s", job.play_id, exc_info=True)
            return text
        return text + describe_parks(breakdown, job.home_venue_id)

    async def expire(self, trackers: list[MessageTracker]) -> None:
        """Replace every remaining placeholder with NOT_AVAILABLE and stop tracking."""
        for tracker in trackers:
            if tracker.done:
                continue
            tracker.done = True
            if tracker.sent.content.expire_pending():
                await self._edit(tracker.sent)

    async def check_strikeout_zone(
        self, game: GameState, play: ExtractedPlay, sent: list[SentMessage]
    ) -> bool:
        """One look at the final pitch; note it if it was outside the zone."""
        if play.at_bat_index is None:
            return False
        raw = game.find_at_bat(play.at_bat_index)
        if raw is None and game.current_at_bat_index == play.at_bat_index:
            raw = game.current_play
        if raw is None:
            logger.warning("strikeout_check_skipped at_bat=%s reason=missing", play.at_bat_index)
            return False
        call = judge_final_pitch(PlayEvent.from_feed(raw))
        if call is None or not call.outside:
            return False
        for message in sent:
            if message.content.zone_note is None:
                message.content.zone_note = OUTSIDE_ZONE_NOTE
                await self._edit(message)
        return True

    async def _edit(self, message: SentMessage) -> None:
        try:
            await self.transport.edit(message.handle, message.content)
        except TransportError:
            logger.warning("message_edit_failed message=%s", message.message_id, exc_info=True)
        except Exception:  # Last-resort handler — keep filling the other messages
            logger.exception("message_edit_error message=%s", message.message_id)
