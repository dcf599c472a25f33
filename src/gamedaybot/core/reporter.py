"""Decide which at-bats to report on each update, and report each once.

Every update re-examines the current at-bat. The previous at-bat is also
re-examined when it is under review (the call may be overturned), and any
at-bats skipped since the last completed report are caught up, including
reportable sub-events such as stolen bases that happened inside them.

A report is identified by ``(description, at_bat_index)``. The pair is
written to the ledger before anything is sent, so an update processed while
an earlier send is still in flight cannot report the same play twice.
"""

from __future__ import annotations

import logging

from gamedaybot.core.dispatcher import FanOutDispatcher
from gamedaybot.core.extractor import EventExtractor
from gamedaybot.core.state import GameState
from gamedaybot.models.message import PlayMessage
from gamedaybot.models.play import REPORTABLE_EVENT_TYPES, ExtractedPlay, PlayEvent

logger = logging.getLogger(__name__)

SCORING_PLAY_MARK = " - Scoring Play ❗"


def compose_message(game: GameState, play: ExtractedPlay) -> PlayMessage:
    """Build the message template for a play: inning/score title, team colour, text."""
    half = game.current_half_inning
    half_label = "TOP" if half == "top" else "BOT"
    score = (
        f"{game.abbreviation('away')} {game.runs('away')} - "
        f"{game.runs('home')} {game.abbreviation('home')}"
    )
    title = f"{half_label} {game.current_inning or ''}, {score}"
    if play.is_scoring_play:
        title += SCORING_PLAY_MARK
    return PlayMessage(
        title=title,
        color=game.away_color if half == "top" else game.home_color,
        body=play.body,
        xba=play.xba,
        hr_park=play.hr_park,
        zone_note=play.zone_note,
    )


class PlayReporter:
    def __init__(self, extractor: EventExtractor, dispatcher: FanOutDispatcher) -> None:
        self.extractor = extractor
        self.dispatcher = dispatcher

    async def report(self, game: GameState) -> int:
        """Run one reporting pass over the snapshot. Returns the number of plays reported."""
        current = game.current_play_event()
        if current is None or current.at_bat_index is None:
            return 0
        index = current.at_bat_index
        reported = 0

        if index > 0:
            previous = self._at_bat(game, index - 1)
            last_complete = game.last_reported_complete_index
            if previous is not None and previous.has_review:
                reported += await self.process_and_push(game, previous, index - 1)
            elif last_complete is not None and index - last_complete > 1:
                for missed_index in range(last_complete + 1, index):
                    missed = self._at_bat(game, missed_index)
                    if missed is None:
                        continue
                    logger.info("missed_at_bat_recovered at_bat=%d current=%d", missed_index, index)
                    reported += await self.report_missed_events(game, missed, missed_index)
                    reported += await self.process_and_push(game, missed, missed_index)

        reported += await self.report_missed_events(game, current, index)
        reported += await self.process_and_push(game, current, index)
        return reported

    async def report_missed_events(self, game: GameState, at_bat: PlayEvent, index: int) -> int:
        """Report reportable sub-events of an at-bat that have not been sent yet."""
        reported = 0
        for event in at_bat.sub_events:
            if event.event_type not in REPORTABLE_EVENT_TYPES:
                continue
            if game.ledger.contains(event.description, index):
                continue
            reported += await self.process_and_push(game, event, index)
        return reported

    async def process_and_push(self, game: GameState, play: PlayEvent, index: int) -> int:
        """Extract, dedupe and dispatch one play. Returns 1 if it was reported."""
        extracted = self.extractor.extract(play, game)
        extracted.at_bat_index = index
        if not extracted.narrative or game.ledger.contains(extracted.description, index):
            return 0

        # Recorded before the first await below.
        game.ledger.record(extracted.description, index)
        if extracted.is_complete:
            game.last_reported_complete_index = index

        logger.info(
            "play_reported at_bat=%d event=%s scoring=%s",
            index,
            extracted.event_type or "-",
            extracted.is_scoring_play,
        )
        await self.dispatcher.dispatch(game, extracted, compose_message(game, extracted))
        return 1

    @staticmethod
    def _at_bat(game: GameState, index: int) -> PlayEvent | None:
        raw = game.find_at_bat(index)
        return PlayEvent.from_feed(raw) if raw is not None else None
