"""Turn one at-bat or sub-event into report text and flags.

The extractor reads a normalized ``PlayEvent`` and the tracked game's state
and produces an ``ExtractedPlay``. Text is assembled in a fixed order:

1. Start announcement, the first time the game's in-progress status change
   is seen.
2. The play description (complete at-bats and reportable sub-events only),
   followed by the outs count when the play made an out.
3. The score line for scoring plays, unless a review is in progress.
4. Statcast metrics for balls in play, or the strike-zone call for a
   strikeout, unless the play is under review.

An empty description yields an empty narrative, which the reporter treats as
nothing to send.
"""

from __future__ import annotations

import logging

from gamedaybot.core.calls import HomeRunCallPicker
from gamedaybot.core.state import GameState
from gamedaybot.core.strike_zone import judge_final_pitch
from gamedaybot.models.message import PENDING, UNAVAILABLE
from gamedaybot.models.play import REPORTABLE_EVENT_TYPES, ExtractedPlay, PlayEvent

logger = logging.getLogger(__name__)

HR_PARK_MIN_DISTANCE_FT = 300
FIRE = "\U0001f525"


def intensity_markers(launch_speed: float) -> str:
    """Fire emoji for hard-hit balls: one at 95+ mph, two at 100+, three at 110+."""
    if launch_speed >= 110.0:
        return " " + FIRE * 3
    if launch_speed >= 100.0:
        return " " + FIRE * 2
    if launch_speed >= 95.0:
        return " " + FIRE
    return ""


def outs_clause(outs: int) -> str:
    return f"**{outs} out.**" if outs == 1 else f"**{outs} outs.**"


def _number(value: float | None) -> str:
    if value is None:
        return UNAVAILABLE
    return f"{value:g}"


class EventExtractor:
    """Builds report text for plays in the tracked game."""

    def __init__(
        self,
        favorite_team_id: int | None = None,
        call_picker: HomeRunCallPicker | None = None,
    ) -> None:
        self.favorite_team_id = favorite_team_id
        self.call_picker = call_picker or HomeRunCallPicker()

    def extract(self, play: PlayEvent, game: GameState) -> ExtractedPlay:
        final = play.final_event
        extracted = ExtractedPlay(
            at_bat_index=play.at_bat_index,
            is_start_event=play.is_start_event,
            is_complete=play.is_complete,
            description=play.description,
            event=play.event,
            event_type=play.event_type,
            is_scoring_play=play.is_scoring_play,
            is_in_play=final.is_in_play or play.is_in_play,
            play_id=final.play_id or play.play_id,
            hit_distance=_distance(final) or _distance(play),
        )

        parts: list[str] = []
        if play.is_start_event and not game.start_reported:
            game.start_reported = True
            parts.append(self._start_announcement(game))

        if not (play.is_complete or play.event_type in REPORTABLE_EVENT_TYPES):
            extracted.body = "".join(parts)
            return extracted

        description = self._description(play, game)
        if not description:
            # Nothing to say about the play itself; keep a start announcement if we made one.
            extracted.body = "".join(parts)
            return extracted

        parts.append(f"\n{description}" if parts else description)
        if play.is_out:
            parts.append(" " + outs_clause(play.outs))
        if play.is_scoring_play and not play.review_in_progress:
            parts.append("\n" + self._score_line(play, game))

        if not play.has_review:
            if final.is_in_play:
                self._add_hit_metrics(final, parts, extracted)
            elif final.event_type == "strikeout" or play.event_type == "strikeout":
                self._add_zone_call(play, final, extracted)

        extracted.body = "".join(parts)
        return extracted

    def _start_announcement(self, game: GameState) -> str:
        if self.favorite_team_id is None:
            return "A game is starting!"
        if game.team_id("home") == self.favorite_team_id:
            return "And we're underway!"
        if game.team_id("away") == self.favorite_team_id:
            return f"A game is starting! Let's go {game.team('away').get('teamName', '')}!"
        return "A game is starting!"

    def _description(self, play: PlayEvent, game: GameState) -> str:
        if play.event == "Home Run" and self._favorite_batting(play, game):
            call = self.call_picker.call_for(play.description)
            if call:
                return call
        return play.description

    def _favorite_batting(self, play: PlayEvent, game: GameState) -> bool:
        if self.favorite_team_id is None:
            return False
        side = "away" if play.half_inning == "top" else "home"
        return game.team_id(side) == self.favorite_team_id

    def _score_line(self, play: PlayEvent, game: GameState) -> str:
        away = f"{game.abbreviation('away')} {play.away_score}"
        home = f"{game.abbreviation('home')} {play.home_score}"
        half = play.half_inning or game.current_half_inning
        if half == "top":
            return f"# _{away}_, {home}"
        return f"# {away}, _{home}_"

    def _add_hit_metrics(
        self, final: PlayEvent, parts: list[str], extracted: ExtractedPlay
    ) -> None:
        hit = final.hit
        parts.append("\n\n**Statcast Metrics:**\n")
        if hit is None or not hit.launch_speed:
            parts.append(
                f"Exit Velocity: {UNAVAILABLE}\n"
                f"Launch Angle: {UNAVAILABLE}\n"
                f"Distance: {UNAVAILABLE}"
            )
            extracted.xba = UNAVAILABLE
            extracted.hr_park = UNAVAILABLE
            return
        parts.append(
            f"Exit Velo: {_number(hit.launch_speed)} mph{intensity_markers(hit.launch_speed)}\n"
            f"Launch Angle: {_number(hit.launch_angle)}°\n"
            f"Distance: {_number(hit.total_distance)} ft."
        )
        extracted.xba = PENDING
        if hit.total_distance and hit.total_distance >= HR_PARK_MIN_DISTANCE_FT:
            extracted.hr_park = PENDING

    def _add_zone_call(self, play: PlayEvent, final: PlayEvent, extracted: ExtractedPlay) -> None:
        if (final.strikes or play.strikes) != 3:
            return
        call = judge_final_pitch(play)
        if call is None:
            logger.debug("zone_call_skipped at_bat=%s reason=no_pitch_data", play.at_bat_index)
            return
        if not call.outside:
            extracted.zone_note = "The pitch was inside the strike zone."
            return
        extracted.zone_note = (
            "The pitch was outside the strike zone.\n"
            f"Distance from zone - Horizontal: {call.horizontal_distance:.2f}, "
            f"Vertical: {call.vertical_distance:.2f}."
        )


def _distance(event: PlayEvent) -> float | None:
    return event.hit.total_distance if event.hit else None
