"""Was a called third strike actually in the zone?

The zone's height comes from the batter's strike-zone bounds reported with
the at-bat's first pitch. Its width is home plate (17 in) plus roughly a
ball's width on each side, expressed in feet from the middle of the plate.
"""

from __future__ import annotations

from dataclasses import dataclass

from gamedaybot.models.play import PitchData, PlayEvent

PLATE_HALF_WIDTH_FT = 0.7083
BALL_BUFFER_FT = 0.121
ZONE_HALF_WIDTH_FT = PLATE_HALF_WIDTH_FT + BALL_BUFFER_FT


@dataclass(frozen=True)
class StrikeZone:
    top: float
    bottom: float
    left: float = -ZONE_HALF_WIDTH_FT
    right: float = ZONE_HALF_WIDTH_FT


@dataclass(frozen=True)
class ZoneCall:
    """Where a pitch ended up relative to the zone."""

    outside: bool
    horizontal_distance: float = 0.0
    vertical_distance: float = 0.0


def zone_for(bounds: PitchData | None) -> StrikeZone:
    top = bounds.zone_top if bounds and bounds.zone_top is not None else 0.0
    bottom = bounds.zone_bottom if bounds and bounds.zone_bottom is not None else 0.0
    return StrikeZone(top=top, bottom=bottom)


def _overflow(value: float, low: float, high: float) -> float:
    if value < low:
        return low - value
    if value > high:
        return value - high
    return 0.0


def judge_pitch(zone: StrikeZone, px: float, pz: float) -> ZoneCall:
    """Classify a pitch at ``(px, pz)`` and measure how far outside it was."""
    horizontal = _overflow(px, zone.left, zone.right)
    vertical = _overflow(pz, zone.bottom, zone.top)
    return ZoneCall(
        outside=horizontal > 0 or vertical > 0,
        horizontal_distance=horizontal,
        vertical_distance=vertical,
    )


def judge_final_pitch(at_bat: PlayEvent) -> ZoneCall | None:
    """Judge the last pitch of an at-bat, or None when its location is unknown."""
    final = at_bat.final_event
    pitch = final.pitch
    if pitch is None or pitch.px is None or pitch.pz is None:
        return None
    bounds = at_bat.first_pitch
    if bounds is None or bounds.zone_top is None or bounds.zone_bottom is None:
        return None
    return judge_pitch(zone_for(bounds), pitch.px, pitch.pz)
