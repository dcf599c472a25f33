"""Play models: normalized at-bats and sub-events from the live feed.

The live feed describes an at-bat with ``result``/``about``/``count`` and a
list of ``playEvents``; each sub-event carries the same facts under
``details``. ``PlayEvent.from_feed`` folds both shapes into one model so the
pipeline never re-derives optional fallbacks.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from gamedaybot.models.message import render_content

START_EVENT_DESCRIPTION = "Status Change - In Progress"

# Sub-event types that are worth a report even though the at-bat is still going.
REPORTABLE_EVENT_TYPES: frozenset[str] = frozenset(
    {
        "stolen_base_2b",
        "stolen_base_3b",
        "stolen_base_home",
        "caught_stealing_2b",
        "caught_stealing_3b",
        "caught_stealing_home",
        "pickoff_1b",
        "pickoff_2b",
        "pickoff_3b",
        "pickoff_caught_stealing_2b",
        "pickoff_caught_stealing_3b",
        "pickoff_caught_stealing_home",
        "pickoff_error_1b",
        "pickoff_error_2b",
        "pickoff_error_3b",
        "wild_pitch",
        "passed_ball",
        "balk",
        "defensive_indiff",
        "other_advance",
        "other_out",
        "error",
    }
)


class HitData(BaseModel):
    """Statcast batted-ball measurements."""

    launch_speed: float | None = None
    launch_angle: float | None = None
    total_distance: float | None = None


class PitchData(BaseModel):
    """Pitch location and the batter's strike zone, in feet."""

    px: float | None = None
    pz: float | None = None
    zone_top: float | None = None
    zone_bottom: float | None = None


class PlayEvent(BaseModel):
    """One at-bat, or one event inside an at-bat."""

    at_bat_index: int | None = None
    inning: int | None = None
    half_inning: str = ""
    description: str = ""
    event: str = ""
    event_type: str = ""
    is_complete: bool = False
    is_scoring_play: bool = False
    is_out: bool = False
    is_in_play: bool = False
    has_review: bool = False
    review_in_progress: bool = False
    outs: int = 0
    strikes: int = 0
    play_id: str | None = None
    home_score: int | None = None
    away_score: int | None = None
    hit: HitData | None = None
    pitch: PitchData | None = None
    sub_events: list[PlayEvent] = Field(default_factory=list)

    @classmethod
    def from_feed(
        cls,
        raw: dict[str, Any],
        *,
        at_bat_index: int | None = None,
        half_inning: str = "",
        inning: int | None = None,
    ) -> PlayEvent:
        """Normalize an at-bat or sub-event dict from the live feed.

        Sub-events inherit the at-bat index and half inning of their parent.
        """
        result = raw.get("result") or {}
        details = raw.get("details") or {}
        about = raw.get("about") or {}
        count = raw.get("count") or {}
        review = raw.get("reviewDetails") or {}

        index = about.get("atBatIndex", at_bat_index)
        half = about.get("halfInning") or half_inning
        inning_number = about.get("inning", inning)

        sub_events = [
            cls.from_feed(event, at_bat_index=index, half_inning=half, inning=inning_number)
            for event in raw.get("playEvents") or []
            if isinstance(event, dict)
        ]

        return cls(
            at_bat_index=index,
            inning=inning_number,
            half_inning=half,
            description=_first(result, details, "description") or "",
            event=_first(result, details, "event") or "",
            event_type=_first(result, details, "eventType") or "",
            is_complete=bool(about.get("isComplete")),
            is_scoring_play=bool(about.get("isScoringPlay") or details.get("isScoringPlay")),
            is_out=bool(result.get("isOut") or details.get("isOut")),
            is_in_play=bool(details.get("isInPlay")),
            has_review=bool(about.get("hasReview")),
            review_in_progress=bool(review.get("inProgress")),
            outs=int(count.get("outs") or 0),
            strikes=int(count.get("strikes") or 0),
            play_id=raw.get("playId") or None,
            home_score=_first(result, details, "homeScore"),
            away_score=_first(result, details, "awayScore"),
            hit=_hit_data(raw.get("hitData")),
            pitch=_pitch_data(raw.get("pitchData")),
            sub_events=sub_events,
        )

    @property
    def is_start_event(self) -> bool:
        """True when the game's in-progress status change is among the sub-events."""
        return any(e.description == START_EVENT_DESCRIPTION for e in self.sub_events)

    @property
    def final_event(self) -> PlayEvent:
        """The last sub-event, or the event itself when it has none."""
        return self.sub_events[-1] if self.sub_events else self

    @property
    def first_pitch(self) -> PitchData | None:
        """Pitch data of the first sub-event that has any (carries the strike zone bounds)."""
        for event in self.sub_events:
            if event.pitch is not None:
                return event.pitch
        return self.pitch


class ExtractedPlay(BaseModel):
    """What the extractor derived from one PlayEvent.

    ``body`` holds the narrative text; the advanced-metric lines are kept as
    separate fields so they can be back-filled after the report is sent.
    """

    body: str = ""
    at_bat_index: int | None = None
    xba: str | None = None
    hr_park: str | None = None
    zone_note: str | None = None
    is_start_event: bool = False
    is_complete: bool = False
    description: str = ""
    event: str = ""
    event_type: str = ""
    is_scoring_play: bool = False
    is_in_play: bool = False
    play_id: str | None = None
    hit_distance: float | None = None

    @property
    def narrative(self) -> str:
        """Full text of the report; empty when there is nothing to report."""
        if not self.body:
            return ""
        return render_content(self.body, self.xba, self.hr_park, self.zone_note)

    @property
    def is_strikeout(self) -> bool:
        return self.event_type == "strikeout"


def _first(primary: dict[str, Any], fallback: dict[str, Any], key: str) -> Any:
    value = primary.get(key)
    if value is None or value == "":
        value = fallback.get(key)
    return value


def _hit_data(raw: dict[str, Any] | None) -> HitData | None:
    if not isinstance(raw, dict):
        return None
    return HitData(
        launch_speed=raw.get("launchSpeed"),
        launch_angle=raw.get("launchAngle"),
        total_distance=raw.get("totalDistance"),
    )


def _pitch_data(raw: dict[str, Any] | None) -> PitchData | None:
    if not isinstance(raw, dict):
        return None
    coordinates = raw.get("coordinates") or {}
    return PitchData(
        px=coordinates.get("pX"),
        pz=coordinates.get("pZ"),
        zone_top=raw.get("strikeZoneTop"),
        zone_bottom=raw.get("strikeZoneBottom"),
    )
