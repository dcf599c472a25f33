"""Shared test fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from gamedaybot.config import Settings
from gamedaybot.core.state import GameState
from gamedaybot.core.transport import TransportError
from gamedaybot.models.message import PlayMessage
from gamedaybot.models.subscription import SubscribedChannel

HOME_TEAM = {"id": 116, "abbreviation": "DET", "teamName": "Tigers"}
AWAY_TEAM = {"id": 114, "abbreviation": "CLE", "teamName": "Guardians"}
HOME_VENUE_ID = 2394


class FeedBuilder:
    """Builds live-feed documents shaped like the Stats API's."""

    @staticmethod
    def pitch(
        px: float | None = 0.0,
        pz: float | None = 2.5,
        *,
        description: str = "Called Strike",
        zone_top: float = 3.5,
        zone_bottom: float = 1.5,
        **details: Any,
    ) -> dict[str, Any]:
        return {
            "details": {"description": description, **details},
            "pitchData": {
                "coordinates": {"pX": px, "pZ": pz},
                "strikeZoneTop": zone_top,
                "strikeZoneBottom": zone_bottom,
            },
        }

    @staticmethod
    def in_play(
        launch_speed: float | None = 101.2,
        launch_angle: float | None = 12.0,
        total_distance: float | None = 250.0,
        *,
        play_id: str | None = "play-abc",
    ) -> dict[str, Any]:
        event: dict[str, Any] = {
            "details": {"description": "In play, no out", "isInPlay": True},
            "hitData": {
                "launchSpeed": launch_speed,
                "launchAngle": launch_angle,
                "totalDistance": total_distance,
            },
        }
        if launch_speed is None:
            event["hitData"] = {}
        if play_id:
            event["playId"] = play_id
        return event

    @staticmethod
    def sub_event(description: str, event_type: str, **details: Any) -> dict[str, Any]:
        return {
            "details": {
                "description": description,
                "event": event_type.replace("_", " ").title(),
                "eventType": event_type,
                **details,
            }
        }

    @staticmethod
    def at_bat(
        index: int,
        description: str = "",
        *,
        event: str = "",
        event_type: str = "",
        complete: bool = True,
        half: str = "top",
        inning: int = 1,
        outs: int = 0,
        strikes: int = 0,
        is_out: bool = False,
        scoring: bool = False,
        has_review: bool = False,
        review_in_progress: bool = False,
        home_score: int = 0,
        away_score: int = 0,
        play_events: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        play: dict[str, Any] = {
            "result": {
                "description": description,
                "event": event,
                "eventType": event_type,
                "isOut": is_out,
                "homeScore": home_score,
                "awayScore": away_score,
            },
            "about": {
                "atBatIndex": index,
                "halfInning": half,
                "inning": inning,
                "isComplete": complete,
                "isScoringPlay": scoring,
                "hasReview": has_review,
            },
            "count": {"outs": outs, "strikes": strikes, "balls": 0},
            "playEvents": play_events or [],
        }
        if review_in_progress:
            play["reviewDetails"] = {"inProgress": True}
        return play

    @staticmethod
    def snapshot(
        all_plays: list[dict[str, Any]],
        *,
        current: dict[str, Any] | None = None,
        home_runs: int = 0,
        away_runs: int = 0,
        time_stamp: str = "20240601_190000",
        home: dict[str, Any] | None = None,
        away: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return {
            "metaData": {"timeStamp": time_stamp},
            "gameData": {
                "teams": {"home": home or dict(HOME_TEAM), "away": away or dict(AWAY_TEAM)},
                "venue": {"id": HOME_VENUE_ID},
            },
            "liveData": {
                "plays": {
                    "allPlays": all_plays,
                    "currentPlay": current if current is not None else all_plays[-1],
                },
                "linescore": {
                    "teams": {"home": {"runs": home_runs}, "away": {"runs": away_runs}}
                },
            },
        }


class FakeTransport:
    """Records sends and edits; channels in ``failing`` raise TransportError."""

    def __init__(self, failing: set[int] | None = None) -> None:
        self.failing = failing or set()
        self.sent: list[tuple[int, PlayMessage]] = []
        self.edits: list[tuple[int, str]] = []

    async def send(self, channel_id: int, message: PlayMessage) -> int:
        if channel_id in self.failing:
            raise TransportError(f"channel {channel_id} is gone")
        self.sent.append((channel_id, message.model_copy(deep=True)))
        return len(self.sent)

    async def edit(self, handle: int, message: PlayMessage) -> None:
        self.edits.append((handle, message.render()))

    def channels(self) -> list[int]:
        return [channel_id for channel_id, _ in self.sent]


class FakeSleep:
    """Stands in for asyncio.sleep; records requested delays and returns at once."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def settings() -> Settings:
    """Test settings with defaults."""
    return Settings(gameday_env="development", database_url="sqlite+aiosqlite:///:memory:")


@pytest.fixture
def feed() -> type[FeedBuilder]:
    return FeedBuilder


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def make_game(feed: type[FeedBuilder]):
    """Build a GameState around a snapshot of the given at-bats."""

    def _make(
        all_plays: list[dict[str, Any]] | None = None,
        channels: list[SubscribedChannel] | None = None,
        **snapshot_kwargs: Any,
    ) -> GameState:
        plays = all_plays if all_plays is not None else [feed.at_bat(0, complete=False)]
        return GameState(
            game_pk=745123,
            snapshot=feed.snapshot(plays, **snapshot_kwargs),
            channels=channels or [SubscribedChannel(guild_id=1, channel_id=100)],
            home_color="#0C2340",
            away_color="#E50022",
        )

    return _make
