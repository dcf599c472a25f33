"""State store for the tracked game.

GameState is the working memory of one live game: the live-feed snapshot,
the ledger of what has already been reported, and the subscriber cache. A
new game gets a new GameState; nothing is carried forward.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from gamedaybot.models.play import PlayEvent
from gamedaybot.models.subscription import SubscribedChannel
from gamedaybot.models.teams import DEFAULT_TEAM_COLOR


@dataclass(frozen=True)
class ReportedDescription:
    description: str
    at_bat_index: int


class ReportedLedger:
    """Append-only record of ``(description, at_bat_index)`` pairs already sent."""

    def __init__(self) -> None:
        self._entries: list[ReportedDescription] = []
        self._seen: set[ReportedDescription] = set()

    def __contains__(self, entry: object) -> bool:
        return entry in self._seen

    def __iter__(self) -> Iterator[ReportedDescription]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def contains(self, description: str, at_bat_index: int) -> bool:
        return ReportedDescription(description, at_bat_index) in self._seen

    def record(self, description: str, at_bat_index: int) -> bool:
        """Add a pair. Returns False if it was already present."""
        entry = ReportedDescription(description, at_bat_index)
        if entry in self._seen:
            return False
        self._seen.add(entry)
        self._entries.append(entry)
        return True


@dataclass
class GameState:
    """Everything the pipeline knows about the game it is tracking."""

    game_pk: int
    snapshot: dict[str, Any]
    channels: list[SubscribedChannel] = field(default_factory=list)
    ledger: ReportedLedger = field(default_factory=ReportedLedger)
    last_reported_complete_index: int | None = None
    start_reported: bool = False
    finished: bool = False
    home_color: str = DEFAULT_TEAM_COLOR
    away_color: str = DEFAULT_TEAM_COLOR
    last_notification_timestamp: str | None = None
    last_notification_length: int | None = None

    def is_duplicate_notification(self, time_stamp: str, payload_length: int) -> bool:
        """Check a notification against the previous one and remember it.

        The socket occasionally delivers the same update twice under
        different update ids; identical timestamp and payload length is the
        tell.
        """
        if (
            self.last_notification_timestamp == time_stamp
            and self.last_notification_length == payload_length
        ):
            return True
        self.last_notification_timestamp = time_stamp
        self.last_notification_length = payload_length
        return False

    def replace_snapshot(self, snapshot: dict[str, Any]) -> None:
        self.snapshot = snapshot

    # --- snapshot accessors ---

    @property
    def plays(self) -> dict[str, Any]:
        return self.snapshot.get("liveData", {}).get("plays", {})

    @property
    def current_play(self) -> dict[str, Any] | None:
        play = self.plays.get("currentPlay")
        return play if isinstance(play, dict) and play else None

    @property
    def current_at_bat_index(self) -> int | None:
        play = self.current_play
        if play is None:
            return None
        return (play.get("about") or {}).get("atBatIndex")

    @property
    def current_half_inning(self) -> str:
        play = self.current_play or {}
        return (play.get("about") or {}).get("halfInning", "")

    @property
    def current_inning(self) -> int | None:
        play = self.current_play or {}
        return (play.get("about") or {}).get("inning")

    def find_at_bat(self, at_bat_index: int) -> dict[str, Any] | None:
        for play in self.plays.get("allPlays") or []:
            if (play.get("about") or {}).get("atBatIndex") == at_bat_index:
                return play
        return None

    def current_play_event(self) -> PlayEvent | None:
        play = self.current_play
        return PlayEvent.from_feed(play) if play is not None else None

    def team(self, side: str) -> dict[str, Any]:
        return self.snapshot.get("gameData", {}).get("teams", {}).get(side, {})

    def abbreviation(self, side: str) -> str:
        team = self.team(side)
        return team.get("abbreviation") or team.get("teamName") or side.upper()

    def team_id(self, side: str) -> int | None:
        return self.team(side).get("id")

    def runs(self, side: str) -> int:
        teams = self.snapshot.get("liveData", {}).get("linescore", {}).get("teams", {})
        return int((teams.get(side) or {}).get("runs") or 0)

    @property
    def venue_id(self) -> int | None:
        return self.snapshot.get("gameData", {}).get("venue", {}).get("id")

    @property
    def feed_timestamp(self) -> str | None:
        return self.snapshot.get("metaData", {}).get("timeStamp")
