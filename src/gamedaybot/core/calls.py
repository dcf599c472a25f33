"""Radio-style home run calls for the favourite team.

Cosmetic only. ``HomeRunCallPicker`` parses the feed's home run description
and hands back one of several call templates; the random source is
injectable so tests can pin the choice.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass

_PLAYER_RE = re.compile(r"(?P<player>.+?)( homers| hits a grand slam)")
_FIELD_RE = re.compile(r"to (?P<field>[a-zA-Z ]+) field\.")
_SCORERS_RE = re.compile(r"field\.\s+(?P<scorers>.+)")
_HR_NUMBER_RE = re.compile(r"(?P<number>\(\d+\))")


@dataclass(frozen=True)
class HomeRunParts:
    player: str
    field: str
    scorers: str = ""
    hr_number: str = ""
    grand_slam: bool = False


def parse_home_run(description: str) -> HomeRunParts | None:
    """Pull the hitter, field and scorers out of a home run description."""
    player = _PLAYER_RE.search(description)
    field = _FIELD_RE.search(description)
    if not player or not field:
        return None
    scorers = _SCORERS_RE.search(description)
    hr_number = _HR_NUMBER_RE.search(description)
    return HomeRunParts(
        player=player.group("player").strip(),
        field=field.group("field").strip(),
        scorers=scorers.group("scorers").strip() if scorers else "",
        hr_number=hr_number.group("number") if hr_number else "",
        grand_slam="hits a grand slam" in description,
    )


def _templates(parts: HomeRunParts) -> list[str]:
    p, f, n = parts.player, parts.field.upper(), parts.hr_number
    calls = [
        f"{p.upper()} WITH A SWING AND A DRIVE! TO DEEP {f}! A-WAAAAY BACK! GONE!!! {n}",
        f"{p} is ready...the pitch...SWUNG ON AND BELTED. FLY AWAY! FLY AWAY! {f} FIELD! "
        f"THIS BALL: GONE!! {n}",
        f"The next pitch to {p}...SWUNG ON! HIT HIGH! HIT DEEP TO {f}! IT WILL FLY AWAY! "
        f"GOODBYE, HOME RUN!! {n}",
        f"{p.upper()} SWINGS AND DRIVES ONE! DEEP {f} FIELD! GOING, GOING, GONE! "
        f"FLY, FLY AWAY! {n}",
        f"{p} steps in...the pitch...SWUNG ON AND CRUSHED! OH MY, GOODBYE BASEBALL! {f} FIELD! "
        f"SEE YA LATER! {n}",
    ]
    if parts.grand_slam:
        calls.append(
            f"AND HERE IT COMES... {p.upper()} SWINGS AND IT'S A LONG FLY BALL TO {f} FIELD... "
            f"IT'S OUTTA HERE! GET OUT THE RYE BREAD AND THE MUSTARD, GRANDMA, "
            f"IT'S A GRAND SALAMI!!! {n}"
        )
    return calls


class HomeRunCallPicker:
    """Chooses a call for a home run description."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def call_for(self, description: str) -> str | None:
        """Return a call, or None if the description could not be parsed."""
        parts = parse_home_run(description)
        if parts is None:
            return None
        call = self._rng.choice(_templates(parts)).rstrip()
        return f"{call}\n{parts.scorers}" if parts.scorers else call
