"""MLB club reference data used for embed colours and the favourite-team options."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TeamInfo:
    """A club's Stats API id and its two brand colours."""

    id: int
    abbreviation: str
    name: str
    primary_color: str
    secondary_color: str


TEAMS: tuple[TeamInfo, ...] = (
    TeamInfo(108, "LAA", "Los Angeles Angels", "#BA0021", "#003263"),
    TeamInfo(109, "AZ", "Arizona Diamondbacks", "#A71930", "#E3D4AD"),
    TeamInfo(110, "BAL", "Baltimore Orioles", "#DF4601", "#000000"),
    TeamInfo(111, "BOS", "Boston Red Sox", "#BD3039", "#0C2340"),
    TeamInfo(112, "CHC", "Chicago Cubs", "#0E3386", "#CC3433"),
    TeamInfo(113, "CIN", "Cincinnati Reds", "#C6011F", "#000000"),
    TeamInfo(114, "CLE", "Cleveland Guardians", "#00385D", "#E50022"),
    TeamInfo(115, "COL", "Colorado Rockies", "#333366", "#C4CED4"),
    TeamInfo(116, "DET", "Detroit Tigers", "#0C2340", "#FA4616"),
    TeamInfo(117, "HOU", "Houston Astros", "#002D62", "#EB6E1F"),
    TeamInfo(118, "KC", "Kansas City Royals", "#004687", "#BD9B60"),
    TeamInfo(119, "LAD", "Los Angeles Dodgers", "#005A9C", "#EF3E42"),
    TeamInfo(120, "WSH", "Washington Nationals", "#AB0003", "#14225A"),
    TeamInfo(121, "NYM", "New York Mets", "#002D72", "#FF5910"),
    TeamInfo(133, "ATH", "Athletics", "#003831", "#EFB21E"),
    TeamInfo(134, "PIT", "Pittsburgh Pirates", "#27251F", "#FDB827"),
    TeamInfo(135, "SD", "San Diego Padres", "#2F241D", "#FFC425"),
    TeamInfo(136, "SEA", "Seattle Mariners", "#0C2C56", "#005C5C"),
    TeamInfo(137, "SF", "San Francisco Giants", "#FD5A1E", "#27251F"),
    TeamInfo(138, "STL", "St. Louis Cardinals", "#C41E3A", "#0C2340"),
    TeamInfo(139, "TB", "Tampa Bay Rays", "#092C5C", "#8FBCE6"),
    TeamInfo(140, "TEX", "Texas Rangers", "#003278", "#C0111F"),
    TeamInfo(141, "TOR", "Toronto Blue Jays", "#134A8E", "#E8291C"),
    TeamInfo(142, "MIN", "Minnesota Twins", "#002B5C", "#D31145"),
    TeamInfo(143, "PHI", "Philadelphia Phillies", "#E81828", "#002D72"),
    TeamInfo(144, "ATL", "Atlanta Braves", "#CE1141", "#13274F"),
    TeamInfo(145, "CWS", "Chicago White Sox", "#27251F", "#C4CED4"),
    TeamInfo(146, "MIA", "Miami Marlins", "#00A3E0", "#EF3340"),
    TeamInfo(147, "NYY", "New York Yankees", "#0C2340", "#C4CED3"),
    TeamInfo(158, "MIL", "Milwaukee Brewers", "#12284B", "#FFC52F"),
)

TEAMS_BY_ID: dict[int, TeamInfo] = {team.id: team for team in TEAMS}

DEFAULT_TEAM_COLOR = "#5865F2"


def get_team(team_id: int | None) -> TeamInfo | None:
    if team_id is None:
        return None
    return TEAMS_BY_ID.get(team_id)
