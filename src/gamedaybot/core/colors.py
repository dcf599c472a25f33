"""Embed colour selection for the two clubs in a game.

Plays are coloured by the batting team. When the away club's primary colour
is too close to the home club's, the away club's secondary colour is used so
the two halves of an inning stay distinguishable.
"""

from __future__ import annotations

from gamedaybot.models.teams import DEFAULT_TEAM_COLOR, get_team


def _channel(value: int) -> float:
    c = value / 255
    return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4


def relative_luminance(hex_color: str) -> float:
    """WCAG relative luminance of a ``#RRGGBB`` colour."""
    digits = hex_color.lstrip("#")
    if len(digits) != 6:
        msg = f"not a #RRGGBB colour: {hex_color!r}"
        raise ValueError(msg)
    r, g, b = (int(digits[i : i + 2], 16) for i in (0, 2, 4))
    return 0.2126 * _channel(r) + 0.7152 * _channel(g) + 0.0722 * _channel(b)


def contrast_ratio(first: str, second: str) -> float:
    """WCAG contrast ratio between two colours, from 1.0 to 21.0."""
    lighter, darker = sorted((relative_luminance(first), relative_luminance(second)), reverse=True)
    return (lighter + 0.05) / (darker + 0.05)


def pick_team_colors(
    home_team_id: int | None,
    away_team_id: int | None,
    min_ratio: float,
) -> tuple[str, str]:
    """Return ``(home_color, away_color)`` for a game's embeds."""
    home = get_team(home_team_id)
    away = get_team(away_team_id)
    home_color = home.primary_color if home else DEFAULT_TEAM_COLOR
    if away is None:
        return home_color, DEFAULT_TEAM_COLOR
    if contrast_ratio(home_color, away.primary_color) >= min_ratio:
        return home_color, away.primary_color
    return home_color, away.secondary_color
