"""Discord embed builders for gameday messages.

Each builder takes domain data and returns a styled embed ready to send.
"""

from __future__ import annotations

import discord

from gamedaybot.models.message import PlayMessage
from gamedaybot.models.subscription import SubscribedChannel

COLOR_SUBSCRIPTION = 0x2ECC71  # Green — subscription confirmations
COLOR_WARNING = 0xE67E22  # Orange — refusals

# Discord rejects embed descriptions longer than this.
MAX_DESCRIPTION_LENGTH = 4096


def parse_color(value: str) -> discord.Colour:
    try:
        return discord.Colour.from_str(value)
    except ValueError:
        return discord.Colour.default()


def build_play_embed(message: PlayMessage) -> discord.Embed:
    """Build the embed for one play report.

    The title carries the inning and score; the description is the rendered
    narrative with whatever metric lines the message currently has.
    """
    description = message.render()
    if len(description) > MAX_DESCRIPTION_LENGTH:
        description = description[: MAX_DESCRIPTION_LENGTH - 3] + "..."
    return discord.Embed(
        title=message.title or None,
        description=description,
        color=parse_color(message.color),
    )


def describe_preferences(scoring_plays_only: bool, delay_seconds: int) -> str:
    events = "**Scoring Plays Only**" if scoring_plays_only else "**All Plays**"
    return f"Events: {events}\nReporting Delay: **{delay_seconds} seconds**"


def build_subscribed_embed(channel: SubscribedChannel, *, updated: bool = False) -> discord.Embed:
    title = (
        "Updated this channel's Gameday play reporting preferences"
        if updated
        else "Subscribed this channel to the gameday feed"
    )
    return discord.Embed(
        title=title,
        description=describe_preferences(channel.scoring_plays_only, channel.delay_seconds),
        color=COLOR_SUBSCRIPTION,
    )


def build_unsubscribed_embed() -> discord.Embed:
    return discord.Embed(
        title="Unsubscribed",
        description=(
            "This channel is un-subscribed to the Gameday feed. "
            "It will no longer receive real-time updates."
        ),
        color=COLOR_WARNING,
    )
