"""Discord bot for the gameday feed.

Runs alongside FastAPI using the same event loop. Provides the slash
commands that subscribe a channel to play reports, change its preferences
and unsubscribe it. After every change the tracker's subscriber cache is
refreshed so the next play goes to the right channels.

The bot is optional: if DISCORD_BOT_TOKEN is not set, nothing starts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import discord
from discord import Intents, app_commands
from discord.ext import commands
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from gamedaybot.db.engine import get_session
from gamedaybot.db.repository import DuplicateSubscriptionError, SubscriptionRepository
from gamedaybot.discord.embeds import (
    build_subscribed_embed,
    build_unsubscribed_embed,
)
from gamedaybot.models.subscription import SubscribedChannel

if TYPE_CHECKING:
    from gamedaybot.config import Settings

logger = logging.getLogger(__name__)

MAX_REPORTING_DELAY_SECONDS = 180

SubscriptionsChanged = Callable[[], Awaitable[Any]]


class GamedayBot(commands.Bot):
    """The gameday Discord bot.

    Runs in-process with FastAPI. Play reports reach channels through
    ``DiscordTransport``; this class owns the subscription commands.
    """

    def __init__(
        self,
        settings: Settings,
        engine: AsyncEngine | None = None,
        on_subscriptions_changed: SubscriptionsChanged | None = None,
    ) -> None:
        super().__init__(
            command_prefix="!",
            intents=Intents.default(),
            description="Live MLB play-by-play for your server.",
        )
        self.settings = settings
        self.engine = engine
        self.on_subscriptions_changed = on_subscriptions_changed
        self._runner_task: asyncio.Task[None] | None = None
        self._setup_commands()

    def _setup_commands(self) -> None:
        """Register slash commands on the bot's command tree."""

        @self.tree.command(
            name="subscribe_gameday",
            description="Subscribe this channel to real-time play reports",
        )
        @app_commands.describe(
            scoring_plays_only="Only report plays that score runs",
            reporting_delay="Seconds to wait before each report (to match your stream)",
        )
        async def subscribe_command(
            interaction: discord.Interaction,
            scoring_plays_only: bool = False,
            reporting_delay: app_commands.Range[int, 0, MAX_REPORTING_DELAY_SECONDS] = 0,
        ) -> None:
            await self._handle_subscribe(interaction, scoring_plays_only, reporting_delay)

        @self.tree.command(
            name="gameday_preference",
            description="Change which plays this channel gets and how late",
        )
        @app_commands.describe(
            scoring_plays_only="Only report plays that score runs",
            reporting_delay="Seconds to wait before each report (to match your stream)",
        )
        async def preference_command(
            interaction: discord.Interaction,
            scoring_plays_only: bool = False,
            reporting_delay: app_commands.Range[int, 0, MAX_REPORTING_DELAY_SECONDS] = 0,
        ) -> None:
            await self._handle_preference(interaction, scoring_plays_only, reporting_delay)

        @self.tree.command(
            name="unsubscribe_gameday",
            description="Stop sending play reports to this channel",
        )
        async def unsubscribe_command(interaction: discord.Interaction) -> None:
            await self._handle_unsubscribe(interaction)

    async def setup_hook(self) -> None:
        """Called when the bot is ready to start. Syncs slash commands."""
        if self.settings.discord_guild_id:
            guild = discord.Object(id=int(self.settings.discord_guild_id))
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            logger.info("discord_commands_synced guild_id=%s", self.settings.discord_guild_id)
        else:
            await self.tree.sync()
            logger.info("discord_commands_synced globally")

    async def on_ready(self) -> None:
        user = self.user
        logger.info("discord_bot_ready user=%s", user.name if user else "unknown")

    # --- helpers ---

    def _is_admin(self, interaction: discord.Interaction) -> bool:
        roles = getattr(interaction.user, "roles", None) or []
        allowed = set(self.settings.admin_roles)
        return any(role.name in allowed for role in roles)

    async def _refuse(self, interaction: discord.Interaction, action: str) -> bool:
        """Answer non-admins ephemerally. Returns True if the caller was refused."""
        if self._is_admin(interaction):
            return False
        logger.info(
            "gameday_command_refused user=%s action=%s",
            interaction.user.display_name if interaction.user else "unknown",
            action,
        )
        await interaction.response.send_message(
            f"You do not have permission to {action}.",
            ephemeral=True,
        )
        return True

    async def _unavailable(self, interaction: discord.Interaction) -> bool:
        if self.engine is not None and interaction.guild_id and interaction.channel_id:
            return False
        await interaction.response.send_message(
            "Gameday subscriptions are temporarily unavailable. Try again in a moment.",
            ephemeral=True,
        )
        return True

    async def _subscriptions_changed(self) -> None:
        if self.on_subscriptions_changed is not None:
            await self.on_subscriptions_changed()

    # --- handlers ---

    async def _handle_subscribe(
        self,
        interaction: discord.Interaction,
        scoring_plays_only: bool,
        reporting_delay: int,
    ) -> None:
        logger.info(
            "subscribe_gameday guild=%s channel=%s", interaction.guild_id, interaction.channel_id
        )
        if await self._refuse(interaction, "subscribe channels to the Gameday feed"):
            return
        if await self._unavailable(interaction):
            return
        assert self.engine is not None
        try:
            async with get_session(self.engine) as session:
                channel = await SubscriptionRepository(session).add(
                    interaction.guild_id,
                    interaction.channel_id,
                    scoring_plays_only=scoring_plays_only,
                    delay_seconds=reporting_delay,
                )
        except DuplicateSubscriptionError:
            await interaction.response.send_message(
                "This channel is already subscribed to the gameday feed."
            )
            return
        except SQLAlchemyError:
            logger.exception("subscribe_gameday_failed channel=%s", interaction.channel_id)
            await interaction.response.send_message(
                "Error subscribing to the gameday feed. Try again in a moment.",
                ephemeral=True,
            )
            return
        await self._subscriptions_changed()
        await interaction.response.send_message(embed=build_subscribed_embed(channel))

    async def _handle_preference(
        self,
        interaction: discord.Interaction,
        scoring_plays_only: bool,
        reporting_delay: int,
    ) -> None:
        logger.info(
            "gameday_preference guild=%s channel=%s", interaction.guild_id, interaction.channel_id
        )
        if await self._refuse(interaction, "use this command"):
            return
        if await self._unavailable(interaction):
            return
        assert self.engine is not None
        try:
            async with get_session(self.engine) as session:
                updated = await SubscriptionRepository(session).update_preference(
                    interaction.guild_id,
                    interaction.channel_id,
                    scoring_plays_only=scoring_plays_only,
                    delay_seconds=reporting_delay,
                )
        except SQLAlchemyError:
            logger.exception("gameday_preference_failed channel=%s", interaction.channel_id)
            await interaction.response.send_message(
                "Error updating your gameday preferences. Try again in a moment.",
                ephemeral=True,
            )
            return
        if not updated:
            await interaction.response.send_message(
                "This channel isn't currently subscribed. "
                "Use `/subscribe_gameday` to subscribe and provide a preference."
            )
            return
        await self._subscriptions_changed()
        channel = SubscribedChannel(
            guild_id=interaction.guild_id,
            channel_id=interaction.channel_id,
            scoring_plays_only=scoring_plays_only,
            delay_seconds=reporting_delay,
        )
        await interaction.response.send_message(
            embed=build_subscribed_embed(channel, updated=True)
        )

    async def _handle_unsubscribe(self, interaction: discord.Interaction) -> None:
        logger.info(
            "unsubscribe_gameday guild=%s channel=%s", interaction.guild_id, interaction.channel_id
        )
        if await self._refuse(interaction, "un-subscribe channels from the Gameday feed"):
            return
        if await self._unavailable(interaction):
            return
        assert self.engine is not None
        try:
            async with get_session(self.engine) as session:
                removed = await SubscriptionRepository(session).remove(
                    interaction.guild_id, interaction.channel_id
                )
        except SQLAlchemyError:
            logger.exception("unsubscribe_gameday_failed channel=%s", interaction.channel_id)
            await interaction.response.send_message(
                "Error un-subscribing. Try again in a moment.",
                ephemeral=True,
            )
            return
        if not removed:
            await interaction.response.send_message(
                "This channel isn't subscribed to the gameday feed.",
                ephemeral=True,
            )
            return
        await self._subscriptions_changed()
        await interaction.response.send_message(embed=build_unsubscribed_embed())


def is_discord_enabled(settings: Settings) -> bool:
    """Check whether Discord integration should be started.

    Returns True only when discord_enabled is True, a token is set, AND the
    environment is not development, so a local run never syncs commands to
    the production guild.
    """
    if settings.gameday_env == "development":
        logger.info("discord_bot_skipped_in_development")
        return False
    return bool(settings.discord_enabled and settings.discord_bot_token)


async def start_discord_bot(
    settings: Settings,
    engine: AsyncEngine | None = None,
    on_subscriptions_changed: SubscriptionsChanged | None = None,
) -> GamedayBot:
    """Create and start the Discord bot in the current event loop.

    Returns the bot instance so the caller can stop it during shutdown.
    The bot runs as a background task; this function returns immediately
    after starting it.
    """
    bot = GamedayBot(
        settings=settings, engine=engine, on_subscriptions_changed=on_subscriptions_changed
    )

    async def _run_bot() -> None:
        try:
            await bot.start(settings.discord_bot_token)
        except asyncio.CancelledError:
            logger.info("discord_bot_cancelled")
        except Exception:  # Last-resort handler — bot.start can raise connection and auth errors
            logger.exception("discord_bot_error")
        finally:
            if not bot.is_closed():
                await bot.close()

    bot._runner_task = asyncio.create_task(_run_bot(), name="discord-bot")
    logger.info("discord_bot_started")
    return bot
