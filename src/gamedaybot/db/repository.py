"""Repository for gameday subscriptions.

Wraps an async SQLAlchemy session. Each ``(guild_id, channel_id)`` pair is
subscribed at most once.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from gamedaybot.db.engine import get_session
from gamedaybot.db.models import SubscribedChannelRow
from gamedaybot.models.subscription import SubscribedChannel

logger = logging.getLogger(__name__)


class DuplicateSubscriptionError(Exception):
    """The channel is already subscribed."""

    def __init__(self, guild_id: int, channel_id: int) -> None:
        super().__init__(f"channel {channel_id} in guild {guild_id} is already subscribed")
        self.guild_id = guild_id
        self.channel_id = channel_id


def _to_model(row: SubscribedChannelRow) -> SubscribedChannel:
    return SubscribedChannel(
        guild_id=row.guild_id,
        channel_id=row.channel_id,
        scoring_plays_only=row.scoring_plays_only,
        delay_seconds=row.delay_seconds,
    )


class SubscriptionRepository:
    """Async repository for subscribed channels."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _get_row(self, guild_id: int, channel_id: int) -> SubscribedChannelRow | None:
        stmt = select(SubscribedChannelRow).where(
            SubscribedChannelRow.guild_id == guild_id,
            SubscribedChannelRow.channel_id == channel_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add(
        self,
        guild_id: int,
        channel_id: int,
        *,
        scoring_plays_only: bool = False,
        delay_seconds: int = 0,
    ) -> SubscribedChannel:
        if await self._get_row(guild_id, channel_id) is not None:
            raise DuplicateSubscriptionError(guild_id, channel_id)
        row = SubscribedChannelRow(
            guild_id=guild_id,
            channel_id=channel_id,
            scoring_plays_only=scoring_plays_only,
            delay_seconds=delay_seconds,
        )
        self.session.add(row)
        await self.session.flush()
        logger.info("subscription_added guild=%d channel=%d", guild_id, channel_id)
        return _to_model(row)

    async def update_preference(
        self,
        guild_id: int,
        channel_id: int,
        *,
        scoring_plays_only: bool,
        delay_seconds: int,
    ) -> bool:
        """Change a channel's preferences. Returns False if it is not subscribed."""
        row = await self._get_row(guild_id, channel_id)
        if row is None:
            return False
        row.scoring_plays_only = scoring_plays_only
        row.delay_seconds = delay_seconds
        await self.session.flush()
        logger.info(
            "subscription_updated guild=%d channel=%d scoring_only=%s delay=%d",
            guild_id,
            channel_id,
            scoring_plays_only,
            delay_seconds,
        )
        return True

    async def remove(self, guild_id: int, channel_id: int) -> bool:
        row = await self._get_row(guild_id, channel_id)
        if row is None:
            return False
        await self.session.delete(row)
        await self.session.flush()
        logger.info("subscription_removed guild=%d channel=%d", guild_id, channel_id)
        return True

    async def list_all(self) -> list[SubscribedChannel]:
        result = await self.session.execute(
            select(SubscribedChannelRow).order_by(SubscribedChannelRow.id)
        )
        return [_to_model(row) for row in result.scalars().all()]


def channel_loader(engine: AsyncEngine) -> Callable[[], Awaitable[list[SubscribedChannel]]]:
    """Build the zero-argument loader the tracker uses to refresh its subscriber cache."""

    async def load() -> list[SubscribedChannel]:
        async with get_session(engine) as session:
            return await SubscriptionRepository(session).list_all()

    return load
