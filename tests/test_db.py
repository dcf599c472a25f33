"""Tests for database layer: engine, ORM models, subscription repository."""

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from gamedaybot.db.engine import create_engine, create_tables, get_session
from gamedaybot.db.repository import (
    DuplicateSubscriptionError,
    SubscriptionRepository,
    channel_loader,
)
from gamedaybot.models.subscription import SubscribedChannel


@pytest.fixture
async def engine() -> AsyncEngine:
    """Create an in-memory SQLite engine with all tables."""
    eng = create_engine("sqlite+aiosqlite:///:memory:")
    await create_tables(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
async def repo(engine: AsyncEngine) -> SubscriptionRepository:
    """Yield a repository with a session bound to the in-memory database."""
    async with get_session(engine) as session:
        yield SubscriptionRepository(session)


class TestTableCreation:
    async def test_subscription_table_created(self, engine: AsyncEngine):
        async with engine.connect() as conn:
            tables = await conn.run_sync(
                lambda sync_conn: sync_conn.dialect.get_table_names(sync_conn)
            )
        assert "subscribed_channels" in tables


class TestSubscribe:
    async def test_add(self, repo: SubscriptionRepository):
        channel = await repo.add(1, 100, scoring_plays_only=True, delay_seconds=30)
        assert channel == SubscribedChannel(
            guild_id=1, channel_id=100, scoring_plays_only=True, delay_seconds=30
        )

    async def test_defaults(self, repo: SubscriptionRepository):
        channel = await repo.add(1, 100)
        assert not channel.scoring_plays_only
        assert channel.delay_seconds == 0

    async def test_duplicate_rejected(self, repo: SubscriptionRepository):
        await repo.add(1, 100)
        with pytest.raises(DuplicateSubscriptionError) as excinfo:
            await repo.add(1, 100, scoring_plays_only=True)
        assert excinfo.value.channel_id == 100
        assert len(await repo.list_all()) == 1

    async def test_same_channel_id_other_guild(self, repo: SubscriptionRepository):
        await repo.add(1, 100)
        await repo.add(2, 100)
        assert [c.guild_id for c in await repo.list_all()] == [1, 2]

    async def test_discord_snowflakes_fit(self, repo: SubscriptionRepository):
        guild_id, channel_id = 1187654321098765432, 1198765432109876543
        await repo.add(guild_id, channel_id)
        [channel] = await repo.list_all()
        assert channel.guild_id == guild_id
        assert channel.channel_id == channel_id


class TestPreferences:
    async def test_update(self, repo: SubscriptionRepository):
        await repo.add(1, 100)
        assert await repo.update_preference(1, 100, scoring_plays_only=True, delay_seconds=45)
        [channel] = await repo.list_all()
        assert channel.scoring_plays_only
        assert channel.delay_seconds == 45

    async def test_update_unsubscribed(self, repo: SubscriptionRepository):
        updated = await repo.update_preference(1, 100, scoring_plays_only=True, delay_seconds=0)
        assert not updated
        assert await repo.list_all() == []


class TestUnsubscribe:
    async def test_remove(self, repo: SubscriptionRepository):
        await repo.add(1, 100)
        await repo.add(1, 101)
        assert await repo.remove(1, 100)
        assert [c.channel_id for c in await repo.list_all()] == [101]

    async def test_remove_missing(self, repo: SubscriptionRepository):
        assert not await repo.remove(1, 100)


class TestChannelLoader:
    async def test_loads_committed_subscriptions(self, engine: AsyncEngine):
        async with get_session(engine) as session:
            repo = SubscriptionRepository(session)
            await repo.add(1, 100)
            await repo.add(1, 101, scoring_plays_only=True)

        load = channel_loader(engine)
        channels = await load()
        assert [c.channel_id for c in channels] == [100, 101]
        assert channels[1].scoring_plays_only

    async def test_rollback_on_error(self, engine: AsyncEngine):
        with pytest.raises(RuntimeError):
            async with get_session(engine) as session:
                await SubscriptionRepository(session).add(1, 100)
                raise RuntimeError("boom")

        assert await channel_loader(engine)() == []
