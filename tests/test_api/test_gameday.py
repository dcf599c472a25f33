"""API tests: health, tracker status and the subscription listing."""

from unittest.mock import MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from gamedaybot.config import Settings
from gamedaybot.core.tracker import GamedayTracker
from gamedaybot.db.engine import create_engine, create_tables, get_session
from gamedaybot.db.repository import SubscriptionRepository
from gamedaybot.main import create_app


@pytest.fixture
async def app_and_engine():
    """Create test app with in-memory database."""
    settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
    application = create_app(settings)
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)
    application.state.engine = engine
    yield application, engine
    await engine.dispose()


def client_for(application) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=application), base_url="http://test")


class TestHealth:
    async def test_health(self, app_and_engine):
        application, _ = app_and_engine
        async with client_for(application) as client:
            resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "env": "development"}


class TestGamedayStatus:
    async def test_tracker_not_started(self, app_and_engine):
        application, _ = app_and_engine
        async with client_for(application) as client:
            resp = await client.get("/api/gameday")
        assert resp.status_code == 503

    async def test_idle_tracker(self, app_and_engine):
        application, _ = app_and_engine
        application.state.tracker = GamedayTracker(MagicMock(), MagicMock(), MagicMock(), None)
        async with client_for(application) as client:
            resp = await client.get("/api/gameday")
        assert resp.status_code == 200
        assert resp.json() == {"data": {"tracking": False, "game_pk": None}}

    async def test_tracking(self, app_and_engine, make_game):
        application, _ = app_and_engine
        tracker = GamedayTracker(MagicMock(), MagicMock(), MagicMock(), None)
        tracker.game = make_game()
        tracker.game.ledger.record("Steven Kwan walks.", 0)
        application.state.tracker = tracker
        async with client_for(application) as client:
            resp = await client.get("/api/gameday")
        data = resp.json()["data"]
        assert data["tracking"] is True
        assert data["game_pk"] == 745123
        assert data["current_at_bat_index"] == 0
        assert data["reported_count"] == 1
        assert data["subscriber_count"] == 1


class TestSubscriptions:
    async def test_lists_subscriptions(self, app_and_engine):
        application, engine = app_and_engine
        async with get_session(engine) as session:
            repo = SubscriptionRepository(session)
            await repo.add(1, 100)
            await repo.add(1, 101, scoring_plays_only=True, delay_seconds=20)

        async with client_for(application) as client:
            resp = await client.get("/api/gameday/subscriptions")
        assert resp.status_code == 200
        assert resp.json()["data"] == [
            {"guild_id": 1, "channel_id": 100, "scoring_plays_only": False, "delay_seconds": 0},
            {"guild_id": 1, "channel_id": 101, "scoring_plays_only": True, "delay_seconds": 20},
        ]
