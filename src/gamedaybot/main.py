"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI

from gamedaybot.api.gameday import router as gameday_router
from gamedaybot.config import Settings
from gamedaybot.core.backfill import MetricBackfillPoller
from gamedaybot.core.calls import HomeRunCallPicker
from gamedaybot.core.dispatcher import FanOutDispatcher
from gamedaybot.core.extractor import EventExtractor
from gamedaybot.core.reporter import PlayReporter
from gamedaybot.core.tracker import ChannelLoader, GamedayTracker, poll_status_job
from gamedaybot.core.transport import LogTransport, NotificationTransport
from gamedaybot.db.engine import create_engine, create_tables
from gamedaybot.db.repository import channel_loader
from gamedaybot.mlb.gameday_socket import GamedaySocket
from gamedaybot.mlb.statsapi import StatsApiClient

logger = logging.getLogger(__name__)


def build_tracker(
    settings: Settings,
    source: StatsApiClient,
    transport: NotificationTransport,
    load_channels: ChannelLoader,
) -> GamedayTracker:
    """Wire the reporting pipeline from settings."""
    poller = MetricBackfillPoller(
        source,
        transport,
        interval_seconds=settings.savant_poll_interval_seconds,
        max_attempts=settings.savant_max_attempts,
        outliers=settings.hr_park_outliers,
    )
    extractor = EventExtractor(
        favorite_team_id=settings.favorite_team_id,
        call_picker=HomeRunCallPicker(),
    )
    reporter = PlayReporter(extractor, FanOutDispatcher(transport, poller))
    return GamedayTracker(
        source,
        GamedaySocket(settings.gameday_socket_url),
        reporter,
        load_channels,
        favorite_team_id=settings.favorite_team_id,
        contrast_ratio=settings.team_color_contrast_ratio,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: create engine/tables, start the Discord bot and the status poller."""
    settings: Settings = app.state.settings
    engine = create_engine(settings.database_url)
    await create_tables(engine)
    app.state.engine = engine

    source = StatsApiClient(
        statsapi_base_url=settings.statsapi_base_url,
        savant_base_url=settings.savant_base_url,
        timeout_seconds=settings.http_timeout_seconds,
    )

    # Start Discord bot if configured
    discord_bot = None
    from gamedaybot.discord.bot import is_discord_enabled

    transport: NotificationTransport
    if is_discord_enabled(settings):
        from gamedaybot.discord.bot import start_discord_bot
        from gamedaybot.discord.transport import DiscordTransport

        discord_bot = await start_discord_bot(settings, engine)
        transport = DiscordTransport(discord_bot)
        app.state.discord_bot = discord_bot
        logger.info("discord_bot_integration_started")
    else:
        transport = LogTransport()
        logger.info("discord_bot_integration_disabled")

    tracker = build_tracker(settings, source, transport, channel_loader(engine))
    if discord_bot is not None:
        discord_bot.on_subscriptions_changed = tracker.refresh_channels
    app.state.tracker = tracker

    # Status polling: first run immediately, then on the configured interval
    from apscheduler.schedulers.asyncio import AsyncIOScheduler
    from apscheduler.triggers.interval import IntervalTrigger

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        poll_status_job,
        trigger=IntervalTrigger(seconds=settings.status_poll_interval_seconds),
        kwargs={"tracker": tracker},
        id="poll_status",
        name="Find the live game",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        next_run_time=datetime.now(UTC),
    )
    scheduler.start()
    app.state.scheduler = scheduler
    logger.info("scheduler_started interval=%ds", settings.status_poll_interval_seconds)

    yield

    scheduler.shutdown(wait=False)
    logger.info("scheduler_stopped")

    await tracker.stop()
    await source.close()

    # Shutdown Discord bot if running
    if discord_bot is not None:
        await discord_bot.close()
        logger.info("discord_bot_integration_stopped")

    await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the gameday bot FastAPI application."""
    settings = settings or Settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Gameday Bot",
        version="0.1.0",
        description="Live MLB play-by-play reports for Discord",
        docs_url="/docs" if settings.gameday_env != "production" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.include_router(gameday_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "env": settings.gameday_env}

    return app


app = create_app()
