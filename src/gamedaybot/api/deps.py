"""FastAPI dependency injection for the tracker and the subscription repository."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from gamedaybot.core.tracker import GamedayTracker
from gamedaybot.db.engine import create_session_factory
from gamedaybot.db.repository import SubscriptionRepository


async def get_engine(request: Request) -> AsyncEngine:
    """Get the database engine from app state."""
    return request.app.state.engine


async def get_session(
    engine: Annotated[AsyncEngine, Depends(get_engine)],
) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session."""
    factory = create_session_factory(engine)
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:  # Re-raise pattern — must catch all to ensure rollback on any error
            await session.rollback()
            raise


async def get_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SubscriptionRepository:
    return SubscriptionRepository(session)


async def get_tracker(request: Request) -> GamedayTracker:
    tracker = getattr(request.app.state, "tracker", None)
    if tracker is None:
        raise HTTPException(status_code=503, detail="Tracker not started")
    return tracker


RepoDep = Annotated[SubscriptionRepository, Depends(get_repository)]
TrackerDep = Annotated[GamedayTracker, Depends(get_tracker)]
