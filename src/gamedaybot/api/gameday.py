"""Gameday status API endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from gamedaybot.api.deps import RepoDep, TrackerDep

router = APIRouter(prefix="/api", tags=["gameday"])


@router.get("/gameday")
async def get_gameday(tracker: TrackerDep) -> dict[str, Any]:
    """The tracked game and how far reporting has got."""
    return {"data": tracker.status()}


@router.get("/gameday/subscriptions")
async def list_subscriptions(repo: RepoDep) -> dict[str, Any]:
    channels = await repo.list_all()
    return {"data": [channel.model_dump() for channel in channels]}
