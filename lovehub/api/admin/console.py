"""
LoveHub — Admin Console API

Demo maintenance endpoints:
  - Store statistics (users, swipes, matches, messages)
  - Forcing a match between two users
  - Resetting every collection to the seed dataset
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status

from lovehub.api.deps import get_services
from lovehub.schemas.admin import StoreStatsResponse
from lovehub.schemas.entities import Match
from lovehub.schemas.match import ForceMatchRequest
from lovehub.services import Services

logger = structlog.get_logger("lovehub.api.admin.console")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# GET /admin/stats — Collection sizes
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/admin/stats",
    response_model=StoreStatsResponse,
    summary="Count records in every collection",
)
async def get_stats(services: Services = Depends(get_services)) -> StoreStatsResponse:
    return StoreStatsResponse(**await services.store.counts())


# ──────────────────────────────────────────────────────────────────────────────
# POST /admin/matches — Force a match
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/admin/matches",
    response_model=Match,
    status_code=status.HTTP_201_CREATED,
    summary="Create (or return) a match without mutual likes",
)
async def force_match(
    payload: ForceMatchRequest,
    services: Services = Depends(get_services),
) -> Match:
    log = logger.bind(user_a=payload.user_a, user_b=payload.user_b)
    log.info("force_match_start")
    return await services.matches.create_match(payload.user_a, payload.user_b)


# ──────────────────────────────────────────────────────────────────────────────
# POST /reset — Reseed the store
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/reset",
    response_model=StoreStatsResponse,
    summary="Clear all collections and reload the demo roster",
)
async def reset_store(services: Services = Depends(get_services)) -> StoreStatsResponse:
    """Replace users, likes, matches and messages with the seed state."""
    logger.warning("store_reset_requested")
    state = await services.store.reset()
    return StoreStatsResponse(**{kind.value: len(items) for kind, items in state.items()})
