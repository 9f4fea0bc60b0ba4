"""
LoveHub — Discovery API

Candidate feed and swipe recording.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from lovehub.api.deps import get_services
from lovehub.schemas.entities import User
from lovehub.schemas.match import ClearSwipesResponse, SwipeCreate, SwipeResponse
from lovehub.services import Services

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# GET /candidates — Discovery feed
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/candidates",
    response_model=list[User],
    summary="Users the viewer has not swiped on yet",
)
async def get_candidates(
    viewer: str = Query(..., description="Viewing user ID"),
    services: Services = Depends(get_services),
) -> list[User]:
    return await services.feed.candidates_for(viewer)


# ──────────────────────────────────────────────────────────────────────────────
# POST /swipes — Record a like / skip
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/swipes",
    response_model=SwipeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a swipe decision",
)
async def create_swipe(
    payload: SwipeCreate,
    services: Services = Depends(get_services),
) -> SwipeResponse:
    """Record a decision; a like that completes a mutual pair returns the match."""
    result = await services.swipes.record_swipe(
        payload.from_user_id, payload.to_user_id, payload.decision
    )
    return SwipeResponse(matched=result.matched, match=result.match)


# ──────────────────────────────────────────────────────────────────────────────
# DELETE /swipes — Forget a viewer's decisions
# ──────────────────────────────────────────────────────────────────────────────

@router.delete(
    "/swipes",
    response_model=ClearSwipesResponse,
    summary="Clear every decision made by the viewer",
)
async def clear_swipes(
    viewer: str = Query(..., description="User whose decisions are cleared"),
    services: Services = Depends(get_services),
) -> ClearSwipesResponse:
    await services.profiles.get_user(viewer)
    cleared = await services.swipes.clear_decisions(viewer)
    return ClearSwipesResponse(cleared=cleared)
