"""
LoveHub — Matching API

Listing a user's matches (most recently active first) and fetching a
single match.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from lovehub.api.deps import get_services
from lovehub.schemas.entities import Match
from lovehub.schemas.match import MatchListItem
from lovehub.services import Services

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# GET / — List matches for a user
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/",
    response_model=list[MatchListItem],
    summary="List all matches for a user",
)
async def list_user_matches(
    user: str = Query(..., description="User ID"),
    services: Services = Depends(get_services),
) -> list[MatchListItem]:
    """Return every match involving the user, ordered by recency descending.

    Each item carries the other participant's id and display name.
    """
    await services.profiles.get_user(user)
    matches = await services.matches.matches_for(user)
    names = {u.id: u.name for u in await services.profiles.list_users()}

    return [
        MatchListItem(
            match_id=m.id,
            users=m.users,
            other_user_id=m.other_user(user),
            other_user_name=names.get(m.other_user(user)),
            last_message=m.last_message,
            last_activity_at=m.last_activity_at,
            created_at=m.created_at,
        )
        for m in matches
    ]


# ──────────────────────────────────────────────────────────────────────────────
# GET /{match_id} — Get match details
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{match_id}",
    response_model=Match,
    summary="Get match details",
)
async def get_match(
    match_id: str,
    services: Services = Depends(get_services),
) -> Match:
    return await services.matches.get_match(match_id)
