"""
LoveHub — Users API

Endpoints for registration, profile lookup and profile edits.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status

from lovehub.api.deps import get_services
from lovehub.schemas.entities import User
from lovehub.schemas.user import UserCreate, UserUpdate
from lovehub.services import Services

logger = structlog.get_logger("lovehub.api.users")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST / — Register a new user
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/",
    response_model=User,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def create_user(
    payload: UserCreate,
    services: Services = Depends(get_services),
) -> User:
    """Create a profile; omitted fields take the registration defaults."""
    logger.info("create_user_start")
    return await services.profiles.register(payload.model_dump(exclude_unset=True))


# ──────────────────────────────────────────────────────────────────────────────
# GET / — List users
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/",
    response_model=list[User],
    summary="List all users",
)
async def list_users(services: Services = Depends(get_services)) -> list[User]:
    return await services.profiles.list_users()


# ──────────────────────────────────────────────────────────────────────────────
# GET /{user_id} — Get user by ID
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{user_id}",
    response_model=User,
    summary="Get user by ID",
)
async def get_user(
    user_id: str,
    services: Services = Depends(get_services),
) -> User:
    return await services.profiles.get_user(user_id)


# ──────────────────────────────────────────────────────────────────────────────
# PATCH /{user_id} — Edit profile
# ──────────────────────────────────────────────────────────────────────────────

@router.patch(
    "/{user_id}",
    response_model=User,
    summary="Update profile fields",
)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    services: Services = Depends(get_services),
) -> User:
    """Update mutable fields on a profile.

    Only fields present in the request body are applied.
    """
    return await services.profiles.update_user(
        user_id, payload.model_dump(exclude_unset=True)
    )
