"""
LoveHub — Profile Service

Registration, lookup and editing of user profiles.  This is the only
writer of the users collection.
"""

from __future__ import annotations

import uuid
from typing import Any, Iterable

import structlog

from lovehub.errors import UserNotFound
from lovehub.schemas.entities import Gender, User
from lovehub.store import EntityStore, Kind

logger = structlog.get_logger("lovehub.profile_service")

# Defaults applied to fields a registration leaves out.
_REGISTRATION_DEFAULTS: dict[str, Any] = {
    "age": 20,
    "gender": Gender.MALE,
    "location": "Unknown",
    "bio": "Hello!",
    "interests": [],
    "photos": ["https://picsum.photos/400/600"],
}

_IMMUTABLE_FIELDS = {"id", "is_admin"}


class ProfileService:
    def __init__(self, store: EntityStore) -> None:
        self.store = store

    async def register(self, fields: dict[str, Any]) -> User:
        """Create a user from the supplied profile fields."""
        data = {**_REGISTRATION_DEFAULTS, **{k: v for k, v in fields.items() if v is not None}}
        data.setdefault("name", "New User")
        data["id"] = f"user_{uuid.uuid4().hex[:12]}"
        data["is_admin"] = False
        user = User(**data)

        async with self.store.transaction(Kind.USERS) as tx:
            users = await tx.load(Kind.USERS)
            users.append(user)
            tx.save(Kind.USERS, users)

        logger.info("user_registered", user_id=user.id)
        return user

    async def list_users(self) -> list[User]:
        return await self.store.load(Kind.USERS)

    async def get_user(self, user_id: str) -> User:
        for user in await self.store.load(Kind.USERS):
            if user.id == user_id:
                return user
        raise UserNotFound(f"User {user_id} not found.", user_id=user_id)

    async def require_users(self, user_ids: Iterable[str]) -> None:
        """Raise ``UserNotFound`` for the first id that does not exist."""
        known = {user.id for user in await self.store.load(Kind.USERS)}
        for user_id in user_ids:
            if user_id not in known:
                raise UserNotFound(f"User {user_id} not found.", user_id=user_id)

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> User:
        """Apply ``changes`` to a profile; ``id`` and ``is_admin`` are fixed."""
        log = logger.bind(user_id=user_id)
        changes = {
            k: v
            for k, v in changes.items()
            if k not in _IMMUTABLE_FIELDS and v is not None
        }

        async with self.store.transaction(Kind.USERS) as tx:
            users = await tx.load(Kind.USERS)
            for index, user in enumerate(users):
                if user.id == user_id:
                    break
            else:
                log.warning("update_user_not_found")
                raise UserNotFound(f"User {user_id} not found.", user_id=user_id)

            updated = User(**{**user.model_dump(), **changes})
            users[index] = updated
            tx.save(Kind.USERS, users)

        log.info("user_updated", updated_fields=sorted(changes))
        return updated
