"""
LoveHub — Match Formation

A match exists once both users have liked each other.  Formation is a
get-or-create on the unordered user pair, executed while holding the
matches write lock so two concurrent attempts for the same pair can never
both insert.

The reciprocity check is a linear scan over every recorded like, which is
fine for the demo roster sizes this service targets.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Callable, Iterable, Optional

import structlog

from lovehub.errors import InvalidSwipe, MatchNotFound
from lovehub.schemas.entities import Decision, Like, Match, utcnow
from lovehub.services.profile_service import ProfileService
from lovehub.store import EntityStore, Kind, StoreTransaction

logger = structlog.get_logger("lovehub.match_service")


def is_reciprocated(likes: Iterable[Like], actor_id: str, target_id: str) -> bool:
    """True if ``target_id`` has liked ``actor_id`` at some point."""
    return any(
        like.from_user_id == target_id
        and like.to_user_id == actor_id
        and like.type == Decision.LIKE
        for like in likes
    )


class MatchService:
    """Reciprocity detection and idempotent match creation.

    Dependencies are injected at construction so that the service can be
    tested against an in-memory store with a fixed clock.
    """

    def __init__(
        self,
        store: EntityStore,
        profiles: ProfileService,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.profiles = profiles
        self.clock = clock

    # ── Public API ────────────────────────────────────────────────────────

    async def try_form_match(self, actor_id: str, target_id: str) -> Optional[Match]:
        """Create (or return) the match if ``target_id`` already liked ``actor_id``."""
        async with self.store.transaction(Kind.LIKES, Kind.MATCHES) as tx:
            return await self.form_in(tx, actor_id, target_id)

    async def create_match(self, user_a_id: str, user_b_id: str) -> Match:
        """Get-or-create the match for ``{user_a_id, user_b_id}``.

        Repeat calls, in either argument order, return the same match and
        never raise.
        """
        if user_a_id == user_b_id:
            raise InvalidSwipe("A user cannot be matched with themselves.", user_id=user_a_id)
        await self.profiles.require_users([user_a_id, user_b_id])

        async with self.store.transaction(Kind.MATCHES) as tx:
            return await self.get_or_create_in(tx, user_a_id, user_b_id)

    async def get_match(self, match_id: str) -> Match:
        for match in await self.store.load(Kind.MATCHES):
            if match.id == match_id:
                return match
        raise MatchNotFound(f"Match {match_id} not found.", match_id=match_id)

    async def matches_for(self, user_id: str) -> list[Match]:
        """Matches involving ``user_id``, most recently active first."""
        log = logger.bind(user_id=user_id)

        matches = [
            (index, m)
            for index, m in enumerate(await self.store.load(Kind.MATCHES))
            if m.involves(user_id)
        ]
        matches.sort(
            key=lambda item: (item[1].last_activity_at, item[1].created_at, item[0]),
            reverse=True,
        )

        log.info("user_matches_retrieved", count=len(matches))
        return [m for _, m in matches]

    # ── Transaction-scoped helpers ────────────────────────────────────────

    async def form_in(
        self, tx: StoreTransaction, actor_id: str, target_id: str
    ) -> Optional[Match]:
        """Reciprocity check plus get-or-create inside an open transaction.

        ``tx`` must hold both the likes and the matches locks.
        """
        likes = await tx.load(Kind.LIKES)
        if not is_reciprocated(likes, actor_id, target_id):
            return None
        return await self.get_or_create_in(tx, actor_id, target_id)

    async def get_or_create_in(
        self, tx: StoreTransaction, user_a_id: str, user_b_id: str
    ) -> Match:
        log = logger.bind(user_a=user_a_id, user_b=user_b_id)

        matches = await tx.load(Kind.MATCHES)
        for existing in matches:
            if existing.is_pair(user_a_id, user_b_id):
                log.info("match_already_exists", match_id=existing.id)
                return existing

        now = self.clock()
        match = Match(
            id=f"match_{uuid.uuid4().hex}",
            users=(user_a_id, user_b_id),
            created_at=now,
            last_activity_at=now,
        )
        matches.append(match)
        tx.save(Kind.MATCHES, matches)

        log.info("match_created", match_id=match.id)
        return match
