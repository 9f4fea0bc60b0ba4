"""
LoveHub — Swipe Ledger

Records like/skip decisions.  Decisions are never deduplicated: a user may
decide about the same target several times and every record is kept.  A
``like`` runs the reciprocity check in the same transaction, so the new
like and any resulting match are committed together.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import structlog

from lovehub.errors import InvalidSwipe
from lovehub.schemas.entities import Decision, Like, Match, utcnow
from lovehub.services.match_service import MatchService
from lovehub.services.profile_service import ProfileService
from lovehub.store import EntityStore, Kind

logger = structlog.get_logger("lovehub.swipe_service")


@dataclass(frozen=True)
class SwipeResult:
    like: Like
    match: Optional[Match] = None

    @property
    def matched(self) -> bool:
        return self.match is not None


class SwipeService:
    def __init__(
        self,
        store: EntityStore,
        profiles: ProfileService,
        matches: MatchService,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.profiles = profiles
        self.matches = matches
        self.clock = clock

    async def record_swipe(
        self,
        from_user_id: str,
        to_user_id: str,
        decision: Decision,
    ) -> SwipeResult:
        """Append a decision and, for a like, try to form a match.

        Raises ``InvalidSwipe`` for a self-swipe and ``UserNotFound`` when
        either user does not exist.
        """
        log = logger.bind(from_user=from_user_id, to_user=to_user_id, decision=decision.value)

        if from_user_id == to_user_id:
            log.warning("swipe_rejected_self")
            raise InvalidSwipe("A user cannot swipe on themselves.", user_id=from_user_id)
        await self.profiles.require_users([from_user_id, to_user_id])

        like = Like(
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            type=decision,
            created_at=self.clock(),
        )

        match: Optional[Match] = None
        async with self.store.transaction(Kind.LIKES, Kind.MATCHES) as tx:
            likes = await tx.load(Kind.LIKES)
            likes.append(like)
            tx.save(Kind.LIKES, likes)

            if decision == Decision.LIKE:
                match = await self.matches.form_in(tx, from_user_id, to_user_id)

        log.info("swipe_recorded", matched=match is not None)
        return SwipeResult(like=like, match=match)

    async def has_decided(self, viewer_id: str, target_id: str) -> bool:
        """True if the viewer has any decision on record about the target."""
        return any(
            like.from_user_id == viewer_id and like.to_user_id == target_id
            for like in await self.store.load(Kind.LIKES)
        )

    async def decided_targets(self, viewer_id: str) -> set[str]:
        return {
            like.to_user_id
            for like in await self.store.load(Kind.LIKES)
            if like.from_user_id == viewer_id
        }

    async def clear_decisions(self, viewer_id: str) -> int:
        """Forget every decision made by ``viewer_id``; returns how many.

        Existing matches are kept.
        """
        async with self.store.transaction(Kind.LIKES) as tx:
            likes = await tx.load(Kind.LIKES)
            kept = [like for like in likes if like.from_user_id != viewer_id]
            removed = len(likes) - len(kept)
            if removed:
                tx.save(Kind.LIKES, kept)

        logger.info("decisions_cleared", viewer=viewer_id, removed=removed)
        return removed

    async def likes(self) -> list[Like]:
        return await self.store.load(Kind.LIKES)
