"""LoveHub — Candidate feed: users the viewer has not decided on yet."""

from __future__ import annotations

import structlog

from lovehub.schemas.entities import User
from lovehub.services.profile_service import ProfileService
from lovehub.services.swipe_service import SwipeService

logger = structlog.get_logger("lovehub.feed_service")


class FeedService:
    def __init__(self, profiles: ProfileService, swipes: SwipeService) -> None:
        self.profiles = profiles
        self.swipes = swipes

    async def candidates_for(self, viewer_id: str) -> list[User]:
        """Every other user without a decision from the viewer, in store order.

        Recomputed from the store on each call; an empty list means the
        viewer has decided on everyone.
        """
        log = logger.bind(viewer=viewer_id)

        await self.profiles.get_user(viewer_id)
        decided = await self.swipes.decided_targets(viewer_id)
        candidates = [
            user
            for user in await self.profiles.list_users()
            if user.id != viewer_id and user.id not in decided
        ]

        log.info("candidate_feed", candidate_count=len(candidates))
        return candidates
