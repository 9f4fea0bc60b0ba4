"""
LoveHub — service container.

``Services`` wires every service against one store and broker; the API
keeps a single instance on ``app.state`` and tests build their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from lovehub.schemas.entities import utcnow
from lovehub.services.broker import MessageBroker
from lovehub.services.conversation_service import ConversationService
from lovehub.services.feed_service import FeedService
from lovehub.services.match_service import MatchService
from lovehub.services.profile_service import ProfileService
from lovehub.services.swipe_service import SwipeService
from lovehub.store import EntityStore


@dataclass
class Services:
    store: EntityStore
    broker: MessageBroker
    profiles: ProfileService
    matches: MatchService
    swipes: SwipeService
    conversations: ConversationService
    feed: FeedService


def build_services(
    store: EntityStore,
    broker: MessageBroker | None = None,
    clock: Callable[[], datetime] = utcnow,
    image_placeholder: str = "Sent an image",
) -> Services:
    broker = broker or MessageBroker()
    profiles = ProfileService(store)
    matches = MatchService(store, profiles, clock=clock)
    swipes = SwipeService(store, profiles, matches, clock=clock)
    return Services(
        store=store,
        broker=broker,
        profiles=profiles,
        matches=matches,
        swipes=swipes,
        conversations=ConversationService(
            store, broker, clock=clock, image_placeholder=image_placeholder
        ),
        feed=FeedService(profiles, swipes),
    )
