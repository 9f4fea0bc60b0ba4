"""
LoveHub — Conversation Log

Append-only chat history scoped to a match.  Appending a message also
refreshes the owning match's cached preview (``last_message``) and its
recency timestamp, which is what orders a user's conversation list.  Both
writes happen in one transaction; subscribers are notified after commit.

Read receipts: a message becomes read when the *other* participant marks
the conversation read (typically when the conversation view gains focus).
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Callable, Optional

import structlog

from lovehub.errors import EmptyMessage, MatchNotFound, NotAParticipant
from lovehub.schemas.entities import Match, Message, utcnow
from lovehub.services.broker import MessageBroker, Subscription
from lovehub.store import EntityStore, Kind

logger = structlog.get_logger("lovehub.conversation_service")


def _find_match(matches: list[Match], match_id: str) -> tuple[int, Match]:
    for index, match in enumerate(matches):
        if match.id == match_id:
            return index, match
    raise MatchNotFound(f"Match {match_id} not found.", match_id=match_id)


def _require_participant(match: Match, user_id: str) -> None:
    if not match.involves(user_id):
        raise NotAParticipant(
            f"User {user_id} is not part of match {match.id}.",
            match_id=match.id,
            user_id=user_id,
        )


class ConversationService:
    def __init__(
        self,
        store: EntityStore,
        broker: MessageBroker,
        clock: Callable[[], datetime] = utcnow,
        image_placeholder: str = "Sent an image",
    ) -> None:
        self.store = store
        self.broker = broker
        self.clock = clock
        self.image_placeholder = image_placeholder

    async def append_message(
        self,
        match_id: str,
        sender_id: str,
        text: Optional[str] = "",
        image_url: Optional[str] = None,
    ) -> Message:
        """Append a message and bump the match's preview and recency.

        Raises
        ------
        MatchNotFound
            No match with ``match_id``.
        NotAParticipant
            ``sender_id`` is not one of the match's users.
        EmptyMessage
            Neither text nor an image reference was supplied.
        """
        log = logger.bind(match_id=match_id, sender=sender_id)
        text = text or ""
        image_url = image_url or None

        async with self.store.transaction(Kind.MATCHES, Kind.MESSAGES) as tx:
            matches = await tx.load(Kind.MATCHES)
            index, match = _find_match(matches, match_id)
            _require_participant(match, sender_id)

            if not text.strip() and image_url is None:
                log.warning("message_rejected_empty")
                raise EmptyMessage("A message needs text or an image.", match_id=match_id)

            now = self.clock()
            message = Message(
                id=f"msg_{uuid.uuid4().hex}",
                match_id=match_id,
                sender_id=sender_id,
                text=text,
                image_url=image_url,
                created_at=now,
            )
            messages = await tx.load(Kind.MESSAGES)
            messages.append(message)
            tx.save(Kind.MESSAGES, messages)

            matches[index] = match.model_copy(
                update={
                    "last_message": text if text.strip() else self.image_placeholder,
                    "last_activity_at": now,
                }
            )
            tx.save(Kind.MATCHES, matches)

        log.info("message_appended", message_id=message.id, has_image=message.has_image)
        try:
            await self.broker.publish(message)
        except Exception:
            # The message is committed; live subscribers catch up on reload.
            log.exception("message_publish_failed", message_id=message.id)
        return message

    async def messages_for(self, match_id: str) -> list[Message]:
        """All messages of a match, oldest first; ties keep insertion order."""
        _find_match(await self.store.load(Kind.MATCHES), match_id)
        messages = [m for m in await self.store.load(Kind.MESSAGES) if m.match_id == match_id]
        # list.sort is stable, so equal timestamps stay in append order.
        messages.sort(key=lambda m: m.created_at)
        return messages

    async def mark_read(self, match_id: str, reader_id: str) -> int:
        """Mark every unread message from the other participant as read."""
        log = logger.bind(match_id=match_id, reader=reader_id)
        _, match = _find_match(await self.store.load(Kind.MATCHES), match_id)
        _require_participant(match, reader_id)

        marked = 0
        async with self.store.transaction(Kind.MESSAGES) as tx:
            messages = await tx.load(Kind.MESSAGES)
            now = self.clock()
            for index, message in enumerate(messages):
                if (
                    message.match_id == match_id
                    and message.sender_id != reader_id
                    and not message.read
                ):
                    messages[index] = message.model_copy(update={"read": True, "read_at": now})
                    marked += 1
            if marked:
                tx.save(Kind.MESSAGES, messages)

        log.info("messages_marked_read", marked=marked)
        return marked

    async def unread_count(self, match_id: str, user_id: str) -> int:
        """Messages in the match not yet read by ``user_id``."""
        _, match = _find_match(await self.store.load(Kind.MATCHES), match_id)
        _require_participant(match, user_id)
        return sum(
            1
            for m in await self.store.load(Kind.MESSAGES)
            if m.match_id == match_id and m.sender_id != user_id and not m.read
        )

    async def subscribe(self, match_id: str) -> Subscription:
        """Open a live feed of messages appended to ``match_id`` from now on."""
        _find_match(await self.store.load(Kind.MATCHES), match_id)
        return self.broker.subscribe(match_id)
