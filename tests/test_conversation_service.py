"""Unit tests for ConversationService — messages, previews, read receipts."""
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from lovehub.errors import EmptyMessage, MatchNotFound, NotAParticipant
from lovehub.services import build_services
from lovehub.services.broker import RedisMessageBroker
from lovehub.store import Kind


async def _match(services, a="user_1", b="user_3"):
    return await services.matches.create_match(a, b)


class TestAppendMessage:
    """Appending and the cached match fields."""

    @pytest.mark.asyncio
    async def test_text_message(self, services):
        match = await _match(services)
        message = await services.conversations.append_message(match.id, "user_1", "hello")

        assert message.id.startswith("msg_")
        assert message.text == "hello"
        assert message.image_url is None
        assert message.read is False

    @pytest.mark.asyncio
    async def test_preview_and_recency_updated(self, services, clock):
        match = await _match(services)
        sent_at = clock.now + timedelta(minutes=5)
        clock.set(sent_at)

        await services.conversations.append_message(match.id, "user_3", "how are you?")

        reread = await services.matches.get_match(match.id)
        assert reread.last_message == "how are you?"
        assert reread.last_activity_at == sent_at
        assert reread.created_at == match.created_at

    @pytest.mark.asyncio
    async def test_image_only_uses_placeholder(self, services):
        match = await _match(services)
        message = await services.conversations.append_message(
            match.id, "user_1", "", image_url="https://picsum.photos/300/200"
        )

        assert message.text == ""
        assert message.has_image
        reread = await services.matches.get_match(match.id)
        assert reread.last_message == "Sent an image"

    @pytest.mark.asyncio
    async def test_text_with_image_previews_text(self, services):
        match = await _match(services)
        await services.conversations.append_message(
            match.id, "user_1", "look!", image_url="https://picsum.photos/300/200"
        )
        assert (await services.matches.get_match(match.id)).last_message == "look!"

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, services, store):
        match = await _match(services)
        with pytest.raises(EmptyMessage):
            await services.conversations.append_message(match.id, "user_1", "   ")

        assert await store.load(Kind.MESSAGES) == []
        assert (await services.matches.get_match(match.id)).last_message is None

    @pytest.mark.asyncio
    async def test_none_text_and_empty_image_rejected(self, services):
        match = await _match(services)
        with pytest.raises(EmptyMessage):
            await services.conversations.append_message(match.id, "user_1", None, image_url="")

    @pytest.mark.asyncio
    async def test_non_participant_rejected(self, services, store):
        match = await _match(services)
        with pytest.raises(NotAParticipant):
            await services.conversations.append_message(match.id, "user_2", "hi")
        assert await store.load(Kind.MESSAGES) == []

    @pytest.mark.asyncio
    async def test_unknown_match_rejected(self, services):
        with pytest.raises(MatchNotFound):
            await services.conversations.append_message("match_missing", "user_1", "hi")


class TestMessageOrdering:
    """``messages_for`` returns oldest first."""

    @pytest.mark.asyncio
    async def test_sorted_by_timestamp(self, services, clock):
        match = await _match(services)
        base = clock.now

        clock.set(base + timedelta(minutes=10))
        late = await services.conversations.append_message(match.id, "user_1", "late")
        clock.set(base + timedelta(minutes=1))
        early = await services.conversations.append_message(match.id, "user_3", "early")

        messages = await services.conversations.messages_for(match.id)
        assert [m.id for m in messages] == [early.id, late.id]
        stamps = [m.created_at for m in messages]
        assert stamps == sorted(stamps)

    @pytest.mark.asyncio
    async def test_ties_keep_insertion_order(self, services, clock):
        match = await _match(services)
        clock.step = timedelta(0)

        sent = [
            await services.conversations.append_message(match.id, "user_1", str(i))
            for i in range(4)
        ]

        messages = await services.conversations.messages_for(match.id)
        assert [m.id for m in messages] == [m.id for m in sent]

    @pytest.mark.asyncio
    async def test_scoped_to_match(self, services):
        first = await _match(services, "user_1", "user_3")
        second = await _match(services, "user_1", "user_4")
        await services.conversations.append_message(first.id, "user_1", "a")
        await services.conversations.append_message(second.id, "user_1", "b")

        messages = await services.conversations.messages_for(first.id)
        assert [m.text for m in messages] == ["a"]

    @pytest.mark.asyncio
    async def test_unknown_match(self, services):
        with pytest.raises(MatchNotFound):
            await services.conversations.messages_for("match_missing")


class TestReadReceipts:
    """Messages become read when the other participant marks them."""

    @pytest.mark.asyncio
    async def test_mark_read_only_affects_other_sender(self, services):
        match = await _match(services)
        await services.conversations.append_message(match.id, "user_1", "hi")
        await services.conversations.append_message(match.id, "user_3", "hey")
        await services.conversations.append_message(match.id, "user_1", "what's up")

        assert await services.conversations.unread_count(match.id, "user_3") == 2
        marked = await services.conversations.mark_read(match.id, "user_3")

        assert marked == 2
        assert await services.conversations.unread_count(match.id, "user_3") == 0
        assert await services.conversations.unread_count(match.id, "user_1") == 1
        messages = await services.conversations.messages_for(match.id)
        by_text = {m.text: m for m in messages}
        assert by_text["hi"].read and by_text["hi"].read_at is not None
        assert by_text["hey"].read is False

    @pytest.mark.asyncio
    async def test_mark_read_is_idempotent(self, services):
        match = await _match(services)
        await services.conversations.append_message(match.id, "user_1", "hi")
        assert await services.conversations.mark_read(match.id, "user_3") == 1
        assert await services.conversations.mark_read(match.id, "user_3") == 0

    @pytest.mark.asyncio
    async def test_outsider_cannot_mark_read(self, services):
        match = await _match(services)
        with pytest.raises(NotAParticipant):
            await services.conversations.mark_read(match.id, "user_2")


class TestSubscriptions:
    """Push delivery of appended messages."""

    @pytest.mark.asyncio
    async def test_subscriber_receives_new_message(self, services, broker):
        match = await _match(services)
        subscription = await services.conversations.subscribe(match.id)

        sent = await services.conversations.append_message(match.id, "user_1", "ping")
        received = await subscription.get(timeout=1.0)

        assert received.id == sent.id
        subscription.cancel()
        assert broker.subscriber_count(match.id) == 0
        assert await subscription.get(timeout=0.05) is None

    @pytest.mark.asyncio
    async def test_other_match_not_delivered(self, services):
        first = await _match(services, "user_1", "user_3")
        second = await _match(services, "user_1", "user_4")
        subscription = await services.conversations.subscribe(first.id)

        await services.conversations.append_message(second.id, "user_1", "elsewhere")
        assert await subscription.get(timeout=0.05) is None
        subscription.cancel()

    @pytest.mark.asyncio
    async def test_rejected_append_not_published(self, services):
        match = await _match(services)
        async with await services.conversations.subscribe(match.id) as subscription:
            with pytest.raises(EmptyMessage):
                await services.conversations.append_message(match.id, "user_1", "")
            assert await subscription.get(timeout=0.05) is None

    @pytest.mark.asyncio
    async def test_subscribe_unknown_match(self, services):
        with pytest.raises(MatchNotFound):
            await services.conversations.subscribe("match_missing")


class TestPublishFailure:
    """A broker outage never undoes or fails a committed message."""

    @pytest.mark.asyncio
    async def test_redis_publish_error_still_returns_message(self, store, clock):
        client = MagicMock()
        client.publish = AsyncMock(side_effect=ConnectionError("redis down"))
        services = build_services(store, RedisMessageBroker("redis://test", client=client), clock=clock)
        match = await services.matches.create_match("user_1", "user_3")

        message = await services.conversations.append_message(match.id, "user_1", "hi")

        client.publish.assert_awaited_once()
        stored = await store.load(Kind.MESSAGES)
        assert [m.id for m in stored] == [message.id]
        assert (await services.matches.get_match(match.id)).last_message == "hi"
