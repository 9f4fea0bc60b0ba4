"""Unit tests for MatchService — reciprocity and get-or-create."""
import asyncio
from datetime import timedelta

import pytest

from lovehub.errors import InvalidSwipe, MatchNotFound, UserNotFound
from lovehub.schemas.entities import Decision, Like
from lovehub.services.match_service import is_reciprocated
from lovehub.store import Kind


class TestReciprocity:
    """The linear reciprocity scan."""

    def test_reciprocal_like_found(self):
        likes = [Like(from_user_id="b", to_user_id="a", type=Decision.LIKE)]
        assert is_reciprocated(likes, "a", "b") is True

    def test_skip_is_not_reciprocal(self):
        likes = [Like(from_user_id="b", to_user_id="a", type=Decision.SKIP)]
        assert is_reciprocated(likes, "a", "b") is False

    def test_own_like_is_not_reciprocal(self):
        likes = [Like(from_user_id="a", to_user_id="b", type=Decision.LIKE)]
        assert is_reciprocated(likes, "a", "b") is False

    @pytest.mark.asyncio
    async def test_try_form_match_without_like(self, services):
        assert await services.matches.try_form_match("user_1", "user_2") is None

    @pytest.mark.asyncio
    async def test_try_form_match_with_prior_like(self, services):
        await services.swipes.record_swipe("user_2", "user_1", Decision.LIKE)
        match = await services.matches.try_form_match("user_1", "user_2")
        assert match is not None
        assert match.is_pair("user_2", "user_1")


class TestCreateMatch:
    """Idempotent get-or-create on the unordered pair."""

    @pytest.mark.asyncio
    async def test_same_match_in_either_order(self, services, store):
        first = await services.matches.create_match("user_1", "user_2")
        second = await services.matches.create_match("user_2", "user_1")
        third = await services.matches.create_match("user_1", "user_2")

        assert first.id == second.id == third.id
        assert len(await store.load(Kind.MATCHES)) == 1

    @pytest.mark.asyncio
    async def test_new_match_fields(self, services, clock):
        expected = clock.now
        match = await services.matches.create_match("user_1", "user_2")

        assert match.id.startswith("match_")
        assert match.users == ("user_1", "user_2")
        assert match.created_at == expected
        assert match.last_activity_at == expected
        assert match.last_message is None

    @pytest.mark.asyncio
    async def test_distinct_pairs_get_distinct_matches(self, services, store):
        a = await services.matches.create_match("user_1", "user_2")
        b = await services.matches.create_match("user_1", "user_3")
        assert a.id != b.id
        assert len(await store.load(Kind.MATCHES)) == 2

    @pytest.mark.asyncio
    async def test_concurrent_creation_yields_one_match(self, services, store):
        results = await asyncio.gather(
            *[
                services.matches.create_match(*pair)
                for pair in [("user_1", "user_2"), ("user_2", "user_1")] * 5
            ]
        )
        assert len({m.id for m in results}) == 1
        assert len(await store.load(Kind.MATCHES)) == 1

    @pytest.mark.asyncio
    async def test_self_match_rejected(self, services):
        with pytest.raises(InvalidSwipe):
            await services.matches.create_match("user_1", "user_1")

    @pytest.mark.asyncio
    async def test_unknown_user_rejected(self, services, store):
        with pytest.raises(UserNotFound):
            await services.matches.create_match("user_1", "ghost")
        assert await store.load(Kind.MATCHES) == []


class TestMatchQueries:
    """Lookup and recency ordering."""

    @pytest.mark.asyncio
    async def test_get_match(self, services):
        created = await services.matches.create_match("user_1", "user_2")
        assert (await services.matches.get_match(created.id)).id == created.id

    @pytest.mark.asyncio
    async def test_get_match_not_found(self, services):
        with pytest.raises(MatchNotFound):
            await services.matches.get_match("match_missing")

    @pytest.mark.asyncio
    async def test_matches_for_filters_by_user(self, services):
        await services.matches.create_match("user_1", "user_2")
        await services.matches.create_match("user_3", "user_4")
        matches = await services.matches.matches_for("user_1")
        assert len(matches) == 1
        assert matches[0].other_user("user_1") == "user_2"

    @pytest.mark.asyncio
    async def test_matches_for_orders_by_recency(self, services, clock):
        older = await services.matches.create_match("user_1", "user_2")
        newer = await services.matches.create_match("user_1", "user_3")
        assert [m.id for m in await services.matches.matches_for("user_1")] == [newer.id, older.id]

        # A message bumps the older conversation to the top.
        clock.set(clock.now + timedelta(hours=1))
        await services.conversations.append_message(older.id, "user_2", "hey")
        assert [m.id for m in await services.matches.matches_for("user_1")] == [older.id, newer.id]
