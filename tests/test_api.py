"""HTTP-level tests for the LoveHub API via FastAPI's TestClient."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

API = "/api/v1"


def _swipe(client, a, b, decision="like"):
    return client.post(f"{API}/swipes", json={"from": a, "to": b, "decision": decision})


@pytest.fixture
def matched(client):
    """Match between user_1 and user_3 formed through mutual likes."""
    _swipe(client, "user_3", "user_1")
    response = _swipe(client, "user_1", "user_3")
    return response.json()["match"]


class TestHealth:

    def test_liveness(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_deep(self, client):
        body = client.get("/health/deep").json()
        assert body == {"status": "healthy", "store": "connected", "broker": "connected"}


class TestUsers:

    def test_list_seeded_roster(self, client):
        response = client.get(f"{API}/users/")
        assert response.status_code == 200
        assert [u["id"] for u in response.json()] == [
            "user_1", "user_2", "user_3", "user_4", "admin_1",
        ]

    def test_register_applies_defaults(self, client):
        response = client.post(f"{API}/users/", json={"name": "Sora", "age": 27})
        assert response.status_code == 201
        body = response.json()
        assert body["id"].startswith("user_")
        assert body["name"] == "Sora"
        assert body["age"] == 27
        assert body["location"] == "Unknown"
        assert body["is_admin"] is False

    def test_register_rejects_minor(self, client):
        response = client.post(f"{API}/users/", json={"name": "Kid", "age": 15})
        assert response.status_code == 422

    def test_update_profile(self, client):
        response = client.patch(f"{API}/users/user_2", json={"bio": "updated"})
        assert response.status_code == 200
        assert response.json()["bio"] == "updated"
        assert client.get(f"{API}/users/user_2").json()["bio"] == "updated"

    def test_update_ignores_null_fields(self, client):
        response = client.patch(f"{API}/users/user_2", json={"name": None, "bio": "updated"})
        assert response.status_code == 200
        assert response.json()["name"] == "Ayaka"
        assert response.json()["bio"] == "updated"

    def test_unknown_user(self, client):
        response = client.get(f"{API}/users/ghost")
        assert response.status_code == 404
        assert response.json()["code"] == "user_not_found"


class TestDiscovery:

    def test_skip_removes_candidate(self, client):
        assert _swipe(client, "user_1", "user_2", "skip").status_code == 201
        ids = [u["id"] for u in client.get(f"{API}/candidates", params={"viewer": "user_1"}).json()]
        assert "user_2" not in ids
        assert "user_3" in ids and "user_4" in ids

    def test_mutual_like_returns_match(self, client):
        first = _swipe(client, "user_3", "user_1").json()
        second = _swipe(client, "user_1", "user_3").json()

        assert first == {"matched": False, "match": None}
        assert second["matched"] is True
        assert set(second["match"]["users"]) == {"user_1", "user_3"}

    def test_self_swipe_is_422(self, client):
        response = _swipe(client, "user_1", "user_1")
        assert response.status_code == 422
        assert response.json()["code"] == "invalid_swipe"

    def test_unknown_decision_is_422(self, client):
        assert _swipe(client, "user_1", "user_2", "superlike").status_code == 422

    def test_clear_swipes(self, client):
        _swipe(client, "user_1", "user_2", "skip")
        response = client.delete(f"{API}/swipes", params={"viewer": "user_1"})
        assert response.json() == {"cleared": 1}
        ids = [u["id"] for u in client.get(f"{API}/candidates", params={"viewer": "user_1"}).json()]
        assert "user_2" in ids


class TestMatchesAndMessages:

    def test_match_listing_names_other_user(self, client, matched):
        items = client.get(f"{API}/matches/", params={"user": "user_1"}).json()
        assert len(items) == 1
        assert items[0]["match_id"] == matched["id"]
        assert items[0]["other_user_id"] == "user_3"
        assert items[0]["other_user_name"] == "Hiro"

    def test_send_and_read_history(self, client, matched):
        response = client.post(
            f"{API}/messages/",
            json={"match": matched["id"], "sender": "user_1", "text": "hello"},
        )
        assert response.status_code == 201

        history = client.get(f"{API}/messages/", params={"match": matched["id"]}).json()
        assert len(history) == 1
        assert history[0]["text"] == "hello"
        assert history[0]["read"] is False

        match = client.get(f"{API}/matches/{matched['id']}").json()
        assert match["last_message"] == "hello"

    def test_image_message_preview(self, client, matched):
        client.post(
            f"{API}/messages/",
            json={"match": matched["id"], "sender": "user_3", "imageRef": "https://picsum.photos/300/200"},
        )
        match = client.get(f"{API}/matches/{matched['id']}").json()
        assert match["last_message"] == "Sent an image"

    def test_mark_read(self, client, matched):
        client.post(f"{API}/messages/", json={"match": matched["id"], "sender": "user_1", "text": "hi"})
        response = client.post(f"{API}/messages/read", json={"match": matched["id"], "reader": "user_3"})
        assert response.json() == {"marked": 1}
        history = client.get(f"{API}/messages/", params={"match": matched["id"]}).json()
        assert history[0]["read"] is True

    @pytest.mark.parametrize(
        "body, status, code",
        [
            ({"sender": "user_1", "text": "   "}, 422, "empty_message"),
            ({"sender": "user_2", "text": "hi"}, 403, "not_a_participant"),
        ],
    )
    def test_rejected_messages(self, client, matched, body, status, code):
        response = client.post(f"{API}/messages/", json={"match": matched["id"], **body})
        assert response.status_code == status
        assert response.json()["code"] == code

    def test_unknown_match(self, client):
        response = client.get(f"{API}/messages/", params={"match": "match_missing"})
        assert response.status_code == 404
        assert response.json()["code"] == "match_not_found"


class TestAdmin:

    def test_force_match_is_idempotent(self, client):
        first = client.post(f"{API}/admin/matches", json={"user_a": "user_2", "user_b": "user_4"})
        second = client.post(f"{API}/admin/matches", json={"user_a": "user_4", "user_b": "user_2"})
        assert first.status_code == 201
        assert first.json()["id"] == second.json()["id"]

    def test_stats_and_reset(self, client, matched):
        client.post(f"{API}/messages/", json={"match": matched["id"], "sender": "user_1", "text": "hi"})
        assert client.get(f"{API}/admin/stats").json() == {
            "users": 5, "likes": 2, "matches": 1, "messages": 1,
        }

        response = client.post(f"{API}/reset")

        assert response.json() == {"users": 5, "likes": 0, "matches": 0, "messages": 0}
        assert client.get(f"{API}/admin/stats").json() == response.json()


class TestLifespan:

    @pytest.mark.asyncio
    async def test_store_closed_when_broker_close_fails(self):
        from lovehub.main import lifespan

        store = AsyncMock()
        broker = AsyncMock()
        broker.close.side_effect = ConnectionError("lost")

        with patch("lovehub.main.build_store", return_value=store), \
                patch("lovehub.main._build_broker", return_value=broker):
            with pytest.raises(ConnectionError):
                async with lifespan(MagicMock()):
                    pass

        store.ping.assert_awaited_once()
        store.close.assert_awaited_once()
