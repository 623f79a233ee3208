"""
HTTP surface: authentication and the mapping of store errors to status codes.
"""
import uuid
from datetime import datetime, timedelta, timezone

import jwt

from flashdecks.config import settings
from flashdecks.constants import UNCATEGORISED_DECK_NAME
from flashdecks.db.repositories import deck_repo


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


class TestAuth:

    async def test_listing_requires_token(self, client):
        resp = await client.get("/decks")
        assert resp.status_code == 401

    async def test_bad_token(self, client):
        resp = await client.get("/decks", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401

    async def test_me(self, client, alice, auth):
        resp = await client.get("/users/me", headers=auth(alice))
        assert resp.status_code == 200
        assert resp.json()["username"] == "alice"

    async def test_expired_token(self, client, alice):
        token = jwt.encode(
            {"sub": str(alice.id), "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
            settings.secret_key,
            algorithm=settings.algorithm,
        )
        resp = await client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    async def test_token_signed_with_other_key(self, client, alice):
        token = jwt.encode({"sub": str(alice.id)}, "x" * 64, algorithm=settings.algorithm)
        resp = await client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401


class TestDecksApi:

    async def test_create_and_get(self, client, alice, auth):
        resp = await client.post("/decks", json={"name": "Biology"}, headers=auth(alice))
        assert resp.status_code == 201
        body = resp.json()
        assert body["owner_id"] == str(alice.id)
        assert body["is_editable"] is True

        resp = await client.get(f"/decks/{body['id']}")
        assert resp.status_code == 200
        assert resp.json()["is_editable"] is False

    async def test_reserved_name(self, client, alice, auth):
        resp = await client.post("/decks", json={"name": UNCATEGORISED_DECK_NAME}, headers=auth(alice))
        assert resp.status_code == 422

    async def test_private_and_missing(self, client, session, alice, bob, auth):
        deck = await deck_repo.create_deck(session, alice.id, "Biology", is_private=True)
        assert (await client.get(f"/decks/{deck.id}")).status_code == 403
        assert (await client.get(f"/decks/{deck.id}", headers=auth(bob))).status_code == 403
        assert (await client.get(f"/decks/{uuid.uuid4()}", headers=auth(bob))).status_code == 404

    async def test_update_forbidden_for_stranger(self, client, session, alice, bob, auth):
        deck = await deck_repo.create_deck(session, alice.id, "Biology")
        resp = await client.patch(f"/decks/{deck.id}", json={"description": "x"}, headers=auth(bob))
        assert resp.status_code == 403
        resp = await client.patch(f"/decks/{deck.id}", json={"description": "x"}, headers=auth(alice))
        assert resp.status_code == 200
        assert resp.json()["description"] == "x"

    async def test_share_flow(self, client, session, alice, bob, auth):
        deck = await deck_repo.create_deck(session, alice.id, "Biology", is_private=True)

        resp = await client.post(
            f"/decks/{deck.id}/share", json={"users": ["bob", "nobody"]}, headers=auth(alice)
        )
        assert resp.status_code == 422

        resp = await client.post(
            f"/decks/{deck.id}/share", json={"users": ["bob"], "editable": True}, headers=auth(alice)
        )
        assert resp.status_code == 200
        assert resp.json() == [{"user_id": str(bob.id), "editable": True}]

        resp = await client.get(f"/decks/{deck.id}", headers=auth(bob))
        assert resp.json()["is_editable"] is True
        resp = await client.get(f"/decks/{deck.id}/share", headers=auth(bob))
        assert resp.status_code == 403

        resp = await client.post(f"/decks/{deck.id}/unshare", json={"users": ["bob"]}, headers=auth(alice))
        assert resp.json() == []

    async def test_like_flow(self, client, session, alice, bob, auth):
        deck = await deck_repo.create_deck(session, alice.id, "Biology")

        assert (await client.post(f"/decks/{deck.id}/like", headers=auth(bob))).status_code == 204
        assert (await client.post(f"/decks/{deck.id}/like", headers=auth(bob))).status_code == 204
        resp = await client.get(f"/decks/{deck.id}/likes")
        assert resp.json() == [str(bob.id)]
        body = (await client.get(f"/decks/{deck.id}", headers=auth(bob))).json()
        assert (body["is_liked"], body["likes"]) == (True, 0)

        assert (await client.delete(f"/decks/{deck.id}/like", headers=auth(bob))).status_code == 204
        assert (await client.get(f"/decks/{deck.id}/likes")).json() == []

    async def test_change_owner(self, client, session, alice, bob, auth):
        deck = await deck_repo.create_deck(session, alice.id, "Biology")
        resp = await client.patch(f"/decks/{deck.id}/owner", json={"user": "alice"}, headers=auth(alice))
        assert resp.status_code == 422
        resp = await client.patch(f"/decks/{deck.id}/owner", json={"user": "bob"}, headers=auth(alice))
        assert resp.status_code == 204
        resp = await client.delete(f"/decks/{deck.id}", headers=auth(alice))
        assert resp.status_code == 403


class TestCardsApi:

    async def test_card_without_deck(self, client, alice, auth):
        resp = await client.post("/cards", json={"question": "q", "answer": "a"}, headers=auth(alice))
        assert resp.status_code == 201
        card = resp.json()

        resp = await client.get(f"/decks/{card['deck_id']}", headers=auth(alice))
        assert resp.json()["is_uncategorized"] is True
        resp = await client.delete(f"/decks/{card['deck_id']}", headers=auth(alice))
        assert resp.status_code == 422

        # not part of the regular listing
        assert (await client.get("/decks", headers=auth(alice))).json() == []

    async def test_move_and_delete(self, client, session, alice, bob, auth):
        deck = await deck_repo.create_deck(session, alice.id, "Biology")
        card = (await client.post(
            "/cards", json={"question": "q", "answer": "a"}, headers=auth(alice)
        )).json()

        resp = await client.post(f"/cards/{card['id']}/move", json={"deck_id": str(deck.id)}, headers=auth(bob))
        assert resp.status_code == 403
        resp = await client.post(f"/cards/{card['id']}/move", json={"deck_id": str(deck.id)}, headers=auth(alice))
        assert resp.status_code == 200
        assert resp.json()["deck_id"] == str(deck.id)

        resp = await client.get(f"/decks/{deck.id}/cards")
        assert [c["id"] for c in resp.json()] == [card["id"]]

        assert (await client.delete(f"/cards/{card['id']}", headers=auth(alice))).status_code == 204
        assert (await client.get(f"/cards/{card['id']}", headers=auth(alice))).status_code == 404


class TestUsersApi:

    async def test_lookup(self, client, alice, bob):
        assert (await client.get("/users/ALICE")).json()["id"] == str(alice.id)
        assert (await client.get("/users/nobody")).status_code == 404
        resp = await client.get("/users", params={"usernames": ["alice", "bob"]})
        assert [u["username"] for u in resp.json()] == ["alice", "bob"]
        assert (await client.get("/users/search/bo")).json()[0]["username"] == "bob"

    async def test_public_decks_of_user(self, client, session, alice, bob, auth):
        await deck_repo.create_deck(session, alice.id, "Public")
        await deck_repo.create_deck(session, alice.id, "Private", is_private=True)
        resp = await client.get("/users/alice/decks", headers=auth(bob))
        assert [d["name"] for d in resp.json()] == ["Public"]

    async def test_delete_me(self, client, session, alice, auth):
        await deck_repo.create_deck(session, alice.id, "Biology")
        resp = await client.delete("/users/me", headers=auth(alice))
        assert resp.status_code == 200
        assert resp.json() == {"decks": 1, "cards": 0, "likes": 0, "shares": 0}
        assert (await client.get("/users/me", headers=auth(alice))).status_code == 401
