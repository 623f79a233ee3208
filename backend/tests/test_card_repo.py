"""
Card store tests. Cards carry no permissions of their own, so most cases
check that the owning deck is consulted and touched.
"""
import uuid
from datetime import datetime

import pytest
from sqlalchemy import delete, text

from flashdecks.db.repositories import card_repo, deck_repo
from flashdecks.errors import Forbidden, NotFound
from flashdecks.models.deck import Deck

LONG_AGO = datetime(2000, 1, 1)


async def _age(session, *decks):
    for deck in decks:
        deck.date_updated = LONG_AGO
    await session.flush()
    for deck in decks:
        await session.refresh(deck)


async def _refreshed(session, deck):
    await session.refresh(deck)
    return deck


class TestCreateCard:

    async def test_without_deck_goes_to_uncategorized(self, session, alice):
        first = await card_repo.create_card(session, alice.id, "q1", "a1")
        second = await card_repo.create_card(session, alice.id, "q2", "a2")

        sentinel = await deck_repo.get_uncategorized_deck(session, alice.id)
        assert sentinel is not None
        assert first.deck_id == second.deck_id == sentinel.id
        assert await card_repo.count_cards_in_deck(session, sentinel.id) == 2

    async def test_touches_deck(self, session, alice):
        deck = await deck_repo.create_deck(session, alice.id, "Biology")
        await _age(session, deck)
        await card_repo.create_card(session, alice.id, "q", "a", hint="h", deck_id=deck.id)
        assert (await _refreshed(session, deck)).date_updated > LONG_AGO

    async def test_needs_write_access(self, session, alice, bob):
        deck = await deck_repo.create_deck(session, alice.id, "Biology")
        with pytest.raises(Forbidden):
            await card_repo.create_card(session, bob.id, "q", "a", deck_id=deck.id)
        await deck_repo.share_deck(session, deck.id, alice.id, bob.id, editable=True)
        card = await card_repo.create_card(session, bob.id, "q", "a", deck_id=deck.id)
        assert card.deck_id == deck.id

    async def test_unknown_deck(self, session, alice):
        with pytest.raises(NotFound):
            await card_repo.create_card(session, alice.id, "q", "a", deck_id=uuid.uuid4())


class TestReadCard:

    async def test_follows_deck_visibility(self, session, alice, bob):
        deck = await deck_repo.create_deck(session, alice.id, "Biology", is_private=True)
        card = await card_repo.create_card(session, alice.id, "q", "a", deck_id=deck.id)
        with pytest.raises(Forbidden):
            await card_repo.get_card(session, card.id, bob.id)
        with pytest.raises(Forbidden):
            await card_repo.get_cards_by_deck(session, deck.id, None)

        await deck_repo.update_deck(session, deck.id, alice.id, is_private=False)
        assert (await card_repo.get_card(session, card.id, None)).id == card.id
        assert [c.id for c in await card_repo.get_cards_by_deck(session, deck.id, bob.id)] == [card.id]

    async def test_unknown_card(self, session, alice):
        with pytest.raises(NotFound):
            await card_repo.get_card(session, uuid.uuid4(), alice.id)

    async def test_orphan_card_reads_as_missing(self, session, alice):
        deck = await deck_repo.create_deck(session, alice.id, "Biology")
        card = await card_repo.create_card(session, alice.id, "q", "a", deck_id=deck.id)
        await session.commit()

        # PRAGMA foreign_keys is ignored inside a transaction
        await session.execute(text("PRAGMA foreign_keys=OFF"))
        await session.execute(delete(Deck).where(Deck.id == deck.id))
        await session.commit()
        await session.execute(text("PRAGMA foreign_keys=ON"))

        assert await card_repo.get_card_by_id(session, card.id) is not None
        with pytest.raises(NotFound):
            await card_repo.get_card(session, card.id, alice.id)

    async def test_cards_gone_with_deck(self, session, alice):
        deck = await deck_repo.create_deck(session, alice.id, "Biology")
        cards = [
            await card_repo.create_card(session, alice.id, f"q{i}", f"a{i}", deck_id=deck.id)
            for i in range(3)
        ]
        await deck_repo.delete_deck(session, deck.id, alice.id)
        for card in cards:
            with pytest.raises(NotFound):
                await card_repo.get_card(session, card.id, alice.id)


class TestUpdateCard:

    async def test_update_fields(self, session, alice):
        deck = await deck_repo.create_deck(session, alice.id, "Biology")
        card = await card_repo.create_card(session, alice.id, "q", "a", hint="h", deck_id=deck.id)
        await _age(session, deck)

        card = await card_repo.update_card(session, card.id, alice.id, answer="b", question=None)

        assert (card.question, card.answer, card.hint) == ("q", "b", "h")
        assert (await _refreshed(session, deck)).date_updated > LONG_AGO

    async def test_hint_can_be_cleared(self, session, alice):
        card = await card_repo.create_card(session, alice.id, "q", "a", hint="h")
        card = await card_repo.update_card(session, card.id, alice.id, hint=None)
        assert card.hint is None

    async def test_empty_update_is_noop(self, session, alice):
        deck = await deck_repo.create_deck(session, alice.id, "Biology")
        card = await card_repo.create_card(session, alice.id, "q", "a", deck_id=deck.id)
        await _age(session, deck)
        await card_repo.update_card(session, card.id, alice.id)
        assert (await _refreshed(session, deck)).date_updated == LONG_AGO

    async def test_read_only_share_cannot_edit(self, session, alice, bob):
        deck = await deck_repo.create_deck(session, alice.id, "Biology")
        card = await card_repo.create_card(session, alice.id, "q", "a", deck_id=deck.id)
        await deck_repo.share_deck(session, deck.id, alice.id, bob.id, editable=False)
        with pytest.raises(Forbidden):
            await card_repo.update_card(session, card.id, bob.id, answer="b")


class TestMoveCard:

    async def test_move_touches_both_decks(self, session, alice):
        source = await deck_repo.create_deck(session, alice.id, "Source")
        target = await deck_repo.create_deck(session, alice.id, "Target")
        card = await card_repo.create_card(session, alice.id, "q", "a", deck_id=source.id)
        await _age(session, source, target)

        card = await card_repo.update_card(session, card.id, alice.id, deck_id=target.id)

        assert card.deck_id == target.id
        assert (await _refreshed(session, source)).date_updated > LONG_AGO
        assert (await _refreshed(session, target)).date_updated > LONG_AGO
        assert await card_repo.count_cards_in_deck(session, source.id) == 0

    async def test_move_out_of_uncategorized(self, session, alice):
        card = await card_repo.create_card(session, alice.id, "q", "a")
        deck = await deck_repo.create_deck(session, alice.id, "Biology")
        card = await card_repo.update_card(session, card.id, alice.id, deck_id=deck.id)
        assert card.deck_id == deck.id

    async def test_move_needs_write_access_on_target(self, session, alice, bob):
        mine = await deck_repo.create_deck(session, alice.id, "Mine")
        theirs = await deck_repo.create_deck(session, bob.id, "Theirs")
        card = await card_repo.create_card(session, alice.id, "q", "a", deck_id=mine.id)

        with pytest.raises(Forbidden):
            await card_repo.update_card(session, card.id, alice.id, deck_id=theirs.id)
        await session.refresh(card)
        assert card.deck_id == mine.id

        await deck_repo.share_deck(session, theirs.id, bob.id, alice.id, editable=True)
        card = await card_repo.update_card(session, card.id, alice.id, deck_id=theirs.id)
        assert card.deck_id == theirs.id

    async def test_move_to_unknown_deck(self, session, alice):
        card = await card_repo.create_card(session, alice.id, "q", "a")
        with pytest.raises(NotFound):
            await card_repo.update_card(session, card.id, alice.id, deck_id=uuid.uuid4())


class TestDeleteCard:

    async def test_delete_touches_deck(self, session, alice):
        deck = await deck_repo.create_deck(session, alice.id, "Biology")
        card = await card_repo.create_card(session, alice.id, "q", "a", deck_id=deck.id)
        await _age(session, deck)

        await card_repo.delete_card(session, card.id, alice.id)

        assert await card_repo.get_card_by_id(session, card.id) is None
        assert (await _refreshed(session, deck)).date_updated > LONG_AGO

    async def test_delete_needs_write_access(self, session, alice, bob):
        deck = await deck_repo.create_deck(session, alice.id, "Biology")
        card = await card_repo.create_card(session, alice.id, "q", "a", deck_id=deck.id)
        with pytest.raises(Forbidden):
            await card_repo.delete_card(session, card.id, bob.id)
        with pytest.raises(NotFound):
            await card_repo.delete_card(session, uuid.uuid4(), alice.id)
