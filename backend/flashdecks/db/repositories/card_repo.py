"""Card store. A card has no permissions of its own: every check goes through
the owning deck (deck_repo), and every change touches that deck's
date_updated."""
from uuid import UUID
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from flashdecks.db.repositories import deck_repo
from flashdecks.errors import NotFound
from flashdecks.models.card import Card

CARD_FIELDS = ("question", "answer", "hint", "deck_id")


async def get_card_by_id(session: AsyncSession, card_id: UUID) -> Card | None:
    result = await session.execute(select(Card).where(Card.id == card_id))
    return result.scalars().one_or_none()


async def _require_card(session: AsyncSession, card_id: UUID) -> Card:
    card = await get_card_by_id(session, card_id)
    if card is None:
        raise NotFound("Card not found")
    return card


async def get_card(session: AsyncSession, card_id: UUID, user_id: UUID | None) -> Card:
    card = await _require_card(session, card_id)
    # A card left behind by an interrupted deck delete reads as missing
    await deck_repo.get_readable_deck(session, card.deck_id, user_id)
    return card


async def get_cards_by_deck(session: AsyncSession, deck_id: UUID, user_id: UUID | None) -> list[Card]:
    deck = await deck_repo.get_readable_deck(session, deck_id, user_id)
    result = await session.execute(
        select(Card).where(Card.deck_id == deck.id).order_by(Card.created_at.desc())
    )
    return list(result.scalars().all())


async def count_cards_in_deck(session: AsyncSession, deck_id: UUID) -> int:
    result = await session.execute(select(func.count(Card.id)).where(Card.deck_id == deck_id))
    return result.scalar_one()


async def create_card(
    session: AsyncSession,
    user_id: UUID,
    question: str,
    answer: str,
    hint: str | None = None,
    deck_id: UUID | None = None,
) -> Card:
    """Create a card in deck_id, or in the user's uncategorized deck when no
    deck is given (created on first use)."""
    if deck_id is None:
        deck = await deck_repo.get_or_create_uncategorized_deck(session, user_id)
    else:
        deck = await deck_repo.get_writable_deck(session, deck_id, user_id)
    card = Card(deck_id=deck.id, question=question, answer=answer, hint=hint)
    session.add(card)
    deck_repo.touch_deck(deck)
    await session.flush()
    await session.refresh(card)
    return card


async def update_card(session: AsyncSession, card_id: UUID, user_id: UUID, **kwargs) -> Card:
    """Apply the given fields. Passing deck_id moves the card, which needs
    write access to both the current and the destination deck."""
    fields = {k: v for k, v in kwargs.items() if k in CARD_FIELDS}
    card = await _require_card(session, card_id)
    current = await deck_repo.get_writable_deck(session, card.deck_id, user_id)
    target_deck_id = fields.pop("deck_id", None)
    # question/answer are required columns, None means "leave as is"
    fields = {k: v for k, v in fields.items() if v is not None or k == "hint"}
    if not fields and target_deck_id is None:
        return card

    if target_deck_id is not None and target_deck_id != current.id:
        target = await deck_repo.get_writable_deck(session, target_deck_id, user_id)
        card.deck_id = target.id
        deck_repo.touch_deck(target)
    for k, v in fields.items():
        setattr(card, k, v)
    deck_repo.touch_deck(current)
    await session.flush()
    await session.refresh(card)
    return card


async def delete_card(session: AsyncSession, card_id: UUID, user_id: UUID) -> None:
    card = await _require_card(session, card_id)
    deck = await deck_repo.get_writable_deck(session, card.deck_id, user_id)
    deck_repo.touch_deck(deck)
    await session.delete(card)
    await session.flush()
