"""Card use cases, see deck_service for the transaction rules."""
import logging
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from flashdecks.db.repositories import card_repo
from flashdecks.schemas.card import CardCreate, CardResponse, CardUpdate

logger = logging.getLogger(__name__)


async def create_card(session: AsyncSession, user_id: UUID, body: CardCreate) -> CardResponse:
    card = await card_repo.create_card(
        session, user_id, body.question, body.answer, hint=body.hint, deck_id=body.deck_id
    )
    await session.commit()
    logger.info(f"Card {card.id} created in deck {card.deck_id} by {user_id}")
    return CardResponse.model_validate(card)


async def get_card(session: AsyncSession, card_id: UUID, user_id: UUID | None) -> CardResponse:
    card = await card_repo.get_card(session, card_id, user_id)
    return CardResponse.model_validate(card)


async def update_card(session: AsyncSession, card_id: UUID, user_id: UUID, body: CardUpdate) -> CardResponse:
    card = await card_repo.update_card(session, card_id, user_id, **body.model_dump(exclude_unset=True))
    await session.commit()
    return CardResponse.model_validate(card)


async def move_card(session: AsyncSession, card_id: UUID, user_id: UUID, deck_id: UUID) -> CardResponse:
    card = await card_repo.update_card(session, card_id, user_id, deck_id=deck_id)
    await session.commit()
    logger.info(f"Card {card_id} moved to deck {deck_id} by {user_id}")
    return CardResponse.model_validate(card)


async def delete_card(session: AsyncSession, card_id: UUID, user_id: UUID) -> None:
    await card_repo.delete_card(session, card_id, user_id)
    await session.commit()
    logger.info(f"Card {card_id} deleted by {user_id}")
