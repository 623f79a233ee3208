"""Deck use cases.

No access rules live here: they are all applied by deck_repo / card_repo.
This module resolves usernames to ids, shapes the responses and commits each
operation once, so a failure half way leaves nothing behind (get_db rolls the
session back).
"""
import logging
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from flashdecks.db.repositories import card_repo, deck_repo, user_repo
from flashdecks.errors import InvalidTarget, NotFound
from flashdecks.schemas.card import CardResponse
from flashdecks.schemas.deck import (
    DeckCreate,
    DeckDetail,
    DeckSummary,
    DeckUpdate,
    OwnerChangeRequest,
    ShareEntry,
    ShareRequest,
    UnshareRequest,
)

logger = logging.getLogger(__name__)


def to_detail(view: deck_repo.DeckView) -> DeckDetail:
    deck = view.deck
    likes = deck.likes
    if view.is_liked:
        # Clients render "you and N others"
        likes = max(likes - 1, 0)
    return DeckDetail(
        id=deck.id,
        owner_id=deck.user_id,
        name=deck.name,
        description=deck.description,
        date_created=deck.date_created,
        date_updated=deck.date_updated,
        is_private=deck.is_private,
        is_uncategorized=deck.is_uncategorized,
        is_editable=view.access.writable,
        is_liked=view.is_liked,
        likes=likes,
    )


async def _detail(session: AsyncSession, deck_id: UUID, user_id: UUID | None) -> DeckDetail:
    return to_detail(await deck_repo.get_deck(session, deck_id, user_id))


async def _resolve_user_id(session: AsyncSession, identifier: str) -> UUID:
    user = await user_repo.get_user_with(session, identifier)
    if user is None:
        raise NotFound("User not found")
    return user.id


async def _resolve_targets(session: AsyncSession, identifiers: list[str]) -> list[UUID]:
    users = await user_repo.get_users_with(session, identifiers)
    if users is None:
        raise InvalidTarget("Invalid user ID")
    return [u.id for u in users]


async def create_deck(session: AsyncSession, user_id: UUID, body: DeckCreate) -> DeckDetail:
    deck = await deck_repo.create_deck(
        session, user_id, body.name, description=body.description, is_private=body.is_private
    )
    await session.commit()
    logger.info(f"Deck {deck.id} created by {user_id}")
    return await _detail(session, deck.id, user_id)


async def get_deck(session: AsyncSession, deck_id: UUID, user_id: UUID | None) -> DeckDetail:
    return await _detail(session, deck_id, user_id)


async def list_my_decks(session: AsyncSession, user_id: UUID) -> list[DeckSummary]:
    decks = await deck_repo.get_decks_for_user(session, user_id)
    return [DeckSummary.model_validate(d) for d in decks]


async def list_user_decks(session: AsyncSession, identifier: str, viewer_id: UUID | None) -> list[DeckSummary]:
    owner_id = await _resolve_user_id(session, identifier)
    decks = await deck_repo.get_visible_decks_owned_by(session, owner_id, viewer_id)
    return [DeckSummary.model_validate(d) for d in decks]


async def list_liked_decks(session: AsyncSession, identifier: str, viewer_id: UUID | None) -> list[DeckSummary]:
    liker_id = await _resolve_user_id(session, identifier)
    decks = await deck_repo.get_visible_decks_liked_by(session, liker_id, viewer_id)
    return [DeckSummary.model_validate(d) for d in decks]


async def list_deck_cards(session: AsyncSession, deck_id: UUID, user_id: UUID | None) -> list[CardResponse]:
    cards = await card_repo.get_cards_by_deck(session, deck_id, user_id)
    return [CardResponse.model_validate(c) for c in cards]


async def update_deck(session: AsyncSession, deck_id: UUID, user_id: UUID, body: DeckUpdate) -> DeckDetail:
    updates = body.model_dump(exclude_unset=True)
    await deck_repo.update_deck(session, deck_id, user_id, **updates)
    await session.commit()
    if updates:
        logger.info(f"Deck {deck_id} updated by {user_id}: {sorted(updates)}")
    return await _detail(session, deck_id, user_id)


async def delete_deck(session: AsyncSession, deck_id: UUID, user_id: UUID) -> int:
    removed = await deck_repo.delete_deck(session, deck_id, user_id)
    await session.commit()
    logger.info(f"Deck {deck_id} deleted by {user_id} ({removed} cards removed)")
    return removed


async def get_shared_with(session: AsyncSession, deck_id: UUID, user_id: UUID) -> list[ShareEntry]:
    shares = await deck_repo.get_shares(session, deck_id, user_id)
    return [ShareEntry.model_validate(s) for s in shares]


async def share_deck(session: AsyncSession, deck_id: UUID, user_id: UUID, body: ShareRequest) -> list[ShareEntry]:
    targets = await _resolve_targets(session, body.users)
    for target_id in targets:
        await deck_repo.share_deck(session, deck_id, user_id, target_id, editable=body.editable)
    await session.commit()
    logger.info(f"Deck {deck_id} shared with {len(targets)} user(s), editable={body.editable}")
    return await get_shared_with(session, deck_id, user_id)


async def unshare_deck(session: AsyncSession, deck_id: UUID, user_id: UUID, body: UnshareRequest) -> list[ShareEntry]:
    targets = await _resolve_targets(session, body.users)
    removed = 0
    for target_id in targets:
        if await deck_repo.unshare_deck(session, deck_id, user_id, target_id):
            removed += 1
    await session.commit()
    logger.info(f"Deck {deck_id} unshared from {removed} user(s)")
    return await get_shared_with(session, deck_id, user_id)


async def change_owner(session: AsyncSession, deck_id: UUID, user_id: UUID, body: OwnerChangeRequest) -> None:
    new_owner = await user_repo.get_user_with(session, body.user)
    if new_owner is None:
        raise InvalidTarget("Invalid user ID")
    await deck_repo.transfer_ownership(session, deck_id, user_id, new_owner.id)
    await session.commit()
    logger.info(f"Deck {deck_id} transferred from {user_id} to {new_owner.id}")


async def like_deck(session: AsyncSession, deck_id: UUID, user_id: UUID) -> None:
    await deck_repo.like_deck(session, deck_id, user_id)
    await session.commit()


async def unlike_deck(session: AsyncSession, deck_id: UUID, user_id: UUID) -> None:
    await deck_repo.unlike_deck(session, deck_id, user_id)
    await session.commit()


async def get_deck_likes(session: AsyncSession, deck_id: UUID, user_id: UUID | None) -> list[UUID]:
    return await deck_repo.get_liked_by(session, deck_id, user_id)
