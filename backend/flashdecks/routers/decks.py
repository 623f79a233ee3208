from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from flashdecks.dependencies import get_current_user, get_optional_user
from flashdecks.models.user import User
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
from flashdecks.db.session import get_db
from flashdecks.services import deck_service

router = APIRouter()


@router.get("", response_model=list[DeckSummary])
async def list_decks(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Decks owned by or shared with the current user."""
    return await deck_service.list_my_decks(db, current_user.id)


@router.post("", response_model=DeckDetail, status_code=status.HTTP_201_CREATED)
async def create_deck(
    body: DeckCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await deck_service.create_deck(db, current_user.id, body)


@router.get("/{deck_id}", response_model=DeckDetail)
async def get_deck(
    deck_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    return await deck_service.get_deck(db, deck_id, current_user.id if current_user else None)


@router.patch("/{deck_id}", response_model=DeckDetail)
async def update_deck(
    deck_id: UUID,
    body: DeckUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await deck_service.update_deck(db, deck_id, current_user.id, body)


@router.delete("/{deck_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deck(
    deck_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await deck_service.delete_deck(db, deck_id, current_user.id)


@router.get("/{deck_id}/cards", response_model=list[CardResponse])
async def list_cards(
    deck_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    return await deck_service.list_deck_cards(db, deck_id, current_user.id if current_user else None)


# Sharing (owner only)
@router.get("/{deck_id}/share", response_model=list[ShareEntry])
async def get_shared_with(
    deck_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await deck_service.get_shared_with(db, deck_id, current_user.id)


@router.post("/{deck_id}/share", response_model=list[ShareEntry])
async def share_deck(
    deck_id: UUID,
    body: ShareRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await deck_service.share_deck(db, deck_id, current_user.id, body)


@router.post("/{deck_id}/unshare", response_model=list[ShareEntry])
async def unshare_deck(
    deck_id: UUID,
    body: UnshareRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await deck_service.unshare_deck(db, deck_id, current_user.id, body)


@router.patch("/{deck_id}/owner", status_code=status.HTTP_204_NO_CONTENT)
async def change_owner(
    deck_id: UUID,
    body: OwnerChangeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await deck_service.change_owner(db, deck_id, current_user.id, body)


# Likes
@router.get("/{deck_id}/likes", response_model=list[UUID])
async def get_likes(
    deck_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    return await deck_service.get_deck_likes(db, deck_id, current_user.id if current_user else None)


@router.post("/{deck_id}/like", status_code=status.HTTP_204_NO_CONTENT)
async def like_deck(
    deck_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await deck_service.like_deck(db, deck_id, current_user.id)


@router.delete("/{deck_id}/like", status_code=status.HTTP_204_NO_CONTENT)
async def unlike_deck(
    deck_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await deck_service.unlike_deck(db, deck_id, current_user.id)
