"""Card CRUD. Card id is global, permissions come from the owning deck."""
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from flashdecks.dependencies import get_current_user, get_optional_user
from flashdecks.models.user import User
from flashdecks.schemas.card import CardCreate, CardMove, CardResponse, CardUpdate
from flashdecks.db.session import get_db
from flashdecks.services import card_service

router = APIRouter()


@router.post("", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
async def create_card(
    body: CardCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await card_service.create_card(db, current_user.id, body)


@router.get("/{card_id}", response_model=CardResponse)
async def get_card(
    card_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    return await card_service.get_card(db, card_id, current_user.id if current_user else None)


@router.patch("/{card_id}", response_model=CardResponse)
async def update_card(
    card_id: UUID,
    body: CardUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await card_service.update_card(db, card_id, current_user.id, body)


@router.post("/{card_id}/move", response_model=CardResponse)
async def move_card(
    card_id: UUID,
    body: CardMove,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await card_service.move_card(db, card_id, current_user.id, body.deck_id)


@router.delete("/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_card(
    card_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await card_service.delete_card(db, card_id, current_user.id)
