from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from flashdecks.dependencies import get_current_user, get_optional_user
from flashdecks.models.user import User
from flashdecks.schemas.deck import DeckSummary
from flashdecks.schemas.user import UserDeleted, UserPublic, UserUpdate
from flashdecks.db.session import get_db
from flashdecks.services import deck_service, user_service

router = APIRouter()


@router.get("/me", response_model=UserPublic)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/me", response_model=UserPublic)
async def update_me(
    body: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await user_service.update_profile(db, current_user.id, body)


@router.delete("/me", response_model=UserDeleted)
async def delete_me(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await user_service.delete_user(db, current_user.id)


@router.get("", response_model=list[UserPublic])
async def get_users(
    usernames: list[str] = Query(default=[]),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_users(db, usernames)


@router.get("/search/{fragment}", response_model=list[UserPublic])
async def search_users(fragment: str, db: AsyncSession = Depends(get_db)):
    return await user_service.search_users(db, fragment)


@router.get("/{username}", response_model=UserPublic)
async def get_user(username: str, db: AsyncSession = Depends(get_db)):
    return await user_service.get_user(db, username)


@router.get("/{username}/decks", response_model=list[DeckSummary])
async def get_user_decks(
    username: str,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    """Decks of another user that the current user is allowed to see."""
    return await deck_service.list_user_decks(db, username, current_user.id if current_user else None)


@router.get("/{username}/liked", response_model=list[DeckSummary])
async def get_liked_decks(
    username: str,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    return await deck_service.list_liked_decks(db, username, current_user.id if current_user else None)
