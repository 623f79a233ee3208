import logging
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from flashdecks.config import settings
from flashdecks.db.repositories import deck_repo, user_repo
from flashdecks.errors import NotFound
from flashdecks.schemas.user import UserDeleted, UserPublic, UserUpdate

logger = logging.getLogger(__name__)


async def get_user(session: AsyncSession, identifier: str) -> UserPublic:
    user = await user_repo.get_user_with(session, identifier)
    if user is None:
        raise NotFound("User not found")
    return UserPublic.model_validate(user)


async def get_users(session: AsyncSession, identifiers: list[str]) -> list[UserPublic]:
    users = await user_repo.get_users_with(session, identifiers) if identifiers else None
    if not users:
        raise NotFound("User(s) not found")
    return [UserPublic.model_validate(u) for u in users]


async def search_users(session: AsyncSession, fragment: str) -> list[UserPublic]:
    if not fragment.strip():
        return []
    users = await user_repo.search_users(session, fragment, limit=settings.user_search_limit)
    return [UserPublic.model_validate(u) for u in users]


async def update_profile(session: AsyncSession, user_id: UUID, body: UserUpdate) -> UserPublic:
    user = await user_repo.get_user_by_id(session, user_id)
    if user is None:
        raise NotFound("User not found")
    user = await user_repo.update_user(session, user, full_name=body.full_name)
    await session.commit()
    return UserPublic.model_validate(user)


async def delete_user(session: AsyncSession, user_id: UUID) -> UserDeleted:
    """Delete the account with its decks and cards, and withdraw its likes and
    the share entries granted to it."""
    user = await user_repo.get_user_by_id(session, user_id)
    if user is None:
        raise NotFound("User not found")
    removed = await deck_repo.purge_user(session, user.id)
    await user_repo.delete_user(session, user)
    await session.commit()
    logger.info(f"User {user_id} deleted: {removed}")
    return UserDeleted(**removed)
