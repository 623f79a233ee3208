from uuid import UUID
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from flashdecks.models.user import User


def _parse_uuid(value: str) -> UUID | None:
    try:
        return UUID(value)
    except (ValueError, TypeError, AttributeError):
        return None


async def get_user_by_id(session: AsyncSession, user_id: UUID) -> User | None:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalars().one_or_none()


async def get_user_by_username(session: AsyncSession, username: str) -> User | None:
    result = await session.execute(select(User).where(User.username == username.strip().lower()))
    return result.scalars().one_or_none()


async def get_user_with(session: AsyncSession, identifier: str) -> User | None:
    """Resolve a human-facing identifier: user id first, then username."""
    if not (identifier or "").strip():
        return None
    user_id = _parse_uuid(identifier)
    if user_id is not None:
        user = await get_user_by_id(session, user_id)
        if user:
            return user
    return await get_user_by_username(session, identifier)


async def get_users_with(session: AsyncSession, identifiers: list[str]) -> list[User] | None:
    """All users for the given ids/usernames, or None if any of them is unknown."""
    users: list[User] = []
    seen: set[UUID] = set()
    for identifier in identifiers:
        user = await get_user_with(session, identifier)
        if user is None:
            return None
        if user.id not in seen:
            seen.add(user.id)
            users.append(user)
    return users


async def search_users(session: AsyncSession, fragment: str, limit: int = 5) -> list[User]:
    pattern = f"%{fragment.strip().lower()}%"
    result = await session.execute(
        select(User).where(func.lower(User.username).like(pattern)).order_by(User.username).limit(limit)
    )
    return list(result.scalars().all())


async def create_user(session: AsyncSession, username: str, full_name: str | None = None) -> User:
    user = User(username=username.strip().lower(), full_name=full_name)
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


async def update_user(session: AsyncSession, user: User, **kwargs) -> User:
    for k, v in kwargs.items():
        if k in ("full_name",):
            setattr(user, k, v)
    await session.flush()
    await session.refresh(user)
    return user


async def delete_user(session: AsyncSession, user: User) -> None:
    await session.delete(user)
    await session.flush()
