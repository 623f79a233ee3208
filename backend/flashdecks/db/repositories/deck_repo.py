"""Deck store: persistence of decks, their share entries and likes.

Every function that acts on behalf of a user takes that user's id explicitly
and checks it with services.access_policy before touching anything. Errors are
raised as flashdecks.errors kinds.
"""
import asyncio
import logging
import weakref
from typing import NamedTuple
from uuid import UUID

from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from flashdecks.constants import UNCATEGORISED_DECK_NAME
from flashdecks.db.base import utcnow
from flashdecks.db.repositories import user_repo
from flashdecks.errors import Conflict, Forbidden, InvalidName, InvalidOperation, InvalidTarget, NotFound
from flashdecks.models.card import Card
from flashdecks.models.deck import Deck, DeckKind, UNCATEGORIZED_PREDICATE
from flashdecks.models.deck_like import DeckLike
from flashdecks.models.deck_share import DeckShare
from flashdecks.services.access_policy import Access, is_owner, resolve_access

logger = logging.getLogger(__name__)

DECK_FIELDS = ("name", "description", "is_private")
# Fields only the owner may change, a writable share is not enough
OWNER_ONLY_FIELDS = ("name", "is_private")


class DeckView(NamedTuple):
    deck: Deck
    access: Access
    is_liked: bool


def _insert(session: AsyncSession, table):
    if session.bind.dialect.name == "postgresql":
        return postgresql.insert(table)
    return sqlite.insert(table)


def _check_name(name: str | None) -> None:
    if name is not None and name.strip() == UNCATEGORISED_DECK_NAME:
        raise InvalidName(f"{UNCATEGORISED_DECK_NAME} is a reserved deck name")


def touch_deck(deck: Deck) -> None:
    deck.date_updated = utcnow()


# Lookups

async def get_deck_by_id(session: AsyncSession, deck_id: UUID) -> Deck | None:
    """Raw lookup without any access check. Always reloads the row and its
    share entries so policy decisions never run on stale state."""
    result = await session.execute(
        select(Deck).where(Deck.id == deck_id).execution_options(populate_existing=True)
    )
    return result.scalars().one_or_none()


async def get_readable_deck(session: AsyncSession, deck_id: UUID, user_id: UUID | None) -> Deck:
    deck = await get_deck_by_id(session, deck_id)
    if deck is None:
        raise NotFound("Deck not found")
    if not resolve_access(deck, user_id).readable:
        raise Forbidden("Deck is private")
    return deck


async def get_writable_deck(session: AsyncSession, deck_id: UUID, user_id: UUID | None) -> Deck:
    deck = await get_deck_by_id(session, deck_id)
    if deck is None:
        raise NotFound("Deck not found")
    if not resolve_access(deck, user_id).writable:
        raise Forbidden("Unauthorized operation")
    return deck


async def get_owned_deck(session: AsyncSession, deck_id: UUID, user_id: UUID | None) -> Deck:
    deck = await get_deck_by_id(session, deck_id)
    if deck is None:
        raise NotFound("Deck not found")
    if not is_owner(deck, user_id):
        raise Forbidden("Only the owner can do this")
    return deck


async def is_liked_by(session: AsyncSession, deck_id: UUID, user_id: UUID | None) -> bool:
    if user_id is None:
        return False
    result = await session.execute(
        select(DeckLike.id).where(DeckLike.deck_id == deck_id, DeckLike.user_id == user_id).limit(1)
    )
    return result.scalars().first() is not None


async def get_deck(session: AsyncSession, deck_id: UUID, user_id: UUID | None) -> DeckView:
    deck = await get_readable_deck(session, deck_id, user_id)
    return DeckView(
        deck=deck,
        access=resolve_access(deck, user_id),
        is_liked=await is_liked_by(session, deck.id, user_id),
    )


async def get_decks_for_user(session: AsyncSession, user_id: UUID) -> list[Deck]:
    """Decks owned by or shared to the user. Public decks of other users are
    not listed here, they are only reachable directly."""
    shared_ids = select(DeckShare.deck_id).where(DeckShare.user_id == user_id)
    result = await session.execute(
        select(Deck)
        .where(
            or_(Deck.user_id == user_id, Deck.id.in_(shared_ids)),
            Deck.kind == DeckKind.normal.value,
        )
        .order_by(Deck.date_updated.desc(), Deck.name.asc())
    )
    return list(result.scalars().all())


async def get_visible_decks_owned_by(
    session: AsyncSession, owner_id: UUID, viewer_id: UUID | None
) -> list[Deck]:
    result = await session.execute(
        select(Deck)
        .where(Deck.user_id == owner_id, Deck.kind == DeckKind.normal.value)
        .order_by(Deck.date_updated.desc(), Deck.name.asc())
    )
    return [d for d in result.scalars().all() if resolve_access(d, viewer_id).readable]


async def get_visible_decks_liked_by(
    session: AsyncSession, liker_id: UUID, viewer_id: UUID | None
) -> list[Deck]:
    result = await session.execute(
        select(Deck)
        .join(DeckLike, DeckLike.deck_id == Deck.id)
        .where(DeckLike.user_id == liker_id, Deck.kind == DeckKind.normal.value)
        .order_by(DeckLike.created_at.desc())
    )
    return [d for d in result.scalars().all() if resolve_access(d, viewer_id).readable]


# Uncategorized deck

_uncategorized_locks: "weakref.WeakValueDictionary[UUID, asyncio.Lock]" = weakref.WeakValueDictionary()


def _uncategorized_lock(owner_id: UUID) -> asyncio.Lock:
    lock = _uncategorized_locks.get(owner_id)
    if lock is None:
        lock = asyncio.Lock()
        _uncategorized_locks[owner_id] = lock
    return lock


async def get_uncategorized_deck(session: AsyncSession, owner_id: UUID) -> Deck | None:
    result = await session.execute(
        select(Deck).where(Deck.user_id == owner_id, Deck.kind == DeckKind.uncategorized.value)
    )
    return result.scalars().one_or_none()


async def get_or_create_uncategorized_deck(session: AsyncSession, owner_id: UUID) -> Deck:
    """Find or create the owner's uncategorized deck.

    Callers inside this process are serialized per owner. Across processes
    the partial unique index decides: a losing INSERT does nothing (waiting
    for the winner's transaction on PostgreSQL) and the following SELECT
    returns the winner's row.
    """
    async with _uncategorized_lock(owner_id):
        deck = await get_uncategorized_deck(session, owner_id)
        if deck is not None:
            return deck
        stmt = (
            _insert(session, Deck.__table__)
            .values(
                user_id=owner_id,
                kind=DeckKind.uncategorized.value,
                name=UNCATEGORISED_DECK_NAME,
                is_private=True,
                likes=0,
            )
            .on_conflict_do_nothing(index_elements=["user_id"], index_where=UNCATEGORIZED_PREDICATE)
        )
        await session.execute(stmt)
        deck = await get_uncategorized_deck(session, owner_id)
        if deck is None:
            raise Conflict("Uncategorized deck could not be created")
        logger.info(f"Uncategorized deck {deck.id} ready for user {owner_id}")
        return deck


# Mutations

async def create_deck(
    session: AsyncSession,
    owner_id: UUID,
    name: str,
    description: str | None = None,
    is_private: bool = False,
) -> Deck:
    _check_name(name)
    deck = Deck(
        user_id=owner_id,
        kind=DeckKind.normal.value,
        name=name,
        description=description,
        is_private=is_private,
        likes=0,
    )
    session.add(deck)
    await session.flush()
    await session.refresh(deck)
    return deck


async def update_deck(session: AsyncSession, deck_id: UUID, user_id: UUID, **kwargs) -> Deck:
    fields = {
        k: v for k, v in kwargs.items()
        if k in DECK_FIELDS and not (v is None and k in ("name", "is_private"))
    }
    deck = await get_writable_deck(session, deck_id, user_id)
    if deck.is_uncategorized and ("name" in fields or fields.get("is_private") is False):
        raise InvalidOperation("The uncategorized deck cannot be renamed or made public")
    _check_name(fields.get("name"))
    if any(k in OWNER_ONLY_FIELDS for k in fields) and not is_owner(deck, user_id):
        raise Forbidden("Only the owner can rename a deck or change its privacy")
    if not fields:
        return deck
    for k, v in fields.items():
        setattr(deck, k, v)
    touch_deck(deck)
    await session.flush()
    await session.refresh(deck)
    return deck


async def delete_deck(session: AsyncSession, deck_id: UUID, user_id: UUID) -> int:
    """Delete the deck together with its cards, shares and likes.

    Runs inside the caller's transaction, nothing is visible to others until
    the caller commits. Returns the number of cards removed.
    """
    deck = await get_owned_deck(session, deck_id, user_id)
    if deck.is_uncategorized:
        raise InvalidOperation("The uncategorized deck cannot be deleted")
    result = await session.execute(delete(Card).where(Card.deck_id == deck.id))
    removed = result.rowcount or 0
    await session.execute(delete(DeckLike).where(DeckLike.deck_id == deck.id))
    await session.delete(deck)
    await session.flush()
    return removed


async def _get_shareable_deck(session: AsyncSession, deck_id: UUID, user_id: UUID) -> Deck:
    deck = await get_owned_deck(session, deck_id, user_id)
    if deck.is_uncategorized:
        raise InvalidOperation("The uncategorized deck cannot be shared")
    return deck


async def _check_target(session: AsyncSession, deck: Deck, target_user_id: UUID) -> None:
    if target_user_id == deck.user_id:
        raise InvalidTarget("The owner already has full access")
    if await user_repo.get_user_by_id(session, target_user_id) is None:
        raise InvalidTarget("User not found")


async def get_shares(session: AsyncSession, deck_id: UUID, user_id: UUID) -> list[DeckShare]:
    deck = await _get_shareable_deck(session, deck_id, user_id)
    return list(deck.shares)


async def share_deck(
    session: AsyncSession, deck_id: UUID, user_id: UUID, target_user_id: UUID, editable: bool = False
) -> DeckShare:
    """Grant or update access for target_user_id. Repeating the call with the
    same arguments changes nothing."""
    deck = await _get_shareable_deck(session, deck_id, user_id)
    await _check_target(session, deck, target_user_id)
    share = deck.share_for(target_user_id)
    if share is None:
        share = DeckShare(user_id=target_user_id, editable=editable)
        deck.shares.append(share)
    else:
        share.editable = editable
    try:
        await session.flush()
    except IntegrityError as exc:
        raise Conflict("Deck sharing was changed concurrently") from exc
    return share


async def unshare_deck(session: AsyncSession, deck_id: UUID, user_id: UUID, target_user_id: UUID) -> bool:
    """Remove target_user_id's entry. Returns False when there was none."""
    deck = await _get_shareable_deck(session, deck_id, user_id)
    if target_user_id == deck.user_id:
        raise InvalidTarget("The owner cannot be unshared")
    share = deck.share_for(target_user_id)
    if share is None:
        return False
    deck.shares.remove(share)
    await session.flush()
    return True


async def transfer_ownership(session: AsyncSession, deck_id: UUID, user_id: UUID, new_owner_id: UUID) -> Deck:
    deck = await get_owned_deck(session, deck_id, user_id)
    if deck.is_uncategorized:
        raise InvalidTarget("The uncategorized deck cannot change owner")
    if new_owner_id == deck.user_id:
        raise InvalidTarget("Deck already belongs to this user")
    if await user_repo.get_user_by_id(session, new_owner_id) is None:
        raise InvalidTarget("User not found")
    share = deck.share_for(new_owner_id)
    if share is not None:
        deck.shares.remove(share)
    deck.user_id = new_owner_id
    touch_deck(deck)
    await session.flush()
    await session.refresh(deck)
    return deck


async def like_deck(session: AsyncSession, deck_id: UUID, user_id: UUID) -> Deck:
    """Like a readable deck. Liking twice is a no-op.

    The like row and the counter are written in the same transaction; the
    unique (deck_id, user_id) constraint turns a concurrent duplicate into a
    rollback of both."""
    deck = await get_readable_deck(session, deck_id, user_id)
    if await is_liked_by(session, deck.id, user_id):
        return deck
    session.add(DeckLike(deck_id=deck.id, user_id=user_id))
    try:
        await session.flush()
    except IntegrityError as exc:
        raise Conflict("Deck was liked concurrently") from exc
    await session.execute(
        update(Deck).where(Deck.id == deck.id).values(likes=Deck.likes + 1)
    )
    await session.refresh(deck)
    return deck


async def unlike_deck(session: AsyncSession, deck_id: UUID, user_id: UUID) -> Deck:
    deck = await get_deck_by_id(session, deck_id)
    if deck is None:
        raise NotFound("Deck not found")
    if await _remove_like(session, deck.id, user_id):
        await session.refresh(deck)
    return deck


async def _remove_like(session: AsyncSession, deck_id: UUID, user_id: UUID) -> bool:
    result = await session.execute(
        delete(DeckLike).where(DeckLike.deck_id == deck_id, DeckLike.user_id == user_id)
    )
    if not result.rowcount:
        return False
    await session.execute(
        update(Deck).where(Deck.id == deck_id).values(likes=Deck.likes - 1)
    )
    return True


async def get_liked_by(session: AsyncSession, deck_id: UUID, user_id: UUID | None) -> list[UUID]:
    deck = await get_readable_deck(session, deck_id, user_id)
    result = await session.execute(
        select(DeckLike.user_id).where(DeckLike.deck_id == deck.id).order_by(DeckLike.created_at)
    )
    return list(result.scalars().all())


async def count_likes(session: AsyncSession, deck_id: UUID) -> int:
    result = await session.execute(select(func.count(DeckLike.id)).where(DeckLike.deck_id == deck_id))
    return result.scalar_one()


async def purge_user(session: AsyncSession, user_id: UUID) -> dict[str, int]:
    """Remove everything the user holds before the account itself goes away:
    their likes (decrementing the counters), the share entries granted to
    them, and the decks they own with all cards."""
    liked = await session.execute(select(DeckLike.deck_id).where(DeckLike.user_id == user_id))
    unliked = 0
    for deck_id in liked.scalars().all():
        if await _remove_like(session, deck_id, user_id):
            unliked += 1
    shares = await session.execute(delete(DeckShare).where(DeckShare.user_id == user_id))
    owned = select(Deck.id).where(Deck.user_id == user_id)
    cards = await session.execute(delete(Card).where(Card.deck_id.in_(owned)))
    await session.execute(delete(DeckLike).where(DeckLike.deck_id.in_(owned)))
    await session.execute(delete(DeckShare).where(DeckShare.deck_id.in_(owned)))
    decks = await session.execute(delete(Deck).where(Deck.user_id == user_id))
    await session.flush()
    return {
        "likes": unliked,
        "shares": shares.rowcount or 0,
        "decks": decks.rowcount or 0,
        "cards": cards.rowcount or 0,
    }
