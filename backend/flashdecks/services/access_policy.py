"""Who may read, edit or administer a deck.

Pure decision logic, no I/O. ``deck`` only needs ``user_id``, ``is_private``
and ``share_for(user_id)`` (see models.deck.Deck), so plain objects work in
tests as well.

Two levels of write access exist and must not be mixed up:

* ``writable`` (owner, or a share entry with ``editable=True``): add, edit,
  move and delete cards, edit the description.
* owner-only (:func:`is_owner`): rename, change privacy, delete the deck,
  manage sharing, transfer ownership. A writable share is not enough.
"""
from typing import NamedTuple
from uuid import UUID


class Access(NamedTuple):
    readable: bool
    writable: bool


NO_ACCESS = Access(readable=False, writable=False)
READ_ONLY = Access(readable=True, writable=False)
FULL_ACCESS = Access(readable=True, writable=True)


def is_owner(deck, user_id: UUID | None) -> bool:
    return user_id is not None and deck.user_id == user_id


def resolve_access(deck, user_id: UUID | None) -> Access:
    if is_owner(deck, user_id):
        return FULL_ACCESS
    # An explicit entry is authoritative, even a read-only one on a public deck
    share = deck.share_for(user_id)
    if share is not None:
        return Access(readable=True, writable=bool(share.editable))
    if not deck.is_private:
        return READ_ONLY
    return NO_ACCESS
