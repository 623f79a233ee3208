import enum
import uuid
from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime

from flashdecks.constants import DECK_NAME_MAX_LENGTH
from flashdecks.db.base import Base, utcnow


class DeckKind(str, enum.Enum):
    normal = "normal"
    uncategorized = "uncategorized"


# Shared by the partial unique index and the ON CONFLICT target in deck_repo,
# both sides have to render the exact same predicate.
UNCATEGORIZED_PREDICATE = text("kind = 'uncategorized'")


class Deck(Base):
    """A named collection of cards owned by one user.

    Every user has at most one deck of kind ``uncategorized``; it is created
    lazily the first time a card is added without a deck and can never be
    renamed, shared, transferred or deleted. The partial unique index below
    backs that rule at the database level.

    ``likes`` mirrors the number of ``deck_likes`` rows for the deck. It is
    only ever changed by deck_repo.like_deck / unlike_deck, in the same unit
    of work as the row insert/delete.
    """
    __tablename__ = "decks"
    __table_args__ = (
        Index(
            "uq_decks_uncategorized_owner",
            "user_id",
            unique=True,
            postgresql_where=UNCATEGORIZED_PREDICATE,
            sqlite_where=UNCATEGORIZED_PREDICATE,
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    kind: Mapped[str] = mapped_column(String(32), nullable=False, default=DeckKind.normal.value)
    name: Mapped[str] = mapped_column(String(DECK_NAME_MAX_LENGTH), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    date_created: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    date_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    owner = relationship("User", back_populates="decks")
    shares = relationship(
        "DeckShare", back_populates="deck", lazy="selectin",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    @property
    def is_uncategorized(self) -> bool:
        return self.kind == DeckKind.uncategorized.value

    def share_for(self, user_id: uuid.UUID | None):
        """Sharing entry of the given user, if any."""
        if user_id is None:
            return None
        for share in self.shares:
            if share.user_id == user_id:
                return share
        return None

    def __repr__(self) -> str:
        return f"<Deck {self.name!r} (user={self.user_id})>"
