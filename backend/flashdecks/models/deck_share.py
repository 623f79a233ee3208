import uuid
from sqlalchemy import Boolean, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flashdecks.db.base import Base


class DeckShare(Base):
    """Explicit grant of a deck to another user.

    ``editable`` lets the user add, edit, move and delete cards in the deck
    and edit its description. Renaming, privacy, deletion, sharing and
    ownership transfer stay owner-only regardless of this flag.
    """
    __tablename__ = "deck_shares"
    __table_args__ = (
        UniqueConstraint("deck_id", "user_id", name="uq_deck_share"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    deck_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("decks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    editable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    deck = relationship("Deck", back_populates="shares")

    def __repr__(self) -> str:
        return f"<DeckShare deck={self.deck_id} user={self.user_id} editable={self.editable}>"
