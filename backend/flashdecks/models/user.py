import uuid
from sqlalchemy import String, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime

from flashdecks.constants import USERNAME_MAX_LENGTH
from flashdecks.db.base import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # Always stored lowercase, lookups lowercase the input as well
    username: Mapped[str] = mapped_column(String(USERNAME_MAX_LENGTH), unique=True, nullable=False, index=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    decks = relationship("Deck", back_populates="owner", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<User {self.username!r}>"
