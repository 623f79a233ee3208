from uuid import UUID
from pydantic import BaseModel, Field


class UserPublic(BaseModel):
    id: UUID
    username: str
    full_name: str | None = None

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)


class UserDeleted(BaseModel):
    decks: int
    cards: int
    likes: int
    shares: int
