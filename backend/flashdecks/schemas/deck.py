from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field

from flashdecks.constants import DECK_NAME_MAX_LENGTH


class DeckCreate(BaseModel):
    name: str = Field(min_length=1, max_length=DECK_NAME_MAX_LENGTH)
    description: str | None = None
    is_private: bool = False


class DeckUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=DECK_NAME_MAX_LENGTH)
    description: str | None = None
    is_private: bool | None = None


class DeckSummary(BaseModel):
    """List projection: no owner, share entries or likers."""
    id: UUID
    name: str
    is_private: bool
    likes: int
    date_updated: datetime

    class Config:
        from_attributes = True


class DeckDetail(BaseModel):
    id: UUID
    owner_id: UUID
    name: str
    description: str | None = None
    date_created: datetime
    date_updated: datetime
    is_private: bool
    is_uncategorized: bool
    is_editable: bool
    is_liked: bool
    likes: int  # without the requester's own like, see deck_service


class ShareRequest(BaseModel):
    users: list[str] = Field(min_length=1)  # usernames or ids
    editable: bool = False


class UnshareRequest(BaseModel):
    users: list[str] = Field(min_length=1)


class ShareEntry(BaseModel):
    user_id: UUID
    editable: bool

    class Config:
        from_attributes = True


class OwnerChangeRequest(BaseModel):
    user: str  # username or id
