from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field


class CardCreate(BaseModel):
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    hint: str | None = Field(default=None, max_length=512)
    deck_id: UUID | None = None  # None -> uncategorized deck


class CardUpdate(BaseModel):
    question: str | None = Field(default=None, min_length=1)
    answer: str | None = Field(default=None, min_length=1)
    hint: str | None = Field(default=None, max_length=512)
    deck_id: UUID | None = None


class CardMove(BaseModel):
    deck_id: UUID


class CardResponse(BaseModel):
    id: UUID
    deck_id: UUID
    question: str
    answer: str
    hint: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True
