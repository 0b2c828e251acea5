"""Pydantic schemas for request and response payloads."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from . import config

Plan = Literal["free", "pro"]


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


class DeckCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=config.MAX_TITLE_LENGTH)
    description: Optional[str] = Field(None, max_length=config.MAX_TEXT_LENGTH)


class DeckUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=config.MAX_TITLE_LENGTH)
    description: Optional[str] = Field(
        None,
        max_length=config.MAX_TEXT_LENGTH,
        description="New description; an empty string clears it.",
    )


class DeckOut(BaseModel):
    public_id: str
    name: str
    description: Optional[str]
    card_count: int
    created_at: str
    updated_at: str


class CardCreate(BaseModel):
    front: str = Field(..., min_length=1, max_length=config.MAX_TEXT_LENGTH)
    back: str = Field(..., min_length=1, max_length=config.MAX_TEXT_LENGTH)

    @field_validator("front", "back")
    @classmethod
    def _non_blank(cls, value: str) -> str:
        return _require_text(value)


class CardUpdate(CardCreate):
    pass


class CardOut(BaseModel):
    public_id: str
    deck_id: str
    front: str
    back: str
    created_at: str
    updated_at: str


class DeckDetailOut(DeckOut):
    cards: List[CardOut]


class MetadataCheckOut(BaseModel):
    accepted: bool
    reason: Optional[str] = None


class StudySessionOut(BaseModel):
    deck_id: str
    deck_name: str
    shuffled: bool
    total: int
    cards: List[CardOut]


class GenerateCardsIn(BaseModel):
    card_count: int = Field(
        config.AI_MAX_CARDS,
        ge=1,
        le=config.AI_MAX_CARDS,
        description="Number of flashcards to generate.",
    )


class GenerateCardsOut(BaseModel):
    success: bool
    cards_created: int
    cards: List[CardOut]


class GeneratedCard(BaseModel):
    """A single flashcard as returned by the language model."""

    front: str = Field(..., min_length=1, max_length=config.MAX_TEXT_LENGTH)
    back: str = Field(..., min_length=1, max_length=config.MAX_TEXT_LENGTH)

    @field_validator("front", "back", mode="before")
    @classmethod
    def _strip(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class EntitlementsOut(BaseModel):
    plan: Plan
    features: List[str]


class BillingWebhookIn(BaseModel):
    user_id: str = Field(..., min_length=1, description="Public id of the user")
    plan: Plan


class GoogleAuthRequest(BaseModel):
    token: str = Field(..., min_length=1)


class Token(BaseModel):
    access_token: str
    token_type: str


class UserOut(BaseModel):
    public_id: str
    email: str
    name: Optional[str]
    google_id: Optional[str]
    plan: Plan = "free"
    created_at: str


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=config.MAX_TITLE_LENGTH)
