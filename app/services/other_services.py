"""Domain services built on top of repositories."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, List, Mapping
from uuid import uuid4

from fastapi import HTTPException

from app import config
from app.repositories import CardRepository, DeckRepository
from app.schemas import (
    CardCreate,
    CardOut,
    CardUpdate,
    DeckCreate,
    DeckDetailOut,
    DeckOut,
    DeckUpdate,
    MetadataCheckOut,
)
from app.services.billing_service import UNLIMITED_DECKS, EntitlementService
from app.time_utils import to_iso
from app.utils.decks import evaluate_deck_metadata

logger = logging.getLogger(__name__)


class DeckService:
    """Provide deck persistence operations with ownership and plan checks."""

    def __init__(
        self,
        repo: DeckRepository,
        card_repo: CardRepository,
        entitlements: EntitlementService,
        utc_now: Callable[[], datetime],
    ):
        """Store the repositories used for deck persistence."""
        self._repo = repo
        self._card_repo = card_repo
        self._entitlements = entitlements
        self._utc_now = utc_now

    def get_owned(self, public_id: str, user_id: str) -> Mapping[str, Any]:
        """Return the deck row; raise 404 when missing or owned by someone else."""
        row = self._repo.find_owned(public_id, user_id)
        if not row:
            raise HTTPException(status_code=404, detail="Deck not found")
        return row

    def create(self, payload: DeckCreate, user_id: str) -> DeckOut:
        """Create a new deck, enforcing the free-plan deck limit."""
        name = payload.name.strip()
        if not name:
            raise HTTPException(status_code=400, detail="Deck name cannot be empty")
        if not self._entitlements.has_feature(user_id, UNLIMITED_DECKS):
            limit = config.FREE_DECK_LIMIT
            if self._repo.count_by_user(user_id) >= limit:
                logger.info("User %s hit the free deck limit", user_id)
                raise HTTPException(
                    status_code=403,
                    detail=(
                        f"You have reached the maximum number of decks ({limit}). "
                        "Upgrade to Pro for unlimited decks."
                    ),
                )
        row = self._repo.insert(
            public_id=str(uuid4()),
            user_id=user_id,
            name=name,
            description=self._stored_description(payload.description),
            created_at=to_iso(self._utc_now()),
        )
        return self._row_to_deck_out(row)

    def list(self, user_id: str) -> List[DeckOut]:
        """Return the user's decks, newest first, with card counts."""
        return [self._row_to_deck_out(row) for row in self._repo.list_with_counts(user_id)]

    def get_detail(self, public_id: str, user_id: str) -> DeckDetailOut:
        """Return a deck together with its cards, most recently edited first."""
        row = self.get_owned(public_id, user_id)
        cards = [CardService.row_to_card_out(card) for card in self._card_repo.list_by_deck(public_id)]
        return DeckDetailOut(**self._row_to_deck_out(row).model_dump(), cards=cards)

    def update(self, public_id: str, payload: DeckUpdate, user_id: str) -> DeckOut:
        """Apply a partial update; only fields present in the payload change."""
        self.get_owned(public_id, user_id)
        name = None
        if payload.name is not None:
            name = payload.name.strip()
            if not name:
                raise HTTPException(status_code=400, detail="Deck name cannot be empty")
        update_description = payload.description is not None
        row = self._repo.update(
            public_id,
            user_id,
            name=name,
            description=self._stored_description(payload.description),
            update_description=update_description,
            updated_at=to_iso(self._utc_now()),
        )
        if not row:
            raise HTTPException(status_code=404, detail="Deck not found")
        return self._row_to_deck_out(row)

    def delete(self, public_id: str, user_id: str) -> None:
        """Delete a deck and, through the cascade, its cards."""
        rowcount = self._repo.delete_owned(public_id, user_id)
        if rowcount == 0:
            raise HTTPException(status_code=404, detail="Deck not found")

    def check_metadata(self, public_id: str, user_id: str) -> MetadataCheckOut:
        """Run the AI metadata gate against a stored deck without generating anything."""
        row = self.get_owned(public_id, user_id)
        verdict = evaluate_deck_metadata(row["name"], row["description"])
        return MetadataCheckOut(accepted=verdict.accepted, reason=verdict.reason)

    @staticmethod
    def _stored_description(description):
        # Kept verbatim; only an empty string clears it.
        return description or None

    @staticmethod
    def _row_to_deck_out(row: Mapping[str, Any]) -> DeckOut:
        """Build a DeckOut instance from a repository row."""
        return DeckOut(
            public_id=row["public_id"],
            name=row["name"],
            description=row["description"],
            card_count=int(row["card_count"] or 0),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


class CardService:
    """Handle card CRUD operations on decks owned by the caller."""

    def __init__(
        self,
        repo: CardRepository,
        deck_service: DeckService,
        utc_now: Callable[[], datetime],
    ):
        """Store dependencies required to manage cards."""
        self._repo = repo
        self._deck_service = deck_service
        self._utc_now = utc_now

    def create(self, deck_id: str, payload: CardCreate, user_id: str) -> CardOut:
        """Add a card to one of the user's decks."""
        self._deck_service.get_owned(deck_id, user_id)
        row = self._repo.insert(
            public_id=str(uuid4()),
            deck_id=deck_id,
            front=payload.front,
            back=payload.back,
            created_at=to_iso(self._utc_now()),
        )
        return self.row_to_card_out(row)

    def get(self, card_public_id: str, user_id: str) -> CardOut:
        return self.row_to_card_out(self._fetch_owned(card_public_id, user_id))

    def update(self, card_public_id: str, payload: CardUpdate, user_id: str) -> CardOut:
        """Replace both sides of a card."""
        self._fetch_owned(card_public_id, user_id)
        row = self._repo.update(
            card_public_id,
            front=payload.front,
            back=payload.back,
            updated_at=to_iso(self._utc_now()),
        )
        return self.row_to_card_out(row)

    def delete(self, card_public_id: str, user_id: str) -> None:
        self._fetch_owned(card_public_id, user_id)
        if self._repo.delete_by_public_id(card_public_id) == 0:
            raise HTTPException(status_code=404, detail="Card not found")

    def _fetch_owned(self, card_public_id: str, user_id: str) -> Mapping[str, Any]:
        row = self._repo.fetch_owned(card_public_id, user_id)
        if not row:
            raise HTTPException(status_code=404, detail="Card not found")
        return row

    @staticmethod
    def row_to_card_out(row: Mapping[str, Any]) -> CardOut:
        """Convert a database row into the CardOut schema."""
        return CardOut(
            public_id=row["public_id"],
            deck_id=row["deck_id"],
            front=row["front"],
            back=row["back"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
