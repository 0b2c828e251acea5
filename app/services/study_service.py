"""Study sessions: the flip-card sequence for a deck, optionally shuffled."""

from __future__ import annotations

import random
from typing import List, Optional, Sequence, TypeVar

from app.repositories import CardRepository
from app.schemas import StudySessionOut
from app.services.other_services import CardService, DeckService

T = TypeVar("T")


def fisher_yates_shuffle(items: Sequence[T], rng: random.Random) -> List[T]:
    """Return a shuffled copy of ``items``; the input is left untouched."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


class StudyService:
    def __init__(self, card_repo: CardRepository, deck_service: DeckService):
        self._card_repo = card_repo
        self._deck_service = deck_service

    def build_session(
        self,
        deck_id: str,
        user_id: str,
        *,
        shuffle: bool = False,
        seed: Optional[int] = None,
    ) -> StudySessionOut:
        """Return the cards of a deck in study order.

        Without ``shuffle`` the order matches the deck page (most recently
        edited first). A ``seed`` makes the shuffled order reproducible.
        """
        deck = self._deck_service.get_owned(deck_id, user_id)
        cards = [CardService.row_to_card_out(row) for row in self._card_repo.list_by_deck(deck_id)]
        if shuffle:
            cards = fisher_yates_shuffle(cards, random.Random(seed))
        return StudySessionOut(
            deck_id=deck["public_id"],
            deck_name=deck["name"],
            shuffled=shuffle,
            total=len(cards),
            cards=cards,
        )
