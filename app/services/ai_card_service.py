import json
import logging
import os
from datetime import datetime
from typing import Callable, List, Optional
from uuid import uuid4

from fastapi import HTTPException
from openai import OpenAI
from pydantic import ValidationError

from app import config
from app.repositories import CardRepository
from app.schemas import GenerateCardsOut, GeneratedCard
from app.services.billing_service import AI_FLASHCARD_GENERATION, EntitlementService
from app.services.other_services import CardService, DeckService
from app.time_utils import to_iso
from app.utils.decks import get_deck_metadata_issue

logger = logging.getLogger(__name__)

METADATA_HINT = (
    "To generate cards with AI, update the deck title and description to be specific "
    "(not placeholders like 'Fourth Deck')."
)


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


class FlashcardGenerator:
    """Ask the OpenAI chat API for flashcards about a deck topic."""

    def __init__(self, model_name: Optional[str] = None, client: Optional[OpenAI] = None):
        if client is None:
            openai_api_key = os.getenv("OPENAI_API_KEY")
            if not openai_api_key:
                raise EnvironmentError("OPENAI_API_KEY not set in environment variables.")
            client = OpenAI(api_key=openai_api_key)

        self.client = client
        self.model_name = model_name or config.OPENAI_MODEL

    @staticmethod
    def build_prompt(title: str, description: Optional[str], count: int) -> str:
        s = _plural(count)
        return (
            f"Generate exactly {count} high-quality flashcard pair{s} based on the following deck information:\n\n"
            f"Deck Title: {title}\n"
            f"Deck Description: {description or 'No description provided'}\n\n"
            "For each flashcard, create a question on the front and a comprehensive answer on the back. "
            "The flashcards should be educational, clear, and directly related to the deck topic.\n\n"
            "Return the flashcards in the following JSON format:\n"
            '{\n  "cards": [\n    {\n      "front": "Question or prompt here",\n'
            '      "back": "Answer or explanation here"\n    }\n  ]\n}\n\n'
            f"Make sure to return exactly {count} card{s}."
        )

    def generate(self, title: str, description: Optional[str], count: int) -> List[GeneratedCard]:
        """Return the valid cards from one completion.

        Raises RuntimeError when the response is empty or does not contain
        exactly ``count`` entries. Entries without a usable front/back are dropped.
        """
        s = _plural(count)
        completion = self.client.chat.completions.create(
            model=self.model_name,
            messages=[
                {
                    "role": "system",
                    "content": (
                        "You are a helpful assistant that creates educational flashcards. "
                        f"Always return valid JSON with exactly {count} flashcard{s}."
                    ),
                },
                {"role": "user", "content": self.build_prompt(title, description, count)},
            ],
            response_format={"type": "json_object"},
            temperature=config.AI_TEMPERATURE,
        )

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise RuntimeError("Failed to generate cards")

        parsed = json.loads(content)
        cards = parsed.get("cards") if isinstance(parsed, dict) else None
        if not isinstance(cards, list) or len(cards) != count:
            received = len(cards) if isinstance(cards, list) else 0
            raise RuntimeError(
                f"Invalid response format from AI: expected {count} card{s}, but received {received}"
            )

        valid: List[GeneratedCard] = []
        for item in cards:
            try:
                valid.append(GeneratedCard.model_validate(item))
            except ValidationError:
                logger.warning("Skipping malformed generated card: %r", item)
        return valid


class CardGenerationService:
    """Gate and run AI card generation for a deck."""

    def __init__(
        self,
        deck_service: DeckService,
        card_repo: CardRepository,
        entitlements: EntitlementService,
        generator_factory: Callable[[], FlashcardGenerator],
        utc_now: Callable[[], datetime],
    ):
        self._deck_service = deck_service
        self._card_repo = card_repo
        self._entitlements = entitlements
        self._generator_factory = generator_factory
        self._utc_now = utc_now

    def generate_for_deck(self, deck_id: str, user_id: str, card_count: int) -> GenerateCardsOut:
        if not self._entitlements.has_feature(user_id, AI_FLASHCARD_GENERATION):
            raise HTTPException(
                status_code=403,
                detail=(
                    "AI flashcard generation is only available for Pro users. "
                    "Please upgrade to access this feature."
                ),
            )

        deck = self._deck_service.get_owned(deck_id, user_id)

        # The LLM is never called for placeholder decks.
        issue = get_deck_metadata_issue(deck["name"], deck["description"])
        if issue:
            logger.info("Rejected AI generation for deck %s: %s", deck_id, issue)
            raise HTTPException(status_code=422, detail=f"{METADATA_HINT} {issue}")

        try:
            generator = self._generator_factory()
        except EnvironmentError:
            logger.error("AI generation requested but OPENAI_API_KEY is not configured")
            raise HTTPException(
                status_code=503, detail="AI generation is not configured. Please contact support."
            )

        try:
            generated = generator.generate(deck["name"], deck["description"], card_count)
        except Exception as exc:
            logger.exception("Error generating AI cards for deck %s", deck_id)
            raise HTTPException(
                status_code=502, detail="Failed to generate AI cards. Please try again."
            ) from exc

        rows = self._card_repo.insert_many(
            deck_id,
            [(str(uuid4()), card.front, card.back) for card in generated],
            created_at=to_iso(self._utc_now()),
        )
        logger.info("Generated %d AI cards for deck %s", len(rows), deck_id)
        return GenerateCardsOut(
            success=True,
            cards_created=len(rows),
            cards=[CardService.row_to_card_out(row) for row in rows],
        )
