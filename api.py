#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Flashdeck – FastAPI + Decks + Cards + Study + AI generation
-----------------------------------------------------------

• Auth: Google ID token → application JWT (revocable via /logout)
• Plans: free (3 decks) / pro (unlimited decks + AI generation), pushed by the billing webhook
• AI: OpenAI chat completions, only for decks whose title/description pass the metadata gate
• Storage: SQLite (database file lives next to this script)

Endpoints (Decks):
  - POST   /decks                          → create deck (name, optional description)
  - GET    /decks                          → list own decks, newest first, with card counts
  - GET    /decks/{deck_id}                → deck details with cards
  - PATCH  /decks/{deck_id}                → update name and/or description
  - DELETE /decks/{deck_id}                → delete deck and its cards
  - GET    /decks/{deck_id}/ai-eligibility → metadata gate verdict for the deck
  - POST   /decks/{deck_id}/generate       → generate 1–4 cards with AI (pro only)
  - GET    /decks/{deck_id}/study          → study sequence (optionally shuffled)

Endpoints (Cards):
  - POST   /decks/{deck_id}/cards          → add card (front/back)
  - GET    /cards/{card_id}                → card details
  - PATCH  /cards/{card_id}                → replace front/back
  - DELETE /cards/{card_id}                → delete card

Endpoints (Account & billing):
  - POST   /auth/google, POST /logout, GET/PATCH /users
  - GET    /billing/entitlements, POST /billing/webhook
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import OAuth2PasswordBearer

from app import config, time_utils
from app.db import db_manager
from app.repositories import AuthRepository, CardRepository, DeckRepository, UserRepository
from app.schemas import (
    BillingWebhookIn,
    CardCreate,
    CardOut,
    CardUpdate,
    DeckCreate,
    DeckDetailOut,
    DeckOut,
    DeckUpdate,
    EntitlementsOut,
    GenerateCardsIn,
    GenerateCardsOut,
    GoogleAuthRequest,
    MetadataCheckOut,
    StudySessionOut,
    Token,
    UserOut,
    UserUpdate,
)
from app.services.ai_card_service import CardGenerationService, FlashcardGenerator
from app.services.auth_service import AuthService
from app.services.billing_service import EntitlementService, verify_webhook_secret
from app.services.other_services import CardService, DeckService
from app.services.study_service import StudyService
from app.services.user_service import UserService

# ---------------------------------
# Configuration
# ---------------------------------
DB = config.DB_PATH

# Time helper re-exported so tests can freeze the clock
utc_now = time_utils.utc_now

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

PUBLIC_PATHS = [
    "/auth/google",
    "/billing/webhook",
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
]


def init_db() -> None:
    """Initialize database schema using the current database path."""
    db_manager.set_path(DB)
    db_manager.initialize()


def get_deck_repository() -> DeckRepository:
    return DeckRepository(db_manager)


def get_card_repository() -> CardRepository:
    return CardRepository(db_manager)


def get_user_repository() -> UserRepository:
    return UserRepository(db_manager)


def get_auth_repository() -> AuthRepository:
    return AuthRepository(db_manager)


def get_user_service(
    repo: UserRepository = Depends(get_user_repository),
) -> UserService:
    return UserService(repo, utc_now)


def get_auth_service(
    user_service: UserService = Depends(get_user_service),
    auth_repository: AuthRepository = Depends(get_auth_repository),
) -> AuthService:
    return AuthService(user_service, auth_repository, utc_now)


def get_entitlement_service(
    repo: UserRepository = Depends(get_user_repository),
) -> EntitlementService:
    return EntitlementService(repo)


def get_deck_service(
    repo: DeckRepository = Depends(get_deck_repository),
    card_repo: CardRepository = Depends(get_card_repository),
    entitlements: EntitlementService = Depends(get_entitlement_service),
) -> DeckService:
    return DeckService(repo, card_repo, entitlements, utc_now)


def get_card_service(
    repo: CardRepository = Depends(get_card_repository),
    deck_service: DeckService = Depends(get_deck_service),
) -> CardService:
    return CardService(repo, deck_service, utc_now)


def get_study_service(
    card_repo: CardRepository = Depends(get_card_repository),
    deck_service: DeckService = Depends(get_deck_service),
) -> StudyService:
    return StudyService(card_repo, deck_service)


def get_flashcard_generator_factory() -> Callable[[], FlashcardGenerator]:
    return FlashcardGenerator


def get_card_generation_service(
    deck_service: DeckService = Depends(get_deck_service),
    card_repo: CardRepository = Depends(get_card_repository),
    entitlements: EntitlementService = Depends(get_entitlement_service),
    generator_factory: Callable[[], FlashcardGenerator] = Depends(get_flashcard_generator_factory),
) -> CardGenerationService:
    return CardGenerationService(deck_service, card_repo, entitlements, generator_factory, utc_now)


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/google", auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def verify_auth_global(
    request: Request,
    token: str = Depends(oauth2_scheme),
    auth_service: AuthService = Depends(get_auth_service),
):
    if request.url.path in PUBLIC_PATHS:
        return

    if not token:
        raise _unauthorized("Not authenticated")

    try:
        auth_service.authenticate(token)
    except ValueError as e:
        raise _unauthorized(str(e))


async def get_current_user_id(
    token: str = Depends(oauth2_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> str:
    """Extract and return the user_id from the JWT token."""
    if not token:
        raise _unauthorized("Not authenticated")

    try:
        return auth_service.authenticate(token)
    except ValueError as e:
        raise _unauthorized(str(e))


# ---------------
# FastAPI (app)
# ---------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan hook: ensure database is initialized before serving requests."""
    init_db()
    yield


app = FastAPI(
    title="Flashdeck API",
    version="1.0",
    lifespan=lifespan,
    dependencies=[Depends(verify_auth_global)],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------
# Endpoints – Decks
# ------------------------
@app.post("/decks", response_model=DeckOut, status_code=201)
def create_deck(
    payload: DeckCreate,
    deck_service: DeckService = Depends(get_deck_service),
    user_id: str = Depends(get_current_user_id),
):
    """Create a deck; free accounts are limited to a fixed number of decks."""
    return deck_service.create(payload, user_id)


@app.get("/decks", response_model=List[DeckOut])
def list_decks(
    deck_service: DeckService = Depends(get_deck_service),
    user_id: str = Depends(get_current_user_id),
):
    """List the caller's decks, newest first."""
    return deck_service.list(user_id)


@app.get("/decks/{deck_id}", response_model=DeckDetailOut)
def get_deck(
    deck_id: str,
    deck_service: DeckService = Depends(get_deck_service),
    user_id: str = Depends(get_current_user_id),
):
    """Return a deck with all of its cards."""
    return deck_service.get_detail(deck_id, user_id)


@app.patch("/decks/{deck_id}", response_model=DeckOut)
def update_deck(
    deck_id: str,
    payload: DeckUpdate,
    deck_service: DeckService = Depends(get_deck_service),
    user_id: str = Depends(get_current_user_id),
):
    """Rename a deck and/or change its description."""
    return deck_service.update(deck_id, payload, user_id)


@app.delete("/decks/{deck_id}", status_code=204)
def delete_deck(
    deck_id: str,
    deck_service: DeckService = Depends(get_deck_service),
    user_id: str = Depends(get_current_user_id),
):
    """Delete the deck and every card in it."""
    deck_service.delete(deck_id, user_id)
    return


@app.get("/decks/{deck_id}/ai-eligibility", response_model=MetadataCheckOut)
def deck_ai_eligibility(
    deck_id: str,
    deck_service: DeckService = Depends(get_deck_service),
    user_id: str = Depends(get_current_user_id),
):
    """Tell the client whether the deck metadata is specific enough for AI generation."""
    return deck_service.check_metadata(deck_id, user_id)


@app.post("/decks/{deck_id}/generate", response_model=GenerateCardsOut, status_code=201)
def generate_cards(
    deck_id: str,
    payload: Optional[GenerateCardsIn] = None,
    generation_service: CardGenerationService = Depends(get_card_generation_service),
    user_id: str = Depends(get_current_user_id),
):
    """Generate flashcards for the deck with the language model."""
    card_count = payload.card_count if payload else config.AI_MAX_CARDS
    return generation_service.generate_for_deck(deck_id, user_id, card_count)


@app.get("/decks/{deck_id}/study", response_model=StudySessionOut)
def study_deck(
    deck_id: str,
    shuffle: bool = Query(False, description="Shuffle the cards"),
    seed: Optional[int] = Query(None, description="Seed for a reproducible shuffle"),
    study_service: StudyService = Depends(get_study_service),
    user_id: str = Depends(get_current_user_id),
):
    """Return the cards of a deck in study order."""
    return study_service.build_session(deck_id, user_id, shuffle=shuffle, seed=seed)


# ------------------------
# Endpoints – Cards
# ------------------------
@app.post("/decks/{deck_id}/cards", response_model=CardOut, status_code=201)
def create_card(
    deck_id: str,
    payload: CardCreate,
    card_service: CardService = Depends(get_card_service),
    user_id: str = Depends(get_current_user_id),
):
    """Add a card to a deck."""
    return card_service.create(deck_id, payload, user_id)


@app.get("/cards/{card_id}", response_model=CardOut)
def get_card(
    card_id: str,
    card_service: CardService = Depends(get_card_service),
    user_id: str = Depends(get_current_user_id),
):
    """Fetch a card by public UUID."""
    return card_service.get(card_id, user_id)


@app.patch("/cards/{card_id}", response_model=CardOut)
def update_card(
    card_id: str,
    payload: CardUpdate,
    card_service: CardService = Depends(get_card_service),
    user_id: str = Depends(get_current_user_id),
):
    """Replace the front and back of a card."""
    return card_service.update(card_id, payload, user_id)


@app.delete("/cards/{card_id}", status_code=204)
def delete_card(
    card_id: str,
    card_service: CardService = Depends(get_card_service),
    user_id: str = Depends(get_current_user_id),
):
    """Remove a card from its deck."""
    card_service.delete(card_id, user_id)
    return


# ------------------------
# Endpoints – Billing
# ------------------------
@app.get("/billing/entitlements", response_model=EntitlementsOut)
def get_entitlements(
    entitlements: EntitlementService = Depends(get_entitlement_service),
    user_id: str = Depends(get_current_user_id),
):
    """Return the caller's plan and the features it unlocks."""
    return entitlements.entitlements(user_id)


@app.post("/billing/webhook", response_model=EntitlementsOut)
def billing_webhook(
    payload: BillingWebhookIn,
    x_billing_secret: Optional[str] = Header(None),
    entitlements: EntitlementService = Depends(get_entitlement_service),
):
    """Receive plan changes from the payments provider."""
    verify_webhook_secret(x_billing_secret)
    return entitlements.set_plan(payload.user_id, payload.plan)


# ------------------------
# Endpoints – Auth
# ------------------------
@app.post("/auth/google", response_model=Token)
def login_google(
    payload: GoogleAuthRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Receives a Google ID token, verifies it, creates/retrieves the user,
    and returns an application JWT.
    """
    try:
        access_token = auth_service.login_with_google(payload.token)
        return {"access_token": access_token, "token_type": "bearer"}
    except ValueError as e:
        raise HTTPException(status_code=401, detail=str(e))


@app.get("/users", response_model=UserOut)
def get_user_info(
    user_id: str = Depends(get_current_user_id),
    user_service: UserService = Depends(get_user_service),
):
    """Returns information about the currently authenticated user."""
    user = user_service.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@app.patch("/users", response_model=UserOut)
def update_user_info(
    payload: UserUpdate,
    user_id: str = Depends(get_current_user_id),
    user_service: UserService = Depends(get_user_service),
):
    """Updates information for the currently authenticated user (partial update)."""
    updated_user = user_service.update_user(user_id, payload)
    if not updated_user:
        raise HTTPException(status_code=404, detail="User not found")
    return updated_user


@app.post("/logout", status_code=204)
def logout(
    token: str = Depends(oauth2_scheme),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Invalidate the current token by adding it to the blacklist.
    """
    auth_service.revoke_token(token)
    return


# ------------------------
# Healthcheck
# ------------------------
@app.get("/health")
def health():
    """Simple health check endpoint with current UTC timestamp."""
    return {"status": "ok", "utc": utc_now().isoformat()}


# ------------------------
# Local execution
# ------------------------
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api:app", host=config.API_HOST, port=config.API_PORT, reload=config.API_RELOAD)
