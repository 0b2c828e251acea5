"""Plan entitlements pushed by the payments provider."""

from __future__ import annotations

import hmac
import logging
from typing import Dict, FrozenSet, Optional

from fastapi import HTTPException

from app import config
from app.repositories import UserRepository
from app.schemas import EntitlementsOut

logger = logging.getLogger(__name__)

UNLIMITED_DECKS = "unlimited_decks"
AI_FLASHCARD_GENERATION = "ai_flashcard_generation"

PLAN_FEATURES: Dict[str, FrozenSet[str]] = {
    "free": frozenset(),
    "pro": frozenset({UNLIMITED_DECKS, AI_FLASHCARD_GENERATION}),
}


class EntitlementService:
    """Answer feature checks from the plan stored on each user."""

    def __init__(self, user_repository: UserRepository):
        self._users = user_repository

    def plan_for(self, user_id: str) -> str:
        user = self._users.find_by_public_id(user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user["plan"]

    def features_for(self, user_id: str) -> FrozenSet[str]:
        return PLAN_FEATURES.get(self.plan_for(user_id), frozenset())

    def has_feature(self, user_id: str, feature: str) -> bool:
        return feature in self.features_for(user_id)

    def entitlements(self, user_id: str) -> EntitlementsOut:
        plan = self.plan_for(user_id)
        return EntitlementsOut(plan=plan, features=sorted(PLAN_FEATURES.get(plan, frozenset())))

    def set_plan(self, user_id: str, plan: str) -> EntitlementsOut:
        if plan not in PLAN_FEATURES:
            raise HTTPException(status_code=422, detail=f"Unknown plan '{plan}'")
        if self._users.set_plan(user_id, plan) == 0:
            raise HTTPException(status_code=404, detail="User not found")
        logger.info("User %s moved to plan %s", user_id, plan)
        return self.entitlements(user_id)


def verify_webhook_secret(provided: Optional[str]) -> None:
    """Reject webhook calls that do not carry the shared billing secret."""
    expected = config.BILLING_WEBHOOK_SECRET
    if not expected:
        logger.error("Billing webhook called but BILLING_WEBHOOK_SECRET is not set")
        raise HTTPException(status_code=401, detail="Billing webhook is not configured")
    if not provided or not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Invalid billing secret")
