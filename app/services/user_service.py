import logging
from typing import Any, Callable, Mapping, Optional
from uuid import uuid4

from app.repositories import UserRepository
from app.schemas import UserOut, UserUpdate
from app.time_utils import to_iso, utc_now

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, user_repository: UserRepository, now: Callable = utc_now):
        self.user_repository = user_repository
        self._now = now

    def get_or_create_user(self, user_info: dict) -> UserOut:
        email = user_info.get("email")
        google_id = user_info.get("sub")
        name = user_info.get("name")

        # Check if user exists by google_id
        user = self.user_repository.find_by_google_id(google_id)

        if not user:
            # Existing account created with the same email: link it
            user = self.user_repository.find_by_email(email)

            if user:
                user = self.user_repository.update_google_id(user["id"], google_id)

        if not user:
            user = self.user_repository.create(
                public_id=str(uuid4()),
                email=email,
                name=name,
                google_id=google_id,
                created_at=to_iso(self._now()),
            )
            logger.info("Created user %s", user["public_id"])

        return self._to_user_out(user)

    def get_user(self, public_id: str) -> Optional[UserOut]:
        user = self.user_repository.find_by_public_id(public_id)
        if user:
            return self._to_user_out(user)
        return None

    def update_user(self, public_id: str, payload: UserUpdate) -> Optional[UserOut]:
        user = self.user_repository.find_by_public_id(public_id)
        if not user:
            return None
        if "name" in payload.model_fields_set:
            name = payload.name.strip() if payload.name else None
            user = self.user_repository.update_name(public_id, name or None)
        return self._to_user_out(user)

    @staticmethod
    def _to_user_out(user: Mapping[str, Any]) -> UserOut:
        return UserOut(
            public_id=user["public_id"],
            email=user["email"],
            name=user["name"],
            google_id=user["google_id"],
            plan=user["plan"],
            created_at=user["created_at"],
        )
