"""Google sign-in and the application's own bearer tokens."""

import logging
from datetime import datetime, timedelta
from typing import Callable

from google.auth.transport import requests
from google.oauth2 import id_token
from jose import jwt

from app import config
from app.repositories import AuthRepository
from app.schemas import UserOut
from app.services.user_service import UserService
from app.time_utils import utc_now

logger = logging.getLogger(__name__)


class AuthService:
    """Exchange Google identities for JWTs and resolve bearer tokens to user ids.

    Tokens carry ``sub``/``user_id`` (the user's public id), ``email`` and
    ``plan`` plus ``iat``/``exp`` taken from the injected clock. Expiry is
    checked against the same clock, so a frozen clock yields stable tokens.
    """

    def __init__(
        self,
        user_service: UserService,
        auth_repository: AuthRepository,
        now: Callable[[], datetime] = utc_now,
    ):
        self.user_service = user_service
        self.auth_repository = auth_repository
        self._now = now

    def verify_google_token(self, token: str) -> dict:
        try:
            return id_token.verify_oauth2_token(token, requests.Request(), config.GOOGLE_CLIENT_ID)
        except ValueError as e:
            logger.warning("Rejected Google ID token: %s", e)
            raise ValueError("Invalid Google token")

    def login_with_google(self, google_token: str) -> str:
        """Verify a Google ID token, link or create the account and return a JWT."""
        user = self.user_service.get_or_create_user(self.verify_google_token(google_token))
        logger.info("User %s signed in with Google", user.public_id)
        return self.create_access_token(user)

    def create_access_token(self, user: UserOut) -> str:
        issued_at = self._now()
        expires_at = issued_at + timedelta(minutes=config.JWT_EXPIRES_MINUTES)
        claims = {
            "sub": user.public_id,
            "user_id": user.public_id,
            "email": user.email,
            "plan": user.plan,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(claims, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)

    def authenticate(self, token: str) -> str:
        """Return the user id behind a bearer token.

        Raises ValueError with the message sent back to the client when the
        token is revoked, malformed, expired or carries no user id.
        """
        if self.auth_repository.is_token_revoked(token):
            raise ValueError("Token has been revoked")
        try:
            claims = jwt.decode(
                token,
                config.JWT_SECRET,
                algorithms=[config.JWT_ALGORITHM],
                options={"verify_exp": False, "verify_iat": False},
            )
        except jwt.JWTError:
            raise ValueError("Invalid token")

        try:
            expires_at = int(claims["exp"])
        except (KeyError, TypeError, ValueError):
            raise ValueError("Invalid token")
        if expires_at <= int(self._now().timestamp()):
            raise ValueError("Token has expired")

        user_id = claims.get("user_id")
        if not user_id:
            raise ValueError("Token does not contain user_id")
        return user_id

    def revoke_token(self, token: str) -> None:
        self.auth_repository.revoke_token(token)
