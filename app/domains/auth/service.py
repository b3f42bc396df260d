"""Auth domain service - reviewer authentication."""

import logging
from datetime import datetime, timezone

from app.core.config import Settings
from app.core.exceptions import InvalidCredentialsError
from app.core.security import create_access_token, verify_password
from app.db.redis import is_redis_connected, jwt_blacklist

logger = logging.getLogger(__name__)


class AuthService:
    """Authentication service for the single configured reviewer account."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def login(self, email: str, password: str) -> str:
        """
        Authenticate the reviewer and return an access token.

        Raises:
            InvalidCredentialsError: If email or password is wrong
        """
        if email.lower() != self._settings.reviewer_email.lower():
            raise InvalidCredentialsError()

        if not verify_password(password, self._settings.reviewer_password_hash):
            raise InvalidCredentialsError()

        logger.info(f"Reviewer {email} logged in")
        return create_access_token({"sub": self._settings.reviewer_email, "role": "reviewer"})

    async def logout(self, payload: dict) -> None:
        """Blacklist the token until it expires (no-op without Redis)."""
        jti = payload.get("jti")
        if not jti or not is_redis_connected():
            return

        ttl = int(payload.get("exp", 0) - datetime.now(timezone.utc).timestamp())
        if ttl > 0:
            await jwt_blacklist.set(jti, "1", ttl=ttl)
