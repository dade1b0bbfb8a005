"""Signed session tokens issued at login."""

from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from meco_auth.config import Settings
from meco_auth.services.tokens import utcnow


class JWTService:
    """Handles session token creation and validation."""

    def __init__(self, settings: Settings) -> None:
        self.secret_key = settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM
        self.expire_minutes = settings.JWT_EXPIRE_MINUTES

    def create_token(self, user_id: int) -> str:
        """Create a token carrying the user id."""
        expire = utcnow() + timedelta(minutes=self.expire_minutes)
        payload = {
            "id": user_id,
            "sub": str(user_id),
            "exp": expire,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> dict[str, Any] | None:
        """Decode and validate a token. Returns None if invalid or expired."""
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
