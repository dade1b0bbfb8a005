"""Single-use confirmation and reset tokens."""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

TOKEN_BYTES = 20


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching what the database stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TokenCheck(str, Enum):
    """Outcome of comparing a presented token with the stored one."""

    VALID = "valid"
    EXPIRED = "expired"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime


class TokenIssuer:
    """Generates opaque random tokens with a deadline and checks them."""

    def issue(self, ttl: timedelta, now: datetime | None = None) -> IssuedToken:
        """Create a 160-bit hex token that expires ``ttl`` from ``now``."""
        now = now or utcnow()
        return IssuedToken(token=secrets.token_hex(TOKEN_BYTES), expires_at=now + ttl)

    def verify(
        self,
        stored_token: str | None,
        stored_expires_at: datetime | None,
        presented_token: str | None,
        now: datetime,
    ) -> TokenCheck:
        """Compare the full token strings, then the deadline.

        A matching token whose deadline is at or before ``now`` is EXPIRED.
        """
        if not stored_token or not presented_token:
            return TokenCheck.MISMATCH
        if not secrets.compare_digest(stored_token.encode("utf-8"), presented_token.encode("utf-8")):
            return TokenCheck.MISMATCH
        if stored_expires_at is None or stored_expires_at <= now:
            return TokenCheck.EXPIRED
        return TokenCheck.VALID
