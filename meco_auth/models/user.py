"""User model."""

from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy import Enum as SAEnum

from meco_auth.database import Base
from meco_auth.services.tokens import utcnow


class AccountStatus(str, Enum):
    """Coarse account state gating login."""

    UNCONFIRMED = "unconfirmed"
    CONFIRMED = "confirmed"
    SUSPENDED = "suspended"
    REMOVED = "removed"


class User(Base):
    """Registered account."""

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(256), nullable=False)
    email = Column(String(256), unique=True, nullable=False, index=True)
    password_hash = Column(String(256), nullable=False)
    status = Column(
        SAEnum(AccountStatus, name="account_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AccountStatus.UNCONFIRMED,
    )
    confirm_email_token = Column(String(64), nullable=True, index=True)
    confirm_email_expires_at = Column(DateTime, nullable=True)
    reset_password_token = Column(String(64), nullable=True, index=True)
    reset_password_expires_at = Column(DateTime, nullable=True)
    github_username = Column(String(256), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
