"""Account persistence."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from meco_auth.models.user import AccountStatus, User
from meco_auth.services.email_address import EmailAddress


class DuplicateEmail(Exception):
    """Another row already uses this email."""


class AccountStore:
    """Reads and writes User rows.

    Token pairs are always written and cleared together. Consuming a token is
    a single conditional UPDATE that also applies the dependent change, so two
    concurrent requests presenting the same token cannot both succeed.
    """

    def create(
        self,
        db: Session,
        name: str,
        email: EmailAddress,
        password_hash: str,
        status: AccountStatus,
    ) -> User:
        """Insert a new account. Raises DuplicateEmail if the email is taken."""
        user = User(name=name, email=str(email), password_hash=password_hash, status=status)
        db.add(user)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise DuplicateEmail(str(email)) from e
        db.refresh(user)
        return user

    def get_by_email(self, db: Session, email: EmailAddress) -> User | None:
        return db.scalars(select(User).where(User.email == str(email))).first()

    def get_by_confirm_token(self, db: Session, token: str) -> User | None:
        return db.scalars(select(User).where(User.confirm_email_token == token)).first()

    def get_by_reset_token(self, db: Session, token: str) -> User | None:
        return db.scalars(select(User).where(User.reset_password_token == token)).first()

    def set_confirm_token(self, db: Session, user_id: int, token: str, expires_at: datetime) -> None:
        """Store a confirmation token, replacing any outstanding one."""
        db.execute(
            update(User)
            .where(User.id == user_id)
            .values(confirm_email_token=token, confirm_email_expires_at=expires_at)
        )
        db.commit()

    def set_reset_token(self, db: Session, user_id: int, token: str, expires_at: datetime) -> None:
        """Store a reset token, replacing any outstanding one."""
        db.execute(
            update(User)
            .where(User.id == user_id)
            .values(reset_password_token=token, reset_password_expires_at=expires_at)
        )
        db.commit()

    def consume_confirm_token(
        self,
        db: Session,
        user_id: int,
        token: str,
        now: datetime,
        from_status: AccountStatus,
        to_status: AccountStatus,
    ) -> bool:
        """Clear the confirmation pair and set the new status in one statement.

        Returns False if the token was already used, replaced, expired, or the
        status moved on in the meantime.
        """
        result = db.execute(
            update(User)
            .where(
                User.id == user_id,
                User.confirm_email_token == token,
                User.confirm_email_expires_at > now,
                User.status == from_status,
            )
            .values(status=to_status, confirm_email_token=None, confirm_email_expires_at=None)
        )
        db.commit()
        return result.rowcount == 1

    def consume_reset_token(self, db: Session, user_id: int, token: str, now: datetime, password_hash: str) -> bool:
        """Clear the reset pair and replace the password hash in one statement."""
        result = db.execute(
            update(User)
            .where(
                User.id == user_id,
                User.reset_password_token == token,
                User.reset_password_expires_at > now,
            )
            .values(password_hash=password_hash, reset_password_token=None, reset_password_expires_at=None)
        )
        db.commit()
        return result.rowcount == 1

    def set_status(self, db: Session, user_id: int, from_status: AccountStatus, to_status: AccountStatus) -> bool:
        """Apply an administrative status change if the row is still in ``from_status``."""
        result = db.execute(
            update(User).where(User.id == user_id, User.status == from_status).values(status=to_status)
        )
        db.commit()
        return result.rowcount == 1
