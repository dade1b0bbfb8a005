"""Account flows: registration, login, confirmation and password reset."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from meco_auth.config import Settings, get_settings
from meco_auth.exceptions import (
    DependencyFailure,
    IllegalTransition,
    InvalidCredentials,
    InvalidOrExpired,
    NotFound,
    ValidationError,
)
from meco_auth.models.user import AccountStatus, User
from meco_auth.services.email_address import EmailAddress, InvalidEmailAddress
from meco_auth.services.jwt import JWTService
from meco_auth.services.lifecycle import INITIAL_STATUS, AccountLifecycle
from meco_auth.services.notifier import NotificationError, Notifier, build_notifier
from meco_auth.services.password import CredentialHasher
from meco_auth.services.store import AccountStore, DuplicateEmail
from meco_auth.services.tokens import TokenCheck, TokenIssuer, utcnow

logger = logging.getLogger("meco_auth")

MIN_PASSWORD_LENGTH = 8
MIN_NAME_LENGTH = 3


@dataclass
class LoginResult:
    """Session token and profile returned by a successful login."""

    token: str
    name: str
    email: str
    github_username: str | None = None


class AuthFlows:
    """Orchestrates the account lifecycle over the store, hasher, token issuer and notifier."""

    def __init__(
        self,
        settings: Settings,
        notifier: Notifier,
        store: AccountStore | None = None,
        hasher: CredentialHasher | None = None,
        issuer: TokenIssuer | None = None,
        lifecycle: AccountLifecycle | None = None,
        sessions: JWTService | None = None,
    ) -> None:
        self.settings = settings
        self.notifier = notifier
        self.store = store or AccountStore()
        self.hasher = hasher or CredentialHasher(rounds=settings.BCRYPT_ROUNDS)
        self.issuer = issuer or TokenIssuer()
        self.lifecycle = lifecycle or AccountLifecycle()
        self.sessions = sessions or JWTService(settings)
        self.token_ttl = timedelta(minutes=settings.TOKEN_TTL_MINUTES)

    # --- Registration ---

    def register(self, db: Session, name: str | None, email: Any, password: str | None) -> User:
        """Create an unconfirmed account.

        The confirmation email is not sent here; callers schedule
        :meth:`send_registration_confirmation` once they have answered.
        """
        if not name or not email or not password:
            raise ValidationError("Please fill in username, email and password!")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        if len(name) < MIN_NAME_LENGTH:
            raise ValidationError(f"Name must be at least {MIN_NAME_LENGTH} characters long")
        if not isinstance(email, str):
            raise ValidationError("email has not the right format")
        address = self._parse_email(email)

        password_hash = self.hasher.hash(password)
        try:
            user = self.store.create(db, name, address, password_hash, INITIAL_STATUS)
        except DuplicateEmail:
            raise ValidationError("Email already registered") from None
        except SQLAlchemyError:
            logger.exception("Error during user registration for %s", address)
            raise DependencyFailure("Registration failed") from None

        logger.info("Registered user %s <%s>", user.id, address)
        return user

    def send_registration_confirmation(self, session_factory: Callable[[], Session], email: str) -> None:
        """Issue and mail the first confirmation token. Failures are only logged."""
        address = EmailAddress(email)
        db = session_factory()
        try:
            user = self.store.get_by_email(db, address)
            if user is None:
                logger.error("Email not found after registration: %s", address)
                return
            issued = self.issuer.issue(self.token_ttl)
            self.store.set_confirm_token(db, user.id, issued.token, issued.expires_at)
            self._send_confirm_email(address, issued.token)
            logger.info("Confirmation email sent to %s", address)
        except Exception:
            logger.exception("Error sending confirmation after registration for %s", address)
        finally:
            db.close()

    # --- Login ---

    def login(self, db: Session, email: Any, password: str | None) -> LoginResult:
        """Check credentials and account status, then issue a session token."""
        if not email or not password or not isinstance(email, str):
            raise ValidationError("Email and password are required")
        address = self._parse_email(email)

        try:
            user = self.store.get_by_email(db, address)
        except SQLAlchemyError:
            logger.exception("Error during login for %s", address)
            raise DependencyFailure("Login failed") from None

        if user is None:
            raise InvalidCredentials("Invalid email")
        if not self.hasher.verify(password, user.password_hash):
            raise InvalidCredentials("Invalid password")

        self.lifecycle.login_gate(user.status)

        token = self.sessions.create_token(user_id=user.id)
        return LoginResult(token=token, name=user.name, email=user.email, github_username=user.github_username)

    def verify_session(self, token: str) -> dict[str, Any] | None:
        return self.sessions.decode_token(token)

    # --- Password reset ---

    def forgot_password(self, db: Session, email: Any) -> None:
        """Issue a reset token for an existing account and mail the link."""
        address = self._require_email(email)
        try:
            user = self.store.get_by_email(db, address)
            if user is None:
                raise NotFound("Email not found")
            issued = self.issuer.issue(self.token_ttl)
            self.store.set_reset_token(db, user.id, issued.token, issued.expires_at)
            self._send_reset_email(address, issued.token)
        except (SQLAlchemyError, NotificationError):
            logger.exception("Error in forgot_password for %s", address)
            raise DependencyFailure("Server error") from None

    def reset_password(self, db: Session, token: str | None, new_password: str | None) -> None:
        """Replace the password of the account holding ``token`` and burn the token."""
        if not token or not new_password:
            raise ValidationError("Token and new password are required")

        now = utcnow()
        try:
            user = self.store.get_by_reset_token(db, token)
            if user is None:
                raise InvalidOrExpired("Invalid or expired token")
            check = self.issuer.verify(user.reset_password_token, user.reset_password_expires_at, token, now)
            if check is not TokenCheck.VALID:
                raise InvalidOrExpired("Invalid or expired token")

            user_id = user.id
            password_hash = self.hasher.hash(new_password)
            if not self.store.consume_reset_token(db, user_id, token, now, password_hash):
                raise InvalidOrExpired("Invalid or expired token")
        except SQLAlchemyError:
            logger.exception("Error in reset_password")
            raise DependencyFailure("Server error") from None

        logger.info("Password reset for user %s", user_id)

    # --- Email confirmation ---

    def confirm_email(self, db: Session, token: str | None) -> None:
        """Move the account holding ``token`` to confirmed and burn the token."""
        if not token:
            raise ValidationError("Token is required")

        now = utcnow()
        try:
            user = self.store.get_by_confirm_token(db, token)
            if user is None:
                raise InvalidOrExpired("Invalid or expired token")
            check = self.issuer.verify(user.confirm_email_token, user.confirm_email_expires_at, token, now)
            if check is not TokenCheck.VALID:
                raise InvalidOrExpired("Invalid or expired token")

            user_id, current = user.id, user.status
            try:
                target = self.lifecycle.confirm(current)
            except IllegalTransition as e:
                logger.warning("Confirmation token presented for user %s: %s", user_id, e)
                raise InvalidOrExpired("Invalid or expired token") from None

            if not self.store.consume_confirm_token(db, user_id, token, now, current, target):
                raise InvalidOrExpired("Invalid or expired token")
        except SQLAlchemyError:
            logger.exception("Error in confirm_email")
            raise DependencyFailure("Server error") from None

        logger.info("Email confirmed for user %s", user_id)

    def resend_confirmation(self, db: Session, email: Any) -> None:
        """Re-issue the confirmation token of an unconfirmed account."""
        address = self._require_email(email)
        try:
            user = self.store.get_by_email(db, address)
            if user is None or not self.lifecycle.can_resend_confirmation(user.status):
                raise ValidationError("User not found or not unconfirmed")
            issued = self.issuer.issue(self.token_ttl)
            self.store.set_confirm_token(db, user.id, issued.token, issued.expires_at)
            self._send_confirm_email(address, issued.token)
        except (SQLAlchemyError, NotificationError):
            logger.exception("Error sending confirmation email to %s", address)
            raise DependencyFailure("Failed to send confirmation email") from None

    # --- Administration ---

    def change_status(self, db: Session, email: str, target: AccountStatus) -> User:
        """Apply an administrative status change such as suspension or removal.

        Raises NotFound for an unknown email and IllegalTransition for a move
        the lifecycle does not allow.
        """
        address = self._parse_email(email)
        user = self.store.get_by_email(db, address)
        if user is None:
            raise NotFound("Email not found")
        current = user.status
        self.lifecycle.transition(current, target)
        if not self.store.set_status(db, user.id, current, target):
            raise IllegalTransition(current, target)
        logger.info("Status of user %s changed from %s to %s", user.id, current.value, target.value)
        db.refresh(user)
        return user

    # --- Helpers ---

    def _parse_email(self, email: str) -> EmailAddress:
        try:
            return EmailAddress(email)
        except InvalidEmailAddress:
            raise ValidationError("Invalid email address") from None

    def _require_email(self, email: Any) -> EmailAddress:
        if not email or not isinstance(email, str):
            raise ValidationError("User email is required")
        return self._parse_email(email)

    def _send_confirm_email(self, address: EmailAddress, token: str) -> None:
        link = f"{self.settings.FRONTEND_URL}/confirmedEmail?token={token}"
        self.notifier.send(
            str(address),
            "Confirm Email",
            f"You registered for Mini-Meco. Click the link to confirm your email: {link}",
        )

    def _send_reset_email(self, address: EmailAddress, token: str) -> None:
        link = f"{self.settings.FRONTEND_URL}/resetPassword?token={token}"
        self.notifier.send(
            str(address),
            "Password Reset",
            f"You requested a password reset. Click the link to reset your password: {link}",
        )


_auth_flows: AuthFlows | None = None


def get_auth_flows() -> AuthFlows:
    """Get singleton auth flows instance."""
    global _auth_flows
    if _auth_flows is None:
        settings = get_settings()
        for warning in settings.validate():
            logger.warning(warning)
        _auth_flows = AuthFlows(settings, build_notifier(settings))
    return _auth_flows
