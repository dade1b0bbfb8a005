"""Errors raised by the account flows.

Each error carries the message shown to the client and the HTTP status the
router answers with.
"""


class AuthError(Exception):
    """Base class for flow errors that map directly onto a response."""

    status_code: int = 400

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AuthError):
    """Missing or malformed input."""


class NotFound(AuthError):
    """No row matches the given email."""

    status_code = 404


class InvalidOrExpired(AuthError):
    """A confirmation or reset token is unknown, already used, or expired."""


class InvalidCredentials(AuthError):
    """Unknown email or wrong password at login."""


class AccountStateRejected(AuthError):
    """The account status does not allow the requested action."""


class DependencyFailure(AuthError):
    """The store or the notifier failed. The message stays generic."""

    status_code = 500


class IllegalTransition(Exception):
    """An account status change that the lifecycle does not allow."""

    def __init__(self, current: object, target: object) -> None:
        super().__init__(
            f"Cannot move account from '{getattr(current, 'value', current)}' to '{getattr(target, 'value', target)}'"
        )
        self.current = current
        self.target = target
