"""Account status state machine.

States and the moves between them::

    unconfirmed --confirm--> confirmed --admin--> suspended --admin--> removed
                                       \\--admin---------------------> removed

Nothing leads back to ``unconfirmed``. Registration creates accounts in
``unconfirmed``; only a confirmation token moves them on. Suspension and
removal are administrative and happen outside the request flows.
"""

from meco_auth.exceptions import AccountStateRejected, IllegalTransition
from meco_auth.models.user import AccountStatus

TRANSITIONS: dict[AccountStatus, frozenset[AccountStatus]] = {
    AccountStatus.UNCONFIRMED: frozenset({AccountStatus.CONFIRMED}),
    AccountStatus.CONFIRMED: frozenset({AccountStatus.SUSPENDED, AccountStatus.REMOVED}),
    AccountStatus.SUSPENDED: frozenset({AccountStatus.REMOVED}),
    AccountStatus.REMOVED: frozenset(),
}

INITIAL_STATUS = AccountStatus.UNCONFIRMED


class AccountLifecycle:
    """Owns the legal status transitions and the login gate."""

    def transition(self, current: AccountStatus, target: AccountStatus) -> AccountStatus:
        """Return ``target`` if the move is allowed, raise IllegalTransition otherwise."""
        if target not in TRANSITIONS[AccountStatus(current)]:
            raise IllegalTransition(current, target)
        return target

    def confirm(self, current: AccountStatus) -> AccountStatus:
        return self.transition(current, AccountStatus.CONFIRMED)

    def login_gate(self, status: AccountStatus) -> None:
        """Raise AccountStateRejected unless the account may log in."""
        if status == AccountStatus.CONFIRMED:
            return
        if status == AccountStatus.UNCONFIRMED:
            raise AccountStateRejected("Email not confirmed. Please contact system admin.")
        if status == AccountStatus.SUSPENDED:
            raise AccountStateRejected("User account is suspended. Please contact system admin.")
        if status == AccountStatus.REMOVED:
            raise AccountStateRejected("User account is removed. Please contact system admin.")
        raise ValueError(f"Unhandled account status {status!r}")

    def can_resend_confirmation(self, status: AccountStatus) -> bool:
        return status == AccountStatus.UNCONFIRMED
