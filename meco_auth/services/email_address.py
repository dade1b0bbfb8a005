"""Email address value type."""

from email_validator import EmailNotValidError, validate_email


class InvalidEmailAddress(ValueError):
    """The value is not a syntactically valid email address."""


class EmailAddress:
    """A validated, canonical email address.

    The canonical form is the validator's normalized address lower-cased as a
    whole, so ``Alice@Example.COM`` and ``alice@example.com`` store and compare
    identically. Deliverability (DNS) is not checked.
    """

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        if not isinstance(value, str):
            raise InvalidEmailAddress(f"Expected a string, got {type(value).__name__}")
        try:
            result = validate_email(value.strip(), check_deliverability=False)
        except EmailNotValidError as e:
            raise InvalidEmailAddress(str(e)) from e
        self._value = result.normalized.lower()

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"EmailAddress({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, EmailAddress):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)
