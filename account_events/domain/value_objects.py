"""
Value Objects for type-safe ID handling.

Value objects are immutable, self-validating, and compared by value.
AccountId wraps the UUID assigned to an Account when it is created, so
a raw string from a URL or a database row can't be mixed up with an
identifier that has already been validated.
"""

import uuid
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class AccountId:
    """
    Account identifier value object.

    Format: canonical UUID4 string
    Example: 3f2b6a9e-8c1d-4e57-9a0b-2c6d1f4e7a13

    Used for:
    - Aggregate identity (assigned once, never reassigned)
    - Database primary key (accounts.id)
    - API path parameters and responses
    """

    value: uuid.UUID

    def __post_init__(self):
        if not isinstance(self.value, uuid.UUID):
            raise ValueError(
                f"Invalid AccountId value: {self.value!r}. "
                f"Must be a UUID."
            )

    @classmethod
    def new(cls) -> "AccountId":
        """Generate a fresh identifier for a new account"""
        return cls(uuid.uuid4())

    @classmethod
    def parse(cls, raw: Union[str, uuid.UUID]) -> "AccountId":
        """
        Build an AccountId from its string form.

        Raises:
            ValueError: If raw is not a valid UUID
        """
        if isinstance(raw, uuid.UUID):
            return cls(raw)
        try:
            return cls(uuid.UUID(str(raw)))
        except (ValueError, AttributeError):
            raise ValueError(f"Invalid AccountId format: {raw!r}")

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"AccountId('{self.value}')"
