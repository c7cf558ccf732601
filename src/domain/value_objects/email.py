"""A Value Object representing an email address in the domain.

Every component of the reset protocol keys its state by the normalized
address, so ``Email`` is the single place where trimming, lower-casing and
format checks happen.
"""

import re
from dataclasses import dataclass
from typing import ClassVar

from structlog import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Email:
    """An immutable, self-validating, normalized email address.

    Attributes:
        value: The trimmed, lower-cased address.

    Raises:
        ValueError: If the address is empty, too long or malformed.
    """

    value: str

    MAX_LENGTH: ClassVar[int] = 254
    EMAIL_PATTERN: ClassVar[re.Pattern] = re.compile(
        r"^[a-zA-Z0-9._%+'-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    )

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise TypeError("Email value must be a string.")

        normalized_value = self.value.strip().lower()
        object.__setattr__(self, "value", normalized_value)

        if not normalized_value or len(normalized_value) > self.MAX_LENGTH:
            raise ValueError("Valid email is required")
        if not self.EMAIL_PATTERN.match(normalized_value):
            raise ValueError("Valid email is required")

    def __str__(self) -> str:
        return self.value
