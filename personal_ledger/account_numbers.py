"""
Account Number Generation Module

Produces random, Luhn-valid account numbers and random PINs. Uniqueness is
not checked here; the ledger engine checks candidates against the store.
"""

import secrets
from typing import Optional, Protocol

from .luhn import checksum_digit

DEFAULT_ACCOUNT_NUMBER_LENGTH = 16
DEFAULT_PIN_LENGTH = 6


class RandomSource(Protocol):
    """Anything that can draw a uniform integer in ``[0, n)``"""

    def randrange(self, stop: int) -> int:
        ...


class AccountNumberGenerator:
    """
    Generates account numbers of a fixed length.

    The last digit is the Luhn check digit over the preceding random payload
    digits, so every generated number is valid by construction.
    """

    def __init__(
        self,
        length: int = DEFAULT_ACCOUNT_NUMBER_LENGTH,
        rng: Optional[RandomSource] = None
    ):
        if length < 2:
            raise ValueError("Account numbers need at least one payload digit and a check digit")
        self.length = length
        self.rng = rng if rng is not None else secrets.SystemRandom()

    def _random_digits(self, count: int) -> str:
        return "".join(str(self.rng.randrange(10)) for _ in range(count))

    def generate(self) -> str:
        """Generate a new checksum-valid account number"""
        payload = self._random_digits(self.length - 1)
        return f"{payload}{checksum_digit(payload)}"

    def generate_pin(self, length: int = DEFAULT_PIN_LENGTH) -> str:
        """Generate a random PIN of ``length`` digits"""
        if length < 1:
            raise ValueError("PIN length must be positive")
        return self._random_digits(length)
