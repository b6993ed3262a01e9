"""
Tests for account number and PIN generation
"""

import random

import pytest

from personal_ledger.account_numbers import AccountNumberGenerator
from personal_ledger.luhn import is_valid


class ConstantRandom:
    """Randomness source that always draws the same digit"""

    def __init__(self, digit: int):
        self.digit = digit

    def randrange(self, stop: int) -> int:
        assert stop == 10
        return self.digit


class TestAccountNumberGenerator:
    """Test AccountNumberGenerator"""

    def test_generated_numbers_are_valid(self, rng):
        """Test that every generated number passes the checksum"""
        generator = AccountNumberGenerator(rng=rng)
        for _ in range(500):
            number = generator.generate()
            assert len(number) == 16
            assert number.isdigit()
            assert is_valid(number)

    def test_custom_length(self, rng):
        """Test that the configured length is honoured"""
        generator = AccountNumberGenerator(length=8, rng=rng)
        number = generator.generate()
        assert len(number) == 8
        assert is_valid(number)

    def test_minimum_length(self):
        """Test the smallest possible account number"""
        generator = AccountNumberGenerator(length=2, rng=ConstantRandom(7))
        assert generator.generate() == "75"

    def test_too_short_length_rejected(self):
        with pytest.raises(ValueError):
            AccountNumberGenerator(length=1)

    def test_uses_injected_randomness(self):
        """Test that payload digits come from the injected source"""
        generator = AccountNumberGenerator(rng=ConstantRandom(0))
        assert generator.generate() == "0" * 16

    def test_seeded_generators_repeat(self):
        """Test that equal seeds give equal numbers"""
        first = AccountNumberGenerator(rng=random.Random(7))
        second = AccountNumberGenerator(rng=random.Random(7))
        assert [first.generate() for _ in range(5)] == [second.generate() for _ in range(5)]

    def test_default_source_produces_distinct_numbers(self):
        """Test the system randomness default"""
        generator = AccountNumberGenerator()
        numbers = {generator.generate() for _ in range(100)}
        assert len(numbers) == 100
        assert all(is_valid(number) for number in numbers)

    def test_payload_digits_cover_all_values(self, rng):
        """Test that every digit shows up in payload positions"""
        generator = AccountNumberGenerator(rng=rng)
        seen = set()
        for _ in range(50):
            seen.update(generator.generate()[:-1])
        assert seen == set("0123456789")


class TestPinGeneration:
    """Test PIN generation"""

    def test_default_pin_is_six_digits(self, rng):
        pin = AccountNumberGenerator(rng=rng).generate_pin()
        assert len(pin) == 6
        assert pin.isdigit()

    def test_pin_keeps_leading_zeros(self):
        assert AccountNumberGenerator(rng=ConstantRandom(0)).generate_pin() == "000000"

    def test_custom_pin_length(self, rng):
        assert len(AccountNumberGenerator(rng=rng).generate_pin(4)) == 4

    def test_invalid_pin_length(self, rng):
        with pytest.raises(ValueError):
            AccountNumberGenerator(rng=rng).generate_pin(0)
