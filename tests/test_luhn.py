"""
Tests for the Luhn checksum module
"""

import pytest

from personal_ledger.luhn import checksum_digit, is_valid, to_digits


class TestChecksumDigit:
    """Test check digit computation"""

    def test_known_payload(self):
        """Test the textbook example payload"""
        assert checksum_digit("7992739871") == 3

    def test_card_style_payload(self):
        """Test a well-known 16 digit test number"""
        assert checksum_digit("411111111111111") == 1

    def test_accepts_digit_sequences(self):
        """Test that lists of ints and strings agree"""
        assert checksum_digit([7, 9, 9, 2, 7, 3, 9, 8, 7, 1]) == checksum_digit("7992739871")

    def test_all_zero_payload(self):
        """Test that an all-zero payload needs a zero check digit"""
        assert checksum_digit("000000000000000") == 0

    def test_appended_digit_is_valid(self):
        """Test that appending the check digit always yields a valid number"""
        for payload in ["1", "12", "123456789", "987654321012345", "5" * 15]:
            assert is_valid(payload + str(checksum_digit(payload)))

    def test_rejects_non_digits(self):
        """Test that non-digit input is rejected"""
        with pytest.raises(ValueError):
            checksum_digit("12a4")
        with pytest.raises(ValueError):
            checksum_digit([1, 10, 3])


class TestIsValid:
    """Test full-number validation"""

    def test_valid_numbers(self):
        assert is_valid("79927398713")
        assert is_valid("4111111111111111")
        assert is_valid([7, 9, 9, 2, 7, 3, 9, 8, 7, 1, 3])

    def test_wrong_check_digit(self):
        assert not is_valid("79927398710")
        assert not is_valid("4111111111111112")

    def test_detects_every_single_digit_error(self):
        """Test that changing any one digit breaks the checksum"""
        number = "79927398713"
        for position, original in enumerate(number):
            for replacement in "0123456789":
                if replacement == original:
                    continue
                altered = number[:position] + replacement + number[position + 1:]
                assert not is_valid(altered), altered

    def test_detects_adjacent_transposition(self):
        """Test that swapping two adjacent differing digits is caught"""
        assert not is_valid("97927398713")

    def test_malformed_input_is_invalid(self):
        """Test that empty, too short and non-digit input are simply invalid"""
        assert not is_valid("")
        assert not is_valid("7")
        assert not is_valid("7992-7398713")
        assert not is_valid("٧٩٩٢٧٣٩٨٧١٣")


def test_to_digits():
    assert to_digits("0123") == [0, 1, 2, 3]
    assert to_digits((4, 5)) == [4, 5]
    with pytest.raises(ValueError):
        to_digits([True, 1])
