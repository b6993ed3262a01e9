"""
Luhn Checksum Module

Mod-10 "double every second digit" checksum used to make account numbers
self-validating. Pure functions over digit sequences.
"""

from typing import List, Sequence, Union

Digits = Union[str, Sequence[int]]


def to_digits(value: Digits) -> List[int]:
    """Convert a digit string or sequence of ints into a list of digits"""
    if isinstance(value, str):
        if not value.isascii() or not value.isdigit():
            raise ValueError(f"Not a string of decimal digits: {value!r}")
        return [int(char) for char in value]

    digits = list(value)
    for digit in digits:
        if isinstance(digit, bool) or not isinstance(digit, int) or not 0 <= digit <= 9:
            raise ValueError(f"Not a decimal digit: {digit!r}")
    return digits


def _luhn_sum(digits: List[int], double_rightmost: bool) -> int:
    total = 0
    for position, digit in enumerate(reversed(digits)):
        # Position 0 is the rightmost digit
        if (position % 2 == 0) == double_rightmost:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total


def checksum_digit(digits: Digits) -> int:
    """
    Compute the check digit for a payload.

    Args:
        digits: Payload digits, without a check digit

    Returns:
        The digit that makes ``digits + [check]`` pass ``is_valid``
    """
    # Once the check digit is appended every payload position shifts by one,
    # so the rightmost payload digit is the first to be doubled.
    total = _luhn_sum(to_digits(digits), double_rightmost=True)
    return (10 - total % 10) % 10


def is_valid(digits: Digits) -> bool:
    """Check a full digit sequence whose last digit is the check digit"""
    try:
        values = to_digits(digits)
    except ValueError:
        return False
    if len(values) < 2:
        return False
    return _luhn_sum(values, double_rightmost=False) % 10 == 0
