"""Tests for the ledger error hierarchy."""

from personal_ledger.errors import (
    AccountNotFoundError,
    DuplicateKeyError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidOperationError,
    LedgerError,
    UnauthorizedError,
)


class TestExceptionHierarchy:
    """Test exception inheritance and messages"""

    def test_all_errors_are_ledger_errors(self) -> None:
        errors = [
            AccountNotFoundError("123"),
            UnauthorizedError("123"),
            InsufficientFundsError("123", 0, 5),
            InvalidOperationError("no"),
            InvalidAmountError("-1"),
            DuplicateKeyError("dup"),
        ]
        for err in errors:
            assert isinstance(err, LedgerError)
            assert isinstance(err, Exception)

    def test_not_found_message(self) -> None:
        err = AccountNotFoundError("79927398713")
        assert str(err) == "Account 79927398713 not found"
        assert err.account_number == "79927398713"

    def test_insufficient_funds_details(self) -> None:
        err = InsufficientFundsError("79927398713", 10, 25)
        assert err.balance == 10
        assert err.requested == 25
        assert "balance 10, requested 25" in str(err)

    def test_invalid_amount_keeps_input(self) -> None:
        err = InvalidAmountError("abc")
        assert err.amount == "abc"
        assert "'abc'" in str(err)

    def test_unauthorized_does_not_leak_pin(self) -> None:
        assert "pin" in str(UnauthorizedError("79927398713")).lower()
        assert UnauthorizedError("79927398713").account_number == "79927398713"
