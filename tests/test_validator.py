"""Tests for TransactionValidator."""

from datetime import date, timedelta
from decimal import Decimal

from finance_tracker.constants import PAYMENT_METHOD_OPTIONS
from finance_tracker.models.transaction import PaymentMethod, PaymentMethodCatalog
from finance_tracker.validation import TransactionValidator

from conftest import TODAY


def today():
    return TODAY


class TestTransactionValidator:

    def test_valid_payload(self, make_payload):
        result = TransactionValidator(clock=today).validate(make_payload())
        assert result.is_valid
        assert result.issues == []

    def test_unknown_payment_method_is_an_error(self, make_payload):
        catalog = PaymentMethodCatalog(PAYMENT_METHOD_OPTIONS[:1])
        validator = TransactionValidator(catalog=catalog, clock=today)

        result = validator.validate(make_payload(payment_method=PaymentMethod.USDT))

        assert not result.is_valid
        assert result.issues[0].issue_type == "unknown_payment_method"
        assert "usdt" in result.error_message

    def test_zero_amount_is_a_warning(self, make_payload):
        result = TransactionValidator(clock=today).validate(make_payload(amount="0"))
        assert result.is_valid
        assert result.issues[0].issue_type == "zero_amount"

    def test_large_amount_is_a_warning(self, make_payload):
        validator = TransactionValidator(max_amount=Decimal("1000"), clock=today)
        result = validator.validate(make_payload(amount="1000.01"))
        assert result.is_valid
        assert result.issues[0].issue_type == "suspicious_value"

    def test_far_future_date_is_a_warning(self, make_payload):
        validator = TransactionValidator(future_date_tolerance_days=7, clock=today)

        near = validator.validate(make_payload(day=TODAY + timedelta(days=7)))
        far = validator.validate(make_payload(day=TODAY + timedelta(days=8)))

        assert near.issues == []
        assert far.is_valid
        assert [i.issue_type for i in far.issues] == ["future_date"]

    def test_past_dates_are_fine(self, make_payload):
        result = TransactionValidator(clock=today).validate(make_payload(day=date(2001, 1, 1)))
        assert result.issues == []

    def test_from_settings(self, app_settings, make_payload):
        app_settings.max_transaction_amount = Decimal("5")
        validator = TransactionValidator.from_settings(app_settings, clock=today)
        assert validator.validate(make_payload(amount="6")).warnings
