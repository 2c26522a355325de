"""
Tests for Finance Tracker models

Test strategy:
1. Unit tests for individual components (models, catalog, validators)
2. Storage tests against a temp file or an in-memory fake sheet
3. No real network calls in tests
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from pydantic import ValidationError

from finance_tracker.constants import PAYMENT_METHOD_OPTIONS, default_catalog
from finance_tracker.models.transaction import (
    AccountType,
    Currency,
    CustomDateRange,
    FilterPeriod,
    OperationResult,
    PaymentMethod,
    PaymentMethodCatalog,
    PeriodTotals,
    Transaction,
    TransactionInput,
    TransactionType,
    TransactionUpdate,
    UnknownPaymentMethodError,
    ValidationIssue,
    ValidationResult,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


CREATED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestTransactionModels:
    """Tests for transaction-related Pydantic models."""

    def test_transaction_input_creation(self):
        payload = TransactionInput(
            description="Sueldo",
            amount=Decimal("500"),
            type=TransactionType.INCOME,
            payment_method=PaymentMethod.EFECTIVO_BS,
            date=date(2024, 5, 1),
        )
        assert payload.amount == Decimal("500")
        assert payload.quantity == 1

    def test_description_strips_whitespace(self):
        payload = TransactionInput(
            description="  Mercado  ",
            amount=Decimal("10"),
            type=TransactionType.EXPENSE,
            payment_method=PaymentMethod.USDT,
            date=date(2024, 5, 1),
        )
        assert payload.description == "Mercado"

    def test_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValidationError):
            TransactionInput(
                amount=Decimal("-1"),
                type=TransactionType.EXPENSE,
                payment_method=PaymentMethod.USDT,
                date=date(2024, 5, 1),
            )

    def test_rejects_unknown_type(self):
        with pytest.raises(ValidationError):
            TransactionInput(
                amount=Decimal("1"),
                type="refund",
                payment_method=PaymentMethod.USDT,
                date=date(2024, 5, 1),
            )

    def test_datetime_is_truncated_to_date(self):
        """Stored timestamps with a time-of-day become plain dates."""
        payload = TransactionInput(
            amount=Decimal("1"),
            type=TransactionType.INCOME,
            payment_method=PaymentMethod.USDT,
            date="2024-05-01T23:59:00Z",
        )
        assert payload.date == date(2024, 5, 1)

    def test_from_payload_assigns_identity(self, make_payload):
        payload = make_payload(amount="42.50")
        transaction = Transaction.from_payload("abc", payload, created_at=CREATED)

        assert transaction.id == "abc"
        assert transaction.created_at == CREATED
        assert transaction.updated_at == CREATED
        assert transaction.payload() == payload

    def test_from_payload_accepts_a_transaction(self, make_transaction):
        original = make_transaction(transaction_id="old")
        copy = Transaction.from_payload("new", original, created_at=CREATED)
        assert copy.id == "new"
        assert copy.amount == original.amount

    def test_update_keeps_id_and_created_at(self, make_transaction):
        transaction = make_transaction(transaction_id="t1", amount="10")
        later = datetime(2024, 6, 1, tzinfo=timezone.utc)

        updated = TransactionUpdate(amount=Decimal("25")).apply_to(transaction, later)

        assert updated.id == "t1"
        assert updated.created_at == transaction.created_at
        assert updated.updated_at == later
        assert updated.amount == Decimal("25")
        assert updated.description == transaction.description

    def test_update_changes_only_lists_set_fields(self):
        update = TransactionUpdate(description="Nuevo")
        assert update.changes == {"description": "Nuevo"}


class TestPaymentMethodCatalog:
    """Tests for the payment method catalog."""

    def test_every_method_has_an_entry(self):
        catalog = default_catalog()
        for method in PaymentMethod:
            assert method in catalog

    def test_method_metadata(self):
        catalog = default_catalog()
        assert catalog.get(PaymentMethod.PAGO_MOVIL_BS).currency == Currency.BS
        assert catalog.get(PaymentMethod.PAGO_MOVIL_BS).account_type == AccountType.BANK
        assert catalog.get(PaymentMethod.EFECTIVO_BS).account_type == AccountType.CASH
        assert catalog.get(PaymentMethod.EFECTIVO_USD).currency == Currency.USD
        assert catalog.get(PaymentMethod.USDT).account_type == AccountType.DIGITAL

    def test_unknown_method_is_explicit(self):
        catalog = PaymentMethodCatalog(PAYMENT_METHOD_OPTIONS[:1])
        assert catalog.find(PaymentMethod.USDT) is None
        with pytest.raises(UnknownPaymentMethodError):
            catalog.get(PaymentMethod.USDT)

    def test_length(self):
        assert len(default_catalog()) == 4


class TestDerivedModels:

    def test_custom_range_complete(self):
        assert CustomDateRange(start_date=date(2024, 1, 1), end_date=date(2024, 1, 2)).is_complete
        assert not CustomDateRange(start_date=date(2024, 1, 1)).is_complete

    def test_period_totals_net(self):
        totals = PeriodTotals(currency=Currency.BS, income=Decimal("100"), expenses=Decimal("40"))
        assert totals.net == Decimal("60")

    def test_failed_operation_needs_message(self):
        with pytest.raises(ValidationError):
            OperationResult(success=False)

    def test_filter_period_values(self):
        assert [p.value for p in FilterPeriod] == ["all", "today", "week", "month", "custom"]


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.DATA_LOADED,
            description="Loaded 3 transactions",
        )
        assert event.event_id is not None
        assert event.timestamp is not None
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_is_immutable(self):
        event = AuditEvent(
            event_type=AuditEventType.DATA_LOADED,
            description="Loaded",
        )
        with pytest.raises(ValidationError):
            event.description = "Changed"

    def test_audit_event_to_log_dict(self):
        event = AuditEventBuilder.transaction_added("t1", "Sueldo", "500")
        log_dict = event.to_log_dict()

        assert log_dict["event_type"] == "transaction_added"
        assert log_dict["entity_id"] == "t1"
        assert log_dict["details"] == {"amount": "500"}
        assert log_dict["is_user_action"] is True

    def test_builder_save_failed(self):
        event = AuditEventBuilder.save_failed("set_exchange_rate", "timeout")

        assert event.event_type == AuditEventType.SAVE_FAILED
        assert event.severity == AuditSeverity.ERROR
        assert event.entity_type == "exchange_rate"
        assert event.error_message == "timeout"

    def test_builder_transaction_deleted_unknown(self):
        event = AuditEventBuilder.transaction_deleted("missing", existed=False)
        assert event.details == {"existed": False}
        assert "unknown" in event.description


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        result = ValidationResult(
            issues=[
                ValidationIssue(
                    field="payment_method",
                    issue_type="unknown_payment_method",
                    message="Unknown payment method: usdt",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert result.error_message == "Unknown payment method: usdt"

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            issues=[
                ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.is_valid is True
        assert result.warnings == ["Date in future"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
