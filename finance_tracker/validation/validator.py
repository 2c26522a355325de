"""
Transaction Validation

Structural checks (types, non-negative amounts, known enum values) are
already enforced by the pydantic models. This module adds the checks
that need context: the payment method catalog and the configured
sanity thresholds.

ERRORS block the write. WARNINGS are reported but let it through.

IMPORTANT: Validation NEVER silently fixes issues.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Optional

from finance_tracker.config import AppSettings
from finance_tracker.constants import default_catalog
from finance_tracker.models.transaction import (
    PaymentMethodCatalog,
    TransactionInput,
    ValidationIssue,
    ValidationResult,
)


class TransactionValidator:
    """
    Validates a transaction payload before it reaches storage.
    """

    def __init__(
        self,
        catalog: Optional[PaymentMethodCatalog] = None,
        max_amount: Decimal = Decimal("100000000"),
        future_date_tolerance_days: int = 31,
        clock: Callable[[], date] = date.today,
    ):
        self._catalog = catalog or default_catalog()
        self._max_amount = max_amount
        self._future_tolerance = timedelta(days=future_date_tolerance_days)
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        catalog: Optional[PaymentMethodCatalog] = None,
        clock: Callable[[], date] = date.today,
    ) -> "TransactionValidator":
        return cls(
            catalog=catalog,
            max_amount=settings.max_transaction_amount,
            future_date_tolerance_days=settings.future_date_tolerance_days,
            clock=clock,
        )

    def validate(self, payload: TransactionInput) -> ValidationResult:
        """Run every check and collect the issues."""
        issues: list[ValidationIssue] = []
        issues.extend(self._check_payment_method(payload))
        issues.extend(self._check_amount(payload))
        issues.extend(self._check_date(payload))
        return ValidationResult(issues=issues)

    def _check_payment_method(self, payload: TransactionInput) -> list[ValidationIssue]:
        if payload.payment_method in self._catalog:
            return []
        return [
            ValidationIssue(
                field="payment_method",
                issue_type="unknown_payment_method",
                message=f"Unknown payment method: {payload.payment_method.value}",
                severity="error",
            )
        ]

    def _check_amount(self, payload: TransactionInput) -> list[ValidationIssue]:
        if payload.amount == 0:
            return [
                ValidationIssue(
                    field="amount",
                    issue_type="zero_amount",
                    message="Amount is zero; the transaction will not change any balance",
                    severity="warning",
                )
            ]
        if payload.amount > self._max_amount:
            return [
                ValidationIssue(
                    field="amount",
                    issue_type="suspicious_value",
                    message=f"Amount {payload.amount} is unusually large (limit {self._max_amount})",
                    severity="warning",
                )
            ]
        return []

    def _check_date(self, payload: TransactionInput) -> list[ValidationIssue]:
        latest = self._clock() + self._future_tolerance
        if payload.date <= latest:
            return []
        return [
            ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date {payload.date.isoformat()} is far in the future",
                severity="warning",
            )
        ]
