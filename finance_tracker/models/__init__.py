"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker system.
All data flowing through the system must conform to these schemas.
"""

from finance_tracker.models.transaction import (
    AccountType,
    Currency,
    CustomDateRange,
    FilterPeriod,
    FinancialSummary,
    ForeignCurrencySummary,
    LocalCurrencySummary,
    OperationResult,
    PaymentMethod,
    PaymentMethodCatalog,
    PaymentMethodOption,
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

__all__ = [
    # Transaction models
    "AccountType",
    "Currency",
    "CustomDateRange",
    "FilterPeriod",
    "FinancialSummary",
    "ForeignCurrencySummary",
    "LocalCurrencySummary",
    "OperationResult",
    "PaymentMethod",
    "PaymentMethodCatalog",
    "PaymentMethodOption",
    "PeriodTotals",
    "Transaction",
    "TransactionInput",
    "TransactionType",
    "TransactionUpdate",
    "UnknownPaymentMethodError",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
