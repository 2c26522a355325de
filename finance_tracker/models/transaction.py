"""
Core Data Models for Finance Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for both storage backends and for logging
4. Keep money exact (Decimal, never float)

DESIGN DECISION: The caller owns the payload fields (description, amount,
type, payment method, date, quantity). The storage adapter owns the identity
and audit fields (id, created_at, updated_at). The two are separate models so
a caller can never hand-craft an id or a timestamp.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Iterable, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Kind of financial event.

    INCOME and ADJUSTMENT both increase the balance they touch,
    EXPENSE decreases it. The amount itself is always non-negative.
    """
    INCOME = "income"
    EXPENSE = "expense"
    ADJUSTMENT = "adjustment"

    @property
    def is_inflow(self) -> bool:
        return self in (TransactionType.INCOME, TransactionType.ADJUSTMENT)


class Currency(str, Enum):
    """Supported currencies. BS is local, USD is foreign."""
    BS = "Bs"
    USD = "USD"


class AccountType(str, Enum):
    """Balance bucket a payment method feeds."""
    CASH = "cash"
    BANK = "bank"
    DIGITAL = "digital"


class PaymentMethod(str, Enum):
    """
    Fixed set of payment methods.

    Each one maps to exactly one (currency, account type) pair
    through the payment method catalog.
    """
    PAGO_MOVIL_BS = "pago_movil_bs"
    EFECTIVO_BS = "efectivo_bs"
    EFECTIVO_USD = "efectivo_usd"
    USDT = "usdt"


class FilterPeriod(str, Enum):
    """Time window used to filter transactions."""
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    CUSTOM = "custom"


# =============================================================================
# PAYMENT METHOD CATALOG
# =============================================================================

class UnknownPaymentMethodError(KeyError):
    """Payment method has no entry in the catalog."""

    def __init__(self, method: str):
        super().__init__(method)
        self.method = method

    def __str__(self) -> str:
        return f"Unknown payment method: {self.method}"


class PaymentMethodOption(BaseModel):
    """Static metadata for one payment method."""
    model_config = ConfigDict(frozen=True)

    id: PaymentMethod
    label: str
    currency: Currency
    account_type: AccountType


class PaymentMethodCatalog:
    """
    Lookup table from payment method to its metadata.

    Built once at startup. Unknown methods are an explicit case:
    find() returns None, get() raises UnknownPaymentMethodError.
    """

    def __init__(self, options: Iterable[PaymentMethodOption]):
        self._options = {option.id: option for option in options}

    def find(self, method: PaymentMethod) -> Optional[PaymentMethodOption]:
        return self._options.get(method)

    def get(self, method: PaymentMethod) -> PaymentMethodOption:
        option = self.find(method)
        if option is None:
            raise UnknownPaymentMethodError(getattr(method, "value", str(method)))
        return option

    def __contains__(self, method: object) -> bool:
        return method in self._options

    def __iter__(self):
        return iter(self._options.values())

    def __len__(self) -> int:
        return len(self._options)


# =============================================================================
# TRANSACTION MODELS
# =============================================================================

def _to_calendar_date(value):
    """Strip any time-of-day a stored value carries."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10:
        # "2024-05-01T13:45:00Z" and friends
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
    return value


TransactionDate = Annotated[date, BeforeValidator(_to_calendar_date)]

PAYLOAD_FIELDS = frozenset(
    {"description", "amount", "type", "payment_method", "date", "quantity"}
)


class TransactionInput(BaseModel):
    """
    A transaction as supplied by the user.

    This is everything except identity and audit timestamps,
    which the storage adapter assigns.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(
        default="",
        max_length=500,
        description="Free-text label"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Non-negative magnitude, sign comes from the type"
    )
    type: TransactionType = Field(
        ...,
        description="Income, expense or adjustment"
    )
    payment_method: PaymentMethod = Field(
        ...,
        description="Determines currency and account bucket"
    )
    date: TransactionDate = Field(
        ...,
        description="Calendar date the transaction is attributed to"
    )
    quantity: int = Field(
        default=1,
        ge=1,
        description="Optional multiplier, not used in balances"
    )


class Transaction(TransactionInput):
    """
    A persisted transaction.

    CRITICAL: id never changes once assigned. Updates only replace
    payload fields and bump updated_at.
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque identifier assigned by storage"
    )
    created_at: datetime = Field(
        ...,
        description="When the transaction was first stored"
    )
    updated_at: datetime = Field(
        ...,
        description="Last update timestamp"
    )

    def payload(self) -> TransactionInput:
        """Get the caller-owned fields only."""
        return TransactionInput(**self.model_dump(include=PAYLOAD_FIELDS))

    @classmethod
    def from_payload(
        cls,
        transaction_id: str,
        payload: TransactionInput,
        created_at: datetime,
        updated_at: Optional[datetime] = None,
    ) -> "Transaction":
        return cls(
            id=transaction_id,
            created_at=created_at,
            updated_at=updated_at or created_at,
            **payload.model_dump(include=PAYLOAD_FIELDS),
        )


class TransactionUpdate(BaseModel):
    """
    Partial update of a transaction's payload.

    Only the fields that are set get merged into the stored record.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: Optional[str] = Field(default=None, max_length=500)
    amount: Optional[Decimal] = Field(default=None, ge=0)
    type: Optional[TransactionType] = None
    payment_method: Optional[PaymentMethod] = None
    date: Optional[TransactionDate] = None
    quantity: Optional[int] = Field(default=None, ge=1)

    @classmethod
    def from_payload(cls, payload: TransactionInput) -> "TransactionUpdate":
        """Build a full-record update."""
        return cls(**payload.model_dump(include=PAYLOAD_FIELDS))

    @property
    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)

    def apply_to(self, transaction: Transaction, updated_at: datetime) -> Transaction:
        """Merge into an existing transaction, keeping id and created_at."""
        data = transaction.model_dump()
        data.update(self.changes)
        data["id"] = transaction.id
        data["created_at"] = transaction.created_at
        data["updated_at"] = updated_at
        return Transaction(**data)


# =============================================================================
# FILTER AND SUMMARY MODELS
# =============================================================================

class CustomDateRange(BaseModel):
    """
    Inclusive date range for the custom filter.

    A missing bound means the filter matches everything.
    """

    start_date: Optional[TransactionDate] = None
    end_date: Optional[TransactionDate] = None

    @property
    def is_complete(self) -> bool:
        return self.start_date is not None and self.end_date is not None


class LocalCurrencySummary(BaseModel):
    """Balances held in Bolívares."""

    period_income: Decimal = Decimal("0")
    cash_balance: Decimal = Decimal("0")
    bank_balance: Decimal = Decimal("0")
    total_balance: Decimal = Decimal("0")


class ForeignCurrencySummary(BaseModel):
    """Balances held in US dollars."""

    period_income: Decimal = Decimal("0")
    cash_balance: Decimal = Decimal("0")
    usdt_balance: Decimal = Decimal("0")
    total_balance: Decimal = Decimal("0")


class FinancialSummary(BaseModel):
    """
    Derived view over all transactions. Never persisted.

    Balances are all-time. Only period_income follows the active filter.
    """

    bs: LocalCurrencySummary = Field(default_factory=LocalCurrencySummary)
    usd: ForeignCurrencySummary = Field(default_factory=ForeignCurrencySummary)


class PeriodTotals(BaseModel):
    """Income, expenses and net for one currency over a filtered list."""

    currency: Currency
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


# =============================================================================
# VALIDATION AND RESULT MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'unknown_payment_method', 'future_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating a transaction payload before it is stored."""

    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]

    @property
    def error_message(self) -> Optional[str]:
        errors = [i.message for i in self.issues if i.severity == "error"]
        return "; ".join(errors) if errors else None


class OperationResult(BaseModel):
    """
    Outcome of a repository operation.

    Operations never raise to the caller. A failure is reported
    here and in the repository's error state.
    """

    success: bool
    transaction: Optional[Transaction] = None
    error_message: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)

    @model_validator(mode='after')
    def require_error_message(self) -> 'OperationResult':
        if not self.success and not self.error_message:
            raise ValueError("A failed operation needs an error message")
        return self
