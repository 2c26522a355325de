"""
Transaction Repository

This module owns the in-memory state of the tracker and ties together
storage, validation, filtering, aggregation and audit logging.

DESIGN DECISION: The repository enforces the boundaries:
- Writes go through storage first; memory only changes after storage succeeded
- Failures are reported (error state + OperationResult), never raised to the UI
- Every storage call is bounded by a timeout
- Every write and every failure is audited

The one documented exception is the exchange rate: it is updated in memory
immediately and is NOT rolled back if saving it fails.
"""

import asyncio
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional, Union

import structlog
from pydantic import ValidationError

from finance_tracker.audit import AuditLogger
from finance_tracker.config import AppSettings, Settings, get_settings
from finance_tracker.constants import default_catalog
from finance_tracker.models.transaction import (
    Currency,
    CustomDateRange,
    FilterPeriod,
    FinancialSummary,
    OperationResult,
    PaymentMethod,
    PaymentMethodCatalog,
    PaymentMethodOption,
    PeriodTotals,
    Transaction,
    TransactionInput,
    TransactionUpdate,
    ValidationResult,
)
from finance_tracker.queries import (
    filter_by_period,
    period_totals,
    split_by_type,
    summarize,
    to_foreign,
)
from finance_tracker.services.storage import (
    ExchangeRateStorageInterface,
    StorageError,
    TransactionStorageInterface,
    create_storage,
)
from finance_tracker.validation import TransactionValidator


logger = structlog.get_logger(__name__)

_STORAGE_FAILURES = (StorageError, asyncio.TimeoutError, ValidationError)


def _sorted_by_date(transactions: list[Transaction]) -> list[Transaction]:
    """Newest date first; equal dates keep their existing order."""
    return sorted(transactions, key=lambda t: t.date, reverse=True)


class TransactionRepository:
    """
    Single owner of the tracker's state.

    State:
    - transactions (all of them, newest date first)
    - exchange rate (Bs per USD)
    - loading flag and last error message
    - active filter period and custom date range

    Flow for every mutation:
    1. Validate → reject with an error message if invalid
    2. Storage call (bounded by the configured timeout)
    3. On success → update memory, audit
    4. On failure → record error, audit, memory untouched
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        rate_storage: ExchangeRateStorageInterface,
        catalog: Optional[PaymentMethodCatalog] = None,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
        clock: Callable[[], date] = date.today,
    ):
        self._settings = settings or get_settings().app
        self._storage = transaction_storage
        self._rate_storage = rate_storage
        self._catalog = catalog or default_catalog()
        self._validator = validator or TransactionValidator.from_settings(
            self._settings, catalog=self._catalog, clock=clock
        )
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock
        self._timeout = self._settings.storage_timeout_seconds

        self._transactions: list[Transaction] = []
        self.exchange_rate: Decimal = self._settings.default_exchange_rate
        self.is_loading = False
        self.is_loaded = False
        self.error: Optional[str] = None

        today = clock()
        self.filter_period = FilterPeriod(self._settings.default_filter_period)
        self.custom_date_range = CustomDateRange(
            start_date=today.replace(day=1),
            end_date=today,
        )

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    async def _bounded(self, coro):
        return await asyncio.wait_for(coro, timeout=self._timeout)

    def _describe_failure(self, action: str, error: Exception) -> str:
        if isinstance(error, asyncio.TimeoutError):
            return f"Failed to {action}: storage did not respond within {self._timeout:g}s"
        return f"Failed to {action}: {error}"

    async def _fail(
        self,
        operation: str,
        message: str,
        entity_id: Optional[str] = None,
    ) -> OperationResult:
        self.error = message
        await self._audit_logger.log_save_failed(
            operation=operation,
            error_message=message,
            entity_id=entity_id,
        )
        return OperationResult(success=False, error_message=message)

    async def _reject(
        self,
        operation: str,
        field: str,
        issue_type: str,
        message: str,
    ) -> OperationResult:
        """Refuse input that never reached the validator, auditing it like one."""
        self.error = message
        await self._audit_logger.log_validation_failed(
            operation=operation,
            issues=[{"field": field, "type": issue_type, "message": message}],
        )
        return OperationResult(success=False, error_message=message)

    async def _validate(
        self,
        operation: str,
        payload: TransactionInput,
        entity_id: Optional[str] = None,
    ) -> ValidationResult:
        """Validate a payload; errors are audited and recorded as the error state."""
        result = self._validator.validate(payload)
        if result.is_valid:
            if result.warnings:
                logger.warning(
                    "transaction_warnings",
                    operation=operation,
                    entity_id=entity_id,
                    warnings=result.warnings,
                )
            return result

        issues = [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in result.issues
        ]
        await self._audit_logger.log_validation_failed(
            operation=operation,
            issues=issues,
            entity_id=entity_id,
        )
        self.error = result.error_message
        return result

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load(self) -> OperationResult:
        """
        Fetch transactions and the exchange rate concurrently.

        On failure the first error wins, the error state is set and the
        exchange rate keeps its last-known value.
        """
        self.is_loading = True
        self.error = None
        try:
            transactions, rate = await asyncio.gather(
                self._bounded(self._storage.list_transactions()),
                self._bounded(self._rate_storage.get_exchange_rate()),
            )
        except _STORAGE_FAILURES as e:
            message = self._describe_failure("load data", e)
            self.error = message
            await self._audit_logger.log_load_failed(message)
            return OperationResult(success=False, error_message=message)
        finally:
            self.is_loading = False

        self._transactions = _sorted_by_date(list(transactions))
        self.exchange_rate = Decimal(rate)
        self.is_loaded = True

        await self._audit_logger.log_data_loaded(
            transaction_count=len(self._transactions),
            exchange_rate=str(self.exchange_rate),
        )
        return OperationResult(success=True)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def add(self, payload: Union[TransactionInput, dict]) -> OperationResult:
        """
        Store a new transaction and insert it into memory.

        Storage assigns the id and timestamps.
        """
        if isinstance(payload, Transaction):
            payload = payload.payload()
        elif isinstance(payload, dict):
            try:
                payload = TransactionInput(**payload)
            except ValidationError as e:
                message = f"Invalid transaction: {e.errors()[0]['msg']}"
                return await self._reject(
                    "add",
                    field=".".join(str(p) for p in e.errors()[0]["loc"]) or "payload",
                    issue_type="invalid_payload",
                    message=message,
                )

        validation = await self._validate("add", payload)
        if not validation.is_valid:
            return OperationResult(
                success=False,
                error_message=validation.error_message,
                warnings=validation.warnings,
            )

        try:
            transaction = await self._bounded(self._storage.add_transaction(payload))
        except _STORAGE_FAILURES as e:
            return await self._fail("add", self._describe_failure("add transaction", e))

        self._transactions = _sorted_by_date(self._transactions + [transaction])

        await self._audit_logger.log_transaction_added(
            transaction_id=transaction.id,
            description=transaction.description,
            amount=str(transaction.amount),
        )
        return OperationResult(success=True, transaction=transaction, warnings=validation.warnings)

    async def update(self, transaction: Transaction) -> OperationResult:
        """
        Replace a transaction's payload.

        The id is kept; storage bumps updated_at.
        """
        payload = transaction.payload()
        validation = await self._validate("update", payload, entity_id=transaction.id)
        if not validation.is_valid:
            return OperationResult(
                success=False,
                error_message=validation.error_message,
                warnings=validation.warnings,
            )

        updates = TransactionUpdate.from_payload(payload)
        try:
            updated = await self._bounded(
                self._storage.update_transaction(transaction.id, updates)
            )
        except _STORAGE_FAILURES as e:
            return await self._fail(
                "update",
                self._describe_failure("update transaction", e),
                entity_id=transaction.id,
            )

        replaced = False
        transactions = []
        for existing in self._transactions:
            if existing.id == updated.id:
                transactions.append(updated)
                replaced = True
            else:
                transactions.append(existing)
        if not replaced:
            transactions.append(updated)
        self._transactions = _sorted_by_date(transactions)

        await self._audit_logger.log_transaction_updated(
            transaction_id=updated.id,
            fields=sorted(updates.changes.keys()),
        )
        return OperationResult(success=True, transaction=updated, warnings=validation.warnings)

    async def delete(self, transaction_id: str) -> OperationResult:
        """
        Delete a transaction.

        Deleting an unknown id succeeds and changes nothing.
        """
        try:
            existed = await self._bounded(self._storage.delete_transaction(transaction_id))
        except _STORAGE_FAILURES as e:
            return await self._fail(
                "delete",
                self._describe_failure("delete transaction", e),
                entity_id=transaction_id,
            )

        self._transactions = [t for t in self._transactions if t.id != transaction_id]

        await self._audit_logger.log_transaction_deleted(transaction_id, existed)
        return OperationResult(success=True)

    async def set_exchange_rate(self, rate: Union[Decimal, float, int, str]) -> OperationResult:
        """
        Change the exchange rate.

        The in-memory rate changes immediately. If saving fails the error
        is reported and the new value is kept (no rollback).
        """
        try:
            new_rate = Decimal(str(rate))
        except InvalidOperation:
            new_rate = None
        if new_rate is None or not new_rate.is_finite() or new_rate <= 0:
            message = f"Exchange rate must be a positive number, got {rate!r}"
            return await self._reject(
                "set_exchange_rate",
                field="exchange_rate",
                issue_type="invalid_rate",
                message=message,
            )

        old_rate = self.exchange_rate
        self.exchange_rate = new_rate

        try:
            await self._bounded(self._rate_storage.save_exchange_rate(new_rate))
        except _STORAGE_FAILURES as e:
            return await self._fail(
                "set_exchange_rate",
                self._describe_failure("save exchange rate", e),
            )

        await self._audit_logger.log_exchange_rate_updated(str(old_rate), str(new_rate))
        return OperationResult(success=True)

    def clear_error(self) -> None:
        self.error = None

    # -------------------------------------------------------------------------
    # Filters
    # -------------------------------------------------------------------------

    def set_filter_period(self, period: Union[FilterPeriod, str]) -> None:
        self.filter_period = FilterPeriod(period)

    def set_custom_date_range(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> None:
        """Replace the custom range. A missing bound makes the filter match everything."""
        self.custom_date_range = CustomDateRange(start_date=start_date, end_date=end_date)

    # -------------------------------------------------------------------------
    # Reads for the presentation layer
    # -------------------------------------------------------------------------

    @property
    def all_transactions(self) -> list[Transaction]:
        return list(self._transactions)

    @property
    def filtered_transactions(self) -> list[Transaction]:
        return filter_by_period(
            self._transactions,
            self.filter_period,
            self.custom_date_range,
            today=self._clock(),
        )

    @property
    def income_and_adjustments(self) -> list[Transaction]:
        return split_by_type(self.filtered_transactions)[0]

    @property
    def expenses(self) -> list[Transaction]:
        return split_by_type(self.filtered_transactions)[1]

    @property
    def financial_summary(self) -> FinancialSummary:
        filtered_ids = {t.id for t in self.filtered_transactions}
        return summarize(self._transactions, filtered_ids, self._catalog)

    @property
    def period_totals(self) -> dict[Currency, PeriodTotals]:
        return period_totals(self.filtered_transactions, self._catalog)

    @property
    def local_total_in_foreign(self) -> Decimal:
        """Total Bs balance expressed in USD at the current rate."""
        return to_foreign(self.financial_summary.bs.total_balance, self.exchange_rate)

    def get_payment_method_details(self, method: PaymentMethod) -> Optional[PaymentMethodOption]:
        return self._catalog.find(method)


def create_repository(
    settings: Optional[Settings] = None,
    clock: Callable[[], date] = date.today,
) -> TransactionRepository:
    """
    Factory function to create the repository for the configured backend.

    Args:
        settings: Root settings; defaults to the cached environment settings
        clock: Source of "today" for filters and validation
    """
    settings = settings or get_settings()
    app_settings = settings.app
    transaction_storage, rate_storage = create_storage(settings)
    catalog = default_catalog()

    return TransactionRepository(
        transaction_storage=transaction_storage,
        rate_storage=rate_storage,
        catalog=catalog,
        validator=TransactionValidator.from_settings(app_settings, catalog=catalog, clock=clock),
        audit_logger=AuditLogger(),
        settings=app_settings,
        clock=clock,
    )


__all__ = [
    "TransactionRepository",
    "create_repository",
]
