"""Shared fixtures: transaction factories and an in-memory storage backend."""

import asyncio
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest

from finance_tracker.config import AppSettings
from finance_tracker.models.transaction import (
    PaymentMethod,
    Transaction,
    TransactionInput,
    TransactionType,
    TransactionUpdate,
)
from finance_tracker.services.storage import (
    ExchangeRateStorageInterface,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)


TODAY = date(2024, 5, 15)  # a Wednesday


def _payload(
    amount="100",
    type=TransactionType.INCOME,
    payment_method=PaymentMethod.EFECTIVO_BS,
    day: date = TODAY,
    description="Prueba",
    quantity=1,
) -> TransactionInput:
    return TransactionInput(
        description=description,
        amount=Decimal(amount),
        type=type,
        payment_method=payment_method,
        date=day,
        quantity=quantity,
    )


@pytest.fixture
def make_payload():
    return _payload


@pytest.fixture
def make_transaction():
    counter = iter(range(1, 10_000))

    def factory(transaction_id: Optional[str] = None, **kwargs) -> Transaction:
        return Transaction.from_payload(
            transaction_id or f"t{next(counter)}",
            _payload(**kwargs),
            created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        )

    return factory


@pytest.fixture
def app_settings(tmp_path) -> AppSettings:
    return AppSettings(
        storage_backend="local",
        local_data_path=str(tmp_path / "ledger.json"),
        storage_timeout_seconds=0.5,
    )


class InMemoryStorage(TransactionStorageInterface, ExchangeRateStorageInterface):
    """
    Storage double for repository tests.

    Set `fail_with` to make every call raise, or `delay` to make calls hang.
    """

    def __init__(self, transactions=None, rate: Decimal = Decimal("1")):
        self.transactions: list[Transaction] = list(transactions or [])
        self.rate = rate
        self.saved_rates: list[Decimal] = []
        self.fail_with: Optional[Exception] = None
        self.delay = 0.0
        self._next_id = 1

    async def _maybe_fail(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with

    async def list_transactions(self) -> list[Transaction]:
        await self._maybe_fail()
        return list(self.transactions)

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        await self._maybe_fail()
        return next((t for t in self.transactions if t.id == transaction_id), None)

    async def add_transaction(self, payload: TransactionInput) -> Transaction:
        await self._maybe_fail()
        transaction = Transaction.from_payload(
            f"mem-{self._next_id}",
            payload,
            created_at=datetime.now(timezone.utc),
        )
        self._next_id += 1
        self.transactions.append(transaction)
        return transaction

    async def update_transaction(
        self,
        transaction_id: str,
        updates: TransactionUpdate,
    ) -> Transaction:
        await self._maybe_fail()
        for index, existing in enumerate(self.transactions):
            if existing.id == transaction_id:
                updated = updates.apply_to(existing, datetime.now(timezone.utc))
                self.transactions[index] = updated
                return updated
        raise NotFoundError(f"Transaction {transaction_id} not found")

    async def delete_transaction(self, transaction_id: str) -> bool:
        await self._maybe_fail()
        before = len(self.transactions)
        self.transactions = [t for t in self.transactions if t.id != transaction_id]
        return len(self.transactions) != before

    async def get_exchange_rate(self) -> Decimal:
        await self._maybe_fail()
        return self.rate

    async def save_exchange_rate(self, rate: Decimal) -> None:
        await self._maybe_fail()
        self.rate = rate
        self.saved_rates.append(rate)


class RecordingLogger:
    """Stands in for a structlog BoundLogger and keeps every call."""

    def __init__(self, explode=False):
        self.calls = []
        self.explode = explode

    def _record(self, level, event, **kw):
        if self.explode:
            raise RuntimeError("disk full")
        self.calls.append((level, event, kw))

    def debug(self, event, **kw):
        self._record("debug", event, **kw)

    def info(self, event, **kw):
        self._record("info", event, **kw)

    def warning(self, event, **kw):
        self._record("warning", event, **kw)

    def error(self, event, **kw):
        self._record("error", event, **kw)


@pytest.fixture
def memory_storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def storage_error() -> StorageError:
    return StorageError("backend unavailable")
