"""
Local JSON Storage Implementation

A single JSON document on disk acting as a small key-value store:

    {
        "transactions_v2": [ {...}, {...} ],
        "exchangeRate_v2": "36.50"
    }

TRADEOFFS:
- The whole document is rewritten on every change (fine for one person's ledger)
- No locking, there is exactly one writer
- A corrupted document reads as empty rather than blocking the app

Writes go to a sibling temp file first and are swapped in with os.replace,
so a crash mid-write never leaves a half-written document behind.
File access runs in a worker thread, like the Sheets backend, so the
repository's timeouts apply here too.
"""

import asyncio
import json
import os
import tempfile
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional, Union
from uuid import uuid4

import structlog
from pydantic import ValidationError

from finance_tracker.constants import INITIAL_EXCHANGE_RATE
from finance_tracker.models.transaction import (
    Transaction,
    TransactionInput,
    TransactionUpdate,
)
from finance_tracker.services.storage.interface import (
    ExchangeRateStorageInterface,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)


TRANSACTIONS_KEY = "transactions_v2"
EXCHANGE_RATE_KEY = "exchangeRate_v2"

logger = structlog.get_logger(__name__)


class LocalJsonStorage(TransactionStorageInterface, ExchangeRateStorageInterface):
    """
    Local file implementation of both transaction and exchange rate storage.

    Transactions are kept as a JSON list in insertion order.
    """

    def __init__(
        self,
        path: Union[str, Path],
        default_rate: Decimal = INITIAL_EXCHANGE_RATE,
    ):
        self._path = Path(path)
        self._default_rate = Decimal(default_rate)

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict:
        """Load the whole document. Missing or corrupted files read as empty."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except UnicodeDecodeError as e:
            logger.error("local_document_unreadable", path=str(self._path), error=str(e))
            return {}
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}")

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("local_document_unreadable", path=str(self._path), error=str(e))
            return {}

        if not isinstance(document, dict):
            logger.error("local_document_unreadable", path=str(self._path), error="not an object")
            return {}
        return document

    def _write_document(self, document: dict) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                dir=self._path.parent,
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(document, fh, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}")

    def _read_records(self) -> tuple[dict, list]:
        document = self._read_document()
        records = document.get(TRANSACTIONS_KEY, [])
        if not isinstance(records, list):
            logger.error("local_transactions_malformed", path=str(self._path))
            records = []
        return document, records

    @staticmethod
    def _record_to_transaction(record) -> Optional[Transaction]:
        try:
            return Transaction.model_validate(record)
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(
                "skipping_malformed_transaction",
                record_id=record.get("id") if isinstance(record, dict) else None,
                error=str(e),
            )
            return None

    @staticmethod
    def _transaction_to_record(transaction: Transaction) -> dict:
        return transaction.model_dump(mode="json")

    def _list_sync(self) -> list[Transaction]:
        _, records = self._read_records()
        transactions = []
        for record in records:
            transaction = self._record_to_transaction(record)
            if transaction is not None:
                transactions.append(transaction)
        return transactions

    async def list_transactions(self) -> list[Transaction]:
        """List every readable transaction."""
        return await asyncio.to_thread(self._list_sync)

    def _get_sync(self, transaction_id: str) -> Optional[Transaction]:
        _, records = self._read_records()
        for record in records:
            if isinstance(record, dict) and record.get("id") == transaction_id:
                return self._record_to_transaction(record)
        return None

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Retrieve a transaction by its ID."""
        return await asyncio.to_thread(self._get_sync, transaction_id)

    def _add_sync(self, payload: TransactionInput) -> Transaction:
        document, records = self._read_records()
        transaction = Transaction.from_payload(
            transaction_id=str(uuid4()),
            payload=payload,
            created_at=datetime.now(timezone.utc),
        )
        records.append(self._transaction_to_record(transaction))
        document[TRANSACTIONS_KEY] = records
        self._write_document(document)
        return transaction

    async def add_transaction(self, payload: TransactionInput) -> Transaction:
        """Assign identity and timestamps, then append."""
        return await asyncio.to_thread(self._add_sync, payload)

    def _update_sync(self, transaction_id: str, updates: TransactionUpdate) -> Transaction:
        document, records = self._read_records()

        for idx, record in enumerate(records):
            if not isinstance(record, dict) or record.get("id") != transaction_id:
                continue
            existing = self._record_to_transaction(record)
            if existing is None:
                raise StorageError(f"Stored transaction is malformed: {transaction_id}")

            updated = updates.apply_to(existing, updated_at=datetime.now(timezone.utc))
            records[idx] = self._transaction_to_record(updated)
            document[TRANSACTIONS_KEY] = records
            self._write_document(document)
            return updated

        raise NotFoundError(f"Transaction not found: {transaction_id}")

    async def update_transaction(
        self,
        transaction_id: str,
        updates: TransactionUpdate,
    ) -> Transaction:
        """Merge the set fields into the stored record."""
        return await asyncio.to_thread(self._update_sync, transaction_id, updates)

    def _delete_sync(self, transaction_id: str) -> bool:
        document, records = self._read_records()
        remaining = [
            record for record in records
            if not (isinstance(record, dict) and record.get("id") == transaction_id)
        ]
        if len(remaining) == len(records):
            return False

        document[TRANSACTIONS_KEY] = remaining
        self._write_document(document)
        return True

    async def delete_transaction(self, transaction_id: str) -> bool:
        """Delete a transaction by ID."""
        return await asyncio.to_thread(self._delete_sync, transaction_id)

    def _get_rate_sync(self) -> Decimal:
        document = self._read_document()
        stored = document.get(EXCHANGE_RATE_KEY)

        if stored is None:
            logger.info("exchange_rate_initialized", rate=str(self._default_rate))
            document[EXCHANGE_RATE_KEY] = str(self._default_rate)
            self._write_document(document)
            return self._default_rate

        try:
            rate = Decimal(str(stored))
        except InvalidOperation:
            rate = None
        if rate is None or not rate.is_finite() or rate <= 0:
            logger.warning("exchange_rate_malformed", stored=str(stored))
            return self._default_rate
        return rate

    async def get_exchange_rate(self) -> Decimal:
        """Read the rate, initializing it to the default when absent."""
        return await asyncio.to_thread(self._get_rate_sync)

    def _save_rate_sync(self, rate: Decimal) -> None:
        document = self._read_document()
        document[EXCHANGE_RATE_KEY] = str(rate)
        self._write_document(document)

    async def save_exchange_rate(self, rate: Decimal) -> None:
        """Replace the rate entry, leaving transactions untouched."""
        await asyncio.to_thread(self._save_rate_sync, rate)
