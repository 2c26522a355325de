"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep a local JSON file and Google Sheets as interchangeable backends
2. Use throwaway storage in tests
3. Keep the repository decoupled from storage implementation

The adapter owns identity and audit fields: it assigns id, created_at
and updated_at. Callers only ever hand it payloads.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from finance_tracker.models.transaction import (
    Transaction,
    TransactionInput,
    TransactionUpdate,
)


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage operations.

    Any storage implementation (local file, Google Sheets, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def list_transactions(self) -> list[Transaction]:
        """
        Read every stored transaction.

        Malformed records are skipped, not fatal. Order is not
        guaranteed; callers sort.

        Raises:
            StorageError: If the store cannot be read at all
        """
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """
        Retrieve a transaction by its ID.

        Returns:
            The transaction if found, None otherwise
        """
        pass

    @abstractmethod
    async def add_transaction(self, payload: TransactionInput) -> Transaction:
        """
        Store a new transaction.

        Args:
            payload: The caller-owned fields

        Returns:
            The stored transaction with id and timestamps assigned

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def update_transaction(
        self,
        transaction_id: str,
        updates: TransactionUpdate,
    ) -> Transaction:
        """
        Merge the set fields of `updates` into a stored transaction.

        Unset fields keep their stored value. updated_at is bumped.

        Returns:
            The merged transaction

        Raises:
            NotFoundError: If the transaction doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> bool:
        """
        Delete a transaction by ID.

        Idempotent: deleting a missing ID is not an error.

        Returns:
            True if a record was removed, False if it didn't exist
        """
        pass


class ExchangeRateStorageInterface(ABC):
    """
    Abstract interface for the single exchange rate value.

    Last write wins, no history is kept.
    """

    @abstractmethod
    async def get_exchange_rate(self) -> Decimal:
        """
        Read the current rate (Bs per USD).

        If no rate is stored yet, the default is persisted and returned.
        """
        pass

    @abstractmethod
    async def save_exchange_rate(self, rate: Decimal) -> None:
        """
        Persist the rate, replacing only the rate entry.

        Raises:
            StorageError: If save fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
