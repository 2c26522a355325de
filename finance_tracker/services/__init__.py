"""Services package."""

from finance_tracker.services.storage import (
    ConnectionError,
    ExchangeRateStorageInterface,
    GoogleSheetsClient,
    GoogleSheetsExchangeRateStorage,
    GoogleSheetsTransactionStorage,
    LocalJsonStorage,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
    create_storage,
)

__all__ = [
    "ConnectionError",
    "ExchangeRateStorageInterface",
    "GoogleSheetsClient",
    "GoogleSheetsExchangeRateStorage",
    "GoogleSheetsTransactionStorage",
    "LocalJsonStorage",
    "NotFoundError",
    "StorageError",
    "TransactionStorageInterface",
    "create_storage",
]
