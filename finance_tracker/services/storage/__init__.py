"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Two interchangeable backends exist, a local JSON file and Google Sheets;
configuration picks one.
"""

from typing import Optional

from finance_tracker.config import AppSettings, Settings, get_settings
from finance_tracker.services.storage.interface import (
    ConnectionError,
    ExchangeRateStorageInterface,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)
from finance_tracker.services.storage.local import LocalJsonStorage
from finance_tracker.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsExchangeRateStorage,
    GoogleSheetsTransactionStorage,
)


def create_storage(
    settings: Optional[Settings] = None,
) -> tuple[TransactionStorageInterface, ExchangeRateStorageInterface]:
    """
    Build the storage pair for the configured backend.

    Returns:
        (transaction_storage, exchange_rate_storage)
    """
    settings = settings or get_settings()
    app: AppSettings = settings.app

    if app.storage_backend == "google_sheets":
        client = GoogleSheetsClient(settings.google_sheets)
        return (
            GoogleSheetsTransactionStorage(client),
            GoogleSheetsExchangeRateStorage(client, default_rate=app.default_exchange_rate),
        )

    storage = LocalJsonStorage(app.local_data_file, default_rate=app.default_exchange_rate)
    return storage, storage


__all__ = [
    # Interfaces
    "ExchangeRateStorageInterface",
    "TransactionStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Local implementation
    "LocalJsonStorage",
    # Google Sheets implementation
    "GoogleSheetsClient",
    "GoogleSheetsExchangeRateStorage",
    "GoogleSheetsTransactionStorage",
    # Factory
    "create_storage",
]
