"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the remote storage backend because:
1. The ledger can be viewed and corrected directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (every write touches a single row)
- Limited query capabilities (we filter in Python)

gspread is blocking, so every sheet round-trip runs in a worker thread.
That keeps the event loop free for the concurrent initial load and lets
the repository's timeouts actually fire.
"""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from finance_tracker.config import GoogleSheetsSettings, get_settings
from finance_tracker.constants import INITIAL_EXCHANGE_RATE
from finance_tracker.models.transaction import (
    Transaction,
    TransactionInput,
    TransactionUpdate,
)
from finance_tracker.services.storage.interface import (
    ConnectionError,
    ExchangeRateStorageInterface,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)


# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "created_at",
    "updated_at",
    "description",
    "amount",
    "type",
    "payment_method",
    "date",
    "quantity",
]

# Column mappings for Settings sheet
SETTINGS_COLUMNS = [
    "key",
    "value",
]

EXCHANGE_RATE_SETTING = "exchange_rate"

logger = structlog.get_logger(__name__)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        """Get or create the Transactions worksheet."""
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name,
            TRANSACTION_COLUMNS,
            rows=1000,
        )

    def get_settings_sheet(self) -> gspread.Worksheet:
        """Get or create the Settings worksheet."""
        return self._get_or_create_sheet(
            self._settings.settings_sheet_name,
            SETTINGS_COLUMNS,
            rows=10,
        )


def _row_range(row_number: int, width: int) -> str:
    last_column = chr(ord("A") + width - 1)
    return f"A{row_number}:{last_column}{row_number}"


class GoogleSheetsTransactionStorage(TransactionStorageInterface):
    """
    Google Sheets implementation of transaction storage.

    Transactions are stored as rows in a worksheet with one transaction per row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _transaction_to_row(self, transaction: Transaction) -> list:
        """Convert a Transaction to a spreadsheet row."""
        return [
            transaction.id,
            transaction.created_at.isoformat(),
            transaction.updated_at.isoformat(),
            transaction.description,
            str(transaction.amount),
            transaction.type.value,
            transaction.payment_method.value,
            transaction.date.isoformat(),
            str(transaction.quantity),
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        """Convert a spreadsheet row to a Transaction."""
        # Handle missing columns gracefully
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return Transaction(
            id=safe_get(0),
            created_at=datetime.fromisoformat(safe_get(1)),
            updated_at=datetime.fromisoformat(safe_get(2) or safe_get(1)),
            description=safe_get(3),
            amount=Decimal(safe_get(4)),
            type=safe_get(5),
            payment_method=safe_get(6),
            date=safe_get(7),
            quantity=int(safe_get(8, "1")),
        )

    def _find_row(self, rows: list[list], transaction_id: str) -> Optional[int]:
        """Find the sheet row number (1-based, header is row 1) of an ID."""
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == transaction_id:
                return idx
        return None

    def _list_sync(self) -> list[Transaction]:
        sheet = self._client.get_transactions_sheet()
        all_rows = sheet.get_all_values()[1:]  # Skip header

        transactions = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                transactions.append(self._row_to_transaction(row))
            except Exception as e:
                # Skip malformed rows
                logger.warning("skipping_malformed_row", row_id=row[0], error=str(e))
                continue
        return transactions

    async def list_transactions(self) -> list[Transaction]:
        """List every readable transaction."""
        try:
            return await asyncio.to_thread(self._list_sync)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")

    def _get_sync(self, transaction_id: str) -> Optional[Transaction]:
        sheet = self._client.get_transactions_sheet()
        all_rows = sheet.get_all_values()
        row_number = self._find_row(all_rows, transaction_id)
        if row_number is None:
            return None
        return self._row_to_transaction(all_rows[row_number - 1])

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Retrieve a transaction by its ID."""
        try:
            return await asyncio.to_thread(self._get_sync, transaction_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get transaction: {e}")

    def _add_sync(self, payload: TransactionInput) -> Transaction:
        transaction = Transaction.from_payload(
            transaction_id=str(uuid4()),
            payload=payload,
            created_at=datetime.now(timezone.utc),
        )
        sheet = self._client.get_transactions_sheet()
        sheet.append_row(self._transaction_to_row(transaction), value_input_option="RAW")
        return transaction

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def add_transaction(self, payload: TransactionInput) -> Transaction:
        """Append a new transaction row."""
        try:
            return await asyncio.to_thread(self._add_sync, payload)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

    def _update_sync(self, transaction_id: str, updates: TransactionUpdate) -> Transaction:
        sheet = self._client.get_transactions_sheet()
        all_rows = sheet.get_all_values()

        row_number = self._find_row(all_rows, transaction_id)
        if row_number is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        existing = self._row_to_transaction(all_rows[row_number - 1])
        updated = updates.apply_to(existing, updated_at=datetime.now(timezone.utc))

        sheet.update(
            range_name=_row_range(row_number, len(TRANSACTION_COLUMNS)),
            values=[self._transaction_to_row(updated)],
            value_input_option="RAW",
        )
        return updated

    async def update_transaction(
        self,
        transaction_id: str,
        updates: TransactionUpdate,
    ) -> Transaction:
        """Merge the set fields into an existing row."""
        try:
            return await asyncio.to_thread(self._update_sync, transaction_id, updates)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}")

    def _delete_sync(self, transaction_id: str) -> bool:
        sheet = self._client.get_transactions_sheet()
        all_rows = sheet.get_all_values()

        row_number = self._find_row(all_rows, transaction_id)
        if row_number is None:
            return False
        sheet.delete_rows(row_number)
        return True

    async def delete_transaction(self, transaction_id: str) -> bool:
        """Delete a transaction by ID."""
        try:
            return await asyncio.to_thread(self._delete_sync, transaction_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")


class GoogleSheetsExchangeRateStorage(ExchangeRateStorageInterface):
    """
    Google Sheets implementation of exchange rate storage.

    The rate is one key/value row in the Settings worksheet. Saving
    touches only that cell.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        default_rate: Decimal = INITIAL_EXCHANGE_RATE,
    ):
        self._client = client or GoogleSheetsClient()
        self._default_rate = Decimal(default_rate)

    @staticmethod
    def _find_setting(rows: list[list], key: str) -> Optional[int]:
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == key:
                return idx
        return None

    def _get_sync(self) -> Decimal:
        sheet = self._client.get_settings_sheet()
        all_rows = sheet.get_all_values()

        row_number = self._find_setting(all_rows, EXCHANGE_RATE_SETTING)
        if row_number is None:
            logger.info("exchange_rate_initialized", rate=str(self._default_rate))
            sheet.append_row(
                [EXCHANGE_RATE_SETTING, str(self._default_rate)],
                value_input_option="RAW",
            )
            return self._default_rate

        row = all_rows[row_number - 1]
        stored = row[1] if len(row) > 1 else ""
        try:
            rate = Decimal(stored)
        except InvalidOperation:
            rate = None
        if rate is None or not rate.is_finite() or rate <= 0:
            logger.warning("exchange_rate_malformed", stored=stored)
            return self._default_rate
        return rate

    async def get_exchange_rate(self) -> Decimal:
        """Read the current rate."""
        try:
            return await asyncio.to_thread(self._get_sync)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get exchange rate: {e}")

    def _save_sync(self, rate: Decimal) -> None:
        sheet = self._client.get_settings_sheet()
        all_rows = sheet.get_all_values()

        row_number = self._find_setting(all_rows, EXCHANGE_RATE_SETTING)
        if row_number is None:
            sheet.append_row(
                [EXCHANGE_RATE_SETTING, str(rate)],
                value_input_option="RAW",
            )
        else:
            sheet.update_cell(row_number, 2, str(rate))

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_exchange_rate(self, rate: Decimal) -> None:
        """Persist the rate."""
        try:
            await asyncio.to_thread(self._save_sync, rate)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save exchange rate: {e}")
