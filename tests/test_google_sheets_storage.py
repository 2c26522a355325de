"""
Tests for the Google Sheets storage backend.

No network: the client is replaced by an in-memory worksheet that
implements the handful of gspread Worksheet methods the backend uses.
"""

import asyncio
from decimal import Decimal

import pytest

from finance_tracker.models.transaction import PaymentMethod, TransactionType, TransactionUpdate
from finance_tracker.services.storage import (
    GoogleSheetsExchangeRateStorage,
    GoogleSheetsTransactionStorage,
    NotFoundError,
    StorageError,
)
from finance_tracker.services.storage.google_sheets import (
    EXCHANGE_RATE_SETTING,
    SETTINGS_COLUMNS,
    TRANSACTION_COLUMNS,
)


class FakeWorksheet:
    """Just enough of gspread.Worksheet, backed by a list of rows."""

    def __init__(self, header):
        self.rows = [list(header)]
        self.fail_reads = False

    def get_all_values(self):
        if self.fail_reads:
            raise RuntimeError("quota exceeded")
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option=None):
        self.rows.append(list(values))

    def update(self, range_name=None, values=None, value_input_option=None):
        # Only single-row ranges like "A3:I3" are used
        row_number = int(range_name.split(":")[0][1:])
        self.rows[row_number - 1] = list(values[0])

    def update_cell(self, row, col, value):
        target = self.rows[row - 1]
        while len(target) < col:
            target.append("")
        target[col - 1] = value

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:

    def __init__(self):
        self.transactions_sheet = FakeWorksheet(TRANSACTION_COLUMNS)
        self.settings_sheet = FakeWorksheet(SETTINGS_COLUMNS)

    def get_transactions_sheet(self):
        return self.transactions_sheet

    def get_settings_sheet(self):
        return self.settings_sheet


@pytest.fixture
def client():
    return FakeSheetsClient()


@pytest.fixture
def storage(client):
    return GoogleSheetsTransactionStorage(client)


@pytest.fixture
def rate_storage(client):
    return GoogleSheetsExchangeRateStorage(client, default_rate=Decimal("36.5"))


class TestSheetsTransactions:

    def test_add_appends_a_row(self, storage, client, make_payload):
        transaction = asyncio.run(storage.add_transaction(make_payload(amount="10.5")))

        row = client.transactions_sheet.rows[1]
        assert row[0] == transaction.id
        assert row[TRANSACTION_COLUMNS.index("amount")] == "10.5"
        assert row[TRANSACTION_COLUMNS.index("payment_method")] == "efectivo_bs"

    def test_add_then_list_round_trip(self, storage, make_payload):
        payload = make_payload(
            amount="99.99",
            type=TransactionType.EXPENSE,
            payment_method=PaymentMethod.USDT,
            description="Internet",
            quantity=2,
        )
        added = asyncio.run(storage.add_transaction(payload))

        listed = asyncio.run(storage.list_transactions())

        assert len(listed) == 1
        assert listed[0].id == added.id
        assert listed[0].payload() == payload

    def test_list_skips_empty_and_malformed_rows(self, storage, client, make_payload):
        good = asyncio.run(storage.add_transaction(make_payload()))
        client.transactions_sheet.rows.append([])
        client.transactions_sheet.rows.append(["bad", "not a timestamp"])

        assert [t.id for t in asyncio.run(storage.list_transactions())] == [good.id]

    def test_update_rewrites_the_row(self, storage, make_payload):
        first = asyncio.run(storage.add_transaction(make_payload(description="Uno")))
        second = asyncio.run(storage.add_transaction(make_payload(description="Dos")))

        updated = asyncio.run(
            storage.update_transaction(second.id, TransactionUpdate(description="Dos bis"))
        )

        assert updated.id == second.id
        listed = {t.id: t for t in asyncio.run(storage.list_transactions())}
        assert listed[second.id].description == "Dos bis"
        assert listed[first.id].description == "Uno"

    def test_update_missing_raises(self, storage):
        with pytest.raises(NotFoundError):
            asyncio.run(storage.update_transaction("missing", TransactionUpdate(quantity=2)))

    def test_delete(self, storage, client, make_payload):
        added = asyncio.run(storage.add_transaction(make_payload()))

        assert asyncio.run(storage.delete_transaction(added.id)) is True
        assert asyncio.run(storage.delete_transaction(added.id)) is False
        assert client.transactions_sheet.rows == [TRANSACTION_COLUMNS]

    def test_get_transaction(self, storage, make_payload):
        added = asyncio.run(storage.add_transaction(make_payload()))
        assert asyncio.run(storage.get_transaction(added.id)).id == added.id
        assert asyncio.run(storage.get_transaction("nope")) is None

    def test_backend_errors_become_storage_errors(self, storage, client):
        client.transactions_sheet.fail_reads = True
        with pytest.raises(StorageError):
            asyncio.run(storage.list_transactions())


class TestSheetsExchangeRate:

    def test_missing_rate_is_initialized(self, rate_storage, client):
        assert asyncio.run(rate_storage.get_exchange_rate()) == Decimal("36.5")
        assert client.settings_sheet.rows[1] == [EXCHANGE_RATE_SETTING, "36.5"]

    def test_save_updates_the_cell(self, rate_storage, client):
        asyncio.run(rate_storage.get_exchange_rate())
        asyncio.run(rate_storage.save_exchange_rate(Decimal("41.2")))

        assert len(client.settings_sheet.rows) == 2
        assert asyncio.run(rate_storage.get_exchange_rate()) == Decimal("41.2")

    def test_save_without_existing_row_appends(self, rate_storage, client):
        asyncio.run(rate_storage.save_exchange_rate(Decimal("40")))
        assert client.settings_sheet.rows[1] == [EXCHANGE_RATE_SETTING, "40"]

    def test_malformed_rate_falls_back_to_default(self, rate_storage, client):
        client.settings_sheet.rows.append([EXCHANGE_RATE_SETTING, "n/a"])
        assert asyncio.run(rate_storage.get_exchange_rate()) == Decimal("36.5")

    def test_read_errors_become_storage_errors(self, rate_storage, client):
        client.settings_sheet.fail_reads = True
        with pytest.raises(StorageError):
            asyncio.run(rate_storage.get_exchange_rate())
