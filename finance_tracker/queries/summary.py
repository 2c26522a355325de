"""
Financial Summary Aggregator

DESIGN DECISION: Balances are folded over ALL transactions, not the
filtered set. An account balance has to show what is really held,
whatever window the user is looking at. Only period income follows the
active filter.

Arithmetic is Decimal and the fold runs in list order, so results are
exact and reproducible.
"""

from collections.abc import Collection
from decimal import Decimal
from typing import Iterable

import structlog

from finance_tracker.models.transaction import (
    AccountType,
    Currency,
    FinancialSummary,
    ForeignCurrencySummary,
    LocalCurrencySummary,
    PaymentMethodCatalog,
    PeriodTotals,
    Transaction,
    TransactionType,
)


logger = structlog.get_logger(__name__)

# (currency, account type) -> summary field holding that bucket
BALANCE_BUCKETS = {
    (Currency.BS, AccountType.CASH): "cash_balance",
    (Currency.BS, AccountType.BANK): "bank_balance",
    (Currency.USD, AccountType.CASH): "cash_balance",
    (Currency.USD, AccountType.DIGITAL): "usdt_balance",
}


def summarize(
    transactions: Iterable[Transaction],
    filtered_ids: Collection[str],
    catalog: PaymentMethodCatalog,
) -> FinancialSummary:
    """
    Compute running balances and period income in a single pass.

    Args:
        transactions: Every transaction, unfiltered
        filtered_ids: IDs of the transactions inside the active filter
        catalog: Payment method metadata

    Transactions whose payment method is not in the catalog are skipped.
    """
    filtered_ids = set(filtered_ids)
    totals = {
        Currency.BS: {"period_income": Decimal("0"), "cash_balance": Decimal("0"), "bank_balance": Decimal("0")},
        Currency.USD: {"period_income": Decimal("0"), "cash_balance": Decimal("0"), "usdt_balance": Decimal("0")},
    }

    for t in transactions:
        option = catalog.find(t.payment_method)
        if option is None:
            logger.warning(
                "unknown_payment_method",
                transaction_id=t.id,
                payment_method=str(t.payment_method),
            )
            continue

        bucket = BALANCE_BUCKETS.get((option.currency, option.account_type))
        if bucket is None:
            # e.g. a bank account in USD; no bucket tracks it
            logger.warning(
                "untracked_balance_bucket",
                transaction_id=t.id,
                currency=option.currency.value,
                account_type=option.account_type.value,
            )
            continue

        currency_totals = totals[option.currency]
        if t.type.is_inflow:
            currency_totals[bucket] += t.amount
            if t.id in filtered_ids:
                currency_totals["period_income"] += t.amount
        else:
            currency_totals[bucket] -= t.amount

    bs = totals[Currency.BS]
    usd = totals[Currency.USD]
    return FinancialSummary(
        bs=LocalCurrencySummary(
            total_balance=bs["cash_balance"] + bs["bank_balance"],
            **bs,
        ),
        usd=ForeignCurrencySummary(
            total_balance=usd["cash_balance"] + usd["usdt_balance"],
            **usd,
        ),
    )


def period_totals(
    transactions: Iterable[Transaction],
    catalog: PaymentMethodCatalog,
) -> dict[Currency, PeriodTotals]:
    """
    Income, expenses and net per currency for an already filtered list.

    Adjustments count as income here too.
    """
    result = {currency: PeriodTotals(currency=currency) for currency in Currency}

    for t in transactions:
        option = catalog.find(t.payment_method)
        if option is None:
            continue
        entry = result[option.currency]
        if t.type == TransactionType.EXPENSE:
            entry.expenses += t.amount
        else:
            entry.income += t.amount

    return result
