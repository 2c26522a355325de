"""
Period Filter

Pure functions that narrow a transaction list to a time window.

Transaction dates carry no time-of-day, they are compared as midnight.
Window bounds run from 00:00:00 on the first day to 23:59:59.999999 on
the last, so a transaction dated on the end day is always included.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from finance_tracker.models.transaction import (
    CustomDateRange,
    FilterPeriod,
    Transaction,
    TransactionType,
)


Window = tuple[datetime, datetime]


def _day_bounds(first: date, last: date) -> Window:
    return datetime.combine(first, time.min), datetime.combine(last, time.max)


def week_start(day: date) -> date:
    """Monday of the ISO week containing `day` (Sunday belongs to the week before)."""
    return day - timedelta(days=day.weekday())


def month_end(day: date) -> date:
    next_month = (day.replace(day=28) + timedelta(days=4)).replace(day=1)
    return next_month - timedelta(days=1)


def period_window(
    period: FilterPeriod,
    custom_range: Optional[CustomDateRange] = None,
    today: Optional[date] = None,
) -> Optional[Window]:
    """
    Resolve a filter period into inclusive datetime bounds.

    Returns None when the period matches every transaction: ALL, or
    CUSTOM with a missing bound.
    """
    period = FilterPeriod(period)
    today = today or date.today()

    if period == FilterPeriod.ALL:
        return None
    if period == FilterPeriod.TODAY:
        return _day_bounds(today, today)
    if period == FilterPeriod.WEEK:
        start = week_start(today)
        return _day_bounds(start, start + timedelta(days=6))
    if period == FilterPeriod.MONTH:
        return _day_bounds(today.replace(day=1), month_end(today))

    # CUSTOM
    if custom_range is None or not custom_range.is_complete:
        return None
    return _day_bounds(custom_range.start_date, custom_range.end_date)


def filter_by_period(
    transactions: Iterable[Transaction],
    period: FilterPeriod,
    custom_range: Optional[CustomDateRange] = None,
    today: Optional[date] = None,
) -> list[Transaction]:
    """
    Keep the transactions whose date falls inside the period.

    Input order is preserved. FilterPeriod.ALL is the identity.
    """
    window = period_window(period, custom_range, today)
    if window is None:
        return list(transactions)

    start, end = window
    return [
        t for t in transactions
        if start <= datetime.combine(t.date, time.min) <= end
    ]


def split_by_type(
    transactions: Iterable[Transaction],
) -> tuple[list[Transaction], list[Transaction]]:
    """Split into (income and adjustments, expenses), keeping order."""
    inflows: list[Transaction] = []
    expenses: list[Transaction] = []
    for t in transactions:
        if t.type == TransactionType.EXPENSE:
            expenses.append(t)
        else:
            inflows.append(t)
    return inflows, expenses
