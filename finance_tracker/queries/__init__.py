"""Filtering and aggregation over in-memory transactions."""

from finance_tracker.queries.conversion import to_foreign, to_local
from finance_tracker.queries.period import (
    filter_by_period,
    period_window,
    split_by_type,
)
from finance_tracker.queries.summary import period_totals, summarize

__all__ = [
    "filter_by_period",
    "period_totals",
    "period_window",
    "split_by_type",
    "summarize",
    "to_foreign",
    "to_local",
]
