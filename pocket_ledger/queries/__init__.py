"""Aggregation queries package."""

from pocket_ledger.queries.aggregates import (
    SERIES_DAYS,
    balance,
    category_totals,
    local_day,
    summarize,
    total_expense,
    total_income,
    weekly_series,
)

__all__ = [
    "SERIES_DAYS",
    "balance",
    "category_totals",
    "local_day",
    "summarize",
    "total_expense",
    "total_income",
    "weekly_series",
]
