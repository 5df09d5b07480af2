"""
Aggregation Engine

Pure functions over a snapshot of one user's transactions. No I/O.

DESIGN DECISION: Aggregates are DETERMINISTIC.
- Sums are Decimal, so they are exact and do not depend on input order
- The weekly series buckets by calendar day in an explicit time zone,
  never by comparing date string prefixes
- Nothing computed here is ever persisted
"""

from collections.abc import Iterable
from datetime import date, timedelta, tzinfo
from decimal import Decimal
from typing import Optional, Union
from zoneinfo import ZoneInfo

from pocket_ledger.models.ledger import (
    DailyTotal,
    LedgerSummary,
    Transaction,
    TransactionCategory,
)


SERIES_DAYS = 7

ZERO = Decimal("0")

TimeZoneLike = Union[str, tzinfo]


def _resolve_tz(tz: TimeZoneLike) -> tzinfo:
    return ZoneInfo(tz) if isinstance(tz, str) else tz


def balance(transactions: Iterable[Transaction]) -> Decimal:
    """Sum of every amount."""
    return sum((t.amount for t in transactions), ZERO)


def total_income(transactions: Iterable[Transaction]) -> Decimal:
    """Sum of the positive amounts."""
    return sum((t.amount for t in transactions if t.amount > 0), ZERO)


def total_expense(transactions: Iterable[Transaction]) -> Decimal:
    """Absolute value of the sum of the negative amounts."""
    return abs(sum((t.amount for t in transactions if t.amount < 0), ZERO))


def local_day(transaction: Transaction, tz: TimeZoneLike = "UTC") -> date:
    """Calendar day a transaction falls on in the given time zone."""
    return transaction.date.astimezone(_resolve_tz(tz)).date()


def weekly_series(
    transactions: Iterable[Transaction],
    today: date,
    tz: TimeZoneLike = "UTC",
) -> list[DailyTotal]:
    """
    Daily totals for the 7 calendar days ending at `today`, oldest first.

    Days without transactions total zero.
    """
    zone = _resolve_tz(tz)
    days = [today - timedelta(days=offset) for offset in range(SERIES_DAYS - 1, -1, -1)]
    totals = {day: ZERO for day in days}

    for transaction in transactions:
        day = local_day(transaction, zone)
        if day in totals:
            totals[day] += transaction.amount

    return [
        DailyTotal(day=day, label=f"{day.day:02d}", total=totals[day])
        for day in days
    ]


def category_totals(
    transactions: Iterable[Transaction],
) -> dict[TransactionCategory, Decimal]:
    """Signed total per category; every category present, in enum order."""
    totals = {category: ZERO for category in TransactionCategory}
    for transaction in transactions:
        totals[transaction.category] += transaction.amount
    return totals


def summarize(
    transactions: Iterable[Transaction],
    today: date,
    tz: Optional[TimeZoneLike] = None,
) -> LedgerSummary:
    """Everything the home screen shows, from one snapshot."""
    snapshot = list(transactions)
    return LedgerSummary(
        balance=balance(snapshot),
        total_income=total_income(snapshot),
        total_expense=total_expense(snapshot),
        weekly_series=weekly_series(snapshot, today, tz or "UTC"),
        category_totals=category_totals(snapshot),
        transaction_count=len(snapshot),
    )
