"""
Ledger Models for Pocket Ledger

Transactions and the derived aggregates computed from them.

The sign of the amount is the only income/expense discriminator:
positive is income, negative is expense. Callers negate expenses before
they reach the repository.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from pocket_ledger.models.identity import utc_now


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionCategory(str, Enum):
    """Supported transaction categories."""
    FOOD = "food"
    TRANSPORT = "transport"
    SHOPPING = "shopping"
    ENTERTAINMENT = "entertainment"
    BILLS = "bills"
    OTHER = "other"


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class Transaction(BaseModel):
    """
    A single ledger entry.

    Immutable once created; the only way to change one is to delete it.
    All users' transactions share one flat list, so user_id is a foreign
    key and every read filters on it. Records the mobile app wrote before
    sessions carried an id have no owner; they match no user.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(
        ...,
        pattern=r"^\d+$",
        description="Creation instant in epoch milliseconds, unique per ledger"
    )
    user_id: Optional[str] = Field(
        default=None,
        alias="userId",
        min_length=1,
        description="Owning user's identifier (their email)"
    )
    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    amount: Decimal = Field(
        ...,
        allow_inf_nan=False,
        description="Signed amount; positive is income, negative is expense"
    )
    category: TransactionCategory = Field(
        default=TransactionCategory.OTHER,
    )
    date: datetime = Field(
        default_factory=utc_now,
        description="User-chosen date; need not equal creation time"
    )

    @field_validator('date')
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Naive datetimes are read as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_serializer('amount', when_used='json')
    def amount_as_number(self, v: Decimal):
        """Stored as a JSON number, the way the mobile app writes and sums it."""
        return int(v) if v == v.to_integral_value() else float(v)

    @property
    def is_income(self) -> bool:
        return self.amount > 0

    @property
    def is_expense(self) -> bool:
        return self.amount < 0


# =============================================================================
# AGGREGATE MODELS - derived, never persisted
# =============================================================================

class DailyTotal(BaseModel):
    """One point of the 7-day trend series."""

    day: date
    label: str = Field(
        ...,
        description="Two-digit day of month, as shown under the chart"
    )
    total: Decimal = Field(default=Decimal("0"))


class LedgerSummary(BaseModel):
    """Everything the home screen renders for one user."""

    balance: Decimal
    total_income: Decimal
    total_expense: Decimal = Field(
        ...,
        ge=0,
        description="Absolute value of the summed expenses"
    )
    weekly_series: list[DailyTotal]
    category_totals: dict[TransactionCategory, Decimal]
    transaction_count: int = Field(ge=0)
