"""Ledger services package."""

from pocket_ledger.services.ledger.repository import (
    TransactionRepository,
    next_transaction_id,
)

__all__ = ["TransactionRepository", "next_transaction_id"]
