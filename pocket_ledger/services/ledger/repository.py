"""
Transaction Repository

Owns the flat list of all users' transactions under the 'transactions'
key. Ownership is a foreign key (Transaction.user_id), so every read
filters by user and every mutation checks the owner.

Ids are the creation instant in epoch milliseconds. Two adds inside the
same millisecond would collide, so a new id is always bumped past the
newest id already in the ledger. This runs under the writer lock, which
makes ids strictly increasing.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional, Union

import structlog

from pocket_ledger.audit import AuditLogger
from pocket_ledger.models.identity import utc_now
from pocket_ledger.models.ledger import Transaction, TransactionCategory
from pocket_ledger.services.storage import (
    TRANSACTIONS_KEY,
    RecordStore,
    StorageError,
)
from pocket_ledger.validation import InputValidator, ValidationError, raise_for_issues


logger = structlog.get_logger(__name__)


def next_transaction_id(existing: list[Transaction], now: datetime) -> str:
    """Millisecond timestamp id, strictly greater than every existing id."""
    candidate = int(now.timestamp() * 1000)
    newest = max((int(t.id) for t in existing), default=-1)
    return str(max(candidate, newest + 1))


class TransactionRepository:
    """
    Per-user view over the shared transaction list.
    """

    def __init__(
        self,
        records: RecordStore,
        validator: Optional[InputValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._records = records
        self._validator = validator or InputValidator()
        self._audit = audit_logger or AuditLogger()
        self._clock = clock

    @asynccontextmanager
    async def _storage_guard(self, operation: str):
        try:
            yield
        except StorageError as e:
            await self._audit.log_storage_error(operation, str(e))
            raise

    async def list_transactions(self, user_id: str) -> list[Transaction]:
        """
        A user's transactions in insertion order (not date order).
        """
        async with self._storage_guard("list_transactions"):
            transactions = await self._records.load_list(TRANSACTIONS_KEY, Transaction)
        return [t for t in transactions if t.user_id == user_id]

    async def get(self, user_id: str, transaction_id: str) -> Optional[Transaction]:
        """One of the user's transactions, or None if absent or not theirs."""
        for transaction in await self.list_transactions(user_id):
            if transaction.id == transaction_id:
                return transaction
        return None

    async def add(
        self,
        user_id: str,
        title: str,
        amount: Union[Decimal, int, float, str],
        category: Union[TransactionCategory, str] = TransactionCategory.OTHER,
        date: Any = None,
    ) -> Transaction:
        """
        Append a transaction for a user.

        The amount's sign must already encode direction (negative for
        expenses). Without a date, the transaction is dated by the
        repository clock.

        Raises:
            ValidationError: Title, amount, category or date invalid (all reported)
            StorageError: The store could not be read or written
        """
        if date is None:
            date = self._clock()
        issues, parsed = self._validator.validate_transaction(title, amount, category, date)
        try:
            raise_for_issues(issues)
        except ValidationError as error:
            await self._audit.log_transaction_rejected(user_id, error.fields)
            raise

        def append(transactions: list[Transaction]):
            transaction = Transaction(
                id=next_transaction_id(transactions, self._clock()),
                user_id=user_id,
                title=parsed.title,
                amount=parsed.amount,
                category=parsed.category,
                date=parsed.date,
            )
            transactions.append(transaction)
            return transactions, transaction

        async with self._storage_guard("add_transaction"):
            created = await self._records.update_list(TRANSACTIONS_KEY, Transaction, append)

        await self._audit.log_transaction_added(user_id, created.id, str(created.amount))
        return created

    async def remove(self, user_id: str, transaction_id: str) -> bool:
        """
        Delete one of the user's transactions.

        Returns:
            True if a record was removed. An unknown id, or an id owned by
            another user, removes nothing and returns False.
        """
        def drop(transactions: list[Transaction]):
            for idx, transaction in enumerate(transactions):
                if transaction.id != transaction_id:
                    continue
                if transaction.user_id != user_id:
                    logger.warning(
                        "remove_foreign_transaction_refused",
                        transaction_id=transaction_id,
                        user_id=user_id,
                    )
                    return None, False
                del transactions[idx]
                return transactions, True
            return None, False

        async with self._storage_guard("remove_transaction"):
            removed = await self._records.update_list(TRANSACTIONS_KEY, Transaction, drop)

        await self._audit.log_transaction_removed(user_id, transaction_id, removed)
        return removed
