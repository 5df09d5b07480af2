"""
Composition Root for Pocket Ledger

Wires settings, the key-value store, the repositories and the audit
logger, and exposes the calls the presentation layer makes.

DESIGN DECISION: The signed-in user is an explicit Session object held
here, not ambient global state. Its lifecycle is
none -> authenticated(user) -> none, mirrored to the 'userSession' key so
a restarted app can pick it back up. Every ledger call is scoped to the
held session's user, so a screen can never read or delete another
user's transactions.
"""

from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional, Union
from zoneinfo import ZoneInfo

import structlog

from pocket_ledger.audit import AuditLogger, set_debug_logging
from pocket_ledger.config import Settings, get_settings
from pocket_ledger.models.identity import Session, User, utc_now
from pocket_ledger.models.ledger import (
    DailyTotal,
    LedgerSummary,
    Transaction,
    TransactionCategory,
)
from pocket_ledger.queries import (
    balance,
    summarize,
    total_expense,
    total_income,
    weekly_series as series_for_week,
)
from pocket_ledger.services.identity import IdentityRepository, PasswordHasher
from pocket_ledger.services.ledger import TransactionRepository
from pocket_ledger.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueAuditStorage,
    KeyValueStoreInterface,
    RecordStore,
)
from pocket_ledger.validation import InputValidator


logger = structlog.get_logger(__name__)


class NotAuthenticatedError(Exception):
    """A ledger call was made with nobody signed in."""

    def __init__(self):
        super().__init__("Please sign in first")


class PocketLedger:
    """
    The presentation-facing API.

    Identity calls (register, sign_in, sign_out, current_session) manage
    the held session; ledger calls require one.
    """

    # Pure aggregates, re-exposed for callers that hold their own snapshot
    balance = staticmethod(balance)
    total_income = staticmethod(total_income)
    total_expense = staticmethod(total_expense)

    def __init__(
        self,
        identity: IdentityRepository,
        transactions: TransactionRepository,
        tz: str = "UTC",
        clock: Callable[[], datetime] = utc_now,
    ):
        self._identity = identity
        self._transactions = transactions
        self._tz = tz
        self._clock = clock
        self._session: Optional[Session] = None
        self._restored = False

    @property
    def identity(self) -> IdentityRepository:
        return self._identity

    @property
    def transactions(self) -> TransactionRepository:
        return self._transactions

    @property
    def session(self) -> Optional[Session]:
        """The held session, without touching the store."""
        return self._session

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    async def register(
        self,
        user_name: str,
        email: str,
        password: str,
        confirm_password: Optional[str] = None,
    ) -> User:
        user = await self._identity.register(user_name, email, password, confirm_password)
        self._session = Session.for_user(user)
        self._restored = True
        return user

    async def sign_in(self, email: str, password: str) -> Session:
        self._session = await self._identity.sign_in(email, password)
        self._restored = True
        return self._session

    async def sign_out(self) -> None:
        await self._identity.sign_out()
        self._session = None
        self._restored = True

    async def current_session(self) -> Optional[Session]:
        """
        The signed-in session, if any.

        On first call, picks up a session persisted by a previous run.
        """
        if not self._restored:
            self._session = await self._identity.current_session()
            self._restored = True
            if self._session:
                logger.debug("session_restored", email=self._session.email)
        return self._session

    async def _require_session(self) -> Session:
        session = await self.current_session()
        if session is None or not session.is_authenticated:
            raise NotAuthenticatedError()
        return session

    # -------------------------------------------------------------------------
    # Ledger (scoped to the signed-in user)
    # -------------------------------------------------------------------------

    async def list_transactions(self) -> list[Transaction]:
        session = await self._require_session()
        return await self._transactions.list_transactions(session.user_id)

    async def add_transaction(
        self,
        title: str,
        amount: Union[Decimal, int, float, str],
        category: Union[TransactionCategory, str] = TransactionCategory.OTHER,
        date: Any = None,
    ) -> Transaction:
        session = await self._require_session()
        return await self._transactions.add(session.user_id, title, amount, category, date)

    async def remove_transaction(self, transaction_id: str) -> bool:
        session = await self._require_session()
        return await self._transactions.remove(session.user_id, transaction_id)

    def today(self) -> date:
        """Current calendar day in the configured time zone."""
        return self._clock().astimezone(ZoneInfo(self._tz)).date()

    def weekly_series(
        self,
        transactions: Iterable[Transaction],
        today: Optional[date] = None,
    ) -> list[DailyTotal]:
        """7-day series bucketed in the configured time zone, like summary()."""
        return series_for_week(transactions, today or self.today(), self._tz)

    async def summary(self, today: Optional[date] = None) -> LedgerSummary:
        """Balance, totals, 7-day series and category totals for the user."""
        transactions = await self.list_transactions()
        return summarize(transactions, today or self.today(), self._tz)


def create_store(settings: Settings) -> KeyValueStoreInterface:
    """Build the key-value store the settings ask for."""
    storage = settings.storage
    if storage.backend == "memory":
        return InMemoryKeyValueStore()
    return JsonFileKeyValueStore(storage.data_dir, retry_attempts=storage.retry_attempts)


def create_app_components(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStoreInterface] = None,
    clock: Callable[[], datetime] = utc_now,
) -> PocketLedger:
    """
    Create a fully wired PocketLedger.

    Args:
        settings: Settings to use. Defaults to get_settings().
        store: Key-value store to use. Defaults to the configured backend.
        clock: Source of "now", for ids and "today".

    Returns:
        The presentation-facing PocketLedger
    """
    settings = settings or get_settings()
    app_settings = settings.app
    set_debug_logging(app_settings.debug_mode)
    records = RecordStore(store or create_store(settings))

    audit_storage = None
    if app_settings.audit_to_store:
        audit_storage = KeyValueAuditStorage(records, limit=app_settings.audit_log_limit)
    audit_logger = AuditLogger(storage=audit_storage)

    security = settings.security
    validator = InputValidator(
        min_password_length=security.min_password_length,
        tz=app_settings.tzinfo,
    )
    hasher = PasswordHasher(
        iterations=security.hash_iterations,
        salt_bytes=security.salt_bytes,
    )

    identity = IdentityRepository(
        records,
        validator=validator,
        hasher=hasher,
        audit_logger=audit_logger,
    )
    transactions = TransactionRepository(
        records,
        validator=validator,
        audit_logger=audit_logger,
        clock=clock,
    )
    return PocketLedger(identity, transactions, tz=app_settings.timezone, clock=clock)
