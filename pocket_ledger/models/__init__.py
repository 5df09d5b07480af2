"""
Data Models Package

This package contains all Pydantic models used in Pocket Ledger.
All data flowing through the system must conform to these schemas.
"""

from pocket_ledger.models.identity import Session, User, utc_now
from pocket_ledger.models.ledger import (
    DailyTotal,
    LedgerSummary,
    Transaction,
    TransactionCategory,
)
from pocket_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Identity models
    "Session",
    "User",
    "utc_now",
    # Ledger models
    "DailyTotal",
    "LedgerSummary",
    "Transaction",
    "TransactionCategory",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
