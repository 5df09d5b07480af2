"""
Audit Models for Pocket Ledger

Every identity and ledger mutation is logged for audit purposes.
This provides:
1. Traceability of sign-ins and ledger changes
2. Debugging information when a store write fails
3. A record of rejected attempts (bad credentials, invalid forms)

DESIGN DECISION: Audit events never carry passwords, hashes or salts.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from pocket_ledger.models.identity import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Identity
    USER_REGISTERED = "user_registered"
    REGISTRATION_REJECTED = "registration_rejected"
    SIGNED_IN = "signed_in"
    SIGN_IN_FAILED = "sign_in_failed"
    SIGNED_OUT = "signed_out"
    CREDENTIAL_UPGRADED = "credential_upgraded"

    # Ledger
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_REMOVED = "transaction_removed"
    TRANSACTION_REJECTED = "transaction_rejected"

    # System events
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity ('user', 'session', 'transaction')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.signed_in(email)
        event = AuditEventBuilder.transaction_added(user_id, transaction_id, amount)
    """

    @staticmethod
    def user_registered(email: str, user_name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            entity_type="user",
            entity_id=email,
            description=f"User registered: {email}",
            details={"user_name": user_name},
        )

    @staticmethod
    def registration_rejected(email: str, reason: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REGISTRATION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=email or None,
            description=f"Registration rejected: {reason}",
            details={"fields": fields},
        )

    @staticmethod
    def signed_in(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_IN,
            entity_type="session",
            entity_id=email,
            description=f"Signed in: {email}",
        )

    @staticmethod
    def sign_in_failed(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGN_IN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            entity_id=email or None,
            description="Sign-in failed: invalid credentials",
        )

    @staticmethod
    def signed_out(email: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_OUT,
            entity_type="session",
            entity_id=email,
            description="Signed out",
        )

    @staticmethod
    def credential_upgraded(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDENTIAL_UPGRADED,
            entity_type="user",
            entity_id=email,
            description="Legacy plaintext credential replaced with a salted hash",
        )

    @staticmethod
    def transaction_added(user_id: str, transaction_id: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction added for {user_id}",
            details={"user_id": user_id, "amount": amount},
        )

    @staticmethod
    def transaction_removed(user_id: str, transaction_id: str, removed: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REMOVED,
            severity=AuditSeverity.INFO if removed else AuditSeverity.DEBUG,
            entity_type="transaction",
            entity_id=transaction_id,
            description=(
                f"Transaction removed for {user_id}" if removed
                else f"Nothing to remove for {user_id}"
            ),
            details={"user_id": user_id, "removed": removed},
        )

    @staticmethod
    def transaction_rejected(user_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            description=f"Transaction rejected for {user_id}",
            details={"user_id": user_id, "fields": fields},
        )

    @staticmethod
    def storage_error(operation: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage failure during {operation}",
            details={"operation": operation},
            error_message=error_message,
        )
