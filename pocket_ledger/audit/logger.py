"""
Audit Logger

Every identity and ledger mutation is logged, successful or not.

The audit logger:
- Always logs locally through structlog
- Optionally appends events to the store's 'auditLog' key
- Never lets an audit failure break the operation being audited
"""

import logging
from typing import Optional

import structlog

from pocket_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from pocket_ledger.services.storage import AuditStorageInterface, StorageError


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def set_debug_logging(enabled: bool) -> None:
    """Switch every pocket_ledger logger between DEBUG and INFO."""
    logging.getLogger("pocket_ledger").setLevel(logging.DEBUG if enabled else logging.INFO)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The key-value store, when a storage backend is given
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("pocket_ledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except StorageError as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_user_registered(self, email: str, user_name: str) -> None:
        await self.log(AuditEventBuilder.user_registered(email, user_name))

    async def log_registration_rejected(
        self,
        email: str,
        reason: str,
        fields: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.registration_rejected(email, reason, fields))

    async def log_signed_in(self, email: str) -> None:
        await self.log(AuditEventBuilder.signed_in(email))

    async def log_sign_in_failed(self, email: str) -> None:
        await self.log(AuditEventBuilder.sign_in_failed(email))

    async def log_signed_out(self, email: Optional[str]) -> None:
        await self.log(AuditEventBuilder.signed_out(email))

    async def log_credential_upgraded(self, email: str) -> None:
        await self.log(AuditEventBuilder.credential_upgraded(email))

    async def log_transaction_added(
        self,
        user_id: str,
        transaction_id: str,
        amount: str,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_added(user_id, transaction_id, amount))

    async def log_transaction_removed(
        self,
        user_id: str,
        transaction_id: str,
        removed: bool,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_removed(user_id, transaction_id, removed))

    async def log_transaction_rejected(self, user_id: str, fields: list[str]) -> None:
        await self.log(AuditEventBuilder.transaction_rejected(user_id, fields))

    async def log_storage_error(self, operation: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.storage_error(operation, error_message))
