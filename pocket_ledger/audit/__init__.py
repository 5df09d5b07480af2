"""Audit logging package."""

from pocket_ledger.audit.logger import AuditLogger, set_debug_logging

__all__ = ["AuditLogger", "set_debug_logging"]
