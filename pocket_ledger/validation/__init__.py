"""Input validation package."""

from pocket_ledger.validation.validator import (
    EMAIL_PATTERN,
    InputValidator,
    TransactionInput,
    ValidationError,
    ValidationIssue,
    parse_amount,
    raise_for_issues,
)

__all__ = [
    "EMAIL_PATTERN",
    "InputValidator",
    "TransactionInput",
    "ValidationError",
    "ValidationIssue",
    "parse_amount",
    "raise_for_issues",
]
