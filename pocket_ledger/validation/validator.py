"""
Input Validation

Forms are checked field by field and every failing field is reported,
not just the first one, so the presentation layer can flag all of them
in one pass.

IMPORTANT: Validation never silently fixes values beyond trimming the
whitespace around emails and titles. Passwords are taken exactly as typed.
"""

import re
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field

from pocket_ledger.config import get_settings
from pocket_ledger.models.ledger import TransactionCategory


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_TITLE_LENGTH = 200


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'too_short')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
    )


class ValidationError(Exception):
    """Malformed or missing input. Carries every failing field."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(f"{i.field}: {i.message}" for i in issues))

    @property
    def fields(self) -> list[str]:
        return [issue.field for issue in self.issues]


class TransactionInput(BaseModel):
    """Transaction fields after validation, ready to be stamped with an id."""

    title: str
    amount: Decimal
    category: TransactionCategory
    date: datetime


def raise_for_issues(issues: list[ValidationIssue]) -> None:
    """Raise ValidationError if any issue is an error."""
    errors = [issue for issue in issues if issue.severity == "error"]
    if errors:
        raise ValidationError(errors)


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse a user-entered amount.

    Returns None for empty, unparseable or non-finite input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not amount.is_finite():
        return None
    return amount


class InputValidator:
    """
    Validates registration, sign-in and transaction forms.

    Each validate_* method returns the full list of issues; callers decide
    whether to raise.
    """

    def __init__(
        self,
        min_password_length: Optional[int] = None,
        tz: Optional[ZoneInfo] = None,
    ):
        settings = get_settings()
        if min_password_length is None:
            min_password_length = settings.security.min_password_length
        self._min_password_length = min_password_length
        self._tz = tz or settings.app.tzinfo

    def validate_registration(
        self,
        user_name: str,
        email: str,
        password: str,
        confirm_password: Optional[str] = None,
    ) -> list[ValidationIssue]:
        issues = []

        if not user_name or not user_name.strip():
            issues.append(ValidationIssue(
                field="user_name",
                issue_type="missing",
                message="Please enter your user name",
            ))

        issues.extend(self._check_email(email))

        if not password or len(password) < self._min_password_length:
            issues.append(ValidationIssue(
                field="password",
                issue_type="too_short",
                message=f"Password must be at least {self._min_password_length} characters",
            ))

        # Confirmation is only checked when the form supplies one
        if confirm_password is not None and confirm_password != password:
            issues.append(ValidationIssue(
                field="confirm_password",
                issue_type="mismatch",
                message="Passwords do not match",
            ))

        return issues

    def validate_sign_in(self, email: str, password: str) -> list[ValidationIssue]:
        issues = self._check_email(email)
        if not password:
            issues.append(ValidationIssue(
                field="password",
                issue_type="missing",
                message="Please enter your password",
            ))
        return issues

    def validate_transaction(
        self,
        title: str,
        amount: Any,
        category: Any = TransactionCategory.OTHER,
        when: Any = None,
    ) -> tuple[list[ValidationIssue], Optional[TransactionInput]]:
        """
        Check a transaction form.

        Returns:
            (issues, parsed) where parsed is None whenever there is an error
        """
        issues = []

        clean_title = title.strip() if isinstance(title, str) else ""
        if not clean_title:
            issues.append(ValidationIssue(
                field="title",
                issue_type="missing",
                message="Please enter a title",
            ))
        elif len(clean_title) > MAX_TITLE_LENGTH:
            issues.append(ValidationIssue(
                field="title",
                issue_type="too_long",
                message=f"Title must be at most {MAX_TITLE_LENGTH} characters",
            ))

        parsed_amount = parse_amount(amount)
        if parsed_amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format" if amount not in (None, "") else "missing",
                message="Please enter a valid amount",
            ))

        parsed_category = None
        try:
            parsed_category = TransactionCategory(category)
        except ValueError:
            issues.append(ValidationIssue(
                field="category",
                issue_type="invalid_value",
                message=f"Unknown category: {category}",
            ))

        parsed_date = self._parse_date(when)
        if parsed_date is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message="Please pick a valid date",
            ))

        if issues:
            return issues, None

        return issues, TransactionInput(
            title=clean_title,
            amount=parsed_amount,
            category=parsed_category,
            date=parsed_date,
        )

    def _check_email(self, email: str) -> list[ValidationIssue]:
        if not email or not email.strip():
            return [ValidationIssue(
                field="email",
                issue_type="missing",
                message="Please enter your email",
            )]
        if not EMAIL_PATTERN.match(email.strip()):
            return [ValidationIssue(
                field="email",
                issue_type="invalid_format",
                message="Please enter a valid email",
            )]
        return []

    def _parse_date(self, when: Any) -> Optional[datetime]:
        """None means now; a bare date means the start of that day locally."""
        if when is None:
            return datetime.now(timezone.utc)
        if isinstance(when, datetime):
            return when if when.tzinfo else when.replace(tzinfo=timezone.utc)
        if isinstance(when, date):
            return datetime.combine(when, time.min, tzinfo=self._tz)
        if isinstance(when, str):
            text = when.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError:
                return None
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
        return None
