"""
Tests for form validation.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from pocket_ledger.models import TransactionCategory
from pocket_ledger.validation import (
    InputValidator,
    ValidationError,
    ValidationIssue,
    parse_amount,
    raise_for_issues,
)


class TestRegistrationValidation:
    """Tests for validate_registration."""

    def test_valid_form_has_no_issues(self, validator):
        """Test a complete, consistent form passes."""
        assert validator.validate_registration("Asha", "asha@example.com", "secret1", "secret1") == []

    def test_every_failing_field_is_reported(self, validator):
        """Test all four fields are flagged at once."""
        issues = validator.validate_registration("", "not-an-email", "123", "456")
        assert [i.field for i in issues] == ["user_name", "email", "password", "confirm_password"]

    def test_password_minimum_length(self, validator):
        """Test six characters is the shortest accepted password."""
        assert validator.validate_registration("A", "a@b.co", "12345") != []
        assert validator.validate_registration("A", "a@b.co", "123456") == []

    def test_confirmation_optional(self, validator):
        """Test omitting the confirmation skips that check."""
        assert validator.validate_registration("A", "a@b.co", "secret1", None) == []

    @pytest.mark.parametrize("email", ["a@b", "a b@c.de", "@b.co", "a@.co", "a@@b.co"])
    def test_malformed_emails(self, validator, email):
        """Test emails must look like local@domain.tld."""
        issues = validator.validate_registration("A", email, "secret1")
        assert [i.field for i in issues] == ["email"]

    def test_surrounding_whitespace_on_email_allowed(self, validator):
        """Test the email is checked after trimming."""
        assert validator.validate_registration("A", "  a@b.co ", "secret1") == []


class TestSignInValidation:
    """Tests for validate_sign_in."""

    def test_missing_fields(self, validator):
        """Test both missing fields are flagged."""
        issues = validator.validate_sign_in("", "")
        assert [(i.field, i.issue_type) for i in issues] == [
            ("email", "missing"),
            ("password", "missing"),
        ]

    def test_short_password_not_checked(self, validator):
        """Test sign-in does not enforce the registration length rule."""
        assert validator.validate_sign_in("a@b.co", "x") == []


class TestTransactionValidation:
    """Tests for validate_transaction."""

    def test_valid_transaction_is_parsed(self, validator):
        """Test title is trimmed and amount parsed to Decimal."""
        when = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
        issues, parsed = validator.validate_transaction("  Groceries ", "-120.50", "food", when)
        assert issues == []
        assert parsed.title == "Groceries"
        assert parsed.amount == Decimal("-120.50")
        assert parsed.category == TransactionCategory.FOOD
        assert parsed.date == when

    def test_every_failing_field_is_reported(self, validator):
        """Test title, amount, category and date are all flagged."""
        issues, parsed = validator.validate_transaction("  ", "abc", "rent", "yesterday")
        assert parsed is None
        assert [i.field for i in issues] == ["title", "amount", "category", "date"]

    def test_empty_amount_is_missing(self, validator):
        """Test an empty amount is reported as missing."""
        issues, _ = validator.validate_transaction("Tea", "", "food")
        assert issues[0].issue_type == "missing"

    def test_zero_amount_allowed(self, validator):
        """Test zero is a parseable amount."""
        issues, parsed = validator.validate_transaction("Refund", "0")
        assert issues == []
        assert parsed.amount == Decimal("0")

    def test_overlong_title(self, validator):
        """Test titles over 200 characters are rejected."""
        issues, _ = validator.validate_transaction("x" * 201, "1")
        assert issues[0].issue_type == "too_long"

    def test_missing_date_is_now(self, validator):
        """Test no date means the current instant."""
        _, parsed = validator.validate_transaction("Tea", "-2")
        assert abs(datetime.now(timezone.utc) - parsed.date) < timedelta(minutes=1)

    def test_bare_date_is_local_midnight(self):
        """Test a plain date becomes the start of that day in the configured zone."""
        ist = timezone(timedelta(hours=5, minutes=30))
        validator = InputValidator(min_password_length=6, tz=ist)
        _, parsed = validator.validate_transaction("Tea", "-2", "food", date(2026, 10, 19))
        assert parsed.date == datetime(2026, 10, 19, tzinfo=ist)

    def test_iso_string_date(self, validator):
        """Test ISO strings as written by the mobile app parse."""
        _, parsed = validator.validate_transaction("Tea", "-2", "food", "2026-10-19T08:15:00+00:00")
        assert parsed.date == datetime(2026, 10, 19, 8, 15, tzinfo=timezone.utc)


class TestParseAmount:
    """Tests for parse_amount."""

    @pytest.mark.parametrize("value,expected", [
        ("5000", Decimal("5000")),
        (" -120.5 ", Decimal("-120.5")),
        (42, Decimal("42")),
        (0.1, Decimal("0.1")),
        (Decimal("-3"), Decimal("-3")),
    ])
    def test_parses(self, value, expected):
        """Test accepted amount forms."""
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", [None, "", "  ", "abc", "NaN", "Infinity", True, [1]])
    def test_rejects(self, value):
        """Test empty, unparseable and non-finite amounts."""
        assert parse_amount(value) is None


class TestRaiseForIssues:
    """Tests for raise_for_issues and ValidationError."""

    def test_errors_raise_with_fields(self):
        """Test the raised error lists failing fields."""
        issues = [
            ValidationIssue(field="title", issue_type="missing", message="Please enter a title"),
            ValidationIssue(field="amount", issue_type="missing", message="Please enter a valid amount"),
        ]
        with pytest.raises(ValidationError) as exc_info:
            raise_for_issues(issues)
        assert exc_info.value.fields == ["title", "amount"]
        assert "title: Please enter a title" in str(exc_info.value)

    def test_warnings_do_not_raise(self):
        """Test warning-only issue lists pass."""
        raise_for_issues([
            ValidationIssue(field="date", issue_type="future", message="In the future", severity="warning"),
        ])
