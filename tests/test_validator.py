"""Tests for the two-stage entry validator."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from pension_ledger.models.entry import EntryKind
from pension_ledger.validation import EntryValidator, ValidationError
from pension_ledger.validation.validator import AMOUNT_LIMIT


class TestParseAmount:
    """Amounts typed by the user."""

    @pytest.mark.parametrize("raw, expected", [
        ("1234.56", Decimal("1234.56")),
        ("1234,56", Decimal("1234.56")),
        ("1.234,56", Decimal("1234.56")),
        ("1,234.56", Decimal("1234.56")),
        ("R$ 1.412,00", Decimal("1412.00")),
        (Decimal("10.5"), Decimal("10.5")),
        (10.5, Decimal("10.5")),
        (7, Decimal("7")),
    ])
    def test_accepted_formats(self, raw, expected):
        """Test Brazilian and plain number formats."""
        assert EntryValidator.parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", [None, True, "", "abc", "NaN", "Infinity", float("inf")])
    def test_rejected_values(self, raw):
        """Test that non-numbers and non-finite numbers are refused."""
        assert EntryValidator.parse_amount(raw) is None


class TestParseDate:
    """Dates typed or picked by the user."""

    def test_iso_and_brazilian_formats(self):
        assert EntryValidator.parse_date("2024-01-31") == date(2024, 1, 31)
        assert EntryValidator.parse_date("31/01/2024") == date(2024, 1, 31)

    def test_date_and_datetime_objects(self):
        assert EntryValidator.parse_date(date(2024, 2, 1)) == date(2024, 2, 1)
        assert EntryValidator.parse_date(datetime(2024, 2, 1, 13, 30)) == date(2024, 2, 1)

    @pytest.mark.parametrize("raw", ["2024-02-30", "31/13/2024", "yesterday", 20240101, None])
    def test_invalid_dates(self, raw):
        """Test that impossible calendar dates are refused."""
        assert EntryValidator.parse_date(raw) is None


class TestSchemaStage:
    """Errors block the mutation."""

    def test_valid_new_entry(self, validator):
        """Test a complete, valid entry."""
        result = validator.validate_new_entry(
            description="  Aposentadoria ",
            amount="1.412,00",
            entry_date="2024-06-05",
            kind="income",
        )

        assert result.description == "Aposentadoria"
        assert result.amount == Decimal("1412.00")
        assert result.entry_date == date(2024, 6, 5)
        assert result.kind is EntryKind.INCOME
        assert result.warnings == []

    @pytest.mark.parametrize("amount", ["-5", "0", -5])
    def test_non_positive_amount(self, validator, amount):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_new_entry("Luz", amount, "2024-06-01", "expense")

        issue = exc_info.value.issues[0]
        assert issue.field == "amount"
        assert issue.issue_type == "invalid_value"

    def test_collects_every_issue(self, validator):
        """Test that all bad fields are reported at once."""
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_new_entry("", "abc", "not a date", "transfer")

        fields = {issue.field for issue in exc_info.value.issues}
        assert fields == {"description", "amount", "date", "kind"}

    def test_description_too_long(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate(description="x" * 201)
        assert exc_info.value.issues[0].issue_type == "too_long"

    def test_partial_validation_checks_only_given_fields(self, validator):
        """Updates may pass a subset of fields."""
        result = validator.validate(amount="99,90")

        assert result.amount == Decimal("99.90")
        assert result.description is None
        assert result.entry_date is None

    def test_id_is_not_editable(self, validator):
        """Test that the id cannot be passed as a field."""
        with pytest.raises(ValidationError) as exc_info:
            validator.validate(id="other", amount="10")

        assert exc_info.value.issues[0].field == "id"
        assert exc_info.value.issues[0].issue_type == "not_editable"

    def test_error_to_dicts(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate(amount="abc")

        assert exc_info.value.to_dicts() == [{
            "field": "amount",
            "type": "invalid_format",
            "message": "Amount is not a number: 'abc'",
        }]


class TestSemanticStage:
    """Warnings never block the mutation."""

    def test_far_future_date_warns(self, validator):
        """Test dates beyond the tolerance window."""
        result = validator.validate(date=date(2026, 1, 1))

        assert result.entry_date == date(2026, 1, 1)
        assert [w.issue_type for w in result.warnings] == ["future_date"]

    def test_near_future_date_is_fine(self, validator):
        result = validator.validate(date=date(2024, 7, 1))
        assert result.warnings == []

    def test_huge_amount_warns(self, validator):
        """Test amounts above the configured maximum."""
        result = validator.validate(amount="5000000")

        assert result.amount == Decimal("5000000")
        assert [w.issue_type for w in result.warnings] == ["suspicious_value"]


class TestStartingBalance:
    """The starting balance may be zero or negative."""

    @pytest.mark.parametrize("raw, expected", [
        ("0", Decimal("0")),
        ("-150,00", Decimal("-150.00")),
        (1000.0, Decimal("1000.0")),
    ])
    def test_accepts_any_number(self, validator, raw, expected):
        assert validator.validate_starting_balance(raw) == expected

    def test_rejects_text(self, validator):
        with pytest.raises(ValidationError):
            validator.validate_starting_balance("muito")


class TestAmountLimit:
    """Amounts too large to store and display are errors, not warnings."""

    @pytest.mark.parametrize("amount", ["1e26", "1000000000000.01", Decimal("1E+40")])
    def test_amount_above_limit_is_rejected(self, validator, amount):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate(amount=amount)

        assert exc_info.value.issues[0].issue_type == "out_of_range"

    def test_amount_at_limit_only_warns(self, validator):
        result = validator.validate(amount=str(AMOUNT_LIMIT))

        assert result.amount == AMOUNT_LIMIT
        assert [w.issue_type for w in result.warnings] == ["suspicious_value"]

    @pytest.mark.parametrize("raw", ["1e26", "-1e26"])
    def test_starting_balance_above_limit_is_rejected(self, validator, raw):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_starting_balance(raw)

        assert exc_info.value.issues[0].issue_type == "out_of_range"
