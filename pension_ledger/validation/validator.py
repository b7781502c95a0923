"""
Two-Stage Entry Validation

DESIGN DECISION: User input is validated in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Description present
- Amount parses to a finite, positive number
- Date parses to a real calendar date
- Kind is income or expense
Any failure here is an ERROR and blocks the mutation.

STAGE 2 - SEMANTIC VALIDATION:
- Date far in the future
- Absurdly large amount
These are WARNINGS. The entry is still saved; the UI shows them.

IMPORTANT: Validation NEVER silently fixes issues.
A rejected entry leaves the ledger untouched.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import BaseModel, Field

from pension_ledger.config import get_settings
from pension_ledger.models.entry import EntryKind


DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y")

# Hard ceiling on any amount; sums stay exact within the default
# 28-digit decimal context.
AMOUNT_LIMIT = Decimal("1000000000000")


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
        description="Issue severity"
    )


class ValidatedEntryInput(BaseModel):
    """Entry fields that passed schema validation, plus any warnings."""

    description: Optional[str] = None
    amount: Optional[Decimal] = None
    entry_date: Optional[date] = None
    kind: Optional[EntryKind] = None
    warnings: list[ValidationIssue] = Field(default_factory=list)


class ValidationError(Exception):
    """User input was rejected before any mutation."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues))

    def to_dicts(self) -> list[dict]:
        return [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in self.issues
        ]


class EntryValidator:
    """
    Validates raw entry input through a two-stage pipeline.

    Works for full entries (add) and partial ones (update): only the
    fields passed in are checked.
    """

    def __init__(self, today: Optional[date] = None):
        self._settings = get_settings().app
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    # ------------------------------------------------------------------
    # Stage 1: schema
    # ------------------------------------------------------------------

    @staticmethod
    def parse_amount(value: Any) -> Optional[Decimal]:
        """Parse a user amount. Accepts '1234.56' and '1.234,56'."""
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, (int, float)):
            amount = Decimal(str(value))
        else:
            text = str(value).strip().replace("R$", "").replace(" ", "")
            if not text:
                return None
            if "," in text and "." in text:
                if text.rfind(",") > text.rfind("."):
                    text = text.replace(".", "").replace(",", ".")
                else:
                    text = text.replace(",", "")
            elif "," in text:
                text = text.replace(",", ".")
            try:
                amount = Decimal(text)
            except InvalidOperation:
                return None
        if not amount.is_finite():
            return None
        return amount

    @staticmethod
    def parse_date(value: Any) -> Optional[date]:
        """Parse ISO (2024-01-31) or Brazilian (31/01/2024) dates."""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if not isinstance(value, str):
            return None
        text = value.strip()
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        return None

    def _validate_schema(
        self,
        fields: dict[str, Any],
    ) -> tuple[ValidatedEntryInput, list[ValidationIssue]]:
        issues = []
        result = ValidatedEntryInput()

        if "description" in fields:
            description = fields["description"]
            description = description.strip() if isinstance(description, str) else ""
            if not description:
                issues.append(ValidationIssue(
                    field="description",
                    issue_type="missing",
                    message="Description is required",
                    severity="error",
                ))
            elif len(description) > 200:
                issues.append(ValidationIssue(
                    field="description",
                    issue_type="too_long",
                    message="Description must be at most 200 characters",
                    severity="error",
                ))
            else:
                result.description = description

        if "amount" in fields:
            amount = self.parse_amount(fields["amount"])
            if amount is None:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message=f"Amount is not a number: {fields['amount']!r}",
                    severity="error",
                ))
            elif amount <= 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount must be greater than zero",
                    severity="error",
                ))
            elif amount > AMOUNT_LIMIT:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="out_of_range",
                    message=f"Amount must not exceed {AMOUNT_LIMIT}",
                    severity="error",
                ))
            else:
                result.amount = amount

        if "date" in fields:
            parsed = self.parse_date(fields["date"])
            if parsed is None:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="invalid_format",
                    message=f"Date is not a valid calendar date: {fields['date']!r}",
                    severity="error",
                ))
            else:
                result.entry_date = parsed

        if "kind" in fields:
            try:
                result.kind = EntryKind.parse(fields["kind"])
            except ValueError:
                issues.append(ValidationIssue(
                    field="kind",
                    issue_type="invalid_value",
                    message=f"Kind must be income or expense, got {fields['kind']!r}",
                    severity="error",
                ))

        return result, issues

    # ------------------------------------------------------------------
    # Stage 2: semantic
    # ------------------------------------------------------------------

    def _validate_semantics(self, validated: ValidatedEntryInput) -> list[ValidationIssue]:
        warnings = []

        if validated.entry_date is not None:
            limit = self.today + timedelta(days=self._settings.future_date_tolerance_days)
            if validated.entry_date > limit:
                warnings.append(ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message=f"Date {validated.entry_date.isoformat()} is far in the future",
                    severity="warning",
                ))

        if validated.amount is not None:
            if validated.amount > Decimal(str(self._settings.max_entry_amount)):
                warnings.append(ValidationIssue(
                    field="amount",
                    issue_type="suspicious_value",
                    message=f"Amount {validated.amount} is unusually large",
                    severity="warning",
                ))

        return warnings

    def validate(self, **fields: Any) -> ValidatedEntryInput:
        """
        Validate the given entry fields.

        Raises:
            ValidationError: if any field fails the schema stage
        """
        unknown = sorted(set(fields) - {"description", "amount", "date", "kind"})
        if unknown:
            raise ValidationError([
                ValidationIssue(
                    field=name,
                    issue_type="not_editable",
                    message=f"Field '{name}' cannot be set",
                    severity="error",
                )
                for name in unknown
            ])

        validated, issues = self._validate_schema(fields)
        if issues:
            raise ValidationError(issues)

        validated.warnings = self._validate_semantics(validated)
        return validated

    def validate_new_entry(
        self,
        description: Any,
        amount: Any,
        entry_date: Any,
        kind: Any,
    ) -> ValidatedEntryInput:
        """All four fields are required for a new entry."""
        return self.validate(
            description=description,
            amount=amount,
            date=entry_date,
            kind=kind,
        )

    def validate_starting_balance(self, value: Any) -> Decimal:
        """Starting balance may be zero or negative, but must be a number."""
        amount = self.parse_amount(value)
        if amount is None:
            raise ValidationError([ValidationIssue(
                field="starting_balance",
                issue_type="invalid_format",
                message=f"Starting balance is not a number: {value!r}",
                severity="error",
            )])
        if abs(amount) > AMOUNT_LIMIT:
            raise ValidationError([ValidationIssue(
                field="starting_balance",
                issue_type="out_of_range",
                message=f"Starting balance must not exceed {AMOUNT_LIMIT} in absolute value",
                severity="error",
            )])
        return amount
