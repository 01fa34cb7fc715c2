"""
Entry Validation

DESIGN DECISION: Form input is checked before it reaches the budget
document. A value that is not a finite, non-negative number is rejected
with an explicit issue instead of being coerced; a coerced NaN would
silently poison every total computed afterwards.

IMPORTANT: Validation NEVER silently fixes issues beyond normalizing a
decimal comma ("12,50" is read as 12.5).
"""

import math
from typing import Any, Optional

from household_budget.models.budget import ValidationIssue, ValidationResult


class InvalidEntryError(ValueError):
    """Form input rejected by validation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = [issue.message for issue in result.issues if issue.severity == "error"]
        super().__init__("; ".join(messages) or "Invalid entry")


def _error(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
    )


def _to_number(raw: Any) -> Optional[float]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        text = raw.strip().replace(" ", "")
        if "," in text and "." not in text:
            text = text.replace(",", ".")
        try:
            return float(text)
        except ValueError:
            return None
    return None


class EntryValidator:
    """
    Validates income/expense/savings form input and settings values.
    """

    def check_name(self, name: Any, field: str = "name") -> list[ValidationIssue]:
        if not isinstance(name, str) or not name.strip():
            return [_error(field, "missing", "Name is required")]
        if len(name.strip()) > 200:
            return [_error(field, "too_long", "Name must be at most 200 characters")]
        return []

    def check_amount(self, raw: Any, field: str = "amount") -> list[ValidationIssue]:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return [_error(field, "missing", "Amount is required")]

        value = _to_number(raw)
        if value is None:
            return [_error(field, "not_a_number", f"'{raw}' is not a number")]
        if not math.isfinite(value):
            return [_error(field, "not_finite", "Amount must be a finite number")]
        if value < 0:
            return [_error(field, "negative", "Amount cannot be negative")]
        return []

    def check_exchange_rate(self, raw: Any) -> list[ValidationIssue]:
        issues = self.check_amount(raw, field="exchange_rate")
        if issues:
            return issues
        if _to_number(raw) == 0:
            return [_error("exchange_rate", "zero", "Exchange rate must be greater than zero")]
        return []

    def validate_entry(self, name: Any, amount: Any) -> ValidationResult:
        """Check a name/amount pair from a form."""
        return ValidationResult(issues=self.check_name(name) + self.check_amount(amount))

    def parse_entry(self, name: Any, amount: Any) -> tuple[str, float]:
        """
        Validate and convert a name/amount pair.

        Raises:
            InvalidEntryError: If any error-level issue was found
        """
        result = self.validate_entry(name, amount)
        if result.has_errors:
            raise InvalidEntryError(result)
        return name.strip(), _to_number(amount)

    def parse_amount(self, raw: Any) -> float:
        result = ValidationResult(issues=self.check_amount(raw))
        if result.has_errors:
            raise InvalidEntryError(result)
        return _to_number(raw)

    def parse_name(self, raw: Any) -> str:
        result = ValidationResult(issues=self.check_name(raw))
        if result.has_errors:
            raise InvalidEntryError(result)
        return raw.strip()

    def parse_exchange_rate(self, raw: Any) -> float:
        result = ValidationResult(issues=self.check_exchange_rate(raw))
        if result.has_errors:
            raise InvalidEntryError(result)
        return _to_number(raw)
