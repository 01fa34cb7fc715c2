"""
Tests for form input validation.
"""

import pytest

from household_budget.validation import EntryValidator, InvalidEntryError


@pytest.fixture
def validator():
    return EntryValidator()


class TestEntryValidator:
    """Tests for name/amount checks."""

    def test_valid_entry(self, validator):
        assert validator.parse_entry("  Rent ", "900") == ("Rent", 900.0)

    def test_decimal_comma(self, validator):
        assert validator.parse_amount("45,50") == pytest.approx(45.5)

    def test_numbers_pass_through(self, validator):
        assert validator.parse_amount(12) == 12.0
        assert validator.parse_amount(0) == 0.0

    @pytest.mark.parametrize("raw, issue_type", [
        ("", "missing"),
        (None, "missing"),
        ("abc", "not_a_number"),
        (True, "not_a_number"),
        ("nan", "not_finite"),
        ("inf", "not_finite"),
        ("-5", "negative"),
    ])
    def test_rejected_amounts(self, validator, raw, issue_type):
        issues = validator.check_amount(raw)
        assert [issue.issue_type for issue in issues] == [issue_type]
        with pytest.raises(InvalidEntryError):
            validator.parse_amount(raw)

    def test_missing_name(self, validator):
        result = validator.validate_entry("  ", "10")
        assert result.has_errors
        assert result.issues[0].field == "name"

    def test_too_long_name(self, validator):
        issues = validator.check_name("x" * 201)
        assert issues[0].issue_type == "too_long"

    def test_error_collects_all_messages(self, validator):
        with pytest.raises(InvalidEntryError) as exc_info:
            validator.parse_entry("", "abc")
        assert exc_info.value.result.error_count == 2
        assert "Name is required" in str(exc_info.value)

    def test_invalid_entry_is_a_value_error(self, validator):
        with pytest.raises(ValueError):
            validator.parse_name(None)


class TestExchangeRateValidation:
    """Tests for the exchange rate setting."""

    def test_valid_rate(self, validator):
        assert validator.parse_exchange_rate("58.75") == pytest.approx(58.75)

    def test_zero_rate(self, validator):
        issues = validator.check_exchange_rate("0")
        assert issues[0].issue_type == "zero"
        with pytest.raises(InvalidEntryError, match="greater than zero"):
            validator.parse_exchange_rate(0)

    def test_negative_rate(self, validator):
        with pytest.raises(InvalidEntryError):
            validator.parse_exchange_rate("-1")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
