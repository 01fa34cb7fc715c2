"""Entry validation package."""

from household_budget.validation.validator import EntryValidator, InvalidEntryError

__all__ = ["EntryValidator", "InvalidEntryError"]
