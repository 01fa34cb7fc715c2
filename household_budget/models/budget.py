"""
Core Data Models for Household Budget

These models define the strict schemas for the budget document and for
everything derived from it. They are designed to:
1. Enforce type safety at runtime
2. Reject malformed amounts instead of letting them poison totals
3. Serialize to the same camelCase JSON the stored documents use
4. Read the legacy region keys of older backups

DESIGN DECISION: Amounts are floats. Totals are compared to
floating-point tolerance and the stored JSON keeps plain numbers.
"""

import math
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Region(str, Enum):
    """The two household cost centers, each with its own currency."""
    PRIMARY = "primary"
    SECONDARY = "secondary"


class Category(str, Enum):
    """Collections kept inside a region ledger."""
    EXPENSES = "expenses"
    SAVINGS = "savings"


class ItemType(str, Enum):
    """Expense recurrence."""
    FIXED = "fixed"
    VARIABLE = "variable"


class EntryKind(str, Enum):
    """Origin of a statement row."""
    INCOME = "income"
    PRIMARY_EXPENSE = "primary_expense"
    PRIMARY_SAVING = "primary_saving"
    SECONDARY_EXPENSE = "secondary_expense"
    SECONDARY_SAVING = "secondary_saving"


def new_entry_id() -> str:
    """Generate a collection-unique entry id."""
    return uuid4().hex


# =============================================================================
# BUDGET DOCUMENT
# =============================================================================

class BudgetEntry(BaseModel):
    """
    Fields shared by incomes and line items.

    The date is optional because older documents may lack it.
    """
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    id: str = Field(
        default_factory=new_entry_id,
        min_length=1,
        description="Unique id within the owning collection"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name"
    )
    amount: float = Field(
        ...,
        ge=0,
        allow_inf_nan=False,
        description="Amount in the native currency of the collection"
    )
    entry_date: Optional[date] = Field(
        default=None,
        alias="date",
        description="Calendar date of the entry"
    )

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """Older documents used numeric ids."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v)) if float(v).is_integer() else str(v)
        return v

    @field_validator('amount', mode='before')
    @classmethod
    def blank_amount_is_zero(cls, v: Any) -> Any:
        """Cleared amount fields were stored as empty strings."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return 0.0
        return v

    @field_validator('entry_date', mode='before')
    @classmethod
    def parse_entry_date(cls, v: Any) -> Any:
        """Accept empty strings and full ISO timestamps."""
        if v is None or v == "":
            return None
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and len(v) > 10 and v[10] in ("T", " "):
            return v[:10]
        return v


class IncomeEntry(BudgetEntry):
    """Income in the primary currency."""


class LineItem(BudgetEntry):
    """Expense or savings item in its region's native currency."""

    item_type: ItemType = Field(
        default=ItemType.VARIABLE,
        alias="type",
        description="Fixed or variable (only meaningful for expenses)"
    )


def _check_unique_ids(entries: list[BudgetEntry], collection: str) -> None:
    seen = set()
    for entry in entries:
        if entry.id in seen:
            raise ValueError(f"Duplicate id '{entry.id}' in {collection}")
        seen.add(entry.id)


def _first_present(raw: dict, *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _salvage_entries(
    model: type[BudgetEntry],
    raw_entries: Any,
    collection: str,
    dropped: list[str],
) -> list:
    """Validate entries one at a time, keeping the ones that pass."""
    if raw_entries is None:
        return []
    if not isinstance(raw_entries, list):
        dropped.append(f"{collection}: not a list")
        return []

    entries = []
    seen = set()
    for position, raw_entry in enumerate(raw_entries):
        try:
            entry = model.model_validate(raw_entry)
        except ValidationError as e:
            dropped.append(f"{collection}[{position}]: {e.error_count()} invalid field(s)")
            continue
        if entry.id in seen:
            entry = entry.model_copy(update={"id": new_entry_id()})
        seen.add(entry.id)
        entries.append(entry)
    return entries


def _salvage_ledger(raw_ledger: Any, region: str, dropped: list[str]) -> 'RegionLedger':
    if raw_ledger is None:
        return RegionLedger()
    if not isinstance(raw_ledger, dict):
        dropped.append(f"{region}: not an object")
        return RegionLedger()
    return RegionLedger(
        expenses=_salvage_entries(LineItem, raw_ledger.get("expenses"), f"{region}.expenses", dropped),
        savings=_salvage_entries(LineItem, raw_ledger.get("savings"), f"{region}.savings", dropped),
    )


class RegionLedger(BaseModel):
    """Expenses and savings of one region."""

    expenses: list[LineItem] = Field(default_factory=list)
    savings: list[LineItem] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_unique_ids(self) -> 'RegionLedger':
        _check_unique_ids(self.expenses, "expenses")
        _check_unique_ids(self.savings, "savings")
        return self

    def items(self, category: Category) -> list[LineItem]:
        """Get the collection for a category."""
        if category == Category.EXPENSES:
            return self.expenses
        return self.savings


class BudgetDocument(BaseModel):
    """
    The unit of persistence and of export/import.

    Serialized with camelCase keys. The legacy keys "spain" and "dr"
    of older backups are read as the primary and secondary regions.
    """
    model_config = ConfigDict(populate_by_name=True)

    exchange_rate: float = Field(
        default=64.50,
        gt=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("exchangeRate", "exchange_rate"),
        serialization_alias="exchangeRate",
        description="Secondary currency units per 1 primary unit"
    )
    incomes: list[IncomeEntry] = Field(default_factory=list)
    primary_region: RegionLedger = Field(
        default_factory=RegionLedger,
        validation_alias=AliasChoices("primaryRegion", "primary_region", "spain"),
        serialization_alias="primaryRegion",
    )
    secondary_region: RegionLedger = Field(
        default_factory=RegionLedger,
        validation_alias=AliasChoices("secondaryRegion", "secondary_region", "dr"),
        serialization_alias="secondaryRegion",
    )

    @model_validator(mode='after')
    def validate_unique_ids(self) -> 'BudgetDocument':
        _check_unique_ids(self.incomes, "incomes")
        return self

    def ledger(self, region: Region) -> RegionLedger:
        """Get the ledger of a region."""
        if region == Region.PRIMARY:
            return self.primary_region
        return self.secondary_region

    def to_storage(self) -> dict:
        """JSON-compatible dict in the persisted shape."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def salvage(
        cls,
        raw: Any,
        default_rate: float = 64.50,
    ) -> tuple['BudgetDocument', list[str]]:
        """
        Lenient load of a stored document.

        Entries that fail validation are dropped one at a time instead of
        rejecting the whole document, and an unusable exchange rate falls
        back to `default_rate`. Repeated ids get a fresh id.

        Returns:
            The document and a description of everything that was dropped

        Raises:
            ValueError: If the value is not a JSON object at all
        """
        if not isinstance(raw, dict):
            raise ValueError(f"Stored budget is a {type(raw).__name__}, not an object")

        dropped: list[str] = []
        rate = _first_present(raw, "exchangeRate", "exchange_rate")
        if rate is None:
            rate = default_rate
        try:
            rate = float(rate)
        except (TypeError, ValueError):
            rate = float("nan")
        if not math.isfinite(rate) or rate <= 0:
            dropped.append(f"exchangeRate: {_first_present(raw, 'exchangeRate', 'exchange_rate')!r}")
            rate = default_rate

        document = cls(
            exchange_rate=rate,
            incomes=_salvage_entries(IncomeEntry, raw.get("incomes"), "incomes", dropped),
            primary_region=_salvage_ledger(
                _first_present(raw, "primaryRegion", "primary_region", "spain"),
                "primaryRegion",
                dropped,
            ),
            secondary_region=_salvage_ledger(
                _first_present(raw, "secondaryRegion", "secondary_region", "dr"),
                "secondaryRegion",
                dropped,
            ),
        )
        return document, dropped

    @classmethod
    def starter(
        cls,
        today: Optional[date] = None,
        exchange_rate: float = 64.50,
    ) -> 'BudgetDocument':
        """Sample budget shown before anything has been saved."""
        today = today or date.today()
        return cls(
            exchange_rate=exchange_rate,
            incomes=[
                IncomeEntry(id="1", name="Base salary", amount=2500, entry_date=today),
            ],
            primary_region=RegionLedger(
                expenses=[
                    LineItem(id="se1", name="Rent/Mortgage", amount=900,
                             item_type=ItemType.FIXED, entry_date=today),
                ],
                savings=[
                    LineItem(id="ss1", name="Emergency fund", amount=200, entry_date=today),
                ],
            ),
            secondary_region=RegionLedger(
                expenses=[
                    LineItem(id="de1", name="Family support", amount=15000,
                             item_type=ItemType.FIXED, entry_date=today),
                ],
                savings=[
                    LineItem(id="ds1", name="Local savings", amount=2000, entry_date=today),
                ],
            ),
        )


# =============================================================================
# REPORT MODELS
# =============================================================================

class DateRange(BaseModel):
    """Closed calendar range; both ends are inclusive."""

    start: date
    end: date

    @model_validator(mode='after')
    def validate_order(self) -> 'DateRange':
        if self.end < self.start:
            raise ValueError("Range end cannot be before start")
        return self

    def contains(self, day: Optional[date]) -> bool:
        """Undated entries are never inside a range."""
        if day is None:
            return False
        return self.start <= day <= self.end


class RegionTotals(BaseModel):
    """Totals of one ledger in its native currency."""

    expenses: float = 0.0
    savings: float = 0.0


class BudgetSummary(BaseModel):
    """
    Dashboard figures for one month.

    Everything except the secondary native totals is in primary currency.
    """

    period: DateRange
    exchange_rate: float

    total_income: float
    primary: RegionTotals
    secondary_native: RegionTotals
    secondary_converted: RegionTotals

    total_expenses: float
    total_savings: float
    remaining: float

    @property
    def is_over_budget(self) -> bool:
        return self.remaining < 0


class SeriesPoint(BaseModel):
    """Expenses of one calendar day, both in primary currency."""

    day: str = Field(..., description="ISO date used as bucket key")
    primary: float = 0.0
    secondary: float = 0.0

    @property
    def total(self) -> float:
        return self.primary + self.secondary


class ExpenseReport(BaseModel):
    """Expenses of both regions inside a date range."""

    period: DateRange
    primary_expenses: list[LineItem] = Field(default_factory=list)
    secondary_expenses: list[LineItem] = Field(default_factory=list)
    series: list[SeriesPoint] = Field(default_factory=list)
    combined_total: float = 0.0


class StatementRow(BaseModel):
    """One credit or debit of the chronological statement."""

    id: str
    name: str
    kind: EntryKind
    is_credit: bool
    currency: str
    amount: float = Field(..., description="Amount in the native currency")
    amount_primary: float = Field(..., description="Amount converted to primary currency")
    entry_date: Optional[date] = None
    balance: float = Field(..., description="Running balance after this row")

    @property
    def signed_amount(self) -> float:
        return self.amount_primary if self.is_credit else -self.amount_primary


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'not_a_number', 'negative')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of checking one form submission."""

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def is_valid(self) -> bool:
        return not self.has_errors
