"""
Aggregation Engine

DESIGN DECISION: Every figure the app shows is computed here by pure
functions over a BudgetDocument snapshot. Nothing is cached and nothing
is written back; the collections are small enough to recompute on every
rerun.

Currency rule: secondary amounts are converted to the primary currency
by DIVIDING by the exchange rate, which is stored as secondary units per
one primary unit.

Date rule: entries without a date never fall inside a date window. In
the statement they still count towards the running balance, sorted
before everything else.
"""

import calendar
from collections.abc import Iterable
from datetime import date, timedelta
from typing import Optional, TypeVar

from household_budget.models.budget import (
    BudgetDocument,
    BudgetEntry,
    BudgetSummary,
    DateRange,
    EntryKind,
    ExpenseReport,
    IncomeEntry,
    RegionLedger,
    RegionTotals,
    SeriesPoint,
    StatementRow,
)


E = TypeVar("E", bound=BudgetEntry)


# =============================================================================
# CURRENCY
# =============================================================================

def to_primary(amount: float, exchange_rate: float) -> float:
    """Convert a secondary-currency amount to the primary currency."""
    if exchange_rate <= 0:
        raise ValueError(f"Exchange rate must be positive, got {exchange_rate}")
    return amount / exchange_rate


def to_secondary(amount: float, exchange_rate: float) -> float:
    """Convert a primary-currency amount to the secondary currency."""
    if exchange_rate <= 0:
        raise ValueError(f"Exchange rate must be positive, got {exchange_rate}")
    return amount * exchange_rate


# =============================================================================
# DATE RANGES
# =============================================================================

def month_range(today: date) -> DateRange:
    """First to last calendar day of today's month."""
    last_day = calendar.monthrange(today.year, today.month)[1]
    return DateRange(
        start=today.replace(day=1),
        end=today.replace(day=last_day),
    )


def week_range(today: date) -> DateRange:
    """Monday to Sunday of today's week."""
    start = today - timedelta(days=today.weekday())
    return DateRange(start=start, end=start + timedelta(days=6))


def preset_range(preset: str, today: Optional[date] = None) -> DateRange:
    """
    Resolve a report preset.

    Args:
        preset: "week" or "month"
        today: Reference day (defaults to the current date)
    """
    today = today or date.today()
    if preset == "week":
        return week_range(today)
    if preset == "month":
        return month_range(today)
    raise ValueError(f"Unknown range preset: {preset}")


def filter_by_date_range(entries: Iterable[E], date_range: DateRange) -> list[E]:
    """Entries dated inside the range, in their original order."""
    return [entry for entry in entries if date_range.contains(entry.entry_date)]


# =============================================================================
# TOTALS
# =============================================================================

def sum_amounts(entries: Iterable[BudgetEntry]) -> float:
    return sum((entry.amount for entry in entries), 0.0)


def region_totals(ledger: RegionLedger) -> RegionTotals:
    """Expense and savings totals in the ledger's own currency."""
    return RegionTotals(
        expenses=sum_amounts(ledger.expenses),
        savings=sum_amounts(ledger.savings),
    )


def current_month_incomes(document: BudgetDocument, today: date) -> list[IncomeEntry]:
    return filter_by_date_range(document.incomes, month_range(today))


def monthly_income_total(document: BudgetDocument, today: date) -> float:
    """Sum of incomes dated in today's month."""
    return sum_amounts(current_month_incomes(document, today))


def summarize(document: BudgetDocument, today: Optional[date] = None) -> BudgetSummary:
    """
    Compute the dashboard figures.

    Income only counts the current month; expenses and savings count
    every item in the ledgers. Remaining may be negative.
    """
    today = today or date.today()
    rate = document.exchange_rate

    primary = region_totals(document.primary_region)
    secondary = region_totals(document.secondary_region)
    converted = RegionTotals(
        expenses=to_primary(secondary.expenses, rate),
        savings=to_primary(secondary.savings, rate),
    )

    total_income = monthly_income_total(document, today)
    total_expenses = primary.expenses + converted.expenses
    total_savings = primary.savings + converted.savings

    return BudgetSummary(
        period=month_range(today),
        exchange_rate=rate,
        total_income=total_income,
        primary=primary,
        secondary_native=secondary,
        secondary_converted=converted,
        total_expenses=total_expenses,
        total_savings=total_savings,
        remaining=total_income - total_expenses - total_savings,
    )


def remaining_balance(document: BudgetDocument, today: Optional[date] = None) -> float:
    return summarize(document, today).remaining


def chart_breakdown(summary: BudgetSummary) -> list[tuple[str, float]]:
    """
    Slices of the dashboard pie chart, all in primary currency.

    Remaining is clamped at zero here and only here.
    """
    return [
        ("primary_expenses", summary.primary.expenses),
        ("secondary_expenses", summary.secondary_converted.expenses),
        ("savings", summary.total_savings),
        ("available", max(summary.remaining, 0.0)),
    ]


# =============================================================================
# REPORTS
# =============================================================================

def expense_series(document: BudgetDocument, date_range: DateRange) -> list[SeriesPoint]:
    """
    Daily expense totals of both regions inside a range.

    One point per distinct date, ascending. Secondary amounts are
    converted before summing.
    """
    buckets: dict[str, SeriesPoint] = {}

    for item in filter_by_date_range(document.primary_region.expenses, date_range):
        key = item.entry_date.isoformat()
        point = buckets.setdefault(key, SeriesPoint(day=key))
        point.primary += item.amount

    for item in filter_by_date_range(document.secondary_region.expenses, date_range):
        key = item.entry_date.isoformat()
        point = buckets.setdefault(key, SeriesPoint(day=key))
        point.secondary += to_primary(item.amount, document.exchange_rate)

    return [buckets[key] for key in sorted(buckets)]


def expense_report(document: BudgetDocument, date_range: DateRange) -> ExpenseReport:
    """Filtered expenses, daily series and combined total for a range."""
    primary_expenses = filter_by_date_range(document.primary_region.expenses, date_range)
    secondary_expenses = filter_by_date_range(document.secondary_region.expenses, date_range)

    combined_total = sum_amounts(primary_expenses) + to_primary(
        sum_amounts(secondary_expenses), document.exchange_rate
    )

    return ExpenseReport(
        period=date_range,
        primary_expenses=primary_expenses,
        secondary_expenses=secondary_expenses,
        series=expense_series(document, date_range),
        combined_total=combined_total,
    )


def _statement_sources(
    document: BudgetDocument,
    primary_currency: str,
    secondary_currency: str,
):
    rate = document.exchange_rate
    yield EntryKind.INCOME, True, primary_currency, document.incomes, 1.0
    yield EntryKind.PRIMARY_EXPENSE, False, primary_currency, document.primary_region.expenses, 1.0
    yield EntryKind.PRIMARY_SAVING, False, primary_currency, document.primary_region.savings, 1.0
    yield EntryKind.SECONDARY_EXPENSE, False, secondary_currency, document.secondary_region.expenses, rate
    yield EntryKind.SECONDARY_SAVING, False, secondary_currency, document.secondary_region.savings, rate


def build_statement(
    document: BudgetDocument,
    date_range: DateRange,
    primary_currency: str = "EUR",
    secondary_currency: str = "DOP",
) -> list[StatementRow]:
    """
    Chronological statement of all credits and debits.

    The running balance is computed over the full, unfiltered history in
    ascending date order. Only then are rows outside the range dropped,
    and the rest returned newest first, each keeping its balance.
    """
    transactions = []
    for kind, is_credit, currency, entries, divisor in _statement_sources(
        document, primary_currency, secondary_currency
    ):
        for entry in entries:
            transactions.append((kind, is_credit, currency, entry, to_primary(entry.amount, divisor)))

    # Stable sort: ties keep the source order above
    transactions.sort(key=lambda t: t[3].entry_date or date.min)

    balance = 0.0
    rows = []
    for kind, is_credit, currency, entry, amount_primary in transactions:
        balance = balance + amount_primary if is_credit else balance - amount_primary
        if date_range.contains(entry.entry_date):
            rows.append(StatementRow(
                id=entry.id,
                name=entry.name,
                kind=kind,
                is_credit=is_credit,
                currency=currency,
                amount=entry.amount,
                amount_primary=amount_primary,
                entry_date=entry.entry_date,
                balance=balance,
            ))

    rows.reverse()
    return rows
