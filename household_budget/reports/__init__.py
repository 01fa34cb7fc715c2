"""Budget aggregation and reporting package."""

from household_budget.reports.aggregation import (
    build_statement,
    chart_breakdown,
    current_month_incomes,
    expense_report,
    expense_series,
    filter_by_date_range,
    month_range,
    monthly_income_total,
    preset_range,
    region_totals,
    remaining_balance,
    summarize,
    to_primary,
    to_secondary,
    week_range,
)

__all__ = [
    "build_statement",
    "chart_breakdown",
    "current_month_incomes",
    "expense_report",
    "expense_series",
    "filter_by_date_range",
    "month_range",
    "monthly_income_total",
    "preset_range",
    "region_totals",
    "remaining_balance",
    "summarize",
    "to_primary",
    "to_secondary",
    "week_range",
]
