"""
Data Models Package

This package contains all Pydantic models used in the Household Budget system.
All data flowing through the system must conform to these schemas.
"""

from household_budget.models.budget import (
    BudgetDocument,
    BudgetEntry,
    BudgetSummary,
    Category,
    DateRange,
    EntryKind,
    ExpenseReport,
    IncomeEntry,
    ItemType,
    LineItem,
    Region,
    RegionLedger,
    RegionTotals,
    SeriesPoint,
    StatementRow,
    ValidationIssue,
    ValidationResult,
    new_entry_id,
)
from household_budget.models.user import (
    SessionUser,
    UserRecord,
    UserRole,
)
from household_budget.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Budget models
    "BudgetDocument",
    "BudgetEntry",
    "BudgetSummary",
    "Category",
    "DateRange",
    "EntryKind",
    "ExpenseReport",
    "IncomeEntry",
    "ItemType",
    "LineItem",
    "Region",
    "RegionLedger",
    "RegionTotals",
    "SeriesPoint",
    "StatementRow",
    "ValidationIssue",
    "ValidationResult",
    "new_entry_id",
    # User models
    "SessionUser",
    "UserRecord",
    "UserRole",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
