"""
Tests for Household Budget

Test strategy:
1. Unit tests for individual components (models, validators)
2. Integration tests for flows (with in-memory storage)
3. No real API calls in tests (use mocks)
"""

import pytest
from datetime import date
from uuid import uuid4

from pydantic import ValidationError

from household_budget.models.budget import (
    BudgetDocument,
    Category,
    DateRange,
    IncomeEntry,
    ItemType,
    LineItem,
    Region,
    RegionLedger,
    StatementRow,
    EntryKind,
    ValidationIssue,
    ValidationResult,
)
from household_budget.models.user import SessionUser, UserRecord, UserRole
from household_budget.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestBudgetEntryModels:
    """Tests for incomes and line items."""

    def test_income_creation(self):
        """Test IncomeEntry model creation."""
        income = IncomeEntry(name="Salary", amount=2500, entry_date=date(2024, 3, 10))
        assert income.name == "Salary"
        assert income.amount == 2500.0
        assert income.id

    def test_generated_ids_are_unique(self):
        """Test that two new entries never share an id."""
        first = IncomeEntry(name="A", amount=1)
        second = IncomeEntry(name="B", amount=1)
        assert first.id != second.id

    def test_numeric_ids_are_coerced(self):
        """Older documents stored numeric ids."""
        income = IncomeEntry.model_validate({"id": 1700000000000, "name": "Salary", "amount": 10})
        assert income.id == "1700000000000"

    def test_name_is_stripped(self):
        """Test that whitespace is stripped from names."""
        income = IncomeEntry(name="  Salary  ", amount=1)
        assert income.name == "Salary"

    def test_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            LineItem(name="Rent", amount=-1)

    def test_rejects_non_finite_amount(self):
        """Test that NaN and infinity never enter a document."""
        with pytest.raises(ValueError):
            LineItem(name="Rent", amount=float("nan"))
        with pytest.raises(ValueError):
            LineItem(name="Rent", amount=float("inf"))

    def test_rejects_empty_name(self):
        with pytest.raises(ValueError):
            IncomeEntry(name="   ", amount=1)

    def test_date_alias_and_timestamp(self):
        """Stored entries use a 'date' key, sometimes with a time part."""
        item = LineItem.model_validate({
            "name": "Groceries",
            "amount": 45.5,
            "date": "2024-03-05T10:15:00.000Z",
            "type": "fixed",
        })
        assert item.entry_date == date(2024, 3, 5)
        assert item.item_type == ItemType.FIXED

    def test_empty_date_is_undated(self):
        item = LineItem.model_validate({"name": "Groceries", "amount": 1, "date": ""})
        assert item.entry_date is None

    def test_item_type_defaults_to_variable(self):
        item = LineItem(name="Groceries", amount=1)
        assert item.item_type == ItemType.VARIABLE


class TestBudgetDocument:
    """Tests for the persisted budget document."""

    def test_storage_shape_uses_camel_case(self):
        """Test serialization keys of the stored document."""
        document = BudgetDocument(
            exchange_rate=60,
            incomes=[IncomeEntry(id="i1", name="Salary", amount=100, entry_date=date(2024, 1, 2))],
        )
        stored = document.to_storage()
        assert stored["exchangeRate"] == 60
        assert set(stored) == {"exchangeRate", "incomes", "primaryRegion", "secondaryRegion"}
        assert stored["incomes"][0]["date"] == "2024-01-02"
        assert stored["primaryRegion"] == {"expenses": [], "savings": []}

    def test_reads_its_own_storage_shape(self):
        document = BudgetDocument.starter(today=date(2024, 3, 1))
        restored = BudgetDocument.model_validate(document.to_storage())
        assert restored == document

    def test_reads_legacy_region_keys(self):
        """Older backups used 'spain' and 'dr' for the regions."""
        document = BudgetDocument.model_validate({
            "exchangeRate": 64.5,
            "incomes": [],
            "spain": {"expenses": [{"id": 1, "name": "Rent", "amount": 900}], "savings": []},
            "dr": {"expenses": [], "savings": [{"id": 2, "name": "Local", "amount": 2000}]},
        })
        assert document.primary_region.expenses[0].name == "Rent"
        assert document.secondary_region.savings[0].amount == 2000

    def test_blank_stored_amount_reads_as_zero(self):
        """Cleared amount fields were saved as empty strings."""
        income = IncomeEntry.model_validate({"id": 1, "name": "Salary", "amount": ""})
        assert income.amount == 0.0
        assert IncomeEntry.model_validate({"id": 2, "name": "Bonus", "amount": "12.5"}).amount == 12.5

    def test_salvage_drops_only_bad_entries(self):
        document, dropped = BudgetDocument.salvage({
            "exchangeRate": "abc",
            "incomes": [
                {"id": 1, "name": "Salary", "amount": 100},
                {"id": 1, "name": "Bonus", "amount": 50},
                {"id": 3, "name": "", "amount": 10},
            ],
            "dr": {"expenses": [{"id": 4, "name": "Power", "amount": "x"}], "savings": "nope"},
        }, default_rate=60)

        assert document.exchange_rate == 60
        assert [i.name for i in document.incomes] == ["Salary", "Bonus"]
        assert document.incomes[0].id != document.incomes[1].id
        assert document.secondary_region.expenses == []
        assert len(dropped) == 4

    def test_salvage_rejects_non_object(self):
        with pytest.raises(ValueError, match="not an object"):
            BudgetDocument.salvage("budget")

    def test_rejects_non_positive_exchange_rate(self):
        with pytest.raises(ValueError):
            BudgetDocument(exchange_rate=0)

    def test_rejects_duplicate_ids_in_collection(self):
        """Ids must be unique within one collection."""
        with pytest.raises(ValueError, match="Duplicate id"):
            RegionLedger(expenses=[
                LineItem(id="x", name="A", amount=1),
                LineItem(id="x", name="B", amount=2),
            ])

    def test_same_id_allowed_across_collections(self):
        ledger = RegionLedger(
            expenses=[LineItem(id="x", name="A", amount=1)],
            savings=[LineItem(id="x", name="B", amount=2)],
        )
        assert ledger.items(Category.SAVINGS)[0].name == "B"

    def test_ledger_lookup(self):
        document = BudgetDocument.starter(today=date(2024, 3, 1))
        assert document.ledger(Region.PRIMARY) is document.primary_region
        assert document.ledger(Region.SECONDARY) is document.secondary_region

    def test_starter_document(self):
        """Test the first-run sample budget."""
        today = date(2024, 3, 15)
        document = BudgetDocument.starter(today=today, exchange_rate=64.5)
        assert document.exchange_rate == 64.5
        assert [i.name for i in document.incomes] == ["Base salary"]
        assert document.primary_region.expenses[0].amount == 900
        assert document.primary_region.expenses[0].item_type == ItemType.FIXED
        assert document.secondary_region.expenses[0].amount == 15000
        assert all(i.entry_date == today for i in document.incomes)


class TestReportModels:
    """Tests for ranges and report rows."""

    def test_date_range_contains(self):
        date_range = DateRange(start=date(2024, 3, 1), end=date(2024, 3, 31))
        assert date_range.contains(date(2024, 3, 1))
        assert date_range.contains(date(2024, 3, 31))
        assert not date_range.contains(date(2024, 4, 1))

    def test_date_range_never_contains_undated(self):
        date_range = DateRange(start=date(2024, 3, 1), end=date(2024, 3, 31))
        assert date_range.contains(None) is False

    def test_date_range_order_validation(self):
        """Test range end cannot be before start."""
        with pytest.raises(ValueError, match="Range end cannot be before start"):
            DateRange(start=date(2024, 3, 2), end=date(2024, 3, 1))

    def test_statement_row_signed_amount(self):
        row = StatementRow(
            id="1", name="Rent", kind=EntryKind.PRIMARY_EXPENSE, is_credit=False,
            currency="EUR", amount=900, amount_primary=900, balance=-900,
        )
        assert row.signed_amount == -900


class TestUserModels:
    """Tests for account records."""

    def test_user_record_aliases(self):
        record = UserRecord.model_validate({
            "id": 1,
            "username": "root",
            "passwordHash": "$2b$04$hash",
            "role": "admin",
        })
        assert record.id == "1"
        assert record.is_admin
        dumped = record.model_dump(mode="json", by_alias=True)
        assert dumped["passwordHash"] == "$2b$04$hash"
        assert "createdAt" in dumped

    def test_username_matching_is_case_insensitive(self):
        record = UserRecord(username="Root", password_hash="x")
        assert record.matches_username("root")
        assert record.matches_username("ROOT")
        assert not record.matches_username(" root ")
        assert not record.matches_username("rooty")

    def test_session_user_has_no_password(self):
        record = UserRecord(username="ana", password_hash="secret-hash")
        snapshot = SessionUser.from_record(record)
        assert snapshot.role == UserRole.USER
        assert "secret-hash" not in snapshot.model_dump_json()


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.ENTRY_ADDED,
            description="Income added",
        )
        assert event.event_type == AuditEventType.ENTRY_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.EXCHANGE_RATE_CHANGED,
            description="Rate changed",
            details={"old_rate": 64.5, "new_rate": 60},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "exchange_rate_changed"
        assert log_dict["details"]["new_rate"] == 60

    def test_audit_event_builder_entry_added(self):
        event = AuditEventBuilder.entry_added("income", "i1", "Salary", 2500, "incomes")
        assert event.event_type == AuditEventType.ENTRY_ADDED
        assert event.entity_id == "i1"
        assert event.is_user_action is True

    def test_audit_event_builder_login_failed(self):
        event = AuditEventBuilder.login_failed("root")
        assert event.event_type == AuditEventType.LOGIN_FAILED
        assert event.severity == AuditSeverity.WARNING

    def test_audit_event_builder_remote_pushed(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.remote_pushed("file-1", "db.json", correlation_id)
        assert event.entity_id == "file-1"
        assert event.correlation_id == correlation_id


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(issues=[
            ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ),
        ])
        assert result.has_errors is True
        assert result.error_count == 1
        assert result.is_valid is False

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(issues=[
            ValidationIssue(
                field="entry_date",
                issue_type="future_date",
                message="Date in future",
                severity="warning",
            ),
        ])
        assert result.has_errors is False
        assert result.error_count == 0

    def test_issue_severity_is_restricted(self):
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
