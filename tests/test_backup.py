"""
Tests for backup export/import.
"""

import json
import pytest
from datetime import date

from household_budget.backup import (
    BackupFormatError,
    backup_filename,
    backup_payload,
    export_backup,
    parse_backup,
)
from household_budget.models.budget import BudgetDocument, IncomeEntry, LineItem
from household_budget.models.user import UserRecord


@pytest.fixture
def document():
    document = BudgetDocument.starter(today=date(2024, 3, 15), exchange_rate=60)
    document.secondary_region.expenses.append(LineItem(id="undated", name="Misc", amount=10))
    return document


@pytest.fixture
def users():
    return [UserRecord(id="u1", username="root", password_hash="$2b$04$abc", role="admin")]


class TestExport:
    """Tests for the backup artifact."""

    def test_filename_embeds_date(self):
        assert backup_filename(date(2024, 3, 15)) == "budget_backup_2024-03-15.json"

    def test_artifact_shape(self, document, users):
        payload = json.loads(export_backup(document, users))
        assert set(payload) == {"budget", "users"}
        assert payload["budget"]["exchangeRate"] == 60
        assert payload["users"][0]["passwordHash"] == "$2b$04$abc"

    def test_accepts_raw_user_dicts(self, document):
        payload = backup_payload(document, [{"id": "u1", "username": "root"}])
        assert payload["users"] == [{"id": "u1", "username": "root"}]

    def test_export_then_import_is_identity(self, document, users):
        assert parse_backup(export_backup(document, users)) == document


class TestImport:
    """Tests for reading an artifact back."""

    def test_accepts_bytes_with_bom(self, document, users):
        data = ("\ufeff" + export_backup(document, users)).encode("utf-8")
        assert parse_backup(data) == document

    def test_accepts_decoded_dict(self, document):
        assert parse_backup({"budget": document.to_storage()}) == document

    def test_missing_budget_key(self):
        with pytest.raises(BackupFormatError, match="does not contain a budget"):
            parse_backup('{"users": []}')

    def test_not_an_object(self):
        with pytest.raises(BackupFormatError):
            parse_backup("[1, 2, 3]")

    def test_malformed_json(self):
        with pytest.raises(BackupFormatError, match="not valid JSON"):
            parse_backup("{budget:")

    def test_not_utf8(self):
        with pytest.raises(BackupFormatError, match="UTF-8"):
            parse_backup(b"\xff\xfe\x00garbage")

    def test_invalid_budget_document(self):
        payload = {"budget": {"incomes": [{"name": "Salary", "amount": "lots"}]}}
        with pytest.raises(BackupFormatError, match="invalid"):
            parse_backup(payload)

    def test_empty_budget_object_is_an_empty_document(self):
        document = parse_backup('{"budget": {}}')
        assert document.incomes == []
        assert document.exchange_rate == 64.5

    def test_legacy_backup(self):
        """Backups written before the regions were renamed."""
        legacy = {
            "budget": {
                "exchangeRate": 64.5,
                "incomes": [{"id": 1, "name": "Salario", "amount": 2500, "date": "2024-03-10"}],
                "spain": {
                    "expenses": [{"id": 2, "name": "Alquiler", "amount": 900, "type": "fixed",
                                  "date": "2024-03-01T00:00:00.000Z"}],
                    "savings": [],
                },
                "dr": {"expenses": [], "savings": []},
            },
            "users": [{"id": 1, "username": "root", "password": "plain", "role": "admin"}],
        }
        document = parse_backup(json.dumps(legacy))
        assert document.incomes[0] == IncomeEntry(id="1", name="Salario", amount=2500,
                                                  entry_date=date(2024, 3, 10))
        assert document.primary_region.expenses[0].entry_date == date(2024, 3, 1)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
