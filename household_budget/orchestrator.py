"""
Main Orchestrator for Household Budget

This module ties together all the components and defines the
document lifecycle:
1. Load the stored budget (or start from the sample budget)
2. Validate form input and apply one mutation
3. Persist the whole document and audit the change

DESIGN DECISION: The document is read-modify-written as a whole on
every mutation. There is one user session at a time, so there is no
locking; a second tab simply overwrites.
"""

from datetime import date
from typing import NamedTuple, Optional, Union

import structlog
from pydantic import ValidationError

from household_budget.audit import AuditLogger, configure_logging
from household_budget.backup import (
    BackupFormatError,
    DriveBackupMirror,
    backup_filename,
    export_backup as serialize_backup,
    parse_backup,
)
from household_budget.config import AppSettings, Settings, StorageSettings, get_settings
from household_budget.models.audit import AuditEventBuilder
from household_budget.models.budget import (
    BudgetDocument,
    BudgetSummary,
    Category,
    DateRange,
    ExpenseReport,
    IncomeEntry,
    ItemType,
    LineItem,
    Region,
    StatementRow,
)
from household_budget.models.user import UserRecord
from household_budget.reports import aggregation
from household_budget.services.storage import (
    ConnectionError,
    GoogleDriveClient,
    JsonFileStore,
    KeyValueStore,
)
from household_budget.users import SessionManager, UserDirectory
from household_budget.validation import EntryValidator


logger = structlog.get_logger(__name__)


class EntryNotFoundError(Exception):
    """No entry with this id in the target collection."""
    pass


class BudgetBook:
    """
    Owns the current BudgetDocument.

    All writes go through here so every one of them is validated,
    persisted and audited the same way.
    """

    def __init__(
        self,
        store: KeyValueStore,
        storage_settings: Optional[StorageSettings] = None,
        app_settings: Optional[AppSettings] = None,
        validator: Optional[EntryValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._key = (storage_settings or StorageSettings()).budget_key
        self._app_settings = app_settings or AppSettings()
        self._validator = validator or EntryValidator()
        self._audit_logger = audit_logger
        self._document = self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> BudgetDocument:
        raw = self._store.load(self._key, None)
        if raw is None:
            # Present but not JSON: keep a copy before the starter replaces it
            backup_key = self._store.preserve(self._key)
            if backup_key:
                self._audit(AuditEventBuilder.document_load_failed(
                    self._key, "Stored value is not valid JSON", backup_key=backup_key,
                ))
            return self._starter()

        try:
            return BudgetDocument.model_validate(raw)
        except ValidationError:
            pass

        try:
            document, dropped = BudgetDocument.salvage(
                raw, default_rate=self._app_settings.default_exchange_rate,
            )
        except ValueError as e:
            backup_key = self._store.preserve(self._key)
            self._audit(AuditEventBuilder.document_load_failed(
                self._key, str(e), backup_key=backup_key,
            ))
            return self._starter()

        backup_key = self._store.preserve(self._key)
        logger.warning(
            "budget_entries_dropped",
            key=self._key,
            dropped=dropped,
            backup_key=backup_key,
        )
        return document

    def _starter(self) -> BudgetDocument:
        return BudgetDocument.starter(
            today=date.today(),
            exchange_rate=self._app_settings.default_exchange_rate,
        )

    def _save(self) -> None:
        self._store.save(self._key, self._document.to_storage())

    def _audit(self, event) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)

    @property
    def document(self) -> BudgetDocument:
        return self._document

    @property
    def settings(self) -> AppSettings:
        return self._app_settings

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_exchange_rate(self, raw_rate: Union[str, float]) -> float:
        rate = self._validator.parse_exchange_rate(raw_rate)
        old_rate = self._document.exchange_rate
        self._document.exchange_rate = rate
        self._save()
        self._audit(AuditEventBuilder.exchange_rate_changed(old_rate, rate))
        return rate

    def add_income(
        self,
        name: str,
        amount: Union[str, float],
        entry_date: Optional[date] = None,
    ) -> IncomeEntry:
        name, value = self._validator.parse_entry(name, amount)
        income = IncomeEntry(name=name, amount=value, entry_date=entry_date or date.today())
        self._document.incomes.append(income)
        self._save()
        self._audit(AuditEventBuilder.entry_added("income", income.id, name, value, "incomes"))
        return income

    def update_income(
        self,
        entry_id: str,
        name: Optional[str] = None,
        amount: Union[str, float, None] = None,
    ) -> IncomeEntry:
        """Edit an income in place. Fields left as None are unchanged."""
        income = self._find(self._document.incomes, entry_id, "incomes")

        changes = {}
        if name is not None:
            changes["name"] = self._validator.parse_name(name)
        if amount is not None:
            changes["amount"] = self._validator.parse_amount(amount)
        if not changes:
            return income

        for field, value in changes.items():
            setattr(income, field, value)
        self._save()
        self._audit(AuditEventBuilder.entry_updated("income", income.id, changes))
        return income

    def delete_income(self, entry_id: str) -> IncomeEntry:
        income = self._find(self._document.incomes, entry_id, "incomes")
        self._document.incomes.remove(income)
        self._save()
        self._audit(AuditEventBuilder.entry_deleted("income", entry_id, "incomes"))
        return income

    def add_item(
        self,
        region: Union[Region, str],
        category: Union[Category, str],
        name: str,
        amount: Union[str, float],
        item_type: Union[ItemType, str] = ItemType.VARIABLE,
        entry_date: Optional[date] = None,
    ) -> LineItem:
        region, category = Region(region), Category(category)
        name, value = self._validator.parse_entry(name, amount)
        item = LineItem(
            name=name,
            amount=value,
            item_type=ItemType(item_type),
            entry_date=entry_date or date.today(),
        )
        self._document.ledger(region).items(category).append(item)
        self._save()
        location = f"{region.value}.{category.value}"
        self._audit(AuditEventBuilder.entry_added("line_item", item.id, name, value, location))
        return item

    def delete_item(
        self,
        region: Union[Region, str],
        category: Union[Category, str],
        entry_id: str,
    ) -> LineItem:
        region, category = Region(region), Category(category)
        location = f"{region.value}.{category.value}"
        items = self._document.ledger(region).items(category)
        item = self._find(items, entry_id, location)
        items.remove(item)
        self._save()
        self._audit(AuditEventBuilder.entry_deleted("line_item", entry_id, location))
        return item

    def replace_document(self, document: BudgetDocument, source: str = "import") -> None:
        """Swap in a whole document (restore). No merge."""
        self._document = document
        self._save()
        self._audit(AuditEventBuilder.document_replaced(source, len(document.incomes)))

    def export_backup(
        self,
        users: list[Union[UserRecord, dict]],
        today: Optional[date] = None,
    ) -> tuple[str, str]:
        """
        Serialize the document and user directory for download.

        Returns:
            Tuple of (filename, JSON text)
        """
        filename = backup_filename(today)
        text = serialize_backup(self._document, users)
        self._audit(AuditEventBuilder.backup_exported(filename, len(users)))
        return filename, text

    def import_backup(self, payload: Union[str, bytes], source: str = "file") -> BudgetDocument:
        """
        Restore the budget from a backup artifact.

        Raises:
            BackupFormatError: The current document is left untouched
        """
        try:
            document = parse_backup(payload)
        except BackupFormatError as e:
            self._audit(AuditEventBuilder.backup_import_failed(source, str(e)))
            raise
        self.replace_document(document, source=source)
        self._audit(AuditEventBuilder.backup_imported(source))
        return document

    @staticmethod
    def _find(entries, entry_id: str, location: str):
        for entry in entries:
            if entry.id == entry_id:
                return entry
        raise EntryNotFoundError(f"No entry {entry_id} in {location}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def summary(self, today: Optional[date] = None) -> BudgetSummary:
        return aggregation.summarize(self._document, today)

    def current_month_incomes(self, today: Optional[date] = None) -> list[IncomeEntry]:
        return aggregation.current_month_incomes(self._document, today or date.today())

    def report(self, date_range: DateRange) -> ExpenseReport:
        return aggregation.expense_report(self._document, date_range)

    def statement(self, date_range: DateRange) -> list[StatementRow]:
        return aggregation.build_statement(
            self._document,
            date_range,
            primary_currency=self._app_settings.primary_currency,
            secondary_currency=self._app_settings.secondary_currency,
        )


class AppComponents(NamedTuple):
    budget_book: BudgetBook
    user_directory: UserDirectory
    session_manager: SessionManager
    audit_logger: AuditLogger


def create_app_components(
    store: Optional[KeyValueStore] = None,
    settings: Optional[Settings] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        store: Key-value area to use. Defaults to a JsonFileStore in the
               configured data directory.
        settings: Settings container (defaults to the cached one)
    """
    settings = settings or get_settings()
    storage_settings = settings.storage
    app_settings = settings.app

    configure_logging(debug=app_settings.debug_mode)
    store = store or JsonFileStore(storage_settings.data_dir)
    audit_logger = AuditLogger()

    budget_book = BudgetBook(
        store,
        storage_settings=storage_settings,
        app_settings=app_settings,
        audit_logger=audit_logger,
    )
    user_directory = UserDirectory(
        store,
        storage_settings=storage_settings,
        app_settings=app_settings,
        audit_logger=audit_logger,
    )
    session_manager = SessionManager(
        store,
        storage_settings=storage_settings,
        audit_logger=audit_logger,
    )

    return AppComponents(budget_book, user_directory, session_manager, audit_logger)


def create_drive_mirror(
    audit_logger: Optional[AuditLogger] = None,
    settings: Optional[Settings] = None,
) -> DriveBackupMirror:
    """
    Build the Google Drive mirror on demand.

    Raises:
        ConnectionError: If the Drive integration is not configured
    """
    settings = settings or get_settings()
    try:
        drive_settings = settings.google_drive
    except ValidationError as e:
        raise ConnectionError(f"Google Drive is not configured: {e.error_count()} missing settings")
    return DriveBackupMirror(GoogleDriveClient(drive_settings), audit_logger=audit_logger)
