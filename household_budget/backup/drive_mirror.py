"""
Google Drive backup mirror

Keeps a copy of the backup artifact in the Drive application data
folder. The mirror remembers the remote file id once it is known and
chooses between creating and replacing the file from it.

No conflict resolution: whatever is pushed last wins.
"""

from typing import Optional, Union

from household_budget.audit import AuditLogger, create_correlation_id
from household_budget.backup.transfer import backup_payload, parse_backup
from household_budget.models.audit import AuditEventBuilder
from household_budget.models.budget import BudgetDocument
from household_budget.models.user import UserRecord
from household_budget.services.storage import (
    GoogleDriveClient,
    NotFoundError,
    StorageError,
)


class DriveBackupMirror:
    """Push and pull the backup artifact through a GoogleDriveClient."""

    def __init__(
        self,
        client: GoogleDriveClient,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._client = client
        self._audit_logger = audit_logger
        self._file_id: Optional[str] = None

    @property
    def file_id(self) -> Optional[str]:
        return self._file_id

    def locate(self) -> Optional[str]:
        """Look the backup file up by name and remember its id."""
        found = self._client.find_file()
        self._file_id = found["id"] if found else None
        return self._file_id

    def push(
        self,
        document: BudgetDocument,
        users: list[Union[UserRecord, dict]],
    ) -> str:
        """
        Upload the current document and user directory.

        Returns:
            The remote file id
        """
        correlation_id = create_correlation_id()
        try:
            if self._file_id is None:
                self.locate()
            result = self._client.upload(
                backup_payload(document, users),
                existing_file_id=self._file_id,
            )
        except StorageError as e:
            self._handle_failure(e, correlation_id)
            raise

        self._file_id = result.get("id") or self._file_id
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.remote_pushed(
                file_id=self._file_id or "",
                filename=self._client.settings.filename,
                correlation_id=correlation_id,
            ))
        return self._file_id

    def pull(self) -> BudgetDocument:
        """
        Download the remote backup and read its budget document.

        Raises:
            NotFoundError: If there is no remote backup yet
            BackupFormatError: If the remote file is not a valid backup
        """
        correlation_id = create_correlation_id()
        try:
            if self._file_id is None and self.locate() is None:
                raise NotFoundError("No backup found in Google Drive")
            payload = self._client.download(self._file_id)
        except StorageError as e:
            self._handle_failure(e, correlation_id)
            raise

        document = parse_backup(payload)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.remote_pulled(
                file_id=self._file_id,
                correlation_id=correlation_id,
            ))
        return document

    def _handle_failure(self, error: StorageError, correlation_id) -> None:
        if isinstance(error, NotFoundError):
            # Deleted remotely; look it up again next time
            self._file_id = None
        if self._audit_logger:
            self._audit_logger.log_external_service_error(
                service="google_drive",
                error_message=str(error),
                correlation_id=correlation_id,
            )
