"""Backup and restore package."""

from household_budget.backup.transfer import (
    BackupFormatError,
    backup_filename,
    backup_payload,
    export_backup,
    parse_backup,
)
from household_budget.backup.drive_mirror import DriveBackupMirror

__all__ = [
    "BackupFormatError",
    "DriveBackupMirror",
    "backup_filename",
    "backup_payload",
    "export_backup",
    "parse_backup",
]
