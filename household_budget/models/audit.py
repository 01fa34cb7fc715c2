"""
Audit Models for Household Budget

Every mutation of the budget, every login attempt and every backup
operation produces one audit event.
This provides:
1. Traceability of who changed what
2. Debugging information when an import or sync goes wrong
3. A record of rejected actions (failed logins, blocked deletions)

DESIGN DECISION: Events are only rendered to the structured log.
They are never written back into the budget document.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Budget document
    ENTRY_ADDED = "entry_added"
    ENTRY_UPDATED = "entry_updated"
    ENTRY_DELETED = "entry_deleted"
    EXCHANGE_RATE_CHANGED = "exchange_rate_changed"
    DOCUMENT_REPLACED = "document_replaced"
    DOCUMENT_LOAD_FAILED = "document_load_failed"

    # Sessions
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"

    # User directory
    USER_SEEDED = "user_seeded"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    USER_DELETE_REJECTED = "user_delete_rejected"

    # Backup
    BACKUP_EXPORTED = "backup_exported"
    BACKUP_IMPORTED = "backup_imported"
    BACKUP_IMPORT_FAILED = "backup_import_failed"
    REMOTE_PUSHED = "remote_pushed"
    REMOTE_PULLED = "remote_pulled"

    # System events
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'income', 'line_item', 'user')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one sync round trip)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entry_added("income", entry_id, "Salary", 2500)
        event = AuditEventBuilder.login_failed("root")
    """

    @staticmethod
    def entry_added(
        entity_type: str,
        entry_id: str,
        name: str,
        amount: float,
        location: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_ADDED,
            entity_type=entity_type,
            entity_id=entry_id,
            description=f"Added {name} to {location}",
            details={
                "name": name,
                "amount": amount,
                "location": location,
            },
            is_user_action=True,
        )

    @staticmethod
    def entry_updated(
        entity_type: str,
        entry_id: str,
        changes: dict[str, Any],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_UPDATED,
            entity_type=entity_type,
            entity_id=entry_id,
            description=f"Updated {', '.join(sorted(changes))}",
            details={"changes": changes},
            is_user_action=True,
        )

    @staticmethod
    def entry_deleted(
        entity_type: str,
        entry_id: str,
        location: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_DELETED,
            entity_type=entity_type,
            entity_id=entry_id,
            description=f"Deleted entry from {location}",
            details={"location": location},
            is_user_action=True,
        )

    @staticmethod
    def exchange_rate_changed(old_rate: float, new_rate: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXCHANGE_RATE_CHANGED,
            entity_type="budget",
            description=f"Exchange rate changed from {old_rate} to {new_rate}",
            details={
                "old_rate": old_rate,
                "new_rate": new_rate,
            },
            is_user_action=True,
        )

    @staticmethod
    def document_replaced(source: str, income_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_REPLACED,
            severity=AuditSeverity.WARNING,
            entity_type="budget",
            description=f"Budget document replaced from {source}",
            details={
                "source": source,
                "income_count": income_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def document_load_failed(
        key: str,
        error_message: str,
        backup_key: Optional[str] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="budget",
            description=f"Stored document under '{key}' is invalid, using starter budget",
            error_message=error_message,
            details={
                "backup_key": backup_key,
            },
        )

    @staticmethod
    def login_succeeded(user_id: str, username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            entity_type="user",
            entity_id=user_id,
            description=f"User {username} logged in",
            is_user_action=True,
        )

    @staticmethod
    def login_failed(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description="Login rejected",
            details={"username": username},
            is_user_action=True,
        )

    @staticmethod
    def logout(user_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGOUT,
            entity_type="user",
            entity_id=user_id,
            description="User logged out",
            is_user_action=True,
        )

    @staticmethod
    def user_seeded(user_id: str, username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SEEDED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=user_id,
            description=f"Empty directory, seeded administrator {username}",
        )

    @staticmethod
    def user_created(user_id: str, username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_CREATED,
            entity_type="user",
            entity_id=user_id,
            description=f"User {username} created",
            is_user_action=True,
        )

    @staticmethod
    def user_updated(user_id: str, username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_UPDATED,
            entity_type="user",
            entity_id=user_id,
            description=f"User {username} updated",
            is_user_action=True,
        )

    @staticmethod
    def user_deleted(user_id: str, deleted_by: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=user_id,
            description="User deleted",
            details={"deleted_by": deleted_by},
            is_user_action=True,
        )

    @staticmethod
    def user_delete_rejected(user_id: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DELETE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=user_id,
            description="User deletion rejected",
            details={"reason": reason},
            is_user_action=True,
        )

    @staticmethod
    def backup_exported(filename: str, user_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_EXPORTED,
            entity_type="backup",
            description=f"Backup exported: {filename}",
            details={
                "filename": filename,
                "user_count": user_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def backup_imported(source: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_IMPORTED,
            entity_type="backup",
            description=f"Backup imported from {source}",
            details={"source": source},
            is_user_action=True,
        )

    @staticmethod
    def backup_import_failed(source: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_IMPORT_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="backup",
            description=f"Backup import from {source} rejected",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def remote_pushed(file_id: str, filename: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_PUSHED,
            entity_type="remote_file",
            entity_id=file_id,
            correlation_id=correlation_id,
            description=f"Backup uploaded to Google Drive as {filename}",
            is_user_action=True,
        )

    @staticmethod
    def remote_pulled(file_id: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_PULLED,
            entity_type="remote_file",
            entity_id=file_id,
            correlation_id=correlation_id,
            description="Backup downloaded from Google Drive",
            is_user_action=True,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
