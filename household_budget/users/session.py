"""
Session markers and UI preferences.

Each signed-in browser holds a token; the snapshot of its user is kept
under that token so a reload keeps the user logged in without signing
in any other browser. The dark mode flag lives next to it.
"""

from typing import Optional

from pydantic import ValidationError

from household_budget.audit import AuditLogger
from household_budget.config import StorageSettings
from household_budget.models.audit import AuditEventBuilder
from household_budget.models.user import SessionUser, UserRecord
from household_budget.services.storage import KeyValueStore
from household_budget.users.directory import UserDirectory


class SessionManager:
    """Persists session snapshots by token, plus the theme flag."""

    def __init__(
        self,
        store: KeyValueStore,
        storage_settings: Optional[StorageSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        settings = storage_settings or StorageSettings()
        self._store = store
        self._session_key = settings.session_key
        self._theme_key = settings.theme_key
        self._audit_logger = audit_logger

    def _sessions(self) -> dict:
        raw = self._store.load(self._session_key, {})
        return raw if isinstance(raw, dict) else {}

    def _forget(self, token: str) -> None:
        sessions = self._sessions()
        if sessions.pop(token, None) is None:
            return
        if sessions:
            self._store.save(self._session_key, sessions)
        else:
            self._store.remove(self._session_key)

    def start_session(self, user: UserRecord) -> SessionUser:
        """Remember an authenticated user (without the password hash) under a new token."""
        snapshot = SessionUser.from_record(user)
        sessions = self._sessions()
        sessions[snapshot.token] = snapshot.model_dump(mode="json")
        self._store.save(self._session_key, sessions)
        return snapshot

    def restore_session(
        self,
        token: Optional[str],
        directory: Optional[UserDirectory] = None,
    ) -> Optional[SessionUser]:
        """
        Read the user remembered under a token back.

        If a directory is given, a snapshot whose account no longer
        exists ends the session.
        """
        if not token:
            return None
        raw = self._sessions().get(token)
        if not isinstance(raw, dict):
            return None
        try:
            snapshot = SessionUser.model_validate(raw)
        except ValidationError:
            self._forget(token)
            return None

        if directory is not None:
            record = directory.get(snapshot.id)
            if record is None:
                self._forget(token)
                return None
            snapshot = SessionUser.from_record(record, token=token)
        return snapshot

    def end_session(self, token: Optional[str], user_id: Optional[str] = None) -> None:
        if token:
            self._forget(token)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.logout(user_id))

    def dark_mode(self) -> bool:
        return bool(self._store.load(self._theme_key, False))

    def set_dark_mode(self, enabled: bool) -> None:
        self._store.save(self._theme_key, bool(enabled))
