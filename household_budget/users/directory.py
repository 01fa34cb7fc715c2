"""
User Directory

A flat list of local accounts persisted as one JSON array.

DESIGN DECISION: Passwords are hashed at rest with bcrypt. Older
directories stored them in plain text; records still carrying a plain
`password` field are migrated to a hash the first time the directory is loaded.

RULES:
- Usernames are unique, compared case-insensitively
- Passwords are compared exactly (through bcrypt)
- Login failures never say which field was wrong
- Nobody can delete their own account
- An empty directory is seeded with one administrator
"""

from typing import Optional
from uuid import uuid4

import structlog
from pydantic import ValidationError

from household_budget.audit import AuditLogger
from household_budget.config import AppSettings, StorageSettings
from household_budget.models.audit import AuditEventBuilder
from household_budget.models.user import UserRecord, UserRole
from household_budget.services.storage import KeyValueStore
from household_budget.users.passwords import (
    MAX_PASSWORD_BYTES,
    hash_password,
    verify_password,
)


logger = structlog.get_logger(__name__)


class UserDirectoryError(Exception):
    """Base exception for user directory operations."""
    pass


class InvalidCredentialsError(UserDirectoryError):
    """Login rejected."""

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)


class DuplicateUsernameError(UserDirectoryError):
    """Another account already uses this username."""
    pass


class UserNotFoundError(UserDirectoryError):
    """No account with this id."""
    pass


class SelfDeletionError(UserDirectoryError):
    """An account tried to delete itself."""
    pass


class InvalidPasswordError(UserDirectoryError):
    """Password is empty or too long to hash."""
    pass


class UserDirectory:
    """
    Loads, checks and persists the account list.

    Every change rewrites the whole list under the users key.
    """

    def __init__(
        self,
        store: KeyValueStore,
        storage_settings: Optional[StorageSettings] = None,
        app_settings: Optional[AppSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._key = (storage_settings or StorageSettings()).users_key
        self._app_settings = app_settings or AppSettings()
        self._audit_logger = audit_logger
        self._unmatchable_hash: Optional[str] = None
        self._users: list[UserRecord] = self._load()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load(self) -> list[UserRecord]:
        raw_users = self._store.load(self._key, [])
        if not isinstance(raw_users, list):
            logger.warning("users_document_invalid", key=self._key)
            raw_users = []

        users = []
        migrated = False
        for raw in raw_users:
            if not isinstance(raw, dict):
                continue
            try:
                if "password" in raw and not (raw.get("passwordHash") or raw.get("password_hash")):
                    raw = dict(raw)
                    raw["passwordHash"] = self._hash(str(raw.pop("password") or ""))
                    migrated = True
                users.append(UserRecord.model_validate(raw))
            except (ValidationError, ValueError) as e:
                logger.warning("user_record_skipped", error=str(e))

        if not users:
            users = [self._seed_admin()]
            migrated = True

        if migrated:
            self._store.save(self._key, [u.model_dump(mode="json", by_alias=True) for u in users])
        return users

    def _seed_admin(self) -> UserRecord:
        settings = self._app_settings
        admin = UserRecord(
            username=settings.seed_admin_username,
            password_hash=self._hash(settings.seed_admin_password),
            role=UserRole.ADMIN,
        )
        self._audit(AuditEventBuilder.user_seeded(admin.id, admin.username))
        return admin

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _hash(self, password: str) -> str:
        return hash_password(password, rounds=self._app_settings.password_hash_rounds)

    def _dummy_hash(self) -> str:
        if self._unmatchable_hash is None:
            self._unmatchable_hash = self._hash(uuid4().hex)
        return self._unmatchable_hash

    def _audit(self, event) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)

    def _persist(self) -> None:
        self._store.save(self._key, self.export_records())

    def _check_password(self, password: str) -> None:
        if not password:
            raise InvalidPasswordError("Password is required")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise InvalidPasswordError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
            )

    def _username_taken(self, username: str, exclude_id: Optional[str] = None) -> bool:
        return any(
            user.matches_username(username) and user.id != exclude_id
            for user in self._users
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def users(self) -> list[UserRecord]:
        return list(self._users)

    def get(self, user_id: str) -> Optional[UserRecord]:
        for user in self._users:
            if user.id == user_id:
                return user
        return None

    def export_records(self) -> list[dict]:
        """Records in their persisted JSON shape."""
        return [user.model_dump(mode="json", by_alias=True) for user in self._users]

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def authenticate(self, username: str, password: str) -> UserRecord:
        """
        Check login input.

        Succeeds only when exactly one account matches the username and
        its hash verifies the password.

        Raises:
            InvalidCredentialsError: On any mismatch
        """
        candidates = [user for user in self._users if user.matches_username(username or "")]
        if len(candidates) == 1:
            user = candidates[0]
            verified = verify_password(password or "", user.password_hash)
        else:
            # Same bcrypt cost whether or not the username exists
            verify_password(password or "", self._dummy_hash())
            verified = False

        if verified:
            self._audit(AuditEventBuilder.login_succeeded(user.id, user.username))
            return user

        self._audit(AuditEventBuilder.login_failed(username or ""))
        raise InvalidCredentialsError()

    def create_user(
        self,
        username: str,
        password: str,
        role: UserRole = UserRole.USER,
    ) -> UserRecord:
        """
        Add an account.

        Raises:
            DuplicateUsernameError: If the username is already used
            InvalidPasswordError: If the password cannot be stored
        """
        username = (username or "").strip()
        if not username:
            raise UserDirectoryError("Username is required")
        if self._username_taken(username):
            raise DuplicateUsernameError(f"A user named '{username}' already exists")
        self._check_password(password)

        user = UserRecord(
            username=username,
            password_hash=self._hash(password),
            role=role,
        )
        self._users.append(user)
        self._persist()
        self._audit(AuditEventBuilder.user_created(user.id, user.username))
        return user

    def update_user(
        self,
        user_id: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> UserRecord:
        """
        Overwrite username and/or password of an account in place.

        An empty password keeps the current one.
        """
        user = self.get(user_id)
        if user is None:
            raise UserNotFoundError(f"User not found: {user_id}")

        if username is not None:
            username = username.strip()
            if not username:
                raise UserDirectoryError("Username is required")
            if self._username_taken(username, exclude_id=user_id):
                raise DuplicateUsernameError(f"A user named '{username}' already exists")
            user.username = username

        if password:
            self._check_password(password)
            user.password_hash = self._hash(password)

        self._persist()
        self._audit(AuditEventBuilder.user_updated(user.id, user.username))
        return user

    def save_user(
        self,
        username: str,
        password: str,
        user_id: Optional[str] = None,
    ) -> UserRecord:
        """Form entry point: update when an id is given, otherwise create."""
        if user_id:
            return self.update_user(user_id, username=username, password=password)
        return self.create_user(username, password)

    def delete_user(self, user_id: str, current_user_id: Optional[str]) -> UserRecord:
        """
        Remove an account.

        Raises:
            SelfDeletionError: If the caller targets their own account
            UserNotFoundError: If no account has this id
        """
        if user_id == current_user_id:
            self._audit(AuditEventBuilder.user_delete_rejected(user_id, "self_deletion"))
            raise SelfDeletionError("You cannot delete your own user")

        user = self.get(user_id)
        if user is None:
            raise UserNotFoundError(f"User not found: {user_id}")

        self._users = [u for u in self._users if u.id != user_id]
        self._persist()
        self._audit(AuditEventBuilder.user_deleted(user_id, current_user_id))
        return user
