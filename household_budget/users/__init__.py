"""User directory and session package."""

from household_budget.users.directory import (
    DuplicateUsernameError,
    InvalidCredentialsError,
    InvalidPasswordError,
    SelfDeletionError,
    UserDirectory,
    UserDirectoryError,
    UserNotFoundError,
)
from household_budget.users.passwords import hash_password, verify_password
from household_budget.users.session import SessionManager

__all__ = [
    "DuplicateUsernameError",
    "InvalidCredentialsError",
    "InvalidPasswordError",
    "SelfDeletionError",
    "SessionManager",
    "UserDirectory",
    "UserDirectoryError",
    "UserNotFoundError",
    "hash_password",
    "verify_password",
]
