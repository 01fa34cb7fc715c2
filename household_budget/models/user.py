"""
User Directory Models

A flat list of local accounts. Passwords are stored only as bcrypt
hashes; the session marker never carries one.
"""

import secrets
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class UserRole(str, Enum):
    """Account roles."""
    ADMIN = "admin"
    USER = "user"


class UserRecord(BaseModel):
    """A stored account."""
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    id: str = Field(
        default_factory=lambda: uuid4().hex,
        min_length=1,
    )
    username: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    password_hash: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("passwordHash", "password_hash"),
        serialization_alias="passwordHash",
        description="bcrypt hash of the password"
    )
    role: UserRole = Field(default=UserRole.USER)
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        validation_alias=AliasChoices("createdAt", "created_at"),
        serialization_alias="createdAt",
    )

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def matches_username(self, username: str) -> bool:
        """Usernames compare case-insensitively."""
        return self.username.casefold() == username.casefold()


class SessionUser(BaseModel):
    """
    Snapshot of the authenticated user kept as the session marker.

    The token identifies one browser; it travels in the page URL.
    """

    token: str = Field(default_factory=lambda: secrets.token_urlsafe(16), min_length=1)
    id: str
    username: str
    role: UserRole

    @classmethod
    def from_record(cls, record: UserRecord, token: Optional[str] = None) -> 'SessionUser':
        snapshot = cls(id=record.id, username=record.username, role=record.role)
        if token:
            snapshot.token = token
        return snapshot

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
