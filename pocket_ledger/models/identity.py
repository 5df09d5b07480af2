"""
Identity Models for Pocket Ledger

Users and the single active session.

DESIGN DECISION: Persisted field names keep the JSON keys the mobile app
already wrote ("user_name", "userName", "isAuthenticated", "timestamp").
Python code uses snake_case attributes; aliases only apply on the wire.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class User(BaseModel):
    """
    A registered user.

    The email is the natural key: unique and compared case-sensitively.
    Users are never deleted.
    """
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(
        ...,
        min_length=1,
        description="Unique email address (natural key)"
    )
    user_name: str = Field(
        ...,
        min_length=1,
        description="Display name"
    )

    # Salted one-way credential
    password_hash: Optional[str] = Field(
        default=None,
        description="Hex PBKDF2 digest of the password"
    )
    password_salt: Optional[str] = Field(
        default=None,
        description="Hex salt used for password_hash"
    )
    password_iterations: Optional[int] = Field(
        default=None,
        ge=1,
        description="PBKDF2 iteration count used for password_hash"
    )

    # Records written before hashing existed carry the raw secret
    password: Optional[str] = Field(
        default=None,
        description="Legacy plaintext credential; cleared on upgrade"
    )

    created_at: datetime = Field(
        default_factory=utc_now,
        alias="timestamp",
        description="When the user registered"
    )

    @property
    def has_legacy_credential(self) -> bool:
        return self.password_hash is None and self.password is not None


class Session(BaseModel):
    """
    The record denoting which user, if any, is signed in on this device.

    Lifecycle: none -> authenticated(user) -> none.
    """
    model_config = ConfigDict(populate_by_name=True)

    email: str
    user_name: str = Field(..., alias="userName")
    is_authenticated: bool = Field(default=True, alias="isAuthenticated")
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the session was established"
    )

    @property
    def user_id(self) -> str:
        """Identifier stamped on this user's transactions."""
        return self.email

    @classmethod
    def for_user(cls, user: User) -> "Session":
        return cls(email=user.email, user_name=user.user_name, is_authenticated=True)
