"""Identity services package."""

from pocket_ledger.services.identity.passwords import PasswordHasher
from pocket_ledger.services.identity.repository import (
    ConflictError,
    IdentityRepository,
    InvalidCredentialsError,
)

__all__ = [
    "ConflictError",
    "IdentityRepository",
    "InvalidCredentialsError",
    "PasswordHasher",
]
