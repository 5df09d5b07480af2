"""
Password Hashing

Credentials are stored as salted PBKDF2-HMAC-SHA256 digests and compared
in constant time. The iteration count is stored per user so it can be
raised later without invalidating existing accounts.
"""

import hashlib
import hmac
import secrets
from typing import Optional

from pocket_ledger.config import get_settings
from pocket_ledger.models.identity import User


class PasswordHasher:
    """Hashes new passwords and verifies stored credentials."""

    def __init__(
        self,
        iterations: Optional[int] = None,
        salt_bytes: Optional[int] = None,
    ):
        security = get_settings().security
        self.iterations = iterations or security.hash_iterations
        self.salt_bytes = salt_bytes or security.salt_bytes

    def _digest(self, password: str, salt: bytes, iterations: int) -> str:
        return hashlib.pbkdf2_hmac(
            "sha256", password.encode("utf-8"), salt, iterations
        ).hex()

    def hash(self, password: str) -> tuple[str, str, int]:
        """
        Hash a new password.

        Returns:
            (hex_digest, hex_salt, iterations)
        """
        salt = secrets.token_bytes(self.salt_bytes)
        return self._digest(password, salt, self.iterations), salt.hex(), self.iterations

    def verify(self, user: User, password: str) -> bool:
        """
        Check a password against a user's stored credential.

        Legacy records holding the raw secret are compared directly.
        """
        if user.password_hash and user.password_salt:
            iterations = user.password_iterations or self.iterations
            candidate = self._digest(password, bytes.fromhex(user.password_salt), iterations)
            return hmac.compare_digest(candidate, user.password_hash)
        if user.password is not None:
            return hmac.compare_digest(user.password.encode("utf-8"), password.encode("utf-8"))
        return False

    def with_hashed_password(self, user: User, password: str) -> User:
        """Copy of user with a fresh hash of password and no plaintext."""
        digest, salt, iterations = self.hash(password)
        return user.model_copy(update={
            "password_hash": digest,
            "password_salt": salt,
            "password_iterations": iterations,
            "password": None,
        })
