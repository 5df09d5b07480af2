"""
Identity Repository

Owns the registered users ('users' key) and the single active session
('userSession' key).

GUARANTEES:
- Emails are unique (exact, case-sensitive match)
- Registration checks uniqueness and appends under the same writer lock,
  so two concurrent sign-ups for one email produce one user
- Sign-in failures never reveal whether the email exists
- Passwords are stored as salted hashes only
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

import structlog

from pocket_ledger.audit import AuditLogger
from pocket_ledger.models.identity import Session, User
from pocket_ledger.services.identity.passwords import PasswordHasher
from pocket_ledger.services.storage import (
    SESSION_KEY,
    USERS_KEY,
    CorruptRecordError,
    RecordStore,
    StorageError,
)
from pocket_ledger.validation import InputValidator, ValidationError, raise_for_issues


class ConflictError(Exception):
    """The email is already registered."""

    def __init__(self, email: str):
        self.email = email
        super().__init__("Email already registered")


class InvalidCredentialsError(Exception):
    """
    Sign-in did not match any user.

    Raised with the same message for an unknown email and a wrong password.
    """

    def __init__(self):
        super().__init__("Invalid email or password")


logger = structlog.get_logger(__name__)


class IdentityRepository:
    """
    Registration, sign-in and the persisted session record.
    """

    def __init__(
        self,
        records: RecordStore,
        validator: Optional[InputValidator] = None,
        hasher: Optional[PasswordHasher] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._records = records
        self._validator = validator or InputValidator()
        self._hasher = hasher or PasswordHasher()
        self._audit = audit_logger or AuditLogger()

    @asynccontextmanager
    async def _storage_guard(self, operation: str):
        try:
            yield
        except StorageError as e:
            await self._audit.log_storage_error(operation, str(e))
            raise

    async def register(
        self,
        user_name: str,
        email: str,
        password: str,
        confirm_password: Optional[str] = None,
    ) -> User:
        """
        Register a new user and sign them in.

        Raises:
            ValidationError: One or more fields are invalid (all reported)
            ConflictError: The email is already registered
            StorageError: The store could not be read or written
        """
        issues = self._validator.validate_registration(
            user_name, email, password, confirm_password
        )
        try:
            raise_for_issues(issues)
        except ValidationError as error:
            await self._audit.log_registration_rejected(
                (email or "").strip(), "invalid input", error.fields
            )
            raise

        email = email.strip()
        digest, salt, iterations = await asyncio.to_thread(self._hasher.hash, password)
        user = User(
            email=email,
            user_name=user_name.strip(),
            password_hash=digest,
            password_salt=salt,
            password_iterations=iterations,
        )

        def append_unique(users: list[User]):
            if any(existing.email == email for existing in users):
                raise ConflictError(email)
            users.append(user)
            return users, user

        try:
            async with self._storage_guard("register"):
                await self._records.update_list(USERS_KEY, User, append_unique)
        except ConflictError:
            await self._audit.log_registration_rejected(email, "email already registered", ["email"])
            raise

        # The user record is written first; a failed session write leaves a
        # registered user who can still sign in.
        async with self._storage_guard("register_session"):
            await self._records.save_one(SESSION_KEY, Session.for_user(user))

        await self._audit.log_user_registered(email, user.user_name)
        return user

    async def sign_in(self, email: str, password: str) -> Session:
        """
        Authenticate and replace the session record.

        Raises:
            ValidationError: Email or password missing, or email malformed
            InvalidCredentialsError: No user matches
            StorageError: The store could not be read or written
        """
        raise_for_issues(self._validator.validate_sign_in(email, password))

        email = email.strip()
        async with self._storage_guard("sign_in"):
            users = await self._records.load_list(USERS_KEY, User)

        user = next((u for u in users if u.email == email), None)
        if user is None:
            # Spend the same hashing work as a real check
            await asyncio.to_thread(self._hasher.hash, password)
            verified = False
        else:
            verified = await asyncio.to_thread(self._hasher.verify, user, password)

        if not verified:
            await self._audit.log_sign_in_failed(email)
            raise InvalidCredentialsError()

        if user.has_legacy_credential:
            await self._upgrade_credential(user, password)

        session = Session.for_user(user)
        async with self._storage_guard("sign_in_session"):
            await self._records.save_one(SESSION_KEY, session)

        await self._audit.log_signed_in(email)
        return session

    async def _upgrade_credential(self, user: User, password: str) -> None:
        """Replace a legacy plaintext credential with a salted hash."""
        upgraded = await asyncio.to_thread(self._hasher.with_hashed_password, user, password)

        def replace(users: list[User]):
            for idx, existing in enumerate(users):
                if existing.email == user.email and existing.has_legacy_credential:
                    users[idx] = upgraded
                    return users, True
            return None, False

        async with self._storage_guard("upgrade_credential"):
            changed = await self._records.update_list(USERS_KEY, User, replace)
        if changed:
            await self._audit.log_credential_upgraded(user.email)

    async def current_session(self) -> Optional[Session]:
        """Read the persisted session, if any. No side effects."""
        async with self._storage_guard("current_session"):
            return await self._records.load_one(SESSION_KEY, Session)

    async def sign_out(self) -> None:
        """Delete the session record. Signing out twice is not an error."""
        async with self._storage_guard("sign_out"):
            try:
                session = await self._records.load_one(SESSION_KEY, Session)
            except CorruptRecordError as e:
                logger.warning("discarding_corrupt_session", error=str(e))
                session = None
            await self._records.delete(SESSION_KEY)
        await self._audit.log_signed_out(session.email if session else None)

    async def get_user(self, email: str) -> Optional[User]:
        async with self._storage_guard("get_user"):
            users = await self._records.load_list(USERS_KEY, User)
        return next((u for u in users if u.email == email.strip()), None)
