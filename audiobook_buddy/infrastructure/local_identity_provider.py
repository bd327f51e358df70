"""Local in-memory identity provider with JWT credentials."""

import hashlib
import hmac
import logging
import os
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from jose import JWTError, jwt

from ..domain.entities.errors import AuthError, AuthErrorCode, AuthorizationError
from ..domain.entities.identity import Identity
from ..domain.interfaces.identity_provider import CredentialVerifier, IdentityListener, IdentityProvider

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
PBKDF2_ITERATIONS = 200_000
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_email(email: str) -> str:
    email = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise AuthError(AuthErrorCode.INVALID_EMAIL)
    return email


def validate_password(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise AuthError(AuthErrorCode.WEAK_PASSWORD)


def hash_password(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)


class LocalAccountStore(CredentialVerifier):
    """In-memory accounts shared by every viewer of the process.

    Passwords are stored as salted PBKDF2 hashes. Credentials are HS256 JWTs
    whose ``sub`` is the account's subject id.
    """

    def __init__(
        self,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
        token_expiry_minutes: int = 60,
    ):
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm
        self.token_expiry_minutes = token_expiry_minutes
        self._accounts: Dict[str, dict] = {}

    async def register(self, email: str, password: str) -> Identity:
        """Create an account.

        Raises:
            AuthError: If the email is malformed or taken, or the password is weak.
        """
        email = validate_email(email)
        validate_password(password)
        if email in self._accounts:
            raise AuthError(AuthErrorCode.EMAIL_IN_USE)

        salt = os.urandom(16)
        identity = Identity(subject_id=str(uuid.uuid4()), email=email)
        self._accounts[email] = {
            "identity": identity,
            "salt": salt,
            "password_hash": hash_password(password, salt),
        }
        logger.info(f"Registered account {identity.subject_id}")
        return identity

    async def authenticate(self, email: str, password: str) -> Identity:
        """Check an email and password.

        Raises:
            AuthError: With ``INVALID_CREDENTIAL`` for unknown emails or wrong passwords.
        """
        email = validate_email(email)
        account = self._accounts.get(email)
        if account is None:
            raise AuthError(AuthErrorCode.INVALID_CREDENTIAL)
        if not hmac.compare_digest(account["password_hash"], hash_password(password or "", account["salt"])):
            raise AuthError(AuthErrorCode.INVALID_CREDENTIAL)
        return account["identity"]

    def issue_token(self, identity: Identity) -> str:
        expires = datetime.now(timezone.utc) + timedelta(minutes=self.token_expiry_minutes)
        claims = {"sub": identity.subject_id, "email": identity.email, "exp": expires}
        return jwt.encode(claims, self.jwt_secret, algorithm=self.jwt_algorithm)

    async def verify(self, credential: str) -> Identity:
        """Decode a JWT issued by this store.

        Raises:
            AuthorizationError: If the token is missing, expired, invalid or
                belongs to an unknown account.
        """
        if not credential:
            raise AuthorizationError("Missing credential. Please sign in again.")
        try:
            claims = jwt.decode(credential, self.jwt_secret, algorithms=[self.jwt_algorithm])
        except JWTError as e:
            logger.info(f"Rejected credential: {e}")
            raise AuthorizationError() from e

        account = self._accounts.get(claims.get("email", ""))
        if account is None or account["identity"].subject_id != claims.get("sub"):
            raise AuthorizationError()
        return account["identity"]


class LocalIdentityProvider(IdentityProvider):
    """Identity provider for one viewer, backed by a shared ``LocalAccountStore``."""

    def __init__(self, accounts: LocalAccountStore):
        self._accounts = accounts
        self._identity: Optional[Identity] = None
        self._listeners: list[IdentityListener] = []

    @property
    def current_identity(self) -> Optional[Identity]:
        return self._identity

    async def sign_in(self, email: str, password: str) -> Identity:
        identity = await self._accounts.authenticate(email, password)
        await self._set_identity(identity)
        return identity

    async def sign_up(self, email: str, password: str) -> Identity:
        identity = await self._accounts.register(email, password)
        await self._set_identity(identity)
        return identity

    async def sign_out(self) -> None:
        await self._set_identity(None)

    async def resume(self, credential: str) -> Optional[Identity]:
        try:
            identity = await self._accounts.verify(credential)
        except AuthorizationError:
            await self._set_identity(None)
            return None
        await self._set_identity(identity)
        return identity

    def on_identity_change(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def issue_credential(self) -> str:
        if self._identity is None:
            raise AuthorizationError("User not authenticated.")
        return self._accounts.issue_token(self._identity)

    async def _set_identity(self, identity: Optional[Identity]) -> None:
        if identity == self._identity:
            return
        self._identity = identity
        for listener in list(self._listeners):
            await listener(identity)
