"""Identity provider protocols."""

from typing import Awaitable, Callable, Optional, Protocol, runtime_checkable

from ..entities.identity import Identity

IdentityListener = Callable[[Optional[Identity]], Awaitable[None]]


@runtime_checkable
class IdentityProvider(Protocol):
    """Protocol for the authentication collaborator.

    One instance serves one viewer, the way a browser SDK tracks a single
    signed-in user. Implementations raise ``AuthError`` with a classified
    ``AuthErrorCode`` for sign-in/sign-up failures and ``ConfigurationError``
    when the provider itself cannot be initialized.
    """

    @property
    def current_identity(self) -> Optional[Identity]:
        """The identity currently signed in, if any."""
        ...

    async def sign_in(self, email: str, password: str) -> Identity:
        """Sign in with email and password and notify listeners."""
        ...

    async def sign_up(self, email: str, password: str) -> Identity:
        """Create an account, sign it in and notify listeners."""
        ...

    async def sign_out(self) -> None:
        """Sign out and notify listeners with ``None``."""
        ...

    async def resume(self, credential: str) -> Optional[Identity]:
        """Restore a session from a previously issued credential.

        Listeners are notified when the identity changes. Returns ``None``
        when the credential is no longer valid.
        """
        ...

    def on_identity_change(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a listener for identity changes.

        Returns:
            A function that unregisters the listener.
        """
        ...

    async def issue_credential(self) -> str:
        """Issue a bearer credential for the current identity.

        Raises:
            AuthorizationError: If nobody is signed in.
        """
        ...


@runtime_checkable
class CredentialVerifier(Protocol):
    """Server-side verification of bearer credentials."""

    async def verify(self, credential: str) -> Identity:
        """Return the identity a credential was issued for.

        Raises:
            AuthorizationError: If the credential is missing, expired or invalid.
        """
        ...
