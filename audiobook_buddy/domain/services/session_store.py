"""Session store tracking the viewer's identity."""

import logging
from typing import Awaitable, Callable, Optional

from ..entities.errors import ConfigurationError
from ..entities.identity import Identity, SessionStatus
from ..interfaces.identity_provider import IdentityProvider

logger = logging.getLogger(__name__)

SessionListener = Callable[[Optional[Identity], Optional[Identity]], Awaitable[None]]


class SessionStore:
    """
    Holds the authenticated identity and its resolution state.

    The store subscribes once to the provider's identity-change stream on
    ``start`` and never re-subscribes while started. A provider that cannot be
    initialized puts the store into the terminal ``ERROR`` state.
    """

    def __init__(self, identity_provider: IdentityProvider):
        self._provider = identity_provider
        self._identity: Optional[Identity] = None
        self._status = SessionStatus.LOADING
        self._error: Optional[ConfigurationError] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._listeners: list[SessionListener] = []

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def error(self) -> Optional[ConfigurationError]:
        return self._error

    @property
    def provider(self) -> IdentityProvider:
        return self._provider

    def add_listener(self, listener: SessionListener) -> None:
        """Register a coroutine called with ``(previous, current)`` on every change."""
        self._listeners.append(listener)

    async def start(self) -> None:
        """Subscribe to identity changes and resolve the current identity."""
        if self._unsubscribe is not None or self._status == SessionStatus.ERROR:
            return

        try:
            self._unsubscribe = self._provider.on_identity_change(self._handle_identity_change)
            current = self._provider.current_identity
        except ConfigurationError as e:
            logger.error(f"Identity provider could not be initialized: {e}")
            self._fail(e)
            self.stop()
            return

        await self._handle_identity_change(current)

    def stop(self) -> None:
        """Unsubscribe from the provider."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            logger.info("SessionStore unsubscribed from identity changes")

    def _fail(self, error: ConfigurationError) -> None:
        self._status = SessionStatus.ERROR
        self._error = error
        self._identity = None

    async def _handle_identity_change(self, identity: Optional[Identity]) -> None:
        if self._status == SessionStatus.ERROR:
            logger.debug("Ignoring identity change after configuration failure")
            return

        previous = self._identity
        self._identity = identity
        self._status = (
            SessionStatus.READY_WITH_IDENTITY if identity else SessionStatus.READY_WITHOUT_IDENTITY
        )
        logger.info(
            f"Identity resolved: {identity.subject_id if identity else 'none'} "
            f"(previous: {previous.subject_id if previous else 'none'})"
        )

        for listener in list(self._listeners):
            await listener(previous, identity)
