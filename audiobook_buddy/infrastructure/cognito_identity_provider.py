"""Amazon Cognito implementation of the identity provider."""

import asyncio
import logging
from typing import Any, Callable, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..domain.entities.errors import AuthError, AuthErrorCode, AuthorizationError, ConfigurationError
from ..domain.entities.identity import Identity
from ..domain.interfaces.identity_provider import CredentialVerifier, IdentityListener, IdentityProvider

logger = logging.getLogger(__name__)

_COGNITO_ERROR_CODES = {
    "NotAuthorizedException": AuthErrorCode.INVALID_CREDENTIAL,
    "UserNotFoundException": AuthErrorCode.INVALID_CREDENTIAL,
    "UserNotConfirmedException": AuthErrorCode.INVALID_CREDENTIAL,
    "UsernameExistsException": AuthErrorCode.EMAIL_IN_USE,
    "AliasExistsException": AuthErrorCode.EMAIL_IN_USE,
    "InvalidPasswordException": AuthErrorCode.WEAK_PASSWORD,
    "InvalidParameterException": AuthErrorCode.INVALID_EMAIL,
    "TooManyRequestsException": AuthErrorCode.RATE_LIMITED,
    "TooManyFailedAttemptsException": AuthErrorCode.RATE_LIMITED,
    "LimitExceededException": AuthErrorCode.RATE_LIMITED,
    "ResourceNotFoundException": AuthErrorCode.CONFIGURATION_INVALID,
    "InvalidUserPoolConfigurationException": AuthErrorCode.CONFIGURATION_INVALID,
}


def classify_cognito_error(error: Exception) -> AuthError:
    """Map a boto3 failure to an ``AuthError``."""
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code", "")
        return AuthError(_COGNITO_ERROR_CODES.get(code, AuthErrorCode.INVALID_CREDENTIAL), detail=code)
    return AuthError(AuthErrorCode.NETWORK, detail=str(error))


class _CognitoClient:
    """Lazily created ``cognito-idp`` client bound to one app client id."""

    def __init__(self, client_id: str, region_name: str):
        self.client_id = client_id
        self.region_name = region_name
        self._client = None

    @property
    def client(self):
        if not self.client_id:
            raise ConfigurationError("Cognito app client id is not configured.")
        if self._client is None:
            self._client = boto3.client("cognito-idp", region_name=self.region_name)
        return self._client

    async def call(self, operation: str, **kwargs) -> dict[str, Any]:
        method = getattr(self.client, operation)
        return await asyncio.to_thread(method, **kwargs)

    async def identity_for(self, access_token: str) -> Identity:
        response = await self.call("get_user", AccessToken=access_token)
        attributes = {a["Name"]: a["Value"] for a in response.get("UserAttributes", [])}
        return Identity(
            subject_id=attributes.get("sub", response["Username"]),
            email=attributes.get("email", response["Username"]),
        )


class CognitoIdentityProvider(IdentityProvider):
    """Identity provider for one viewer using a Cognito user pool.

    Uses the ``USER_PASSWORD_AUTH`` flow; the access token is the bearer
    credential for the rest of the application.
    """

    def __init__(self, client_id: str, region_name: str = "us-east-1"):
        self._cognito = _CognitoClient(client_id, region_name)
        self._identity: Optional[Identity] = None
        self._access_token: Optional[str] = None
        self._listeners: list[IdentityListener] = []

    @property
    def current_identity(self) -> Optional[Identity]:
        return self._identity

    async def sign_in(self, email: str, password: str) -> Identity:
        try:
            response = await self._cognito.call(
                "initiate_auth",
                AuthFlow="USER_PASSWORD_AUTH",
                ClientId=self._cognito.client_id,
                AuthParameters={"USERNAME": email, "PASSWORD": password},
            )
            access_token = response["AuthenticationResult"]["AccessToken"]
            identity = await self._cognito.identity_for(access_token)
        except (BotoCoreError, ClientError) as e:
            error = classify_cognito_error(e)
            logger.warning(f"Cognito sign-in failed: {error.code.value} ({error.detail})")
            raise error from e

        self._access_token = access_token
        await self._set_identity(identity)
        return identity

    async def sign_up(self, email: str, password: str) -> Identity:
        try:
            await self._cognito.call(
                "sign_up",
                ClientId=self._cognito.client_id,
                Username=email,
                Password=password,
                UserAttributes=[{"Name": "email", "Value": email}],
            )
        except (BotoCoreError, ClientError) as e:
            error = classify_cognito_error(e)
            logger.warning(f"Cognito sign-up failed: {error.code.value} ({error.detail})")
            raise error from e
        return await self.sign_in(email, password)

    async def sign_out(self) -> None:
        if self._access_token:
            try:
                await self._cognito.call("global_sign_out", AccessToken=self._access_token)
            except (BotoCoreError, ClientError) as e:
                logger.warning(f"Cognito global sign-out failed: {e}")
        self._access_token = None
        await self._set_identity(None)

    async def resume(self, credential: str) -> Optional[Identity]:
        try:
            identity = await self._cognito.identity_for(credential)
        except (BotoCoreError, ClientError) as e:
            logger.info(f"Could not resume Cognito session: {e}")
            await self._set_identity(None)
            return None
        self._access_token = credential
        await self._set_identity(identity)
        return identity

    def on_identity_change(self, listener: IdentityListener) -> Callable[[], None]:
        # Touch the client so a missing configuration surfaces at subscription time.
        self._cognito.client
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def issue_credential(self) -> str:
        if self._identity is None or self._access_token is None:
            raise AuthorizationError("User not authenticated.")
        return self._access_token

    async def _set_identity(self, identity: Optional[Identity]) -> None:
        if identity == self._identity:
            return
        self._identity = identity
        for listener in list(self._listeners):
            await listener(identity)


class CognitoCredentialVerifier(CredentialVerifier):
    """Verifies Cognito access tokens by asking Cognito who they belong to."""

    def __init__(self, client_id: str, region_name: str = "us-east-1"):
        self._cognito = _CognitoClient(client_id, region_name)

    async def verify(self, credential: str) -> Identity:
        if not credential:
            raise AuthorizationError("Missing credential. Please sign in again.")
        try:
            return await self._cognito.identity_for(credential)
        except (BotoCoreError, ClientError) as e:
            logger.info(f"Rejected Cognito credential: {e}")
            raise AuthorizationError() from e
