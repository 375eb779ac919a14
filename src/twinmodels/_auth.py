from __future__ import annotations

import logging
from collections.abc import Generator
from typing import TYPE_CHECKING

import httpx
from azure.core.exceptions import ClientAuthenticationError
from azure.identity import AzureCliCredential, ClientSecretCredential

from ._exceptions import AuthenticationError, ConfigurationError

if TYPE_CHECKING:
    from azure.core.credentials import TokenCredential

    from ._settings import TwinSettings

logger = logging.getLogger(__name__)

RESOURCE_ID = "https://digitaltwins.azure.net"


def get_scopes(settings: TwinSettings) -> list[str]:
    """The Azure CLI credential takes the bare resource, app registrations need ``/.default``."""
    if settings.use_cli:
        return [RESOURCE_ID]
    return [f"{RESOURCE_ID}/.default"]


def build_credential(settings: TwinSettings) -> TokenCredential:
    if settings.use_cli:
        return AzureCliCredential()
    if not (settings.tenant_id and settings.client_id and settings.client_secret):
        msg = "tenant, client id, and client secret are required for client credential authentication"
        raise ConfigurationError(msg)
    return ClientSecretCredential(
        settings.tenant_id,
        settings.client_id,
        settings.client_secret.get_secret_value(),
    )


class BearerTokenAuth(httpx.Auth):
    """Attach a bearer token to every request, acquiring it on first use."""

    def __init__(self, credential: TokenCredential, scopes: list[str]) -> None:
        self._credential = credential
        self._scopes = scopes
        self._token: str | None = None

    @property
    def token(self) -> str:
        if self._token is None:
            logger.debug("Getting bearer token")
            try:
                self._token = self._credential.get_token(*self._scopes).token
            except ClientAuthenticationError as e:
                msg = f"unable to acquire token for Azure Digital Twin scope: {e.message}"
                raise AuthenticationError(msg) from e
        return self._token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self.token}"
        yield request


def build_auth(settings: TwinSettings) -> BearerTokenAuth:
    return BearerTokenAuth(build_credential(settings), get_scopes(settings))
