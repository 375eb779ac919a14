import httpx
import pytest
from azure.core.credentials import AccessToken
from azure.core.exceptions import ClientAuthenticationError
from azure.identity import AzureCliCredential, ClientSecretCredential
from conftest import ENDPOINT, FakeModelStore, make_model, model_id
from pydantic import SecretStr

from twinmodels import ModelStoreClient, TwinSettings
from twinmodels._auth import RESOURCE_ID, BearerTokenAuth, build_credential
from twinmodels._exceptions import AuthenticationError, ConfigurationError


class FakeCredential:
    """Hands out numbered tokens and records the scopes it was asked for."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple[str, ...]] = []

    def get_token(self, *scopes: str) -> AccessToken:
        self.calls.append(scopes)
        if self.fail:
            msg = "AADSTS7000215: Invalid client secret provided"
            raise ClientAuthenticationError(message=msg)
        return AccessToken(f"token-{len(self.calls)}", 0)


def test_token_is_fetched_once_and_sent_on_every_request() -> None:
    credential = FakeCredential()
    headers: list[str | None] = []
    store = FakeModelStore([make_model("space")])

    def handler(request: httpx.Request) -> httpx.Response:
        headers.append(request.headers.get("Authorization"))
        return store(request)

    auth = BearerTokenAuth(credential, [f"{RESOURCE_ID}/.default"])
    with ModelStoreClient(ENDPOINT, auth=auth, transport=httpx.MockTransport(handler)) as client:
        first = client.list_models()
        client.list_models()
        client.delete_models(first)

    assert [doc.id for doc in first] == [model_id("space")]
    assert headers == ["Bearer token-1"] * 3
    assert credential.calls == [(f"{RESOURCE_ID}/.default",)]


def test_token_failure_is_an_authentication_error() -> None:
    credential = FakeCredential(fail=True)
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"value": []})

    auth = BearerTokenAuth(credential, [f"{RESOURCE_ID}/.default"])
    with (
        ModelStoreClient(ENDPOINT, auth=auth, transport=httpx.MockTransport(handler)) as client,
        pytest.raises(AuthenticationError, match="Invalid client secret"),
    ):
        client.list_models()

    assert requests == []


def test_build_credential_requires_a_secret() -> None:
    settings = TwinSettings.model_construct(endpoint=ENDPOINT, use_cli=False, tenant_id="tenant", client_id="client")

    with pytest.raises(ConfigurationError, match="client secret"):
        build_credential(settings)


def test_build_credential_for_azure_cli() -> None:
    settings = TwinSettings.model_construct(endpoint=ENDPOINT, use_cli=True)

    assert isinstance(build_credential(settings), AzureCliCredential)


def test_build_credential_for_app_registration() -> None:
    settings = TwinSettings.model_construct(
        endpoint=ENDPOINT,
        use_cli=False,
        tenant_id="tenant",
        client_id="client",
        client_secret=SecretStr("secret"),
    )

    assert isinstance(build_credential(settings), ClientSecretCredential)
