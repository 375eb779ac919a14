"""Connection settings for the remote model store."""

from __future__ import annotations

from typing import Any, Self, TypeVar

from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ._batch import MAX_MODELS_PER_BATCH, MAX_MODELS_PER_REQUEST
from ._exceptions import ConfigurationError

API_VERSION = "2020-10-31"


class BatchSettings(BaseSettings):
    """Upload batching limits, which need no connection details."""

    model_config = SettingsConfigDict(
        env_prefix="TWINMODELS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_limit: int = Field(default=MAX_MODELS_PER_REQUEST, gt=0)
    batch_size: int = Field(default=MAX_MODELS_PER_BATCH, gt=0)

    @model_validator(mode="after")
    def _check_batch_size(self) -> Self:
        if self.batch_size > self.api_limit:
            msg = f"batch size {self.batch_size} exceeds the per-request limit of {self.api_limit}"
            raise ValueError(msg)
        return self


class TwinSettings(BatchSettings):
    """Endpoint and credentials, read from ``TWINMODELS_*`` environment variables or passed in."""

    endpoint: str
    use_cli: bool = False
    tenant_id: str | None = None
    client_id: str | None = None
    client_secret: SecretStr | None = None

    timeout: float = Field(default=30.0, gt=0)
    api_version: str = API_VERSION

    @field_validator("endpoint")
    @classmethod
    def _check_endpoint(cls, value: str) -> str:
        if not value:
            msg = "the endpoint must be set"
            raise ValueError(msg)
        if not value.startswith("https://"):
            msg = "the endpoint should start with https://"
            raise ValueError(msg)
        return value.rstrip("/")

    @model_validator(mode="after")
    def _check_credentials(self) -> Self:
        if not self.use_cli and not (self.tenant_id and self.client_id and self.client_secret):
            msg = (
                "when not using Azure CLI credentials for access then the tenant,"
                " client id, and client secret must be specified"
            )
            raise ValueError(msg)
        return self


S = TypeVar("S", bound=BaseSettings)


def _validate(settings_cls: type[S], overrides: dict[str, Any]) -> S:
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return settings_cls(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(loc) for loc in error['loc']) or 'settings'}: {error['msg']}" for error in e.errors()
        )
        msg = f"invalid settings: {problems}"
        raise ConfigurationError(msg) from e


def load_settings(**overrides: Any) -> TwinSettings:
    """Build settings from the environment, letting non-``None`` overrides win."""
    return _validate(TwinSettings, overrides)


def load_batch_settings(**overrides: Any) -> BatchSettings:
    """Read only the batching limits, so planning works without credentials."""
    return _validate(BatchSettings, overrides)
