from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Self

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ._auth import build_auth
from ._document import ModelDocument
from ._exceptions import BatchUploadError, ModelDeleteError, ModelLoadError, RemoteStoreError
from ._settings import API_VERSION

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from types import TracebackType

    from ._settings import TwinSettings

logger = logging.getLogger(__name__)

MODELS_PATH = "/models"


class ModelPage(BaseModel):
    """One page of the paged model listing."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    value: list[dict[str, Any]] = Field(default_factory=list)
    next_link: str | None = Field(default=None, alias="nextLink")


def _error_detail(response: httpx.Response) -> object:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict):
        return body.get("error", body)
    return body


def _document_from_listing(entry: dict[str, Any]) -> ModelDocument:
    """Listing entries carry the definition under ``model`` when it was requested."""
    content = entry.get("model", entry)
    return ModelDocument.from_content(content, source=str(entry.get("id", "<listing>")))


class ModelStoreClient:
    """Client for the model API of a digital twin instance.

    Requests are issued one at a time. Use it as a context manager so the underlying
    connection pool is closed.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        auth: httpx.Auth | None = None,
        api_version: str = API_VERSION,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_version = api_version
        self._http = httpx.Client(
            base_url=endpoint,
            auth=auth,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_settings(cls, settings: TwinSettings, *, transport: httpx.BaseTransport | None = None) -> Self:
        return cls(
            settings.endpoint,
            auth=build_auth(settings),
            api_version=settings.api_version,
            timeout=settings.timeout,
            transport=transport,
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _send(self, method: str, url: str, *, params: dict[str, str] | None = None, **kwargs: Any) -> httpx.Response:
        try:
            return self._http.request(method, url, params=params, **kwargs)
        except httpx.HTTPError as e:
            msg = f"unable to reach {url}: {e}"
            raise RemoteStoreError(msg) from e

    def _params(self, **extra: str) -> dict[str, str]:
        return {"api-version": self.api_version, **extra}

    def iter_pages(self) -> Iterator[ModelPage]:
        """Yield pages of the model listing until the continuation link runs out."""
        url: str | None = MODELS_PATH
        params: dict[str, str] | None = self._params(includeModelDefinition="true")
        while url:
            logger.info(f"Retrieving models from: {url}")
            response = self._send("GET", url, params=params)
            if response.status_code != httpx.codes.OK:
                msg = "unable to list models"
                raise RemoteStoreError(msg, status_code=response.status_code, detail=_error_detail(response))
            try:
                page = ModelPage.model_validate(response.json())
            except (ValueError, ValidationError) as e:
                msg = f"unexpected model listing response from {url}"
                raise RemoteStoreError(msg) from e
            yield page
            # The continuation link already carries the query string
            url, params = page.next_link, None

    def list_models(self) -> list[ModelDocument]:
        """Return every model defined in the instance."""
        documents: list[ModelDocument] = []
        for page in self.iter_pages():
            for entry in page.value:
                try:
                    documents.append(_document_from_listing(entry))
                except ModelLoadError as e:
                    logger.warning(f"Ignoring listed model: {e}")
        return documents

    def create_models(self, batches: Sequence[Sequence[ModelDocument]]) -> None:
        """Create the batches in order; a failed batch stops the upload."""
        batch_count = len(batches)
        for number, batch in enumerate(batches, start=1):
            logger.info(f"Uploading batch {number}/{batch_count} ({len(batch)} model(s))")
            try:
                response = self._send(
                    "POST",
                    MODELS_PATH,
                    params=self._params(),
                    json=[doc.content for doc in batch],
                )
            except RemoteStoreError as e:
                raise BatchUploadError(number, batch_count, detail=str(e)) from e
            if response.status_code != httpx.codes.CREATED:
                raise BatchUploadError(
                    number,
                    batch_count,
                    status_code=response.status_code,
                    detail=_error_detail(response),
                )

    def delete_models(self, documents: Sequence[ModelDocument]) -> None:
        """Delete the models one at a time, in the given order."""
        total = len(documents)
        for number, doc in enumerate(documents, start=1):
            logger.info(f"Deleting entry {number}/{total}: {doc.id}")
            try:
                response = self._send("DELETE", f"{MODELS_PATH}/{doc.id}", params=self._params())
            except RemoteStoreError as e:
                raise ModelDeleteError(doc.id, detail=str(e)) from e
            if response.status_code != httpx.codes.NO_CONTENT:
                raise ModelDeleteError(doc.id, status_code=response.status_code, detail=_error_detail(response))
