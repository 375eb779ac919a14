"""Exceptions raised by twinmodels."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class TwinModelsError(Exception):
    """Base exception for twinmodels errors."""


class ConfigurationError(TwinModelsError):
    """Raised when the connection settings are invalid."""


class InvalidDirectoryError(TwinModelsError):
    """Raised when a model source or output path is not a usable directory."""


class ModelLoadError(TwinModelsError):
    """Raised when a single model document cannot be loaded."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"unable to load model from {source}: {reason}")


class DuplicateModelIdError(TwinModelsError):
    """Raised when two documents in one working set share an id."""

    def __init__(self, model_id: str) -> None:
        self.model_id = model_id
        super().__init__(f"model id '{model_id}' appears more than once in the working set")


class CycleDetectedError(TwinModelsError):
    """Raised when the dependency graph contains a cycle.

    Attributes:
        model_id: The model that was reached again while still being visited.
        cycle: The model ids along the cycle, starting and ending with ``model_id``.

    """

    def __init__(self, model_id: str, cycle: Sequence[str] = ()) -> None:
        self.model_id = model_id
        self.cycle = tuple(cycle)
        msg = f"circular dependency detected at model '{model_id}'"
        if self.cycle:
            msg += f": {' -> '.join(self.cycle)}"
        super().__init__(msg)


class AuthenticationError(TwinModelsError):
    """Raised when a bearer token cannot be acquired."""


class RemoteStoreError(TwinModelsError):
    """Raised when the remote model store rejects or fails a request."""

    def __init__(self, message: str, *, status_code: int | None = None, detail: object = None) -> None:
        self.status_code = status_code
        self.detail = detail
        if status_code is not None:
            message = f"{message} (status {status_code})"
        if detail is not None:
            message = f"{message}: {detail}"
        super().__init__(message)


class BatchUploadError(RemoteStoreError):
    """Raised when a batch of models is not created."""

    def __init__(
        self,
        batch_number: int,
        batch_count: int,
        *,
        status_code: int | None = None,
        detail: object = None,
    ) -> None:
        self.batch_number = batch_number
        self.batch_count = batch_count
        super().__init__(
            f"unable to upload batch {batch_number}/{batch_count}",
            status_code=status_code,
            detail=detail,
        )


class ModelDeleteError(RemoteStoreError):
    """Raised when a model cannot be deleted."""

    def __init__(self, model_id: str, *, status_code: int | None = None, detail: object = None) -> None:
        self.model_id = model_id
        super().__init__(f"unable to delete model {model_id}", status_code=status_code, detail=detail)
