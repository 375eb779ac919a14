"""Commands that combine a model source, the dependency ordering and the remote store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ._batch import MAX_MODELS_PER_BATCH, MAX_MODELS_PER_REQUEST
from ._download import normalize_extension, write_models
from ._exceptions import TwinModelsError
from ._graph import removal_order
from ._plan import ModelPlan, build_plan

if TYPE_CHECKING:
    from pathlib import Path

    from ._client import ModelStoreClient
    from ._directory import ModelDirectory
    from ._document import ModelDocument

logger = logging.getLogger(__name__)


def list_models(client: ModelStoreClient) -> list[ModelDocument]:
    """Return the models currently defined in the instance."""
    return client.list_models()


def clear_models(client: ModelStoreClient) -> list[ModelDocument]:
    """Delete every model in the instance, dependents first.

    Returns:
        The deleted models, in deletion order

    """
    models = client.list_models()
    if not models:
        return []

    ordered = removal_order(models)
    logger.info(f"Removing {len(ordered)} model(s) from the digital twin instance")
    client.delete_models(ordered)
    return ordered


def plan_directory(
    directory: ModelDirectory,
    *,
    api_limit: int = MAX_MODELS_PER_REQUEST,
    batch_size: int = MAX_MODELS_PER_BATCH,
) -> ModelPlan:
    """Load a directory and compute its creation order and batches."""
    documents = directory.load_documents()
    if not documents:
        msg = f"No models found to upload in {directory}"
        raise TwinModelsError(msg)
    return build_plan(documents, api_limit=api_limit, batch_size=batch_size)


def upload_models(
    client: ModelStoreClient,
    directory: ModelDirectory,
    *,
    api_limit: int = MAX_MODELS_PER_REQUEST,
    batch_size: int = MAX_MODELS_PER_BATCH,
) -> ModelPlan:
    """Create every model found under ``directory`` in dependency order."""
    plan = plan_directory(directory, api_limit=api_limit, batch_size=batch_size)
    logger.info(f"Uploading {len(plan)} model(s) in {len(plan.batches)} batch(es)")
    client.create_models(plan.batches)
    return plan


def download_models(client: ModelStoreClient, output: Path, extension: str = "dtdl") -> list[Path]:
    """Write every model in the instance below ``output``, replacing what is there."""
    extension = normalize_extension(extension)
    models = client.list_models()
    if not models:
        logger.info("No models to download")
        return []
    return write_models(models, output, extension)
