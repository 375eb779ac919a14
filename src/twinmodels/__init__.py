"""Dependency-ordered management of digital twin models."""

__all__ = [
    "BatchUploadError",
    "CycleDetectedError",
    "DependencyGraph",
    "DuplicateModelIdError",
    "ModelDirectory",
    "ModelDocument",
    "ModelLoadError",
    "ModelPlan",
    "ModelStoreClient",
    "RemoteStoreError",
    "TwinModelsError",
    "TwinSettings",
    "build_dependency_graph",
    "build_plan",
    "extract_dependency_ids",
    "model_id_to_path",
    "plan_batches",
    "removal_order",
    "sort_documents",
    "topological_sort",
]

from ._batch import plan_batches
from ._client import ModelStoreClient
from ._directory import ModelDirectory
from ._document import ModelDocument, extract_dependency_ids
from ._download import model_id_to_path
from ._exceptions import (
    BatchUploadError,
    CycleDetectedError,
    DuplicateModelIdError,
    ModelLoadError,
    RemoteStoreError,
    TwinModelsError,
)
from ._graph import DependencyGraph, build_dependency_graph, removal_order, sort_documents, topological_sort
from ._plan import ModelPlan, build_plan
from ._settings import TwinSettings
