from collections.abc import Iterable
from dataclasses import dataclass

from ._batch import MAX_MODELS_PER_BATCH, MAX_MODELS_PER_REQUEST, plan_batches
from ._document import ModelDocument
from ._graph import sort_documents


@dataclass(slots=True, frozen=True)
class ModelPlan:
    """The order in which a working set is created, and the batches it is sent in."""

    creation_order: tuple[ModelDocument, ...]
    batches: tuple[tuple[ModelDocument, ...], ...]

    @property
    def removal_order(self) -> tuple[ModelDocument, ...]:
        """Dependents before their dependencies."""
        return self.creation_order[::-1]

    def __len__(self) -> int:
        return len(self.creation_order)


def build_plan(
    documents: Iterable[ModelDocument],
    *,
    api_limit: int = MAX_MODELS_PER_REQUEST,
    batch_size: int = MAX_MODELS_PER_BATCH,
) -> ModelPlan:
    order = sort_documents(documents)
    batches = plan_batches(order, api_limit=api_limit, batch_size=batch_size)
    return ModelPlan(
        creation_order=tuple(order),
        batches=tuple(tuple(batch) for batch in batches),
    )
