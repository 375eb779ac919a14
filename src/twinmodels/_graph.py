import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum, auto

from ._document import ModelDocument
from ._exceptions import CycleDetectedError, DuplicateModelIdError

logger = logging.getLogger(__name__)


class VisitState(Enum):
    UNVISITED = auto()
    IN_PROGRESS = auto()
    DONE = auto()


@dataclass(slots=True, frozen=True)
class DependencyGraph:
    """Dependency edges between the documents of one working set.

    ``edges[i]`` holds the positions of the documents that ``documents[i]`` depends on,
    in the order the dependencies were declared.
    """

    documents: tuple[ModelDocument, ...]
    index: Mapping[str, int]
    edges: tuple[tuple[int, ...], ...]

    def __len__(self) -> int:
        return len(self.documents)

    def __contains__(self, model_id: object) -> bool:
        return model_id in self.index

    def get(self, model_id: str) -> ModelDocument:
        """Get the document with the given id."""
        try:
            return self.documents[self.index[model_id]]
        except KeyError as e:
            msg = f"Model '{model_id}' is not part of the working set."
            raise KeyError(msg) from e

    def dependencies_of(self, model_id: str) -> list[ModelDocument]:
        """Get the documents in the working set that the given model depends on."""
        self.get(model_id)
        return [self.documents[position] for position in self.edges[self.index[model_id]]]


def build_dependency_graph(documents: Iterable[ModelDocument]) -> DependencyGraph:
    """Resolve the dependency ids of each document against the working set.

    Ids that do not match a document in the set refer to models managed elsewhere
    and are left out of the graph.
    """
    docs = tuple(documents)

    index: dict[str, int] = {}
    for position, doc in enumerate(docs):
        if doc.id in index:
            raise DuplicateModelIdError(doc.id)
        index[doc.id] = position

    edges: list[tuple[int, ...]] = []
    for doc in docs:
        resolved: list[int] = []
        for dep_id in doc.dependency_ids:
            position = index.get(dep_id)
            if position is None:
                logger.debug(f"Dependency {dep_id} of {doc.id} is not in the working set, ignoring")
                continue
            resolved.append(position)
        edges.append(tuple(resolved))

    return DependencyGraph(documents=docs, index=index, edges=tuple(edges))


def topological_sort(graph: DependencyGraph) -> list[ModelDocument]:
    """Order the documents so that every dependency comes before its dependents.

    The walk is a depth-first search in input order, emitting each document after
    all of its dependencies. Raises ``CycleDetectedError`` if a document is reached
    again while it is still being visited.
    """
    states = [VisitState.UNVISITED] * len(graph)
    order: list[ModelDocument] = []

    for root in range(len(graph)):
        if states[root] is not VisitState.UNVISITED:
            continue

        states[root] = VisitState.IN_PROGRESS
        stack: list[tuple[int, Iterator[int]]] = [(root, iter(graph.edges[root]))]
        while stack:
            node, pending = stack[-1]
            for dep in pending:
                if states[dep] is VisitState.IN_PROGRESS:
                    path = [position for position, _ in stack]
                    cycle = [graph.documents[position].id for position in path[path.index(dep) :]]
                    cycle.append(graph.documents[dep].id)
                    raise CycleDetectedError(graph.documents[dep].id, cycle)
                if states[dep] is VisitState.UNVISITED:
                    states[dep] = VisitState.IN_PROGRESS
                    stack.append((dep, iter(graph.edges[dep])))
                    break
            else:
                stack.pop()
                states[node] = VisitState.DONE
                order.append(graph.documents[node])

    return order


def sort_documents(documents: Iterable[ModelDocument]) -> list[ModelDocument]:
    """Build a fresh dependency graph and return the creation order."""
    graph = build_dependency_graph(documents)
    order = topological_sort(graph)
    logger.debug(f"Sorted {len(order)} model(s): {', '.join(doc.id for doc in order)}")
    return order


def removal_order(documents: Iterable[ModelDocument]) -> list[ModelDocument]:
    """Return the order in which models can be deleted, dependents first."""
    return sort_documents(documents)[::-1]
