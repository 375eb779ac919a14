import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Self

from ._exceptions import ModelLoadError

logger = logging.getLogger(__name__)

ID_KEYS = ("@id", "id")
COMPONENT_TYPE = "Component"


def get_model_id(content: Mapping[str, Any], *, source: str = "<document>") -> str:
    """Return the model id from ``@id``, falling back to ``id``."""
    for key in ID_KEYS:
        if key in content:
            model_id = content[key]
            if not isinstance(model_id, str):
                msg = f"'{key}' must be a string, got {type(model_id).__name__}"
                raise ModelLoadError(source, msg)
            return model_id
    raise ModelLoadError(source, "unable to find 'id' or '@id' in the model")


def extract_dependency_ids(content: Mapping[str, Any], *, source: str = "<document>") -> list[str]:
    """Return the ids a model references through components and inheritance.

    Components are the ``contents`` entries whose ``@type`` is ``Component``; their
    ``schema`` is a dependency. Every value of ``extends`` is a dependency.
    The result keeps the first occurrence of each id.
    """
    dependencies: list[str] = []

    contents = content.get("contents")
    if isinstance(contents, list):
        for item in contents:
            if not isinstance(item, Mapping) or item.get("@type") != COMPONENT_TYPE:
                continue
            schema = item.get("schema")
            if isinstance(schema, str):
                dependencies.append(schema)

    if "extends" in content:
        extends = content["extends"]
        items = extends if isinstance(extends, list) else [extends]
        for item in items:
            if not isinstance(item, str):
                msg = f"'extends' must hold model ids, got {type(item).__name__}"
                raise ModelLoadError(source, msg)
            dependencies.append(item)

    return list(dict.fromkeys(dependencies))


@dataclass(slots=True, frozen=True)
class ModelDocument:
    """A model definition together with the ids it depends on."""

    id: str
    content: Mapping[str, Any] = field(repr=False, hash=False)
    dependency_ids: tuple[str, ...] = ()

    @classmethod
    def from_content(cls, content: Mapping[str, Any], *, source: str = "<document>") -> Self:
        """Create a document, raising ``ModelLoadError`` if the content is not a usable model."""
        if not isinstance(content, Mapping):
            msg = f"expected a JSON object, got {type(content).__name__}"
            raise ModelLoadError(source, msg)
        model_id = get_model_id(content, source=source)
        dependency_ids = extract_dependency_ids(content, source=source)
        logger.debug(f"Loaded model {model_id} with {len(dependency_ids)} dependency id(s)")
        return cls(id=model_id, content=content, dependency_ids=tuple(dependency_ids))
