import json
import logging
import shutil
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from ._document import ModelDocument
from ._exceptions import TwinModelsError

logger = logging.getLogger(__name__)

DOWNLOAD_EXTENSIONS = ("dtdl", "json")


def normalize_extension(extension: str) -> str:
    """Lower-case the extension and drop a leading dot, allowing only ``dtdl`` or ``json``."""
    normalized = extension.lower().removeprefix(".")
    if normalized not in DOWNLOAD_EXTENSIONS:
        msg = f"file extension '{normalized}' is not valid, only 'json' or 'dtdl' should be provided"
        raise ValueError(msg)
    return normalized


def model_id_to_path(model_id: str, extension: str = "dtdl") -> PurePosixPath:
    """Map a model id to a relative file path.

    ``dtmi:rec33:architectural:building;1`` becomes
    ``dtmi/rec33/architectural/building_1.dtdl``.
    """
    extension = normalize_extension(extension)
    *directories, name = model_id.split(":")
    filename = f"{name.replace(';', '_')}.{extension}"
    return PurePosixPath(*(part.lower() for part in directories), filename)


def _target_path(output: Path, model_id: str, extension: str) -> Path:
    file_path = output.joinpath(*model_id_to_path(model_id, extension).parts)
    if not file_path.resolve().is_relative_to(output.resolve()):
        msg = f"model id '{model_id}' maps to {file_path}, which is outside {output}"
        raise TwinModelsError(msg)
    return file_path


def write_models(documents: Iterable[ModelDocument], output: Path, extension: str = "dtdl") -> list[Path]:
    """Replace the content of ``output`` with one file per model.

    Every target path is checked before ``output`` is cleared, so an id that would
    escape ``output`` leaves the directory untouched.
    """
    extension = normalize_extension(extension)
    targets = [(doc, _target_path(output, doc.id, extension)) for doc in documents]
    if output.is_dir():
        shutil.rmtree(output)
    elif output.exists():
        output.unlink()
    output.mkdir(parents=True)

    written: list[Path] = []
    for doc, file_path in targets:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Writing model {doc.id} to {file_path}")
        file_path.write_text(json.dumps(doc.content, indent=2) + "\n", encoding="utf-8")
        written.append(file_path)
    return written
