import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Self

from ._document import ModelDocument
from ._exceptions import InvalidDirectoryError, ModelLoadError

logger = logging.getLogger(__name__)

MODEL_FILE_EXTENSIONS = frozenset({".json", ".dtdl"})


@dataclass(slots=True, frozen=True)
class ModelDirectory:
    """A location on disk holding model files."""

    path: Path

    def __str__(self) -> str:
        return str(self.path)

    @classmethod
    def from_path(cls, path: str | Path) -> Self:
        """Create a model directory, checking that the path is an existing directory."""
        if not str(path):
            msg = "a path must be specified"
            raise InvalidDirectoryError(msg)
        path = Path(path)
        if not path.exists():
            msg = f"the specified path does not exist: {path}"
            raise InvalidDirectoryError(msg)
        if not path.is_dir():
            msg = f"the specified path is not a directory: {path}"
            raise InvalidDirectoryError(msg)
        return cls(path=path)

    def iter_model_files(self) -> list[Path]:
        """List the model files under the directory, recursively and in a stable order."""
        return sorted(
            file_path
            for file_path in self.path.rglob("*")
            if file_path.is_file() and file_path.suffix.lower() in MODEL_FILE_EXTENSIONS
        )

    def load_documents(self) -> list[ModelDocument]:
        """Load every model file, skipping the ones that are not valid models."""
        documents: list[ModelDocument] = []
        for file_path in self.iter_model_files():
            try:
                documents.append(load_model_file(file_path))
            except ModelLoadError as e:
                logger.warning(f"Ignoring file '{file_path}': {e.reason}")
        logger.info(f"Loaded {len(documents)} model(s) from {self.path}")
        return documents


def load_model_file(file_path: Path) -> ModelDocument:
    """Read a single model file. A leading byte order mark is allowed."""
    try:
        text = file_path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ModelLoadError(str(file_path), f"unable to read file ({e})") from e

    try:
        content = json.loads(text)
    except json.JSONDecodeError as e:
        raise ModelLoadError(str(file_path), f"file does not contain valid json ({e})") from e

    return ModelDocument.from_content(content, source=str(file_path))
