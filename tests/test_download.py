import json
from pathlib import Path, PurePosixPath

import pytest
from conftest import make_document, model_id

from twinmodels import ModelDocument, TwinModelsError, model_id_to_path
from twinmodels._download import normalize_extension, write_models


def test_model_id_to_path() -> None:
    path = model_id_to_path("dtmi:rec33:architectural:building;1", "dtdl")

    assert path == PurePosixPath("dtmi/rec33/architectural/building_1.dtdl")


def test_model_id_to_path_lower_cases_directories_only() -> None:
    path = model_id_to_path("dtmi:DigitalTwins:Core:MeetingRoom;2", ".JSON")

    assert path == PurePosixPath("dtmi/digitaltwins/core/MeetingRoom_2.json")


@pytest.mark.parametrize("extension", ["txt", "", "yaml"])
def test_invalid_extension(extension: str) -> None:
    with pytest.raises(ValueError, match="only 'json' or 'dtdl'"):
        normalize_extension(extension)


def test_write_models_replaces_output(tmp_path: Path) -> None:
    output = tmp_path / "out"
    output.mkdir()
    (output / "stale.dtdl").write_text("{}", encoding="utf-8")
    documents = [make_document("space"), make_document("room", extends="space")]

    written = write_models(documents, output, "json")

    assert not (output / "stale.dtdl").exists()
    room_path = output / "dtmi" / "digitaltwins" / "testing" / "core" / "room_1.json"
    assert room_path in written
    assert json.loads(room_path.read_text(encoding="utf-8"))["@id"] == model_id("room")
    assert len(written) == 2


def test_write_models_rejects_ids_escaping_output(tmp_path: Path) -> None:
    output = tmp_path / "out"
    output.mkdir()
    (output / "kept.dtdl").write_text("{}", encoding="utf-8")
    escaping = ModelDocument.from_content({"@id": "dtmi:..:..:escaped;1", "@type": "Interface"})

    with pytest.raises(TwinModelsError, match="outside"):
        write_models([make_document("space"), escaping], output)

    assert (output / "kept.dtdl").is_file()
    assert not (tmp_path / "escaped_1.dtdl").exists()
