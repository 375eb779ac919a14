import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from twinmodels import ModelDocument, ModelStoreClient

CONTEXT = "dtmi:dtdl:context;2"


def model_id(name: str) -> str:
    return f"dtmi:digitaltwins:testing:core:{name};1"


def make_model(
    name: str,
    *,
    extends: str | list[str] | None = None,
    components: tuple[str, ...] = (),
) -> dict[str, Any]:
    """Build a minimal DTDL interface."""
    model: dict[str, Any] = {
        "@id": model_id(name),
        "@type": "Interface",
        "@context": CONTEXT,
        "displayName": name,
        "contents": [
            {"@type": "Property", "name": "name", "schema": "string"},
            *({"@type": "Component", "name": f"part{i}", "schema": model_id(c)} for i, c in enumerate(components)),
        ],
    }
    if isinstance(extends, list):
        model["extends"] = [model_id(e) for e in extends]
    elif extends is not None:
        model["extends"] = model_id(extends)
    return model


def make_document(name: str, **kwargs: Any) -> ModelDocument:
    return ModelDocument.from_content(make_model(name, **kwargs))


@pytest.fixture
def building_models() -> dict[str, dict[str, Any]]:
    """The space/room/meetingroom/building/level set of models."""
    return {
        "space": make_model("space"),
        "room": make_model("room", extends="space"),
        "meetingroom": make_model("meetingroom", extends="room"),
        "building": make_model("building", components=("space",)),
        "level": make_model("level", extends="space"),
    }


@pytest.fixture
def model_dir(tmp_path: Path, building_models: dict[str, dict[str, Any]]) -> Path:
    """A directory tree holding the building models, with dependents listed first."""
    root = tmp_path / "models"
    layout = {
        "building": root / "building.dtdl",
        "level": root / "level.json",
        "meetingroom": root / "rooms" / "meetingroom.dtdl",
        "room": root / "rooms" / "room.DTDL",
        "space": root / "zz" / "space.json",
    }
    for name, path in layout.items():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(building_models[name]), encoding="utf-8")
    return root


ENDPOINT = "https://test-twin.api.weu.digitaltwins.azure.net"


def _extends(model: dict[str, Any]) -> list[str]:
    extends = model.get("extends", [])
    return extends if isinstance(extends, list) else [extends]


class FakeModelStore:
    """In-memory stand-in for the model API, served through ``httpx.MockTransport``."""

    def __init__(self, models: list[dict[str, Any]] | None = None) -> None:
        self.models = {model["@id"]: model for model in models or []}
        self.requests: list[tuple[str, str]] = []
        self.posted: list[list[str]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        if request.method == "GET":
            entries = [{"id": model_id_, "model": model} for model_id_, model in self.models.items()]
            return httpx.Response(200, json={"value": entries, "nextLink": None})
        if request.method == "POST":
            batch = json.loads(request.content)
            for model in batch:
                missing = [dep for dep in _extends(model) if dep not in self.models]
                if missing:
                    return httpx.Response(400, json={"error": {"code": "DTDLParserError", "message": missing}})
                self.models[model["@id"]] = model
            self.posted.append([model["@id"] for model in batch])
            return httpx.Response(201, json=[])
        if request.method == "DELETE":
            target = request.url.path.removeprefix("/models/")
            referenced = any(target in _extends(model) for model in self.models.values())
            if referenced:
                return httpx.Response(409, json={"error": {"code": "ModelReferencesNotDeleted"}})
            del self.models[target]
            return httpx.Response(204)
        return httpx.Response(405)

    def client(self) -> ModelStoreClient:
        return ModelStoreClient(ENDPOINT, transport=httpx.MockTransport(self))

