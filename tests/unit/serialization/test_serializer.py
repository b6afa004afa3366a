"""
Tests for funcarrows.serialization.serializer module.
"""

import json

import pytest

from funcarrows.core.types import ErrorMarker
from funcarrows.document.document import Document
from funcarrows.document.model import ShapePatch
from funcarrows.propagators.registry import register_propagators
from funcarrows.serialization.schema import SchemaValidationError
from funcarrows.serialization.serializer import SceneSerializer, get_serializer


@pytest.fixture
def serializer():
    return SceneSerializer()


@pytest.fixture
def scene(document, two_boxes):
    """Two boxes joined by a change connector."""
    document.create_connector("shape:a", "shape:b", "{ val: from.val + 1 }", shape_id="arrow:1")
    return document


class TestSave:
    """Tests for SceneSerializer.save()."""

    def test_writes_json(self, serializer, scene, temp_dir):
        path = serializer.save(temp_dir / "scene.funcarrows", scene)

        data = json.loads(path.read_text())
        assert data["metadata"]["name"] == "scene"
        assert [s["id"] for s in data["shapes"]] == ["shape:a", "shape:b", "arrow:1"]
        assert len(data["bindings"]) == 2

    def test_forces_extension(self, serializer, scene, temp_dir):
        path = serializer.save(temp_dir / "scene.json", scene)
        assert path.suffix == ".funcarrows"
        assert path.exists()

    def test_configured_extension(self, serializer, scene, temp_dir, default_config):
        """Test that the scene extension comes from the path configuration."""
        default_config.paths.scene_extension = ".scene"
        path = serializer.save(temp_dir / "scene.json", scene)
        assert path.name == "scene.scene"

    def test_custom_name(self, serializer, scene, temp_dir):
        path = serializer.save(temp_dir / "scene", scene, name="My Scene")
        assert json.loads(path.read_text())["metadata"]["name"] == "My Scene"


class TestLoad:
    """Tests for SceneSerializer.load() and apply_to_document()."""

    def test_roundtrip(self, serializer, scene, temp_dir):
        path = serializer.save(temp_dir / "scene", scene)

        loaded = serializer.load_document(path)

        assert loaded.shape_count == 3
        assert loaded.binding_count == 2
        assert loaded.get_shape("shape:b").props["label"] == "target"
        assert loaded.get_shape("arrow:1").text == "{ val: from.val + 1 }"

    def test_loaded_scene_propagates(self, serializer, scene, temp_dir):
        """Test that an engine picks up connectors from a loaded scene."""
        path = serializer.save(temp_dir / "scene", scene)
        loaded = serializer.load_document(path, Document())
        engine = register_propagators(loaded)

        loaded.update_shape(ShapePatch(id="shape:a", props={"val": 10}))

        assert loaded.get_shape("shape:b").props["val"] == 11
        assert loaded.get_connector_marker("arrow:1") == ErrorMarker.OK
        engine.dispose()

    def test_missing_file(self, serializer, temp_dir):
        with pytest.raises(FileNotFoundError):
            serializer.load(temp_dir / "missing.funcarrows")

    def test_empty_file(self, serializer, temp_file):
        with pytest.raises(SchemaValidationError, match="empty"):
            serializer.load(temp_file("empty.funcarrows", "  \n"))

    def test_invalid_json(self, serializer, temp_file):
        with pytest.raises(SchemaValidationError, match="Invalid JSON at line 1") as exc_info:
            serializer.load(temp_file("bad.funcarrows", "{ nope"))
        assert exc_info.value.path.endswith("bad.funcarrows")

    def test_invalid_schema_has_path(self, serializer, temp_file):
        content = json.dumps({"shapes": [{"id": "shape:a"}]})
        with pytest.raises(SchemaValidationError) as exc_info:
            serializer.load(temp_file("bad.funcarrows", content))
        assert exc_info.value.path.endswith("bad.funcarrows")

    def test_newer_major_version(self, serializer, temp_file):
        content = json.dumps({"schema_version": "2.0.0"})
        with pytest.raises(SchemaValidationError, match="newer"):
            serializer.load(temp_file("future.funcarrows", content))

    def test_older_minor_version(self, serializer, temp_file):
        schema = serializer.load(temp_file("old.funcarrows", json.dumps({"schema_version": "1.0"})))
        assert schema.shapes == []

    def test_garbage_version(self, serializer, temp_file):
        with pytest.raises(SchemaValidationError, match="Invalid schema version"):
            serializer.load(temp_file("odd.funcarrows", json.dumps({"schema_version": "x.y"})))

    def test_dangling_binding(self, serializer, temp_file):
        content = json.dumps({
            "shapes": [{"id": "arrow:1", "type": "arrow"}],
            "bindings": [{"id": "b1", "from_id": "arrow:1", "to_id": "shape:none", "terminal": "end"}],
        })
        schema = serializer.load(temp_file("dangling.funcarrows", content))

        with pytest.raises(SchemaValidationError, match="shape:none"):
            serializer.apply_to_document(schema, Document())


class TestGetSerializer:
    """Tests for get_serializer()."""

    def test_singleton(self):
        assert get_serializer() is get_serializer()
        assert isinstance(get_serializer(), SceneSerializer)
