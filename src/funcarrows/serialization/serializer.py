"""
Scene Serializer - Save and load scene files.

Handles conversion between a Document and JSON-serializable schema
objects.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from funcarrows.core.config import get_config
from funcarrows.core.types import Terminal
from funcarrows.document.document import Document
from funcarrows.document.host import HostError
from funcarrows.serialization.schema import (
    SCHEMA_VERSION,
    BindingSchema,
    DocumentSchema,
    MetadataSchema,
    SchemaValidationError,
    ShapeSchema,
)

logger = logging.getLogger(__name__)


class SceneSerializer:
    """
    Serializer for scene files.

    Provides save/load functionality with schema validation and version
    checks.
    """

    @property
    def file_extension(self) -> str:
        """Scene file extension, from the path configuration."""
        return get_config().paths.scene_extension

    def to_schema(self, document: Document, name: str = "Untitled") -> DocumentSchema:
        """Capture a document's shapes and bindings."""
        shapes = [
            ShapeSchema(
                id=s.id,
                type=s.type,
                x=s.x,
                y=s.y,
                rotation=s.rotation,
                parent_id=s.parent_id,
                props=dict(s.props),
                meta=dict(s.meta),
            )
            for s in document.get_current_page_shapes()
        ]
        bindings = [
            BindingSchema(
                id=b.id,
                from_id=b.from_id,
                to_id=b.to_id,
                terminal=b.terminal.value,
                type=b.type,
            )
            for b in document.get_bindings()
        ]
        return DocumentSchema(metadata=MetadataSchema(name=name), shapes=shapes, bindings=bindings)

    def save(self, path: Path, document: Document, name: Optional[str] = None) -> Path:
        """
        Save a document to a file.

        Args:
            path: File path to save to; the extension is forced to the
                configured scene extension
            document: The document to save
            name: Scene name, defaults to the file stem

        Returns:
            The path actually written
        """
        path = Path(path)
        if path.suffix != self.file_extension:
            path = path.with_suffix(self.file_extension)

        schema = self.to_schema(document, name or path.stem)
        schema.update_modified()

        with open(path, "w", encoding="utf-8") as f:
            f.write(schema.to_json(indent=2))

        logger.info(f"Saved scene to {path}")
        return path

    def load(self, path: Path) -> DocumentSchema:
        """
        Load a scene schema from a file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            SchemaValidationError: If the file is malformed or invalid
        """
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            logger.error(f"Scene file not found: {path}")
            raise
        except UnicodeDecodeError as e:
            raise SchemaValidationError(
                f"File encoding error: {e}. Ensure the file is UTF-8 encoded.",
                path=str(path),
            ) from e
        except OSError as e:
            logger.error(f"Error reading scene file {path}: {e}")
            raise SchemaValidationError(f"Error reading file: {e}", path=str(path)) from e

        if not content.strip():
            raise SchemaValidationError("File is empty", path=str(path))

        try:
            schema = DocumentSchema.from_json(content)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {path}: line {e.lineno}, column {e.colno}")
            raise SchemaValidationError(
                f"Invalid JSON at line {e.lineno}, column {e.colno}: {e.msg}",
                path=str(path),
            ) from e
        except SchemaValidationError as e:
            raise SchemaValidationError(str(e), path=str(path)) from e

        self._validate_version(schema, str(path))
        logger.info(f"Loaded scene from {path}")
        return schema

    def apply_to_document(self, schema: DocumentSchema, document: Document) -> None:
        """
        Create the schema's shapes and bindings in ``document``.

        Raises:
            SchemaValidationError: If a shape or binding cannot be created
                (duplicate id, unknown parent, dangling binding)
        """
        try:
            for shape in schema.shapes:
                document.create_shape(
                    shape.type,
                    x=shape.x,
                    y=shape.y,
                    rotation=shape.rotation,
                    props=shape.props,
                    meta=shape.meta,
                    parent_id=shape.parent_id,
                    shape_id=shape.id,
                )
            for binding in schema.bindings:
                document.create_binding(
                    binding.from_id,
                    binding.to_id,
                    Terminal(binding.terminal),
                    binding_id=binding.id,
                )
        except HostError as e:
            raise SchemaValidationError(str(e)) from e

        logger.info(
            f"Applied scene '{schema.metadata.name}': "
            f"{len(schema.shapes)} shapes, {len(schema.bindings)} bindings"
        )

    def load_document(self, path: Path, document: Optional[Document] = None) -> Document:
        """Load a scene file into a (new) document."""
        document = document or Document()
        self.apply_to_document(self.load(path), document)
        return document

    def _validate_version(self, schema: DocumentSchema, path: str) -> None:
        try:
            major = int(schema.schema_version.split(".")[0])
        except ValueError as e:
            raise SchemaValidationError(f"Invalid schema version {schema.schema_version!r}", path=path) from e
        current_major = int(SCHEMA_VERSION.split(".")[0])
        if major > current_major:
            raise SchemaValidationError(
                f"Schema version {schema.schema_version} is newer than supported {SCHEMA_VERSION}",
                path=path,
            )


# Global serializer instance
_serializer: Optional[SceneSerializer] = None


def get_serializer() -> SceneSerializer:
    """Get the global serializer instance."""
    global _serializer
    if _serializer is None:
        _serializer = SceneSerializer()
    return _serializer
