"""
funcarrows Test Configuration and Fixtures.

Provides shared fixtures for unit and integration tests.
"""

import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from funcarrows.core.config import FuncArrowsConfig, set_config
from funcarrows.core.types import Terminal
from funcarrows.document.document import Document
from funcarrows.document.model import Binding, Shape
from funcarrows.propagators.registry import register_propagators

# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def default_config():
    """Use a fresh default configuration, never the user's config file."""
    config = FuncArrowsConfig()
    set_config(config)
    yield config
    set_config(None)


# =============================================================================
# Temporary Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Provide a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_file(temp_dir):
    """Provide a factory for creating temporary files."""

    def _create_file(name: str, content: str = "") -> Path:
        path = temp_dir / name
        path.write_text(content)
        return path

    return _create_file


# =============================================================================
# Document Fixtures
# =============================================================================

@pytest.fixture
def document():
    """Provide an empty document."""
    return Document()


@pytest.fixture
def make_box(document):
    """Provide a factory for sized geo shapes."""

    def _make_box(shape_id: str, x: float = 0.0, y: float = 0.0, w: float = 100.0, h: float = 100.0, **props):
        return document.create_shape(
            "geo",
            x=x,
            y=y,
            props={"w": w, "h": h, **props},
            shape_id=shape_id,
        )

    return _make_box


@pytest.fixture
def engine(document):
    """Provide a running engine with the default propagators."""
    engine = register_propagators(document)
    yield engine
    engine.dispose()


@pytest.fixture
def two_boxes(make_box):
    """Node A at the origin and node B to its right, both 100x100."""
    a = make_box("shape:a", x=0, y=0, val=1)
    b = make_box("shape:b", x=300, y=0, val=5, label="target")
    return a, b


# =============================================================================
# Mock Host Fixtures
# =============================================================================

@pytest.fixture
def mock_host():
    """Provide a mock host holding one connector with two bindings."""
    host = MagicMock()
    connector = Shape(id="arrow:1", type="arrow", props={"text": "{ val: 1 }"})
    bindings = [
        Binding(id="b1", from_id="arrow:1", to_id="shape:a", terminal=Terminal.START),
        Binding(id="b2", from_id="arrow:1", to_id="shape:b", terminal=Terminal.END),
    ]
    host.get_shape.side_effect = lambda shape_id: connector if shape_id == "arrow:1" else None
    host.get_bindings_involving_shape.return_value = bindings
    host.connector = connector
    host.bindings = bindings
    return host
