"""
Snapshot Codec - converts shapes to program records and back.

A snapshot flattens a shape into one record:

    {id, type, x, y, rotation, <props...>, m: <meta>}

Unpacking splits a record back into a ShapePatch. Keys missing from the
record are missing from the patch, so merging a partial record only
touches what it names.
"""

import copy
import math
from typing import Any, Dict

from funcarrows.document.model import Shape, ShapePatch
from funcarrows.program.errors import ProgramRuntimeError
from funcarrows.program.values import is_number, to_number, to_string

_RESERVED = ("id", "type", "x", "y", "rotation", "m")

_MAX_SAFE_INTEGER = 2 ** 53 - 1


def pack_shape(shape: Shape) -> Dict[str, Any]:
    """Flatten a shape into a snapshot record (deep-copied)."""
    record: Dict[str, Any] = {
        "id": shape.id,
        "type": shape.type,
        "x": shape.x,
        "y": shape.y,
        "rotation": shape.rotation,
    }
    for key, value in shape.props.items():
        if key not in _RESERVED:
            record[key] = copy.deepcopy(value)
    record["m"] = copy.deepcopy(shape.meta)
    return record


def _coerce_number(key: str, value: Any) -> float:
    if isinstance(value, str) or isinstance(value, bool) or is_number(value):
        number = to_number(value)
    else:
        number = math.nan
    if math.isnan(number) or math.isinf(number):
        raise ProgramRuntimeError(f"{key} must be a finite number, got {to_string(value)!r}")
    return float(number)


def _plain_data(key: str, value: Any) -> Any:
    """
    Copy a prop or meta value, accepting only plain data.

    Whole-number floats come back as ints so stored props read the way
    they were written.
    """
    if value is None or isinstance(value, (bool, str)):
        return value
    if is_number(value):
        if isinstance(value, float) and value.is_integer() and abs(value) <= _MAX_SAFE_INTEGER:
            return int(value)
        return value
    if isinstance(value, list):
        return [_plain_data(key, item) for item in value]
    if isinstance(value, dict):
        return {str(k): _plain_data(key, v) for k, v in value.items()}
    raise ProgramRuntimeError(f"{key} must hold plain data, got {value!r}")


def unpack_shape(record: Dict[str, Any]) -> ShapePatch:
    """
    Split a snapshot record into a ShapePatch.

    ``x``, ``y`` and ``rotation`` are coerced to numbers and ``text`` to a
    string. Everything that is not a reserved key becomes a prop.

    Raises:
        ProgramRuntimeError: If the record has no id, a coordinate is
            not numeric, or a prop holds a function or namespace
    """
    if not isinstance(record, dict):
        raise ProgramRuntimeError(f"Expected a shape record, got {type(record).__name__}")
    shape_id = record.get("id")
    if not isinstance(shape_id, str) or not shape_id:
        raise ProgramRuntimeError("Shape record has no id")

    patch = ShapePatch(id=shape_id)
    if record.get("type") is not None:
        patch.type = to_string(record["type"])
    for key in ("x", "y", "rotation"):
        if record.get(key) is not None:
            setattr(patch, key, _coerce_number(key, record[key]))

    props = {key: _plain_data(key, value) for key, value in record.items() if key not in _RESERVED}
    if props.get("text") is not None:
        props["text"] = to_string(props["text"])
    if props:
        patch.props = props

    meta = record.get("m")
    if meta is not None:
        if not isinstance(meta, dict):
            raise ProgramRuntimeError("Shape meta (m) must be a record")
        patch.meta = _plain_data("m", meta)
    return patch


def unpack_to_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """``_unpack`` as seen by programs: the patch in record form."""
    return unpack_shape(record).to_record()
