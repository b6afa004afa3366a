"""
Runtime values for connector programs.

Programs only ever see plain data (None, bool, numbers, strings, lists and
dict records) plus two wrapper types that make the host reachable in a
controlled way:

- NativeFunction: an allow-listed Python callable.
- Namespace: a frozen set of named members (``Math``, ``G``, ``editor``).

Coercion helpers follow JavaScript rules closely enough that programs
written for the canvas behave as their authors expect.
"""

import math
import re
from typing import Any, Callable, Dict, Iterable, Optional

from funcarrows.program.errors import ProgramRuntimeError

_HEX_RE = re.compile(r"0[xX][0-9a-fA-F]+")
_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

# Longest string or array a program may build.
MAX_SEQUENCE_LENGTH = 1 << 20


class NativeFunction:
    """An allow-listed callable exposed to programs."""

    __slots__ = ("name", "_func")

    def __init__(self, name: str, func: Callable[..., Any]):
        self.name = name
        self._func = func

    def __call__(self, *args: Any) -> Any:
        try:
            return self._func(*args)
        except ProgramRuntimeError:
            raise
        except (TypeError, ValueError, ArithmeticError, KeyError, IndexError) as e:
            raise ProgramRuntimeError(f"{self.name}: {e}") from e

    def __repr__(self) -> str:
        return f"NativeFunction({self.name})"


class Namespace:
    """A read-only bag of named members."""

    __slots__ = ("name", "_members")

    def __init__(self, name: str, members: Dict[str, Any]):
        self.name = name
        self._members = {
            key: NativeFunction(f"{name}.{key}", value) if callable(value) and not isinstance(value, (NativeFunction, Namespace)) else value
            for key, value in members.items()
        }

    def has(self, member: str) -> bool:
        return member in self._members

    def get(self, member: str) -> Any:
        if member not in self._members:
            raise ProgramRuntimeError(f"{self.name}.{member} is not available")
        return self._members[member]

    def keys(self) -> Iterable[str]:
        return self._members.keys()

    def __repr__(self) -> str:
        return f"Namespace({self.name})"


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, NativeFunction):
        return "function"
    return "object"


def truthy(value: Any) -> bool:
    """JavaScript truthiness: objects and arrays are always truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if is_number(value):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def to_string(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return join_strings(value, ",")
    if isinstance(value, dict):
        return "[object Object]"
    return f"[{type_name(value)}]"


def to_number(value: Any) -> float:
    """
    JavaScript ``Number()`` conversion.

    Always returns a float so that arithmetic overflows to Infinity
    instead of growing an arbitrary-precision integer.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if is_number(value):
        try:
            return float(value)
        except OverflowError:
            return math.copysign(math.inf, value)
    if isinstance(value, str):
        text = value.strip()
        if text == "":
            return 0.0
        if text in ("Infinity", "+Infinity"):
            return math.inf
        if text == "-Infinity":
            return -math.inf
        if _HEX_RE.fullmatch(text):
            try:
                return float(int(text, 16))
            except OverflowError:
                return math.inf
        if _FLOAT_RE.fullmatch(text):
            return float(text)
        return math.nan
    return math.nan


def check_length(length: int, kind: str) -> None:
    """Refuse strings and arrays longer than MAX_SEQUENCE_LENGTH."""
    if length > MAX_SEQUENCE_LENGTH:
        raise ProgramRuntimeError(f"Invalid {kind} length {length}")


def join_strings(items: list, sep: str) -> str:
    """``Array.join``, checking the length while the pieces are built."""
    pieces = []
    total = 0
    for item in items:
        piece = "" if item is None else to_string(item)
        total += len(piece) + (len(sep) if pieces else 0)
        check_length(total, "string")
        pieces.append(piece)
    return sep.join(pieces)


def numeric_operand(value: Any, op: str) -> float:
    """Coerce an arithmetic operand, refusing null and non-primitive values."""
    if value is None:
        raise ProgramRuntimeError(f"Cannot apply {op!r} to null")
    if isinstance(value, (dict, list, Namespace, NativeFunction)):
        raise ProgramRuntimeError(f"Cannot apply {op!r} to {type_name(value)}")
    return to_number(value)


def _category(value: Any) -> str:
    name = type_name(value)
    return "object" if name in {"array", "function"} else name


def strict_equals(a: Any, b: Any) -> bool:
    if _category(a) != _category(b):
        return False
    if isinstance(a, (dict, list, Namespace, NativeFunction)):
        return a is b
    return a == b


def loose_equals(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is None and b is None
    if _category(a) == _category(b):
        return strict_equals(a, b)
    primitive = (bool, int, float, str)
    if isinstance(a, primitive) and isinstance(b, primitive):
        return to_number(a) == to_number(b)
    return False


def get_index(value: Any, key: Any) -> Optional[Any]:
    """Bracket access, ``value[key]``."""
    if isinstance(value, list):
        if is_number(key) and float(key).is_integer():
            idx = int(key)
            return value[idx] if 0 <= idx < len(value) else None
        return get_member(value, to_string(key))
    if isinstance(value, str):
        if is_number(key) and float(key).is_integer():
            idx = int(key)
            return value[idx] if 0 <= idx < len(value) else None
        return get_member(value, to_string(key))
    return get_member(value, to_string(key))


def get_member(value: Any, name: str) -> Any:
    """Dotted access, ``value.name``."""
    if value is None:
        raise ProgramRuntimeError(f"Cannot read properties of null (reading {name!r})")
    if isinstance(value, dict):
        return value.get(name)
    if isinstance(value, Namespace):
        return value.get(name)
    if isinstance(value, list):
        return _list_member(value, name)
    if isinstance(value, str):
        return _string_member(value, name)
    if is_number(value):
        if name == "toFixed":
            return NativeFunction("toFixed", lambda digits=0: _to_fixed(value, digits))
        return None
    return None


def _to_fixed(value: float, digits: Any) -> str:
    places = to_number(digits)
    if math.isnan(places) or not 0 <= places <= 100:
        raise ValueError("toFixed() digits argument must be between 0 and 100")
    return f"{value:.{int(places)}f}"


def set_member(target: Any, key: Any, value: Any) -> None:
    if isinstance(target, dict):
        target[to_string(key)] = value
        return
    if isinstance(target, list) and is_number(key) and float(key).is_integer():
        idx = int(key)
        # only existing slots or the next free one; no sparse arrays
        if idx < 0 or idx > len(target):
            raise ProgramRuntimeError(f"Invalid array index {idx} for array of length {len(target)}")
        if idx == len(target):
            check_length(idx + 1, "array")
            target.append(value)
        else:
            target[idx] = value
        return
    raise ProgramRuntimeError(f"Cannot set property {to_string(key)!r} on {type_name(target)}")


def _push(items: list, values: tuple) -> int:
    check_length(len(items) + len(values), "array")
    items.extend(values)
    return len(items)


def _concat(items: list, others: tuple) -> list:
    parts = [other if isinstance(other, list) else [other] for other in others]
    check_length(len(items) + sum(len(part) for part in parts), "array")
    return items + [x for part in parts for x in part]


def _list_member(items: list, name: str) -> Any:
    if name == "length":
        return len(items)
    methods: Dict[str, Callable[..., Any]] = {
        "includes": lambda needle: any(strict_equals(item, needle) for item in items),
        "indexOf": lambda needle: next((i for i, item in enumerate(items) if strict_equals(item, needle)), -1),
        "join": lambda sep=",": join_strings(items, to_string(sep)),
        "slice": lambda start=0, end=None: items[int(start):None if end is None else int(end)],
        "concat": lambda *others: _concat(items, others),
        "push": lambda *values: _push(items, values),
    }
    if name in methods:
        return NativeFunction(f"Array.{name}", methods[name])
    return None


def _string_member(text: str, name: str) -> Any:
    if name == "length":
        return len(text)
    methods: Dict[str, Callable[..., Any]] = {
        "includes": lambda needle: to_string(needle) in text,
        "indexOf": lambda needle: text.find(to_string(needle)),
        "startsWith": lambda prefix: text.startswith(to_string(prefix)),
        "endsWith": lambda suffix: text.endswith(to_string(suffix)),
        "toUpperCase": lambda: text.upper(),
        "toLowerCase": lambda: text.lower(),
        "trim": lambda: text.strip(),
        "slice": lambda start=0, end=None: text[int(start):None if end is None else int(end)],
        "split": lambda sep=None: list(text) if sep == "" else text.split(None if sep is None else to_string(sep)),
    }
    if name in methods:
        return NativeFunction(f"String.{name}", methods[name])
    return None
