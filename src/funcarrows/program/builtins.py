"""
Built-in globals available to every connector program.

The set is deliberately small: the ``Math`` namespace, the primitive
conversion functions and ``console.log``, which writes to the
``funcarrows.program.console`` logger.
"""

import logging
import math
import random
from typing import Any, Dict

from funcarrows.program.values import Namespace, NativeFunction, numeric_operand, to_number, to_string, truthy

console_logger = logging.getLogger("funcarrows.program.console")


def _num(value: Any) -> float:
    return numeric_operand(value, "Math")


def _js_round(value: Any) -> float:
    x = _num(value)
    if math.isnan(x) or math.isinf(x):
        return x
    # JavaScript rounds .5 towards +Infinity
    return float(math.floor(x + 0.5))


def _integral(rounder, value: Any) -> float:
    x = _num(value)
    return float(rounder(x)) if math.isfinite(x) else x


def _sign(value: Any) -> float:
    x = _num(value)
    if math.isnan(x) or x == 0:
        return x
    return 1.0 if x > 0 else -1.0


def _minmax(pick, empty: float):
    def inner(*values: Any) -> float:
        numbers = [_num(v) for v in values]
        if not numbers:
            return empty
        if any(math.isnan(n) for n in numbers):
            return math.nan
        return pick(numbers)
    return inner


def _sqrt(value: Any) -> float:
    x = _num(value)
    return math.sqrt(x) if x >= 0 else math.nan


def _pow(base: Any, exponent: Any) -> float:
    try:
        return math.pow(_num(base), _num(exponent))
    except OverflowError:
        return math.inf
    except ValueError:
        return math.nan


def _log(*args: Any) -> None:
    console_logger.info(" ".join(to_string(arg) for arg in args))


MATH = Namespace("Math", {
    "PI": math.pi,
    "E": math.e,
    "abs": lambda x: abs(_num(x)),
    "min": _minmax(min, math.inf),
    "max": _minmax(max, -math.inf),
    "floor": lambda x: _integral(math.floor, x),
    "ceil": lambda x: _integral(math.ceil, x),
    "round": _js_round,
    "trunc": lambda x: _integral(math.trunc, x),
    "sign": _sign,
    "sqrt": _sqrt,
    "pow": _pow,
    "hypot": lambda *xs: math.hypot(*[_num(x) for x in xs]),
    "sin": lambda x: math.sin(_num(x)),
    "cos": lambda x: math.cos(_num(x)),
    "tan": lambda x: math.tan(_num(x)),
    "atan2": lambda y, x: math.atan2(_num(y), _num(x)),
    "random": random.random,
})

CONSOLE = Namespace("console", {
    "log": _log,
})


def builtin_globals() -> Dict[str, Any]:
    """Fresh mapping of the global names every program can read."""
    return {
        "Math": MATH,
        "console": CONSOLE,
        "Number": NativeFunction("Number", to_number),
        "String": NativeFunction("String", to_string),
        "Boolean": NativeFunction("Boolean", truthy),
        "isNaN": NativeFunction("isNaN", lambda x: math.isnan(to_number(x))),
        "Infinity": math.inf,
        "NaN": math.nan,
    }
