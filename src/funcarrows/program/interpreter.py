"""
Tree-walking interpreter for connector programs.

Evaluates the AST produced by the parser against a scope chain seeded with
the built-in globals and the per-run parameters. No host-language code is
ever executed: names resolve only to values placed in the scope, and calls
only reach NativeFunction wrappers.
"""

import math
from typing import Any, Dict, Optional

from funcarrows.program.errors import ProgramRuntimeError
from funcarrows.program.nodes import (
    ArrayLiteral,
    Assign,
    Binary,
    Block,
    Call,
    Conditional,
    Declare,
    Empty,
    Expr,
    ExprStmt,
    For,
    If,
    Index,
    Literal,
    Logical,
    Member,
    Name,
    ObjectLiteral,
    Return,
    Spread,
    Stmt,
    Unary,
    Update,
    While,
)
from funcarrows.program.values import (
    NativeFunction,
    check_length,
    get_index,
    get_member,
    is_number,
    loose_equals,
    numeric_operand,
    set_member,
    strict_equals,
    to_string,
    truthy,
    type_name,
)


class _ReturnSignal(Exception):
    def __init__(self, value: Any = None):
        super().__init__()
        self.value = value


class Scope:
    """One level of the lexical scope chain."""

    __slots__ = ("parent", "values", "constants")

    def __init__(self, parent: Optional["Scope"] = None, values: Optional[Dict[str, Any]] = None):
        self.parent = parent
        self.values: Dict[str, Any] = dict(values or {})
        self.constants: set = set()

    def declare(self, kind: str, name: str, value: Any) -> None:
        if name in self.values and (kind != "var" or name in self.constants):
            raise ProgramRuntimeError(f"Identifier {name!r} has already been declared")
        self.values[name] = value
        if kind == "const":
            self.constants.add(name)

    def lookup(self, name: str) -> "Scope":
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope.values:
                return scope
            scope = scope.parent
        raise ProgramRuntimeError(f"{name} is not defined")

    def get(self, name: str) -> Any:
        return self.lookup(name).values[name]

    def assign(self, name: str, value: Any) -> None:
        scope = self.lookup(name)
        if name in scope.constants:
            raise ProgramRuntimeError(f"Assignment to constant variable {name!r}")
        scope.values[name] = value


def _divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1, b)
    return a / b


def _modulo(a: float, b: float) -> float:
    if b == 0 or math.isinf(a) or math.isnan(a) or math.isnan(b):
        return math.nan
    if math.isinf(b):
        return a
    return math.fmod(a, b)


def _power(a: float, b: float) -> float:
    if math.isinf(b) and abs(a) == 1:
        return math.nan
    try:
        result = a ** b
    except ZeroDivisionError:
        return math.inf
    except OverflowError:
        odd = b.is_integer() and b % 2 == 1
        return -math.inf if a < 0 and odd else math.inf
    if isinstance(result, complex):
        return math.nan
    return result


def _compare(op: str, a: Any, b: Any) -> bool:
    if isinstance(a, str) and isinstance(b, str):
        left, right = a, b
    else:
        left, right = numeric_operand(a, op), numeric_operand(b, op)
    if op == "<":
        return left < right
    if op == ">":
        return left > right
    if op == "<=":
        return left <= right
    return left >= right


def binary_op(op: str, a: Any, b: Any) -> Any:
    """Apply a non-short-circuit binary operator."""
    if op == "+":
        if isinstance(a, str) or isinstance(b, str):
            left, right = to_string(a), to_string(b)
            check_length(len(left) + len(right), "string")
            return left + right
        return numeric_operand(a, op) + numeric_operand(b, op)
    if op == "===":
        return strict_equals(a, b)
    if op == "!==":
        return not strict_equals(a, b)
    if op == "==":
        return loose_equals(a, b)
    if op == "!=":
        return not loose_equals(a, b)
    if op in {"<", ">", "<=", ">="}:
        return _compare(op, a, b)

    left = numeric_operand(a, op)
    right = numeric_operand(b, op)
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if op == "/":
        return _divide(left, right)
    if op == "%":
        return _modulo(left, right)
    if op == "**":
        return _power(left, right)
    raise ProgramRuntimeError(f"Unknown operator {op!r}")


class Interpreter:
    """
    Executes one program body.

    A fresh interpreter is created per run so that no state leaks between
    executions of the same compiled program.
    """

    def __init__(self, globals_: Dict[str, Any], max_steps: int = 10000):
        self._global_scope = Scope(values=globals_)
        self._max_steps = max_steps
        self._steps = 0

    @property
    def steps(self) -> int:
        return self._steps

    def run(self, body: Block) -> Any:
        """
        Execute a body and return its return value (None if it has none).

        Raises:
            ProgramRuntimeError: On any runtime failure or when the step
                budget is exhausted
        """
        try:
            self._exec_block(body, Scope(self._global_scope))
        except _ReturnSignal as signal:
            return signal.value
        except RecursionError as e:
            raise ProgramRuntimeError("Program nested too deeply") from e
        return None

    def _tick(self) -> None:
        self._steps += 1
        if self._steps > self._max_steps:
            raise ProgramRuntimeError(f"Step budget of {self._max_steps} exceeded")

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def _exec(self, stmt: Stmt, scope: Scope) -> None:
        self._tick()
        if isinstance(stmt, ExprStmt):
            self._eval(stmt.expr, scope)
        elif isinstance(stmt, Declare):
            value = None if stmt.value is None else self._eval(stmt.value, scope)
            scope.declare(stmt.kind, stmt.name, value)
        elif isinstance(stmt, Return):
            raise _ReturnSignal(None if stmt.value is None else self._eval(stmt.value, scope))
        elif isinstance(stmt, Block):
            self._exec_block(stmt, Scope(scope))
        elif isinstance(stmt, If):
            if truthy(self._eval(stmt.test, scope)):
                self._exec(stmt.then, scope)
            elif stmt.otherwise is not None:
                self._exec(stmt.otherwise, scope)
        elif isinstance(stmt, While):
            while truthy(self._eval(stmt.test, scope)):
                self._exec(stmt.body, scope)
                self._tick()
        elif isinstance(stmt, For):
            loop_scope = Scope(scope)
            if stmt.init is not None:
                self._exec(stmt.init, loop_scope)
            while stmt.test is None or truthy(self._eval(stmt.test, loop_scope)):
                self._exec(stmt.body, loop_scope)
                if stmt.update is not None:
                    self._eval(stmt.update, loop_scope)
                self._tick()
        elif isinstance(stmt, Empty):
            pass
        else:
            raise ProgramRuntimeError(f"Unsupported statement {type(stmt).__name__}")

    def _exec_block(self, block: Block, scope: Scope) -> None:
        for stmt in block.body:
            self._exec(stmt, scope)

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def _eval(self, expr: Expr, scope: Scope) -> Any:
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Name):
            return scope.get(expr.name)
        if isinstance(expr, Member):
            obj = self._eval(expr.obj, scope)
            if obj is None and expr.optional:
                return None
            return get_member(obj, expr.name)
        if isinstance(expr, Index):
            obj = self._eval(expr.obj, scope)
            if obj is None and expr.optional:
                return None
            if obj is None:
                raise ProgramRuntimeError("Cannot read properties of null")
            return get_index(obj, self._eval(expr.index, scope))
        if isinstance(expr, Call):
            return self._eval_call(expr, scope)
        if isinstance(expr, Unary):
            return self._eval_unary(expr, scope)
        if isinstance(expr, Binary):
            return binary_op(expr.op, self._eval(expr.left, scope), self._eval(expr.right, scope))
        if isinstance(expr, Logical):
            left = self._eval(expr.left, scope)
            if expr.op == "&&":
                return self._eval(expr.right, scope) if truthy(left) else left
            if expr.op == "||":
                return left if truthy(left) else self._eval(expr.right, scope)
            return self._eval(expr.right, scope) if left is None else left
        if isinstance(expr, Conditional):
            branch = expr.then if truthy(self._eval(expr.test, scope)) else expr.otherwise
            return self._eval(branch, scope)
        if isinstance(expr, ObjectLiteral):
            return self._eval_object(expr, scope)
        if isinstance(expr, ArrayLiteral):
            return [self._eval(item, scope) for item in expr.items]
        if isinstance(expr, Assign):
            return self._eval_assign(expr, scope)
        if isinstance(expr, Update):
            return self._eval_update(expr, scope)
        raise ProgramRuntimeError(f"Unsupported expression {type(expr).__name__}")

    def _eval_call(self, expr: Call, scope: Scope) -> Any:
        self._tick()
        callee = self._eval(expr.callee, scope)
        if not isinstance(callee, NativeFunction):
            raise ProgramRuntimeError(f"{_describe(expr.callee)} is not a function")
        args = [self._eval(arg, scope) for arg in expr.args]
        return callee(*args)

    def _eval_unary(self, expr: Unary, scope: Scope) -> Any:
        value = self._eval(expr.operand, scope)
        if expr.op == "!":
            return not truthy(value)
        number = numeric_operand(value, expr.op)
        return -number if expr.op == "-" else number

    def _eval_object(self, expr: ObjectLiteral, scope: Scope) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for entry in expr.entries:
            if isinstance(entry, Spread):
                value = self._eval(entry.expr, scope)
                if isinstance(value, dict):
                    result.update(value)
                elif value is not None and not is_number(value) and not isinstance(value, bool):
                    raise ProgramRuntimeError(f"Cannot spread {type_name(value)} into an object")
            else:
                key, value_expr = entry
                result[key] = self._eval(value_expr, scope)
        return result

    def _read_target(self, target: Expr, scope: Scope) -> Any:
        return self._eval(target, scope)

    def _write_target(self, target: Expr, value: Any, scope: Scope) -> None:
        if isinstance(target, Name):
            scope.assign(target.name, value)
        elif isinstance(target, Member):
            set_member(self._eval(target.obj, scope), target.name, value)
        elif isinstance(target, Index):
            set_member(self._eval(target.obj, scope), self._eval(target.index, scope), value)
        else:
            raise ProgramRuntimeError("Invalid assignment target")

    def _eval_assign(self, expr: Assign, scope: Scope) -> Any:
        if expr.op == "=":
            value = self._eval(expr.value, scope)
        else:
            current = self._read_target(expr.target, scope)
            value = binary_op(expr.op[:-1], current, self._eval(expr.value, scope))
        self._write_target(expr.target, value, scope)
        return value

    def _eval_update(self, expr: Update, scope: Scope) -> Any:
        old = numeric_operand(self._read_target(expr.target, scope), expr.op)
        new = old + 1 if expr.op == "++" else old - 1
        self._write_target(expr.target, new, scope)
        return new if expr.prefix else old


def _describe(expr: Expr) -> str:
    if isinstance(expr, Name):
        return expr.name
    if isinstance(expr, Member):
        return f"{_describe(expr.obj)}.{expr.name}"
    return "expression"
