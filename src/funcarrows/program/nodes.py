"""
AST node definitions for connector programs.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union


# =============================================================================
# Expressions
# =============================================================================

@dataclass
class Expr:
    pass


@dataclass
class Literal(Expr):
    value: Any


@dataclass
class Name(Expr):
    name: str


@dataclass
class Member(Expr):
    obj: Expr
    name: str
    optional: bool = False


@dataclass
class Index(Expr):
    obj: Expr
    index: Expr
    optional: bool = False


@dataclass
class Call(Expr):
    callee: Expr
    args: List[Expr]


@dataclass
class Unary(Expr):
    op: str
    operand: Expr


@dataclass
class Binary(Expr):
    left: Expr
    op: str
    right: Expr


@dataclass
class Logical(Expr):
    """Short-circuiting ``&&``, ``||`` and ``??``."""
    left: Expr
    op: str
    right: Expr


@dataclass
class Conditional(Expr):
    test: Expr
    then: Expr
    otherwise: Expr


@dataclass
class Spread:
    expr: Expr


@dataclass
class ObjectLiteral(Expr):
    # (key, value) pairs or Spread entries, in source order
    entries: List[Union[Tuple[str, Expr], Spread]] = field(default_factory=list)


@dataclass
class ArrayLiteral(Expr):
    items: List[Expr] = field(default_factory=list)


@dataclass
class Assign(Expr):
    """Assignment to a name, member or index target (``=``, ``+=``, ...)."""
    target: Expr
    op: str
    value: Expr


@dataclass
class Update(Expr):
    """Postfix or prefix ``++`` / ``--``."""
    target: Expr
    op: str
    prefix: bool = False


# =============================================================================
# Statements
# =============================================================================

@dataclass
class Stmt:
    pass


@dataclass
class Declare(Stmt):
    kind: str  # const, let, var
    name: str
    value: Optional[Expr]


@dataclass
class ExprStmt(Stmt):
    expr: Expr


@dataclass
class Block(Stmt):
    body: List[Stmt] = field(default_factory=list)


@dataclass
class If(Stmt):
    test: Expr
    then: Stmt
    otherwise: Optional[Stmt] = None


@dataclass
class While(Stmt):
    test: Expr
    body: Stmt


@dataclass
class For(Stmt):
    init: Optional[Stmt]
    test: Optional[Expr]
    update: Optional[Expr]
    body: Stmt


@dataclass
class Return(Stmt):
    value: Optional[Expr]


@dataclass
class Empty(Stmt):
    pass
