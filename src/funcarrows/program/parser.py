"""
Recursive-descent parser for connector programs.

Two entry points match the two accepted program grammars:

- ``parse_shorthand``: a single property-mapping literal, ``{ key: expr, ... }``.
  It is lowered to a body that returns the mapping.
- ``parse_expanded``: ``() { statements }``, a function body whose optional
  return value is the patch.
"""

from typing import List, Optional, Sequence, Set

from funcarrows.program.errors import ProgramSyntaxError
from funcarrows.program.lexer import Token, tokenize, unescape_string
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

ASSIGN_OPS = {"=", "+=", "-=", "*=", "/=", "%="}
EQUALITY_OPS = {"==", "!=", "===", "!=="}
RELATIONAL_OPS = {"<", ">", "<=", ">="}
ADDITIVE_OPS = {"+", "-"}
MULTIPLICATIVE_OPS = {"*", "/", "%"}
UNARY_OPS = {"!", "-", "+"}


class Parser:
    """Parser over a token list produced by ``tokenize``."""

    def __init__(self, tokens: Sequence[Token]):
        self.tokens = list(tokens)
        self.pos = 0

    # -------------------------------------------------------------------------
    # Token helpers
    # -------------------------------------------------------------------------

    def cur(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int = 1) -> Token:
        idx = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    def at(self, kind: str, value: Optional[str] = None) -> bool:
        t = self.cur()
        return t.kind == kind and (value is None or t.value == value)

    def at_op(self, values: Set[str]) -> bool:
        t = self.cur()
        return t.kind == "OP" and t.value in values

    def match(self, kind: str, value: Optional[str] = None) -> Optional[Token]:
        if self.at(kind, value):
            t = self.cur()
            self.pos += 1
            return t
        return None

    def expect(self, kind: str, value: Optional[str] = None) -> Token:
        t = self.cur()
        if not self.at(kind, value):
            wanted = value or kind
            found = t.value or t.kind
            raise ProgramSyntaxError(f"Expected {wanted!r} but found {found!r}", t.line, t.col)
        self.pos += 1
        return t

    def expect_eof(self) -> None:
        t = self.cur()
        if t.kind != "EOF":
            raise ProgramSyntaxError(f"Unexpected {t.value!r} after end of program", t.line, t.col)

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def parse_block(self) -> Block:
        self.expect("OP", "{")
        body: List[Stmt] = []
        while not self.match("OP", "}"):
            if self.at("EOF"):
                t = self.cur()
                raise ProgramSyntaxError("Unterminated block, expected '}'", t.line, t.col)
            body.append(self.parse_stmt())
        return Block(body)

    def _end_stmt(self) -> None:
        # Semicolons are optional
        self.match("OP", ";")

    def parse_stmt(self) -> Stmt:
        if self.at("OP", "{"):
            return self.parse_block()

        if self.match("OP", ";"):
            return Empty()

        if self.at("KW") and self.cur().value in {"const", "let", "var"}:
            stmt = self.parse_declaration()
            self._end_stmt()
            return stmt

        if self.match("KW", "if"):
            self.expect("OP", "(")
            test = self.parse_expr()
            self.expect("OP", ")")
            then = self.parse_stmt()
            otherwise = None
            if self.match("KW", "else"):
                otherwise = self.parse_stmt()
            return If(test, then, otherwise)

        if self.match("KW", "while"):
            self.expect("OP", "(")
            test = self.parse_expr()
            self.expect("OP", ")")
            return While(test, self.parse_stmt())

        if self.match("KW", "for"):
            return self.parse_for()

        if self.match("KW", "return"):
            value = None
            if not (self.at("OP", ";") or self.at("OP", "}") or self.at("EOF")):
                value = self.parse_expr()
            self._end_stmt()
            return Return(value)

        expr = self.parse_expr()
        self._end_stmt()
        return ExprStmt(expr)

    def parse_declaration(self) -> Stmt:
        kind = self.expect("KW").value
        decls: List[Stmt] = []
        while True:
            name = self.expect("ID").value
            value = None
            if self.match("OP", "="):
                value = self.parse_assignment()
            elif kind == "const":
                t = self.cur()
                raise ProgramSyntaxError(f"Missing initializer in const declaration {name!r}", t.line, t.col)
            decls.append(Declare(kind, name, value))
            if not self.match("OP", ","):
                break
        if len(decls) == 1:
            return decls[0]
        return Block(decls)

    def parse_for(self) -> Stmt:
        self.expect("OP", "(")
        init: Optional[Stmt] = None
        if not self.at("OP", ";"):
            if self.at("KW") and self.cur().value in {"const", "let", "var"}:
                init = self.parse_declaration()
            else:
                init = ExprStmt(self.parse_expr())
        self.expect("OP", ";")
        test = None if self.at("OP", ";") else self.parse_expr()
        self.expect("OP", ";")
        update = None if self.at("OP", ")") else self.parse_expr()
        self.expect("OP", ")")
        return For(init, test, update, self.parse_stmt())

    # -------------------------------------------------------------------------
    # Expressions, lowest precedence first
    # -------------------------------------------------------------------------

    def parse_expr(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        target = self.parse_conditional()
        if self.at_op(ASSIGN_OPS):
            t = self.cur()
            if not isinstance(target, (Name, Member, Index)):
                raise ProgramSyntaxError("Invalid assignment target", t.line, t.col)
            op = self.expect("OP").value
            return Assign(target, op, self.parse_assignment())
        return target

    def parse_conditional(self) -> Expr:
        test = self.parse_nullish()
        if self.match("OP", "?"):
            then = self.parse_assignment()
            self.expect("OP", ":")
            otherwise = self.parse_assignment()
            return Conditional(test, then, otherwise)
        return test

    def parse_nullish(self) -> Expr:
        expr = self.parse_or()
        while self.match("OP", "??"):
            expr = Logical(expr, "??", self.parse_or())
        return expr

    def parse_or(self) -> Expr:
        expr = self.parse_and()
        while self.match("OP", "||"):
            expr = Logical(expr, "||", self.parse_and())
        return expr

    def parse_and(self) -> Expr:
        expr = self.parse_equality()
        while self.match("OP", "&&"):
            expr = Logical(expr, "&&", self.parse_equality())
        return expr

    def parse_equality(self) -> Expr:
        expr = self.parse_relational()
        while self.at_op(EQUALITY_OPS):
            op = self.expect("OP").value
            expr = Binary(expr, op, self.parse_relational())
        return expr

    def parse_relational(self) -> Expr:
        expr = self.parse_additive()
        while self.at_op(RELATIONAL_OPS):
            op = self.expect("OP").value
            expr = Binary(expr, op, self.parse_additive())
        return expr

    def parse_additive(self) -> Expr:
        expr = self.parse_multiplicative()
        while self.at_op(ADDITIVE_OPS):
            op = self.expect("OP").value
            expr = Binary(expr, op, self.parse_multiplicative())
        return expr

    def parse_multiplicative(self) -> Expr:
        expr = self.parse_exponent()
        while self.at_op(MULTIPLICATIVE_OPS):
            op = self.expect("OP").value
            expr = Binary(expr, op, self.parse_exponent())
        return expr

    def parse_exponent(self) -> Expr:
        base = self.parse_unary()
        if self.match("OP", "**"):
            # right associative
            return Binary(base, "**", self.parse_exponent())
        return base

    def parse_unary(self) -> Expr:
        if self.at_op(UNARY_OPS):
            op = self.expect("OP").value
            return Unary(op, self.parse_unary())
        if self.at_op({"++", "--"}):
            t = self.expect("OP")
            target = self.parse_unary()
            if not isinstance(target, (Name, Member, Index)):
                raise ProgramSyntaxError(f"Invalid operand for {t.value}", t.line, t.col)
            return Update(target, t.value, prefix=True)
        return self.parse_postfix()

    def parse_postfix(self) -> Expr:
        expr = self.parse_call()
        if self.at_op({"++", "--"}):
            t = self.cur()
            if not isinstance(expr, (Name, Member, Index)):
                raise ProgramSyntaxError(f"Invalid operand for {t.value}", t.line, t.col)
            self.pos += 1
            return Update(expr, t.value, prefix=False)
        return expr

    def parse_call(self) -> Expr:
        expr = self.parse_primary()
        while True:
            if self.match("OP", "."):
                expr = Member(expr, self._member_name())
            elif self.match("OP", "?."):
                if self.match("OP", "["):
                    index = self.parse_expr()
                    self.expect("OP", "]")
                    expr = Index(expr, index, optional=True)
                else:
                    expr = Member(expr, self._member_name(), optional=True)
            elif self.match("OP", "["):
                index = self.parse_expr()
                self.expect("OP", "]")
                expr = Index(expr, index)
            elif self.match("OP", "("):
                expr = Call(expr, self._arguments())
            else:
                return expr

    def _member_name(self) -> str:
        t = self.cur()
        if t.kind in {"ID", "KW"}:
            self.pos += 1
            return t.value
        raise ProgramSyntaxError(f"Expected property name but found {t.value!r}", t.line, t.col)

    def _arguments(self) -> List[Expr]:
        args: List[Expr] = []
        if self.match("OP", ")"):
            return args
        while True:
            args.append(self.parse_assignment())
            if self.match("OP", ")"):
                return args
            self.expect("OP", ",")
            # trailing comma
            if self.match("OP", ")"):
                return args

    def parse_primary(self) -> Expr:
        t = self.cur()
        if self.match("NUMBER"):
            return Literal(float(t.value))
        if self.match("STRING"):
            return Literal(unescape_string(t.value))
        if self.match("KW", "true"):
            return Literal(True)
        if self.match("KW", "false"):
            return Literal(False)
        if self.match("KW", "null") or self.match("KW", "undefined"):
            return Literal(None)
        if self.match("ID"):
            return Name(t.value)
        if self.match("OP", "("):
            expr = self.parse_expr()
            self.expect("OP", ")")
            return expr
        if self.at("OP", "{"):
            return self.parse_object()
        if self.match("OP", "["):
            items: List[Expr] = []
            while not self.match("OP", "]"):
                items.append(self.parse_assignment())
                if not self.at("OP", "]"):
                    self.expect("OP", ",")
            return ArrayLiteral(items)
        found = t.value or t.kind
        raise ProgramSyntaxError(f"Unexpected token {found!r} in expression", t.line, t.col)

    def parse_object(self) -> ObjectLiteral:
        self.expect("OP", "{")
        obj = ObjectLiteral()
        while not self.match("OP", "}"):
            t = self.cur()
            if self.match("OP", "..."):
                obj.entries.append(Spread(self.parse_assignment()))
            elif t.kind in {"ID", "KW", "STRING", "NUMBER"}:
                self.pos += 1
                if t.kind == "STRING":
                    key = unescape_string(t.value)
                elif t.kind == "NUMBER":
                    key = t.value if t.value.isdigit() else str(float(t.value))
                else:
                    key = t.value
                if self.match("OP", ":"):
                    obj.entries.append((key, self.parse_assignment()))
                elif t.kind == "ID":
                    # shorthand property, {x} means {x: x}
                    obj.entries.append((key, Name(key)))
                else:
                    raise ProgramSyntaxError(f"Expected ':' after key {key!r}", t.line, t.col)
            else:
                found = t.value or t.kind
                raise ProgramSyntaxError(f"Unexpected token {found!r} in object literal", t.line, t.col)
            if not self.at("OP", "}"):
                self.expect("OP", ",")
        return obj


def parse_shorthand(source: str) -> Block:
    """
    Parse a shorthand program: a single mapping literal.

    Returns:
        A body that returns the mapping
    """
    parser = Parser(tokenize(source))
    mapping = parser.parse_object()
    parser.match("OP", ";")
    parser.expect_eof()
    return Block([Return(mapping)])


def parse_expanded(source: str) -> Block:
    """
    Parse an expanded program: ``() { statements }``.

    Returns:
        The function body
    """
    parser = Parser(tokenize(source))
    parser.expect("OP", "(")
    parser.expect("OP", ")")
    body = parser.parse_block()
    parser.expect_eof()
    return body
