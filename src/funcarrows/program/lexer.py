"""
Lexer for connector programs.

Splits program text into tokens with a single verbose regex. The token set
is the JavaScript-flavoured subset that connector programs are written in:
numbers, quoted strings, identifiers, a handful of keywords and operators.
"""

import re
from dataclasses import dataclass
from typing import List

from funcarrows.program.errors import ProgramSyntaxError


@dataclass(frozen=True)
class Token:
    """A lexical token with its source position."""
    kind: str  # NUMBER, STRING, ID, KW, OP, EOF
    value: str
    line: int
    col: int


KEYWORDS = {
    "const",
    "let",
    "var",
    "if",
    "else",
    "while",
    "for",
    "return",
    "true",
    "false",
    "null",
    "undefined",
}


TOKEN_RE = re.compile(
    r"""
    (?P<COMMENT>//[^\n]*|/\*.*?\*/)
  | (?P<NUMBER>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
  | (?P<STRING>"(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*')
  | (?P<OP>\.\.\.|===|!==|\*\*|==|!=|<=|>=|&&|\|\||\?\?|\?\.(?!\d)|\+\+|--|\+=|-=|\*=|/=|%=
        |[+\-*/%<>=!?:,;.(){}\[\]])
  | (?P<ID>[A-Za-z_$][A-Za-z0-9_$]*)
  | (?P<NEWLINE>\n)
  | (?P<SKIP>[ \t\r]+)
  | (?P<MISMATCH>.)
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}


def unescape_string(literal: str) -> str:
    """Strip the quotes from a string literal and resolve escapes."""
    body = literal[1:-1]
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


def tokenize(source: str) -> List[Token]:
    """
    Tokenize program text.

    Args:
        source: Program text (without its trigger prefix)

    Returns:
        Token list terminated by an EOF token

    Raises:
        ProgramSyntaxError: On a character no token can start with
    """
    line = 1
    col = 1
    pos = 0
    tokens: List[Token] = []
    while pos < len(source):
        m = TOKEN_RE.match(source, pos)
        if not m:
            raise ProgramSyntaxError("Tokenizer stalled", line, col)
        kind = m.lastgroup or "MISMATCH"
        value = m.group(0)
        if kind == "MISMATCH":
            raise ProgramSyntaxError(f"Unexpected character {value!r}", line, col)
        if kind == "ID" and value in KEYWORDS:
            tokens.append(Token("KW", value, line, col))
        elif kind not in {"SKIP", "COMMENT", "NEWLINE"}:
            tokens.append(Token(kind, value, line, col))

        newlines = value.count("\n")
        if newlines:
            line += newlines
            col = len(value) - value.rfind("\n")
        else:
            col += len(value)
        pos = m.end()
    tokens.append(Token("EOF", "", line, col))
    return tokens
