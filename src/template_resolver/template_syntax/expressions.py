"""
Expression parsing for mustache bodies.

Turns the contents of `{{ ... }}` (without delimiters and sigils) into a path,
positional params, hash pairs and optional block params:

    form-builder title=(component "fancy-title") as |f|

This module is intentionally small and deterministic so it can be tested
independently of the statement parser.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..types import TemplateSyntaxError
from .nodes import BooleanLiteral
from .nodes import Expression
from .nodes import HashPair
from .nodes import NullLiteral
from .nodes import NumberLiteral
from .nodes import PathExpression
from .nodes import SourceLocation
from .nodes import StringLiteral
from .nodes import SubExpression
from .nodes import UndefinedLiteral

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    | (?P<punct>[()=|])
    | (?P<atom>[^\s()=|"']+)
    """,
    re.VERBOSE | re.DOTALL,
)
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?$")
_KEYWORD_LITERALS = {
    "true": lambda loc: BooleanLiteral(True, loc),
    "false": lambda loc: BooleanLiteral(False, loc),
    "null": lambda loc: NullLiteral(loc),
    "undefined": lambda loc: UndefinedLiteral(loc),
}


@dataclass(frozen=True, slots=True)
class CallSyntax:
    """A parsed mustache body."""

    path: Expression
    params: tuple[Expression, ...] = ()
    hash: tuple[HashPair, ...] = ()
    block_params: tuple[str, ...] = ()


def _split_tokens(contents: str, line: int) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    while pos < len(contents):
        match = _TOKEN_RE.match(contents, pos)
        if match is None:
            raise TemplateSyntaxError(
                f"Unterminated string in expression {contents!r}", line
            )
        kind = match.lastgroup or ""
        if kind != "ws":
            tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


def _unquote(token: str) -> str:
    body = token[1:-1]
    return re.sub(r"\\(.)", r"\1", body)


class _ExpressionParser:
    def __init__(self, contents: str, line: int) -> None:
        self.contents = contents
        self.line = line
        self.loc = SourceLocation(line)
        self.tokens = _split_tokens(contents, line)
        self.pos = 0

    def error(self, message: str) -> TemplateSyntaxError:
        return TemplateSyntaxError(f"{message} in {{{{{self.contents}}}}}", self.line)

    def peek(self, offset: int = 0) -> tuple[str, str] | None:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return None

    def take(self) -> tuple[str, str]:
        tok = self.peek()
        if tok is None:
            raise self.error("Unexpected end of expression")
        self.pos += 1
        return tok

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def parse_call(self, *, closing: str | None, allow_block_params: bool) -> CallSyntax:
        path = self.parse_expression()
        params: list[Expression] = []
        pairs: list[HashPair] = []
        block_params: tuple[str, ...] = ()

        while True:
            tok = self.peek()
            if tok is None:
                break
            if closing is not None and tok == ("punct", closing):
                break
            if tok == ("atom", "as") and self.peek(1) == ("punct", "|"):
                if not allow_block_params:
                    raise self.error("Unexpected block params")
                block_params = self.parse_block_params()
                continue
            if block_params:
                raise self.error("Block params must come last")
            nxt = self.peek(1)
            if tok[0] == "atom" and nxt == ("punct", "="):
                key = self.take()[1]
                self.take()
                pairs.append(HashPair(key, self.parse_expression(), self.loc))
                continue
            if pairs:
                raise self.error("Positional param after hash argument")
            params.append(self.parse_expression())

        return CallSyntax(
            path=path,
            params=tuple(params),
            hash=tuple(pairs),
            block_params=block_params,
        )

    def parse_block_params(self) -> tuple[str, ...]:
        self.take()  # as
        self.take()  # |
        names: list[str] = []
        while True:
            kind, value = self.take()
            if (kind, value) == ("punct", "|"):
                break
            if kind != "atom":
                raise self.error("Invalid block param")
            names.append(value)
        if not names:
            raise self.error("Empty block params")
        return tuple(names)

    def parse_expression(self) -> Expression:
        kind, value = self.take()
        if kind == "string":
            return StringLiteral(_unquote(value), self.loc)
        if (kind, value) == ("punct", "("):
            call = self.parse_call(closing=")", allow_block_params=False)
            if self.take() != ("punct", ")"):
                raise self.error("Expected ')'")
            return SubExpression(call.path, call.params, call.hash, self.loc)
        if kind != "atom":
            raise self.error(f"Unexpected {value!r}")
        if _NUMBER_RE.match(value):
            number: int | float = float(value) if "." in value else int(value)
            return NumberLiteral(number, self.loc)
        literal = _KEYWORD_LITERALS.get(value)
        if literal is not None:
            return literal(self.loc)
        return PathExpression(value, self.loc)


def parse_call(
    contents: str,
    *,
    line: int = 0,
    allow_block_params: bool = False,
) -> CallSyntax:
    """
    Parse a mustache body into a `CallSyntax`.

    Raises `TemplateSyntaxError` for malformed bodies.
    """
    parser = _ExpressionParser(contents, line)
    if parser.at_end():
        raise parser.error("Empty mustache")
    call = parser.parse_call(closing=None, allow_block_params=allow_block_params)
    leftover = parser.peek()
    if leftover is not None:
        raise parser.error(f"Unexpected {leftover[1]!r}")
    return call


def parse_expression(contents: str, *, line: int = 0) -> Expression:
    """Parse a single expression (no params)."""
    parser = _ExpressionParser(contents, line)
    expr = parser.parse_expression()
    if not parser.at_end():
        raise parser.error("Expected a single expression")
    return expr
