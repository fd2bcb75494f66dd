"""
Syntax tree for the Handlebars/Glimmer template subset we analyze.

Node names follow the upstream template compiler's AST so that trees produced
elsewhere map onto these classes one to one. Nodes are immutable; the walker
never rewrites the tree.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True, slots=True)
class SourceLocation:
    line: int
    column: int = 0

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PathExpression:
    """
    A (possibly dotted) reference: `foo`, `foo.bar`, `this.foo`, `@foo`.
    """

    original: str
    loc: SourceLocation | None = None

    @property
    def parts(self) -> list[str]:
        return self.original.split(".")

    @property
    def head(self) -> str:
        return self.parts[0]

    @property
    def is_this(self) -> bool:
        return self.head == "this"

    @property
    def is_data(self) -> bool:
        return self.original.startswith("@")

    @property
    def is_dotted(self) -> bool:
        return "." in self.original


@dataclass(frozen=True, slots=True)
class StringLiteral:
    value: str
    loc: SourceLocation | None = None


@dataclass(frozen=True, slots=True)
class NumberLiteral:
    value: int | float
    loc: SourceLocation | None = None


@dataclass(frozen=True, slots=True)
class BooleanLiteral:
    value: bool
    loc: SourceLocation | None = None


@dataclass(frozen=True, slots=True)
class NullLiteral:
    loc: SourceLocation | None = None


@dataclass(frozen=True, slots=True)
class UndefinedLiteral:
    loc: SourceLocation | None = None


@dataclass(frozen=True, slots=True)
class HashPair:
    key: str
    value: Expression
    loc: SourceLocation | None = None


@dataclass(frozen=True, slots=True)
class SubExpression:
    """`(path param1 key=value)`"""

    path: Expression
    params: tuple[Expression, ...] = ()
    hash: tuple[HashPair, ...] = ()
    loc: SourceLocation | None = None


LiteralNode = Union[StringLiteral, NumberLiteral, BooleanLiteral, NullLiteral, UndefinedLiteral]
Expression = Union[PathExpression, SubExpression, LiteralNode]


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TextNode:
    chars: str
    loc: SourceLocation | None = None


@dataclass(frozen=True, slots=True)
class CommentStatement:
    """`{{! ... }}`, `{{!-- ... --}}` or `<!-- ... -->` (when `html` is set)."""

    value: str
    html: bool = False
    loc: SourceLocation | None = None


@dataclass(frozen=True, slots=True)
class MustacheStatement:
    path: Expression
    params: tuple[Expression, ...] = ()
    hash: tuple[HashPair, ...] = ()
    trusting: bool = False
    loc: SourceLocation | None = None


@dataclass(frozen=True, slots=True)
class Block:
    """The body of a block statement or element, with its block parameters."""

    body: tuple[Statement, ...] = ()
    block_params: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class BlockStatement:
    path: Expression
    params: tuple[Expression, ...] = ()
    hash: tuple[HashPair, ...] = ()
    program: Block = Block()
    inverse: Block | None = None
    loc: SourceLocation | None = None


@dataclass(frozen=True, slots=True)
class ConcatStatement:
    """A quoted attribute value mixing text and mustaches: `class="a {{b}}"`."""

    parts: tuple[TextNode | MustacheStatement, ...]
    loc: SourceLocation | None = None


AttrValue = Union[TextNode, MustacheStatement, ConcatStatement]


@dataclass(frozen=True, slots=True)
class AttrNode:
    name: str
    value: AttrValue
    loc: SourceLocation | None = None

    @property
    def is_argument(self) -> bool:
        return self.name.startswith("@")


@dataclass(frozen=True, slots=True)
class ElementModifierStatement:
    """`<div {{on "click" this.go}}>`"""

    path: Expression
    params: tuple[Expression, ...] = ()
    hash: tuple[HashPair, ...] = ()
    loc: SourceLocation | None = None


@dataclass(frozen=True, slots=True)
class ElementNode:
    tag: str
    attributes: tuple[AttrNode, ...] = ()
    modifiers: tuple[ElementModifierStatement, ...] = ()
    children: tuple[Statement, ...] = ()
    block_params: tuple[str, ...] = ()
    self_closing: bool = False
    loc: SourceLocation | None = None


Statement = Union[
    TextNode,
    CommentStatement,
    MustacheStatement,
    BlockStatement,
    ElementNode,
]


@dataclass(frozen=True, slots=True)
class Template:
    body: tuple[Statement, ...] = ()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def print_expression(node: object) -> str:
    """
    Render an expression (or attribute value) back to template source.

    Used for warning messages, so it favors readability over round-tripping
    exact whitespace.
    """
    if isinstance(node, PathExpression):
        return node.original
    if isinstance(node, StringLiteral):
        escaped = node.value.replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(node, NumberLiteral):
        return str(node.value)
    if isinstance(node, BooleanLiteral):
        return "true" if node.value else "false"
    if isinstance(node, NullLiteral):
        return "null"
    if isinstance(node, UndefinedLiteral):
        return "undefined"
    if isinstance(node, SubExpression):
        return f"({_print_call(node.path, node.params, node.hash)})"
    if isinstance(node, MustacheStatement):
        return "{{" + _print_call(node.path, node.params, node.hash) + "}}"
    if isinstance(node, TextNode):
        return node.chars
    if isinstance(node, ConcatStatement):
        return "".join(print_expression(part) for part in node.parts)
    return type(node).__name__


def _print_call(
    path: Expression, params: tuple[Expression, ...], pairs: tuple[HashPair, ...]
) -> str:
    bits = [print_expression(path)]
    bits.extend(print_expression(p) for p in params)
    bits.extend(f"{pair.key}={print_expression(pair.value)}" for pair in pairs)
    return " ".join(bits)
