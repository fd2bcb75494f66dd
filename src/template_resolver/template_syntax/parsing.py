"""
Template parsing.

Builds a `Template` tree from the canonical token stream
(`tokenize_template`). The grammar covers what dependency resolution needs:

- mustaches, triple-staches and comments
- blocks with block params and `{{else}}` / `{{else if ...}}` chains
- HTML/angle-bracket elements with attributes, `@arguments`, modifiers,
  block params and children
- HTML comments

It is not a full HTML parser: anything that is not a tag is kept as text.
"""

from __future__ import annotations

import re
from typing import Literal

from ..overrides import VOID_ELEMENTS
from ..types import TemplateSyntaxError
from .expressions import parse_call
from .nodes import AttrNode
from .nodes import AttrValue
from .nodes import Block
from .nodes import BlockStatement
from .nodes import CommentStatement
from .nodes import ConcatStatement
from .nodes import ElementModifierStatement
from .nodes import ElementNode
from .nodes import MustacheStatement
from .nodes import SourceLocation
from .nodes import Statement
from .nodes import Template
from .nodes import TextNode
from .nodes import print_expression
from .tokenization import TemplateToken
from .tokenization import tokenize_template

_TAG_NAME_RE = re.compile(r"<([^\s/>]+)")
_ATTR_NAME_RE = re.compile(r"[^\s=/>]+")
_UNQUOTED_VALUE_RE = re.compile(r"(?:[^\s/>]|/(?!>))+")
_ELEMENT_BLOCK_PARAMS_RE = re.compile(r"as\s*\|([^|]*)\|")

# (kind, name-or-contents, line)
_Terminator = tuple[Literal["close_block", "else", "close_element"], str, int]


class _Cursor:
    """Position in the token stream, with a character offset inside text tokens."""

    def __init__(self, tokens: list[TemplateToken]) -> None:
        self.tokens = tokens
        self.index = 0
        self.offset = 0

    def at_end(self) -> bool:
        return self.index >= len(self.tokens)

    def current(self) -> TemplateToken:
        return self.tokens[self.index]

    def in_mustache(self) -> bool:
        return not self.at_end() and self.current().kind == "mustache"

    def text_rest(self) -> str:
        tok = self.current()
        return tok.raw[self.offset :]

    def line(self) -> int:
        if self.at_end():
            return self.tokens[-1].line if self.tokens else 1
        tok = self.current()
        return tok.line + tok.raw.count("\n", 0, self.offset)

    def loc(self) -> SourceLocation:
        return SourceLocation(self.line())

    def advance(self, n: int) -> None:
        self.offset += n
        if self.offset >= len(self.current().raw):
            self.next()

    def next(self) -> None:
        self.index += 1
        self.offset = 0


class _TemplateParser:
    def __init__(self, tokens: list[TemplateToken]) -> None:
        self.cursor = _Cursor(tokens)

    # -- statements -------------------------------------------------------

    def parse_statements(self) -> tuple[list[Statement], _Terminator | None]:
        body: list[Statement] = []
        cursor = self.cursor
        while not cursor.at_end():
            tok = cursor.current()
            if tok.kind == "mustache":
                contents = tok.contents
                if tok.is_comment:
                    body.append(
                        CommentStatement(contents[1:].strip(), loc=SourceLocation(tok.line))
                    )
                    cursor.next()
                elif contents.startswith("#"):
                    body.append(self.parse_block(tok))
                elif contents.startswith("/"):
                    cursor.next()
                    return body, ("close_block", contents[1:].strip(), tok.line)
                elif contents in ("else", "^") or contents.startswith("else "):
                    cursor.next()
                    return body, ("else", contents, tok.line)
                else:
                    cursor.next()
                    body.append(self.mustache_statement(tok))
                continue

            text = cursor.text_rest()
            lt = text.find("<")
            if lt < 0:
                body.append(TextNode(text, cursor.loc()))
                cursor.next()
                continue
            if lt > 0:
                body.append(TextNode(text[:lt], cursor.loc()))
                cursor.advance(lt)
                continue
            if text.startswith("<!--"):
                body.append(self.parse_html_comment())
            elif text.startswith("</"):
                line = cursor.line()
                gt = text.find(">")
                if gt < 0:
                    raise TemplateSyntaxError("Unclosed end tag", line)
                cursor.advance(gt + 1)
                return body, ("close_element", text[2:gt].strip(), line)
            elif len(text) > 1 and (text[1].isalpha() or text[1] in "@:"):
                body.append(self.parse_element())
            else:
                body.append(TextNode("<", cursor.loc()))
                cursor.advance(1)
        return body, None

    def mustache_statement(self, tok: TemplateToken) -> MustacheStatement:
        call = parse_call(tok.contents, line=tok.line)
        return MustacheStatement(
            path=call.path,
            params=call.params,
            hash=call.hash,
            trusting=tok.trusting,
            loc=SourceLocation(tok.line),
        )

    # -- blocks -----------------------------------------------------------

    def parse_block(self, tok: TemplateToken) -> BlockStatement:
        call = parse_call(tok.contents[1:].strip(), line=tok.line, allow_block_params=True)
        self.cursor.next()
        body, term = self.parse_statements()
        inverse: Block | None = None
        if term is not None and term[0] == "else":
            inverse, term = self.parse_inverse(term)

        name = print_expression(call.path)
        if term is None:
            raise TemplateSyntaxError(f"Unclosed block {{{{#{name}}}}}", tok.line)
        kind, closing, line = term
        if kind != "close_block" or closing != name:
            raise TemplateSyntaxError(
                f"{{{{#{name}}}}} closed by {_describe(term)}", line
            )
        return BlockStatement(
            path=call.path,
            params=call.params,
            hash=call.hash,
            program=Block(tuple(body), call.block_params),
            inverse=inverse,
            loc=SourceLocation(tok.line),
        )

    def parse_inverse(self, term: _Terminator) -> tuple[Block, _Terminator | None]:
        _, contents, line = term
        rest = "" if contents == "^" else contents[len("else") :].strip()
        if rest:
            # `{{else if x}}` opens a nested block closed by the outer end tag.
            call = parse_call(rest, line=line, allow_block_params=True)
            body, next_term = self.parse_statements()
            inverse: Block | None = None
            if next_term is not None and next_term[0] == "else":
                inverse, next_term = self.parse_inverse(next_term)
            nested = BlockStatement(
                path=call.path,
                params=call.params,
                hash=call.hash,
                program=Block(tuple(body), call.block_params),
                inverse=inverse,
                loc=SourceLocation(line),
            )
            return Block((nested,)), next_term

        body, next_term = self.parse_statements()
        if next_term is not None and next_term[0] == "else":
            raise TemplateSyntaxError("Unexpected {{else}} after {{else}}", next_term[2])
        return Block(tuple(body)), next_term

    # -- HTML -------------------------------------------------------------

    def parse_html_comment(self) -> CommentStatement:
        cursor = self.cursor
        loc = cursor.loc()
        chunks: list[str] = []
        cursor.advance(len("<!--"))
        while not cursor.at_end():
            tok = cursor.current()
            if tok.kind == "mustache":
                chunks.append(tok.raw)
                cursor.next()
                continue
            rest = cursor.text_rest()
            end = rest.find("-->")
            if end >= 0:
                chunks.append(rest[:end])
                cursor.advance(end + 3)
                return CommentStatement("".join(chunks).strip(), html=True, loc=loc)
            chunks.append(rest)
            cursor.next()
        raise TemplateSyntaxError("Unclosed HTML comment", loc.line)

    def skip_whitespace(self) -> None:
        cursor = self.cursor
        while not cursor.at_end() and cursor.current().kind == "text":
            rest = cursor.text_rest()
            stripped = rest.lstrip()
            if stripped:
                cursor.advance(len(rest) - len(stripped))
                return
            cursor.next()

    def parse_element(self) -> ElementNode:
        cursor = self.cursor
        loc = cursor.loc()
        match = _TAG_NAME_RE.match(cursor.text_rest())
        if match is None:
            raise TemplateSyntaxError("Expected a tag name after <", loc.line)
        tag = match.group(1)
        cursor.advance(match.end())

        attributes: list[AttrNode] = []
        modifiers: list[ElementModifierStatement] = []
        block_params: tuple[str, ...] = ()
        self_closing = False

        while True:
            self.skip_whitespace()
            if cursor.at_end():
                raise TemplateSyntaxError(f"Unclosed start tag <{tag}>", loc.line)
            tok = cursor.current()
            if tok.kind == "mustache":
                cursor.next()
                if tok.is_comment:
                    continue
                call = parse_call(tok.contents, line=tok.line)
                modifiers.append(
                    ElementModifierStatement(
                        call.path, call.params, call.hash, SourceLocation(tok.line)
                    )
                )
                continue

            rest = cursor.text_rest()
            if rest.startswith("/>"):
                cursor.advance(2)
                self_closing = True
                break
            if rest.startswith(">"):
                cursor.advance(1)
                break
            params_match = _ELEMENT_BLOCK_PARAMS_RE.match(rest)
            if params_match is not None:
                block_params = tuple(params_match.group(1).split())
                if not block_params:
                    raise TemplateSyntaxError(f"Empty block params in <{tag}>", cursor.line())
                cursor.advance(params_match.end())
                continue
            name_match = _ATTR_NAME_RE.match(rest)
            if name_match is None:
                raise TemplateSyntaxError(f"Invalid attribute in <{tag}>", cursor.line())
            attr_loc = cursor.loc()
            name = name_match.group(0)
            cursor.advance(name_match.end())
            value: AttrValue = TextNode("", attr_loc)
            if not cursor.at_end() and cursor.current().kind == "text":
                if cursor.text_rest().startswith("="):
                    cursor.advance(1)
                    value = self.parse_attribute_value(tag)
            attributes.append(AttrNode(name, value, attr_loc))

        children: list[Statement] = []
        if not self_closing and tag not in VOID_ELEMENTS:
            children, term = self.parse_statements()
            if term is None:
                raise TemplateSyntaxError(f"Unclosed element <{tag}>", loc.line)
            if term[0] != "close_element" or term[1] != tag:
                raise TemplateSyntaxError(f"<{tag}> closed by {_describe(term)}", term[2])

        return ElementNode(
            tag=tag,
            attributes=tuple(attributes),
            modifiers=tuple(modifiers),
            children=tuple(children),
            block_params=block_params,
            self_closing=self_closing,
            loc=loc,
        )

    def parse_attribute_value(self, tag: str) -> AttrValue:
        cursor = self.cursor
        if cursor.at_end():
            raise TemplateSyntaxError(f"Missing attribute value in <{tag}>", cursor.line())
        tok = cursor.current()
        if tok.kind == "mustache":
            cursor.next()
            return self.mustache_statement(tok)

        loc = cursor.loc()
        rest = cursor.text_rest()
        quote = rest[0]
        if quote not in ("'", '"'):
            match = _UNQUOTED_VALUE_RE.match(rest)
            if match is None:
                raise TemplateSyntaxError(f"Missing attribute value in <{tag}>", loc.line)
            cursor.advance(match.end())
            return TextNode(match.group(0), loc)

        cursor.advance(1)
        parts: list[TextNode | MustacheStatement] = []
        while True:
            if cursor.at_end():
                raise TemplateSyntaxError(f"Unterminated attribute value in <{tag}>", loc.line)
            tok = cursor.current()
            if tok.kind == "mustache":
                cursor.next()
                if not tok.is_comment:
                    parts.append(self.mustache_statement(tok))
                continue
            rest = cursor.text_rest()
            end = rest.find(quote)
            if end < 0:
                parts.append(TextNode(rest, cursor.loc()))
                cursor.next()
                continue
            if end > 0:
                parts.append(TextNode(rest[:end], cursor.loc()))
            cursor.advance(end + 1)
            break

        if not parts:
            return TextNode("", loc)
        if len(parts) == 1 and isinstance(parts[0], TextNode):
            return parts[0]
        return ConcatStatement(tuple(parts), loc)


def _describe(term: _Terminator) -> str:
    kind, name, _ = term
    if kind == "close_block":
        return f"{{{{/{name}}}}}"
    if kind == "close_element":
        return f"</{name}>"
    return f"{{{{{name}}}}}"


def parse_template(template: str, *, force_fallback: bool = False) -> Template:
    """
    Parse template source into a `Template` tree.

    Raises `TemplateSyntaxError` for unbalanced blocks/elements and malformed
    mustaches.
    """
    tokens = tokenize_template(template, force_fallback=force_fallback)
    parser = _TemplateParser(tokens)
    body, term = parser.parse_statements()
    if term is not None:
        raise TemplateSyntaxError(f"Unexpected {_describe(term)}", term[2])
    return Template(tuple(body))


