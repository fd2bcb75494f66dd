"""
Template tokenization.

Splits template source into TEXT and MUSTACHE tokens. Django's lexer already
splits on `{{ ... }}` the way Handlebars does, so we reuse its position-aware
`DebugLexer` and patch up the Handlebars constructs it does not know about:

- triple-stache `{{{ ... }}}` (Django stops at the first `}}`)
- block comments `{{!-- ... --}}`, which may contain `}}`
- mustaches spanning several lines (Django's tag pattern stops at newlines,
  so those arrive as TEXT and are re-scanned here)

Django block/comment tags (`{% %}`, `{# #}`) have no meaning in these
templates and are passed through as text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from django.template.base import DebugLexer
from django.template.base import TokenType


@dataclass(frozen=True, slots=True)
class TemplateToken:
    """
    Canonical token representation consumed by the parser.

    - `raw` is the exact source slice, delimiters included.
    - `contents` is the mustache body with delimiters, `~` whitespace control
      and surrounding whitespace removed. Comments keep their leading `!`.
      For text tokens it equals `raw`.
    - `trusting` marks triple-stache mustaches.
    """

    kind: Literal["text", "mustache"]
    line: int
    start: int
    end: int
    raw: str
    contents: str
    trusting: bool = False

    @property
    def is_comment(self) -> bool:
        return self.kind == "mustache" and self.contents.startswith("!")


# (is_mustache, start, end)
_Span = tuple[bool, int, int]

_MUSTACHE_RE = re.compile(
    r"\{\{!--.*?--\}\}|\{\{\{.*?\}\}\}|\{\{.*?\}\}",
    re.DOTALL,
)


def tokenize_template(
    template: str,
    *,
    force_fallback: bool = False,
) -> list[TemplateToken]:
    """
    Tokenize a template into TEXT/MUSTACHE tokens.

    With `force_fallback`, Django's lexer is skipped and the whole template is
    scanned with the regex used for patching.
    """
    if force_fallback:
        spans: list[_Span] = [(False, 0, len(template))]
    else:
        spans = _lexer_spans(template)

    out: list[TemplateToken] = []
    cursor = 0
    for is_mustache, start, end in spans:
        if end <= cursor:
            continue
        if start < cursor:
            # Tail of a span swallowed by an extended comment or triple-stache.
            is_mustache = False
            start = cursor
        if is_mustache:
            match = _MUSTACHE_RE.match(template, start)
            if match is not None:
                end = max(end, match.end())
            out.append(_mustache_token(template, start, end))
            cursor = end
            continue
        cursor = _scan_text(out, template, start, end)
    return out


def _lexer_spans(template: str) -> list[_Span]:
    spans: list[_Span] = []
    for token in DebugLexer(template).tokenize():
        start, end = token.position
        spans.append((token.token_type == TokenType.VAR, start, end))
    return spans


def _scan_text(out: list[TemplateToken], template: str, start: int, end: int) -> int:
    """
    Emit text between `start` and `end`, splitting out any mustache that the
    lexer missed. Returns the offset scanning stopped at (may exceed `end`).
    """
    pos = start
    while pos < end:
        idx = template.find("{{", pos, end)
        if idx < 0:
            break
        match = _MUSTACHE_RE.match(template, idx)
        if match is None:
            # Unclosed mustache: leave it as text.
            break
        _append_text(out, template, pos, idx)
        out.append(_mustache_token(template, idx, match.end()))
        pos = match.end()
    if pos < end:
        _append_text(out, template, pos, end)
        pos = end
    return pos


def _line_at(template: str, offset: int) -> int:
    return template.count("\n", 0, offset) + 1


def _mustache_token(template: str, start: int, end: int) -> TemplateToken:
    raw = template[start:end]
    line = _line_at(template, start)
    if raw.startswith("{{!"):
        contents = raw[2:-2]
        if contents.startswith("!--") and contents.endswith("--"):
            contents = "!" + contents[3:-2]
        return TemplateToken(
            kind="mustache",
            line=line,
            start=start,
            end=end,
            raw=raw,
            contents=contents,
        )
    trusting = raw.startswith("{{{") and raw.endswith("}}}")
    inner = raw[3:-3] if trusting else raw[2:-2]
    inner = inner.strip()
    if inner.startswith("~"):
        inner = inner[1:]
    if inner.endswith("~"):
        inner = inner[:-1]
    return TemplateToken(
        kind="mustache",
        line=line,
        start=start,
        end=end,
        raw=raw,
        contents=inner.strip(),
        trusting=trusting,
    )


def _append_text(out: list[TemplateToken], template: str, start: int, end: int) -> None:
    if start >= end:
        return
    if out and out[-1].kind == "text" and out[-1].end == start:
        start = out.pop().start
    raw = template[start:end]
    out.append(
        TemplateToken(
            kind="text",
            line=_line_at(template, start),
            start=start,
            end=end,
            raw=raw,
            contents=raw,
        )
    )
