from __future__ import annotations

import pytest

from template_resolver.template_syntax.tokenization import tokenize_template


def _shape(template: str, *, force_fallback: bool = False) -> list[tuple[str, str]]:
    return [
        (tok.kind, tok.contents)
        for tok in tokenize_template(template, force_fallback=force_fallback)
    ]


def test_splits_text_and_mustaches() -> None:
    assert _shape("a {{b}} c") == [("text", "a "), ("mustache", "b"), ("text", " c")]


def test_triple_stache_is_one_trusting_token() -> None:
    tokens = tokenize_template("<p>{{{raw-html}}}</p>")
    mustaches = [tok for tok in tokens if tok.kind == "mustache"]
    assert len(mustaches) == 1
    assert mustaches[0].contents == "raw-html"
    assert mustaches[0].trusting
    assert mustaches[0].raw == "{{{raw-html}}}"


def test_block_comment_may_contain_mustaches() -> None:
    tokens = tokenize_template("{{!-- {{hello-world}} --}}after")
    assert [tok.kind for tok in tokens] == ["mustache", "text"]
    assert tokens[0].is_comment
    assert tokens[0].contents == "! {{hello-world}} "
    assert tokens[1].raw == "after"


def test_short_comment_keeps_bang() -> None:
    (token,) = tokenize_template("{{! note }}")
    assert token.is_comment
    assert token.contents == "! note "


def test_multiline_mustache() -> None:
    tokens = tokenize_template("x\n{{form-builder\n  title=t}}\ny")
    mustache = next(tok for tok in tokens if tok.kind == "mustache")
    assert mustache.contents == "form-builder\n  title=t"
    assert mustache.line == 2


def test_whitespace_control_is_stripped() -> None:
    assert _shape("{{~foo bar~}}") == [("mustache", "foo bar")]


def test_django_tags_are_plain_text() -> None:
    assert _shape("a {% if x %} {# c #} b") == [("text", "a {% if x %} {# c #} b")]


def test_unclosed_mustache_is_text() -> None:
    assert _shape("a {{b") == [("text", "a {{b")]


def test_line_numbers() -> None:
    tokens = tokenize_template("one\ntwo {{a}}\n\n{{b}}")
    lines = {tok.contents: tok.line for tok in tokens if tok.kind == "mustache"}
    assert lines == {"a": 2, "b": 4}


@pytest.mark.parametrize(
    "template",
    [
        "{{hello-world}} <HelloWorld />",
        "{{#each (array 1 2 3) as |num|}} {{num}} {{/each}}",
        "<div data-foo={{capitalize name}}></div>",
        "{{!-- a }} b --}}{{{c}}}\n{{d\ne}}",
    ],
)
def test_fallback_matches_lexer(template: str) -> None:
    assert _shape(template) == _shape(template, force_fallback=True)


def test_spans_cover_source() -> None:
    template = "a {{b}}\n{{!-- }} --}} <C @d={{{e}}} />"
    tokens = tokenize_template(template)
    assert "".join(tok.raw for tok in tokens) == template
    for prev, nxt in zip(tokens, tokens[1:]):
        assert prev.end == nxt.start
