from __future__ import annotations

import pytest

from template_resolver.template_syntax.expressions import parse_call
from template_resolver.template_syntax.expressions import parse_expression
from template_resolver.template_syntax.nodes import BlockStatement
from template_resolver.template_syntax.nodes import BooleanLiteral
from template_resolver.template_syntax.nodes import CommentStatement
from template_resolver.template_syntax.nodes import ConcatStatement
from template_resolver.template_syntax.nodes import ElementNode
from template_resolver.template_syntax.nodes import MustacheStatement
from template_resolver.template_syntax.nodes import NumberLiteral
from template_resolver.template_syntax.nodes import PathExpression
from template_resolver.template_syntax.nodes import StringLiteral
from template_resolver.template_syntax.nodes import SubExpression
from template_resolver.template_syntax.nodes import TextNode
from template_resolver.template_syntax.nodes import print_expression
from template_resolver.template_syntax.parsing import parse_template
from template_resolver.types import TemplateSyntaxError

# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


def test_parse_call_with_hash_subexpression_and_block_params() -> None:
    call = parse_call(
        'form-builder title=(component "fancy-title") as |f|',
        allow_block_params=True,
    )
    assert call.path == PathExpression("form-builder", call.path.loc)
    assert [pair.key for pair in call.hash] == ["title"]
    sub = call.hash[0].value
    assert isinstance(sub, SubExpression)
    assert isinstance(sub.path, PathExpression)
    assert sub.path.original == "component"
    assert isinstance(sub.params[0], StringLiteral)
    assert sub.params[0].value == "fancy-title"
    assert call.block_params == ("f",)


def test_parse_call_positional_params() -> None:
    call = parse_call("each (array 1 2 3)")
    (param,) = call.params
    assert isinstance(param, SubExpression)
    assert [p.value for p in param.params] == [1, 2, 3]


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("1", NumberLiteral(1)),
        ("-1.5", NumberLiteral(-1.5)),
        ("true", BooleanLiteral(True)),
        ('"a \\"b\\""', StringLiteral('a "b"')),
        ("'x'", StringLiteral("x")),
    ],
)
def test_parse_literals(source: str, expected: object) -> None:
    expr = parse_expression(source)
    assert type(expr) is type(expected)
    assert expr.value == expected.value  # type: ignore[union-attr]


def test_parse_paths() -> None:
    expr = parse_expression("this.foo.bar")
    assert isinstance(expr, PathExpression)
    assert expr.parts == ["this", "foo", "bar"]
    assert expr.is_this
    assert expr.is_dotted
    assert parse_expression("@title").is_data  # type: ignore[union-attr]


@pytest.mark.parametrize(
    "source",
    [
        "foo bar=1 baz",
        "foo (bar",
        "foo bar)",
        '"unterminated',
        "foo as |x|",
        "foo as || ",
    ],
)
def test_parse_call_errors(source: str) -> None:
    with pytest.raises(TemplateSyntaxError):
        parse_call(source)


def test_print_expression() -> None:
    call = parse_call('my-thing 1 header=(component "hello-world")')
    mustache = MustacheStatement(call.path, call.params, call.hash)
    assert print_expression(mustache) == '{{my-thing 1 header=(component "hello-world")}}'


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


def test_block_with_params_and_else() -> None:
    template = parse_template("{{#each items as |item|}}{{item.name}}{{else}}empty{{/each}}")
    (block,) = template.body
    assert isinstance(block, BlockStatement)
    assert block.path.original == "each"  # type: ignore[union-attr]
    assert block.program.block_params == ("item",)
    (inner,) = block.program.body
    assert isinstance(inner, MustacheStatement)
    assert inner.path.original == "item.name"  # type: ignore[union-attr]
    assert block.inverse is not None
    assert block.inverse.body == (TextNode("empty", block.inverse.body[0].loc),)


def test_else_if_chain_nests_blocks() -> None:
    template = parse_template("{{#if a}}x{{else if b}}y{{else}}z{{/if}}")
    (block,) = template.body
    assert isinstance(block, BlockStatement)
    assert block.inverse is not None
    (nested,) = block.inverse.body
    assert isinstance(nested, BlockStatement)
    assert nested.params[0].original == "b"  # type: ignore[union-attr]
    assert nested.inverse is not None
    assert [node.chars for node in nested.inverse.body] == ["z"]  # type: ignore[union-attr]


def test_element_attributes_and_modifiers() -> None:
    template = parse_template(
        '<div class="a {{b}}" data-x={{c}} hidden {{on "click" this.go}}></div>'
    )
    (div,) = template.body
    assert isinstance(div, ElementNode)
    assert div.tag == "div"
    assert [attr.name for attr in div.attributes] == ["class", "data-x", "hidden"]
    klass = div.attributes[0].value
    assert isinstance(klass, ConcatStatement)
    assert isinstance(klass.parts[0], TextNode)
    assert isinstance(klass.parts[1], MustacheStatement)
    assert isinstance(div.attributes[1].value, MustacheStatement)
    assert div.attributes[2].value == TextNode("", div.attributes[2].value.loc)
    (modifier,) = div.modifiers
    assert modifier.path.original == "on"  # type: ignore[union-attr]
    assert div.children == ()


def test_component_element_with_block_params() -> None:
    template = parse_template("<FormBuilder @title={{title}} as |title f|>{{title}}</FormBuilder>")
    (element,) = template.body
    assert isinstance(element, ElementNode)
    assert element.block_params == ("title", "f")
    (attr,) = element.attributes
    assert attr.is_argument
    assert isinstance(attr.value, MustacheStatement)
    assert len(element.children) == 1


def test_self_closing_and_void_elements() -> None:
    template = parse_template('<LinkTo @route="index"/><input value="x"><br>text')
    link, input_, br, text = template.body
    assert isinstance(link, ElementNode) and link.self_closing
    assert link.attributes[0].value == TextNode("index", link.attributes[0].value.loc)
    assert isinstance(input_, ElementNode) and input_.tag == "input"
    assert isinstance(br, ElementNode) and br.children == ()
    assert isinstance(text, TextNode)


def test_nested_contextual_element() -> None:
    template = parse_template(
        '<HelloWorld as |H|> <H.title @flavor="chocolate" /> </HelloWorld>'
    )
    (outer,) = template.body
    assert isinstance(outer, ElementNode)
    inner = [node for node in outer.children if isinstance(node, ElementNode)]
    assert [node.tag for node in inner] == ["H.title"]


def test_comments() -> None:
    template = parse_template("{{! hi }}<!-- {{hello-world}} -->{{!-- x --}}")
    assert all(isinstance(node, CommentStatement) for node in template.body)
    assert [node.html for node in template.body] == [False, True, False]  # type: ignore[union-attr]
    assert template.body[0].value == "hi"  # type: ignore[union-attr]


def test_triple_stache_is_trusting() -> None:
    (node,) = parse_template("{{{html}}}").body
    assert isinstance(node, MustacheStatement)
    assert node.trusting


def test_text_with_lone_angle_bracket() -> None:
    template = parse_template("1 < 2")
    assert "".join(node.chars for node in template.body) == "1 < 2"  # type: ignore[union-attr]


@pytest.mark.parametrize(
    "source",
    [
        "{{#if a}}x",
        "{{#if a}}x{{/each}}",
        "{{/if}}",
        "{{else}}",
        "<div><span></div>",
        "<div>",
        "</div>",
        "<div class=\"x></div>",
        "{{#if a}}{{else}}{{else}}{{/if}}",
        "<!-- open",
    ],
)
def test_syntax_errors(source: str) -> None:
    with pytest.raises(TemplateSyntaxError):
        parse_template(source)


def test_syntax_error_reports_line() -> None:
    with pytest.raises(TemplateSyntaxError) as excinfo:
        parse_template("a\nb\n{{#if x}}\n{{/unless}}")
    assert excinfo.value.line == 4
    assert "line 4" in str(excinfo.value)
