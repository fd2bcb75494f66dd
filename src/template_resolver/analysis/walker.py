"""
Template walker.

Walks a template tree in document order and turns every component/helper
reference into dependency records.

Goal:
- Normalize every syntactic form (inline curly, block, element,
  subexpression) into one `Invocation` and classify it in one place.
- Keep block-parameter scopes exact: a name bound by `as |x|` shadows any
  component or helper called `x` inside the block, and nowhere else.
- Follow package rules so that component-valued arguments and yielded
  components stay statically analyzable.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Iterator
from collections.abc import Mapping
from contextlib import contextmanager
from contextlib import nullcontext
from pathlib import PurePath

from ..config import ResolverOptions
from ..overrides import BUILTIN_COMPONENTS
from ..overrides import BUILTIN_HELPERS
from ..overrides import DYNAMIC_COMPONENT_KEYWORD
from ..overrides import DYNAMIC_HELPER_KEYWORD
from ..resolution.dependencies import DependencySet
from ..resolution.module_paths import resolve_candidates
from ..resolution.names import dasherize
from ..resolution.scope import ScopeStack
from ..template_syntax.nodes import AttrValue
from ..template_syntax.nodes import BlockStatement
from ..template_syntax.nodes import ConcatStatement
from ..template_syntax.nodes import ElementNode
from ..template_syntax.nodes import Expression
from ..template_syntax.nodes import HashPair
from ..template_syntax.nodes import MustacheStatement
from ..template_syntax.nodes import PathExpression
from ..template_syntax.nodes import Statement
from ..template_syntax.nodes import StringLiteral
from ..template_syntax.nodes import SubExpression
from ..template_syntax.nodes import Template
from ..template_syntax.nodes import TextNode
from ..template_syntax.nodes import print_expression
from ..types import Binding
from ..types import BindingKind
from ..types import ComponentRule
from ..types import DependencyRecord
from ..types import Invocation
from ..types import InvocationForm
from ..types import InvocationKind
from ..types import Resolution
from ..types import ResolvedSymbol
from ..types import missing_dependency

logger = logging.getLogger(__name__)

WarningHandler = Callable[[str], None]

# An argument value as written at the call site: an expression for curlies,
# an attribute value for elements.
ArgumentValue = Expression | AttrValue

_KEYWORD_KINDS = {
    DYNAMIC_COMPONENT_KEYWORD: InvocationKind.COMPONENT,
    DYNAMIC_HELPER_KEYWORD: InvocationKind.HELPER,
}


def log_warning(message: str) -> None:
    logger.warning(message)


class TemplateWalker:
    """
    Resolves the dependencies of one template.

    A walker is single-use: create one per template, call `walk()`, read the
    sorted records it returns.
    """

    def __init__(
        self,
        options: ResolverOptions,
        relative_path: str | PurePath,
        *,
        on_warning: WarningHandler | None = None,
    ) -> None:
        self.options = options
        self.relative_path = PurePath(relative_path).as_posix()
        self.template_path = options.root / self.relative_path
        self.rules = options.rule_store
        self.own_rule = self.rules.rules_for_template(self.relative_path)
        self.scope = ScopeStack()
        self.dependencies = DependencySet()
        self.on_warning = on_warning or log_warning
        self._muted = 0

    def walk(self, template: Template) -> list[DependencyRecord]:
        self.visit_statements(template.body)
        return self.dependencies.finalize()

    def warn(self, message: str) -> None:
        if not self._muted:
            self.on_warning(message)

    @contextmanager
    def muted(self) -> Iterator[None]:
        self._muted += 1
        try:
            yield
        finally:
            self._muted -= 1

    # -- classification ---------------------------------------------------

    def enabled(self, kind: InvocationKind) -> bool:
        if kind is InvocationKind.COMPONENT:
            return self.options.static_components
        if kind is InvocationKind.HELPER:
            return self.options.static_helpers
        return self.options.static_components or self.options.static_helpers

    def classify(self, invocation: Invocation) -> ResolvedSymbol:
        """
        Give an invocation exactly one resolution.

        Raises `MissingDependencyError` when the name must resolve and does
        not.
        """
        name = invocation.raw_name
        if self.scope.is_local(name):
            return ResolvedSymbol(Resolution.LOCAL, name)
        if name.startswith("@") or invocation.head == "this" or "." in name:
            # Contextual components are resolved at runtime.
            return ResolvedSymbol(Resolution.UNKNOWN, name)
        if self._is_builtin(invocation):
            return ResolvedSymbol(Resolution.BUILTIN, name)

        kinds = self._candidate_kinds(invocation.kind)
        if not kinds:
            return ResolvedSymbol(Resolution.SAFE_DYNAMIC, name)

        for kind in kinds:
            candidates = self._candidates(kind, name)
            if candidates:
                rule = self.rules.lookup(kind, name) if kind is InvocationKind.COMPONENT else None
                return ResolvedSymbol(Resolution.FILE_BACKED, name, tuple(candidates), rule)

        rule = self.rules.lookup(invocation.kind, name)
        if rule is not None and rule.safe_to_ignore:
            logger.debug("%s %s missing, ignored by %s", invocation.kind.value, name, rule.package)
            return ResolvedSymbol(Resolution.SAFE_DYNAMIC, name, rule=rule)
        if not invocation.has_arguments:
            # `{{foo}}` may just be a property of the template's context.
            return ResolvedSymbol(Resolution.UNKNOWN, name)
        if invocation.kind is InvocationKind.COMPONENT_OR_HELPER and len(kinds) < 2:
            # Only one kind is resolved statically; the other may still exist.
            return ResolvedSymbol(Resolution.UNKNOWN, name)
        raise missing_dependency(invocation.kind, name, self.template_path)

    def _is_builtin(self, invocation: Invocation) -> bool:
        if invocation.kind is InvocationKind.COMPONENT:
            return dasherize(invocation.raw_name) in BUILTIN_COMPONENTS
        return invocation.raw_name in BUILTIN_HELPERS

    def _candidate_kinds(self, kind: InvocationKind) -> list[InvocationKind]:
        if kind is not InvocationKind.COMPONENT_OR_HELPER:
            return [kind] if self.enabled(kind) else []
        return [k for k in (InvocationKind.HELPER, InvocationKind.COMPONENT) if self.enabled(k)]

    def _candidates(self, kind: InvocationKind, name: str) -> list[DependencyRecord]:
        return resolve_candidates(
            kind,
            name,
            self.relative_path,
            root=self.options.root,
            module_prefix=self.options.module_prefix,
            extensions=self.options.resolvable_extensions,
        )

    def resolve(self, invocation: Invocation) -> ResolvedSymbol:
        symbol = self.classify(invocation)
        for record in symbol.candidates:
            self.dependencies.add(record)
        return symbol

    # -- dynamic indirection ----------------------------------------------

    def unwrap(self, value: ArgumentValue, kind: InvocationKind) -> ArgumentValue:
        """
        Reduce an argument value to the expression that names a component/helper.

        `{{x}}` -> `x`, `(component "x")` -> `"x"`, `@a="x"` -> `"x"`.
        """
        if isinstance(value, TextNode):
            return StringLiteral(value.chars, value.loc)
        if isinstance(value, (MustacheStatement, SubExpression)):
            if not value.params and not value.hash and isinstance(value, MustacheStatement):
                return self.unwrap(value.path, kind)
            path = value.path
            if (
                isinstance(path, PathExpression)
                and _KEYWORD_KINDS.get(path.original) is kind
                and value.params
                and not self.scope.is_local(path.original)
            ):
                return self.unwrap(value.params[0], kind)
        return value

    def resolve_literal(self, kind: InvocationKind, literal: StringLiteral) -> ResolvedSymbol:
        """A literal name in an indirection is classified like any other invocation."""
        invocation = Invocation(
            kind, InvocationForm.DYNAMIC_INDIRECTION, literal.value, loc=literal.loc
        )
        return self.resolve(invocation)

    def is_safe_path(self, path: str) -> tuple[bool, str | None]:
        safe, source = self.scope.safety_of(path)
        if safe:
            return True, None
        if self.own_rule is not None and path in self.own_rule.safe_interior_paths:
            return True, None
        return False, source

    def resolve_indirection(self, kind: InvocationKind, value: ArgumentValue) -> None:
        """`{{component X}}` and friends: resolve a literal, warn on anything dynamic."""
        if not self.enabled(kind):
            return
        target = self.unwrap(value, kind)
        if isinstance(target, StringLiteral):
            self.resolve_literal(kind, target)
            return
        if isinstance(target, PathExpression):
            safe, source = self.is_safe_path(target.original)
            if safe:
                return
            self.warn(f"ignoring dynamic {kind.value} {source or target.original}")
            return
        self.warn(f"ignoring dynamic {kind.value} {print_expression(target)}")

    # -- package rules ----------------------------------------------------

    def followed_arguments(
        self, rule: ComponentRule | None, block_params: tuple[str, ...]
    ) -> set[str]:
        """
        Named arguments whose component value the rule checks itself.

        Dynamic values in these are reported once, by the rule, so the
        ordinary walk over them stays quiet.
        """
        if rule is None:
            return set()
        names = set(rule.arguments_are_components)
        for yielded in rule.yields_arguments[: len(block_params)]:
            if isinstance(yielded, str):
                names.add(yielded.lstrip("@"))
            else:
                names.update(argument.lstrip("@") for argument in yielded.values())
        return names

    def apply_component_arguments(
        self, rule: ComponentRule, arguments: Mapping[str, ArgumentValue]
    ) -> None:
        for name in rule.arguments_are_components:
            value = arguments.get(name)
            if value is not None:
                self.resolve_indirection(InvocationKind.COMPONENT, value)

    def argument_safety(
        self, name: str, arguments: Mapping[str, ArgumentValue]
    ) -> tuple[bool, str | None]:
        """
        Whether the argument `name` carries a statically known component.

        On failure, the second item is the text of the dynamic expression.
        """
        value = arguments.get(name.lstrip("@"))
        if value is None:
            return True, None
        target = self.unwrap(value, InvocationKind.COMPONENT)
        if isinstance(target, StringLiteral):
            self.resolve_literal(InvocationKind.COMPONENT, target)
            return True, None
        if isinstance(target, PathExpression):
            safe, source = self.is_safe_path(target.original)
            if safe:
                return True, None
            return False, source or target.original
        return False, print_expression(target)

    def block_bindings(
        self,
        block_params: tuple[str, ...],
        rule: ComponentRule | None,
        arguments: Mapping[str, ArgumentValue],
    ) -> list[Binding]:
        if rule is None:
            return [Binding(name) for name in block_params]

        bindings: list[Binding] = []
        for idx, name in enumerate(block_params):
            safety = rule.yields_safe_components[idx] if idx < len(rule.yields_safe_components) else False
            yielded = rule.yields_arguments[idx] if idx < len(rule.yields_arguments) else None

            whole = safety is True
            fields: set[str] = set()
            if isinstance(safety, Mapping):
                fields.update(key for key, value in safety.items() if value)
            dynamic_source: str | None = None
            field_sources: list[tuple[str, str]] = []

            if isinstance(yielded, str):
                safe, source = self.argument_safety(yielded, arguments)
                whole = whole or safe
                dynamic_source = None if safe else source
            elif isinstance(yielded, Mapping):
                for sub_field, argument in yielded.items():
                    safe, source = self.argument_safety(argument, arguments)
                    if safe:
                        fields.add(sub_field)
                    elif source is not None:
                        field_sources.append((sub_field, source))

            safe_value = whole or bool(fields)
            bindings.append(
                Binding(
                    name,
                    BindingKind.SAFE_VALUE if safe_value else BindingKind.OPAQUE,
                    frozenset() if whole else frozenset(fields),
                    dynamic_source,
                    tuple(field_sources),
                )
            )
        return bindings

    # -- traversal --------------------------------------------------------

    def visit_statements(self, body: Iterable[Statement]) -> None:
        for node in body:
            if isinstance(node, MustacheStatement):
                self.visit_call(node.path, node.params, node.hash, InvocationForm.INLINE_CURLY)
            elif isinstance(node, BlockStatement):
                self.visit_block(node)
            elif isinstance(node, ElementNode):
                self.visit_element(node)

    def visit_block(self, node: BlockStatement) -> None:
        bindings = self.visit_call(
            node.path,
            node.params,
            node.hash,
            InvocationForm.BLOCK_CURLY,
            block_params=node.program.block_params,
        )
        with self.scope.frame(bindings):
            self.visit_statements(node.program.body)
        if node.inverse is not None:
            with self.scope.frame(Binding(name) for name in node.inverse.block_params):
                self.visit_statements(node.inverse.body)

    def visit_call(
        self,
        path: Expression,
        params: tuple[Expression, ...],
        pairs: tuple[HashPair, ...],
        form: InvocationForm,
        *,
        block_params: tuple[str, ...] = (),
    ) -> list[Binding]:
        """
        Resolve a curly invocation and walk its arguments.

        Returns the bindings for `block_params`.
        """
        arguments = {pair.key: pair.value for pair in pairs}
        symbol: ResolvedSymbol | None = None
        if isinstance(path, PathExpression):
            keyword_kind = _KEYWORD_KINDS.get(path.original)
            if keyword_kind is not None and params and not self.scope.is_local(path.original):
                self.resolve_indirection(keyword_kind, params[0])
            elif form is InvocationForm.SUBEXPRESSION:
                if self.options.static_helpers:
                    symbol = self.resolve(
                        Invocation(InvocationKind.HELPER, form, path.original, params, arguments, path.loc)
                    )
            else:
                symbol = self.resolve(
                    Invocation(
                        InvocationKind.COMPONENT_OR_HELPER,
                        form,
                        path.original,
                        params,
                        arguments,
                        path.loc,
                    )
                )

        rule = None
        if symbol is not None and symbol.resolution is Resolution.FILE_BACKED:
            rule = symbol.rule
        followed = self.followed_arguments(rule, block_params)

        for expr in params:
            self.visit_expression(expr)
        for key, expr in arguments.items():
            with self.muted() if key in followed else nullcontext():
                self.visit_expression(expr)

        if rule is not None:
            self.apply_component_arguments(rule, arguments)
        return self.block_bindings(block_params, rule, arguments)

    def visit_expression(self, expr: Expression) -> None:
        if isinstance(expr, SubExpression):
            self.visit_call(expr.path, expr.params, expr.hash, InvocationForm.SUBEXPRESSION)

    def visit_attribute_value(self, value: AttrValue) -> None:
        if isinstance(value, MustacheStatement):
            self.visit_call(value.path, value.params, value.hash, InvocationForm.INLINE_CURLY)
        elif isinstance(value, ConcatStatement):
            for part in value.parts:
                self.visit_attribute_value(part)

    def visit_element(self, node: ElementNode) -> None:
        arguments: dict[str, ArgumentValue] = {
            attr.name[1:]: attr.value for attr in node.attributes if attr.is_argument
        }
        symbol = self.classify_element(node, arguments)
        rule = None
        if symbol is not None and symbol.resolution is Resolution.FILE_BACKED:
            rule = symbol.rule
        followed = self.followed_arguments(rule, node.block_params)

        # Attributes and modifiers are outside the element's block params.
        for attr in node.attributes:
            quiet = attr.is_argument and attr.name[1:] in followed
            with self.muted() if quiet else nullcontext():
                self.visit_attribute_value(attr.value)
        for modifier in node.modifiers:
            for expr in (*modifier.params, *(pair.value for pair in modifier.hash)):
                self.visit_expression(expr)

        if rule is not None:
            self.apply_component_arguments(rule, arguments)
        bindings = self.block_bindings(node.block_params, rule, arguments)
        with self.scope.frame(bindings):
            self.visit_statements(node.children)

    def classify_element(
        self, node: ElementNode, arguments: Mapping[str, ArgumentValue]
    ) -> ResolvedSymbol | None:
        tag = node.tag
        # Lowercase tags are HTML; `@arg`, `this.x` and `:named` blocks are never components.
        if not tag[:1].isupper():
            return None
        if self.scope.is_local(tag):
            return ResolvedSymbol(Resolution.LOCAL, tag)
        if "." in tag or not self.options.static_components:
            return None
        invocation = Invocation(
            InvocationKind.COMPONENT,
            InvocationForm.ANGLE_ELEMENT,
            tag,
            hash=arguments,
            loc=node.loc,
        )
        return self.resolve(invocation)
