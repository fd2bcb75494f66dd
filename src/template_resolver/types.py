"""
Shared types for parsing, resolution and the template walker.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from enum import auto
from pathlib import Path

from .template_syntax.nodes import Expression
from .template_syntax.nodes import SourceLocation


class InvocationKind(Enum):
    """What an invocation may refer to."""

    COMPONENT = "component"
    HELPER = "helper"
    # `{{foo bar}}` may be either; helpers are tried first.
    COMPONENT_OR_HELPER = "component or helper"


class InvocationForm(Enum):
    """The syntactic spelling an invocation was written in."""

    INLINE_CURLY = auto()  # {{foo x=1}}
    BLOCK_CURLY = auto()  # {{#foo}}...{{/foo}}
    ANGLE_ELEMENT = auto()  # <Foo />
    SUBEXPRESSION = auto()  # (foo 1)
    DYNAMIC_INDIRECTION = auto()  # {{component "foo"}} / (helper "foo")


class Resolution(Enum):
    """Classification outcome for a single invocation."""

    LOCAL = auto()
    BUILTIN = auto()
    FILE_BACKED = auto()
    SAFE_DYNAMIC = auto()
    UNKNOWN = auto()


class BindingKind(Enum):
    OPAQUE = auto()
    SAFE_VALUE = auto()


@dataclass(frozen=True, slots=True)
class Invocation:
    """
    One syntactic reference to a component or helper, normalized across forms.

    `raw_name` is the name as written (`HelloWorld`, `hello-world`,
    `thing.body`). For dynamic indirections it is the literal name carried by
    the first argument.
    """

    kind: InvocationKind
    form: InvocationForm
    raw_name: str
    params: tuple[Expression, ...] = ()
    hash: Mapping[str, Expression] = field(default_factory=dict)
    loc: SourceLocation | None = None

    @property
    def has_arguments(self) -> bool:
        # Only an inline curly can be plain content; every other form proves
        # the name is an invocation.
        if self.form is not InvocationForm.INLINE_CURLY:
            return True
        return bool(self.params) or bool(self.hash)

    @property
    def head(self) -> str:
        return self.raw_name.split(".", 1)[0]


@dataclass(frozen=True, slots=True)
class DependencyRecord:
    """
    A statically discovered module dependency of a template.

    `path` is relative to the invoking template's directory and always starts
    with `./` or `../`. `runtime_name` is the module prefix joined with the
    project-relative path minus its extension.
    """

    path: str
    runtime_name: str

    def as_dict(self) -> dict[str, str]:
        return {"path": self.path, "runtimeName": self.runtime_name}


@dataclass(frozen=True, slots=True)
class ComponentArgument:
    """An argument declared to carry a component, and its name inside the component."""

    name: str
    becomes: str | None = None

    @property
    def bare_name(self) -> str:
        return self.name[1:] if self.name.startswith("@") else self.name


YieldedSafety = bool | Mapping[str, bool]
YieldedArgument = str | Mapping[str, str]


@dataclass(frozen=True, slots=True)
class ComponentRule:
    """
    A package-supplied override for one component (or helper).

    `key` is the canonical invocation key (see `resolution.names`), so a rule
    written as `<FormBuilder />` and one written as `{{form-builder}}` are the
    same rule.
    """

    package: str
    key: str
    safe_to_ignore: bool = False
    accepts_component_arguments: tuple[ComponentArgument, ...] = ()
    yields_safe_components: tuple[YieldedSafety, ...] = ()
    yields_arguments: tuple[YieldedArgument, ...] = ()

    @property
    def arguments_are_components(self) -> tuple[str, ...]:
        return tuple(arg.bare_name for arg in self.accepts_component_arguments)

    @property
    def safe_interior_paths(self) -> frozenset[str]:
        """Paths that refer to component-accepting arguments inside the component's own template."""
        paths: set[str] = set()
        for arg in self.accepts_component_arguments:
            name = arg.bare_name
            paths.add(f"@{name}")
            if arg.becomes:
                paths.add(arg.becomes)
            else:
                paths.add(name)
                paths.add(f"this.{name}")
        return frozenset(paths)


@dataclass(frozen=True, slots=True)
class ResolvedSymbol:
    """The single classification an invocation receives."""

    resolution: Resolution
    name: str
    candidates: tuple[DependencyRecord, ...] = ()
    rule: ComponentRule | None = None


@dataclass(frozen=True, slots=True)
class Binding:
    """
    A block parameter in scope.

    - `SAFE_VALUE` with no `fields`: the value itself is a statically known
      component.
    - `SAFE_VALUE` with `fields`: the value is a record whose listed fields are
      statically known components.
    - `OPAQUE`: an ordinary local. When the local mirrors a dynamic argument,
      `dynamic_source` (or `field_sources` per sub-field) keeps the original
      expression text so later dynamic use reports the real origin.
    """

    name: str
    kind: BindingKind = BindingKind.OPAQUE
    fields: frozenset[str] = frozenset()
    dynamic_source: str | None = None
    field_sources: tuple[tuple[str, str], ...] = ()

    @property
    def is_safe(self) -> bool:
        return self.kind is BindingKind.SAFE_VALUE

    def source_for(self, sub_field: str | None) -> str | None:
        if sub_field is None:
            return self.dynamic_source
        for name, source in self.field_sources:
            if name == sub_field:
                return source
        return None


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TemplateSyntaxError(ValueError):
    """Raised by the template parser for malformed source."""

    def __init__(self, message: str, line: int = 0) -> None:
        self.line = line
        if line:
            message = f"{message} (line {line})"
        super().__init__(message)


class MissingDependencyError(Exception):
    """A referenced component or helper cannot be resolved statically."""

    def __init__(
        self,
        message: str,
        *,
        name: str,
        kind: InvocationKind,
        template: str,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.name = name
        self.kind = kind
        self.template = template


def missing_dependency(
    kind: InvocationKind, name: str, template: Path | str
) -> MissingDependencyError:
    """
    Build the error raised for an unresolvable invocation.

    Message form: `Missing {kind} {name} in {template}`.
    """
    return MissingDependencyError(
        f"Missing {kind.value} {name} in {template}",
        name=name,
        kind=kind,
        template=str(template),
    )
