from __future__ import annotations

import pytest

from template_resolver.resolution.dependencies import DependencySet
from template_resolver.resolution.scope import ScopeStack
from template_resolver.types import Binding
from template_resolver.types import BindingKind
from template_resolver.types import DependencyRecord


def test_lookup_prefers_innermost_frame() -> None:
    scope = ScopeStack()
    scope.push([Binding("item")])
    scope.push([Binding("item", BindingKind.SAFE_VALUE)])
    binding = scope.lookup("item")
    assert binding is not None and binding.is_safe
    scope.pop()
    binding = scope.lookup("item")
    assert binding is not None and not binding.is_safe


def test_lookup_uses_head_segment() -> None:
    scope = ScopeStack()
    scope.push([Binding("h")])
    assert scope.is_local("h.title")
    assert not scope.is_local("this.h")
    assert not scope.is_local("title")


def test_frame_pops_on_error() -> None:
    scope = ScopeStack()
    with pytest.raises(RuntimeError):
        with scope.frame([Binding("x")]):
            assert scope.is_local("x")
            raise RuntimeError("boom")
    assert len(scope) == 0
    assert not scope.is_local("x")


def test_pop_empty_stack() -> None:
    with pytest.raises(IndexError):
        ScopeStack().pop()


def test_safety_of_whole_value() -> None:
    scope = ScopeStack()
    scope.push([Binding("field", BindingKind.SAFE_VALUE), Binding("other")])
    assert scope.safety_of("field") == (True, None)
    assert scope.safety_of("field.x") == (False, None)
    assert scope.safety_of("other") == (False, None)
    assert scope.safety_of("unbound") == (False, None)


def test_safety_of_fields() -> None:
    scope = ScopeStack()
    scope.push([Binding("f", BindingKind.SAFE_VALUE, frozenset({"bar"}))])
    assert scope.safety_of("f.bar") == (True, None)
    assert scope.safety_of("f") == (False, None)
    assert scope.safety_of("f.other") == (False, None)
    assert scope.safety_of("f.bar.baz") == (False, None)


def test_safety_of_reports_dynamic_source() -> None:
    scope = ScopeStack()
    scope.push(
        [
            Binding("bar", dynamic_source="this.unknown"),
            Binding("f", field_sources=(("nav", "@nav"),)),
        ]
    )
    assert scope.safety_of("bar") == (False, "this.unknown")
    assert scope.safety_of("f.nav") == (False, "@nav")
    assert scope.safety_of("f.other") == (False, None)


def test_dependency_set_first_writer_wins() -> None:
    deps = DependencySet()
    first = DependencyRecord("../components/a.js", "the-app/components/a")
    again = DependencyRecord("./elsewhere/a.js", "the-app/components/a")
    assert deps.add(first)
    assert not deps.add(again)
    assert len(deps) == 1
    assert "the-app/components/a" in deps
    assert again in deps
    assert deps.finalize() == [first]


def test_dependency_set_sorts_by_runtime_name() -> None:
    deps = DependencySet()
    names = ["the-app/templates/components/z", "the-app/components/b", "the-app/components/a"]
    for name in names:
        deps.add(DependencyRecord(f"./{name}", name))
    assert [r.runtime_name for r in deps.finalize()] == sorted(names)
