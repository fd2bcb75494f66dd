from __future__ import annotations

from pathlib import Path

import pytest

from template_resolver.resolution.module_paths import candidate_paths
from template_resolver.resolution.module_paths import relative_module_path
from template_resolver.resolution.module_paths import resolve_candidates
from template_resolver.resolution.module_paths import runtime_name_for
from template_resolver.resolution.names import canonical_invocation_key
from template_resolver.resolution.names import dasherize
from template_resolver.types import InvocationKind


def _write(root: Path, *relative_paths: str) -> None:
    for relative_path in relative_paths:
        target = root / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("", encoding="utf-8")


def _resolve(root: Path, kind: InvocationKind, name: str, from_path: str) -> list[tuple[str, str]]:
    records = resolve_candidates(
        kind,
        name,
        from_path,
        root=root,
        module_prefix="the-app",
        extensions=(".js", ".hbs"),
    )
    return [(r.path, r.runtime_name) for r in records]


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("HelloWorld", "hello-world"),
        ("hello-world", "hello-world"),
        ("XFoo", "x-foo"),
        ("Foo::BarBaz", "foo/bar-baz"),
        ("foo/bar-baz", "foo/bar-baz"),
        ("capitalize", "capitalize"),
    ],
)
def test_dasherize(name: str, expected: str) -> None:
    assert dasherize(name) == expected
    assert dasherize(expected) == expected


@pytest.mark.parametrize(
    "key",
    ["<ThisOne />", "<ThisOne/>", "{{this-one}}", "{{#this-one}}", "this-one", "ThisOne"],
)
def test_canonical_invocation_key(key: str) -> None:
    assert canonical_invocation_key(key) == "this-one"


@pytest.mark.parametrize(
    ("target", "from_template", "expected"),
    [
        ("components/hello-world.js", "templates/application.hbs", "../components/hello-world.js"),
        (
            "templates/components/hello-world.hbs",
            "templates/application.hbs",
            "./components/hello-world.hbs",
        ),
        ("templates/components/form-builder.hbs", "templates/components/x.hbs", "./form-builder.hbs"),
        ("components/x.js", "application.hbs", "./components/x.js"),
        ("helpers/a.js", "templates/deep/nested/page.hbs", "../../../helpers/a.js"),
    ],
)
def test_relative_module_path(target: str, from_template: str, expected: str) -> None:
    assert relative_module_path(target, from_template) == expected


def test_runtime_name_for() -> None:
    assert runtime_name_for("components/x/component.js", "the-app") == "the-app/components/x/component"
    assert runtime_name_for("templates/components/x.hbs", "") == "templates/components/x"


def test_component_probe_order() -> None:
    assert candidate_paths(InvocationKind.COMPONENT, "x", (".js", ".hbs")) == [
        "components/x/component.js",
        "components/x/template.hbs",
        "components/x.js",
        "components/x.hbs",
        "templates/components/x.hbs",
    ]


def test_helpers_only_probe_script_extensions() -> None:
    assert candidate_paths(InvocationKind.HELPER, "capitalize", (".js", ".ts", ".hbs")) == [
        "helpers/capitalize.js",
        "helpers/capitalize.ts",
    ]


def test_resolve_candidates_returns_every_existing_file(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "components/hello-world/component.js",
        "components/hello-world/template.hbs",
        "templates/components/hello-world.hbs",
    )
    assert _resolve(tmp_path, InvocationKind.COMPONENT, "HelloWorld", "templates/application.hbs") == [
        ("../components/hello-world/component.js", "the-app/components/hello-world/component"),
        ("../components/hello-world/template.hbs", "the-app/components/hello-world/template"),
        ("./components/hello-world.hbs", "the-app/templates/components/hello-world"),
    ]


def test_resolve_candidates_missing_is_empty(tmp_path: Path) -> None:
    assert _resolve(tmp_path, InvocationKind.COMPONENT, "nope", "templates/application.hbs") == []
    assert _resolve(tmp_path, InvocationKind.HELPER, "nope", "templates/application.hbs") == []


def test_helper_is_not_a_component(tmp_path: Path) -> None:
    _write(tmp_path, "helpers/capitalize.js")
    assert _resolve(tmp_path, InvocationKind.COMPONENT, "capitalize", "templates/application.hbs") == []
    assert _resolve(tmp_path, InvocationKind.HELPER, "capitalize", "templates/application.hbs") == [
        ("../helpers/capitalize.js", "the-app/helpers/capitalize"),
    ]


@pytest.mark.parametrize("name", ["@scope/thing", "-private"])
def test_unresolvable_names(tmp_path: Path, name: str) -> None:
    _write(tmp_path, f"components/{name}.js")
    assert _resolve(tmp_path, InvocationKind.COMPONENT, name, "templates/application.hbs") == []


def test_directories_are_not_candidates(tmp_path: Path) -> None:
    (tmp_path / "components" / "x.js").mkdir(parents=True)
    assert _resolve(tmp_path, InvocationKind.COMPONENT, "x", "templates/application.hbs") == []


def test_ambiguous_kind_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        _resolve(tmp_path, InvocationKind.COMPONENT_OR_HELPER, "x", "templates/application.hbs")
