from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from template_resolver.analysis.template import resolve_template_dependencies
from template_resolver.config import ResolverOptions

MODULE_PREFIX = "the-app"


class Project:
    __slots__ = ("root",)

    def __init__(self, root: Path) -> None:
        self.root = root

    def given_file(self, relative_path: str, contents: str = "") -> Path:
        target = self.root / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(contents, encoding="utf-8")
        return target


class FindDependencies:
    """Resolve template source as if it lived at `relative_path` in the project."""

    def __init__(self, project: Project, options: ResolverOptions) -> None:
        self.project = project
        self.options = options
        self.warnings: list[str] = []

    def __call__(self, relative_path: str, contents: str) -> list[dict[str, str]]:
        self.project.given_file(relative_path, contents)
        records = resolve_template_dependencies(
            contents, relative_path, self.options, on_warning=self.warnings.append
        )
        return [record.as_dict() for record in records]

    def template_path(self, relative_path: str) -> str:
        return str(self.project.root / relative_path)


@pytest.fixture
def project(tmp_path: Path) -> Project:
    return Project(tmp_path)


@pytest.fixture
def configure(project: Project) -> Callable[..., FindDependencies]:
    def _configure(
        *,
        static_components: bool = False,
        static_helpers: bool = False,
        package_rules: list[dict[str, object]] | None = None,
    ) -> FindDependencies:
        options = ResolverOptions(
            root=project.root,
            module_prefix=MODULE_PREFIX,
            resolvable_extensions=(".js", ".hbs"),
            static_components=static_components,
            static_helpers=static_helpers,
            package_rules=tuple(package_rules or ()),
        )
        return FindDependencies(project, options)

    return _configure
