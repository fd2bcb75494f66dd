"""
Project-level resolution.

Resolves many templates against one set of options. Each template is
independent: a failure in one is reported in its outcome and does not stop
the others.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import as_completed
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

from ..config import ResolverOptions
from ..types import DependencyRecord
from ..types import MissingDependencyError
from .template import resolve_template_dependencies

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TemplateOutcome:
    template: str
    dependencies: list[DependencyRecord] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _relative_template_path(root: Path, template: Path) -> str:
    if template.is_absolute():
        template = template.relative_to(root)
    return template.as_posix()


def resolve_one(root: Path, template: Path, options: ResolverOptions) -> TemplateOutcome:
    relative_path = template.as_posix()
    warnings: list[str] = []
    try:
        relative_path = _relative_template_path(root, template)
        source = (root / relative_path).read_text(encoding="utf-8")
        dependencies = resolve_template_dependencies(
            source, relative_path, options, on_warning=warnings.append
        )
    except (MissingDependencyError, ValueError, OSError) as exc:
        # ValueError covers syntax errors and templates outside the root.
        logger.debug("%s failed: %s", relative_path, exc)
        return TemplateOutcome(relative_path, warnings=warnings, error=str(exc))
    for message in warnings:
        logger.warning("%s: %s", relative_path, message)
    return TemplateOutcome(relative_path, dependencies, warnings)


def resolve_project(
    root: Path,
    template_paths: Iterable[Path],
    options: ResolverOptions,
    *,
    max_workers: int = 1,
) -> list[TemplateOutcome]:
    """
    Resolve every template in `template_paths` (absolute, or relative to `root`).

    Runs on a thread pool when `max_workers > 1`. Outcomes are returned
    ordered by template path.
    """
    templates = [Path(p) for p in template_paths]
    # Build the rule store once, before threads share the options.
    options.rule_store

    if max_workers <= 1 or len(templates) <= 1:
        outcomes = [resolve_one(root, template, options) for template in templates]
    else:
        outcomes = []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(resolve_one, root, template, options) for template in templates
            ]
            for future in as_completed(futures):
                outcomes.append(future.result())
    return sorted(outcomes, key=lambda outcome: outcome.template)
