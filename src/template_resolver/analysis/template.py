from __future__ import annotations

from pathlib import PurePath

from ..config import ResolverOptions
from ..template_syntax.nodes import Template
from ..template_syntax.parsing import parse_template
from ..types import DependencyRecord
from .walker import TemplateWalker
from .walker import WarningHandler


def resolve_template_dependencies(
    template: str | Template,
    relative_path: str | PurePath,
    options: ResolverOptions,
    *,
    on_warning: WarningHandler | None = None,
) -> list[DependencyRecord]:
    """
    Resolve the static dependencies of one template.

    `template` is either source text or an already parsed tree;
    `relative_path` is the template's path relative to `options.root`.
    Records come back sorted by runtime name.

    Raises `MissingDependencyError` for unresolvable references and
    `TemplateSyntaxError` for unparsable source. Warnings go to `on_warning`
    (default: logged at WARNING level).
    """
    if isinstance(template, str):
        template = parse_template(template)
    walker = TemplateWalker(options, relative_path, on_warning=on_warning)
    return walker.walk(template)
