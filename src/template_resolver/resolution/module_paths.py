from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable
from pathlib import Path
from pathlib import PurePosixPath

from ..overrides import TEMPLATE_EXTENSIONS
from ..types import DependencyRecord
from ..types import InvocationKind
from .names import dasherize

logger = logging.getLogger(__name__)


def relative_module_path(target: str, from_template: str) -> str:
    """
    Module specifier for `target` as seen from `from_template`.

    Both arguments are project-relative posix paths. The result always starts
    with `./` or `../`.
    """
    base = posixpath.dirname(from_template) or "."
    rel = posixpath.relpath(target, base)
    if rel.startswith("../"):
        return rel
    return f"./{rel}"


def runtime_name_for(target: str, module_prefix: str) -> str:
    """`<module_prefix>/<project-relative path without extension>`."""
    stem = str(PurePosixPath(target).with_suffix(""))
    if not module_prefix:
        return stem
    return f"{module_prefix}/{stem}"


def _split_extensions(extensions: Iterable[str]) -> tuple[list[str], list[str]]:
    scripts: list[str] = []
    templates: list[str] = []
    for ext in extensions:
        (templates if ext in TEMPLATE_EXTENSIONS else scripts).append(ext)
    return scripts, templates


def candidate_paths(kind: InvocationKind, name: str, extensions: Iterable[str]) -> list[str]:
    """
    Project-relative paths probed for `name`, in probing order.

    Components: pod layout, flat backing module, then the flat template under
    `templates/components`. Helpers: `helpers/<name>` with script extensions.
    """
    extensions = list(extensions)
    scripts, templates = _split_extensions(extensions)
    if kind is InvocationKind.HELPER:
        return [f"helpers/{name}{ext}" for ext in scripts]

    out: list[str] = []
    out.extend(f"components/{name}/component{ext}" for ext in scripts)
    out.extend(f"components/{name}/template{ext}" for ext in templates)
    out.extend(f"components/{name}{ext}" for ext in extensions)
    out.extend(f"templates/components/{name}{ext}" for ext in templates)
    return out


def resolve_candidates(
    kind: InvocationKind,
    name: str,
    from_path: str,
    *,
    root: Path,
    module_prefix: str,
    extensions: Iterable[str],
) -> list[DependencyRecord]:
    """
    Return one record per existing file that implements `name`.

    A missing file is never an error here; callers decide what an empty
    result means. Addon-namespaced names (containing `@`) and names starting
    with `-` never resolve.
    """
    if kind is InvocationKind.COMPONENT_OR_HELPER:
        raise ValueError("resolve_candidates needs a concrete kind")
    name = dasherize(name)
    if not name or "@" in name or name.startswith("-"):
        return []

    records: list[DependencyRecord] = []
    for target in candidate_paths(kind, name, extensions):
        if not (root / target).is_file():
            continue
        record = DependencyRecord(
            path=relative_module_path(target, from_path),
            runtime_name=runtime_name_for(target, module_prefix),
        )
        logger.debug("%s %s -> %s", kind.value, name, target)
        records.append(record)
    return records
