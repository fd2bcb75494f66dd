"""
Resolver options and their file format.

Options can be loaded from a JSON file, a TOML file, or the
`[tool.template-resolver]` table of a `pyproject.toml`. Keys may be written in
camelCase (the format package rules are published in) or snake_case:

    {
      "modulePrefix": "the-app",
      "staticComponents": true,
      "staticHelpers": true,
      "packageRules": [{"package": "...", "components": {...}}]
    }
"""

from __future__ import annotations

import json
import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from functools import cached_property
from pathlib import Path

from .overrides import DEFAULT_RESOLVABLE_EXTENSIONS
from .resolution.rules import RuleStore

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

_KNOWN_KEYS = {
    "root",
    "module_prefix",
    "resolvable_extensions",
    "static_components",
    "static_helpers",
    "package_rules",
}


@dataclass(frozen=True)
class ResolverOptions:
    """
    Inputs shared by every template resolved in one project.

    - root: project root that component/helper paths are probed under
    - module_prefix: first segment of every runtime name
    - resolvable_extensions: extensions probed, in order; `.hbs` entries are
      template extensions, the rest are script extensions
    - static_components / static_helpers: which kinds are resolved at all
    - package_rules: rule mappings in the caller format (see `resolution.rules`)
    """

    root: Path
    module_prefix: str
    resolvable_extensions: tuple[str, ...] = DEFAULT_RESOLVABLE_EXTENSIONS
    static_components: bool = False
    static_helpers: bool = False
    package_rules: tuple[Mapping[str, object], ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        for ext in self.resolvable_extensions:
            if not ext.startswith("."):
                raise ValueError(f"Resolvable extension must start with '.': {ext!r}")

    @cached_property
    def rule_store(self) -> RuleStore:
        return RuleStore.from_package_rules(self.package_rules)


def _snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower().replace("-", "_")


def _read_document(path: Path) -> Mapping[str, object]:
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".toml":
        try:
            data: object = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ValueError(f"Invalid resolver config TOML: {path}: {exc}") from exc
        if path.name == "pyproject.toml" and isinstance(data, dict):
            data = data.get("tool", {}).get("template-resolver", {})
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid resolver config JSON: {path}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ValueError(f"Invalid resolver config: {path}")
    return data


def options_from_mapping(
    data: Mapping[str, object],
    *,
    base_dir: Path,
    root: Path | None = None,
) -> ResolverOptions:
    """
    Build options from an already-decoded document.

    A relative `root` in the document is taken relative to `base_dir`; an
    explicit `root` argument wins over the document.
    """
    values: dict[str, object] = {}
    for key, value in data.items():
        name = _snake(str(key))
        if name not in _KNOWN_KEYS:
            raise ValueError(f"Unknown resolver option: {key!r}")
        values[name] = value

    if root is None:
        raw_root = values.get("root", ".")
        if not isinstance(raw_root, str):
            raise ValueError("root must be a string")
        root = base_dir / raw_root

    module_prefix = values.get("module_prefix", "")
    if not isinstance(module_prefix, str):
        raise ValueError("module_prefix must be a string")

    extensions = values.get("resolvable_extensions", list(DEFAULT_RESOLVABLE_EXTENSIONS))
    if not isinstance(extensions, list) or not all(isinstance(e, str) for e in extensions):
        raise ValueError("resolvable_extensions must be a list of strings")

    flags: dict[str, bool] = {}
    for name in ("static_components", "static_helpers"):
        flag = values.get(name, False)
        if not isinstance(flag, bool):
            raise ValueError(f"{name} must be a boolean")
        flags[name] = flag

    package_rules = values.get("package_rules", [])
    if not isinstance(package_rules, list):
        raise ValueError("package_rules must be a list")

    options = ResolverOptions(
        root=root,
        module_prefix=module_prefix,
        resolvable_extensions=tuple(extensions),
        package_rules=tuple(package_rules),
        **flags,
    )
    # Surface rule errors at load time rather than mid-walk.
    options.rule_store
    return options


def load_options(path: Path, *, root: Path | None = None) -> ResolverOptions:
    data = _read_document(path)
    return options_from_mapping(data, base_dir=path.parent, root=root)
