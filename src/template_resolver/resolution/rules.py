"""
Package rules.

Packages can declare facts about their components and helpers that static
analysis cannot discover on its own:

- safeToIgnore: a missing component/helper is not an error
- acceptsComponentArguments: arguments that carry components
- yieldsSafeComponents: block params that are statically known components
- yieldsArguments: block params that mirror incoming arguments

Rules are written in the caller format

    {"package": "...", "components": {"<FormBuilder />": {...}}, "helpers": {...}}

and keyed by canonical invocation key, so element and curly spellings of the
same component share one rule.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from collections.abc import Mapping
from pathlib import PurePath

from ..types import ComponentArgument
from ..types import ComponentRule
from ..types import InvocationKind
from ..types import YieldedArgument
from ..types import YieldedSafety
from .names import canonical_invocation_key

logger = logging.getLogger(__name__)

_TEMPLATE_RULE_PATTERNS = (
    re.compile(r"^templates/components/(?P<name>.+)\.hbs$"),
    re.compile(r"^components/(?P<name>.+)/template\.hbs$"),
    re.compile(r"^components/(?P<name>.+)\.hbs$"),
)

_COMPONENT_FIELDS = {
    "safeToIgnore",
    "acceptsComponentArguments",
    "yieldsSafeComponents",
    "yieldsArguments",
}


class RuleStore:
    """Immutable lookup of package rules by kind and canonical name."""

    def __init__(
        self,
        components: Mapping[str, ComponentRule] | None = None,
        helpers: Mapping[str, ComponentRule] | None = None,
    ) -> None:
        self._components = dict(components or {})
        self._helpers = dict(helpers or {})

    @classmethod
    def from_package_rules(cls, package_rules: Iterable[Mapping[str, object]]) -> RuleStore:
        components: dict[str, ComponentRule] = {}
        helpers: dict[str, ComponentRule] = {}
        for package_rule in package_rules:
            if not isinstance(package_rule, Mapping):
                raise ValueError(f"Invalid package rule: {package_rule!r}")
            package = package_rule.get("package")
            if not isinstance(package, str) or not package:
                raise ValueError(f"Package rule without a package name: {package_rule!r}")
            for section, target, parse in (
                ("components", components, _parse_component_rule),
                ("helpers", helpers, _parse_helper_rule),
            ):
                entries = package_rule.get(section, {})
                if not isinstance(entries, Mapping):
                    raise ValueError(f"Invalid {section} rules in package {package}")
                for raw_key, body in entries.items():
                    if not isinstance(raw_key, str):
                        raise ValueError(f"Invalid rule key {raw_key!r} in package {package}")
                    rule = parse(package, raw_key, body)
                    previous = target.get(rule.key)
                    if previous is not None:
                        logger.debug(
                            "rule for %s from %s overrides %s",
                            rule.key,
                            package,
                            previous.package,
                        )
                    target[rule.key] = rule
        return cls(components, helpers)

    def __len__(self) -> int:
        return len(self._components) + len(self._helpers)

    def lookup(self, kind: InvocationKind, name: str) -> ComponentRule | None:
        key = canonical_invocation_key(name)
        if kind is InvocationKind.COMPONENT:
            return self._components.get(key)
        if kind is InvocationKind.HELPER:
            return self._helpers.get(key)
        return self._components.get(key) or self._helpers.get(key)

    def rules_for_template(self, relative_path: str | PurePath) -> ComponentRule | None:
        """Rule of the component whose own template lives at `relative_path`."""
        path = PurePath(relative_path).as_posix()
        for pattern in _TEMPLATE_RULE_PATTERNS:
            match = pattern.match(path)
            if match is not None:
                return self._components.get(match.group("name"))
        return None


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_component_rule(package: str, raw_key: str, body: object) -> ComponentRule:
    where = f"{raw_key!r} in package {package}"
    if not isinstance(body, Mapping):
        raise ValueError(f"Invalid rule {where}")
    unknown = set(body) - _COMPONENT_FIELDS
    if unknown:
        raise ValueError(f"Unknown rule fields {sorted(unknown)} for {where}")

    safe = body.get("safeToIgnore", False)
    if not isinstance(safe, bool):
        raise ValueError(f"safeToIgnore must be a boolean for {where}")

    return ComponentRule(
        package=package,
        key=canonical_invocation_key(raw_key),
        safe_to_ignore=safe,
        accepts_component_arguments=_parse_component_arguments(
            body.get("acceptsComponentArguments", []), where
        ),
        yields_safe_components=_parse_yielded_safety(body.get("yieldsSafeComponents", []), where),
        yields_arguments=_parse_yielded_arguments(body.get("yieldsArguments", []), where),
    )


def _parse_helper_rule(package: str, raw_key: str, body: object) -> ComponentRule:
    where = f"{raw_key!r} in package {package}"
    if not isinstance(body, Mapping):
        raise ValueError(f"Invalid helper rule {where}")
    ignored = set(body) - {"safeToIgnore"}
    if ignored:
        logger.debug("helper rule %s: ignoring %s", where, sorted(ignored))
    safe = body.get("safeToIgnore", False)
    if not isinstance(safe, bool):
        raise ValueError(f"safeToIgnore must be a boolean for {where}")
    return ComponentRule(package=package, key=canonical_invocation_key(raw_key), safe_to_ignore=safe)


def _parse_component_arguments(raw: object, where: str) -> tuple[ComponentArgument, ...]:
    if not isinstance(raw, list):
        raise ValueError(f"acceptsComponentArguments must be a list for {where}")
    out: list[ComponentArgument] = []
    for entry in raw:
        if isinstance(entry, str) and entry:
            out.append(ComponentArgument(entry))
            continue
        if isinstance(entry, Mapping):
            name = entry.get("name")
            becomes = entry.get("becomes")
            if isinstance(name, str) and name and (becomes is None or isinstance(becomes, str)):
                out.append(ComponentArgument(name, becomes))
                continue
        raise ValueError(f"Invalid acceptsComponentArguments entry {entry!r} for {where}")
    return tuple(out)


def _parse_yielded_safety(raw: object, where: str) -> tuple[YieldedSafety, ...]:
    if not isinstance(raw, list):
        raise ValueError(f"yieldsSafeComponents must be a list for {where}")
    out: list[YieldedSafety] = []
    for entry in raw:
        if isinstance(entry, bool):
            out.append(entry)
        elif isinstance(entry, Mapping) and all(
            isinstance(k, str) and isinstance(v, bool) for k, v in entry.items()
        ):
            out.append(dict(entry))
        else:
            raise ValueError(f"Invalid yieldsSafeComponents entry {entry!r} for {where}")
    return tuple(out)


def _parse_yielded_arguments(raw: object, where: str) -> tuple[YieldedArgument, ...]:
    if not isinstance(raw, list):
        raise ValueError(f"yieldsArguments must be a list for {where}")
    out: list[YieldedArgument] = []
    for entry in raw:
        if isinstance(entry, str) and entry:
            out.append(entry)
        elif isinstance(entry, Mapping) and all(
            isinstance(k, str) and isinstance(v, str) for k, v in entry.items()
        ):
            out.append(dict(entry))
        else:
            raise ValueError(f"Invalid yieldsArguments entry {entry!r} for {where}")
    return tuple(out)
