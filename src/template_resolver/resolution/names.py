from __future__ import annotations

import re

_CURLY_KEY_RE = re.compile(r"^\{\{[#/]?\s*(?P<name>[^\s}]+)\s*\}\}$")
_ELEMENT_KEY_RE = re.compile(r"^<\s*(?P<name>[^\s/>]+)\s*/?>$")


def dasherize(name: str) -> str:
    """
    Convert an element-style name to its file-system spelling.

    `HelloWorld` -> `hello-world`, `Foo::BarBaz` -> `foo/bar-baz`. Names that
    are already dasherized are returned unchanged.
    """
    segments = []
    for segment in name.split("::"):
        out: list[str] = []
        for idx, char in enumerate(segment):
            if char.isupper():
                if idx > 0 and segment[idx - 1] not in "-/":
                    out.append("-")
                out.append(char.lower())
            else:
                out.append(char)
        segments.append("".join(out))
    return "/".join(segments)


def canonical_invocation_key(key: str) -> str:
    """
    Normalize a rule key so every spelling of an invocation maps to one name.

    `<ThisOne />`, `{{this-one}}`, `{{#this-one}}` and `this-one` all become
    `this-one`.
    """
    key = key.strip()
    match = _ELEMENT_KEY_RE.match(key) or _CURLY_KEY_RE.match(key)
    if match is not None:
        key = match.group("name")
    return dasherize(key)
