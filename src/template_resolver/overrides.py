"""
Centralized hard-coded knowledge about the template language.

Goal:
- Keep builtin keyword lists and file-layout tables out of core logic.
- Make it obvious where to extend behavior when the host framework grows new
  keywords (these lists track the framework, not any particular project).
"""

from __future__ import annotations

# Curly keywords provided by the framework itself. These never resolve to a
# file, even when a project happens to ship a same-named helper.
#
# `array` is not listed: older framework releases did not ship it and
# projects commonly provide `helpers/array.js` themselves.
BUILTIN_HELPERS: frozenset[str] = frozenset(
    {
        "-get-dynamic-var",
        "-in-element",
        "-with-dynamic-vars",
        "action",
        "component",
        "concat",
        "debugger",
        "each",
        "each-in",
        "fn",
        "get",
        "has-block",
        "has-block-params",
        "hasBlock",
        "hash",
        "helper",
        "if",
        "in-element",
        "input",
        "let",
        "link-to",
        "loc",
        "log",
        "modifier",
        "mount",
        "mut",
        "on",
        "outlet",
        "partial",
        "query-params",
        "readonly",
        "textarea",
        "unbound",
        "unless",
        "with",
        "yield",
    }
)

# Angle-bracket components provided by the framework (dasherized).
BUILTIN_COMPONENTS: frozenset[str] = frozenset({"input", "link-to", "textarea"})

# Keywords that compute a component/helper reference from their first argument.
DYNAMIC_COMPONENT_KEYWORD = "component"
DYNAMIC_HELPER_KEYWORD = "helper"

# Extensions that denote template files rather than backing scripts.
TEMPLATE_EXTENSIONS: frozenset[str] = frozenset({".hbs"})

DEFAULT_RESOLVABLE_EXTENSIONS: tuple[str, ...] = (".js", ".hbs")

# HTML elements that never have a closing tag.
VOID_ELEMENTS: frozenset[str] = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "command",
        "embed",
        "hr",
        "img",
        "input",
        "keygen",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)
