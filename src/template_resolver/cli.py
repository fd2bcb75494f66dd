from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

from .analysis.project import resolve_project
from .config import ResolverOptions
from .config import load_options
from .logging import LogConfig
from .logging import configure_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="template-resolver",
        description="Print the statically resolvable component/helper dependencies of templates.",
    )
    parser.add_argument(
        "templates",
        nargs="+",
        type=Path,
        metavar="TEMPLATE",
        help="Template paths, relative to the project root (or absolute).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON or TOML options file (a pyproject.toml is read from [tool.template-resolver]).",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Project root (defaults to the config's root, or the current directory).",
    )
    parser.add_argument(
        "--module-prefix",
        default=None,
        help="Prefix of every runtime name, usually the application's module name.",
    )
    parser.add_argument(
        "--static-components",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Resolve components statically.",
    )
    parser.add_argument(
        "--static-helpers",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Resolve helpers statically.",
    )
    parser.add_argument(
        "--jobs",
        "-j",
        type=int,
        default=1,
        help="Resolve templates on this many threads.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Log resolution details to stderr (-vv for debug output).",
    )
    return parser


def _options_from_args(args: argparse.Namespace) -> ResolverOptions:
    root = args.root.resolve() if args.root is not None else None
    if args.config is not None:
        options = load_options(args.config, root=root)
    else:
        options = ResolverOptions(root=root or Path.cwd(), module_prefix="")

    overrides: dict[str, object] = {}
    if args.module_prefix is not None:
        overrides["module_prefix"] = args.module_prefix
    if args.static_components is not None:
        overrides["static_components"] = args.static_components
    if args.static_helpers is not None:
        overrides["static_helpers"] = args.static_helpers
    if overrides:
        options = dataclasses.replace(options, **overrides)
    return options


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    configure_logging(LogConfig(log_level=level, console_level=level))

    try:
        options = _options_from_args(args)
    except (OSError, ValueError) as exc:
        print(f"template-resolver: {exc}", file=sys.stderr)
        return 2

    outcomes = resolve_project(options.root, args.templates, options, max_workers=args.jobs)

    report: dict[str, list[dict[str, str]]] = {}
    failed = False
    for outcome in outcomes:
        if outcome.error is not None:
            failed = True
            print(f"{outcome.template}: {outcome.error}", file=sys.stderr)
            continue
        report[outcome.template] = [record.as_dict() for record in outcome.dependencies]

    print(json.dumps(report, indent=2, sort_keys=True))
    return 1 if failed else 0
