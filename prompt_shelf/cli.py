#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Prompt‑Shelf ▸ Command Line Interface
===============================================================================

Subcommands
-----------
• render        – render a template with placeholder bindings
• list          – list template identifiers and descriptions
• show          – print a template body unrendered
• placeholders  – list the placeholders of a template (and their defaults)
• validate      – validate a catalog.json or a bindings file
• schema        – print a bundled JSON schema
• version       – print package version

Global flags
------------
• --version     – print package version (equivalent to the `version` subcommand)
• --dir DIR     – read templates from DIR instead of the bundled set
                  (default: $PROMPT_SHELF_DIR)

Examples
--------
  # 1) Render with inline bindings
  prompt-shelf render godoc-func -D function=ParseConfig -D package=config

  # 2) Render with a bindings file, fail on missing values, write to a file
  prompt-shelf render unit-test --bindings vars.json --strict -o prompt.md

  # 3) Use a private template directory
  prompt-shelf --dir ~/prompts list

  # 4) Check a catalog before committing it
  prompt-shelf validate --catalog ~/prompts/catalog.json

Rendered text goes to stdout; logs and warnings go to stderr.
"""
from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from jsonschema import ValidationError

from prompt_shelf import get_logger, get_version
from prompt_shelf.logger import _is_truthy
from prompt_shelf.resolver import PLACEHOLDER_NAME_RE
from prompt_shelf.selector import Selector, UnresolvedPlaceholderError
from prompt_shelf.store import TemplateLoadError, TemplateNotFound, load_store
from prompt_shelf.validator import (
    SCHEMA_FILES,
    load_schema,
    pretty_pointer,
    validate_bindings,
    validate_catalog,
)

log = get_logger(__name__)

# Environment‑backed defaults
DEFAULT_DIR = os.getenv("PROMPT_SHELF_DIR") or None
DEFAULT_STRICT = _is_truthy(os.getenv("PROMPT_SHELF_STRICT"))


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _binding_arg(raw: str) -> tuple[str, str]:
    """argparse type for ``-D NAME=VALUE``."""
    name, sep, value = raw.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {raw!r}")
    if not PLACEHOLDER_NAME_RE.match(name):
        raise argparse.ArgumentTypeError(f"invalid placeholder name {name!r}")
    return name, value


def _read_source(path: str) -> str:
    """Read *path* as UTF‑8, or stdin when *path* is '-'."""
    if path == "-":
        return sys.stdin.read()
    return Path(path).expanduser().read_text(encoding="utf-8")


def _load_bindings(path: Optional[str]) -> Dict[str, str]:
    if not path:
        return {}
    try:
        return validate_bindings(_read_source(path))
    except OSError as exc:
        raise SystemExit(f"Failed to read bindings file {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise SystemExit(f"Bindings file {path} is not valid UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Bindings file {path} is not valid JSON: {exc}") from exc
    except ValidationError as exc:
        raise SystemExit(
            f"Bindings file {path} invalid at {pretty_pointer(exc)}: {exc.message}"
        ) from exc


def _selector(args: argparse.Namespace) -> Selector:
    """Build the store for this invocation and wrap it in a Selector."""
    return Selector(load_store(args.dir))


def _emit(text: str, output: Optional[str]) -> None:
    if output:
        Path(output).expanduser().write_text(text, encoding="utf-8")
        log.info("Wrote %d chars to %s", len(text), output)
    else:
        sys.stdout.write(text)
        sys.stdout.flush()


# ─────────────────────────────────────────────────────────────────────────────
# Subcommand handlers
# ─────────────────────────────────────────────────────────────────────────────

def cmd_render(args: argparse.Namespace) -> int:
    """
    Render a template. `-D` bindings override values from `--bindings`.
    """
    bindings = _load_bindings(args.bindings)
    bindings.update(dict(args.define or []))

    selector = _selector(args)
    try:
        rendering = selector.run(args.identifier, bindings, strict=args.strict)
    except UnresolvedPlaceholderError as exc:
        log.error("%s", exc)
        return 1

    _emit(rendering.text, args.output)
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    store = _selector(args).store
    width = max((len(i) for i in store.identifiers()), default=0)
    for tpl in store:
        line = f"{tpl.identifier:<{width}}  {tpl.description}".rstrip()
        print(line)
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    template = _selector(args).describe(args.identifier)
    _emit(template.body, None)
    return 0


def cmd_placeholders(args: argparse.Namespace) -> int:
    template = _selector(args).describe(args.identifier)
    for name in sorted(template.placeholders):
        if name in template.defaults:
            print(f"{name}  (default: {template.defaults[name]!r})")
        else:
            print(name)
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """
    Validate a catalog.json or a bindings document.
    """
    kind, path = ("catalog", args.catalog) if args.catalog else ("bindings", args.bindings)
    try:
        payload = _read_source(path)
    except OSError as exc:
        log.error("Failed to read %s: %s", path, exc)
        return 1
    except UnicodeDecodeError as exc:
        log.error("❌ %s is not valid UTF-8: %s", path, exc)
        return 1

    try:
        if kind == "catalog":
            validate_catalog(payload)
        else:
            validate_bindings(payload)
    except ValidationError as exc:
        log.error("❌ %s invalid at %s: %s", kind.capitalize(), pretty_pointer(exc), exc.message)
        return 1
    except json.JSONDecodeError as exc:
        log.error("❌ %s is not valid JSON: %s", path, exc)
        return 1
    except ValueError as exc:
        log.error("❌ %s failed checks: %s", kind.capitalize(), exc)
        return 1

    print(f"✓ {kind.capitalize()} is valid.")
    return 0


def cmd_schema(args: argparse.Namespace) -> int:
    print(json.dumps(load_schema(args.kind), indent=2, ensure_ascii=False))
    return 0


def cmd_version(_args: argparse.Namespace) -> int:
    print(get_version())
    return 0


# ─────────────────────────────────────────────────────────────────────────────
# Argument parser
# ─────────────────────────────────────────────────────────────────────────────

def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="prompt-shelf",
        description="Prompt‑Shelf – render stored prompt templates for AI coding assistants",
    )
    p.add_argument("--version", action="store_true", help="Print package version and exit.")
    p.add_argument(
        "--dir",
        default=DEFAULT_DIR,
        help="Template directory (default: $PROMPT_SHELF_DIR, else the bundled templates).",
    )

    sub = p.add_subparsers(dest="cmd", metavar="command")

    # render
    pr = sub.add_parser("render", help="Render a template with placeholder bindings")
    pr.add_argument("identifier", help="Template identifier (see `list`).")
    pr.add_argument(
        "-D", "--define",
        action="append",
        type=_binding_arg,
        metavar="NAME=VALUE",
        help="Bind a placeholder; repeatable. Overrides --bindings.",
    )
    pr.add_argument("--bindings", metavar="FILE", help="JSON object of bindings, or '-' for stdin.")
    pr.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_STRICT,
        help="Fail instead of substituting '' for unbound placeholders (default: $PROMPT_SHELF_STRICT).",
    )
    pr.add_argument("-o", "--output", help="Write the rendered text to a file instead of stdout.")
    pr.set_defaults(func=cmd_render)

    # list
    pl = sub.add_parser("list", help="List template identifiers")
    pl.set_defaults(func=cmd_list)

    # show
    psh = sub.add_parser("show", help="Print a template body without rendering")
    psh.add_argument("identifier", help="Template identifier.")
    psh.set_defaults(func=cmd_show)

    # placeholders
    pph = sub.add_parser("placeholders", help="List the placeholders of a template")
    pph.add_argument("identifier", help="Template identifier.")
    pph.set_defaults(func=cmd_placeholders)

    # validate
    pv = sub.add_parser("validate", help="Validate a catalog.json or bindings file")
    src = pv.add_mutually_exclusive_group(required=True)
    src.add_argument("--catalog", metavar="FILE", help="catalog.json to validate ('-' for stdin).")
    src.add_argument("--bindings", metavar="FILE", help="Bindings JSON to validate ('-' for stdin).")
    pv.set_defaults(func=cmd_validate)

    # schema
    ps = sub.add_parser("schema", help="Print a bundled JSON schema")
    ps.add_argument("kind", choices=sorted(SCHEMA_FILES), help="Which schema to print.")
    ps.set_defaults(func=cmd_schema)

    # version
    pvrs = sub.add_parser("version", help="Print package version")
    pvrs.set_defaults(func=cmd_version)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    try:
        parser = _parser()
        args = parser.parse_args(argv)

        if getattr(args, "version", False):
            print(get_version())
            return 0

        if not hasattr(args, "func"):
            parser.print_help()
            return 2

        return int(args.func(args))
    except TemplateNotFound as exc:
        log.error("%s. Available: %s", exc, ", ".join(exc.available) or "<none>")
        return 1
    except TemplateLoadError as exc:
        log.error("Failed to load templates: %s", exc)
        return 1
    except KeyboardInterrupt:
        log.info("Interrupted by user (Ctrl‑C).")
        return 130
    except SystemExit as exc:
        # argparse errors carry an int; our own SystemExit(msg) carries text
        if isinstance(exc.code, int):
            return exc.code
        if exc.code:
            log.error("%s", exc.code)
        return 1
    except Exception as exc:
        log.exception("Fatal error in CLI: %s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
